"""Flask CLI command tests."""

from ndizi.client.local_store import LocalStore
from ndizi.models import User


def test_users_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "users", "create",
        "--email", "cli@shop.in",
        "--password", "cli-pass",
        "--store-name", "CLI Store",
        "--owner-name", "CLI Owner",
    ])
    assert result.exit_code == 0, result.output
    assert "PASS Created user cli@shop.in" in result.output
    assert db_session.query(User).filter_by(email="cli@shop.in").count() == 1

    result = runner.invoke(args=["users", "list"])
    assert "cli@shop.in" in result.output
    assert "never" in result.output


def test_users_create_duplicate_fails(app, user_a):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "users", "create",
        "--email", "owner_a@acme.in",
        "--password", "x",
        "--store-name", "S",
        "--owner-name", "O",
    ])
    assert result.exit_code == 1
    assert "FAIL User already exists" in result.output


def test_system_init(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "init"])
    assert result.exit_code == 0
    assert "PASS Database schema ready" in result.output


def test_device_alerts(app, tmp_path, monkeypatch):
    path = str(tmp_path / "device.sqlite3")
    store = LocalStore(path)
    store.init()
    store.save_product({"id": "p1", "code": "SALT", "name": "Salt", "quantity": 0})
    store.close()

    monkeypatch.setitem(app.config, "LOCAL_DB_PATH", path)
    result = app.test_cli_runner().invoke(args=["device", "alerts"])

    assert result.exit_code == 0
    assert "HIGH    low-stock  Salt is running low (0 left)" in result.output
    assert "1 alerts (1 high priority)" in result.output


def test_device_push_requires_local_account(app, tmp_path, monkeypatch):
    monkeypatch.setitem(app.config, "LOCAL_DB_PATH", str(tmp_path / "device.sqlite3"))
    result = app.test_cli_runner().invoke(args=["device", "push", "--email", "ghost@shop.in"])
    assert result.exit_code == 1
    assert "No local account for ghost@shop.in" in result.output


def test_device_commands_close_local_store(app, tmp_path, monkeypatch):
    closed = []
    original_close = LocalStore.close

    def recording_close(self):
        closed.append(self.path)
        original_close(self)

    monkeypatch.setattr(LocalStore, "close", recording_close)
    path = str(tmp_path / "device.sqlite3")
    monkeypatch.setitem(app.config, "LOCAL_DB_PATH", path)

    for command in ("push", "pull", "sync"):
        result = app.test_cli_runner().invoke(args=["device", command, "--email", "ghost@shop.in"])
        assert result.exit_code == 1

    assert closed == [path, path, path]
