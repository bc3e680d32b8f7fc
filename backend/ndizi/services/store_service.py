from __future__ import annotations

from ndizi.extensions import db
from ndizi.models import Store, User
from ndizi.services.concurrency import run_with_retry


class StoreError(Exception):
    """Raised when store operations fail."""
    pass


def create_store(
    user_id: str,
    name: str,
    *,
    address: str | None = None,
    phone: str | None = None,
    gst_number: str | None = None,
) -> Store:
    def _op():
        if not user_id or not name:
            raise StoreError("userId and name are required")
        fields = (
            ("userId", user_id), ("name", name),
            ("address", address), ("phone", phone), ("gstNumber", gst_number),
        )
        for label, value in fields:
            if value is not None and not isinstance(value, str):
                raise StoreError(f"{label} must be a string")

        if db.session.get(User, user_id) is None:
            raise StoreError("User not found")

        store = Store(
            user_id=user_id,
            name=name.strip(),
            address=address,
            phone=phone,
            gst_number=gst_number,
        )

        db.session.add(store)
        db.session.commit()
        return store

    return run_with_retry(_op)


def list_stores(user_id: str) -> list[Store]:
    """Newest first."""
    return (
        db.session.query(Store)
        .filter_by(user_id=user_id)
        .order_by(Store.created_at.desc(), Store.id.asc())
        .all()
    )
