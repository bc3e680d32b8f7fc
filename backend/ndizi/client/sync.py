# Overview: Device-side sync client; pushes local records to the cloud and pulls changes back.

"""
Sync Client

push: every local product and transaction is sent, changed or not. The
      server decides create vs update.
pull: asks for everything changed after the user's watermark (lastSyncAt on
      the local user record), writes it into the local store by id, then
      advances the watermark to the server's syncedAt.
bidirectional_sync: push, then pull. A failed push skips the pull so local
      records are never overwritten by an older cloud copy.

FAILURES:
Network errors and non-2xx responses come back as
SyncResult(success=False, message=...). Nothing is retried. A store that was
never initialized raises StoreNotInitializedError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ndizi.client.local_store import DuplicateRecordError, LocalStore

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Raised when the cloud answers with an error."""
    pass


@dataclass(frozen=True)
class SyncResult:
    success: bool
    message: str
    synced_at: str | None = None

    def to_dict(self) -> dict:
        data = {"success": self.success, "message": self.message}
        if self.synced_at:
            data["syncedAt"] = self.synced_at
        return data


class SyncClient:
    """
    Args:
        store: the device's initialized LocalStore
        api_url: base URL of the cloud API (ignored when http is given)
        http: a preconfigured httpx.Client, mainly for tests
    """

    def __init__(self, store: LocalStore, api_url: str | None = None, http: httpx.Client | None = None):
        self.store = store
        self.http = http or httpx.Client(base_url=(api_url or "").rstrip("/"))

    def close(self) -> None:
        self.http.close()

    def _post(self, path: str, payload: dict, *, fallback_message: str) -> dict:
        response = self.http.post(path, json=payload)
        if not response.is_success:
            raise SyncError(_error_message(response, fallback_message))
        return response.json()

    def watermark(self, user: dict) -> str | None:
        """The user's last successful pull, preferring the stored copy."""
        stored = self.store.get_user(user["email"]) if user.get("email") else None
        if stored and stored.get("lastSyncAt"):
            return stored["lastSyncAt"]
        return user.get("lastSyncAt") or None

    def pull(self, user: dict, store_id: str | None = None) -> SyncResult:
        try:
            data = self._post(
                "/api/sync/pull",
                {
                    "userId": user["id"],
                    "lastSyncAt": self.watermark(user),
                    "storeId": store_id or None,
                },
                fallback_message="Failed to pull data",
            )
        except (httpx.HTTPError, SyncError, ValueError) as exc:
            logger.warning("Pull failed for user %s: %s", user.get("id"), exc)
            return SyncResult(success=False, message=str(exc) or "Failed to pull data from cloud")

        products = data.get("products") or []
        transactions = data.get("transactions") or []

        for product in products:
            self.store.save_product(product)

        skipped = 0
        for transaction in transactions:
            try:
                self.store.save_transaction(transaction)
            except DuplicateRecordError:
                # Another device minted the same invoice number
                skipped += 1
                logger.warning(
                    "Skipped pulled transaction %s: invoice %s already used locally",
                    transaction.get("id"),
                    transaction.get("invoiceNumber"),
                )

        synced_at = data.get("syncedAt")
        if synced_at and user.get("email"):
            stored = self.store.get_user(user["email"]) or {}
            self.store.save_user({**stored, **user, "lastSyncAt": synced_at})

        message = f"Pulled {len(products)} products and {len(transactions) - skipped} transactions"
        if skipped:
            message += f" ({skipped} skipped: duplicate invoice numbers)"
        return SyncResult(success=True, message=message, synced_at=synced_at)

    def push(self, user: dict, store_id: str | None = None) -> SyncResult:
        products = self.store.get_products()
        transactions = self.store.get_transactions()

        try:
            data = self._post(
                "/api/sync/push",
                {
                    "userId": user["id"],
                    "products": products,
                    "transactions": transactions,
                    "storeId": store_id or None,
                },
                fallback_message="Failed to push data",
            )
            results = data["results"]
            synced = results["productsCreated"] + results["productsUpdated"]
            created = results["transactionsCreated"]
        except (httpx.HTTPError, SyncError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Push failed for user %s: %s", user.get("id"), exc)
            return SyncResult(success=False, message=str(exc) or "Failed to push data to cloud")

        return SyncResult(
            success=True,
            message=f"Synced {synced} products and {created} transactions",
            synced_at=data.get("syncedAt"),
        )

    def bidirectional_sync(self, user: dict, store_id: str | None = None) -> SyncResult:
        push_result = self.push(user, store_id)
        if not push_result.success:
            return push_result

        pull_result = self.pull(user, store_id)
        if not pull_result.success:
            return pull_result

        return SyncResult(
            success=True,
            message="Bidirectional sync completed successfully",
            synced_at=pull_result.synced_at,
        )

    def login(self, email: str, password: str) -> dict:
        """
        Sign in against the cloud and keep the account on this device.

        Raises:
            SyncError: bad credentials or the cloud is unreachable
        """
        try:
            data = self._post(
                "/api/auth/login",
                {"email": email, "password": password},
                fallback_message="Login failed",
            )
            user = data["user"]
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            raise SyncError("Login failed") from exc

        stored = self.store.get_user(user["email"]) or {}
        # Keep the device's own watermark; the cloud copy tracks pushes
        user = {**user, "lastSyncAt": stored.get("lastSyncAt")}
        self.store.save_user(user)
        return user

    def get_stores(self, user_id: str) -> list[dict]:
        try:
            response = self.http.get(f"/api/stores/{user_id}")
            if not response.is_success:
                raise SyncError("Failed to fetch stores")
            return response.json().get("stores") or []
        except (httpx.HTTPError, SyncError, ValueError) as exc:
            logger.error("Failed to fetch stores: %s", exc)
            return []

    def create_store(self, user_id: str, **store_data) -> dict:
        try:
            data = self._post(
                "/api/stores",
                {"userId": user_id, **store_data},
                fallback_message="Failed to create store",
            )
            return data["store"]
        except (httpx.HTTPError, SyncError, ValueError, KeyError) as exc:
            logger.error("Failed to create store: %s", exc)
            if isinstance(exc, SyncError):
                raise
            raise SyncError("Failed to create store") from exc


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return fallback
