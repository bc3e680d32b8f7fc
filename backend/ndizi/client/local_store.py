# Overview: Device-local persistent record store (SQLite through SQLAlchemy Core).

"""
Local Record Store

Each device keeps its own copy of the account's records so it can sell
offline. Records are kept as JSON documents in their wire (camelCase) shape,
one table per collection:

    users         keyed by email
    products      keyed by id, secondary lookups by code and name (non-unique)
    transactions  keyed by id, invoiceNumber UNIQUE, indexed by createdAt
    settings      keyed by key

Every save is a put: insert, or overwrite the existing record with the same
key. Calling anything before init() raises StoreNotInitializedError.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import (
    JSON,
    Column,
    Index,
    MetaData,
    String,
    Table,
    create_engine,
    func,
    select,
)
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from ndizi.invoicing import next_invoice_number

logger = logging.getLogger(__name__)


class StoreNotInitializedError(RuntimeError):
    """Raised when the store is used before init()."""


class DuplicateRecordError(ValueError):
    """Raised when a save would break a unique key (invoice number)."""


metadata = MetaData()

users_table = Table(
    "users",
    metadata,
    Column("email", String(255), primary_key=True),
    Column("doc", JSON, nullable=False),
)

products_table = Table(
    "products",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("code", String(64), nullable=True),
    Column("name", String(255), nullable=True),
    Column("doc", JSON, nullable=False),
    Index("ix_local_products_code", "code"),
    Index("ix_local_products_name", "name"),
)

transactions_table = Table(
    "transactions",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("invoice_number", String(32), nullable=False, unique=True),
    Column("created_at", String(32), nullable=True),
    Column("doc", JSON, nullable=False),
    Index("ix_local_transactions_created_at", "created_at"),
)

settings_table = Table(
    "settings",
    metadata,
    Column("key", String(255), primary_key=True),
    Column("value", JSON, nullable=True),
)


class LocalStore:
    """
    Persistent key-value store for one device.

    path is a filesystem path for the SQLite database, or ":memory:" for a
    throwaway store.
    """

    def __init__(self, path: str = "ndizi-device.sqlite3"):
        self.path = path
        self._engine = None

    @property
    def initialized(self) -> bool:
        return self._engine is not None

    def init(self) -> None:
        if self._engine is not None:
            return
        if self.path == ":memory:":
            engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
        else:
            engine = create_engine(f"sqlite:///{self.path}")
        metadata.create_all(engine)
        self._engine = engine
        logger.debug("Local store ready at %s", self.path)

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def _require_engine(self):
        if self._engine is None:
            raise StoreNotInitializedError("Database not initialized")
        return self._engine

    def _put(self, table: Table, key_column: str, row: dict) -> None:
        stmt = sqlite_insert(table).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[key_column],
            set_={k: v for k, v in row.items() if k != key_column},
        )
        with self._require_engine().begin() as conn:
            conn.execute(stmt)

    def _get_doc(self, table: Table, key_column: str, key) -> dict | None:
        with self._require_engine().connect() as conn:
            row = conn.execute(select(table.c.doc).where(table.c[key_column] == key)).first()
        return dict(row[0]) if row else None

    def _all_docs(self, table: Table, *order_by) -> list[dict]:
        with self._require_engine().connect() as conn:
            rows = conn.execute(select(table.c.doc).order_by(*order_by)).all()
        return [dict(row[0]) for row in rows]

    # ------------------------------------------------------------------ users

    def save_user(self, user: dict) -> None:
        if not user.get("email"):
            raise ValueError("user email is required")
        self._put(users_table, "email", {"email": user["email"], "doc": user})

    def get_user(self, email: str) -> dict | None:
        return self._get_doc(users_table, "email", email)

    # --------------------------------------------------------------- products

    def save_product(self, product: dict) -> None:
        if not product.get("id"):
            raise ValueError("product id is required")
        self._put(
            products_table,
            "id",
            {"id": product["id"], "code": product.get("code"), "name": product.get("name"), "doc": product},
        )

    def get_products(self) -> list[dict]:
        return self._all_docs(products_table, products_table.c.id)

    def get_product(self, product_id: str) -> dict | None:
        return self._get_doc(products_table, "id", product_id)

    def get_product_by_code(self, code: str) -> dict | None:
        """First product carrying the code; codes are not unique."""
        with self._require_engine().connect() as conn:
            row = conn.execute(
                select(products_table.c.doc)
                .where(products_table.c.code == code)
                .order_by(products_table.c.id)
            ).first()
        return dict(row[0]) if row else None

    def delete_product(self, product_id: str) -> None:
        with self._require_engine().begin() as conn:
            conn.execute(products_table.delete().where(products_table.c.id == product_id))

    # ----------------------------------------------------------- transactions

    def save_transaction(self, transaction: dict) -> None:
        """
        Raises:
            DuplicateRecordError: another transaction already holds the
                invoice number
        """
        if not transaction.get("id") or not transaction.get("invoiceNumber"):
            raise ValueError("transaction id and invoiceNumber are required")
        try:
            self._put(
                transactions_table,
                "id",
                {
                    "id": transaction["id"],
                    "invoice_number": transaction["invoiceNumber"],
                    "created_at": transaction.get("createdAt"),
                    "doc": transaction,
                },
            )
        except IntegrityError as exc:
            raise DuplicateRecordError(
                f"Invoice number {transaction['invoiceNumber']} already exists"
            ) from exc

    def get_transactions(self) -> list[dict]:
        return self._all_docs(transactions_table, transactions_table.c.created_at, transactions_table.c.id)

    def get_transaction(self, transaction_id: str) -> dict | None:
        return self._get_doc(transactions_table, "id", transaction_id)

    def get_transaction_by_invoice(self, invoice_number: str) -> dict | None:
        return self._get_doc(transactions_table, "invoice_number", invoice_number)

    def get_next_invoice_number(self) -> str:
        with self._require_engine().connect() as conn:
            count = conn.execute(select(func.count()).select_from(transactions_table)).scalar_one()
        return next_invoice_number(count)

    # --------------------------------------------------------------- settings

    def save_setting(self, key: str, value: Any) -> None:
        self._put(settings_table, "key", {"key": key, "value": value})

    def get_setting(self, key: str) -> Any:
        with self._require_engine().connect() as conn:
            row = conn.execute(select(settings_table.c.value).where(settings_table.c.key == key)).first()
        return row[0] if row else None
