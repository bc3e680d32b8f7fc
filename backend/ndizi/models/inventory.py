from __future__ import annotations

from ..extensions import db
from .accounts import new_id
from ndizi.time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Product master data, owned by an account and optionally pinned to a store.

    ID DESIGN DECISION:
    Devices mint product ids (uuid4) offline, and the server keeps them on
    insert. The id is therefore the sync identity of a product; code is only
    a lookup key and may repeat.

    CONCURRENCY:
    version_id is an optimistic-locking counter. Two pushes that update the
    same row concurrently cannot both commit; the loser raises StaleDataError
    and is re-run by the sync service.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_user_code", "user_id", "code"),
        db.Index("ix_products_user_updated", "user_id", "updated_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=True, index=True)

    code = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(32), nullable=True)
    price = db.Column(db.Float, nullable=False)
    gst = db.Column(db.Float, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=True, default=0)
    expiry = db.Column(db.String(32), nullable=True)
    description = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.code!r} name={self.name!r} user_id={self.user_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "storeId": self.store_id,
            "code": self.code,
            "name": self.name,
            "category": self.category,
            "quantity": self.quantity,
            "unit": self.unit,
            "price": self.price,
            "gst": self.gst,
            "lowStockThreshold": self.low_stock_threshold,
            "expiry": self.expiry,
            "description": self.description,
            "versionId": self.version_id,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
