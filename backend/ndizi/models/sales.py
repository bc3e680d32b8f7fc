from __future__ import annotations

from ..extensions import db
from .accounts import new_id
from ndizi.time_utils import to_utc_z, utcnow


class Transaction(db.Model):
    """
    Sales invoice as recorded by a device.

    Line items are stored verbatim as the JSON snapshot the device took at
    sale time (product fields plus cartQuantity). Totals are the device's
    own arithmetic; the server does not recompute them.

    IMMUTABILITY:
    A transaction never changes after creation, except for the optional
    returned_items annotation written when goods come back.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_user_invoice", "user_id", "invoice_number"),
        db.Index("ix_transactions_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=True, index=True)

    invoice_number = db.Column(db.String(32), nullable=False)
    items = db.Column(db.JSON, nullable=False)
    subtotal = db.Column(db.Float, nullable=False)
    gst = db.Column(db.Float, nullable=False)
    total = db.Column(db.Float, nullable=False)
    returned_items = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=True, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} invoice_number={self.invoice_number!r} user_id={self.user_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "storeId": self.store_id,
            "invoiceNumber": self.invoice_number,
            "items": self.items,
            "subtotal": self.subtotal,
            "gst": self.gst,
            "total": self.total,
            "returnedItems": self.returned_items,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
