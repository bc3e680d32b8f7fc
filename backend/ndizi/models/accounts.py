from __future__ import annotations

import uuid

from ..extensions import db
from ndizi.time_utils import to_utc_z, utcnow


def new_id() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    """
    Account owner. The account is the tenant boundary: every product,
    transaction and store row carries the owning user_id.

    last_sync_at is the server-side record of the most recent push; devices
    keep their own pull watermark locally.
    """
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    store_name = db.Column(db.String(255), nullable=False)
    owner_name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)
    plan = db.Column(db.String(32), nullable=False, default="free")

    last_sync_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"

    def to_dict(self) -> dict:
        # Never expose password_hash
        return {
            "id": self.id,
            "email": self.email,
            "storeName": self.store_name,
            "ownerName": self.owner_name,
            "phone": self.phone,
            "address": self.address,
            "plan": self.plan,
            "lastSyncAt": to_utc_z(self.last_sync_at),
            "createdAt": to_utc_z(self.created_at),
        }


class Store(db.Model):
    """Physical outlet belonging to an account."""
    __tablename__ = "stores"
    __table_args__ = (
        db.Index("ix_stores_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    address = db.Column(db.Text, nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    gst_number = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("stores", lazy=True, cascade="all, delete-orphan"))

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r} user_id={self.user_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "gstNumber": self.gst_number,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
