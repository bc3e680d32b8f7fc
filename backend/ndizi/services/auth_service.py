# Overview: Service-layer operations for accounts; password hashing and login.

"""
Account registration and login.

Passwords are hashed with bcrypt. The cost factor comes from
BCRYPT_ROUNDS so tests can run with a cheap hash.
"""

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..validation import ConflictError, ValidationError


class AuthError(Exception):
    """Raised when credentials do not match an account."""
    pass


def hash_password(password: str) -> str:
    if not password:
        raise ValidationError("password is required")
    if not isinstance(password, str):
        raise ValidationError("password must be a string")
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Returns True if password matches hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    if email is not None and not isinstance(email, str):
        raise ValidationError("email must be a string")
    return (email or "").strip().lower()


def get_user_by_email(email: str) -> User | None:
    return db.session.query(User).filter_by(email=normalize_email(email)).first()


def get_user(user_id: str) -> User | None:
    return db.session.get(User, user_id)


def register_user(
    *,
    email: str,
    password: str,
    store_name: str,
    owner_name: str,
    phone: str | None = None,
    address: str | None = None,
) -> User:
    """
    Create a new account.

    Raises:
        ValidationError: missing email, password, store or owner name
        ConflictError: email already registered
    """
    email = normalize_email(email)
    if not email:
        raise ValidationError("email is required")
    if not store_name or not owner_name:
        raise ValidationError("storeName and ownerName are required")
    for label, value in (("storeName", store_name), ("ownerName", owner_name), ("phone", phone), ("address", address)):
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{label} must be a string")

    if get_user_by_email(email):
        raise ConflictError("User already exists")

    user = User(
        email=email,
        password_hash=hash_password(password),
        store_name=store_name,
        owner_name=owner_name,
        phone=phone,
        address=address,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        db.session.rollback()
        raise ConflictError("User already exists")
    return user


def authenticate(email: str, password: str) -> User:
    if not isinstance(email, str) or not isinstance(password, str):
        raise AuthError("Invalid credentials")
    user = get_user_by_email(email)
    if user is None or not password or not verify_password(password, user.password_hash):
        raise AuthError("Invalid credentials")
    return user
