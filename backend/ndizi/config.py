# backend/ndizi/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Cloud database; SQLite file next to the instance by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///ndizi.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # bcrypt cost factor for account passwords
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Device side: where the sync client points and where it keeps its records
    SYNC_API_URL = os.environ.get("SYNC_API_URL", "http://127.0.0.1:5000")
    LOCAL_DB_PATH = os.environ.get("LOCAL_DB_PATH", "ndizi-device.sqlite3")
