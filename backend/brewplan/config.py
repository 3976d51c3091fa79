# backend/brewplan/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/brewplan.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///brewplan.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # GST applied to purchase and sales documents, in basis points (1000 = 10%)
    DEFAULT_TAX_RATE_BPS = int(os.environ.get("BREWPLAN_TAX_RATE_BPS", "1000"))

    # Attempts for lifecycle operations that hit a stale version or a locked database
    TRANSACTION_RETRY_ATTEMPTS = int(os.environ.get("BREWPLAN_TX_RETRIES", "3"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
