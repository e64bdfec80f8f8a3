# backend/garments/config.py
from __future__ import annotations
import os


def _split_origins(raw: str) -> list[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/garments.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///garments.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session token signing (HS256)
    ACCESS_TOKEN_SECRET = os.environ.get("ACCESS_TOKEN_SECRET", "dev-token-secret-change-me")
    ACCESS_TOKEN_TTL_SECONDS = int(os.environ.get("ACCESS_TOKEN_TTL_SECONDS", "3600"))
    TOKEN_COOKIE_NAME = "token"

    # "production" switches cookies to Secure + SameSite=None
    APP_ENV = os.environ.get("APP_ENV", "development")

    # Payment processor; gateway is disabled when the key is unset
    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY")
    PAYMENT_CURRENCY = os.environ.get("PAYMENT_CURRENCY", "usd")

    ALLOWED_ORIGINS = _split_origins(
        os.environ.get("ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
    )

    PORT = int(os.environ.get("PORT", "5000"))
