# -*- coding: utf-8 -*-
"""
Environment-driven configuration.

``Config`` reads the process environment when instantiated so that tests can
monkeypatch variables before building an app. ``create_app`` loads it with
``app.config.from_object(Config())`` and then applies explicit overrides.
"""
import os
from typing import Mapping

from prompt_manager.errors import ConfigurationError

# Absence of any of these is fatal at startup, never a per-request error.
REQUIRED_KEYS = ("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET")


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Config:
    def __init__(self):
        self.APP_ENV = os.environ.get("APP_ENV", "production")
        self.SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
        self.SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
        self.SQLALCHEMY_TRACK_MODIFICATIONS = False

        # --- Stripe ---
        self.STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY")
        self.STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET")
        self.STRIPE_API_VERSION = os.environ.get("STRIPE_API_VERSION")
        self.STRIPE_PRICE_ID = os.environ.get("STRIPE_PRICE_ID")
        self.APP_BASE_URL = os.environ.get("APP_BASE_URL", "http://localhost:3000")

        # --- Identity provider (bearer JWT verification) ---
        self.AUTH_JWT_SECRET = os.environ.get("AUTH_JWT_SECRET")
        self.AUTH_JWKS_URL = os.environ.get("AUTH_JWKS_URL")
        self.AUTH_JWT_AUDIENCE = os.environ.get("AUTH_JWT_AUDIENCE")
        self.AUTH_JWT_ISSUER = os.environ.get("AUTH_JWT_ISSUER")

        # --- Misc ---
        self.PROMPTS_DEV_DELAY_MS = int(os.environ.get("PROMPTS_DEV_DELAY_MS", "0"))
        self.CORS_ALLOWED_ORIGINS = os.environ.get(
            "CORS_ALLOWED_ORIGINS", "http://localhost:3000")
        self.LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
        self.PROMPT_MANAGER_LOG_JSON = _env_flag("PROMPT_MANAGER_LOG_JSON", "true")
        self.PROMPT_MANAGER_METRICS_ENABLED = _env_flag(
            "PROMPT_MANAGER_METRICS_ENABLED", "true")


def validate_config(config: Mapping) -> None:
    """Raise ConfigurationError if any required key is missing or blank."""
    missing = [key for key in REQUIRED_KEYS if not (config.get(key) or "").strip()]
    if missing:
        raise ConfigurationError(
            f"Missing required configuration: {', '.join(missing)}")


def normalize_db_url(url: str) -> str:
    """
    Normalize DATABASE_URL so SQLAlchemy loads the right DBAPI.
    We standardize on the psycopg v3 driver ('+psycopg').
    """
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://") and "+psycopg://" not in url:
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url
