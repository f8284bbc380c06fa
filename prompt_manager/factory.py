# -*- coding: utf-8 -*-
import os
from typing import Mapping, Optional

from flask import Flask
from flask_cors import CORS

from prompt_manager.config import Config, normalize_db_url, validate_config
from prompt_manager.database import db
from prompt_manager.extensions import EXTENSION_KEY, Services

# Observability imports
from prompt_manager.services.metrics import init_metrics
from prompt_manager.services.request_context import init_request_context
from prompt_manager.services.structured_logging import get_logger, init_logging

from prompt_manager.middleware.error_handlers import register_error_handlers
from prompt_manager.services.identity import TokenVerifier
from prompt_manager.services.payment_gateway import PaymentGateway, StripeGateway
from prompt_manager.services.reconciler import SubscriptionReconciler
from prompt_manager.services.webhook_processor import WebhookProcessor
from prompt_manager.stores.base import CustomerStore, PromptStore

logger = get_logger('prompt_manager.startup')


def _database_url(app: Flask) -> str:
    db_url = app.config.get("SQLALCHEMY_DATABASE_URI")
    if db_url:
        return normalize_db_url(db_url)
    os.makedirs(app.instance_path, exist_ok=True)
    return f"sqlite:///{os.path.join(app.instance_path, 'prompt_manager.db')}"


def _build_services(
    app: Flask,
    customer_store: Optional[CustomerStore],
    prompt_store: Optional[PromptStore],
    gateway: Optional[PaymentGateway],
) -> Services:
    """Assemble process-wide collaborators once; explicit arguments win."""
    from prompt_manager.stores.sql import SqlCustomerStore, SqlPromptStore

    customer_store = customer_store or SqlCustomerStore(db)
    prompt_store = prompt_store or SqlPromptStore(db)
    gateway = gateway or StripeGateway(
        app.config["STRIPE_SECRET_KEY"],
        api_version=app.config.get("STRIPE_API_VERSION"),
    )
    reconciler = SubscriptionReconciler(customer_store, gateway)

    token_verifier = TokenVerifier(
        secret=app.config.get("AUTH_JWT_SECRET"),
        jwks_url=app.config.get("AUTH_JWKS_URL"),
        audience=app.config.get("AUTH_JWT_AUDIENCE"),
        issuer=app.config.get("AUTH_JWT_ISSUER"),
    )
    if not token_verifier.configured:
        logger.warning("No AUTH_JWT_SECRET or AUTH_JWKS_URL set; prompt endpoints will reject every request")

    return Services(
        customer_store=customer_store,
        prompt_store=prompt_store,
        gateway=gateway,
        reconciler=reconciler,
        webhook_processor=WebhookProcessor(
            gateway, reconciler, app.config["STRIPE_WEBHOOK_SECRET"]),
        token_verifier=token_verifier,
    )


def create_app(
    config_overrides: Optional[Mapping] = None,
    *,
    customer_store: Optional[CustomerStore] = None,
    prompt_store: Optional[PromptStore] = None,
    gateway: Optional[PaymentGateway] = None,
) -> Flask:
    app = Flask(__name__)
    app.url_map.strict_slashes = False

    # --- Core config ---
    app.config.from_object(Config())
    if config_overrides:
        app.config.update(config_overrides)
    # Missing Stripe secrets are fatal here, not per request
    validate_config(app.config)

    # --- DB config ---
    app.config["SQLALCHEMY_DATABASE_URI"] = _database_url(app)
    db.init_app(app)

    # --- CORS ---
    cors_origins = [origin.strip() for origin in app.config["CORS_ALLOWED_ORIGINS"].split(",")
                    if origin.strip()]
    CORS(app, resources={
        r"/api/*": {
            "origins": cors_origins,
            "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "supports_credentials": False,
            "max_age": 600,
        }}
    )

    # --- Initialize observability ---
    init_request_context(app)
    init_logging(app)
    init_metrics(app)
    register_error_handlers(app)

    # --- Collaborators ---
    app.extensions[EXTENSION_KEY] = _build_services(app, customer_store, prompt_store, gateway)

    # --- Mount blueprints ---
    from prompt_manager.routes import checkout, customers, health, prompts, stripe_webhooks
    app.register_blueprint(health.health_bp)
    app.register_blueprint(prompts.prompts_bp)
    app.register_blueprint(customers.customers_bp)
    app.register_blueprint(checkout.checkout_bp)
    app.register_blueprint(stripe_webhooks.stripe_webhooks_bp)

    # --- DB init ---
    with app.app_context():
        from prompt_manager import models  # noqa: F401  registers tables
        db.create_all()

    logger.info("Application ready", database=app.config["SQLALCHEMY_DATABASE_URI"].split("://", 1)[0])
    return app
