# -*- coding: utf-8 -*-
"""
Stripe Checkout routes for subscription signup.

The session carries the caller's identity as ``client_reference_id`` so the
``checkout.session.completed`` webhook can bind the Stripe customer to it.
"""
from flask import Blueprint, jsonify, request, current_app
from marshmallow import ValidationError

from prompt_manager.extensions import get_services
from prompt_manager.infra.auth import current_identity, require_identity
from prompt_manager.infra.log import get_logger
from prompt_manager.schemas.billing import CheckoutSessionRequestSchema

logger = get_logger(__name__)
checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/checkout")


@checkout_bp.route("/session", methods=["POST"])
@require_identity
def create_checkout_session():
    """Creates a Stripe Checkout session for subscription signup."""
    try:
        data = CheckoutSessionRequestSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        logger.warning(f"Invalid checkout request: {e.messages}")
        return jsonify({"error": "validation_error", "message": "Invalid request data",
                        "details": e.messages}), 400

    price_id = data.get("price_id") or current_app.config.get("STRIPE_PRICE_ID")
    if not price_id:
        return jsonify({"error": "validation_error",
                        "message": "Missing required field: price_id"}), 400

    base_url = current_app.config.get("APP_BASE_URL", "").rstrip("/")
    success_url = data.get("success_url") or f"{base_url}/prompts?checkout=success"
    cancel_url = data.get("cancel_url") or f"{base_url}/prompts?checkout=cancelled"

    services = get_services()
    identity = current_identity()
    customer = services.customer_store.get_by_identity(identity)

    # GatewayError propagates to the error handler as a 502
    session = services.gateway.create_checkout_session(
        identity=identity,
        price_id=price_id,
        success_url=success_url,
        cancel_url=cancel_url,
        customer_ref=customer.external_customer_ref if customer else None,
    )
    return jsonify({"session_id": session.id, "url": session.url}), 200
