# -*- coding: utf-8 -*-
"""
Stripe Webhook Handler.

Receives subscription lifecycle events from Stripe and hands them to the
WebhookProcessor. The response status tells Stripe whether to redeliver:
200 acknowledged, 400 rejected (no retry helps), 500 handler failed (retry).

Events handled:
- checkout.session.completed (subscription mode): bind identity to Stripe customer
- customer.subscription.updated: re-derive membership
- customer.subscription.deleted: re-derive membership
"""
from flask import Blueprint, request, jsonify

from prompt_manager.extensions import get_services
from prompt_manager.infra.log import get_logger
from prompt_manager.services.metrics import get_metrics_service

logger = get_logger('prompt_manager.webhooks')

stripe_webhooks_bp = Blueprint('stripe_webhooks', __name__)


@stripe_webhooks_bp.route('/api/stripe/webhooks', methods=['POST'])
def stripe_webhook():
    payload = request.get_data()
    sig_header = request.headers.get('Stripe-Signature')

    result = get_services().webhook_processor.process(payload, sig_header)

    logger.log_webhook_event(
        result.event_type,
        result.outcome.value,
        stripe_event_id=result.event_id,
        dispatched=result.dispatched,
        status_code=result.status_code,
    )
    metrics = get_metrics_service()
    if metrics:
        metrics.record_webhook_event(result.event_type, result.outcome.value)

    return jsonify(result.body), result.status_code
