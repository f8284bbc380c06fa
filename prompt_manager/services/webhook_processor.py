# -*- coding: utf-8 -*-
"""
Stripe webhook intake.

A delivery moves through received -> verified -> filtered -> dispatched ->
acknowledged, or stops at rejected (bad signature or configuration, 400, no
retry) or failed (handler error, 500, Stripe redelivers later).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from prompt_manager.errors import EventPayloadError, SignatureError
from prompt_manager.services.membership import membership_for_status
from prompt_manager.services.payment_gateway import GatewayEvent, PaymentGateway, reference_id
from prompt_manager.services.reconciler import SubscriptionReconciler
from prompt_manager.services.structured_logging import get_logger

logger = get_logger('prompt_manager.webhooks')

CHECKOUT_COMPLETED = 'checkout.session.completed'
SUBSCRIPTION_UPDATED = 'customer.subscription.updated'
SUBSCRIPTION_DELETED = 'customer.subscription.deleted'

# Events we have an opinion about; everything else is acknowledged untouched.
RELEVANT_EVENTS = frozenset({
    CHECKOUT_COMPLETED,
    SUBSCRIPTION_UPDATED,
    SUBSCRIPTION_DELETED,
})


class WebhookOutcome(str, Enum):
    ACKNOWLEDGED = 'acknowledged'
    REJECTED = 'rejected'
    FAILED = 'failed'


@dataclass(frozen=True)
class WebhookResult:
    outcome: WebhookOutcome
    status_code: int
    message: str = ''
    event_id: Optional[str] = None
    event_type: Optional[str] = None
    dispatched: bool = False

    @property
    def body(self) -> dict:
        if self.outcome is WebhookOutcome.ACKNOWLEDGED:
            return {'received': True}
        return {'error': self.outcome.value, 'message': self.message}


class WebhookProcessor:
    """Verifies, filters and dispatches Stripe webhook deliveries."""

    def __init__(
        self,
        gateway: PaymentGateway,
        reconciler: SubscriptionReconciler,
        signing_secret: Optional[str],
    ):
        self._gateway = gateway
        self._reconciler = reconciler
        self._signing_secret = signing_secret

    def process(self, raw_payload: bytes, signature_header: Optional[str]) -> WebhookResult:
        if not raw_payload or not signature_header or not self._signing_secret:
            logger.error("Webhook Error: Missing Stripe signature, payload or webhook secret.")
            return WebhookResult(
                WebhookOutcome.REJECTED, 400, "Webhook Error: Configuration missing.")

        try:
            event = self._gateway.verify_event_signature(
                raw_payload, signature_header, self._signing_secret)
        except SignatureError as exc:
            logger.error(f"Webhook signature verification failed: {exc.message}")
            return WebhookResult(WebhookOutcome.REJECTED, 400, f"Webhook Error: {exc.message}")

        logger.info(f"Webhook received: {event.id}, Type: {event.type}",
                    stripe_event_id=event.id)

        if event.type not in RELEVANT_EVENTS:
            logger.info(f"Ignoring irrelevant event type: {event.type}", stripe_event_id=event.id)
            return self._acknowledged(event, dispatched=False)

        try:
            dispatched = self._dispatch(event)
        except Exception as exc:
            logger.exception(
                f"Webhook handler failed for event {event.type} ({event.id}): {exc}",
                stripe_event_id=event.id)
            return WebhookResult(
                WebhookOutcome.FAILED, 500, f"Webhook handler failed: {exc}",
                event_id=event.id, event_type=event.type, dispatched=True)

        logger.info(f"Successfully processed event: {event.id}", stripe_event_id=event.id)
        return self._acknowledged(event, dispatched=dispatched)

    @staticmethod
    def _acknowledged(event: GatewayEvent, dispatched: bool) -> WebhookResult:
        return WebhookResult(
            WebhookOutcome.ACKNOWLEDGED, 200,
            event_id=event.id, event_type=event.type, dispatched=dispatched)

    def _dispatch(self, event: GatewayEvent) -> bool:
        """Route a relevant event to the reconciler. Returns False for no-ops."""
        data = event.data_object

        if event.type in (SUBSCRIPTION_UPDATED, SUBSCRIPTION_DELETED):
            subscription_ref = reference_id(data.get('id'))
            customer_ref = reference_id(data.get('customer'))
            logger.info(f"Handling subscription update/delete for sub: {subscription_ref}")
            self._reconciler.reconcile_status_change(subscription_ref, customer_ref)
            return True

        if event.type == CHECKOUT_COMPLETED:
            return self._handle_checkout_completed(data)

        raise EventPayloadError(f"Unhandled relevant event type: {event.type}")

    def _handle_checkout_completed(self, session) -> bool:
        session_id = session.get('id')
        mode = session.get('mode')
        if mode != 'subscription':
            # One-time purchases have no reconciliation path.
            logger.info(f"Ignoring checkout session {session_id} (mode: {mode})")
            return False

        identity = session.get('client_reference_id')
        customer_ref = reference_id(session.get('customer'))
        subscription_ref = reference_id(session.get('subscription'))

        if not identity:
            raise EventPayloadError("Missing client_reference_id in checkout session")
        if not subscription_ref:
            raise EventPayloadError("Missing subscription ID in checkout session")
        if not customer_ref:
            raise EventPayloadError("Missing customer ID in checkout session")

        # Stripe doesn't guarantee the subscription is active at checkout time.
        subscription = self._gateway.retrieve_subscription(subscription_ref)
        membership = membership_for_status(subscription.status)

        logger.info(
            f"Upserting customer for user {identity} with initial status {membership.value}",
            checkout_session_id=session_id)
        self._reconciler.reconcile_new_checkout(
            identity, customer_ref, subscription_ref, membership)
        return True
