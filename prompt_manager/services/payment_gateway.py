# -*- coding: utf-8 -*-
"""
Stripe payment gateway client.

Thin wrapper over the ``stripe`` library exposing only what the billing flow
needs: subscription retrieval, webhook signature verification, and checkout
session creation. The API key is passed per call, so no module-global Stripe
configuration is ever touched.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import stripe

from prompt_manager import __version__
from prompt_manager.errors import ConfigurationError, GatewayError, SignatureError
from prompt_manager.services.structured_logging import get_logger

logger = get_logger('prompt_manager.gateway')


@dataclass(frozen=True)
class Subscription:
    id: str
    status: str
    customer_ref: Optional[str] = None


@dataclass(frozen=True)
class GatewayEvent:
    id: str
    type: str
    data_object: Mapping[str, Any]


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: Optional[str] = None


def as_dict(obj) -> dict:
    """
    Return a Stripe object as a plain dict.

    Recent stripe releases no longer subclass ``dict``, so mapping methods
    such as ``.get`` are only safe on the converted value.
    """
    if obj is None:
        return {}
    if hasattr(obj, 'to_dict'):
        return obj.to_dict()
    return dict(obj)


def reference_id(value) -> Optional[str]:
    """
    Return the Stripe id for a reference field.

    Stripe sends references either as plain ids or, when expanded, as
    objects carrying an ``id``.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, Mapping):
        return value.get('id') or None
    return getattr(value, 'id', None) or None


class PaymentGateway(ABC):

    @abstractmethod
    def retrieve_subscription(self, subscription_ref: str) -> Subscription:
        """Fetch authoritative subscription state. Raises GatewayError."""

    @abstractmethod
    def verify_event_signature(
            self, raw_payload: bytes, signature_header: str, secret: str) -> GatewayEvent:
        """Verify and parse a webhook delivery. Raises SignatureError."""

    @abstractmethod
    def create_checkout_session(
        self,
        identity: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        customer_ref: Optional[str] = None,
    ) -> CheckoutSession:
        """Create a subscription checkout bound to ``identity``. Raises GatewayError."""


class StripeGateway(PaymentGateway):
    """PaymentGateway backed by the Stripe API."""

    def __init__(self, api_key: str, api_version: Optional[str] = None):
        if not api_key:
            raise ConfigurationError("STRIPE_SECRET_KEY is not set")
        self._api_key = api_key
        self._api_version = api_version

    def _request_options(self) -> dict:
        options = {'api_key': self._api_key}
        if self._api_version:
            options['stripe_version'] = self._api_version
        return options

    def retrieve_subscription(self, subscription_ref: str) -> Subscription:
        if not subscription_ref:
            raise GatewayError("Missing subscription reference")

        logger.info(f"Retrieving Stripe subscription {subscription_ref}")
        try:
            subscription = stripe.Subscription.retrieve(
                subscription_ref, **self._request_options())
        except stripe.StripeError as exc:
            message = getattr(exc, 'user_message', None) or str(exc)
            logger.error(
                f"Error fetching Stripe subscription {subscription_ref}: {message}",
                stripe_error=type(exc).__name__)
            raise GatewayError(
                f"Failed to fetch Stripe subscription {subscription_ref}") from exc

        subscription = as_dict(subscription)
        return Subscription(
            id=subscription['id'],
            status=subscription['status'],
            customer_ref=reference_id(subscription.get('customer')),
        )

    def verify_event_signature(
            self, raw_payload: bytes, signature_header: str, secret: str) -> GatewayEvent:
        if not raw_payload:
            raise SignatureError("Missing webhook payload")
        if not signature_header:
            raise SignatureError("Missing Stripe-Signature header")
        if not secret:
            raise SignatureError("Webhook signing secret is not configured")

        try:
            event = stripe.Webhook.construct_event(raw_payload, signature_header, secret)
        except ValueError as exc:
            raise SignatureError("Invalid webhook payload") from exc
        except stripe.SignatureVerificationError as exc:
            raise SignatureError(f"Invalid webhook signature: {exc}") from exc

        try:
            event = as_dict(event)
            return GatewayEvent(
                id=event['id'],
                type=event['type'],
                data_object=as_dict(event['data']['object']),
            )
        except (KeyError, TypeError) as exc:
            raise SignatureError("Malformed webhook event") from exc

    def create_checkout_session(
        self,
        identity: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        customer_ref: Optional[str] = None,
    ) -> CheckoutSession:
        params = {
            'mode': 'subscription',
            'line_items': [{'price': price_id, 'quantity': 1}],
            # Carries our identity to the checkout.session.completed webhook
            'client_reference_id': identity,
            'success_url': success_url,
            'cancel_url': cancel_url,
            'allow_promotion_codes': True,
            'metadata': {'app': 'prompt-manager', 'app_version': __version__},
        }
        if customer_ref:
            params['customer'] = customer_ref

        try:
            session = stripe.checkout.Session.create(**params, **self._request_options())
        except stripe.StripeError as exc:
            message = getattr(exc, 'user_message', None) or str(exc)
            logger.error(f"Stripe error creating checkout session: {message}", identity=identity)
            raise GatewayError(f"Stripe error: {message}") from exc

        session = as_dict(session)
        logger.info(f"Created checkout session {session['id']}", identity=identity)
        return CheckoutSession(id=session['id'], url=session.get('url'))
