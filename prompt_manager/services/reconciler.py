# -*- coding: utf-8 -*-
"""
Subscription reconciliation.

Keeps ``Customer.membership`` equal to the most recently observed Stripe
subscription status. State is always re-derived from a fresh fetch of the
subscription, never from the webhook payload, so duplicate and out-of-order
deliveries converge on the same row ("last write wins" at the row level).
"""
from typing import Optional

from prompt_manager.errors import ConflictError
from prompt_manager.records import CustomerPatch, CustomerRecord, Membership, utcnow
from prompt_manager.services.membership import is_known_status, membership_for_status
from prompt_manager.services.metrics import get_metrics_service
from prompt_manager.services.payment_gateway import PaymentGateway
from prompt_manager.services.structured_logging import get_logger
from prompt_manager.stores.base import CustomerStore

logger = get_logger('prompt_manager.billing')


def _record_metric(entry_point: str, result: str) -> None:
    metrics = get_metrics_service()
    if metrics:
        metrics.record_reconciliation(entry_point, result)


class SubscriptionReconciler:
    """
    Translates Stripe subscription state into local membership.

    Parameters
    ----------
    customer_store:
        Store holding the customer rows to upsert.
    gateway:
        Source of authoritative subscription state.
    """

    def __init__(self, customer_store: CustomerStore, gateway: PaymentGateway):
        self._customers = customer_store
        self._gateway = gateway

    def reconcile_status_change(
            self, subscription_ref: str, external_customer_ref: str) -> Optional[CustomerRecord]:
        """
        Re-derive membership for a subscription update or cancellation.

        Returns the updated customer, or None when no local customer holds
        ``external_customer_ref`` yet. That case is an expected race with
        checkout processing and is logged, not raised.
        """
        if not subscription_ref or not external_customer_ref:
            raise ValueError("Missing subscription or customer reference for status change")

        logger.info(
            f"Managing status change for sub {subscription_ref}, cust {external_customer_ref}")

        subscription = self._gateway.retrieve_subscription(subscription_ref)
        membership = membership_for_status(subscription.status)
        if not is_known_status(subscription.status):
            logger.warning(
                f"Unrecognized subscription status '{subscription.status}', treating as free",
                subscription_ref=subscription_ref)

        updated = self._customers.update_by_external_customer_ref(
            external_customer_ref,
            CustomerPatch(
                membership=membership,
                external_subscription_ref=subscription.id,
            ),
        )

        if updated is None:
            logger.warning(
                f"No local customer for Stripe customer {external_customer_ref}; "
                f"status change for {subscription_ref} not applied",
                subscription_ref=subscription_ref,
                external_customer_ref=external_customer_ref,
                membership=membership.value,
            )
            _record_metric('status_change', 'customer_not_found')
            return None

        logger.info(
            f"Updated customer {updated.identity} to {membership.value}",
            subscription_status=subscription.status,
            external_customer_ref=external_customer_ref,
        )
        _record_metric('status_change', membership.value)
        return updated

    def reconcile_new_checkout(
        self,
        identity: str,
        external_customer_ref: str,
        external_subscription_ref: str,
        membership: Membership,
    ) -> CustomerRecord:
        """
        Bind ``identity`` to its Stripe customer and subscription.

        Checkout completion is the only point where both the local identity
        and the Stripe ids are known, so this path is keyed by identity.
        Existing rows are updated in place (``created_at`` preserved);
        otherwise a new row is created.
        """
        if not identity or not external_customer_ref or not external_subscription_ref or not membership:
            raise ValueError("Missing required parameters for new checkout reconciliation")

        membership = Membership(membership)
        patch = CustomerPatch(
            membership=membership,
            external_customer_ref=external_customer_ref,
            external_subscription_ref=external_subscription_ref,
        )

        existing = self._customers.get_by_identity(identity)
        if existing is not None:
            logger.info(f"Updating existing customer record for user {identity}")
            record = self._customers.update_by_identity(identity, patch)
            _record_metric('new_checkout', membership.value)
            return record

        logger.info(f"Creating new customer record for user {identity}")
        try:
            record = self._customers.create(CustomerRecord(
                identity=identity,
                membership=membership,
                external_customer_ref=external_customer_ref,
                external_subscription_ref=external_subscription_ref,
                created_at=utcnow(),
            ))
        except ConflictError:
            # A concurrent delivery created the row first; converge on it.
            logger.info(f"Customer {identity} created concurrently, updating instead")
            record = self._customers.update_by_identity(identity, patch)

        _record_metric('new_checkout', membership.value)
        return record
