# -*- coding: utf-8 -*-
"""
Tests for SubscriptionReconciler.

Membership is always re-derived from a fresh gateway fetch, so repeated or
reordered deliveries must converge on the same customer row.
"""
import logging
from dataclasses import replace

import pytest

from prompt_manager.errors import ConflictError, GatewayError
from prompt_manager.records import CustomerRecord, Membership
from prompt_manager.services.reconciler import SubscriptionReconciler
from prompt_manager.stores.memory import InMemoryCustomerStore

from conftest import FakeGateway


@pytest.fixture
def reconciler(customer_store, fake_gateway):
    return SubscriptionReconciler(customer_store, fake_gateway)


def _comparable(record):
    return replace(record, updated_at=None)


class TestReconcileStatusChange:

    def test_cancellation_downgrades_to_free(self, reconciler, customer_store, fake_gateway):
        customer_store.create(CustomerRecord(
            identity="u1", membership=Membership.PRO,
            external_customer_ref="cus_1", external_subscription_ref="sub_1"))
        fake_gateway.set_subscription("sub_1", "canceled", customer_ref="cus_1")

        updated = reconciler.reconcile_status_change("sub_1", "cus_1")

        assert updated.identity == "u1"
        assert updated.membership is Membership.FREE
        assert customer_store.get_by_identity("u1").membership is Membership.FREE
        assert fake_gateway.retrieve_calls == ["sub_1"]

    def test_active_upgrades_to_pro(self, reconciler, customer_store, fake_gateway):
        customer_store.create(CustomerRecord(identity="u1", external_customer_ref="cus_1"))
        fake_gateway.set_subscription("sub_2", "active", customer_ref="cus_1")

        updated = reconciler.reconcile_status_change("sub_2", "cus_1")

        assert updated.membership is Membership.PRO
        assert updated.external_subscription_ref == "sub_2"

    def test_fetched_status_wins_over_event_order(self, reconciler, customer_store, fake_gateway):
        customer_store.create(CustomerRecord(
            identity="u1", membership=Membership.PRO, external_customer_ref="cus_1"))

        # A stale "active" delivery processed after cancellation still
        # reflects the current gateway state.
        fake_gateway.set_subscription("sub_1", "canceled", customer_ref="cus_1")
        reconciler.reconcile_status_change("sub_1", "cus_1")
        reconciler.reconcile_status_change("sub_1", "cus_1")

        assert customer_store.get_by_identity("u1").membership is Membership.FREE

    def test_repeated_delivery_is_idempotent(self, reconciler, customer_store, fake_gateway):
        customer_store.create(CustomerRecord(identity="u1", external_customer_ref="cus_1"))
        fake_gateway.set_subscription("sub_1", "past_due", customer_ref="cus_1")

        first = reconciler.reconcile_status_change("sub_1", "cus_1")
        second = reconciler.reconcile_status_change("sub_1", "cus_1")

        assert _comparable(first) == _comparable(second)
        assert second.membership is Membership.FREE

    def test_unknown_customer_is_logged_not_raised(
            self, reconciler, customer_store, fake_gateway, caplog):
        fake_gateway.set_subscription("sub_1", "active", customer_ref="cus_missing")

        with caplog.at_level(logging.WARNING, logger="prompt_manager.billing"):
            result = reconciler.reconcile_status_change("sub_1", "cus_missing")

        assert result is None
        assert customer_store.all() == []
        assert customer_store.writes == 0
        assert any("cus_missing" in r.getMessage() for r in caplog.records)

    def test_unrecognized_status_treated_as_free(self, reconciler, customer_store, fake_gateway):
        customer_store.create(CustomerRecord(
            identity="u1", membership=Membership.PRO, external_customer_ref="cus_1"))
        fake_gateway.set_subscription("sub_1", "some_future_status", customer_ref="cus_1")

        updated = reconciler.reconcile_status_change("sub_1", "cus_1")

        assert updated.membership is Membership.FREE

    @pytest.mark.parametrize("subscription_ref,customer_ref", [
        (None, "cus_1"),
        ("sub_1", None),
        ("", ""),
    ])
    def test_missing_references_raise(self, reconciler, fake_gateway, subscription_ref, customer_ref):
        with pytest.raises(ValueError):
            reconciler.reconcile_status_change(subscription_ref, customer_ref)
        assert fake_gateway.retrieve_calls == []

    def test_gateway_failure_leaves_customer_untouched(
            self, reconciler, customer_store, fake_gateway):
        before = customer_store.create(CustomerRecord(
            identity="u1", membership=Membership.PRO, external_customer_ref="cus_1"))
        fake_gateway.retrieve_error = GatewayError("Stripe unavailable")

        with pytest.raises(GatewayError):
            reconciler.reconcile_status_change("sub_1", "cus_1")

        assert customer_store.get_by_identity("u1") == before


class TestReconcileNewCheckout:

    def test_creates_customer_when_absent(self, reconciler, customer_store):
        record = reconciler.reconcile_new_checkout("u1", "cus_1", "sub_1", Membership.PRO)

        assert record.identity == "u1"
        assert record.membership is Membership.PRO
        assert record.external_customer_ref == "cus_1"
        assert record.external_subscription_ref == "sub_1"
        assert customer_store.get_by_identity("u1") == record

    def test_updates_existing_customer_preserving_created_at(self, reconciler, customer_store):
        original = customer_store.create(CustomerRecord(identity="u1"))

        record = reconciler.reconcile_new_checkout("u1", "cus_1", "sub_1", Membership.PRO)

        assert record.created_at == original.created_at
        assert record.membership is Membership.PRO
        assert record.external_customer_ref == "cus_1"
        assert len(customer_store.all()) == 1

    def test_repeated_checkout_is_idempotent(self, reconciler):
        first = reconciler.reconcile_new_checkout("u1", "cus_1", "sub_1", Membership.PRO)
        second = reconciler.reconcile_new_checkout("u1", "cus_1", "sub_1", Membership.PRO)

        assert _comparable(first) == _comparable(second)

    def test_accepts_membership_value_string(self, reconciler):
        record = reconciler.reconcile_new_checkout("u1", "cus_1", "sub_1", "free")
        assert record.membership is Membership.FREE

    @pytest.mark.parametrize("args", [
        (None, "cus_1", "sub_1", Membership.PRO),
        ("u1", None, "sub_1", Membership.PRO),
        ("u1", "cus_1", None, Membership.PRO),
        ("u1", "cus_1", "sub_1", None),
    ])
    def test_missing_arguments_raise(self, reconciler, customer_store, args):
        with pytest.raises(ValueError):
            reconciler.reconcile_new_checkout(*args)
        assert customer_store.all() == []

    def test_concurrent_create_falls_back_to_update(self):
        class RacingStore(InMemoryCustomerStore):
            """Pretends another worker inserted the row between get and create."""

            def create(self, customer):
                super().create(CustomerRecord(identity=customer.identity))
                raise ConflictError(f"Customer {customer.identity} already exists")

        store = RacingStore()
        reconciler = SubscriptionReconciler(store, FakeGateway())

        record = reconciler.reconcile_new_checkout("u1", "cus_1", "sub_1", Membership.PRO)

        assert record.membership is Membership.PRO
        assert store.get_by_identity("u1").external_customer_ref == "cus_1"
