# -*- coding: utf-8 -*-
"""
Tests for mapping Stripe subscription statuses to membership tiers.
"""

import pytest

from prompt_manager.records import Membership
from prompt_manager.services.membership import (
    PAID_STATUSES,
    UNPAID_STATUSES,
    is_known_status,
    membership_for_status,
)


class TestMembershipForStatus:

    @pytest.mark.parametrize("status", ["active", "trialing"])
    def test_paid_statuses_grant_pro(self, status):
        assert membership_for_status(status) is Membership.PRO

    @pytest.mark.parametrize("status", [
        "canceled", "incomplete", "incomplete_expired", "past_due", "paused", "unpaid",
    ])
    def test_unpaid_statuses_are_free(self, status):
        assert membership_for_status(status) is Membership.FREE

    @pytest.mark.parametrize("status", [
        "something_new", "", "ACTIVE", " active", None, 42, object(),
    ])
    def test_unrecognized_values_degrade_to_free(self, status):
        """Unknown input never raises and never grants paid access."""
        assert membership_for_status(status) is Membership.FREE

    def test_mapping_is_total_over_known_statuses(self):
        for status in PAID_STATUSES | UNPAID_STATUSES:
            assert is_known_status(status)
            assert membership_for_status(status) in (Membership.PRO, Membership.FREE)

    def test_canceled_downgrades_immediately(self):
        assert membership_for_status("canceled") is Membership.FREE


class TestIsKnownStatus:

    @pytest.mark.parametrize("status", [
        "something_new", None, 42, ["active"], {"status": "active"}, {"active"},
    ])
    def test_unknown_or_unhashable_input_is_not_known(self, status):
        assert is_known_status(status) is False
        assert membership_for_status(status) is Membership.FREE
