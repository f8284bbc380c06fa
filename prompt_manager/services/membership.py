# -*- coding: utf-8 -*-
"""
Stripe subscription status -> local membership tier.
"""
from prompt_manager.records import Membership

# Only these statuses grant paid access. Everything else, including statuses
# Stripe may add later, degrades to free.
PAID_STATUSES = frozenset({'active', 'trialing'})

# Known statuses that map to free; kept for documentation and logging.
UNPAID_STATUSES = frozenset({
    'canceled',
    'incomplete',
    'incomplete_expired',
    'past_due',
    'paused',
    'unpaid',
})


def membership_for_status(status) -> Membership:
    """
    Map a Stripe subscription status to a membership tier.

    Total over any input: unknown values, None, and non-strings map to free.
    ``canceled`` downgrades immediately; there is no "active until period
    end" grace period.
    """
    if isinstance(status, str) and status in PAID_STATUSES:
        return Membership.PRO
    return Membership.FREE


def is_known_status(status) -> bool:
    if not isinstance(status, str):
        return False
    return status in PAID_STATUSES or status in UNPAID_STATUSES
