# -*- coding: utf-8 -*-
"""
Prompt Manager API.

Per-user prompt storage with subscription-gated membership tiers billed
through Stripe.
"""

__version__ = "0.1.0"
