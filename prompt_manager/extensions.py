# -*- coding: utf-8 -*-
"""
Process-wide collaborators, assembled once by ``create_app``.

Routes fetch them with ``get_services()`` instead of constructing clients at
module import time, so tests can hand fakes to ``create_app``.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING

from flask import current_app

if TYPE_CHECKING:
    from prompt_manager.services.identity import TokenVerifier
    from prompt_manager.services.payment_gateway import PaymentGateway
    from prompt_manager.services.reconciler import SubscriptionReconciler
    from prompt_manager.services.webhook_processor import WebhookProcessor
    from prompt_manager.stores.base import CustomerStore, PromptStore

EXTENSION_KEY = 'prompt_manager'


@dataclass
class Services:
    customer_store: "CustomerStore"
    prompt_store: "PromptStore"
    gateway: "PaymentGateway"
    reconciler: "SubscriptionReconciler"
    webhook_processor: "WebhookProcessor"
    token_verifier: "TokenVerifier"


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
