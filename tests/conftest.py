import hashlib
import hmac
import json
import os
import time

import jwt
import pytest

from prompt_manager.database import db
from prompt_manager.errors import GatewayError, SignatureError
from prompt_manager.services.payment_gateway import (
    CheckoutSession,
    GatewayEvent,
    PaymentGateway,
    Subscription,
)
from prompt_manager.stores.memory import InMemoryCustomerStore, InMemoryPromptStore

# Keep the environment from leaking real credentials into tests
os.environ["APP_ENV"] = "test"
os.environ.pop("DATABASE_URL", None)

STRIPE_SECRET_KEY = "sk_test_dummy_key_for_testing"
WEBHOOK_SECRET = "whsec_test_signing_secret"
AUTH_SECRET = "test-auth-secret-that-is-at-least-32-bytes-long"

TEST_CONFIG = {
    "TESTING": True,
    "APP_ENV": "test",
    "STRIPE_SECRET_KEY": STRIPE_SECRET_KEY,
    "STRIPE_WEBHOOK_SECRET": WEBHOOK_SECRET,
    "STRIPE_PRICE_ID": "price_test_pro_monthly",
    "APP_BASE_URL": "https://prompts.example.com",
    "AUTH_JWT_SECRET": AUTH_SECRET,
    "PROMPT_MANAGER_LOG_JSON": False,
}


class FakeGateway(PaymentGateway):
    """In-process stand-in for Stripe.

    Signatures are valid when they equal ``valid:<secret>``; subscriptions
    are whatever the test registered with ``set_subscription``.
    """

    def __init__(self):
        self.subscriptions = {}
        self.retrieve_calls = []
        self.checkout_calls = []
        self.retrieve_error = None

    def set_subscription(self, subscription_ref, status, customer_ref=None):
        self.subscriptions[subscription_ref] = Subscription(
            id=subscription_ref, status=status, customer_ref=customer_ref)

    def retrieve_subscription(self, subscription_ref):
        self.retrieve_calls.append(subscription_ref)
        if self.retrieve_error is not None:
            raise self.retrieve_error
        if subscription_ref not in self.subscriptions:
            raise GatewayError(f"Failed to fetch Stripe subscription {subscription_ref}")
        return self.subscriptions[subscription_ref]

    def verify_event_signature(self, raw_payload, signature_header, secret):
        if not raw_payload or signature_header != f"valid:{secret}":
            raise SignatureError("Invalid webhook signature")
        data = json.loads(raw_payload)
        return GatewayEvent(id=data["id"], type=data["type"], data_object=data["data"]["object"])

    def create_checkout_session(self, identity, price_id, success_url, cancel_url, customer_ref=None):
        self.checkout_calls.append({
            "identity": identity,
            "price_id": price_id,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "customer_ref": customer_ref,
        })
        return CheckoutSession(id="cs_test_123", url="https://checkout.stripe.com/c/pay/cs_test_123")


def make_event(event_type, obj, event_id="evt_test_1"):
    """Build a Stripe event envelope around ``obj``."""
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "api_version": "2024-06-20",
        "created": int(time.time()),
        "livemode": False,
        "data": {"object": obj},
    }


def stripe_signature(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    """Compute a Stripe-Signature header (t=...,v1=HMAC-SHA256) for ``payload``."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed_payload = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def make_token(identity, secret=AUTH_SECRET, expires_in=3600, **claims):
    now = int(time.time())
    payload = {"sub": identity, "iat": now, "exp": now + expires_in}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(identity):
    return {"Authorization": f"Bearer {make_token(identity)}"}


@pytest.fixture
def app(tmp_path):
    """Create and configure a new app instance (SQLite file) for each test."""
    from prompt_manager.factory import create_app

    app = create_app({
        **TEST_CONFIG,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'prompt_manager.db'}",
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def customer_store():
    return InMemoryCustomerStore()


@pytest.fixture
def prompt_store():
    return InMemoryPromptStore()


@pytest.fixture
def fake_app(tmp_path, fake_gateway, customer_store, prompt_store):
    """App wired to in-memory stores and the fake gateway."""
    from prompt_manager.factory import create_app

    app = create_app(
        {**TEST_CONFIG, "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'unused.db'}"},
        customer_store=customer_store,
        prompt_store=prompt_store,
        gateway=fake_gateway,
    )
    with app.app_context():
        yield app


@pytest.fixture
def fake_client(fake_app):
    return fake_app.test_client()
