"""
Pytest configuration and fixtures.
"""
import asyncio
from types import SimpleNamespace

import pytest
import stripe
from fastapi.testclient import TestClient

from checkout_relay.main import create_app
from checkout_relay.store import ConfigStore

from .helpers import CHAT_WEBHOOK_URL, SIGNING_SECRET, FakeFirestore, Relay


@pytest.fixture
def firestore_db() -> FakeFirestore:
    return FakeFirestore(
        {
            ("config", "payment"): {"stripeKey": "sk_test_123", "discordWebhook": CHAT_WEBHOOK_URL},
            ("config", "webhookSecret"): {"stripeWebhookSecret": SIGNING_SECRET},
        }
    )


@pytest.fixture
def relay():
    r = Relay()
    yield r
    # private loop; leaves the current event loop alone
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(r.client.aclose())
    finally:
        loop.close()


@pytest.fixture
def stripe_sessions(monkeypatch: pytest.MonkeyPatch) -> list:
    """Replace Checkout Session creation; each call's kwargs are recorded."""
    calls: list = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.test/c/pay/cs_test_1")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    return calls


@pytest.fixture
def client(firestore_db: FakeFirestore, relay: Relay):
    app = create_app(
        store=ConfigStore(firestore_db),
        http_client=relay.client,
        checkout_base_url="https://shop.test/",
    )
    with TestClient(app) as c:
        yield c
