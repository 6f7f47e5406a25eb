"""
Test doubles and request builders shared by the test modules.
"""
import hashlib
import hmac
import json
import time
from typing import Any, Optional

import httpx

SIGNING_SECRET = "whsec_test_secret"
CHAT_WEBHOOK_URL = "https://chat.test/api/webhooks/123/abc"


class FakeSnapshot:
    def __init__(self, data: Optional[dict]):
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[dict]:
        return dict(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, db: "FakeFirestore", collection: str, doc_id: str):
        self.db = db
        self.key = (collection, doc_id)

    def get(self) -> FakeSnapshot:
        self.db.reads.append(self.key)
        return FakeSnapshot(self.db.docs.get(self.key))


class FakeCollection:
    def __init__(self, db: "FakeFirestore", name: str):
        self.db = db
        self.name = name

    def document(self, doc_id: str) -> FakeDocument:
        return FakeDocument(self.db, self.name, doc_id)


class FakeFirestore:
    """In-memory stand-in for the slice of the Firestore client the store uses."""

    def __init__(self, docs: Optional[dict] = None):
        self.docs = dict(docs or {})
        self.reads: list = []

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)


class Relay:
    """Records notification POSTs; `status` controls the chat webhook's reply."""

    def __init__(self):
        self.calls: list = []
        self.status = 204
        self.fail_with: Optional[Exception] = None
        self.client = httpx.AsyncClient(transport=httpx.MockTransport(self._handle))

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append({"url": str(request.url), "json": json.loads(request.content)})
        if self.fail_with is not None:
            raise self.fail_with
        return httpx.Response(self.status)


def sign(payload: bytes, secret: str = SIGNING_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header the way Stripe does."""
    ts = int(time.time()) if timestamp is None else timestamp
    digest = hmac.new(secret.encode("utf-8"), f"{ts}.".encode("utf-8") + payload, hashlib.sha256)
    return f"t={ts},v1={digest.hexdigest()}"


def event_body(event_type: str, **obj: Any) -> bytes:
    return json.dumps(
        {"id": "evt_test_1", "object": "event", "type": event_type, "data": {"object": obj}}
    ).encode("utf-8")
