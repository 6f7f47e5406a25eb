import json
from typing import Optional

import firebase_admin
import structlog
from fastapi.concurrency import run_in_threadpool
from firebase_admin import credentials, firestore

from .errors import ConfigMissing, SecretMissing
from .models import PaymentConfig
from .settings import (
    CONFIG_COLLECTION,
    FIREBASE_ADMIN_JSON,
    PAYMENT_CONFIG_DOC,
    WEBHOOK_SECRET_DOC,
)

logger = structlog.get_logger(__name__)


def get_firestore():
    """Firestore client for the default firebase app, initialising it once per process."""
    try:
        app = firebase_admin.get_app()
    except ValueError:
        if FIREBASE_ADMIN_JSON:
            cred = credentials.Certificate(json.loads(FIREBASE_ADMIN_JSON))
        else:
            cred = credentials.ApplicationDefault()
        app = firebase_admin.initialize_app(cred)
    return firestore.client(app)


class ConfigStore:
    """
    Read-only view over the remotely managed configuration documents.

    The payment config is read once and cached; the webhook signing
    secret is read on every call so it can be rotated without a restart.
    """

    def __init__(self, db, collection: str = CONFIG_COLLECTION):
        self.db = db
        self.collection = collection
        self._payment_config: Optional[PaymentConfig] = None

    def _read(self, doc_id: str) -> Optional[dict]:
        snap = self.db.collection(self.collection).document(doc_id).get()
        if not snap.exists:
            return None
        return snap.to_dict() or {}

    async def load_payment_config(self) -> PaymentConfig:
        if self._payment_config is not None:
            return self._payment_config

        data = await run_in_threadpool(self._read, PAYMENT_CONFIG_DOC)
        if data is None:
            raise ConfigMissing("Payment config missing", detail=f"{self.collection}/{PAYMENT_CONFIG_DOC}")

        api_key = data.get("stripeKey")
        webhook_url = data.get("discordWebhook")
        if not api_key or not webhook_url:
            missing = [k for k, v in (("stripeKey", api_key), ("discordWebhook", webhook_url)) if not v]
            raise ConfigMissing("Payment config incomplete", detail=f"missing fields: {', '.join(missing)}")

        self._payment_config = PaymentConfig(
            provider_api_key=api_key,
            notification_webhook_url=webhook_url,
        )
        logger.info("payment_config_loaded", document=f"{self.collection}/{PAYMENT_CONFIG_DOC}")
        return self._payment_config

    async def fetch_signing_secret(self) -> str:
        data = await run_in_threadpool(self._read, WEBHOOK_SECRET_DOC)
        secret = (data or {}).get("stripeWebhookSecret")
        if not secret:
            raise SecretMissing("Webhook secret missing", detail=f"{self.collection}/{WEBHOOK_SECRET_DOC}")
        return secret
