import os

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "8000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

CHECKOUT_BASE_URL = os.environ.get("CHECKOUT_BASE_URL", "https://pronova.store").rstrip("/")
NOTIFY_TIMEOUT_SECONDS = float(os.environ.get("NOTIFY_TIMEOUT_SECONDS", "5.0"))

# Firestore location of the remotely managed secrets
FIREBASE_ADMIN_JSON = os.environ.get("FIREBASE_ADMIN_JSON")
CONFIG_COLLECTION = os.environ.get("CONFIG_COLLECTION", "config")
PAYMENT_CONFIG_DOC = os.environ.get("PAYMENT_CONFIG_DOC", "payment")
WEBHOOK_SECRET_DOC = os.environ.get("WEBHOOK_SECRET_DOC", "webhookSecret")
