from contextlib import asynccontextmanager
from typing import Optional

import httpx
import structlog
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware

from .errors import register_error_handlers
from .logging_config import setup_logging
from .models import (
    CHECKOUT_COMPLETED,
    CheckoutResponse,
    PaymentConfig,
    WebhookAck,
    format_amount,
    parse_cart,
)
from .notify import Notifier
from .payments import create_checkout_session, verify_event
from .settings import CHECKOUT_BASE_URL, HOST, PORT
from .store import ConfigStore, get_firestore

setup_logging()
logger = structlog.get_logger(__name__)

router = APIRouter()


def get_payment_config(request: Request) -> PaymentConfig:
    return request.app.state.payment_config


def get_store(request: Request) -> ConfigStore:
    return request.app.state.store


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


@router.get("/health")
def health():
    return {"ok": True}


@router.post("/create-checkout-session", response_model=CheckoutResponse)
async def create_checkout(request: Request, config: PaymentConfig = Depends(get_payment_config)):
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    line_items = parse_cart(payload)
    session = await create_checkout_session(
        config.provider_api_key, line_items, request.app.state.checkout_base_url
    )
    return {"url": session.url}


@router.post("/webhook", response_model=WebhookAck)
async def webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    store: ConfigStore = Depends(get_store),
    config: PaymentConfig = Depends(get_payment_config),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Acknowledge every event that passes signature verification.

    The relay outcome never changes the 200, otherwise Stripe would
    redeliver and the chat would get the same purchase twice.
    """
    secret = await store.fetch_signing_secret()
    payload = await request.body()
    event = verify_event(payload, stripe_signature or "", secret)

    if event.type == CHECKOUT_COMPLETED:
        message = f"New purchase! Amount: ${format_amount(event.amount_total_minor)}"
        await notifier.notify(config.notification_webhook_url, message)
    else:
        logger.debug("webhook_event_ignored", event_id=event.id, event_type=event.type)

    return {"received": True}


def create_app(
    store: Optional[ConfigStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    checkout_base_url: str = CHECKOUT_BASE_URL,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config_store = store or ConfigStore(get_firestore())
        try:
            payment_config = await config_store.load_payment_config()
        except Exception as e:
            logger.error("startup_config_load_failed", error=str(e), detail=getattr(e, "detail", None))
            raise

        client = http_client or httpx.AsyncClient()
        app.state.store = config_store
        app.state.payment_config = payment_config
        app.state.notifier = Notifier(client)
        app.state.checkout_base_url = checkout_base_url.rstrip("/")
        logger.info("application_ready")
        try:
            yield
        finally:
            if http_client is None:
                await client.aclose()

    app = FastAPI(title="Checkout Relay", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()


def run():
    uvicorn.run(app, host=HOST, port=PORT, lifespan="on", log_config=None)
