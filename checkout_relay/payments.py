from typing import List

import stripe
import structlog
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from .errors import InvalidSignature, ProviderError
from .models import LineItem, PaymentEvent
from .settings import CHECKOUT_BASE_URL

logger = structlog.get_logger(__name__)

# no automatic retries anywhere; a failed call surfaces straight to the caller
stripe.max_network_retries = 0


def redirect_urls(base_url: str = CHECKOUT_BASE_URL) -> dict:
    return {
        # Stripe substitutes the placeholder itself
        "success_url": f"{base_url}/success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{base_url}/cancel",
    }


async def create_checkout_session(
    api_key: str, line_items: List[LineItem], base_url: str = CHECKOUT_BASE_URL
) -> stripe.checkout.Session:
    params = {
        "payment_method_types": ["card"],
        "line_items": [li.to_stripe() for li in line_items],
        "mode": "payment",
        **redirect_urls(base_url),
    }
    try:
        session = await run_in_threadpool(stripe.checkout.Session.create, api_key=api_key, **params)
    except stripe.StripeError as e:
        message = e.user_message or str(e) or "Payment provider error"
        raise ProviderError(message, detail=f"{type(e).__name__}: code={getattr(e, 'code', None)}")

    logger.info("checkout_session_created", session_id=session.id, line_items=len(line_items))
    return session


def verify_event(payload: bytes, signature: str, secret: str) -> PaymentEvent:
    """
    Check the Stripe-Signature header over the exact request bytes, then parse them.

    Every failure collapses to the same generic InvalidSignature; the
    reason only goes to the server log.
    """
    if not signature:
        raise InvalidSignature("Webhook error", detail="missing signature header")

    try:
        stripe.WebhookSignature.verify_header(payload, signature, secret, stripe.Webhook.DEFAULT_TOLERANCE)
    except stripe.SignatureVerificationError as e:
        raise InvalidSignature("Webhook error", detail=str(e))
    except UnicodeDecodeError as e:
        # the header check decodes the body before hashing it
        raise InvalidSignature("Webhook error", detail=f"body is not utf-8: {e.reason}")

    try:
        return PaymentEvent.model_validate_json(payload)
    except ValidationError as e:
        raise InvalidSignature("Webhook error", detail=f"malformed event payload ({e.error_count()} errors)")
