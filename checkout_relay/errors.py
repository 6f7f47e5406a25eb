from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
import structlog

logger = structlog.get_logger(__name__)


class CheckoutRelayError(Exception):
    """Base error; carries the HTTP status and the message shown to the caller."""

    status_code = 500
    plain_text = False

    def __init__(self, message: str, *, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        # server-side only, never sent to the client
        self.detail = detail


class ConfigMissing(CheckoutRelayError):
    status_code = 400


class SecretMissing(CheckoutRelayError):
    status_code = 400
    plain_text = True


class EmptyCart(CheckoutRelayError):
    status_code = 400


class InvalidItem(CheckoutRelayError):
    status_code = 400


class InvalidSignature(CheckoutRelayError):
    status_code = 400
    plain_text = True


class ProviderError(CheckoutRelayError):
    status_code = 500


class RelayError(CheckoutRelayError):
    status_code = 502


async def handle_checkout_relay_error(request: Request, exc: CheckoutRelayError):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "request_failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        error=exc.message,
        detail=exc.detail,
    )
    if exc.plain_text:
        return PlainTextResponse(exc.message, status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CheckoutRelayError, handle_checkout_relay_error)
