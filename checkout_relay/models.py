from decimal import ROUND_HALF_UP, Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import EmptyCart, InvalidItem

CURRENCY = "usd"
CHECKOUT_COMPLETED = "checkout.session.completed"


class CartItem(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(gt=0, allow_inf_nan=False)
    quantity: int = Field(default=1, gt=0)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v


class LineItem(BaseModel):
    currency: str = CURRENCY
    product_name: str
    unit_amount_minor: int = Field(gt=0)
    quantity: int = Field(gt=0)

    def to_stripe(self) -> dict:
        return {
            "price_data": {
                "currency": self.currency,
                "product_data": {"name": self.product_name},
                "unit_amount": self.unit_amount_minor,
            },
            "quantity": self.quantity,
        }


class CheckoutResponse(BaseModel):
    url: str


class WebhookAck(BaseModel):
    received: bool = True


class PaymentConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_api_key: str = Field(min_length=1, repr=False)
    notification_webhook_url: str = Field(min_length=1)


class SessionObject(BaseModel):
    model_config = ConfigDict(extra="allow")

    amount_total: Optional[int] = Field(default=None, ge=0)


class EventData(BaseModel):
    object: SessionObject = Field(default_factory=SessionObject)


class PaymentEvent(BaseModel):
    id: Optional[str] = None
    type: str
    data: EventData = Field(default_factory=EventData)

    @property
    def amount_total_minor(self) -> int:
        return self.data.object.amount_total or 0


def to_minor_units(price: float) -> int:
    """
    Convert a major-unit price to an integer minor-unit amount.

    Rounds half-up on the decimal representation of the price, so
    19.99 -> 1999 even though 19.99 * 100 == 1998.9999999999998.
    """
    cents = Decimal(str(price)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(amount_minor: int) -> str:
    return f"{Decimal(amount_minor) / Decimal(100):.2f}"


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ())) or "item"
    return f"{field}: {err['msg']}"


def parse_cart(payload: Any) -> List[LineItem]:
    """
    Validate a checkout payload and map it to line items.

    Raises EmptyCart when cartItems is absent, not a list or empty, and
    InvalidItem for the first item that fails validation.
    """
    items = payload.get("cartItems") if isinstance(payload, dict) else None
    if not isinstance(items, list) or not items:
        raise EmptyCart("Cart empty or invalid")

    line_items: List[LineItem] = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise InvalidItem(f"Invalid cart item at index {index}: item must be an object")

        # a null quantity means the default of one
        fields = {k: v for k, v in raw.items() if not (k == "quantity" and v is None)}
        try:
            item = CartItem.model_validate(fields)
        except ValidationError as e:
            raise InvalidItem(f"Invalid cart item at index {index}: {_first_error(e)}")

        unit_amount = to_minor_units(item.price)
        if unit_amount <= 0:
            raise InvalidItem(
                f"Invalid cart item at index {index}: price rounds to zero minor units"
            )

        line_items.append(
            LineItem(product_name=item.name, unit_amount_minor=unit_amount, quantity=item.quantity)
        )
    return line_items
