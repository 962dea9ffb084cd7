import logging
import math
from decimal import Decimal, ROUND_HALF_UP

import requests
from pydantic import BaseModel

from app.utils.config import settings
from app.utils.errors import InvalidInput, UpstreamError


logger = logging.getLogger(__name__)


class PaymentIntent(BaseModel):
    client_secret: str
    amount: float
    currency: str


def validate_price(price) -> float:
    """Price must be a finite number greater than zero."""
    if isinstance(price, bool):
        raise InvalidInput("Invalid price")
    try:
        value = float(price)
    except (TypeError, ValueError):
        raise InvalidInput("Invalid price")
    if not math.isfinite(value) or value <= 0:
        raise InvalidInput("Invalid price")
    return value


def apply_discount(price: float, discount_percent: int) -> float:
    discounted = Decimal(str(price)) * (Decimal(100 - discount_percent) / Decimal(100))
    return float(discounted.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def to_minor_units(amount: float) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentProvider:
    """Client for a Stripe-compatible payment-intents endpoint."""

    def __init__(self, api_base: str, secret_key: str, currency: str, timeout: float = 10.0):
        self.api_base = api_base.rstrip("/")
        self.secret_key = secret_key
        self.currency = currency
        self.timeout = timeout

    def create_intent(self, price: float) -> PaymentIntent:
        amount = validate_price(price)
        try:
            response = requests.post(
                f"{self.api_base}/v1/payment_intents",
                data={
                    "amount": to_minor_units(amount),
                    "currency": self.currency,
                    "payment_method_types[]": "card",
                },
                auth=(self.secret_key, ""),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Payment provider unreachable: %s", exc)
            raise UpstreamError("Payment provider unreachable")

        if response.status_code >= 400:
            logger.error("Payment intent failed (%s): %s", response.status_code, response.text)
            raise UpstreamError("Payment provider rejected the request")

        try:
            client_secret = response.json()["client_secret"]
        except (ValueError, KeyError):
            logger.error("Payment provider returned no client secret: %s", response.text)
            raise UpstreamError("Payment provider returned an invalid response")
        return PaymentIntent(client_secret=client_secret, amount=amount, currency=self.currency)


def get_payment_provider() -> PaymentProvider:
    return PaymentProvider(
        api_base=settings.payment_api_base,
        secret_key=settings.payment_secret_key,
        currency=settings.payment_currency,
        timeout=settings.payment_timeout_seconds,
    )
