"""
Bistro API — Payment Authorization Client

Wraps the external processor's payment-intent endpoint. Given an amount it
returns the client secret the browser uses to confirm the charge. Nothing
is written locally, so every call is safe to retry.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from numbers import Real
from typing import Any

import httpx

from bistro.core.config import get_settings
from bistro.core.errors import InvalidRequest, UpstreamFailure

settings = get_settings()
logger = logging.getLogger(__name__)

# Largest charge the processor accepts (99,999,999 minor units)
MAX_AMOUNT = Decimal("999999.99")


def to_minor_units(amount: Any) -> int:
    """Validate a positive monetary amount and convert it to cents."""
    if isinstance(amount, bool) or not isinstance(amount, Real):
        raise InvalidRequest("Invalid totalPrice: must be a number.")
    try:
        value = Decimal(str(amount)) if isinstance(amount, float) else Decimal(amount)
    except (TypeError, ValueError, ArithmeticError):
        raise InvalidRequest("Invalid totalPrice: must be a number.")
    if not value.is_finite() or value <= 0:
        raise InvalidRequest("Invalid totalPrice: must be greater than zero.")
    if value > MAX_AMOUNT:
        raise InvalidRequest(f"Invalid totalPrice: must not exceed {MAX_AMOUNT}.")

    cents = (value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    if cents <= 0:
        raise InvalidRequest("Invalid totalPrice: rounds to zero.")
    return int(cents)


class PaymentAuthorizationClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        currency: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = settings.STRIPE_SECRET_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.STRIPE_API_BASE).rstrip("/")
        self.currency = currency or settings.PAYMENT_CURRENCY
        self.timeout = timeout or settings.PAYMENT_TIMEOUT_SECONDS
        self._transport = transport

    async def create_intent(self, amount: Any) -> str:
        cents = to_minor_units(amount)

        if not self.api_key:
            logger.error("Payment processor API key is not configured")
            raise UpstreamFailure("Payment processor is not configured.")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}/v1/payment_intents",
                    data={"amount": str(cents), "currency": self.currency},
                    auth=(self.api_key, ""),
                )
        except httpx.TimeoutException:
            logger.warning("Payment processor timed out creating intent for %d cents", cents)
            raise UpstreamFailure("Payment processor did not respond in time. Please retry.")
        except httpx.RequestError as exc:
            logger.warning("Payment processor unreachable: %s", exc)
            raise UpstreamFailure("Payment processor unreachable. Please retry.")

        if not response.is_success:
            logger.error(
                "Payment processor rejected intent (%d): %s",
                response.status_code, response.text[:500],
            )
            raise UpstreamFailure("Payment processor rejected the request.")

        try:
            client_secret = response.json().get("client_secret")
        except ValueError:
            client_secret = None
        if not client_secret:
            logger.error("Payment processor response carried no client_secret")
            raise UpstreamFailure("Payment processor returned an unusable response.")
        return client_secret
