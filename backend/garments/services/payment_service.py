# Overview: Service-layer operations for payments; bridges orders to the payment processor.

"""
Payment Bridge

WHY: The browser completes card payment directly with the processor
(Stripe). The backend only has to:
1. Mint a PaymentIntent for an amount and hand back its client secret.
   Intents minted for an order carry metadata {"order_id": "<id>"}.
2. Later, when the buyer reports the intent id, confirm with the
   processor that the intent succeeded, was minted for that order, and
   charged exactly the order total in the configured currency
   (see confirm_order_payment and order_service.mark_paid).

Amounts cross the wire in minor units (cents). Prices are converted with
Decimal and ROUND_HALF_UP; floats never touch the amount.

The gateway is pluggable: create_app() installs a StripeGateway when
STRIPE_SECRET_KEY is configured, tests install a fake.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Protocol

import stripe
from flask import current_app

from ..errors import PaymentError, ValidationError
from ..validation import coerce_decimal

logger = logging.getLogger(__name__)

# Processor upper bound for a single charge (99,999,999 minor units)
MAX_AMOUNT_MINOR = 99_999_999

INTENT_SUCCEEDED = "succeeded"
ORDER_METADATA_KEY = "order_id"


@dataclass(frozen=True)
class PaymentRecord:
    """Processor-side view of a payment intent."""
    id: str
    status: str
    amount: int
    currency: str
    metadata: dict = field(default_factory=dict)


class PaymentGateway(Protocol):
    def create_payment_intent(self, amount_minor: int, currency: str, metadata: dict | None = None) -> str:
        """Return the client secret of a new payment intent."""

    def retrieve_payment(self, intent_id: str) -> PaymentRecord | None:
        """Processor state of intent_id, or None if the processor does not know it."""


class StripeGateway:
    """PaymentGateway backed by the Stripe API."""

    def __init__(self, api_key: str):
        self.api_key = api_key

    def create_payment_intent(self, amount_minor: int, currency: str, metadata: dict | None = None) -> str:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_minor,
                currency=currency,
                payment_method_types=["card"],
                metadata=metadata or {},
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            raise PaymentError(str(e)) from e
        return intent.client_secret

    def retrieve_payment(self, intent_id: str) -> PaymentRecord | None:
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=self.api_key)
        except stripe.InvalidRequestError:
            return None
        except stripe.StripeError as e:
            raise PaymentError(str(e)) from e
        return PaymentRecord(
            id=intent.id,
            status=intent.status,
            amount=intent.amount,
            currency=intent.currency,
            metadata=dict(intent.metadata or {}),
        )


def to_minor_units(price) -> int:
    """
    Convert a decimal price to integer minor units.

    "12.345" -> 1235, 10 -> 1000.

    Raises:
        ValidationError: Non-numeric, zero, negative, or too large
    """
    if price is None or price == "":
        raise ValidationError("price is required")

    amount = coerce_decimal("price", price)
    if amount <= 0:
        raise ValidationError("price must be > 0")

    minor = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if minor < 1:
        raise ValidationError("price is below the smallest chargeable amount")
    if minor > MAX_AMOUNT_MINOR:
        raise ValidationError("price exceeds the maximum chargeable amount")
    return minor


def configured_currency() -> str:
    return current_app.config.get("PAYMENT_CURRENCY", "usd").strip().lower()


def get_payment_gateway() -> PaymentGateway | None:
    return current_app.extensions.get("payment_gateway")


def create_payment_intent(
    price,
    currency: str | None = None,
    *,
    gateway: PaymentGateway | None = None,
    metadata: dict | None = None,
) -> dict:
    """
    Mint a payment intent for price.

    Returns:
        {"clientSecret": str, "amount": int, "currency": str}

    Raises:
        ValidationError: Bad price or currency
        PaymentError: No gateway configured, or the processor failed
    """
    amount_minor = to_minor_units(price)

    currency = (currency or configured_currency()).strip().lower()
    if len(currency) != 3 or not currency.isalpha():
        raise ValidationError("currency must be a 3-letter ISO code")

    gateway = gateway or get_payment_gateway()
    if gateway is None:
        raise PaymentError("Payment processor is not configured")

    client_secret = gateway.create_payment_intent(amount_minor, currency, metadata)
    logger.info("Payment intent created for %s %s (%s)", amount_minor, currency, metadata or "no metadata")

    return {"clientSecret": client_secret, "amount": amount_minor, "currency": currency}


def confirm_order_payment(intent_id: str, order, *, gateway: PaymentGateway) -> PaymentRecord:
    """
    Check with the processor that intent_id paid for order.

    Raises:
        ValidationError: Unknown or unsucceeded intent, intent minted for
            another order, or amount/currency differing from the order total
    """
    record = gateway.retrieve_payment(intent_id)
    if record is None or record.status != INTENT_SUCCEEDED:
        raise ValidationError("Payment has not been confirmed by the processor")

    if str(record.metadata.get(ORDER_METADATA_KEY, "")) != str(order.id):
        raise ValidationError("Payment was not made for this order")

    expected = to_minor_units(order.order_price)
    if record.amount != expected or (record.currency or "").lower() != configured_currency():
        logger.warning(
            "Payment %s for order %s charged %s %s, expected %s %s",
            intent_id, order.id, record.amount, record.currency, expected, configured_currency(),
        )
        raise ValidationError("Payment amount does not match the order total")

    return record
