# Overview: Flask API routes for payments; mints payment intents for the browser checkout.

# backend/garments/routes/payments.py
"""
Payment API Routes

The browser confirms the card payment with the processor using the
returned client secret, then reports the intent id through
PATCH /api/v1/orders/status/<id>.
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_active_account
from ..errors import ValidationError
from ..models.orders import ORDER_APPROVED
from ..repositories import get_repositories
from ..services import order_service, payment_service


payments_bp = Blueprint("payments", __name__, url_prefix="/api/v1")


@payments_bp.post("/create-payment-intent")
@require_auth
@require_active_account
def create_payment_intent_route():
    """
    Create a payment intent.

    Request body (either):
    {"price": 125.50, "currency": "usd"}
    {"orderId": 7}   -- amount taken from the approved order; only such
                        intents can later mark that order paid

    Returns:
        200: {"clientSecret": "...", "amount": 12550, "currency": "usd"}
        400: Invalid price / currency, or order not awaiting payment
        403: Order belongs to someone else
        500: Processor failure or not configured
    """
    data = request.get_json(silent=True) or {}

    if data.get("orderId") is None:
        result = payment_service.create_payment_intent(data.get("price"), data.get("currency"))
        return jsonify(result)

    order = order_service.get_order_for(get_repositories(), data["orderId"], viewer=g.current_user)
    if order.status != ORDER_APPROVED:
        raise ValidationError("Only approved orders can be paid")

    # Order intents use the configured currency; confirmation compares against it
    result = payment_service.create_payment_intent(
        order.order_price,
        metadata={payment_service.ORDER_METADATA_KEY: str(order.id)},
    )
    return jsonify(result)
