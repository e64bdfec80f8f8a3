# Overview: Service-layer operations for orders; placement, lifecycle transitions and tracking.

"""
Order Lifecycle Service

================================================================================
PURPOSE: Enforce the pending -> approved -> paid order lifecycle
================================================================================

STATE MACHINE:
    pending  -> approved | rejected | cancelled
    approved -> paid

    pending:   Placed by a buyer, stock already reserved
    approved:  Accepted by the owning manager (or an admin)
    rejected:  Declined by the owning manager (or an admin); stock released
    cancelled: Withdrawn by the buyer while still pending; stock released
    paid:      Payment confirmed for an approved order

    rejected, cancelled and paid are terminal.

RULES:
1. Placement inserts the order, its first tracking event, and decrements
   stock in ONE transaction. The decrement is a conditional UPDATE
   (quantity >= requested); if it matches no row, everything rolls back.
2. Every status transition appends exactly one tracking event.
3. Any transition not in ALLOWED_TRANSITIONS raises LifecycleError and
   leaves the order untouched (approve/reject on a non-pending order is
   an error, not a no-op).
4. paid is reachable from approved only.
5. Tracking steps added by managers never change the canonical status.

================================================================================
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, ForbiddenError, LifecycleError, NotFoundError, ValidationError
from ..models import Order, User
from ..models.catalog import PRODUCT_ACTIVE
from ..models.orders import (
    ORDER_APPROVED,
    ORDER_CANCELLED,
    ORDER_PAID,
    ORDER_PENDING,
    ORDER_REJECTED,
    VALID_ORDER_STATUSES,
)
from ..models.users import ROLE_ADMIN, ROLE_BUYER, ROLE_MANAGER
from ..repositories import Repositories, paginate
from ..time_utils import utcnow
from ..validation import coerce_int
from . import payment_service
from .products_service import get_product

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    ORDER_PENDING: {ORDER_APPROVED, ORDER_REJECTED, ORDER_CANCELLED},
    ORDER_APPROVED: {ORDER_PAID},
}

# Tracking labels recorded for lifecycle transitions
TRACK_PLACED = "Order Placed"
TRACK_APPROVED = "Order Approved"
TRACK_REJECTED = "Order Rejected"
TRACK_CANCELLED = "Order Cancelled"
TRACK_PAID = "Payment Received"

# Manager tracking steps are only meaningful once an order is accepted
TRACKABLE_STATUSES = {ORDER_APPROVED, ORDER_PAID}

MAX_TRACKING_STATUS_LENGTH = 64


def can_transition(from_status: str, to_status: str) -> bool:
    if from_status not in VALID_ORDER_STATUSES or to_status not in VALID_ORDER_STATUSES:
        return False
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def _require_transition(order: Order, to_status: str, verb: str) -> None:
    if not can_transition(order.status, to_status):
        allowed_from = sorted(s for s, targets in ALLOWED_TRANSITIONS.items() if to_status in targets)
        raise LifecycleError(
            f"Cannot {verb} order {order.id}: "
            f"current status is '{order.status}', must be '{' or '.join(allowed_from)}'"
        )


def parse_order_id(raw) -> int:
    try:
        order_id = int(str(raw).strip())
    except (TypeError, ValueError):
        raise NotFoundError("Order not found")
    if order_id <= 0:
        raise NotFoundError("Order not found")
    return order_id


def get_order(repos: Repositories, order_id) -> Order:
    order = repos.orders.get(parse_order_id(order_id))
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _get_order_for_update(repos: Repositories, order_id) -> Order:
    """Locked, freshly loaded order for a transition."""
    order = repos.orders.get_for_update(parse_order_id(order_id))
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _commit_transition(repos: Repositories, order: Order) -> None:
    """
    Commit a state change.

    A concurrent writer that got there first trips the unique
    (order_id, sequence) constraint; report it as a lifecycle conflict.
    """
    order_id = order.id
    try:
        repos.commit()
    except IntegrityError:
        repos.rollback()
        logger.warning("Concurrent update on order %s rejected", order_id)
        raise LifecycleError(f"Order {order_id} was changed by another request; reload and retry")


def _owns_product(user: User, order: Order) -> bool:
    return user.has_role(ROLE_MANAGER) and order.product is not None and order.product.added_by == user.email


def can_review(user: User, order: Order) -> bool:
    """Owning manager or admin."""
    return user.has_role(ROLE_ADMIN) or _owns_product(user, order)


def can_view(user: User, order: Order) -> bool:
    return order.buyer_email == user.email or can_review(user, order)


def _require_active_buyer(user: User) -> None:
    if not user.has_role(ROLE_BUYER):
        raise ForbiddenError("Only buyers can place orders", extra={"required_roles": [ROLE_BUYER]})
    if user.is_suspended:
        raise ForbiddenError(
            "Account suspended",
            extra={
                "suspensionReason": user.suspension_reason,
                "suspensionFeedback": user.suspension_feedback,
            },
        )


def _optional_text(payload: dict, key: str, max_len: int | None = None) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    value = str(value).strip()
    if max_len and len(value) > max_len:
        raise ValidationError(f"{key} exceeds max length {max_len}")
    return value or None


# =============================================================================
# PLACEMENT
# =============================================================================

def create_order(repos: Repositories, *, buyer: User, payload: dict) -> Order:
    """
    Place an order and reserve stock atomically.

    Request payload:
        productId (required), orderQuantity (required),
        deliveryAddress, contactNumber, notes (optional)

    Raises:
        ForbiddenError: Caller is not a buyer, or is suspended
        NotFoundError: Unknown or malformed productId
        ValidationError: Missing fields, inactive product, quantity below
            minOrderQty or above available stock
    """
    _require_active_buyer(buyer)

    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    if payload.get("productId") in (None, ""):
        raise ValidationError("productId is required")
    if payload.get("orderQuantity") in (None, ""):
        raise ValidationError("orderQuantity is required")

    product = get_product(repos, payload["productId"])
    quantity = coerce_int("orderQuantity", payload["orderQuantity"])

    if quantity <= 0:
        raise ValidationError("orderQuantity must be > 0")
    if product.status != PRODUCT_ACTIVE:
        raise ValidationError("Product is not available for ordering")
    if quantity < product.min_order_qty:
        raise ValidationError(f"Below minimum order quantity ({product.min_order_qty})")
    if quantity > product.quantity:
        raise ValidationError(f"Insufficient stock: {product.quantity} available")

    unit_price = Decimal(product.price)
    order = Order(
        buyer_email=buyer.email,
        product_id=product.id,
        product_name=product.name,
        order_quantity=quantity,
        unit_price=unit_price,
        order_price=(unit_price * quantity).quantize(Decimal("0.01")),
        status=ORDER_PENDING,
        delivery_address=_optional_text(payload, "deliveryAddress", 512),
        contact_number=_optional_text(payload, "contactNumber", 32),
        notes=_optional_text(payload, "notes"),
        created_at=utcnow(),
    )

    try:
        # The pre-check above can race with another order; this cannot.
        if not repos.products.reserve_stock(product.id, quantity):
            raise ValidationError("Insufficient stock")

        repos.orders.add(order)
        repos.orders.append_event(order, status=TRACK_PLACED, actor=buyer.email)
        repos.commit()
    except Exception:
        repos.rollback()
        raise

    logger.info("Order %s placed by %s for product %s x%s", order.id, buyer.email, product.id, quantity)
    return order


# =============================================================================
# TRANSITIONS
# =============================================================================

def review_order(repos: Repositories, order_id, *, action: str, actor: User, note: str | None = None) -> Order:
    """
    Approve or reject a pending order.

    Args:
        action: "approve" or "reject"
        actor: Owning manager or admin

    Raises:
        ForbiddenError: Actor does not own the product and is not admin
        LifecycleError: Order is not pending
    """
    if action not in ("approve", "reject"):
        raise NotFoundError(f"Unknown order action: {action}")

    order = _get_order_for_update(repos, order_id)
    if not can_review(actor, order):
        raise ForbiddenError("Only the product owner or an admin can review this order")

    if action == "approve":
        _require_transition(order, ORDER_APPROVED, "approve")
        order.status = ORDER_APPROVED
        order.approved_at = utcnow()
        repos.orders.append_event(order, status=TRACK_APPROVED, actor=actor.email, note=note)
    else:
        _require_transition(order, ORDER_REJECTED, "reject")
        order.status = ORDER_REJECTED
        repos.products.release_stock(order.product_id, order.order_quantity)
        repos.orders.append_event(order, status=TRACK_REJECTED, actor=actor.email, note=note)

    _commit_transition(repos, order)
    logger.info("Order %s %sd by %s", order.id, action, actor.email)
    return order


def cancel_order(repos: Repositories, order_id, *, actor: User) -> Order:
    """
    Buyer withdraws a pending order; reserved stock is released.

    Raises:
        ForbiddenError: Actor is not the buyer who placed the order
        LifecycleError: Order is not pending
    """
    order = _get_order_for_update(repos, order_id)
    if order.buyer_email != actor.email:
        raise ForbiddenError("Only the buyer who placed this order can cancel it")

    _require_transition(order, ORDER_CANCELLED, "cancel")
    order.status = ORDER_CANCELLED
    repos.products.release_stock(order.product_id, order.order_quantity)
    repos.orders.append_event(order, status=TRACK_CANCELLED, actor=actor.email)

    _commit_transition(repos, order)
    logger.info("Order %s cancelled by %s", order.id, actor.email)
    return order


def add_tracking_step(repos: Repositories, order_id, *, actor: User, payload: dict) -> Order:
    """
    Append a free-form tracking step (e.g. "Cutting Completed", "Shipped").

    The canonical order status is left as is.

    Request payload:
        status (required), location, note (optional)
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    order = _get_order_for_update(repos, order_id)
    if not can_review(actor, order):
        raise ForbiddenError("Only the product owner or an admin can update tracking")

    if order.status not in TRACKABLE_STATUSES:
        raise LifecycleError(
            f"Cannot add tracking to order {order.id}: current status is '{order.status}', "
            f"must be one of: {', '.join(sorted(TRACKABLE_STATUSES))}"
        )

    label = payload.get("status")
    if not isinstance(label, str) or not label.strip():
        raise ValidationError("Tracking status is required")
    label = label.strip()
    if len(label) > MAX_TRACKING_STATUS_LENGTH:
        raise ValidationError(f"status exceeds max length {MAX_TRACKING_STATUS_LENGTH}")

    repos.orders.append_event(
        order,
        status=label,
        actor=actor.email,
        location=_optional_text(payload, "location", 255),
        note=_optional_text(payload, "note"),
    )
    _commit_transition(repos, order)
    return order


def mark_paid(repos: Repositories, order_id, *, actor: User, transaction_id, gateway=None) -> Order:
    """
    Record a confirmed payment (approved -> paid).

    With a payment gateway, the processor must report transaction_id as a
    succeeded intent minted for this order, for the order total. Without
    one, only an admin may record payment (manual reconciliation).

    Raises:
        ForbiddenError: Actor is neither the buyer nor an admin, or no
            gateway is configured and the actor is not an admin
        LifecycleError: Order is not approved
        ValidationError: Missing transaction id, or processor does not
            confirm the charge for this order
        ConflictError: Transaction id already recorded on another order
    """
    order = _get_order_for_update(repos, order_id)
    if order.buyer_email != actor.email and not actor.has_role(ROLE_ADMIN):
        raise ForbiddenError("Only the buyer or an admin can record payment for this order")
    if gateway is None and not actor.has_role(ROLE_ADMIN):
        raise ForbiddenError("Payments cannot be confirmed right now; an admin must record this payment")

    _require_transition(order, ORDER_PAID, "mark paid")

    if not isinstance(transaction_id, str) or not transaction_id.strip():
        raise ValidationError("transactionId is required")
    transaction_id = transaction_id.strip()

    other = repos.orders.get_by_transaction(transaction_id)
    if other is not None and other.id != order.id:
        raise ConflictError("transactionId already recorded on another order")

    if gateway is not None:
        payment_service.confirm_order_payment(transaction_id, order, gateway=gateway)

    order.status = ORDER_PAID
    order.transaction_id = transaction_id
    order.paid_at = utcnow()
    repos.orders.append_event(order, status=TRACK_PAID, actor=actor.email, note=transaction_id)

    _commit_transition(repos, order)
    logger.info("Order %s paid (transaction %s)", order.id, transaction_id)
    return order


# =============================================================================
# QUERIES
# =============================================================================

def get_order_for(repos: Repositories, order_id, *, viewer: User) -> Order:
    order = get_order(repos, order_id)
    if not can_view(viewer, order):
        raise ForbiddenError("You do not have access to this order")
    return order


def _serialize(order: Order) -> dict:
    return order.to_dict()


def my_orders(repos: Repositories, *, buyer: User, page=None, per_page=None) -> dict:
    return paginate(repos.orders.for_buyer(buyer.email), page, per_page, _serialize)


def orders_for_reviewer(repos: Repositories, *, reviewer: User, status: str, page=None, per_page=None) -> dict:
    """
    Orders in status against the reviewer's products.

    Managers see orders for products they added; admins see all.
    """
    if reviewer.has_role(ROLE_ADMIN):
        query = repos.orders.all(status=status)
    else:
        query = repos.orders.for_product_owner(reviewer.email, status=status)
    return paginate(query, page, per_page, _serialize)


def all_orders(repos: Repositories, *, status: str | None = None, page=None, per_page=None) -> dict:
    if status is not None and status not in VALID_ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(VALID_ORDER_STATUSES)}")
    return paginate(repos.orders.all(status=status), page, per_page, _serialize)
