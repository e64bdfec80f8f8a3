# Overview: Flask API routes for orders; placement, review, cancellation, payment and tracking.

# backend/garments/routes/orders.py
"""
Order API Routes

LIFECYCLE (see services/order_service.py):
    pending -> approved | rejected | cancelled
    approved -> paid

SECURITY:
- Placement: buyer role, not suspended
- Approve / reject / tracking: manager or admin role, not suspended;
  managers only for their own products (checked in the service)
- Cancel: the buyer who placed the order, while pending
- Mark paid: the buyer (or an admin), from approved only
- Listing all orders: admin
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_role, require_active_account
from ..errors import ValidationError
from ..models.orders import ORDER_APPROVED, ORDER_PAID, ORDER_PENDING
from ..repositories import get_repositories
from ..services import order_service
from ..services.payment_service import get_payment_gateway


orders_bp = Blueprint("orders", __name__, url_prefix="/api/v1/orders")


def _paging() -> dict:
    return {
        "page": request.args.get("page", type=int),
        "per_page": request.args.get("per_page", type=int),
    }


# =============================================================================
# PLACEMENT
# =============================================================================

@orders_bp.post("")
@require_auth
@require_role("buyer")
@require_active_account
def create_order_route():
    """
    Place an order.

    Request body:
    {
        "productId": 12,
        "orderQuantity": 50,
        "deliveryAddress": "...",  (optional)
        "contactNumber": "...",    (optional)
        "notes": "..."             (optional)
    }

    Returns:
        201: Order with trackingHistory
        400: Quantity below minimum / above stock, missing fields
        403: Not a buyer, or suspended
        404: Product not found
    """
    payload = request.get_json(silent=True) or {}
    order = order_service.create_order(get_repositories(), buyer=g.current_user, payload=payload)
    return jsonify(order.to_dict()), 201


# =============================================================================
# QUERIES
# =============================================================================

@orders_bp.get("/my-orders")
@require_auth
def my_orders_route():
    return jsonify(order_service.my_orders(get_repositories(), buyer=g.current_user, **_paging()))


@orders_bp.get("/pending")
@require_auth
@require_role("manager", "admin")
def pending_orders_route():
    """Pending orders for the caller's products (all pending for admins)."""
    return jsonify(order_service.orders_for_reviewer(
        get_repositories(), reviewer=g.current_user, status=ORDER_PENDING, **_paging()
    ))


@orders_bp.get("/approved")
@require_auth
@require_role("manager", "admin")
def approved_orders_route():
    """Approved orders for the caller's products (all approved for admins)."""
    return jsonify(order_service.orders_for_reviewer(
        get_repositories(), reviewer=g.current_user, status=ORDER_APPROVED, **_paging()
    ))


@orders_bp.get("")
@require_auth
@require_role("admin")
def all_orders_route():
    """All orders. Query params: status, page, per_page."""
    return jsonify(order_service.all_orders(
        get_repositories(), status=request.args.get("status"), **_paging()
    ))


@orders_bp.get("/<order_id>")
@require_auth
def get_order_route(order_id):
    """Single order with tracking history (buyer, owning manager or admin)."""
    order = order_service.get_order_for(get_repositories(), order_id, viewer=g.current_user)
    return jsonify(order.to_dict())


# =============================================================================
# TRANSITIONS
# =============================================================================

@orders_bp.patch("/<any(approve, reject):action>/<order_id>")
@require_auth
@require_role("manager", "admin")
@require_active_account
def review_order_route(action, order_id):
    """Approve or reject a pending order. Optional body: {"note": "..."}"""
    payload = request.get_json(silent=True) or {}
    order = order_service.review_order(
        get_repositories(), order_id, action=action, actor=g.current_user, note=payload.get("note")
    )
    return jsonify(order.to_dict())


@orders_bp.patch("/cancel/<order_id>")
@require_auth
@require_active_account
def cancel_order_route(order_id):
    order = order_service.cancel_order(get_repositories(), order_id, actor=g.current_user)
    return jsonify(order.to_dict())


@orders_bp.patch("/status/<order_id>")
@require_auth
@require_active_account
def update_status_route(order_id):
    """
    Record payment for an approved order.

    Request body: {"status": "paid", "transactionId": "pi_..."}

    Only the paid transition is driven through this endpoint; approve,
    reject and cancel have their own.
    """
    payload = request.get_json(silent=True) or {}
    status = payload.get("status", ORDER_PAID)
    if status != ORDER_PAID:
        raise ValidationError("Only status 'paid' can be set here")

    order = order_service.mark_paid(
        get_repositories(),
        order_id,
        actor=g.current_user,
        transaction_id=payload.get("transactionId"),
        gateway=get_payment_gateway(),
    )
    return jsonify(order.to_dict())


@orders_bp.patch("/update-tracking/<order_id>")
@require_auth
@require_role("manager", "admin")
@require_active_account
def update_tracking_route(order_id):
    """
    Append a tracking step without changing the order status.

    Request body: {"status": "Sewing Started", "location": "...", "note": "..."}
    """
    payload = request.get_json(silent=True) or {}
    order = order_service.add_tracking_step(
        get_repositories(), order_id, actor=g.current_user, payload=payload
    )
    return jsonify(order.to_dict())
