# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/garments/routes/products.py
"""
Product management routes.

SECURITY:
- Listing and detail are public
- Create requires manager or admin role and a non-suspended account
- Update and delete additionally require ownership (owner manager or admin),
  enforced in products_service
"""
from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_role, require_active_account
from ..repositories import get_repositories
from ..services import products_service

products_bp = Blueprint("products", __name__, url_prefix="/api/v1/products")


@products_bp.get("")
def list_products_route():
    """
    List products.

    Query params:
    - status: active / inactive
    - addedBy: owner email
    - search: substring of product name (case-insensitive)
    - category: exact category
    - limit: int - cap on results (ignored when paginating)
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    result = products_service.list_products(
        get_repositories(),
        status=request.args.get("status"),
        added_by=request.args.get("addedBy"),
        search=request.args.get("search"),
        category=request.args.get("category"),
        limit=request.args.get("limit", type=int),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result)


@products_bp.get("/mine")
@require_auth
@require_role("manager", "admin")
def list_my_products_route():
    """Products added by the current manager."""
    result = products_service.list_products(
        get_repositories(),
        added_by=g.current_user.email,
        search=request.args.get("search"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result)


@products_bp.get("/<product_id>")
def get_product_route(product_id):
    """Product detail; 404 for unknown or malformed ids."""
    product = products_service.get_product(get_repositories(), product_id)
    return jsonify(product.to_dict())


@products_bp.post("")
@require_auth
@require_role("manager", "admin")
@require_active_account
def create_product_route():
    """
    Create a new product owned by the caller.

    Required: name, price, quantity
    Optional: minOrderQty, category, description, image, status
    """
    payload = request.get_json(silent=True) or {}
    product = products_service.create_product(get_repositories(), payload=payload, owner=g.current_user)
    return jsonify(product.to_dict()), 201


@products_bp.route("/<product_id>", methods=["PUT", "PATCH"])
@require_auth
@require_role("manager", "admin")
@require_active_account
def update_product_route(product_id):
    """Update a product (owner manager or admin)."""
    payload = request.get_json(silent=True) or {}
    product = products_service.update_product(
        get_repositories(), product_id, payload=payload, actor=g.current_user
    )
    return jsonify(product.to_dict())


@products_bp.delete("/<product_id>")
@require_auth
@require_role("manager", "admin")
@require_active_account
def delete_product_route(product_id):
    """
    Delete a product (owner manager or admin).

    Products with orders are deactivated instead of removed.
    """
    result = products_service.delete_product(get_repositories(), product_id, actor=g.current_user)
    return jsonify({"ok": True, **result})
