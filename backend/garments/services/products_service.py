# backend/garments/services/products_service.py
"""
Products Service

OWNERSHIP: A product belongs to the manager who added it (added_by).
- create_product records the caller as owner
- update_product and delete_product allow the owner or an admin only
- list_products is public and filterable
"""
from __future__ import annotations

import logging

from ..errors import ForbiddenError, NotFoundError
from ..models import Product, User
from ..models.catalog import PRODUCT_ACTIVE, PRODUCT_INACTIVE
from ..models.users import ROLE_ADMIN
from ..repositories import Repositories, paginate
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_product

logger = logging.getLogger(__name__)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "price", "quantity", "minOrderQty",
        "category", "description", "image", "status",
    },
    required_on_create={"name", "price", "quantity"},
    field_map={"minOrderQty": "min_order_qty"},
)


def parse_product_id(raw) -> int:
    """Malformed identifiers are indistinguishable from missing ones (404)."""
    try:
        product_id = int(str(raw).strip())
    except (TypeError, ValueError):
        raise NotFoundError("Product not found")
    if product_id <= 0:
        raise NotFoundError("Product not found")
    return product_id


def get_product(repos: Repositories, product_id) -> Product:
    product = repos.products.get(parse_product_id(product_id))
    if product is None:
        raise NotFoundError("Product not found")
    return product


def can_manage(user: User, product: Product) -> bool:
    if user.has_role(ROLE_ADMIN):
        return True
    return product.added_by == user.email


def list_products(
    repos: Repositories,
    *,
    status: str | None = None,
    added_by: str | None = None,
    search: str | None = None,
    category: str | None = None,
    limit: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional filters.

    Args:
        status: "active" / "inactive"
        added_by: Owner email
        search: Case-insensitive substring of the name
        category: Exact category match
        limit: Cap on results when not paginating
        page / per_page: Pagination (see repositories.paginate)
    """
    query = repos.products.query(status=status, added_by=added_by, search=search, category=category)
    if page is None and limit is not None:
        query = query.limit(max(limit, 0))
    return paginate(query, page, per_page, lambda p: p.to_dict())


def create_product(repos: Repositories, *, payload: dict, owner: User) -> Product:
    """
    Create a product owned by owner.

    Raises:
        ValidationError: Missing name, price or quantity, or a rule violation
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    product = Product(added_by=owner.email, status=PRODUCT_ACTIVE, min_order_qty=1)
    for attr, value in patch.items():
        setattr(product, attr, value)

    repos.products.add(product)
    repos.commit()

    logger.info("Product %s created by %s", product.id, owner.email)
    return product


def update_product(repos: Repositories, product_id, *, payload: dict, actor: User) -> Product:
    """
    Patch a product.

    Raises:
        NotFoundError: Unknown or malformed id
        ForbiddenError: Caller is neither the owner nor an admin
    """
    product = get_product(repos, product_id)
    if not can_manage(actor, product):
        raise ForbiddenError("Only the product owner or an admin can modify this product")

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)

    for attr, value in patch.items():
        setattr(product, attr, value)
    repos.commit()

    logger.info("Product %s updated by %s: %s", product.id, actor.email, ", ".join(sorted(patch)))
    return product


def delete_product(repos: Repositories, product_id, *, actor: User) -> dict:
    """
    Delete a product.

    Products referenced by orders are deactivated instead, so order
    history keeps pointing at a real row.

    Returns:
        {"deleted": bool, "deactivated": bool}
    """
    product = get_product(repos, product_id)
    if not can_manage(actor, product):
        raise ForbiddenError("Only the product owner or an admin can delete this product")

    if repos.products.has_orders(product.id):
        product.status = PRODUCT_INACTIVE
        repos.commit()
        logger.info("Product %s deactivated by %s (has orders)", product.id, actor.email)
        return {"deleted": False, "deactivated": True}

    repos.products.delete(product)
    repos.commit()
    logger.info("Product %s deleted by %s", product_id, actor.email)
    return {"deleted": True, "deactivated": False}
