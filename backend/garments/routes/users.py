# Overview: Flask API routes for user registration, profile and admin user management.

# backend/garments/routes/users.py
"""
User routes.

- POST /users is public and idempotent (called on every sign-in)
- GET /users/role/<email> is public (frontend route gating)
- PATCH /users/me lets a non-suspended user edit their profile
- Everything else requires the admin role
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_role, require_active_account
from ..errors import NotFoundError
from ..repositories import get_repositories
from ..services import user_service

users_bp = Blueprint("users", __name__, url_prefix="/api/v1/users")


@users_bp.post("")
def register_user_route():
    """
    Create a user if the email is new.

    Request body: {"email", "displayName", "photoURL"}

    Returns:
        201: {"user": {...}, "insertedId": id}
        200: {"message": "user already exists", "insertedId": null}
    """
    payload = request.get_json(silent=True) or {}
    user, created = user_service.register_user(get_repositories(), payload)

    if not created:
        return jsonify({"message": "user already exists", "insertedId": None}), 200
    return jsonify({"user": user.to_dict(), "insertedId": user.id}), 201


@users_bp.get("/role/<path:email>")
def get_role_route(email: str):
    """Role and status for an email; 404 with role "unknown" when absent."""
    try:
        user = user_service.get_by_email(get_repositories(), email)
    except NotFoundError:
        return jsonify({"role": "unknown", "status": "not_found"}), 404
    return jsonify({"role": user.role, "status": user.status})


@users_bp.get("")
@require_auth
@require_role("admin")
def list_users_route():
    """
    List users.

    Query params:
    - search: substring of email or display name
    - role: buyer / manager / admin
    - status: pending / verified / suspended
    - page, per_page: pagination (omit page to get everything)
    """
    result = user_service.list_users(
        get_repositories(),
        search=request.args.get("search"),
        role=request.args.get("role"),
        status=request.args.get("status"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result)


@users_bp.patch("/me")
@require_auth
@require_active_account
def update_profile_route():
    """Update displayName / photoURL of the current user."""
    payload = request.get_json(silent=True) or {}
    user = user_service.update_profile(get_repositories(), g.current_user, payload)
    return jsonify({"user": user.to_dict()})


@users_bp.patch("/role/<user_id>")
@require_auth
@require_role("admin")
@require_active_account
def set_role_route(user_id):
    payload = request.get_json(silent=True) or {}
    user = user_service.set_role(get_repositories(), user_id, payload.get("role"), actor=g.current_user)
    return jsonify({"user": user.to_dict()})


@users_bp.patch("/suspend/<user_id>")
@require_auth
@require_role("admin")
@require_active_account
def suspend_user_route(user_id):
    """
    Suspend a user.

    Request body: {"reason": "...", "feedback": "..."}
    """
    payload = request.get_json(silent=True) or {}
    user = user_service.suspend_user(
        get_repositories(),
        user_id,
        reason=payload.get("reason"),
        feedback=payload.get("feedback"),
        actor=g.current_user,
    )
    return jsonify({"user": user.to_dict()})


@users_bp.patch("/status/<user_id>")
@require_auth
@require_role("admin")
@require_active_account
def set_status_route(user_id):
    """Verify or reinstate a user. Request body: {"status": "verified"}"""
    payload = request.get_json(silent=True) or {}
    user = user_service.set_status(get_repositories(), user_id, payload.get("status"), actor=g.current_user)
    return jsonify({"user": user.to_dict()})
