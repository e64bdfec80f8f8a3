# Overview: Flask API routes for auth operations; issues and clears the session cookie.

# backend/garments/routes/auth.py
"""
Authentication API routes

Identity (email) is asserted by the upstream identity provider the
frontend signs in with; this API turns it into a signed, short-lived
session cookie. No passwords are handled here.

SECURITY FEATURES:
- Token carries identity only; role/status are re-read per request
- HttpOnly cookie, Secure + SameSite=None in production
- Logout overwrites the cookie with an expired one
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import ValidationError
from ..repositories import get_repositories
from ..services import token_service
from ..services.user_service import normalize_email


auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@auth_bp.post("/jwt")
def issue_jwt_route():
    """
    Issue a session cookie for a registered user.

    Request body: {"email": "a@x.com"}

    Returns:
        200: {"success": true, "role": ..., "status": ...} and Set-Cookie
        400: Missing/invalid email
        401: Email is not registered
    """
    data = request.get_json(silent=True) or {}

    try:
        email = normalize_email(data.get("email"))
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    try:
        user = get_repositories().users.get_by_email(email)
        if user is None:
            return jsonify({"success": False, "error": "User is not registered"}), 401

        token = token_service.issue_token(user.email)
    except Exception:
        current_app.logger.exception("Failed to issue session token")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    response = jsonify({"success": True, "role": user.role, "status": user.status})
    return token_service.set_token_cookie(response, token)


@auth_bp.post("/logout")
def logout_route():
    """Clear the session cookie. Always succeeds."""
    response = jsonify({"success": True, "message": "Logged out successfully."})
    return token_service.clear_token_cookie(response)


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user, freshly loaded from the store."""
    return jsonify({"user": g.current_user.to_dict()})
