# Overview: Request decorators wiring authorization guards into API routes.

from functools import wraps
from flask import jsonify, g

from .guards import (
    GuardContext,
    evaluate_guards,
    require_authenticated as _authenticated,
    require_role as _role,
    require_active_account as _active,
)
from .repositories import get_repositories
from .services import token_service
from .services.token_service import TokenError


def _deny(result):
    body = {"error": result.message}
    body.update(result.extra)
    return jsonify(body), result.status


def _context() -> GuardContext:
    return GuardContext(
        claims=getattr(g, "claims", None),
        user=getattr(g, "current_user", None),
    )


def require_auth(f):
    """
    Require a valid session token and a stored user for it.

    Sets the following Flask g attributes:
    - g.claims: The verified TokenClaims
    - g.current_user: The User re-read from the store for this request

    SECURITY: Returns 401 if:
    - No token cookie and no Authorization header
    - Invalid, tampered or expired token
    - Token email no longer matches a user
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            claims = token_service.verify_token(token_service.token_from_request())
        except TokenError as e:
            return jsonify({"error": str(e)}), 401

        g.claims = claims
        g.current_user = get_repositories().users.get_by_email(claims.email)

        result = evaluate_guards(_context(), [_authenticated])
        if not result.ok:
            return _deny(result)

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require the current user to hold one of roles (case-insensitive).

    Must be stacked below @require_auth.
    """
    guard = _role(*roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            result = evaluate_guards(_context(), [_authenticated, guard])
            if not result.ok:
                return _deny(result)
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_active_account(f):
    """Reject suspended accounts with their stored suspension reason and feedback."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        result = evaluate_guards(_context(), [_authenticated, _active])
        if not result.ok:
            return _deny(result)
        return f(*args, **kwargs)

    return decorated_function
