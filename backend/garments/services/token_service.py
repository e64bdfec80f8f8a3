# Overview: Service-layer operations for session tokens; issues, verifies and delivers signed tokens.

"""
Session Token Service

WHY: Every protected request must prove who is calling. The token is an
HS256-signed JWT that proves identity only: it carries the email (sub)
plus iat/exp. Role and account status are deliberately NOT embedded and
are re-read from the users table on each request, so an admin demoting
or suspending someone takes effect immediately.

DELIVERY:
- Cookie "token": HttpOnly always; Secure + SameSite=None in production,
  SameSite=Strict otherwise; Max-Age = token lifetime.
- Logout replaces the cookie with an already-expired one.
- An "Authorization: Bearer <token>" header is accepted as a fallback for
  non-browser clients.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app, request

from ..errors import UnauthorizedError

ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 3600


class TokenError(UnauthorizedError):
    """Raised when a token is missing, malformed, tampered with, or expired."""


@dataclass(frozen=True)
class TokenClaims:
    email: str
    issued_at: datetime
    expires_at: datetime


def _secret(secret: str | None) -> str:
    return secret or current_app.config["ACCESS_TOKEN_SECRET"]


def _ttl(ttl_seconds: int | None) -> int:
    if ttl_seconds is not None:
        return ttl_seconds
    return int(current_app.config.get("ACCESS_TOKEN_TTL_SECONDS", DEFAULT_TTL_SECONDS))


def issue_token(email: str, *, secret: str | None = None, ttl_seconds: int | None = None) -> str:
    """
    Sign a time-limited token for email.

    Args:
        email: Identity to embed (normalized to lower case)
        secret: Signing secret (defaults to ACCESS_TOKEN_SECRET)
        ttl_seconds: Lifetime (defaults to ACCESS_TOKEN_TTL_SECONDS)
    """
    if not email or not email.strip():
        raise TokenError("Cannot issue a token without an email")

    now = datetime.now(timezone.utc)
    payload = {
        "sub": email.strip().lower(),
        "iat": now,
        "exp": now + timedelta(seconds=_ttl(ttl_seconds)),
    }
    return jwt.encode(payload, _secret(secret), algorithm=ALGORITHM)


def verify_token(token: str | None, *, secret: str | None = None) -> TokenClaims:
    """
    Verify signature and expiry.

    Raises:
        TokenError: missing, expired, tampered or otherwise invalid token
    """
    if not token:
        raise TokenError("Authentication required")

    try:
        payload = jwt.decode(
            token,
            _secret(secret),
            algorithms=[ALGORITHM],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError:
        raise TokenError("Invalid token")

    return TokenClaims(
        email=payload["sub"],
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def token_from_request() -> str | None:
    """Cookie first, then Authorization: Bearer."""
    token = request.cookies.get(current_app.config.get("TOKEN_COOKIE_NAME", "token"))
    if token:
        return token

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def _cookie_options() -> dict:
    production = current_app.config.get("APP_ENV") == "production"
    return {
        "httponly": True,
        "secure": production,
        "samesite": "None" if production else "Strict",
        "path": "/",
    }


def set_token_cookie(response, token: str):
    response.set_cookie(
        current_app.config.get("TOKEN_COOKIE_NAME", "token"),
        token,
        max_age=_ttl(None),
        **_cookie_options(),
    )
    return response


def clear_token_cookie(response):
    response.set_cookie(
        current_app.config.get("TOKEN_COOKIE_NAME", "token"),
        "",
        max_age=0,
        expires=0,
        **_cookie_options(),
    )
    return response
