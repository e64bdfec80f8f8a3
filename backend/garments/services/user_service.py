# Overview: Service-layer operations for users; registration, role and status management.

"""
User Service

Registration is idempotent: the upstream identity provider may call
POST /users on every sign-in, so an existing email is reported back
rather than treated as an error.

Role and status changes are admin-only at the route layer. Suspension
stores a reason and feedback that are echoed back to the suspended user
whenever a guard rejects them.
"""

from __future__ import annotations

import logging
import re

from ..errors import ValidationError, NotFoundError, ConflictError
from ..models import User
from ..models.users import (
    ROLE_ADMIN,
    ROLE_BUYER,
    STATUS_PENDING,
    STATUS_SUSPENDED,
    VALID_ROLES,
    VALID_USER_STATUSES,
)
from ..repositories import Repositories, paginate
from ..validation import ModelValidationPolicy, validate_payload

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={"displayName", "photoURL"},
    field_map={"displayName": "display_name", "photoURL": "photo_url"},
)


def normalize_email(email) -> str:
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        raise ValidationError("A valid email is required")
    return email.strip().lower()


def register_user(repos: Repositories, payload: dict) -> tuple[User, bool]:
    """
    Create a user if the email is new.

    New users always start as buyer/pending regardless of what the payload
    claims; only an admin can promote or verify.

    Returns:
        (user, created) where created is False if the email already existed
    """
    email = normalize_email(payload.get("email"))

    existing = repos.users.get_by_email(email)
    if existing:
        return existing, False

    user = User(
        email=email,
        role=ROLE_BUYER,
        status=STATUS_PENDING,
        display_name=(payload.get("displayName") or payload.get("name") or None),
        photo_url=payload.get("photoURL") or None,
    )
    repos.users.add(user)
    repos.commit()

    logger.info("Registered user %s", email)
    return user, True


def get_by_email(repos: Repositories, email: str) -> User:
    user = repos.users.get_by_email(email)
    if not user:
        raise NotFoundError("User not found")
    return user


def _get(repos: Repositories, user_id) -> User:
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise NotFoundError("User not found")
    user = repos.users.get(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def list_users(
    repos: Repositories,
    *,
    search: str | None = None,
    role: str | None = None,
    status: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    query = repos.users.query(search=search, role=role, status=status)
    return paginate(query, page, per_page, lambda u: u.to_dict())


def update_profile(repos: Repositories, user: User, payload: dict) -> User:
    """Self-service profile edit. Only display name and photo are writable."""
    patch = validate_payload(model=User, payload=payload, policy=PROFILE_POLICY, partial=True)

    for attr, value in patch.items():
        setattr(user, attr, value or None)

    repos.commit()
    return user


def set_role(repos: Repositories, user_id, role, *, actor: User) -> User:
    if not isinstance(role, str) or role.strip().lower() not in VALID_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(VALID_ROLES)}")
    role = role.strip().lower()

    user = _get(repos, user_id)
    if user.id == actor.id and role != ROLE_ADMIN:
        raise ConflictError("Admins cannot remove their own admin role")

    user.role = role
    repos.commit()

    logger.info("User %s role set to %s by %s", user.email, role, actor.email)
    return user


def suspend_user(repos: Repositories, user_id, *, reason, feedback=None, actor: User) -> User:
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError("A suspension reason is required")

    user = _get(repos, user_id)
    if user.id == actor.id:
        raise ConflictError("Admins cannot suspend themselves")

    user.status = STATUS_SUSPENDED
    user.suspension_reason = reason.strip()
    user.suspension_feedback = feedback.strip() if isinstance(feedback, str) and feedback.strip() else None
    repos.commit()

    logger.info("User %s suspended by %s", user.email, actor.email)
    return user


def set_status(repos: Repositories, user_id, status, *, actor: User) -> User:
    """
    Set account status directly (typically pending -> verified, or
    reinstating a suspended user). Leaving suspension clears the stored
    reason and feedback.
    """
    if not isinstance(status, str) or status.strip().lower() not in VALID_USER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(VALID_USER_STATUSES)}")
    status = status.strip().lower()

    if status == STATUS_SUSPENDED:
        raise ValidationError("Use the suspend endpoint to suspend a user")

    user = _get(repos, user_id)
    user.status = status
    user.suspension_reason = None
    user.suspension_feedback = None
    repos.commit()

    logger.info("User %s status set to %s by %s", user.email, status, actor.email)
    return user
