# Overview: Composable authorization predicates evaluated in front of route handlers.

"""
Authorization guards.

Each guard is a predicate over a GuardContext and returns a GuardResult.
evaluate_guards() runs them left-to-right and stops at the first failure,
so a chain like

    (require_authenticated, require_role("manager", "admin"), require_active_account)

reads in the same order it is enforced. The Flask wiring lives in
decorators.py; this module knows nothing about requests.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable

from .models import User
from .services.token_service import TokenClaims


@dataclass
class GuardContext:
    claims: TokenClaims | None
    user: User | None


@dataclass(frozen=True)
class GuardResult:
    ok: bool
    status: int = 200
    message: str = ""
    extra: dict = field(default_factory=dict)

    @classmethod
    def allow(cls) -> "GuardResult":
        return cls(ok=True)

    @classmethod
    def deny(cls, status: int, message: str, **extra) -> "GuardResult":
        return cls(ok=False, status=status, message=message, extra=extra)


Guard = Callable[[GuardContext], GuardResult]


def require_authenticated(ctx: GuardContext) -> GuardResult:
    if ctx.claims is None:
        return GuardResult.deny(401, "Authentication required")
    if ctx.user is None:
        return GuardResult.deny(401, "Unknown user")
    return GuardResult.allow()


def require_role(*roles: str) -> Guard:
    """Role match is case-insensitive and uses the stored role, not token claims."""
    wanted = tuple(r.lower() for r in roles)

    def guard(ctx: GuardContext) -> GuardResult:
        if ctx.user is None:
            return GuardResult.deny(401, "Authentication required")
        if not ctx.user.has_role(*wanted):
            return GuardResult.deny(
                403,
                f"Requires role: {' or '.join(wanted)}",
                required_roles=list(wanted),
            )
        return GuardResult.allow()

    guard.__name__ = f"require_role({','.join(wanted)})"
    return guard


def require_active_account(ctx: GuardContext) -> GuardResult:
    if ctx.user is None:
        return GuardResult.deny(401, "Authentication required")
    if ctx.user.is_suspended:
        return GuardResult.deny(
            403,
            "Account suspended",
            suspensionReason=ctx.user.suspension_reason,
            suspensionFeedback=ctx.user.suspension_feedback,
        )
    return GuardResult.allow()


def evaluate_guards(ctx: GuardContext, guards: Iterable[Guard]) -> GuardResult:
    for guard in guards:
        result = guard(ctx)
        if not result.ok:
            return result
    return GuardResult.allow()
