# Overview: Domain error taxonomy and the JSON error handlers that map it to HTTP.

"""
Error taxonomy shared by services and routes.

Services raise these; routes either let them propagate to the handlers
registered by register_error_handlers() or catch them locally when a
route needs a different response shape.

    UnauthorizedError  -> 401  missing / invalid / expired credential
    ForbiddenError     -> 403  wrong role, not the owner, or suspended
    ValidationError    -> 400  missing or malformed input
    LifecycleError     -> 400  order transition not allowed from current status
    NotFoundError      -> 404  missing entity or malformed identifier
    ConflictError      -> 409  duplicate / business rule conflict
    PaymentError       -> 500  payment processor failure

Anything else is logged and returned as a generic 500.
"""

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from .extensions import db


class UnauthorizedError(Exception):
    """401-level credential problem."""


class ForbiddenError(Exception):
    """403-level authorization failure. `extra` is merged into the JSON body."""

    def __init__(self, message: str = "Forbidden", extra: dict | None = None):
        super().__init__(message)
        self.extra = extra or {}


class ValidationError(ValueError):
    """400-level input problem."""


class LifecycleError(ValidationError):
    """
    Raised when an invalid order status transition is attempted.

    This is a domain error, not a technical error.
    """


class NotFoundError(LookupError):
    """404-level missing entity."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


class PaymentError(Exception):
    """Raised when the payment processor rejects or fails a call."""


def register_error_handlers(app) -> None:
    @app.errorhandler(UnauthorizedError)
    def _unauthorized(e):
        return jsonify({"error": str(e) or "Unauthorized"}), 401

    @app.errorhandler(ForbiddenError)
    def _forbidden(e):
        body = {"error": str(e)}
        body.update(e.extra)
        return jsonify(body), 403

    @app.errorhandler(ValidationError)
    def _invalid(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(NotFoundError)
    def _not_found(e):
        return jsonify({"error": str(e) or "Not found"}), 404

    @app.errorhandler(ConflictError)
    def _conflict(e):
        return jsonify({"error": str(e)}), 409

    @app.errorhandler(PaymentError)
    def _payment_failed(e):
        current_app.logger.exception("Payment processor call failed")
        return jsonify({"error": "Payment processing failed"}), 500

    @app.errorhandler(HTTPException)
    def _http(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def _internal(e):
        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500
