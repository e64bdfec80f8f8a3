# backend/garments/routes/system.py
"""
System health endpoint.

Checks database connectivity and reports whether the payment processor
is configured.
"""

import time
from flask import Blueprint, current_app, jsonify
from ..extensions import db
from ..models import User, Product, Order

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        product_count = db.session.query(Product).count()
        order_count = db.session.query(Order).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "products": product_count,
                "orders": order_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/")
def index():
    return jsonify({"message": "Garments Tracker API running"})


@system_bp.get("/health")
def health():
    database = check_database_health()
    payments = "configured" if current_app.extensions.get("payment_gateway") else "not_configured"

    healthy = database["status"] == "healthy"
    return jsonify({
        "status": "healthy" if healthy else "unhealthy",
        "database": database,
        "payments": payments,
    }), (200 if healthy else 503)
