# Overview: Flask API route for the public contact form.

from flask import Blueprint, request, jsonify

from ..repositories import get_repositories
from ..services import contact_service

contact_bp = Blueprint("contact", __name__, url_prefix="/api/v1")


@contact_bp.post("/contact")
def submit_contact_route():
    """Store a contact message. Body: {"name", "email", "subject", "message"}"""
    payload = request.get_json(silent=True) or {}
    message = contact_service.submit_message(get_repositories(), payload)
    return jsonify({"success": True, "insertedId": message.id}), 201
