# Overview: Service-layer operations for the contact form.

from __future__ import annotations

import logging

from ..errors import ValidationError
from ..models import Message
from ..repositories import Repositories
from ..validation import ModelValidationPolicy, validate_payload
from .user_service import normalize_email

logger = logging.getLogger(__name__)

MESSAGE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "subject", "message"},
    required_on_create={"name", "email", "message"},
)


def submit_message(repos: Repositories, payload: dict) -> Message:
    """Store a contact form submission. Messages are never edited afterwards."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    patch = validate_payload(model=Message, payload=payload, policy=MESSAGE_POLICY, partial=False)
    patch["email"] = normalize_email(patch["email"])

    message = Message(**patch)
    repos.messages.add(message)
    repos.commit()

    logger.info("Contact message %s received from %s", message.id, message.email)
    return message
