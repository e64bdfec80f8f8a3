from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Message(db.Model):
    """Contact form submission. Write-once."""
    __tablename__ = "messages"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(200), nullable=True)
    message = db.Column(db.Text, nullable=False)
    submitted_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "subject": self.subject,
            "message": self.message,
            "submittedAt": to_utc_z(self.submitted_at),
        }
