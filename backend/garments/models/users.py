from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

ROLE_BUYER = "buyer"
ROLE_MANAGER = "manager"
ROLE_ADMIN = "admin"
VALID_ROLES = (ROLE_BUYER, ROLE_MANAGER, ROLE_ADMIN)

STATUS_PENDING = "pending"
STATUS_VERIFIED = "verified"
STATUS_SUSPENDED = "suspended"
VALID_USER_STATUSES = (STATUS_PENDING, STATUS_VERIFIED, STATUS_SUSPENDED)


class User(db.Model):
    """
    Platform account, keyed by email.

    Identity is asserted upstream; this row only carries role, account
    status and profile fields. Role and status are always read from here,
    never from the session token.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint("role IN ('buyer', 'manager', 'admin')", name="ck_users_role"),
        db.CheckConstraint("status IN ('pending', 'verified', 'suspended')", name="ck_users_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    role = db.Column(db.String(16), nullable=False, default=ROLE_BUYER)
    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING, index=True)

    # Set by admin on suspension, cleared on reinstatement
    suspension_reason = db.Column(db.String(255), nullable=True)
    suspension_feedback = db.Column(db.Text, nullable=True)

    display_name = db.Column(db.String(128), nullable=True)
    photo_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_suspended(self) -> bool:
        return self.status == STATUS_SUSPENDED

    def has_role(self, *roles: str) -> bool:
        wanted = {r.lower() for r in roles}
        return (self.role or "").lower() in wanted

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "suspensionReason": self.suspension_reason,
            "suspensionFeedback": self.suspension_feedback,
            "displayName": self.display_name,
            "photoURL": self.photo_url,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
