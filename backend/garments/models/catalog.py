from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

PRODUCT_ACTIVE = "active"
PRODUCT_INACTIVE = "inactive"
VALID_PRODUCT_STATUSES = (PRODUCT_ACTIVE, PRODUCT_INACTIVE)


class Product(db.Model):
    """
    Catalog listing owned by the manager who created it (added_by).

    quantity is the available stock. It is only decremented through a
    conditional UPDATE so it can never go negative.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        db.CheckConstraint("min_order_qty >= 1", name="ck_products_min_order_qty"),
        db.Index("ix_products_added_by_status", "added_by", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_order_qty = db.Column(db.Integer, nullable=False, default=1)

    category = db.Column(db.String(64), nullable=True, index=True)
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(512), nullable=True)

    added_by = db.Column(db.String(255), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=PRODUCT_ACTIVE)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": float(self.price) if self.price is not None else None,
            "quantity": self.quantity,
            "minOrderQty": self.min_order_qty,
            "category": self.category,
            "description": self.description,
            "image": self.image,
            "addedBy": self.added_by,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
