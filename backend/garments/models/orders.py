from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

ORDER_PENDING = "pending"
ORDER_APPROVED = "approved"
ORDER_REJECTED = "rejected"
ORDER_CANCELLED = "cancelled"
ORDER_PAID = "paid"
VALID_ORDER_STATUSES = (ORDER_PENDING, ORDER_APPROVED, ORDER_REJECTED, ORDER_CANCELLED, ORDER_PAID)


class Order(db.Model):
    """
    Buyer order against a single product.

    WHY: status is the coarse lifecycle (pending -> approved -> paid, or
    pending -> rejected / cancelled). tracking_events is the finer,
    append-only log that records every transition plus any shipment
    steps a manager adds.

    Product name and unit price are snapshotted at placement so later
    catalog edits do not rewrite what the buyer agreed to.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint("order_quantity > 0", name="ck_orders_quantity_positive"),
        db.Index("ix_orders_product_status", "product_id", "status"),
        db.Index("ix_orders_buyer_created", "buyer_email", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    buyer_email = db.Column(db.String(255), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    product_name = db.Column(db.String(200), nullable=False)
    order_quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    order_price = db.Column(db.Numeric(14, 2), nullable=False)

    status = db.Column(db.String(16), nullable=False, default=ORDER_PENDING, index=True)

    delivery_address = db.Column(db.String(512), nullable=True)
    contact_number = db.Column(db.String(32), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    approved_at = db.Column(db.DateTime, nullable=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    transaction_id = db.Column(db.String(255), nullable=True, unique=True)

    product = db.relationship("Product", backref=db.backref("orders", lazy=True))
    tracking_events = db.relationship(
        "OrderTrackingEvent",
        back_populates="order",
        order_by="OrderTrackingEvent.sequence",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dict(self, include_tracking: bool = True) -> dict:
        data = {
            "id": self.id,
            "buyerEmail": self.buyer_email,
            "productId": self.product_id,
            "productName": self.product_name,
            "orderQuantity": self.order_quantity,
            "unitPrice": float(self.unit_price),
            "orderPrice": float(self.order_price),
            "status": self.status,
            "deliveryAddress": self.delivery_address,
            "contactNumber": self.contact_number,
            "notes": self.notes,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "approvedAt": to_utc_z(self.approved_at) if self.approved_at else None,
            "paidAt": to_utc_z(self.paid_at) if self.paid_at else None,
            "transactionId": self.transaction_id,
        }
        if include_tracking:
            data["trackingHistory"] = [e.to_dict() for e in self.tracking_events]
        return data


class OrderTrackingEvent(db.Model):
    """
    One entry of an order's tracking history.

    Append-only. sequence is 1-based and strictly increasing per order,
    which fixes chronological order even when timestamps collide.
    """
    __tablename__ = "order_tracking_events"
    __table_args__ = (
        db.UniqueConstraint("order_id", "sequence", name="uq_tracking_order_sequence"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    sequence = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(64), nullable=False)
    actor = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(255), nullable=True)
    note = db.Column(db.Text, nullable=True)
    occurred_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    order = db.relationship("Order", back_populates="tracking_events")

    def to_dict(self) -> dict:
        return {
            "sequence": self.sequence,
            "status": self.status,
            "actor": self.actor,
            "location": self.location,
            "note": self.note,
            "time": to_utc_z(self.occurred_at),
        }
