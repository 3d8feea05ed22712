from __future__ import annotations

from ..extensions import db
from bakery_pos.time_utils import to_utc_z, utcnow


class CakeOrder(db.Model):
    """
    Cake pre-order taken at the counter or by phone.

    LIFECYCLE: pending -> completed (delivered) | canceled. Both end states
    are terminal.

    remaining_amount = total_amount - deposit_amount at creation.
    """
    __tablename__ = "cake_orders"
    __table_args__ = (
        db.Index("ix_cake_orders_status_delivery", "status", "delivery_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(128), nullable=False)
    phone = db.Column(db.String(32), nullable=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    total_amount = db.Column(db.Integer, nullable=False, default=0)
    deposit_amount = db.Column(db.Integer, nullable=False, default=0)
    remaining_amount = db.Column(db.Integer, nullable=False, default=0)

    delivery_date = db.Column(db.DateTime(timezone=True), nullable=False)
    delivery_address = db.Column(db.String(255), nullable=True)

    created_by = db.Column(db.String(128), nullable=True)  # staff display name
    note = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="pending")
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "phone": self.phone,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "total_amount": self.total_amount,
            "deposit_amount": self.deposit_amount,
            "remaining_amount": self.remaining_amount,
            "delivery_date": to_utc_z(self.delivery_date),
            "delivery_address": self.delivery_address,
            "created_by": self.created_by,
            "note": self.note,
            "status": self.status,
            "completed_at": to_utc_z(self.completed_at),
            "created_at": to_utc_z(self.created_at),
        }
