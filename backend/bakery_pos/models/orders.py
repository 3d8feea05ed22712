from __future__ import annotations

from ..extensions import db
from bakery_pos.time_utils import to_utc_z, utcnow


class Order(db.Model):
    """
    Settled counter sale.

    WHY client_ref: the register sends one reference per checkout attempt;
    a repeated submit with the same reference finds the existing order
    instead of creating a second one.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("client_ref", name="uq_orders_client_ref"),
        db.Index("ix_orders_created", "created_at"),
        db.Index("ix_orders_customer_created", "customer_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # All amounts in whole đồng
    sub_total = db.Column(db.Integer, nullable=False, default=0)
    discount_percent = db.Column(db.Integer, nullable=False, default=0)
    discount_amount = db.Column(db.Integer, nullable=False, default=0)
    total_amount = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False, index=True)  # cash, transfer, debt
    price_mode = db.Column(db.String(16), nullable=False, default="retail")  # retail, wholesale

    customer_id = db.Column(db.Integer, db.ForeignKey("customer_debts.id"), nullable=True)
    client_ref = db.Column(db.String(64), nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("user_accounts.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    customer = db.relationship("CustomerDebt", backref=db.backref("orders", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sub_total": self.sub_total,
            "discount_percent": self.discount_percent,
            "discount_amount": self.discount_amount,
            "total_amount": self.total_amount,
            "payment_method": self.payment_method,
            "price_mode": self.price_mode,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "client_ref": self.client_ref,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class OrderItem(db.Model):
    """
    Line captured at settlement time.

    Name and price are copied from the cart so later catalog edits never
    rewrite sales history.
    """
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Integer, nullable=False)

    order = db.relationship("Order", backref=db.backref("items", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": self.price,
        }
