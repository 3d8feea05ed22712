from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from bakery_pos.time_utils import to_utc_z, utcnow


class CustomerDebt(db.Model):
    """
    Customer with a running debt balance.

    DENORMALIZED: `amount` is a cache of the signed sum of the customer's
    DebtTransaction rows (debt positive, repayment negative). Every ledger
    write updates it in the same transaction.

    STATUS: paid | pending | overdue. `overdue` is only ever set by hand.
    """
    __tablename__ = "customer_debts"
    __table_args__ = (
        db.Index("ix_customer_debts_last_activity", "last_activity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    image = db.Column(db.String(512), nullable=True)
    initials = db.Column(db.String(4), nullable=True)

    amount = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="paid", index=True)
    last_activity = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "image": self.image,
            "initials": self.initials,
            "amount": self.amount,
            "status": self.status,
            "last_activity": to_utc_z(self.last_activity),
            "created_at": to_utc_z(self.created_at),
        }


class DebtTransaction(db.Model):
    """
    Append-only ledger of debt movements.

    TYPES:
    - debt: customer owes more (amount added to balance)
    - repayment: customer paid back (amount subtracted)

    IMMUTABLE: rows are never updated or deleted.
    """
    __tablename__ = "debt_transactions"
    __table_args__ = (
        db.Index("ix_debt_txns_customer_created", "customer_id", "created_at"),
        db.CheckConstraint("amount > 0", name="ck_debt_txns_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customer_debts.id"), nullable=False, index=True)
    amount = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(16), nullable=False)
    note = db.Column(db.String(255), nullable=True)

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("user_accounts.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    customer = db.relationship("CustomerDebt", backref=db.backref("transactions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "amount": self.amount,
            "type": self.type,
            "note": self.note,
            "order_id": self.order_id,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


@event.listens_for(DebtTransaction, "before_update")
def _reject_transaction_update(mapper, connection, target):
    raise ValueError("debt transactions are append-only")


@event.listens_for(DebtTransaction, "before_delete")
def _reject_transaction_delete(mapper, connection, target):
    raise ValueError("debt transactions are append-only")
