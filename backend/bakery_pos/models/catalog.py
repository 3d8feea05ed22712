from __future__ import annotations

from ..extensions import db
from bakery_pos.time_utils import to_utc_z, utcnow

UNLIMITED_STOCK = "unlimited"


class Product(db.Model):
    """
    Catalog item sold at the counter.

    PRICING: `price` is the retail price; `wholesale_price` is optional and
    falls back to `price` when absent. Amounts are whole đồng.

    STOCK: NULL means the item is not stock-tracked (drinks made to order)
    and is exposed as "unlimited".
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_name", "category", "name"),
        db.CheckConstraint("price >= 0", name="ck_products_price_nonneg"),
        db.CheckConstraint("wholesale_price IS NULL OR wholesale_price >= 0", name="ck_products_wholesale_nonneg"),
        db.CheckConstraint("stock IS NULL OR stock >= 0", name="ck_products_stock_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=False, default="Bánh mì")

    price = db.Column(db.Integer, nullable=False)
    wholesale_price = db.Column(db.Integer, nullable=True)

    stock = db.Column(db.Integer, nullable=True, default=0)
    image = db.Column(db.String(512), nullable=True)

    # Composite items (e.g. a combo built on a base bread) draw stock from the base
    base_product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} price={self.price}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "wholesale_price": self.wholesale_price,
            "stock": UNLIMITED_STOCK if self.stock is None else self.stock,
            "image": self.image,
            "base_product_id": self.base_product_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryLog(db.Model):
    """
    Stock import record.

    IMMUTABLE: one row per delivery received; the product's stock column is
    the running total and is updated in the same transaction.
    """
    __tablename__ = "inventory_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Integer, nullable=False)  # purchase price per unit
    note = db.Column(db.String(255), nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("user_accounts.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    product = db.relationship("Product")
    author = db.relationship("UserAccount")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "price": self.price,
            "note": self.note,
            "created_by": self.created_by,
            "created_by_name": self.author.profile.full_name if self.author and self.author.profile else None,
            "created_at": to_utc_z(self.created_at),
        }
