from __future__ import annotations

from ..extensions import db
from bakery_pos.time_utils import to_utc_z, utcnow

ROLE_ADMIN = "admin"
ROLE_CASHIER = "cashier"
ROLE_BAKER = "baker"
ROLE_SALES = "sales"

VALID_ROLES = (ROLE_ADMIN, ROLE_CASHIER, ROLE_BAKER, ROLE_SALES)


class UserAccount(db.Model):
    """
    Login identity (email + bcrypt hash).

    The staff-facing details live in Profile, keyed by the same id. A
    profile row may lag behind account creation; see
    auth_service.resolve_profile for the fallback.
    """
    __tablename__ = "user_accounts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    profile = db.relationship("Profile", uselist=False, back_populates="account")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Profile(db.Model):
    """Staff profile: display name and role (admin, cashier, baker, sales)."""
    __tablename__ = "profiles"

    id = db.Column(db.Integer, db.ForeignKey("user_accounts.id"), primary_key=True)
    full_name = db.Column(db.String(128), nullable=False)
    role = db.Column(db.String(16), nullable=False, default=ROLE_SALES)

    account = db.relationship("UserAccount", back_populates="profile")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.account.email if self.account else None,
            "full_name": self.full_name,
            "role": self.role,
        }


class SessionToken(db.Model):
    """
    Opaque bearer token for the register and back-office clients.

    SECURITY NOTES:
    - Tokens stored hashed (SHA-256); plaintext only ever leaves in the login response
    - Absolute and idle timeouts come from config
    - Revocable on logout
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_account_active", "account_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("user_accounts.id"), nullable=False, index=True)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    account = db.relationship("UserAccount", backref=db.backref("sessions", lazy=True))
