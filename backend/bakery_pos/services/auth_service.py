# Overview: Service-layer operations for staff accounts; password hashing and profile lookup.

"""
Authentication Service

WHY: Every sale, ledger entry and stock import is attributed to a staff
account. Passwords are hashed with bcrypt.

PROFILE LAG: an account can exist before its Profile row does (profiles
are created separately by the admin). resolve_profile() then falls back
to a guest sales profile instead of failing the login.
"""

from __future__ import annotations

from dataclasses import dataclass

import bcrypt

from ..extensions import db
from ..models import Profile, UserAccount
from ..models.auth import ROLE_SALES, VALID_ROLES

GUEST_FULL_NAME = "Nhân viên Sales"
GUEST_ROLE = ROLE_SALES

MIN_PASSWORD_LENGTH = 8


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""


@dataclass(frozen=True)
class StaffProfile:
    """Who is at the register: account id, display name, role."""
    id: int
    email: str
    full_name: str
    role: str
    is_guest: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "is_guest": self.is_guest,
        }


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not any(ch.isdigit() for ch in password):
        raise PasswordValidationError("Password must contain at least one digit")
    if not any(ch.isalpha() for ch in password):
        raise PasswordValidationError("Password must contain at least one letter")


def hash_password(password: str) -> str:
    """bcrypt, cost factor 12. Strength is checked first."""
    validate_password_strength(password)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the row
        return False


def create_account(email: str, password: str, full_name: str | None = None, role: str = ROLE_SALES) -> UserAccount:
    """
    Create a login and, when full_name is given, its profile.

    Raises ValueError for a duplicate email or unknown role and
    PasswordValidationError for a weak password.
    """
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise ValueError("A valid email is required")
    if role not in VALID_ROLES:
        raise ValueError(f"role must be one of: {', '.join(VALID_ROLES)}")
    if db.session.query(UserAccount).filter_by(email=email).first():
        raise ValueError("Email already exists")

    account = UserAccount(email=email, password_hash=hash_password(password), is_active=True)
    db.session.add(account)
    db.session.flush()
    if full_name:
        db.session.add(Profile(id=account.id, full_name=full_name.strip(), role=role))
    db.session.commit()
    return account


def authenticate(email: str, password: str) -> UserAccount | None:
    """Return the active account for these credentials, or None."""
    account = db.session.query(UserAccount).filter(
        UserAccount.email == (email or "").strip().lower(),
        UserAccount.is_active.is_(True),
    ).first()
    if not account:
        return None
    if verify_password(password or "", account.password_hash):
        return account
    return None


def resolve_profile(account: UserAccount) -> StaffProfile:
    """Stored profile, or the guest sales profile while the row is missing."""
    profile = db.session.get(Profile, account.id)
    if profile is None:
        return StaffProfile(
            id=account.id,
            email=account.email,
            full_name=GUEST_FULL_NAME,
            role=GUEST_ROLE,
            is_guest=True,
        )
    return StaffProfile(
        id=account.id,
        email=account.email,
        full_name=profile.full_name,
        role=profile.role,
    )


def list_profiles() -> list[dict]:
    return [p.to_dict() for p in db.session.query(Profile).order_by(Profile.full_name.asc()).all()]
