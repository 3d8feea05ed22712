# Overview: Service-layer operations for session tokens; issue, validate, revoke.

"""
Session Token Management Service

WHY: The register and back-office clients hold an opaque bearer token.
Tokens are random, stored only as a hash, and expire.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- Absolute timeout (SESSION_ABSOLUTE_HOURS) and idle timeout
  (SESSION_IDLE_HOURS), both from config
- Revocable on logout
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, UserAccount
from ..time_utils import utcnow
from .auth_service import StaffProfile, resolve_profile


@dataclass
class SessionContext:
    account: UserAccount
    session: SessionToken
    profile: StaffProfile


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_ABSOLUTE_HOURS", 24))


def _idle_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_IDLE_HOURS", 12))


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 is enough for high-entropy tokens (unlike passwords)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(account_id: int) -> tuple[SessionToken, str]:
    """Returns (session_record, plaintext_token); only the hash is stored."""
    account = db.session.get(UserAccount, account_id)
    if not account:
        raise ValueError("Account not found")

    plaintext = generate_token()
    now = utcnow()
    session = SessionToken(
        account_id=account_id,
        token_hash=hash_token(plaintext),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, plaintext


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its account and profile.

    Returns None for unknown, revoked, expired or idle tokens and for
    deactivated accounts. Bumps last_used_at on success.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        return None

    account = session.account
    if not account or not account.is_active:
        _revoke(session, "Account deactivated")
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(account=account, session=session, profile=resolve_profile(account))


def revoke_session(token: str, reason: str = "User logout") -> bool:
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return False
    _revoke(session, reason)
    return True


def cleanup_expired_sessions(older_than_days: int = 30) -> int:
    """Delete expired or revoked sessions created more than `older_than_days` ago."""
    now = utcnow()
    cutoff = now - timedelta(days=older_than_days)
    deleted = db.session.query(SessionToken).filter(
        db.or_(SessionToken.expires_at < now, SessionToken.is_revoked.is_(True)),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
