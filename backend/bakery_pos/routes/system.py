# backend/bakery_pos/routes/system.py
"""
System health and version endpoints.

The register polls /api/health before opening the sale screen; a 503
means sales should not be taken until the database is back.
"""

import sys
import time

from flask import Blueprint, current_app

from ..extensions import db
from ..models import CustomerDebt, Product, SessionToken, UserAccount
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    """Count a few core tables; any error marks the database unhealthy."""
    start_time = time.time()
    try:
        details = {
            "products": db.session.query(Product).count(),
            "customers": db.session.query(CustomerDebt).count(),
            "accounts": db.session.query(UserAccount).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2), "details": details}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {"status": "unhealthy", "latency_ms": round(elapsed_ms, 2), "error": "Database error"}


def check_session_service_health() -> dict:
    start_time = time.time()
    try:
        now = utcnow()
        active = db.session.query(SessionToken).filter_by(is_revoked=False).count()
        expired = db.session.query(SessionToken).filter(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(False),
        ).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"active_sessions": active, "expired_pending_cleanup": expired},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Session service health check failed")
        db.session.rollback()
        return {"status": "unhealthy", "latency_ms": round(elapsed_ms, 2), "error": "Session service error"}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: all checks healthy
    - 503: one or more checks unhealthy
    """
    start_time = time.time()
    checks = {
        "database": check_database_health(),
        "session_service": check_session_service_health(),
    }
    unhealthy = any(check["status"] == "unhealthy" for check in checks.values())

    return {
        "status": "unhealthy" if unhealthy else "healthy",
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }, 503 if unhealthy else 200


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info."""
    return {
        "api_version": API_VERSION,
        "environment": "development" if current_app.debug else "production",
        "python_version": sys.version.split()[0],
        "store_timezone": current_app.config["STORE_TIMEZONE"],
        "server_time": to_utc_z(utcnow()),
    }
