# backend/bakery_pos/config.py
from __future__ import annotations
import os


def _csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite file next to the instance by default; any SQLAlchemy URL works
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///bakery.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Calendar decisions (dashboard buckets, daily reports) use shop-local time
    STORE_TIMEZONE = os.environ.get("STORE_TIMEZONE", "Asia/Ho_Chi_Minh")

    # Invoice header
    SHOP_NAME = os.environ.get("SHOP_NAME", "BINH MINH BAKERY")
    SHOP_ADDRESS = os.environ.get("SHOP_ADDRESS", "608 Phan Chu Trinh, P. Hương Trà, Đà Nẵng")
    SHOP_PHONE = os.environ.get("SHOP_PHONE", "02353851573 - 0905422504")

    # Payment QR on printed invoices
    BANK_ID = os.environ.get("BANK_ID", "BIDV")
    BANK_ACCOUNT_NO = os.environ.get("BANK_ACCOUNT_NO", "56210000599780")
    BANK_ACCOUNT_NAME = os.environ.get("BANK_ACCOUNT_NAME", "LUONG THI THANH TAN")
    BANK_QR_TEMPLATE = os.environ.get("BANK_QR_TEMPLATE", "compact")
    QR_BASE_URL = os.environ.get("QR_BASE_URL", "https://img.vietqr.io/image")

    # Product / customer / staff images
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", "uploads")
    PUBLIC_URL_BASE = os.environ.get("PUBLIC_URL_BASE", "/uploads")
    PLACEHOLDER_IMAGE = os.environ.get("PLACEHOLDER_IMAGE", "https://via.placeholder.com/150")

    SESSION_ABSOLUTE_HOURS = int(os.environ.get("SESSION_ABSOLUTE_HOURS", "24"))
    SESSION_IDLE_HOURS = int(os.environ.get("SESSION_IDLE_HOURS", "12"))

    CORS_ORIGINS = _csv(os.environ.get(
        "CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
    ))
