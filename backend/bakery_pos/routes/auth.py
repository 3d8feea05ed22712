# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

Accounts are created by an administrator (CLI: flask users create); there
is no self-registration.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import auth_service, session_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Exchange email + password for a bearer token.

    A missing profile row does not fail the login: the response carries the
    guest sales profile instead.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    account = auth_service.authenticate(email, password)
    if not account:
        return jsonify({"error": "Invalid credentials"}), 401

    _, token = session_service.create_session(account.id)
    profile = auth_service.resolve_profile(account)
    if profile.is_guest:
        current_app.logger.warning("Profile missing for account %s; using guest profile", account.id)

    return jsonify({
        "token": token,
        "user": profile.to_dict(),
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    token = request.headers.get("Authorization", "").split(" ", 1)[1]
    session_service.revoke_session(token, reason="User logout")
    return jsonify({"ok": True}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.profile.to_dict()}), 200


@auth_bp.get("/profiles")
@require_auth
def profiles_route():
    """Staff list for the 'created by' picker on cake orders."""
    return jsonify({"profiles": auth_service.list_profiles()}), 200
