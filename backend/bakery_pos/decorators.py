# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .permissions import get_permission_definition, role_has_permission
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, "current_user") and hasattr(g, "profile")


def require_auth(f):
    """
    Require a valid bearer token.

    Sets on flask.g:
    - g.current_user: the UserAccount
    - g.profile: StaffProfile (guest sales profile if the row is missing)
    - g.session_context: the full SessionContext
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.account
        g.profile = context.profile
        g.session_context = context
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the current profile's role to hold `permission_code`."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not role_has_permission(g.profile.role, permission_code):
                current_app.logger.warning(
                    "Permission denied: account=%s role=%s permission=%s path=%s",
                    g.current_user.id, g.profile.role, permission_code, request.path,
                )
                definition = get_permission_definition(permission_code) or {}
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "permission_name": definition.get("name"),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
