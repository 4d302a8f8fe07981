# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require an owner session.

    Sets:
    - g.current_owner: the authenticated Owner
    - g.owner_id: its id (every private document is scoped by it)
    - g.session_token: the plaintext bearer token (for logout)

    Returns 401 for a missing, unknown, revoked, expired or idle token, or a
    deactivated owner.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        owner = session_service.validate_session(token)
        if not owner:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_owner = owner
        g.owner_id = owner.id
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function
