# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/storepos/routes/auth.py
"""
Authentication API routes

- Login issues an opaque session token (hash stored server-side)
- Logout revokes the presenting token
- Self-registration does not exist; accounts are created by an ADMIN
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth
from ..errors import AuthenticationError, ValidationError
from ..services import auth_service
from ..services import session_service
from . import error_response


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info and session token on success.
    Token must be included in Authorization header for protected routes.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        user = auth_service.authenticate(email, password)
    except ValidationError as e:
        return error_response(e, 400)
    except AuthenticationError as e:
        return error_response(e, 401)

    _, token = session_service.create_session(
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )

    return jsonify({"token": token, "user": user.to_dict()})


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify(g.current_user.to_dict())


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.session_token)
    return jsonify({"message": "Logged out"})
