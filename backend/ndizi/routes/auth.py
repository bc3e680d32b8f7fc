# Overview: Flask API routes for account registration and login.

from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_json_object
from ..services import auth_service
from ..services.auth_service import AuthError
from ..validation import ConflictError, ValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
@require_json_object
def register_route():
    """
    Create an account.

    Request body:
    {
        "email": "owner@shop.in",
        "password": "...",
        "storeName": "Corner Shop",
        "ownerName": "A. Owner",
        "phone": "...",      (optional)
        "address": "..."     (optional)
    }

    Returns:
        200: {"user": {...}} (never includes the password hash)
        400: Missing fields or email already registered
    """
    data = g.payload
    try:
        user = auth_service.register_user(
            email=data.get("email"),
            password=data.get("password"),
            store_name=data.get("storeName"),
            owner_name=data.get("ownerName"),
            phone=data.get("phone"),
            address=data.get("address"),
        )
        return jsonify({"user": user.to_dict()}), 200
    except (ValidationError, ConflictError) as e:
        return jsonify({"message": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"message": "Internal server error"}), 500


@auth_bp.post("/login")
@require_json_object
def login_route():
    data = g.payload
    email = data.get("email")
    password = data.get("password")

    if not all([email, password]):
        return jsonify({"message": "email and password required"}), 400

    try:
        user = auth_service.authenticate(email, password)
        return jsonify({"user": user.to_dict()}), 200
    except AuthError as e:
        return jsonify({"message": str(e)}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"message": "Internal server error"}), 500
