# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import auth_service


def require_json_object(f):
    """Reject requests whose body is not a JSON object."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"message": "Request body must be a JSON object"}), 400
        g.payload = data
        return f(*args, **kwargs)

    return decorated_function


def require_user(f):
    """
    Resolve the account named by the request.

    The user id comes from the URL (user_id) or the JSON body (userId).
    Sets g.current_user.

    Returns 400 if no user id was supplied, 404 if it matches no account.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = kwargs.get("user_id")
        if user_id is None:
            data = getattr(g, "payload", None) or request.get_json(silent=True) or {}
            user_id = data.get("userId") if isinstance(data, dict) else None

        if not user_id:
            return jsonify({"message": "userId is required"}), 400

        user = auth_service.get_user(str(user_id))
        if user is None:
            return jsonify({"message": "User not found"}), 404

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function
