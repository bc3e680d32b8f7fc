# Overview: Flask API routes for stores operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify

from ndizi.decorators import require_json_object, require_user
from ndizi.services import store_service


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("/<user_id>")
@require_user
def list_stores(user_id: str):
    stores = store_service.list_stores(g.current_user.id)
    return jsonify({"stores": [store.to_dict() for store in stores]}), 200


@stores_bp.post("")
@require_json_object
def create_store():
    data = g.payload
    if not data.get("userId") or not data.get("name"):
        return jsonify({"message": "userId and name are required"}), 400
    try:
        store = store_service.create_store(
            str(data["userId"]),
            data["name"],
            address=data.get("address"),
            phone=data.get("phone"),
            gst_number=data.get("gstNumber"),
        )
        return jsonify({"store": store.to_dict()}), 201
    except store_service.StoreError as exc:
        return jsonify({"message": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to create store")
        return jsonify({"message": "Internal server error"}), 500
