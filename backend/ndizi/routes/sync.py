# Overview: Flask API routes for device sync; parses input and returns JSON responses.

# backend/ndizi/routes/sync.py
"""
Device Sync API Routes

DESIGN:
- Devices identify the account with userId in the body
- pull returns everything changed after the device's watermark
- push sends the device's whole product/transaction set; the server decides
  create vs update per record and skips invoices it already has
- Payloads are validated before anything is written
"""

from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_json_object, require_user
from ..services import sales_service, sync_service
from ..services.sync_service import SyncServiceError
from ..validation import ConflictError, ValidationError


sync_bp = Blueprint("sync", __name__, url_prefix="/api/sync")


def _store_id(data: dict) -> str | None:
    store_id = data.get("storeId")
    return str(store_id) if store_id else None


@sync_bp.post("/pull")
@require_json_object
@require_user
def pull_route():
    """
    Request body:
    {
        "userId": "...",
        "lastSyncAt": "2026-01-01T00:00:00.000Z",  (optional)
        "storeId": "..."                            (optional)
    }

    Returns:
        200: {"products": [...], "transactions": [...], "syncedAt": "..."}
        400: Invalid watermark
        404: Unknown user or store
    """
    data = g.payload
    try:
        last_sync_at = sync_service.parse_watermark(data.get("lastSyncAt"))
        result = sync_service.pull_changes(
            g.current_user,
            last_sync_at=last_sync_at,
            store_id=_store_id(data),
        )
        return jsonify(result), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except SyncServiceError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to pull changes")
        return jsonify({"message": "Internal server error"}), 500


@sync_bp.post("/push")
@require_json_object
@require_user
def push_route():
    """
    Request body:
    {
        "userId": "...",
        "products": [...],
        "transactions": [...],
        "storeId": "..."  (optional)
    }

    Returns:
        200: {"success": true, "results": {"productsCreated": n,
              "productsUpdated": n, "transactionsCreated": n}, "syncedAt": "..."}
        400: Malformed records (nothing written)
        404: Unknown user or store
        409: A product id belongs to another account
    """
    data = g.payload
    try:
        result = sync_service.push_changes(
            g.current_user,
            products=data.get("products"),
            transactions=data.get("transactions"),
            store_id=_store_id(data),
        )
        return jsonify(result), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except SyncServiceError as e:
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to push changes")
        return jsonify({"message": "Internal server error"}), 500


@sync_bp.post("/invoice-number")
@require_json_object
@require_user
def next_invoice_number_route():
    """Next invoice number for the account (and store, when given)."""
    data = g.payload
    try:
        sync_service.require_store_for_user(g.current_user, _store_id(data))
    except SyncServiceError as e:
        return jsonify({"message": str(e)}), 404
    invoice_number = sales_service.get_next_invoice_number(g.current_user.id, _store_id(data))
    return jsonify({"invoiceNumber": invoice_number}), 200
