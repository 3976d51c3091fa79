# Overview: Flask API routes for suppliers, purchase orders and goods receiving.

from flask import Blueprint, current_app, jsonify, request

from ..errors import BrewplanError
from ..extensions import db
from ..services.purchasing_service import PurchaseOrderLifecycle


purchasing_bp = Blueprint("purchasing", __name__, url_prefix="/api/purchase-orders")


def _lifecycle() -> PurchaseOrderLifecycle:
    return PurchaseOrderLifecycle(
        db.session,
        tax_rate_bps=current_app.config["DEFAULT_TAX_RATE_BPS"],
        retry_attempts=current_app.config["TRANSACTION_RETRY_ATTEMPTS"],
    )


@purchasing_bp.get("")
def list_purchase_orders_route():
    try:
        pos = _lifecycle().list_purchase_orders(status=request.args.get("status"))
        return jsonify({"items": [po.to_dict() for po in pos], "count": len(pos)})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to list purchase orders")
        return jsonify({"error": "Internal server error"}), 500


@purchasing_bp.post("/suppliers")
def create_supplier_route():
    data = request.get_json(silent=True) or {}
    try:
        supplier = _lifecycle().create_supplier(data)
        return jsonify({"supplier": supplier.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500


@purchasing_bp.post("")
def create_purchase_order_route():
    data = request.get_json(silent=True) or {}
    try:
        po = _lifecycle().create(data)
        return jsonify({"purchase_order": po.to_dict(include_lines=True)}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create purchase order")
        return jsonify({"error": "Internal server error"}), 500


@purchasing_bp.get("/<int:po_id>")
def get_purchase_order_route(po_id: int):
    try:
        po = _lifecycle().get(po_id)
        return jsonify({"purchase_order": po.to_dict(include_lines=True)})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load purchase order")
        return jsonify({"error": "Internal server error"}), 500


@purchasing_bp.post("/<int:po_id>/lines")
def add_line_route(po_id: int):
    """
    Request body:
    {
        "inventory_item_id": 1,     // required
        "quantity_ordered": 50,     // required, positive
        "unit_cost_cents": 250,     // defaults to the item's unit cost
        "unit": "kg",
        "notes": "..."
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        lifecycle = _lifecycle()
        line = lifecycle.add_line(po_id, data)
        return jsonify({
            "line": line.to_dict(),
            "purchase_order": lifecycle.get(po_id).to_dict(),
        }), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to add purchase order line")
        return jsonify({"error": "Internal server error"}), 500


@purchasing_bp.patch("/lines/<int:line_id>")
def update_line_route(line_id: int):
    data = request.get_json(silent=True) or {}
    try:
        line = _lifecycle().update_line(line_id, data)
        return jsonify({"line": line.to_dict()}), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update purchase order line")
        return jsonify({"error": "Internal server error"}), 500


@purchasing_bp.delete("/lines/<int:line_id>")
def remove_line_route(line_id: int):
    try:
        po = _lifecycle().remove_line(line_id)
        return jsonify({"purchase_order": po.to_dict(include_lines=True)}), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to remove purchase order line")
        return jsonify({"error": "Internal server error"}), 500


@purchasing_bp.post("/<int:po_id>/transition")
def transition_purchase_order_route(po_id: int):
    """Request body: {"status": "sent"}"""
    data = request.get_json(silent=True) or {}
    to_status = data.get("status") or data.get("to_status")
    if not to_status:
        return jsonify({"error": "status is required"}), 400
    try:
        po = _lifecycle().transition(po_id, to_status)
        return jsonify({"purchase_order": po.to_dict()}), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to transition purchase order")
        return jsonify({"error": "Internal server error"}), 500


@purchasing_bp.post("/lines/<int:line_id>/receive")
def receive_line_route(line_id: int):
    """
    Receive goods against one PO line.

    Request body:
    {
        "quantity_received": 30,    // required, positive, <= remaining
        "lot_number": "MO-2291",    // required
        "location": "Cold room",
        "notes": "..."
    }

    Returns:
        {lot_id, new_po_status}
    """
    data = request.get_json(silent=True) or {}
    if data.get("quantity_received") is None:
        return jsonify({"error": "quantity_received is required"}), 400
    if not data.get("lot_number"):
        return jsonify({"error": "lot_number is required"}), 400
    try:
        result = _lifecycle().receive_line(
            line_id,
            data["quantity_received"],
            data["lot_number"],
            location=data.get("location"),
            notes=data.get("notes"),
            performed_by=data.get("performed_by"),
        )
        return jsonify(result), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to receive purchase order line")
        return jsonify({"error": "Internal server error"}), 500
