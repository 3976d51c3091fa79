# Overview: Flask API routes for inventory items, lots, stock movements, positions and finished goods.

from flask import Blueprint, current_app, jsonify, request

from ..errors import BrewplanError
from ..extensions import db
from ..services.inventory_service import InventoryLedger, PositionCalculator
from ..services.packaging_service import PackagingService


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _ledger() -> InventoryLedger:
    return InventoryLedger(db.session, retry_attempts=current_app.config["TRANSACTION_RETRY_ATTEMPTS"])


@inventory_bp.post("/items")
def create_item_route():
    """
    Request body:
    {
        "name": "Maris Otter",     // required
        "category": "grain",       // required
        "unit": "kg",              // required
        "unit_cost_cents": 250,
        "supplier_id": 1
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        item = _ledger().create_item(data)
        return jsonify({"item": item.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/positions")
def list_positions_route():
    try:
        positions = PositionCalculator(db.session).get_position_all()
        return jsonify({"items": positions, "count": len(positions)})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to compute inventory positions")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/items/<int:item_id>/position")
def get_position_route(item_id: int):
    try:
        position = PositionCalculator(db.session).get_position(item_id)
        return jsonify({"position": position})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to compute inventory position")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/items/<int:item_id>/lots")
def list_lots_route(item_id: int):
    include_empty = request.args.get("include_empty", "true").lower() != "false"
    try:
        lots = _ledger().get_lots(item_id, include_empty=include_empty)
        return jsonify({"items": [lot.to_dict() for lot in lots], "count": len(lots)})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to list lots")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/items/<int:item_id>/lots")
def create_lot_route(item_id: int):
    data = request.get_json(silent=True) or {}
    try:
        lot = _ledger().create_lot(item_id, data)
        return jsonify({"lot": lot.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create lot")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/items/<int:item_id>/movements")
def list_movements_route(item_id: int):
    limit = request.args.get("limit", default=200, type=int)
    try:
        movements = _ledger().get_movements(item_id, limit=limit)
        return jsonify({"items": [m.to_dict() for m in movements], "count": len(movements)})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to list movements")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/lots/<int:lot_id>/movements")
def record_movement_route(lot_id: int):
    """
    Request body:
    {
        "movement_type": "written_off",   // required
        "quantity": -2.5,                 // signed; outbound types negative
        "reason": "Water damage"
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        movement = _ledger().record_movement(lot_id, data)
        return jsonify({"movement": movement.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to record movement")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/finished-goods")
def list_finished_goods_route():
    in_stock_only = request.args.get("in_stock", "false").lower() == "true"
    try:
        service = PackagingService(db.session, retry_attempts=current_app.config["TRANSACTION_RETRY_ATTEMPTS"])
        stock = service.list_finished_goods(in_stock_only=in_stock_only)
        return jsonify({"items": [s.to_dict() for s in stock], "count": len(stock)})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to list finished goods")
        return jsonify({"error": "Internal server error"}), 500
