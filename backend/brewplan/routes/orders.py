# Overview: Flask API routes for customers and sales orders; parses input and returns JSON responses.

"""
Sales Order Routes

Endpoints:
- POST   /api/orders/customers            create customer
- GET    /api/orders                      list (status, customer_id filters)
- POST   /api/orders                      create draft order
- GET    /api/orders/<id>                 order with lines
- POST   /api/orders/<id>/lines           add line
- PATCH  /api/orders/lines/<line_id>      update line
- DELETE /api/orders/lines/<line_id>      remove line
- POST   /api/orders/<id>/delivery-date   reschedule delivery
- POST   /api/orders/<id>/transition      lifecycle move (stock reserved on picking)
"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import BrewplanError
from ..extensions import db
from ..services.order_service import OrderLifecycle


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _lifecycle() -> OrderLifecycle:
    return OrderLifecycle(
        db.session,
        tax_rate_bps=current_app.config["DEFAULT_TAX_RATE_BPS"],
        retry_attempts=current_app.config["TRANSACTION_RETRY_ATTEMPTS"],
    )


@orders_bp.post("/customers")
def create_customer_route():
    data = request.get_json(silent=True) or {}
    try:
        customer = _lifecycle().create_customer(data)
        return jsonify({"customer": customer.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
def list_orders_route():
    customer_id = request.args.get("customer_id", type=int)
    try:
        orders = _lifecycle().list_orders(status=request.args.get("status"), customer_id=customer_id)
        return jsonify({"items": [o.to_dict() for o in orders], "count": len(orders)})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("")
def create_order_route():
    data = request.get_json(silent=True) or {}
    try:
        order = _lifecycle().create(data)
        return jsonify({"order": order.to_dict(include_lines=True)}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>")
def get_order_route(order_id: int):
    try:
        order = _lifecycle().get(order_id)
        return jsonify({"order": order.to_dict(include_lines=True)})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/lines")
def add_line_route(order_id: int):
    """
    Request body:
    {
        "quantity": 10,               // required, whole units
        "recipe_id": 1,
        "format": "keg_50l",
        "finished_goods_id": 4,       // links the line to a stock row
        "unit_price_cents": 21000     // defaults to the stock row price
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        lifecycle = _lifecycle()
        line = lifecycle.add_line(order_id, data)
        return jsonify({
            "line": line.to_dict(),
            "order": lifecycle.get(order_id).to_dict(),
        }), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to add order line")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.patch("/lines/<int:line_id>")
def update_line_route(line_id: int):
    data = request.get_json(silent=True) or {}
    try:
        line = _lifecycle().update_line(line_id, data)
        return jsonify({"line": line.to_dict()}), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update order line")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("/lines/<int:line_id>")
def remove_line_route(line_id: int):
    try:
        order = _lifecycle().remove_line(line_id)
        return jsonify({"order": order.to_dict(include_lines=True)}), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to remove order line")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/delivery-date")
def set_delivery_date_route(order_id: int):
    data = request.get_json(silent=True) or {}
    try:
        order = _lifecycle().set_delivery_date(order_id, data.get("delivery_date"))
        return jsonify({"order": order.to_dict()}), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to set delivery date")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/transition")
def transition_order_route(order_id: int):
    """Request body: {"status": "picking"}"""
    data = request.get_json(silent=True) or {}
    to_status = data.get("status") or data.get("to_status")
    if not to_status:
        return jsonify({"error": "status is required"}), 400
    try:
        order = _lifecycle().transition(order_id, to_status)
        return jsonify({"order": order.to_dict(include_lines=True)}), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to transition order")
        return jsonify({"error": "Internal server error"}), 500
