# Overview: Flask API routes for brew batches, vessels, packaging and quality checks; parses input and returns JSON responses.

"""
Brew Batch Routes

Lifecycle endpoints delegate to BatchLifecycle; every mutation is one
transaction inside the service. Domain errors map to their HTTP status,
anything else is logged and answered with 500.
"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import BrewplanError
from ..extensions import db
from ..services.batch_service import BatchLifecycle
from ..services.packaging_service import PackagingService
from ..services.quality_service import QualityLog


batches_bp = Blueprint("batches", __name__, url_prefix="/api/batches")


def _lifecycle() -> BatchLifecycle:
    return BatchLifecycle(db.session, retry_attempts=current_app.config["TRANSACTION_RETRY_ATTEMPTS"])


def _quality() -> QualityLog:
    return QualityLog(db.session, retry_attempts=current_app.config["TRANSACTION_RETRY_ATTEMPTS"])


@batches_bp.get("")
def list_batches_route():
    try:
        batches = _lifecycle().list_batches(status=request.args.get("status"))
        return jsonify({"items": [b.to_dict() for b in batches], "count": len(batches)})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to list batches")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("")
def create_batch_route():
    """
    Plan a new batch.

    Request body:
    {
        "recipe_id": 1,              // required
        "batch_size_litres": 500,    // required, 1..10000
        "planned_date": "2025-03-01",
        "vessel_id": 2,
        "brewer": "...",
        "notes": "..."
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        batch = _lifecycle().create(data)
        return jsonify({"batch": batch.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create batch")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.get("/<int:batch_id>")
def get_batch_route(batch_id: int):
    try:
        lifecycle = _lifecycle()
        batch = lifecycle.get(batch_id)
        return jsonify({
            "batch": batch.to_dict(),
            "fermentation_log": [e.to_dict() for e in lifecycle.get_fermentation_log(batch_id)],
            "consumptions": [c.to_dict() for c in lifecycle.get_consumptions(batch_id)],
        })
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load batch")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("/<int:batch_id>/transition")
def transition_batch_route(batch_id: int):
    """Request body: {"status": "brewing"}"""
    data = request.get_json(silent=True) or {}
    to_status = data.get("status") or data.get("to_status")
    if not to_status:
        return jsonify({"error": "status is required"}), 400
    try:
        batch = _lifecycle().transition(batch_id, to_status)
        return jsonify({"batch": batch.to_dict()}), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to transition batch")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("/<int:batch_id>/fermentation")
def add_fermentation_entry_route(batch_id: int):
    data = request.get_json(silent=True) or {}
    try:
        entry = _lifecycle().add_fermentation_entry(batch_id, data)
        return jsonify({"entry": entry.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to add fermentation entry")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("/<int:batch_id>/measurements")
def add_measurement_entry_route(batch_id: int):
    data = request.get_json(silent=True) or {}
    try:
        entry = _lifecycle().add_measurement_entry(batch_id, data)
        return jsonify({"entry": entry.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to add measurement entry")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("/<int:batch_id>/consumptions")
def record_consumption_route(batch_id: int):
    """
    Record ingredient usage; also posts a `consumed` stock movement.

    Request body:
    {
        "inventory_lot_id": 3,       // required
        "actual_quantity": 25.0,     // required, positive
        "planned_quantity": 24.5,
        "usage_stage": "mash",
        "recipe_ingredient_id": 7
    }
    """
    data = request.get_json(silent=True) or {}
    if data.get("inventory_lot_id") is None:
        return jsonify({"error": "inventory_lot_id is required"}), 400
    try:
        consumption = _lifecycle().record_consumption(batch_id, data)
        return jsonify({"consumption": consumption.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to record consumption")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("/<int:batch_id>/packaging")
def record_packaging_run_route(batch_id: int):
    data = request.get_json(silent=True) or {}
    try:
        service = PackagingService(db.session, retry_attempts=current_app.config["TRANSACTION_RETRY_ATTEMPTS"])
        run, stock = service.record_packaging_run(batch_id, data)
        return jsonify({"packaging_run": run.to_dict(), "finished_goods": stock.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to record packaging run")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("/vessels")
def create_vessel_route():
    data = request.get_json(silent=True) or {}
    try:
        vessel = _lifecycle().create_vessel(data)
        return jsonify({"vessel": vessel.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create vessel")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("/vessels/<int:vessel_id>/status")
def set_vessel_status_route(vessel_id: int):
    """Request body: {"status": "cleaning"}; refused while the vessel is in use."""
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        return jsonify({"error": "status is required"}), 400
    try:
        vessel = _lifecycle().set_vessel_status(vessel_id, data["status"])
        return jsonify({"vessel": vessel.to_dict()}), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update vessel status")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.get("/<int:batch_id>/measurements")
def measurement_log_route(batch_id: int):
    try:
        entries = _lifecycle().get_measurement_log(batch_id)
        return jsonify({"items": [e.to_dict() for e in entries], "count": len(entries)})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load measurement log")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.get("/<int:batch_id>/quality-checks")
def list_quality_checks_route(batch_id: int):
    try:
        checks = _quality().list_by_batch(batch_id)
        return jsonify({"items": [c.to_dict() for c in checks], "count": len(checks)})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to list quality checks")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("/<int:batch_id>/quality-checks")
def create_quality_check_route(batch_id: int):
    """Request body: {"check_type": "pre_package", "ph": 4.2, "result": "pass"}"""
    data = request.get_json(silent=True) or {}
    try:
        check = _quality().create(batch_id, data)
        return jsonify({"quality_check": check.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to record quality check")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.get("/quality-checks/<int:check_id>")
def get_quality_check_route(check_id: int):
    try:
        return jsonify({"quality_check": _quality().get(check_id).to_dict()})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load quality check")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.patch("/quality-checks/<int:check_id>")
def update_quality_check_route(check_id: int):
    data = request.get_json(silent=True) or {}
    try:
        check = _quality().update(check_id, data)
        return jsonify({"quality_check": check.to_dict()}), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update quality check")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.delete("/quality-checks/<int:check_id>")
def delete_quality_check_route(check_id: int):
    try:
        _quality().remove(check_id)
        return jsonify({"deleted": check_id}), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to delete quality check")
        return jsonify({"error": "Internal server error"}), 500
