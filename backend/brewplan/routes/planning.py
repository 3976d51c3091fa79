# Overview: Flask API routes for recipes and the read-only planning and demand views.

from flask import Blueprint, current_app, jsonify, request

from ..errors import BrewplanError, ValidationError
from ..extensions import db
from ..services.planning_service import DEFAULT_DEMAND_WEEKS, MaterialsPlanner
from ..services.recipe_service import RecipeBook
from ..validation import parse_int


planning_bp = Blueprint("planning", __name__, url_prefix="/api/planning")


def _recipes() -> RecipeBook:
    return RecipeBook(db.session, retry_attempts=current_app.config["TRANSACTION_RETRY_ATTEMPTS"])


@planning_bp.get("/materials")
def materials_requirements_route():
    """Ingredient needs of planned batches against current positions."""
    try:
        requirements = MaterialsPlanner(db.session).get_materials_requirements()
        shortfalls = [r for r in requirements if r["shortfall"] > 0]
        return jsonify({
            "items": requirements,
            "count": len(requirements),
            "shortfall_count": len(shortfalls),
        })
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to compute materials requirements")
        return jsonify({"error": "Internal server error"}), 500


@planning_bp.get("/schedule")
def brew_schedule_route():
    try:
        schedule = MaterialsPlanner(db.session).get_brew_schedule()
        return jsonify({"items": schedule, "count": len(schedule)})
    except Exception:
        current_app.logger.exception("Failed to load brew schedule")
        return jsonify({"error": "Internal server error"}), 500


@planning_bp.get("/purchase-timing")
def purchase_timing_route():
    try:
        return jsonify(MaterialsPlanner(db.session).get_purchase_timing())
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to compute purchase timing")
        return jsonify({"error": "Internal server error"}), 500


@planning_bp.post("/recipes")
def create_recipe_route():
    data = request.get_json(silent=True) or {}
    try:
        recipe = _recipes().create(data)
        return jsonify({"recipe": recipe.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create recipe")
        return jsonify({"error": "Internal server error"}), 500


@planning_bp.get("/recipes/<int:recipe_id>")
def get_recipe_route(recipe_id: int):
    try:
        recipe = _recipes().get(recipe_id)
        return jsonify({
            "recipe": recipe.to_dict(),
            "ingredients": [i.to_dict() for i in recipe.ingredients],
        })
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load recipe")
        return jsonify({"error": "Internal server error"}), 500


@planning_bp.post("/recipes/<int:recipe_id>/ingredients")
def add_ingredient_route(recipe_id: int):
    data = request.get_json(silent=True) or {}
    try:
        ingredient = _recipes().add_ingredient(recipe_id, data)
        return jsonify({"ingredient": ingredient.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to add recipe ingredient")
        return jsonify({"error": "Internal server error"}), 500


@planning_bp.post("/recipes/<int:recipe_id>/status")
def set_recipe_status_route(recipe_id: int):
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        return jsonify({"error": "status is required"}), 400
    try:
        recipe = _recipes().set_status(recipe_id, data["status"])
        return jsonify({"recipe": recipe.to_dict()}), 200
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update recipe status")
        return jsonify({"error": "Internal server error"}), 500


@planning_bp.post("/recipes/<int:recipe_id>/versions")
def create_recipe_version_route(recipe_id: int):
    """Request body: field overrides for the new version, e.g. {"target_ibu": 42}."""
    data = request.get_json(silent=True) or {}
    try:
        recipe = _recipes().create_version(recipe_id, data)
        return jsonify({"recipe": recipe.to_dict()}), 201
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to version recipe")
        return jsonify({"error": "Internal server error"}), 500


@planning_bp.get("/recipes/<int:recipe_id>/lineage")
def recipe_lineage_route(recipe_id: int):
    try:
        lineage = _recipes().get_lineage(recipe_id)
        return jsonify({"items": [r.to_dict() for r in lineage], "count": len(lineage)})
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load recipe lineage")
        return jsonify({"error": "Internal server error"}), 500


@planning_bp.get("/demand")
def demand_view_route():
    """Query: ?weeks=8 (delivery horizon for upcoming orders)."""
    try:
        weeks = parse_int(request.args.get("weeks"), field="weeks", required=False)
        if weeks is None:
            weeks = DEFAULT_DEMAND_WEEKS
        if weeks <= 0:
            raise ValidationError("weeks must be positive")
        return jsonify(MaterialsPlanner(db.session).get_demand_view(weeks))
    except BrewplanError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to compute demand view")
        return jsonify({"error": "Internal server error"}), 500


@planning_bp.get("/packaging-priority")
def packaging_priority_route():
    try:
        batches = MaterialsPlanner(db.session).get_packaging_priority()
        return jsonify({"items": batches, "count": len(batches)})
    except Exception:
        current_app.logger.exception("Failed to compute packaging priority")
        return jsonify({"error": "Internal server error"}), 500


@planning_bp.get("/suggested-brews")
def suggested_brews_route():
    try:
        suggestions = MaterialsPlanner(db.session).get_suggested_brews()
        return jsonify({"items": suggestions, "count": len(suggestions)})
    except Exception:
        current_app.logger.exception("Failed to compute suggested brews")
        return jsonify({"error": "Internal server error"}), 500
