# Overview: Recipe authoring, ingredient lists and version lineage.

from __future__ import annotations

import logging

from ..enums import RecipeStatus, Unit, UsageStage, coerce_enum
from ..errors import NotFoundError, ValidationError
from ..models import InventoryItem, Recipe, RecipeIngredient
from ..validation import parse_int, parse_non_negative_int, parse_number
from .concurrency import run_in_transaction

logger = logging.getLogger(__name__)

TIME_ESTIMATE_FIELDS = ("estimated_brew_days", "estimated_fermentation_days", "estimated_conditioning_days")
TARGET_FIELDS = ("mash_temp_celsius", "target_og", "target_fg", "target_abv", "target_ibu")
COPIED_FIELDS = (
    "name", "style", "description", "batch_size_litres", "boil_duration_minutes",
    "mash_temp_celsius", "target_og", "target_fg", "target_abv", "target_ibu",
    "estimated_brew_days", "estimated_fermentation_days", "estimated_conditioning_days",
    "estimated_total_days", "notes",
)


class RecipeBook:
    def __init__(self, session, *, retry_attempts: int = 3):
        self.session = session
        self.retry_attempts = retry_attempts

    def get(self, recipe_id: int) -> Recipe:
        recipe = self.session.get(Recipe, recipe_id)
        if recipe is None:
            raise NotFoundError(f"Recipe {recipe_id} not found")
        return recipe

    def create(self, data: dict) -> Recipe:
        name = (data.get("name") or "").strip()
        style = (data.get("style") or "").strip()
        if not name:
            raise ValidationError("name is required")
        if not style:
            raise ValidationError("style is required")
        batch_size = parse_number(data.get("batch_size_litres"), field="batch_size_litres")
        if batch_size <= 0:
            raise ValidationError("batch_size_litres must be positive")

        days = {
            f: parse_non_negative_int(data.get(f, default), field=f)
            for f, default in zip(TIME_ESTIMATE_FIELDS, (1, 14, 7))
        }
        boil_minutes = parse_non_negative_int(data.get("boil_duration_minutes", 60), field="boil_duration_minutes")
        targets = {f: parse_number(data.get(f), field=f, required=False) for f in TARGET_FIELDS}

        def _op():
            recipe = Recipe(
                name=name,
                style=style,
                status=coerce_enum(RecipeStatus, data.get("status", RecipeStatus.DRAFT), field="status"),
                version=1,
                description=data.get("description"),
                batch_size_litres=batch_size,
                boil_duration_minutes=boil_minutes,
                estimated_total_days=sum(days.values()),
                notes=data.get("notes"),
                **days,
                **targets,
            )
            self.session.add(recipe)
            self.session.flush()
            return recipe

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def set_status(self, recipe_id: int, status) -> Recipe:
        status = coerce_enum(RecipeStatus, status, field="status")

        def _op():
            recipe = self.get(recipe_id)
            recipe.status = status
            return recipe

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def add_ingredient(self, recipe_id: int, data: dict) -> RecipeIngredient:
        quantity = parse_number(data.get("quantity"), field="quantity")
        use_time = parse_non_negative_int(data.get("use_time_minutes"), field="use_time_minutes", required=False)
        sort_order = parse_int(data.get("sort_order"), field="sort_order", required=False)
        if quantity <= 0:
            raise ValidationError("quantity must be positive")
        usage_stage = coerce_enum(UsageStage, data.get("usage_stage"), field="usage_stage")

        if data.get("inventory_item_id") is None:
            raise ValidationError("inventory_item_id is required")

        def _op():
            recipe = self.get(recipe_id)
            item = self.session.get(InventoryItem, data.get("inventory_item_id"))
            if item is None:
                raise NotFoundError(f"Inventory item {data.get('inventory_item_id')} not found")
            ingredient = RecipeIngredient(
                recipe_id=recipe.id,
                inventory_item_id=item.id,
                quantity=quantity,
                unit=coerce_enum(Unit, data.get("unit") or item.unit, field="unit"),
                usage_stage=usage_stage,
                use_time_minutes=use_time,
                sort_order=len(recipe.ingredients) if sort_order is None else sort_order,
                notes=data.get("notes"),
            )
            self.session.add(ingredient)
            self.session.flush()
            return ingredient

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def create_version(self, recipe_id: int, changes: dict | None = None) -> Recipe:
        """
        New Recipe row that supersedes recipe_id.

        Copies every formula field and ingredient, applies `changes`, bumps
        version and points parent_recipe_id at the source. The source row is
        left untouched so existing batches keep their formula.
        """
        changes = dict(changes or {})
        unknown = set(changes) - set(COPIED_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot change field(s): {', '.join(sorted(unknown))}")
        for f in ("batch_size_litres",) + TARGET_FIELDS:
            if f in changes:
                changes[f] = parse_number(changes[f], field=f, required=f == "batch_size_litres")
        for f in TIME_ESTIMATE_FIELDS + ("boil_duration_minutes", "estimated_total_days"):
            if f in changes:
                changes[f] = parse_non_negative_int(changes[f], field=f)

        def _op():
            source = self.get(recipe_id)
            fields = {f: getattr(source, f) for f in COPIED_FIELDS}
            fields.update(changes)
            if fields["batch_size_litres"] is None or float(fields["batch_size_litres"]) <= 0:
                raise ValidationError("batch_size_litres must be positive")
            if any(f in changes for f in TIME_ESTIMATE_FIELDS):
                fields["estimated_total_days"] = sum(int(fields[f]) for f in TIME_ESTIMATE_FIELDS)

            latest = max([source.version] + [c.version for c in source.children])
            new_recipe = Recipe(
                status=RecipeStatus.DRAFT,
                version=latest + 1,
                parent_recipe_id=source.id,
                **fields,
            )
            self.session.add(new_recipe)
            self.session.flush()

            for ing in source.ingredients:
                self.session.add(RecipeIngredient(
                    recipe_id=new_recipe.id,
                    inventory_item_id=ing.inventory_item_id,
                    quantity=ing.quantity,
                    unit=ing.unit,
                    usage_stage=ing.usage_stage,
                    use_time_minutes=ing.use_time_minutes,
                    sort_order=ing.sort_order,
                    notes=ing.notes,
                ))
            self.session.flush()
            return new_recipe

        recipe = run_in_transaction(self.session, _op, attempts=self.retry_attempts)
        logger.info("Recipe %s versioned as %s (v%s)", recipe_id, recipe.id, recipe.version)
        return recipe

    def get_lineage(self, recipe_id: int) -> list[Recipe]:
        """[recipe, parent, grandparent, ..., root]."""
        recipe = self.get(recipe_id)
        lineage = [recipe]
        seen = {recipe.id}
        while recipe.parent_recipe_id is not None:
            recipe = self.get(recipe.parent_recipe_id)
            if recipe.id in seen:
                raise ValidationError(f"Recipe lineage of {recipe_id} contains a cycle")
            seen.add(recipe.id)
            lineage.append(recipe)
        return lineage
