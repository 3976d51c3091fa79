from __future__ import annotations

from ..extensions import db
from ..enums import RecipeStatus, Unit, UsageStage
from ..time_utils import to_utc_z
from .columns import enum_type, enum_value


class Recipe(db.Model):
    """
    Versioned beer formula scaled to a reference batch size.

    VERSIONING: a new version is a new row pointing at its predecessor through
    parent_recipe_id. Following parent pointers always ends at the root version.
    """
    __tablename__ = "recipes"
    __table_args__ = (
        db.CheckConstraint("batch_size_litres > 0", name="ck_recipes_batch_size_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    style = db.Column(db.String(128), nullable=False)
    status = db.Column(enum_type(RecipeStatus), nullable=False, default=RecipeStatus.DRAFT)
    version = db.Column(db.Integer, nullable=False, default=1)
    parent_recipe_id = db.Column(db.Integer, db.ForeignKey("recipes.id"), nullable=True, index=True)
    description = db.Column(db.Text, nullable=True)

    batch_size_litres = db.Column(db.Float, nullable=False)
    boil_duration_minutes = db.Column(db.Integer, nullable=False, default=60)
    mash_temp_celsius = db.Column(db.Float, nullable=True)

    target_og = db.Column(db.Float, nullable=True)
    target_fg = db.Column(db.Float, nullable=True)
    target_abv = db.Column(db.Float, nullable=True)
    target_ibu = db.Column(db.Float, nullable=True)

    estimated_brew_days = db.Column(db.Integer, nullable=False, default=1)
    estimated_fermentation_days = db.Column(db.Integer, nullable=False, default=14)
    estimated_conditioning_days = db.Column(db.Integer, nullable=False, default=7)
    estimated_total_days = db.Column(db.Integer, nullable=False, default=22)

    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    parent = db.relationship("Recipe", remote_side=[id], backref=db.backref("children", lazy=True))
    ingredients = db.relationship(
        "RecipeIngredient",
        backref="recipe",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.sort_order",
    )

    def __repr__(self) -> str:
        return f"<Recipe id={self.id} name={self.name!r} v{self.version}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "style": self.style,
            "status": enum_value(self.status),
            "version": self.version,
            "parent_recipe_id": self.parent_recipe_id,
            "description": self.description,
            "batch_size_litres": self.batch_size_litres,
            "boil_duration_minutes": self.boil_duration_minutes,
            "mash_temp_celsius": self.mash_temp_celsius,
            "target_og": self.target_og,
            "target_fg": self.target_fg,
            "target_abv": self.target_abv,
            "target_ibu": self.target_ibu,
            "estimated_total_days": self.estimated_total_days,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class RecipeIngredient(db.Model):
    __tablename__ = "recipe_ingredients"
    __table_args__ = (
        db.Index("ix_recipe_ingredients_item", "inventory_item_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=False)

    # Quantity for recipe.batch_size_litres; batches scale it by their own size
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(enum_type(Unit, length=8), nullable=False)
    usage_stage = db.Column(enum_type(UsageStage), nullable=False)
    use_time_minutes = db.Column(db.Integer, nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    inventory_item = db.relationship("InventoryItem")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "recipe_id": self.recipe_id,
            "inventory_item_id": self.inventory_item_id,
            "quantity": self.quantity,
            "unit": enum_value(self.unit),
            "usage_stage": enum_value(self.usage_stage),
            "use_time_minutes": self.use_time_minutes,
            "sort_order": self.sort_order,
            "notes": self.notes,
        }
