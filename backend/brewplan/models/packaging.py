from __future__ import annotations

from ..extensions import db
from ..enums import PackageFormat
from ..time_utils import to_utc_z, to_iso_date
from .columns import enum_type, enum_value


class PackagingRun(db.Model):
    __tablename__ = "packaging_runs"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    brew_batch_id = db.Column(db.Integer, db.ForeignKey("brew_batches.id"), nullable=False, index=True)
    packaging_date = db.Column(db.Date, nullable=False)
    format = db.Column(enum_type(PackageFormat), nullable=False)
    quantity_units = db.Column(db.Integer, nullable=False)
    volume_litres = db.Column(db.Float, nullable=True)
    best_before_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    performed_by = db.Column(db.String(128), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    batch = db.relationship("BrewBatch", backref=db.backref("packaging_runs", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brew_batch_id": self.brew_batch_id,
            "packaging_date": to_iso_date(self.packaging_date),
            "format": enum_value(self.format),
            "quantity_units": self.quantity_units,
            "volume_litres": self.volume_litres,
            "best_before_date": to_iso_date(self.best_before_date),
            "notes": self.notes,
            "performed_by": self.performed_by,
            "created_at": to_utc_z(self.created_at),
        }


class FinishedGoodsStock(db.Model):
    """
    Sellable packaged beer, one row per packaging run.

    INVARIANT: 0 <= quantity_reserved <= quantity_on_hand. Only order
    transitions move these numbers after the row is created.
    """
    __tablename__ = "finished_goods_stock"
    __table_args__ = (
        db.CheckConstraint("quantity_on_hand >= 0", name="ck_fg_on_hand_nonneg"),
        db.CheckConstraint(
            "quantity_reserved >= 0 AND quantity_reserved <= quantity_on_hand",
            name="ck_fg_reserved_bounds",
        ),
        db.Index("ix_finished_goods_recipe_format", "recipe_id", "format"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey("recipes.id"), nullable=False)
    brew_batch_id = db.Column(db.Integer, db.ForeignKey("brew_batches.id"), nullable=False, index=True)
    packaging_run_id = db.Column(db.Integer, db.ForeignKey("packaging_runs.id"), nullable=True)
    format = db.Column(enum_type(PackageFormat), nullable=False)

    quantity_on_hand = db.Column(db.Integer, nullable=False, default=0)
    quantity_reserved = db.Column(db.Integer, nullable=False, default=0)
    location = db.Column(db.String(128), nullable=True)
    best_before_date = db.Column(db.Date, nullable=True)
    unit_price_cents = db.Column(db.Integer, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    recipe = db.relationship("Recipe")
    batch = db.relationship("BrewBatch")
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def quantity_available(self) -> int:
        return (self.quantity_on_hand or 0) - (self.quantity_reserved or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "recipe_id": self.recipe_id,
            "brew_batch_id": self.brew_batch_id,
            "packaging_run_id": self.packaging_run_id,
            "format": enum_value(self.format),
            "quantity_on_hand": self.quantity_on_hand,
            "quantity_reserved": self.quantity_reserved,
            "quantity_available": self.quantity_available,
            "location": self.location,
            "best_before_date": to_iso_date(self.best_before_date),
            "unit_price_cents": self.unit_price_cents,
            "updated_at": to_utc_z(self.updated_at),
        }
