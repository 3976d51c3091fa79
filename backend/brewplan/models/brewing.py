from __future__ import annotations

from ..extensions import db
from ..enums import (
    BatchStatus,
    QualityCheckResult,
    QualityCheckType,
    Unit,
    UsageStage,
    VesselStatus,
    VesselType,
)
from ..time_utils import to_utc_z, to_iso_date
from .columns import enum_type, enum_value


class Vessel(db.Model):
    """
    Physical equipment (fermenter, brite tank, kettle...).

    INVARIANT: status == in_use  <=>  a non-terminal batch references this vessel.
    current_batch_id is written only by batch transitions (acquire on
    planned -> brewing, release on completed / cancelled / dumped). It is a
    plain integer rather than a foreign key to avoid a vessels <-> brew_batches
    dependency cycle in DDL.
    """
    __tablename__ = "vessels"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    vessel_type = db.Column(enum_type(VesselType), nullable=False)
    capacity_litres = db.Column(db.Float, nullable=False)
    status = db.Column(enum_type(VesselStatus), nullable=False, default=VesselStatus.AVAILABLE)
    current_batch_id = db.Column(db.Integer, nullable=True)
    location = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    archived = db.Column(db.Boolean, nullable=False, default=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Vessel id={self.id} name={self.name!r} status={enum_value(self.status)}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "vessel_type": enum_value(self.vessel_type),
            "capacity_litres": self.capacity_litres,
            "status": enum_value(self.status),
            "current_batch_id": self.current_batch_id,
            "location": self.location,
            "notes": self.notes,
            "archived": self.archived,
            "updated_at": to_utc_z(self.updated_at),
        }


class BrewBatch(db.Model):
    """
    One brewing run of a Recipe.

    Lifecycle is owned by services/batch_service.py; status is never assigned
    anywhere else. actual_og / actual_fg are caches kept in sync by the
    fermentation and measurement logs.
    """
    __tablename__ = "brew_batches"
    __table_args__ = (
        db.UniqueConstraint("batch_number", name="uq_brew_batches_batch_number"),
        db.Index("ix_brew_batches_status_planned", "status", "planned_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    batch_number = db.Column(db.String(32), nullable=False)
    recipe_id = db.Column(db.Integer, db.ForeignKey("recipes.id"), nullable=False, index=True)
    status = db.Column(enum_type(BatchStatus), nullable=False, default=BatchStatus.PLANNED, index=True)

    planned_date = db.Column(db.Date, nullable=True)
    brew_date = db.Column(db.Date, nullable=True)
    estimated_ready_date = db.Column(db.Date, nullable=True)
    brewer = db.Column(db.String(128), nullable=True)

    batch_size_litres = db.Column(db.Float, nullable=False)
    actual_volume_litres = db.Column(db.Float, nullable=True)
    actual_og = db.Column(db.Float, nullable=True)
    actual_fg = db.Column(db.Float, nullable=True)
    actual_abv = db.Column(db.Float, nullable=True)
    actual_ibu = db.Column(db.Float, nullable=True)

    vessel_id = db.Column(db.Integer, db.ForeignKey("vessels.id"), nullable=True, index=True)
    notes = db.Column(db.Text, nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    recipe = db.relationship("Recipe", backref=db.backref("batches", lazy=True))
    vessel = db.relationship("Vessel", foreign_keys=[vessel_id])
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<BrewBatch id={self.id} number={self.batch_number!r} status={enum_value(self.status)}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "batch_number": self.batch_number,
            "recipe_id": self.recipe_id,
            "status": enum_value(self.status),
            "planned_date": to_iso_date(self.planned_date),
            "brew_date": to_iso_date(self.brew_date),
            "estimated_ready_date": to_iso_date(self.estimated_ready_date),
            "brewer": self.brewer,
            "batch_size_litres": self.batch_size_litres,
            "actual_volume_litres": self.actual_volume_litres,
            "actual_og": self.actual_og,
            "actual_fg": self.actual_fg,
            "actual_abv": self.actual_abv,
            "actual_ibu": self.actual_ibu,
            "vessel_id": self.vessel_id,
            "notes": self.notes,
            "completed_at": to_utc_z(self.completed_at),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class BrewIngredientConsumption(db.Model):
    """Actual ingredient usage for a batch, drawn from a specific lot."""
    __tablename__ = "brew_ingredient_consumptions"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    brew_batch_id = db.Column(db.Integer, db.ForeignKey("brew_batches.id"), nullable=False, index=True)
    recipe_ingredient_id = db.Column(db.Integer, db.ForeignKey("recipe_ingredients.id"), nullable=True)
    inventory_lot_id = db.Column(db.Integer, db.ForeignKey("inventory_lots.id"), nullable=False, index=True)
    stock_movement_id = db.Column(db.Integer, db.ForeignKey("stock_movements.id"), nullable=True)

    planned_quantity = db.Column(db.Float, nullable=False)
    actual_quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(enum_type(Unit, length=8), nullable=False)
    usage_stage = db.Column(enum_type(UsageStage), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    batch = db.relationship("BrewBatch", backref=db.backref("consumptions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brew_batch_id": self.brew_batch_id,
            "recipe_ingredient_id": self.recipe_ingredient_id,
            "inventory_lot_id": self.inventory_lot_id,
            "stock_movement_id": self.stock_movement_id,
            "planned_quantity": self.planned_quantity,
            "actual_quantity": self.actual_quantity,
            "unit": enum_value(self.unit),
            "usage_stage": enum_value(self.usage_stage),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class FermentationLogEntry(db.Model):
    __tablename__ = "fermentation_log_entries"
    __table_args__ = (
        db.Index("ix_fermentation_log_batch_logged", "brew_batch_id", "logged_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    brew_batch_id = db.Column(db.Integer, db.ForeignKey("brew_batches.id"), nullable=False)
    logged_at = db.Column(db.DateTime(timezone=True), nullable=False)
    gravity = db.Column(db.Float, nullable=True)
    temperature_celsius = db.Column(db.Float, nullable=True)
    ph = db.Column(db.Float, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    logged_by = db.Column(db.String(128), nullable=True)

    batch = db.relationship("BrewBatch", backref=db.backref("fermentation_log", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brew_batch_id": self.brew_batch_id,
            "logged_at": to_utc_z(self.logged_at),
            "gravity": self.gravity,
            "temperature_celsius": self.temperature_celsius,
            "ph": self.ph,
            "notes": self.notes,
            "logged_by": self.logged_by,
        }


class BatchMeasurementEntry(db.Model):
    """Explicit OG / FG / volume / IBU readings taken at brew day or packaging."""
    __tablename__ = "batch_measurement_log"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    brew_batch_id = db.Column(db.Integer, db.ForeignKey("brew_batches.id"), nullable=False, index=True)
    logged_at = db.Column(db.DateTime(timezone=True), nullable=False)
    og = db.Column(db.Float, nullable=True)
    fg = db.Column(db.Float, nullable=True)
    volume_litres = db.Column(db.Float, nullable=True)
    ibu = db.Column(db.Float, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    logged_by = db.Column(db.String(128), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brew_batch_id": self.brew_batch_id,
            "logged_at": to_utc_z(self.logged_at),
            "og": self.og,
            "fg": self.fg,
            "volume_litres": self.volume_litres,
            "ibu": self.ibu,
            "notes": self.notes,
            "logged_by": self.logged_by,
        }


class QualityCheck(db.Model):
    """Lab and sensory check against a batch. result starts pending."""
    __tablename__ = "quality_checks"
    __table_args__ = (
        db.Index("ix_quality_checks_batch_checked", "brew_batch_id", "checked_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    brew_batch_id = db.Column(db.Integer, db.ForeignKey("brew_batches.id"), nullable=False)
    check_type = db.Column(enum_type(QualityCheckType), nullable=False)
    checked_at = db.Column(db.DateTime(timezone=True), nullable=False)
    checked_by = db.Column(db.String(200), nullable=True)

    ph = db.Column(db.Float, nullable=True)
    dissolved_oxygen = db.Column(db.Float, nullable=True)
    turbidity = db.Column(db.Float, nullable=True)
    colour_srm = db.Column(db.Float, nullable=True)
    abv = db.Column(db.Float, nullable=True)
    co2_volumes = db.Column(db.Float, nullable=True)

    sensory_notes = db.Column(db.Text, nullable=True)
    microbiological = db.Column(db.Text, nullable=True)
    result = db.Column(enum_type(QualityCheckResult), nullable=False, default=QualityCheckResult.PENDING)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brew_batch_id": self.brew_batch_id,
            "check_type": enum_value(self.check_type),
            "checked_at": to_utc_z(self.checked_at),
            "checked_by": self.checked_by,
            "ph": self.ph,
            "dissolved_oxygen": self.dissolved_oxygen,
            "turbidity": self.turbidity,
            "colour_srm": self.colour_srm,
            "abv": self.abv,
            "co2_volumes": self.co2_volumes,
            "sensory_notes": self.sensory_notes,
            "microbiological": self.microbiological,
            "result": enum_value(self.result),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
