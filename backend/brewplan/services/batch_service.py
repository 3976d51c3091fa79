# Overview: Brew batch state machine with vessel, gravity and consumption side effects.

"""
Batch Lifecycle

LIFECYCLE (enums.BATCH_TRANSITIONS):
    planned -> brewing -> fermenting -> conditioning -> ready_to_package -> packaged -> completed
    planned -> cancelled
    brewing | fermenting | conditioning | ready_to_package -> dumped
completed, cancelled and dumped are terminal.

SIDE EFFECTS (same transaction as the status write):
- planned -> brewing: brew_date = today; the assigned vessel becomes in_use
  with current_batch_id = batch.
- -> ready_to_package: actual_abv = (og - fg) * 131.25 when both are known.
- -> completed: completed_at = now.
- -> completed | cancelled | dumped: the vessel held by this batch is released.

VESSEL GUARDS (stricter than a plain status write):
- planned -> brewing is refused with GuardViolationError while the assigned
  vessel is cleaning, in maintenance, out of service or held by another batch.
- cancelling a planned batch leaves the vessel untouched unless this batch is
  its current_batch_id; another batch's hold is never released here.

VESSEL INVARIANT: status == in_use <=> a non-terminal batch holds it. Only this
module writes Vessel.status / Vessel.current_batch_id while a batch holds it.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from ..enums import (
    ACTIVE_BATCH_STATUSES,
    BATCH_TRANSITIONS,
    BatchStatus,
    MovementType,
    Unit,
    UsageStage,
    VesselStatus,
    VesselType,
    coerce_enum,
)
from ..errors import (
    GuardViolationError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ..models import (
    BatchMeasurementEntry,
    BrewBatch,
    BrewIngredientConsumption,
    FermentationLogEntry,
    InventoryLot,
    Recipe,
    Vessel,
)
from ..time_utils import today, utcnow
from ..validation import parse_date, parse_number
from .concurrency import lock_for_update, run_in_transaction
from .inventory_service import InventoryLedger
from .numbering import BATCH_PREFIX, next_document_number

logger = logging.getLogger(__name__)

ABV_FACTOR = 131.25
MIN_BATCH_SIZE_LITRES = 1
MAX_BATCH_SIZE_LITRES = 10000

# Transitions that hand the vessel back
VESSEL_RELEASE_STATUSES = frozenset({BatchStatus.COMPLETED, BatchStatus.CANCELLED, BatchStatus.DUMPED})


def calculate_abv(og: float | None, fg: float | None) -> float | None:
    if og is None or fg is None:
        return None
    return (og - fg) * ABV_FACTOR


def _optional_float(data: dict, key: str) -> float | None:
    return parse_number(data.get(key), field=key, required=False)


class BatchLifecycle:
    def __init__(self, session, *, retry_attempts: int = 3):
        self.session = session
        self.retry_attempts = retry_attempts
        self.ledger = InventoryLedger(session, retry_attempts=retry_attempts)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, batch_id: int) -> BrewBatch:
        batch = self.session.get(BrewBatch, batch_id)
        if batch is None:
            raise NotFoundError(f"Brew batch {batch_id} not found")
        return batch

    def list_batches(self, status=None) -> list[BrewBatch]:
        query = self.session.query(BrewBatch)
        if status is not None:
            query = query.filter(BrewBatch.status == coerce_enum(BatchStatus, status, field="status"))
        return query.order_by(BrewBatch.planned_date.asc(), BrewBatch.id.asc()).all()

    def _locked_batch(self, batch_id: int) -> BrewBatch:
        batch = lock_for_update(self.session.query(BrewBatch).filter_by(id=batch_id)).first()
        if batch is None:
            raise NotFoundError(f"Brew batch {batch_id} not found")
        return batch

    def _locked_vessel(self, vessel_id: int) -> Vessel:
        vessel = lock_for_update(self.session.query(Vessel).filter_by(id=vessel_id)).first()
        if vessel is None:
            raise NotFoundError(f"Vessel {vessel_id} not found")
        return vessel

    # ------------------------------------------------------------------
    # Vessels
    # ------------------------------------------------------------------

    def create_vessel(self, data: dict) -> Vessel:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required")
        capacity = _optional_float(data, "capacity_litres")
        if capacity is None or capacity <= 0:
            raise ValidationError("capacity_litres must be positive")
        vessel_type = coerce_enum(VesselType, data.get("vessel_type"), field="vessel_type")

        def _op():
            vessel = Vessel(
                name=name,
                vessel_type=vessel_type,
                capacity_litres=capacity,
                status=VesselStatus.AVAILABLE,
                location=data.get("location"),
                notes=data.get("notes"),
            )
            self.session.add(vessel)
            self.session.flush()
            return vessel

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def set_vessel_status(self, vessel_id: int, status) -> Vessel:
        """
        Manual status change (cleaning, maintenance, back to available).

        in_use is owned by batch transitions: it can neither be set nor
        cleared here.
        """
        status = coerce_enum(VesselStatus, status, field="status")
        if status == VesselStatus.IN_USE:
            raise ValidationError("Vessels become in_use only when a batch starts brewing")

        def _op():
            vessel = self._locked_vessel(vessel_id)
            if vessel.status == VesselStatus.IN_USE:
                raise InvalidStateError(
                    f"Vessel {vessel.name} is in use by batch {vessel.current_batch_id}",
                    details={"vessel_id": vessel.id, "current_batch_id": vessel.current_batch_id},
                )
            vessel.status = status
            return vessel

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, data: dict) -> BrewBatch:
        batch_size = _optional_float(data, "batch_size_litres")
        if batch_size is None:
            raise ValidationError("batch_size_litres is required")
        if not (MIN_BATCH_SIZE_LITRES <= batch_size <= MAX_BATCH_SIZE_LITRES):
            raise ValidationError(
                f"batch_size_litres must be between {MIN_BATCH_SIZE_LITRES} and {MAX_BATCH_SIZE_LITRES}"
            )
        planned_date = parse_date(data.get("planned_date"), field="planned_date")

        if data.get("recipe_id") is None:
            raise ValidationError("recipe_id is required")

        def _op():
            recipe = self.session.get(Recipe, data.get("recipe_id"))
            if recipe is None:
                raise NotFoundError(f"Recipe {data.get('recipe_id')} not found")

            vessel_id = data.get("vessel_id")
            if vessel_id is not None:
                vessel = self.session.get(Vessel, vessel_id)
                if vessel is None:
                    raise NotFoundError(f"Vessel {vessel_id} not found")
                if vessel.archived:
                    raise ValidationError(f"Vessel {vessel.name} is archived")

            base_date = planned_date or today()
            batch = BrewBatch(
                batch_number=next_document_number(self.session, BrewBatch.batch_number, BATCH_PREFIX),
                recipe_id=recipe.id,
                status=BatchStatus.PLANNED,
                planned_date=planned_date,
                estimated_ready_date=base_date + timedelta(days=recipe.estimated_total_days or 0),
                brewer=data.get("brewer"),
                batch_size_litres=batch_size,
                vessel_id=vessel_id,
                notes=data.get("notes"),
            )
            self.session.add(batch)
            self.session.flush()
            return batch

        batch = run_in_transaction(
            self.session, _op, attempts=self.retry_attempts, retry_integrity_errors=True
        )
        logger.info("Planned batch %s (recipe %s, %sL)", batch.batch_number, batch.recipe_id, batch.batch_size_litres)
        return batch

    # ------------------------------------------------------------------
    # Transition
    # ------------------------------------------------------------------

    def transition(self, batch_id: int, to_status) -> BrewBatch:
        to_status = coerce_enum(BatchStatus, to_status, field="status")

        def _op():
            batch = self._locked_batch(batch_id)
            from_status = batch.status
            if to_status not in BATCH_TRANSITIONS[from_status]:
                raise InvalidTransitionError("batch", from_status.value, to_status.value)

            vessel = self._locked_vessel(batch.vessel_id) if batch.vessel_id is not None else None

            # Guards
            if from_status == BatchStatus.PLANNED and to_status == BatchStatus.BREWING and vessel is not None:
                held_by_self = vessel.status == VesselStatus.IN_USE and vessel.current_batch_id == batch.id
                if vessel.status != VesselStatus.AVAILABLE and not held_by_self:
                    raise GuardViolationError(
                        f"Vessel {vessel.name} is {vessel.status.value}; batch {batch.batch_number} cannot start brewing",
                        details={"vessel_id": vessel.id, "vessel_status": vessel.status.value},
                    )

            # Side effects
            now = utcnow()
            batch.status = to_status
            batch.updated_at = now

            if from_status == BatchStatus.PLANNED and to_status == BatchStatus.BREWING:
                batch.brew_date = today()
                if vessel is not None:
                    vessel.status = VesselStatus.IN_USE
                    vessel.current_batch_id = batch.id

            if to_status == BatchStatus.READY_TO_PACKAGE:
                abv = calculate_abv(batch.actual_og, batch.actual_fg)
                if abv is not None:
                    batch.actual_abv = abv

            if to_status == BatchStatus.COMPLETED:
                batch.completed_at = now

            # A planned batch never acquired its vessel; leave another batch's hold alone
            if to_status in VESSEL_RELEASE_STATUSES and vessel is not None and vessel.current_batch_id == batch.id:
                vessel.status = VesselStatus.AVAILABLE
                vessel.current_batch_id = None

            return batch, from_status

        batch, from_status = run_in_transaction(self.session, _op, attempts=self.retry_attempts)
        logger.info("Batch %s: %s -> %s", batch.batch_number, from_status.value, to_status.value)
        return batch

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    def add_fermentation_entry(self, batch_id: int, data: dict) -> FermentationLogEntry:
        """A gravity reading always updates actual_fg; it seeds actual_og only when unset."""
        gravity = _optional_float(data, "gravity")
        temperature = _optional_float(data, "temperature_celsius")
        ph = _optional_float(data, "ph")

        def _op():
            batch = self._locked_batch(batch_id)
            entry = FermentationLogEntry(
                brew_batch_id=batch.id,
                logged_at=utcnow(),
                gravity=gravity,
                temperature_celsius=temperature,
                ph=ph,
                notes=data.get("notes"),
                logged_by=data.get("logged_by"),
            )
            self.session.add(entry)
            if gravity is not None:
                batch.actual_fg = gravity
                if batch.actual_og is None:
                    batch.actual_og = gravity
                batch.updated_at = utcnow()
            self.session.flush()
            return entry

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def get_fermentation_log(self, batch_id: int) -> list[FermentationLogEntry]:
        self.get(batch_id)
        return (
            self.session.query(FermentationLogEntry)
            .filter_by(brew_batch_id=batch_id)
            .order_by(FermentationLogEntry.logged_at.asc(), FermentationLogEntry.id.asc())
            .all()
        )

    def add_measurement_entry(self, batch_id: int, data: dict) -> BatchMeasurementEntry:
        """Non-null readings are copied onto the batch (og, fg, volume, ibu)."""
        readings = {key: _optional_float(data, key) for key in ("og", "fg", "volume_litres", "ibu")}

        def _op():
            batch = self._locked_batch(batch_id)
            entry = BatchMeasurementEntry(
                brew_batch_id=batch.id,
                logged_at=utcnow(),
                notes=data.get("notes"),
                logged_by=data.get("logged_by"),
                **readings,
            )
            self.session.add(entry)

            if readings["og"] is not None:
                batch.actual_og = readings["og"]
            if readings["fg"] is not None:
                batch.actual_fg = readings["fg"]
            if readings["volume_litres"] is not None:
                batch.actual_volume_litres = readings["volume_litres"]
            if readings["ibu"] is not None:
                batch.actual_ibu = readings["ibu"]
            batch.updated_at = utcnow()

            self.session.flush()
            return entry

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def get_measurement_log(self, batch_id: int) -> list[BatchMeasurementEntry]:
        self.get(batch_id)
        return (
            self.session.query(BatchMeasurementEntry)
            .filter_by(brew_batch_id=batch_id)
            .order_by(BatchMeasurementEntry.logged_at.asc(), BatchMeasurementEntry.id.asc())
            .all()
        )

    # ------------------------------------------------------------------
    # Consumption
    # ------------------------------------------------------------------

    def record_consumption(self, batch_id: int, data: dict) -> BrewIngredientConsumption:
        """
        Log actual ingredient usage against a lot and post the matching
        `consumed` movement. Fails with InvariantViolationError (and writes
        nothing) when the lot does not hold enough stock.
        """
        actual = _optional_float(data, "actual_quantity")
        if actual is None or actual <= 0:
            raise ValidationError("actual_quantity must be positive")
        planned = _optional_float(data, "planned_quantity")
        usage_stage = coerce_enum(UsageStage, data.get("usage_stage", UsageStage.OTHER), field="usage_stage")

        def _op():
            batch = self._locked_batch(batch_id)
            if batch.status not in ACTIVE_BATCH_STATUSES or batch.status == BatchStatus.PLANNED:
                raise InvalidStateError(
                    f"Cannot record consumption for batch {batch.batch_number} in status {batch.status.value}"
                )

            lot_id = data.get("inventory_lot_id")
            lot = lock_for_update(self.session.query(InventoryLot).filter_by(id=lot_id)).first()
            if lot is None:
                raise NotFoundError(f"Inventory lot {lot_id} not found")

            movement = self.ledger.post_movement(
                lot,
                MovementType.CONSUMED,
                -actual,
                reference_type="brew_batch",
                reference_id=batch.id,
                reason=f"Consumed by batch {batch.batch_number}",
                performed_by=data.get("performed_by"),
            )
            consumption = BrewIngredientConsumption(
                brew_batch_id=batch.id,
                recipe_ingredient_id=data.get("recipe_ingredient_id"),
                inventory_lot_id=lot.id,
                stock_movement_id=movement.id,
                planned_quantity=actual if planned is None else planned,
                actual_quantity=actual,
                unit=coerce_enum(Unit, data.get("unit") or lot.unit, field="unit"),
                usage_stage=usage_stage,
                notes=data.get("notes"),
            )
            self.session.add(consumption)
            self.session.flush()
            return consumption

        consumption = run_in_transaction(self.session, _op, attempts=self.retry_attempts)
        logger.info("Batch %s consumed %s from lot %s", batch_id, actual, consumption.inventory_lot_id)
        return consumption

    def get_consumptions(self, batch_id: int) -> list[BrewIngredientConsumption]:
        self.get(batch_id)
        return (
            self.session.query(BrewIngredientConsumption)
            .filter_by(brew_batch_id=batch_id)
            .order_by(BrewIngredientConsumption.id.asc())
            .all()
        )
