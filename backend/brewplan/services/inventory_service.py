# Overview: Inventory ledger (lots + append-only movements) and the per-item position calculator.

"""
Inventory Service

LEDGER RULE: an InventoryLot's quantity_on_hand is the running sum of its
StockMovement rows. The only code that writes quantity_on_hand is
InventoryLedger.post_movement, which inserts the movement and adjusts the lot
in the caller's transaction and refuses to take a lot below zero.

POSITION (per item, recomputed from live rows on every call):
    on_hand    = sum(lot.quantity_on_hand)
    allocated  = sum over planned/brewing batches of
                 ingredient.quantity * batch.batch_size_litres / recipe.batch_size_litres
    available  = on_hand - allocated            (may be negative)
    on_order   = sum(ordered - received) over lines of open POs
    projected  = available + on_order
"""

from __future__ import annotations

import logging

from sqlalchemy import func

from ..enums import (
    ALLOCATING_BATCH_STATUSES,
    OPEN_PO_STATUSES,
    InventoryCategory,
    MovementType,
    Unit,
    coerce_enum,
)
from ..errors import InvariantViolationError, NotFoundError, ValidationError
from ..models import (
    BrewBatch,
    InventoryItem,
    InventoryLot,
    PurchaseOrder,
    PurchaseOrderLine,
    Recipe,
    RecipeIngredient,
    StockMovement,
)
from ..time_utils import today
from ..validation import parse_date, parse_non_negative_int, parse_number
from .concurrency import lock_for_update, run_in_transaction

logger = logging.getLogger(__name__)

# Movement types with a fixed sign; the rest accept either direction
INBOUND_MOVEMENTS = frozenset({MovementType.RECEIVED, MovementType.RETURNED})
OUTBOUND_MOVEMENTS = frozenset({MovementType.CONSUMED, MovementType.WRITTEN_OFF})


class InventoryLedger:
    def __init__(self, session, *, retry_attempts: int = 3):
        self.session = session
        self.retry_attempts = retry_attempts

    # ------------------------------------------------------------------
    # Items (reference data)
    # ------------------------------------------------------------------

    def create_item(self, data: dict) -> InventoryItem:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required")
        category = coerce_enum(InventoryCategory, data.get("category"), field="category")
        unit = coerce_enum(Unit, data.get("unit"), field="unit")
        unit_cost_cents = parse_non_negative_int(data.get("unit_cost_cents"), field="unit_cost_cents", required=False) or 0
        reorder = {
            key: parse_number(data.get(key), field=key, required=False)
            for key in ("reorder_point", "reorder_qty", "minimum_order_qty")
        }
        for key, value in reorder.items():
            if value is not None and value < 0:
                raise ValidationError(f"{key} must be >= 0")

        def _op():
            item = InventoryItem(
                name=name,
                sku=data.get("sku"),
                supplier_id=data.get("supplier_id"),
                category=category,
                subcategory=data.get("subcategory"),
                unit=unit,
                unit_cost_cents=unit_cost_cents,
                notes=data.get("notes"),
                **reorder,
            )
            self.session.add(item)
            self.session.flush()
            return item

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def get_item(self, item_id: int) -> InventoryItem:
        item = self.session.get(InventoryItem, item_id)
        if item is None:
            raise NotFoundError(f"Inventory item {item_id} not found")
        return item

    # ------------------------------------------------------------------
    # Movements
    # ------------------------------------------------------------------

    def post_movement(
        self,
        lot: InventoryLot,
        movement_type: MovementType,
        quantity: float,
        *,
        reference_type: str | None = None,
        reference_id: int | None = None,
        reason: str | None = None,
        performed_by: str | None = None,
    ) -> StockMovement:
        """
        Append a movement and apply it to the lot. Does NOT commit.

        Callers run this inside their own run_in_transaction() op so the
        movement, the lot update and their document changes land together.
        """
        movement_type = coerce_enum(MovementType, movement_type, field="movement_type")
        quantity = parse_number(quantity, field="quantity")
        if quantity == 0:
            raise ValidationError("quantity must be non-zero")
        if movement_type in INBOUND_MOVEMENTS and quantity < 0:
            raise ValidationError(f"{movement_type.value} movements must have a positive quantity")
        if movement_type in OUTBOUND_MOVEMENTS and quantity > 0:
            raise ValidationError(f"{movement_type.value} movements must have a negative quantity")

        new_qty = (lot.quantity_on_hand or 0) + quantity
        if new_qty < 0:
            raise InvariantViolationError(
                f"Lot {lot.lot_number} has {lot.quantity_on_hand} on hand; "
                f"a movement of {quantity} would make it negative",
                details={"lot_id": lot.id, "quantity_on_hand": lot.quantity_on_hand, "quantity": quantity},
            )

        movement = StockMovement(
            inventory_lot_id=lot.id,
            movement_type=movement_type,
            quantity=quantity,
            reference_type=reference_type,
            reference_id=reference_id,
            reason=reason,
            performed_by=performed_by,
        )
        lot.quantity_on_hand = new_qty
        self.session.add(movement)
        self.session.flush()
        return movement

    def receive_into_new_lot(
        self,
        item: InventoryItem,
        *,
        lot_number: str,
        quantity: float,
        unit=None,
        unit_cost_cents: int | None = None,
        received_date=None,
        expiry_date=None,
        purchase_order_id: int | None = None,
        location: str | None = None,
        notes: str | None = None,
        reference_type: str | None = None,
        reference_id: int | None = None,
        reason: str | None = None,
        performed_by: str | None = None,
    ) -> InventoryLot:
        """Create a lot at zero and post its opening `received` movement. Does NOT commit."""
        lot_number = (lot_number or "").strip()
        if not lot_number:
            raise ValidationError("lot_number is required")
        quantity = parse_number(quantity, field="quantity")
        if quantity <= 0:
            raise ValidationError("quantity must be positive")

        lot = InventoryLot(
            inventory_item_id=item.id,
            lot_number=lot_number,
            quantity_on_hand=0,
            unit=coerce_enum(Unit, unit, field="unit") if unit is not None else item.unit,
            unit_cost_cents=item.unit_cost_cents if unit_cost_cents is None else parse_non_negative_int(
                unit_cost_cents, field="unit_cost_cents"
            ),
            received_date=parse_date(received_date, field="received_date") or today(),
            expiry_date=parse_date(expiry_date, field="expiry_date"),
            purchase_order_id=purchase_order_id,
            location=location,
            notes=notes,
        )
        self.session.add(lot)
        self.session.flush()

        self.post_movement(
            lot,
            MovementType.RECEIVED,
            quantity,
            reference_type=reference_type,
            reference_id=reference_id,
            reason=reason,
            performed_by=performed_by,
        )
        return lot

    def create_lot(self, item_id: int, data: dict) -> InventoryLot:
        """Manual lot receipt (stock count, gift, opening balance)."""

        def _op():
            item = self.get_item(item_id)
            return self.receive_into_new_lot(
                item,
                lot_number=data.get("lot_number"),
                quantity=data.get("quantity"),
                unit=data.get("unit"),
                unit_cost_cents=data.get("unit_cost_cents"),
                received_date=data.get("received_date"),
                expiry_date=data.get("expiry_date"),
                location=data.get("location"),
                notes=data.get("notes"),
                reason="Initial lot receipt",
                performed_by=data.get("performed_by"),
            )

        lot = run_in_transaction(self.session, _op, attempts=self.retry_attempts)
        logger.info("Created lot %s for item %s", lot.lot_number, item_id)
        return lot

    def record_movement(self, lot_id: int, data: dict) -> StockMovement:
        """Manual adjustment / write-off / transfer / return against an existing lot."""

        def _op():
            lot = lock_for_update(self.session.query(InventoryLot).filter_by(id=lot_id)).first()
            if lot is None:
                raise NotFoundError(f"Inventory lot {lot_id} not found")
            return self.post_movement(
                lot,
                data.get("movement_type"),
                data.get("quantity"),
                reference_type=data.get("reference_type"),
                reference_id=data.get("reference_id"),
                reason=data.get("reason"),
                performed_by=data.get("performed_by"),
            )

        movement = run_in_transaction(self.session, _op, attempts=self.retry_attempts)
        logger.info(
            "Recorded %s movement of %s on lot %s",
            movement.movement_type.value, movement.quantity, lot_id,
        )
        return movement

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def get_lots(self, item_id: int, *, include_empty: bool = True) -> list[InventoryLot]:
        self.get_item(item_id)
        query = self.session.query(InventoryLot).filter(InventoryLot.inventory_item_id == item_id)
        if not include_empty:
            query = query.filter(InventoryLot.quantity_on_hand > 0)
        return query.order_by(InventoryLot.received_date.asc(), InventoryLot.id.asc()).all()

    def get_movements(self, item_id: int, *, limit: int = 200) -> list[StockMovement]:
        self.get_item(item_id)
        return (
            self.session.query(StockMovement)
            .join(InventoryLot, StockMovement.inventory_lot_id == InventoryLot.id)
            .filter(InventoryLot.inventory_item_id == item_id)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(limit)
            .all()
        )


class PositionCalculator:
    """Read-only. Every figure is recomputed from live rows; nothing is cached."""

    def __init__(self, session):
        self.session = session

    def _on_hand(self, item_id: int) -> float:
        total = (
            self.session.query(func.coalesce(func.sum(InventoryLot.quantity_on_hand), 0.0))
            .filter(InventoryLot.inventory_item_id == item_id)
            .scalar()
        )
        return float(total or 0)

    def _allocated(self, item_id: int) -> float:
        scaled = RecipeIngredient.quantity * (BrewBatch.batch_size_litres / Recipe.batch_size_litres)
        total = (
            self.session.query(func.coalesce(func.sum(scaled), 0.0))
            .select_from(BrewBatch)
            .join(Recipe, BrewBatch.recipe_id == Recipe.id)
            .join(RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id)
            .filter(
                RecipeIngredient.inventory_item_id == item_id,
                BrewBatch.status.in_(list(ALLOCATING_BATCH_STATUSES)),
            )
            .scalar()
        )
        return float(total or 0)

    def _on_order(self, item_id: int) -> float:
        remaining = PurchaseOrderLine.quantity_ordered - PurchaseOrderLine.quantity_received
        total = (
            self.session.query(func.coalesce(func.sum(remaining), 0.0))
            .join(PurchaseOrder, PurchaseOrderLine.purchase_order_id == PurchaseOrder.id)
            .filter(
                PurchaseOrderLine.inventory_item_id == item_id,
                PurchaseOrder.status.in_(list(OPEN_PO_STATUSES)),
            )
            .scalar()
        )
        return float(total or 0)

    def get_position(self, item_id: int) -> dict:
        if self.session.get(InventoryItem, item_id) is None:
            raise NotFoundError(f"Inventory item {item_id} not found")

        on_hand = self._on_hand(item_id)
        allocated = self._allocated(item_id)
        available = on_hand - allocated
        on_order = self._on_order(item_id)
        return {
            "inventory_item_id": item_id,
            "quantity_on_hand": on_hand,
            "quantity_allocated": allocated,
            "quantity_available": available,
            "quantity_on_order": on_order,
            "quantity_projected": available + on_order,
        }

    def get_position_all(self) -> list[dict]:
        """Non-archived items by name, each merged with its position."""
        items = (
            self.session.query(InventoryItem)
            .filter(InventoryItem.archived.is_(False))
            .order_by(InventoryItem.name.asc())
            .all()
        )
        rows = []
        for item in items:
            row = item.to_dict()
            row.update(self.get_position(item.id))
            rows.append(row)
        return rows
