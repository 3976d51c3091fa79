# Overview: Purchase order state machine, line editing and goods receiving.

"""
Purchase Order Lifecycle

LIFECYCLE:
1. DRAFT: lines being added; totals recomputed on every line change
2. SENT: at least one line; order_date stamped if unset
3. ACKNOWLEDGED: supplier confirmed
4. PARTIALLY_RECEIVED / RECEIVED: derived from line receipts, never requested
5. CANCELLED: from any non-received state

RECEIVING (one transaction):
- line.quantity_received += qty (never past quantity_ordered)
- new InventoryLot with the line's unit and cost, received today
- `received` StockMovement referencing the PO
- PO status re-derived from all lines
"""

from __future__ import annotations

import logging

from ..enums import (
    OPEN_PO_STATUSES,
    PO_TRANSITIONS,
    PurchaseOrderStatus,
    Unit,
    coerce_enum,
)
from ..errors import (
    GuardViolationError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    OverReceiptError,
    ValidationError,
)
from ..models import InventoryItem, PurchaseOrder, PurchaseOrderLine, Supplier
from ..time_utils import today, utcnow
from ..validation import parse_date, parse_non_negative_int, parse_number
from .concurrency import lock_for_update, run_in_transaction
from .inventory_service import InventoryLedger
from .money import DEFAULT_TAX_RATE_BPS, document_totals, line_total_cents
from .numbering import PURCHASE_ORDER_PREFIX, next_document_number

logger = logging.getLogger(__name__)

# Lines are frozen once the PO reaches one of these
LINES_FROZEN_STATUSES = frozenset({PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED})


def derive_receipt_status(lines, current: PurchaseOrderStatus) -> PurchaseOrderStatus:
    """All lines fully received -> RECEIVED; any receipt -> PARTIALLY_RECEIVED; else unchanged."""
    if lines and all(l.quantity_received >= l.quantity_ordered for l in lines):
        return PurchaseOrderStatus.RECEIVED
    if any(l.quantity_received > 0 for l in lines):
        return PurchaseOrderStatus.PARTIALLY_RECEIVED
    return current


class PurchaseOrderLifecycle:
    def __init__(self, session, *, tax_rate_bps: int = DEFAULT_TAX_RATE_BPS, retry_attempts: int = 3):
        self.session = session
        self.tax_rate_bps = tax_rate_bps
        self.retry_attempts = retry_attempts
        self.ledger = InventoryLedger(session, retry_attempts=retry_attempts)

    # ------------------------------------------------------------------
    # Reads / locks
    # ------------------------------------------------------------------

    def get(self, po_id: int) -> PurchaseOrder:
        po = self.session.get(PurchaseOrder, po_id)
        if po is None:
            raise NotFoundError(f"Purchase order {po_id} not found")
        return po

    def list_purchase_orders(self, status=None) -> list[PurchaseOrder]:
        query = self.session.query(PurchaseOrder)
        if status is not None:
            query = query.filter(PurchaseOrder.status == coerce_enum(PurchaseOrderStatus, status, field="status"))
        return query.order_by(PurchaseOrder.id.desc()).all()

    def _locked_po(self, po_id: int) -> PurchaseOrder:
        po = lock_for_update(self.session.query(PurchaseOrder).filter_by(id=po_id)).first()
        if po is None:
            raise NotFoundError(f"Purchase order {po_id} not found")
        return po

    def _locked_line(self, line_id: int) -> PurchaseOrderLine:
        line = lock_for_update(self.session.query(PurchaseOrderLine).filter_by(id=line_id)).first()
        if line is None:
            raise NotFoundError(f"Purchase order line {line_id} not found")
        return line

    def _require_editable(self, po: PurchaseOrder) -> None:
        if po.status in LINES_FROZEN_STATUSES:
            raise InvalidStateError(f"Cannot modify lines of {po.po_number}: purchase order is {po.status.value}")

    def _recalculate_totals(self, po: PurchaseOrder) -> None:
        self.session.flush()
        lines = self.session.query(PurchaseOrderLine).filter_by(purchase_order_id=po.id).all()
        po.subtotal_cents, po.tax_cents, po.total_cents = document_totals(
            [l.line_total_cents for l in lines], self.tax_rate_bps
        )
        po.updated_at = utcnow()

    # ------------------------------------------------------------------
    # Suppliers / create
    # ------------------------------------------------------------------

    def create_supplier(self, data: dict) -> Supplier:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required")
        lead_time = parse_non_negative_int(data.get("lead_time_days"), field="lead_time_days", required=False)

        def _op():
            supplier = Supplier(
                name=name,
                contact_name=data.get("contact_name"),
                email=data.get("email"),
                phone=data.get("phone"),
                address=data.get("address"),
                website=data.get("website"),
                lead_time_days=lead_time,
                notes=data.get("notes"),
            )
            self.session.add(supplier)
            self.session.flush()
            return supplier

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def create(self, data: dict) -> PurchaseOrder:
        if data.get("supplier_id") is None:
            raise ValidationError("supplier_id is required")
        order_date = parse_date(data.get("order_date"), field="order_date")
        expected = parse_date(data.get("expected_delivery_date"), field="expected_delivery_date")

        def _op():
            supplier = self.session.get(Supplier, data["supplier_id"])
            if supplier is None:
                raise NotFoundError(f"Supplier {data['supplier_id']} not found")
            po = PurchaseOrder(
                po_number=next_document_number(self.session, PurchaseOrder.po_number, PURCHASE_ORDER_PREFIX),
                supplier_id=supplier.id,
                status=PurchaseOrderStatus.DRAFT,
                order_date=order_date,
                expected_delivery_date=expected,
                notes=data.get("notes"),
            )
            self.session.add(po)
            self.session.flush()
            return po

        po = run_in_transaction(
            self.session, _op, attempts=self.retry_attempts, retry_integrity_errors=True
        )
        logger.info("Created purchase order %s for supplier %s", po.po_number, po.supplier_id)
        return po

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    def add_line(self, po_id: int, data: dict) -> PurchaseOrderLine:
        quantity = parse_number(data.get("quantity_ordered"), field="quantity_ordered")
        if quantity <= 0:
            raise ValidationError("quantity_ordered must be positive")
        if data.get("inventory_item_id") is None:
            raise ValidationError("inventory_item_id is required")

        def _op():
            po = self._locked_po(po_id)
            self._require_editable(po)
            item = self.session.get(InventoryItem, data["inventory_item_id"])
            if item is None:
                raise NotFoundError(f"Inventory item {data['inventory_item_id']} not found")

            unit_cost = parse_non_negative_int(data.get("unit_cost_cents"), field="unit_cost_cents", required=False)
            if unit_cost is None:
                unit_cost = item.unit_cost_cents

            line = PurchaseOrderLine(
                purchase_order_id=po.id,
                inventory_item_id=item.id,
                quantity_ordered=quantity,
                quantity_received=0,
                unit=coerce_enum(Unit, data.get("unit") or item.unit, field="unit"),
                unit_cost_cents=unit_cost,
                line_total_cents=line_total_cents(quantity, unit_cost),
                notes=data.get("notes"),
            )
            po.lines.append(line)
            self._recalculate_totals(po)
            return line

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def update_line(self, line_id: int, data: dict) -> PurchaseOrderLine:
        def _op():
            line = self._locked_line(line_id)
            po = self._locked_po(line.purchase_order_id)
            self._require_editable(po)

            qty = line.quantity_ordered
            if data.get("quantity_ordered") is not None:
                qty = parse_number(data["quantity_ordered"], field="quantity_ordered")
            cost = line.unit_cost_cents
            if data.get("unit_cost_cents") is not None:
                cost = parse_non_negative_int(data["unit_cost_cents"], field="unit_cost_cents")

            if qty <= 0:
                raise ValidationError("quantity_ordered must be positive")
            if qty < line.quantity_received:
                raise GuardViolationError(
                    f"Cannot set quantity ordered to {qty}: {line.quantity_received} already received",
                    details={"quantity_received": line.quantity_received},
                )

            line.quantity_ordered = qty
            line.unit_cost_cents = cost
            line.line_total_cents = line_total_cents(qty, cost)
            if "notes" in data:
                line.notes = data["notes"]
            self._recalculate_totals(po)
            return line

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def remove_line(self, line_id: int) -> PurchaseOrder:
        def _op():
            line = self._locked_line(line_id)
            po = self._locked_po(line.purchase_order_id)
            self._require_editable(po)
            if line.quantity_received > 0:
                raise GuardViolationError(
                    f"Cannot remove line {line.id} of {po.po_number}: goods already received against it"
                )
            po.lines.remove(line)
            self._recalculate_totals(po)
            return po

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    # ------------------------------------------------------------------
    # Transition
    # ------------------------------------------------------------------

    def transition(self, po_id: int, to_status) -> PurchaseOrder:
        to_status = coerce_enum(PurchaseOrderStatus, to_status, field="status")

        def _op():
            po = self._locked_po(po_id)
            from_status = po.status
            if to_status not in PO_TRANSITIONS[from_status]:
                raise InvalidTransitionError("purchase order", from_status.value, to_status.value)

            if from_status == PurchaseOrderStatus.DRAFT and to_status == PurchaseOrderStatus.SENT:
                if not po.lines:
                    raise GuardViolationError(
                        f"At least one line item is required before sending {po.po_number}"
                    )
                if po.order_date is None:
                    po.order_date = today()

            po.status = to_status
            po.updated_at = utcnow()
            return po, from_status

        po, from_status = run_in_transaction(self.session, _op, attempts=self.retry_attempts)
        logger.info("Purchase order %s: %s -> %s", po.po_number, from_status.value, to_status.value)
        return po

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    def receive_line(
        self,
        po_line_id: int,
        quantity_received,
        lot_number: str,
        location: str | None = None,
        notes: str | None = None,
        performed_by: str | None = None,
    ) -> dict:
        """Returns {"lot_id", "new_po_status"}."""
        quantity = parse_number(quantity_received, field="quantity_received")
        if quantity <= 0:
            raise ValidationError("quantity_received must be positive")
        if not (lot_number or "").strip():
            raise ValidationError("lot_number is required")

        def _op():
            line = self._locked_line(po_line_id)
            po = self._locked_po(line.purchase_order_id)

            if po.status not in OPEN_PO_STATUSES:
                raise InvalidStateError(
                    f'Cannot receive goods for {po.po_number} with status "{po.status.value}"'
                )

            remaining = line.quantity_ordered - line.quantity_received
            if quantity > remaining:
                raise OverReceiptError(
                    f"Cannot receive {quantity}: only {remaining} remaining on this line",
                    remaining=remaining,
                )

            line.quantity_received = line.quantity_received + quantity

            lot = self.ledger.receive_into_new_lot(
                line.inventory_item,
                lot_number=lot_number,
                quantity=quantity,
                unit=line.unit,
                unit_cost_cents=line.unit_cost_cents,
                received_date=today(),
                purchase_order_id=po.id,
                location=location,
                notes=notes,
                reference_type="purchase_order",
                reference_id=po.id,
                reason=f"Received against {po.po_number}",
                performed_by=performed_by,
            )

            self.session.flush()
            new_status = derive_receipt_status(po.lines, po.status)
            if new_status != po.status:
                po.status = new_status
                po.updated_at = utcnow()
            return {"lot_id": lot.id, "new_po_status": new_status.value}, po.po_number

        result, po_number = run_in_transaction(self.session, _op, attempts=self.retry_attempts)
        logger.info(
            "Received %s on %s line %s into lot %s (PO now %s)",
            quantity, po_number, po_line_id, result["lot_id"], result["new_po_status"],
        )
        return result
