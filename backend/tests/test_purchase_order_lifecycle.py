# Overview: Pytest coverage for purchase orders: line editing, totals, transitions and receiving.

import pytest

from brewplan.enums import MovementType, PurchaseOrderStatus
from brewplan.errors import (
    GuardViolationError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    OverReceiptError,
    ValidationError,
)
from brewplan.models import InventoryLot, PurchaseOrder, PurchaseOrderLine, StockMovement
from brewplan.services.purchasing_service import PurchaseOrderLifecycle, derive_receipt_status
from brewplan.time_utils import today


@pytest.fixture
def lifecycle(db_session):
    return PurchaseOrderLifecycle(db_session, tax_rate_bps=1000)


@pytest.fixture
def draft_po(lifecycle, supplier):
    return lifecycle.create({"supplier_id": supplier.id})


@pytest.fixture
def sent_po(lifecycle, draft_po, malt):
    """Sent PO with a single 50 kg malt line."""
    lifecycle.add_line(draft_po.id, {"inventory_item_id": malt.id, "quantity_ordered": 50})
    return lifecycle.transition(draft_po.id, "sent")


class TestCreateAndLines:
    def test_create_numbers_po(self, draft_po):
        assert draft_po.po_number == f"PO-{today().year}-001"
        assert draft_po.status == PurchaseOrderStatus.DRAFT
        assert draft_po.total_cents == 0

    def test_create_requires_known_supplier(self, lifecycle):
        with pytest.raises(NotFoundError):
            lifecycle.create({"supplier_id": 404})

    def test_add_line_recomputes_totals(self, lifecycle, draft_po, malt, hops):
        line = lifecycle.add_line(draft_po.id, {"inventory_item_id": malt.id, "quantity_ordered": 50})
        assert line.unit_cost_cents == 250
        assert line.line_total_cents == 12500

        lifecycle.add_line(draft_po.id, {"inventory_item_id": hops.id, "quantity_ordered": 2, "unit_cost_cents": 4000})

        po = lifecycle.get(draft_po.id)
        assert po.subtotal_cents == 20500
        assert po.tax_cents == 2050
        assert po.total_cents == 22550

    def test_fractional_quantity_rounds_half_up(self, lifecycle, draft_po, malt):
        line = lifecycle.add_line(
            draft_po.id, {"inventory_item_id": malt.id, "quantity_ordered": 0.5, "unit_cost_cents": 3}
        )
        assert line.line_total_cents == 2

    def test_add_line_rejects_non_positive(self, lifecycle, draft_po, malt):
        with pytest.raises(ValidationError):
            lifecycle.add_line(draft_po.id, {"inventory_item_id": malt.id, "quantity_ordered": 0})

    def test_supplier_lead_time_must_be_whole_days(self, lifecycle):
        with pytest.raises(ValidationError):
            lifecycle.create_supplier({"name": "Hop Farm", "lead_time_days": "abc"})
        with pytest.raises(ValidationError):
            lifecycle.create_supplier({"name": "Hop Farm", "lead_time_days": -2})
        supplier = lifecycle.create_supplier({"name": "Hop Farm", "lead_time_days": "7"})
        assert supplier.lead_time_days == 7

    def test_update_and_remove_line(self, lifecycle, draft_po, malt):
        line = lifecycle.add_line(draft_po.id, {"inventory_item_id": malt.id, "quantity_ordered": 50})

        lifecycle.update_line(line.id, {"quantity_ordered": 20})
        assert lifecycle.get(draft_po.id).subtotal_cents == 5000

        po = lifecycle.remove_line(line.id)
        assert po.lines == []
        assert po.total_cents == 0

    def test_cannot_drop_ordered_below_received(self, lifecycle, sent_po):
        line = sent_po.lines[0]
        lifecycle.receive_line(line.id, 30, "MO-1")

        with pytest.raises(GuardViolationError):
            lifecycle.update_line(line.id, {"quantity_ordered": 25})

    def test_cannot_remove_received_line(self, lifecycle, sent_po):
        line = sent_po.lines[0]
        lifecycle.receive_line(line.id, 10, "MO-1")

        with pytest.raises(GuardViolationError):
            lifecycle.remove_line(line.id)

    def test_lines_frozen_once_cancelled(self, lifecycle, draft_po, malt):
        line = lifecycle.add_line(draft_po.id, {"inventory_item_id": malt.id, "quantity_ordered": 5})
        lifecycle.transition(draft_po.id, "cancelled")

        with pytest.raises(InvalidStateError):
            lifecycle.update_line(line.id, {"quantity_ordered": 6})
        with pytest.raises(InvalidStateError):
            lifecycle.add_line(draft_po.id, {"inventory_item_id": malt.id, "quantity_ordered": 1})


class TestTransitions:
    def test_send_requires_lines(self, db_session, lifecycle, draft_po):
        with pytest.raises(GuardViolationError):
            lifecycle.transition(draft_po.id, "sent")
        assert db_session.get(PurchaseOrder, draft_po.id).status == PurchaseOrderStatus.DRAFT

    def test_send_stamps_order_date(self, sent_po):
        assert sent_po.status == PurchaseOrderStatus.SENT
        assert sent_po.order_date == today()

    def test_receipt_statuses_cannot_be_requested(self, lifecycle, sent_po):
        with pytest.raises(InvalidTransitionError):
            lifecycle.transition(sent_po.id, "received")
        with pytest.raises(InvalidTransitionError):
            lifecycle.transition(sent_po.id, "partially_received")

    def test_received_is_terminal(self, lifecycle, sent_po):
        lifecycle.receive_line(sent_po.lines[0].id, 50, "MO-1")
        for target in PurchaseOrderStatus:
            with pytest.raises(InvalidTransitionError):
                lifecycle.transition(sent_po.id, target)


class TestReceiving:
    def test_partial_then_full_receipt(self, db_session, lifecycle, sent_po, malt):
        line_id = sent_po.lines[0].id

        first = lifecycle.receive_line(line_id, 30, "MO-1", location="Cold room")
        assert first["new_po_status"] == "partially_received"

        lot = db_session.get(InventoryLot, first["lot_id"])
        assert lot.inventory_item_id == malt.id
        assert lot.quantity_on_hand == pytest.approx(30)
        assert lot.purchase_order_id == sent_po.id
        assert lot.received_date == today()

        movement = db_session.query(StockMovement).filter_by(inventory_lot_id=lot.id).one()
        assert movement.movement_type == MovementType.RECEIVED
        assert movement.reference_type == "purchase_order"
        assert movement.reason == f"Received against {sent_po.po_number}"

        second = lifecycle.receive_line(line_id, 20, "MO-2")
        assert second["new_po_status"] == "received"
        assert db_session.get(PurchaseOrderLine, line_id).quantity_received == pytest.approx(50)

    def test_over_receipt_is_rejected(self, db_session, lifecycle, sent_po):
        line_id = sent_po.lines[0].id
        lifecycle.receive_line(line_id, 30, "MO-1")

        with pytest.raises(OverReceiptError) as exc:
            lifecycle.receive_line(line_id, 25, "MO-2")

        assert exc.value.remaining == pytest.approx(20)
        assert exc.value.details["remaining"] == pytest.approx(20)
        assert db_session.get(PurchaseOrderLine, line_id).quantity_received == pytest.approx(30)
        assert db_session.query(InventoryLot).count() == 1

    @pytest.mark.parametrize("quantity", ["nan", "inf", "lots"])
    def test_receipt_quantity_must_be_finite(self, db_session, lifecycle, sent_po, quantity):
        line_id = sent_po.lines[0].id
        with pytest.raises(ValidationError):
            lifecycle.receive_line(line_id, quantity, "LOT-N")

        assert db_session.get(PurchaseOrderLine, line_id).quantity_received == 0
        assert db_session.query(InventoryLot).count() == 0

    def test_draft_po_cannot_receive(self, lifecycle, draft_po, malt):
        line = lifecycle.add_line(draft_po.id, {"inventory_item_id": malt.id, "quantity_ordered": 5})
        with pytest.raises(InvalidStateError):
            lifecycle.receive_line(line.id, 5, "MO-1")

    def test_receive_requires_lot_number(self, lifecycle, sent_po):
        with pytest.raises(ValidationError):
            lifecycle.receive_line(sent_po.lines[0].id, 5, "  ")


class TestDeriveReceiptStatus:
    def test_derivation(self):
        full = PurchaseOrderLine(quantity_ordered=5, quantity_received=5)
        part = PurchaseOrderLine(quantity_ordered=5, quantity_received=2)
        none = PurchaseOrderLine(quantity_ordered=5, quantity_received=0)

        assert derive_receipt_status([full], PurchaseOrderStatus.SENT) == PurchaseOrderStatus.RECEIVED
        assert derive_receipt_status([full, none], PurchaseOrderStatus.SENT) == PurchaseOrderStatus.PARTIALLY_RECEIVED
        assert derive_receipt_status([part], PurchaseOrderStatus.ACKNOWLEDGED) == PurchaseOrderStatus.PARTIALLY_RECEIVED
        assert derive_receipt_status([none], PurchaseOrderStatus.ACKNOWLEDGED) == PurchaseOrderStatus.ACKNOWLEDGED
