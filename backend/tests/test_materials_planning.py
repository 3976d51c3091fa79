# Overview: Pytest coverage for materials requirements, the brew schedule, purchase timing and demand views.

from datetime import date, timedelta

import pytest

from brewplan.enums import BatchStatus, PurchaseOrderStatus
from brewplan.models import BrewBatch, PurchaseOrder, PurchaseOrderLine
from brewplan.services.inventory_service import InventoryLedger
from brewplan.services.order_service import OrderLifecycle
from brewplan.services.planning_service import ORDER_BUFFER_DAYS, SUGGESTED_BREW_LEAD_DAYS, MaterialsPlanner
from brewplan.time_utils import today


def _batch(db_session, recipe, number, size, status, planned_date=None, vessel=None):
    batch = BrewBatch(
        batch_number=number,
        recipe_id=recipe.id,
        status=status,
        batch_size_litres=size,
        planned_date=planned_date,
        vessel_id=vessel.id if vessel is not None else None,
    )
    db_session.add(batch)
    db_session.commit()
    return batch


@pytest.fixture
def planner(db_session):
    return MaterialsPlanner(db_session)


class TestMaterialsRequirements:
    def test_shortfall(self, db_session, planner, malt, recipe, supplier):
        InventoryLedger(db_session).create_lot(malt.id, {"lot_number": "MO-1", "quantity": 20})
        _batch(db_session, recipe, "BP-2000-001", 400, BatchStatus.PLANNED)

        rows = planner.get_materials_requirements()

        assert len(rows) == 1
        row = rows[0]
        assert row["inventory_item_name"] == "Maris Otter"
        assert row["unit"] == "kg"
        assert row["quantity_needed"] == pytest.approx(30)
        assert row["quantity_allocated"] == pytest.approx(30)
        assert row["quantity_available"] == pytest.approx(-10)
        # needed - available - on_order = 30 - (-10) - 0
        assert row["shortfall"] == pytest.approx(40)

    def test_on_order_covers_shortfall(self, db_session, planner, malt, recipe, supplier):
        InventoryLedger(db_session).create_lot(malt.id, {"lot_number": "MO-1", "quantity": 50})
        _batch(db_session, recipe, "BP-2000-001", 200, BatchStatus.PLANNED)
        po = PurchaseOrder(po_number="PO-2000-001", supplier_id=supplier.id, status=PurchaseOrderStatus.SENT)
        db_session.add(po)
        db_session.flush()
        db_session.add(PurchaseOrderLine(
            purchase_order_id=po.id, inventory_item_id=malt.id, quantity_ordered=25, unit=malt.unit,
        ))
        db_session.commit()

        row = planner.get_materials_requirements()[0]
        assert row["quantity_needed"] == pytest.approx(15)
        assert row["quantity_on_order"] == pytest.approx(25)
        assert row["shortfall"] == 0

    def test_brewing_batches_are_not_needed(self, db_session, planner, recipe):
        _batch(db_session, recipe, "BP-2000-001", 100, BatchStatus.BREWING)
        assert planner.get_materials_requirements() == []


class TestSchedule:
    def test_schedule_orders_by_planned_date(self, db_session, planner, recipe, vessel):
        _batch(db_session, recipe, "BP-2000-002", 100, BatchStatus.PLANNED, date(2030, 5, 2), vessel)
        _batch(db_session, recipe, "BP-2000-001", 100, BatchStatus.FERMENTING, date(2030, 5, 1))
        _batch(db_session, recipe, "BP-2000-003", 100, BatchStatus.COMPLETED, date(2030, 4, 1))

        schedule = planner.get_brew_schedule()

        assert [s["batch_number"] for s in schedule] == ["BP-2000-001", "BP-2000-002"]
        assert schedule[0]["vessel_name"] is None
        assert schedule[1]["vessel_name"] == "FV1"
        assert schedule[1]["planned_date"] == "2030-05-02"


class TestPurchaseTiming:
    def test_order_by_date(self, db_session, planner, malt, recipe, supplier):
        _batch(db_session, recipe, "BP-2000-001", 100, BatchStatus.PLANNED, date(2030, 5, 20))
        _batch(db_session, recipe, "BP-2000-002", 100, BatchStatus.PLANNED, date(2030, 5, 10))
        po = PurchaseOrder(po_number="PO-2000-001", supplier_id=supplier.id, status=PurchaseOrderStatus.ACKNOWLEDGED)
        db_session.add(po)
        db_session.commit()

        timing = planner.get_purchase_timing()

        item = timing["items_with_timing"][0]
        assert item["required_by"] == "2030-05-10"
        assert item["batch_number"] == "BP-2000-002"
        # 5 days lead time + buffer
        assert ORDER_BUFFER_DAYS == 2
        assert item["order_by"] == "2030-05-03"
        assert item["supplier_name"] == "Malt Merchants"

        assert [p["po_number"] for p in timing["pending_deliveries"]] == ["PO-2000-001"]

    def test_no_timing_without_shortfall(self, db_session, planner, malt, recipe):
        InventoryLedger(db_session).create_lot(malt.id, {"lot_number": "MO-1", "quantity": 100})
        _batch(db_session, recipe, "BP-2000-001", 100, BatchStatus.PLANNED, date(2030, 5, 20))

        timing = planner.get_purchase_timing()
        assert timing["items_with_timing"] == []
        assert timing["pending_deliveries"] == []


@pytest.fixture
def confirmed_order(db_session, customer, recipe, keg_stock):
    orders = OrderLifecycle(db_session)

    def _make(quantity, days_out, *, confirm=True):
        order = orders.create({
            "customer_id": customer.id,
            "delivery_date": (today() + timedelta(days=days_out)).isoformat(),
        })
        orders.add_line(order.id, {
            "recipe_id": recipe.id, "format": "keg_50l", "quantity": quantity, "finished_goods_id": keg_stock.id,
        })
        if confirm:
            orders.transition(order.id, "confirmed")
        return orders.get(order.id)
    return _make


class TestDemandView:
    def test_upcoming_orders_and_unfulfillable_demand(self, planner, confirmed_order, recipe):
        soon = confirmed_order(10, 7)
        confirmed_order(15, 70)
        confirmed_order(50, 3, confirm=False)

        view = planner.get_demand_view()

        assert view["weeks_ahead"] == 8
        assert [o["id"] for o in view["upcoming_orders"]] == [soon.id]
        assert view["upcoming_orders"][0]["customer_name"] == "The Local"
        assert view["demand"] == [{
            "recipe_id": recipe.id,
            "recipe_name": "Pale Ale",
            "format": "keg_50l",
            "total_quantity": 25,
            "available_quantity": 20,
        }]
        assert view["unfulfillable"][0]["shortfall"] == 5

    def test_longer_horizon(self, planner, confirmed_order):
        confirmed_order(15, 70)
        assert len(planner.get_demand_view(weeks_ahead=12)["upcoming_orders"]) == 1

    def test_covered_demand_is_not_unfulfillable(self, planner, confirmed_order):
        confirmed_order(20, 7)
        assert planner.get_demand_view()["unfulfillable"] == []


class TestPackagingPriority:
    def test_oldest_brew_first_with_demand(self, db_session, planner, recipe, packaged_batch, confirmed_order):
        packaged_batch.brew_date = today() - timedelta(days=30)
        newer = _batch(db_session, recipe, "BP-2000-002", 100, BatchStatus.READY_TO_PACKAGE)
        newer.brew_date = today() - timedelta(days=10)
        db_session.commit()
        confirmed_order(4, 14)

        priority = planner.get_packaging_priority()

        assert [p["batch_number"] for p in priority] == ["BP-2000-001", "BP-2000-002"]
        assert priority[0]["days_in_tank"] == 30
        assert priority[0]["order_demand"] == 4
        assert priority[0]["earliest_delivery"] == (today() + timedelta(days=14)).isoformat()

    def test_unbrewed_date_counts_zero_days(self, planner, packaged_batch):
        priority = planner.get_packaging_priority()
        assert priority[0]["days_in_tank"] == 0
        assert priority[0]["order_demand"] == 0


class TestSuggestedBrews:
    def test_unmet_demand_is_suggested(self, planner, confirmed_order, recipe):
        confirmed_order(18, 30)
        confirmed_order(7, 40)

        suggestions = planner.get_suggested_brews()

        assert len(suggestions) == 1
        suggestion = suggestions[0]
        assert suggestion["recipe_id"] == recipe.id
        assert suggestion["demand_quantity"] == 25
        assert suggestion["available_stock"] == 20
        assert suggestion["unmet_quantity"] == 5
        assert suggestion["active_batch_count"] == 1
        assert suggestion["latest_brew_date"] == (today() + timedelta(days=30 - SUGGESTED_BREW_LEAD_DAYS)).isoformat()

    def test_covered_recipe_in_production_is_skipped(self, planner, confirmed_order):
        confirmed_order(5, 30)
        assert planner.get_suggested_brews() == []

    def test_covered_recipe_without_production_is_still_listed(self, db_session, planner, confirmed_order, packaged_batch):
        confirmed_order(5, 30)
        packaged_batch.status = BatchStatus.COMPLETED
        db_session.commit()

        suggestions = planner.get_suggested_brews()
        assert suggestions[0]["active_batch_count"] == 0
        assert suggestions[0]["unmet_quantity"] == 0
