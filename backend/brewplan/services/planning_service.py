# Overview: Read-only planning views: materials, brew schedule, purchase timing and sales demand.

"""
Materials Planning

quantity_needed covers PLANNED batches only (what still has to be brewed);
the embedded position's allocated figure covers planned + brewing.

    shortfall = max(0, needed - available - on_order)

Each call recomputes positions per item (no caching). For a brewery-sized
catalogue this is a handful of aggregate queries per item.
"""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import func

from ..enums import OPEN_PO_STATUSES, BatchStatus, OrderStatus
from ..models import (
    BrewBatch,
    Customer,
    FinishedGoodsStock,
    InventoryItem,
    Order,
    OrderLine,
    PurchaseOrder,
    Recipe,
    RecipeIngredient,
    Supplier,
    Vessel,
)
from ..time_utils import to_iso_date, today
from .inventory_service import PositionCalculator

# Days of slack added on top of supplier lead time when computing order-by dates
ORDER_BUFFER_DAYS = 2

# Weeks of upcoming deliveries shown by the demand view
DEFAULT_DEMAND_WEEKS = 8

# Brew-to-packaged time assumed when suggesting the latest brew date
SUGGESTED_BREW_LEAD_DAYS = 21

# Orders whose lines count as outstanding demand
DEMAND_ORDER_STATUSES = (OrderStatus.CONFIRMED, OrderStatus.PICKING)

SCHEDULE_STATUSES = (
    BatchStatus.PLANNED,
    BatchStatus.BREWING,
    BatchStatus.FERMENTING,
    BatchStatus.CONDITIONING,
    BatchStatus.READY_TO_PACKAGE,
)


class MaterialsPlanner:
    def __init__(self, session):
        self.session = session
        self.positions = PositionCalculator(session)

    def get_materials_requirements(self) -> list[dict]:
        scaled = RecipeIngredient.quantity * (BrewBatch.batch_size_litres / Recipe.batch_size_litres)
        needed_rows = (
            self.session.query(
                RecipeIngredient.inventory_item_id,
                InventoryItem.name,
                InventoryItem.unit,
                func.sum(scaled),
            )
            .select_from(BrewBatch)
            .join(Recipe, BrewBatch.recipe_id == Recipe.id)
            .join(RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id)
            .join(InventoryItem, RecipeIngredient.inventory_item_id == InventoryItem.id)
            .filter(BrewBatch.status == BatchStatus.PLANNED)
            .group_by(RecipeIngredient.inventory_item_id, InventoryItem.name, InventoryItem.unit)
            .order_by(InventoryItem.name.asc())
            .all()
        )

        requirements = []
        for item_id, name, unit, needed in needed_rows:
            needed = float(needed or 0)
            position = self.positions.get_position(item_id)
            shortfall = max(0.0, needed - position["quantity_available"] - position["quantity_on_order"])
            requirements.append({
                "inventory_item_id": item_id,
                "inventory_item_name": name,
                "unit": unit.value,
                "quantity_needed": needed,
                "quantity_on_hand": position["quantity_on_hand"],
                "quantity_allocated": position["quantity_allocated"],
                "quantity_available": position["quantity_available"],
                "quantity_on_order": position["quantity_on_order"],
                "shortfall": shortfall,
            })
        return requirements

    def get_brew_schedule(self) -> list[dict]:
        """Batches not yet packaged, by planned date, with their vessel if any."""
        rows = (
            self.session.query(BrewBatch, Recipe, Vessel)
            .join(Recipe, BrewBatch.recipe_id == Recipe.id)
            .outerjoin(Vessel, BrewBatch.vessel_id == Vessel.id)
            .filter(BrewBatch.status.in_(SCHEDULE_STATUSES))
            .order_by(BrewBatch.planned_date.asc(), BrewBatch.created_at.asc(), BrewBatch.id.asc())
            .all()
        )
        schedule = []
        for batch, recipe, vessel in rows:
            schedule.append({
                "id": batch.id,
                "batch_number": batch.batch_number,
                "recipe_id": recipe.id,
                "recipe_name": recipe.name,
                "recipe_style": recipe.style,
                "status": batch.status.value,
                "planned_date": to_iso_date(batch.planned_date),
                "brew_date": to_iso_date(batch.brew_date),
                "estimated_ready_date": to_iso_date(batch.estimated_ready_date),
                "batch_size_litres": batch.batch_size_litres,
                "brewer": batch.brewer,
                "vessel_id": vessel.id if vessel is not None else None,
                "vessel_name": vessel.name if vessel is not None else None,
                "vessel_type": vessel.vessel_type.value if vessel is not None else None,
                "vessel_capacity_litres": vessel.capacity_litres if vessel is not None else None,
            })
        return schedule

    def get_purchase_timing(self) -> dict:
        """
        Shortfall items with the date they are needed and the date to order by.

        required_by = planned date of the earliest planned batch using the item
        order_by    = required_by - supplier lead time - ORDER_BUFFER_DAYS
        """
        items = []
        for requirement in self.get_materials_requirements():
            if requirement["shortfall"] <= 0:
                continue
            item_id = requirement["inventory_item_id"]

            earliest = (
                self.session.query(BrewBatch.planned_date, BrewBatch.batch_number)
                .join(Recipe, BrewBatch.recipe_id == Recipe.id)
                .join(RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id)
                .filter(
                    RecipeIngredient.inventory_item_id == item_id,
                    BrewBatch.status == BatchStatus.PLANNED,
                    BrewBatch.planned_date.isnot(None),
                )
                .order_by(BrewBatch.planned_date.asc())
                .first()
            )
            item = self.session.get(InventoryItem, item_id)
            supplier = self.session.get(Supplier, item.supplier_id) if item.supplier_id else None

            required_by = earliest[0] if earliest else None
            order_by = None
            if required_by is not None and supplier is not None and supplier.lead_time_days:
                order_by = required_by - timedelta(days=supplier.lead_time_days + ORDER_BUFFER_DAYS)

            items.append({
                **requirement,
                "required_by": to_iso_date(required_by),
                "order_by": to_iso_date(order_by),
                "batch_number": earliest[1] if earliest else None,
                "supplier_id": supplier.id if supplier is not None else None,
                "supplier_name": supplier.name if supplier is not None else None,
                "lead_time_days": supplier.lead_time_days if supplier is not None else None,
            })

        pending = (
            self.session.query(PurchaseOrder, Supplier)
            .join(Supplier, PurchaseOrder.supplier_id == Supplier.id)
            .filter(PurchaseOrder.status.in_(list(OPEN_PO_STATUSES)))
            .order_by(PurchaseOrder.expected_delivery_date.asc(), PurchaseOrder.id.asc())
            .all()
        )
        pending_deliveries = [
            {
                "id": po.id,
                "po_number": po.po_number,
                "status": po.status.value,
                "expected_delivery_date": to_iso_date(po.expected_delivery_date),
                "supplier_name": supplier.name,
                "total_cents": po.total_cents,
            }
            for po, supplier in pending
        ]
        return {"items_with_timing": items, "pending_deliveries": pending_deliveries}

    # ------------------------------------------------------------------
    # Sales-driven views
    # ------------------------------------------------------------------

    def _available_finished_goods(self, recipe_id: int, package_format=None) -> int:
        query = self.session.query(
            func.sum(FinishedGoodsStock.quantity_on_hand - FinishedGoodsStock.quantity_reserved)
        ).filter(FinishedGoodsStock.recipe_id == recipe_id)
        if package_format is not None:
            query = query.filter(FinishedGoodsStock.format == package_format)
        return int(query.scalar() or 0)

    def get_demand_view(self, weeks_ahead: int = DEFAULT_DEMAND_WEEKS) -> dict:
        """
        Open orders due within the horizon, demand per (recipe, format) and
        the demand rows that available finished goods cannot cover.

        Demand is summed over every open order regardless of delivery date.
        """
        horizon = today() + timedelta(weeks=weeks_ahead)
        upcoming_rows = (
            self.session.query(Order, Customer)
            .join(Customer, Order.customer_id == Customer.id)
            .filter(
                Order.status.in_(DEMAND_ORDER_STATUSES),
                Order.delivery_date.isnot(None),
                Order.delivery_date <= horizon,
            )
            .order_by(Order.delivery_date.asc(), Order.id.asc())
            .all()
        )
        upcoming = [
            {**order.to_dict(), "customer_name": customer.name}
            for order, customer in upcoming_rows
        ]

        demand_rows = (
            self.session.query(
                OrderLine.recipe_id,
                Recipe.name,
                OrderLine.format,
                func.sum(OrderLine.quantity),
            )
            .select_from(OrderLine)
            .join(Order, OrderLine.order_id == Order.id)
            .join(Recipe, OrderLine.recipe_id == Recipe.id)
            .filter(Order.status.in_(DEMAND_ORDER_STATUSES))
            .group_by(OrderLine.recipe_id, Recipe.name, OrderLine.format)
            .order_by(Recipe.name.asc())
            .all()
        )
        demand = []
        unfulfillable = []
        for recipe_id, recipe_name, package_format, total in demand_rows:
            total = int(total or 0)
            available = self._available_finished_goods(recipe_id, package_format)
            row = {
                "recipe_id": recipe_id,
                "recipe_name": recipe_name,
                "format": package_format.value if package_format is not None else None,
                "total_quantity": total,
                "available_quantity": available,
            }
            demand.append(row)
            if total > available:
                unfulfillable.append({**row, "shortfall": total - available})

        return {
            "weeks_ahead": weeks_ahead,
            "upcoming_orders": upcoming,
            "demand": demand,
            "unfulfillable": unfulfillable,
        }

    def get_packaging_priority(self) -> list[dict]:
        """Batches waiting to package, oldest brew first, with the open order demand for their recipe."""
        rows = (
            self.session.query(BrewBatch, Recipe, Vessel)
            .join(Recipe, BrewBatch.recipe_id == Recipe.id)
            .outerjoin(Vessel, BrewBatch.vessel_id == Vessel.id)
            .filter(BrewBatch.status == BatchStatus.READY_TO_PACKAGE)
            .order_by(BrewBatch.brew_date.asc(), BrewBatch.id.asc())
            .all()
        )
        current = today()
        priority = []
        for batch, recipe, vessel in rows:
            order_demand, earliest_delivery = self._recipe_order_demand(recipe.id)
            priority.append({
                "id": batch.id,
                "batch_number": batch.batch_number,
                "recipe_id": recipe.id,
                "recipe_name": recipe.name,
                "brew_date": to_iso_date(batch.brew_date),
                "batch_size_litres": batch.batch_size_litres,
                "actual_volume_litres": batch.actual_volume_litres,
                "vessel_name": vessel.name if vessel is not None else None,
                "days_in_tank": (current - batch.brew_date).days if batch.brew_date else 0,
                "order_demand": order_demand,
                "earliest_delivery": to_iso_date(earliest_delivery),
            })
        return priority

    def get_suggested_brews(self) -> list[dict]:
        """
        Recipes with open order demand, and what it would take to meet it.

        A recipe drops out only when stock covers its demand AND a batch of it
        is already in production. latest_brew_date is the earliest delivery
        minus SUGGESTED_BREW_LEAD_DAYS.
        """
        demand_rows = (
            self.session.query(
                Recipe.id,
                Recipe.name,
                Recipe.style,
                func.sum(OrderLine.quantity),
                func.min(Order.delivery_date),
            )
            .select_from(OrderLine)
            .join(Order, OrderLine.order_id == Order.id)
            .join(Recipe, OrderLine.recipe_id == Recipe.id)
            .filter(Order.status.in_(DEMAND_ORDER_STATUSES))
            .group_by(Recipe.id, Recipe.name, Recipe.style)
            .order_by(func.min(Order.delivery_date).asc(), Recipe.id.asc())
            .all()
        )
        suggestions = []
        for recipe_id, recipe_name, recipe_style, total, earliest_delivery in demand_rows:
            total = int(total or 0)
            available = self._available_finished_goods(recipe_id)
            active_batches = (
                self.session.query(func.count(BrewBatch.id))
                .filter(
                    BrewBatch.recipe_id == recipe_id,
                    BrewBatch.status.in_(SCHEDULE_STATUSES),
                )
                .scalar()
            ) or 0
            unmet = total - available
            if unmet <= 0 and active_batches > 0:
                continue

            latest_brew = None
            if earliest_delivery is not None:
                latest_brew = earliest_delivery - timedelta(days=SUGGESTED_BREW_LEAD_DAYS)
            suggestions.append({
                "recipe_id": recipe_id,
                "recipe_name": recipe_name,
                "recipe_style": recipe_style,
                "demand_quantity": total,
                "available_stock": available,
                "unmet_quantity": max(0, unmet),
                "active_batch_count": int(active_batches),
                "earliest_delivery": to_iso_date(earliest_delivery),
                "latest_brew_date": to_iso_date(latest_brew),
            })
        return suggestions

    def _recipe_order_demand(self, recipe_id: int):
        total, earliest = (
            self.session.query(func.sum(OrderLine.quantity), func.min(Order.delivery_date))
            .select_from(OrderLine)
            .join(Order, OrderLine.order_id == Order.id)
            .filter(
                OrderLine.recipe_id == recipe_id,
                Order.status.in_(DEMAND_ORDER_STATUSES),
            )
            .one()
        )
        return int(total or 0), earliest
