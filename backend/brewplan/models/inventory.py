from __future__ import annotations

from ..extensions import db
from ..enums import InventoryCategory, MovementType, Unit
from ..time_utils import to_utc_z, to_iso_date
from .columns import enum_type, enum_value


class InventoryItem(db.Model):
    """
    A purchasable / usable material type (malt, hops, yeast, cans...).

    Long-lived reference data: items are archived, never deleted, because lots,
    recipe ingredients and PO lines keep pointing at them.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.Index("ix_inventory_items_category_archived", "category", "archived"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)

    category = db.Column(enum_type(InventoryCategory), nullable=False)
    subcategory = db.Column(db.String(64), nullable=True)
    unit = db.Column(enum_type(Unit, length=8), nullable=False)
    unit_cost_cents = db.Column(db.Integer, nullable=False, default=0)

    reorder_point = db.Column(db.Float, nullable=True)
    reorder_qty = db.Column(db.Float, nullable=True)
    minimum_order_qty = db.Column(db.Float, nullable=True)

    notes = db.Column(db.Text, nullable=True)
    archived = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    supplier = db.relationship("Supplier", backref=db.backref("inventory_items", lazy=True))

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} name={self.name!r} unit={enum_value(self.unit)}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "supplier_id": self.supplier_id,
            "category": enum_value(self.category),
            "subcategory": self.subcategory,
            "unit": enum_value(self.unit),
            "unit_cost_cents": self.unit_cost_cents,
            "reorder_point": self.reorder_point,
            "reorder_qty": self.reorder_qty,
            "minimum_order_qty": self.minimum_order_qty,
            "notes": self.notes,
            "archived": self.archived,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryLot(db.Model):
    """
    A specific received quantity of an InventoryItem.

    quantity_on_hand is a cached fold of the lot's StockMovement rows. It is
    written ONLY by the inventory ledger, in the same transaction as the
    movement insert, and never goes below zero.
    """
    __tablename__ = "inventory_lots"
    __table_args__ = (
        db.CheckConstraint("quantity_on_hand >= 0", name="ck_inventory_lots_qty_nonneg"),
        db.Index("ix_inventory_lots_item_received", "inventory_item_id", "received_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=False, index=True)
    lot_number = db.Column(db.String(64), nullable=False)

    quantity_on_hand = db.Column(db.Float, nullable=False, default=0)
    unit = db.Column(enum_type(Unit, length=8), nullable=False)
    unit_cost_cents = db.Column(db.Integer, nullable=False, default=0)

    received_date = db.Column(db.Date, nullable=False)
    expiry_date = db.Column(db.Date, nullable=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=True, index=True)
    location = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    inventory_item = db.relationship("InventoryItem", backref=db.backref("lots", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "inventory_item_id": self.inventory_item_id,
            "lot_number": self.lot_number,
            "quantity_on_hand": self.quantity_on_hand,
            "unit": enum_value(self.unit),
            "unit_cost_cents": self.unit_cost_cents,
            "received_date": to_iso_date(self.received_date),
            "expiry_date": to_iso_date(self.expiry_date),
            "purchase_order_id": self.purchase_order_id,
            "location": self.location,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class StockMovement(db.Model):
    """Append-only stock ledger row. Positive quantity = stock in, negative = stock out."""
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_lot_created", "inventory_lot_id", "created_at"),
        db.Index("ix_stock_movements_reference", "reference_type", "reference_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    inventory_lot_id = db.Column(db.Integer, db.ForeignKey("inventory_lots.id"), nullable=False, index=True)
    movement_type = db.Column(enum_type(MovementType), nullable=False, index=True)
    quantity = db.Column(db.Float, nullable=False)

    reference_type = db.Column(db.String(32), nullable=True)
    reference_id = db.Column(db.Integer, nullable=True)
    reason = db.Column(db.String(255), nullable=True)
    performed_by = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    lot = db.relationship("InventoryLot", backref=db.backref("movements", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "inventory_lot_id": self.inventory_lot_id,
            "movement_type": enum_value(self.movement_type),
            "quantity": self.quantity,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "reason": self.reason,
            "performed_by": self.performed_by,
            "created_at": to_utc_z(self.created_at),
        }
