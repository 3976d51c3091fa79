"""Initial brewery operations schema

Recipes, inventory ledger, vessels and brew batches, purchasing, packaging
and sales orders.

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(*, updated: bool = True):
    cols = [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
    ]
    if updated:
        cols.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False)
        )
    return cols


def _version_id():
    return sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1"))


def upgrade():
    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_name", sa.String(128), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("lead_time_days", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sku", sa.String(64), nullable=True),
        sa.Column("supplier_id", sa.Integer(), nullable=True),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("subcategory", sa.String(64), nullable=True),
        sa.Column("unit", sa.String(8), nullable=False),
        sa.Column("unit_cost_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("reorder_point", sa.Float(), nullable=True),
        sa.Column("reorder_qty", sa.Float(), nullable=True),
        sa.Column("minimum_order_qty", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("inventory_items", schema=None) as batch_op:
        batch_op.create_index("ix_inventory_items_supplier_id", ["supplier_id"], unique=False)
        batch_op.create_index("ix_inventory_items_category_archived", ["category", "archived"], unique=False)

    op.create_table(
        "recipes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("style", sa.String(128), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="draft"),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("parent_recipe_id", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("batch_size_litres", sa.Float(), nullable=False),
        sa.Column("boil_duration_minutes", sa.Integer(), nullable=False, server_default=sa.text("60")),
        sa.Column("mash_temp_celsius", sa.Float(), nullable=True),
        sa.Column("target_og", sa.Float(), nullable=True),
        sa.Column("target_fg", sa.Float(), nullable=True),
        sa.Column("target_abv", sa.Float(), nullable=True),
        sa.Column("target_ibu", sa.Float(), nullable=True),
        sa.Column("estimated_brew_days", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("estimated_fermentation_days", sa.Integer(), nullable=False, server_default=sa.text("14")),
        sa.Column("estimated_conditioning_days", sa.Integer(), nullable=False, server_default=sa.text("7")),
        sa.Column("estimated_total_days", sa.Integer(), nullable=False, server_default=sa.text("22")),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("batch_size_litres > 0", name="ck_recipes_batch_size_positive"),
        sa.ForeignKeyConstraint(["parent_recipe_id"], ["recipes.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("recipes", schema=None) as batch_op:
        batch_op.create_index("ix_recipes_parent_recipe_id", ["parent_recipe_id"], unique=False)

    op.create_table(
        "recipe_ingredients",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("recipe_id", sa.Integer(), nullable=False),
        sa.Column("inventory_item_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(8), nullable=False),
        sa.Column("usage_stage", sa.String(32), nullable=False),
        sa.Column("use_time_minutes", sa.Integer(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["inventory_item_id"], ["inventory_items.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("recipe_ingredients", schema=None) as batch_op:
        batch_op.create_index("ix_recipe_ingredients_recipe_id", ["recipe_id"], unique=False)
        batch_op.create_index("ix_recipe_ingredients_item", ["inventory_item_id"], unique=False)

    op.create_table(
        "vessels",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("vessel_type", sa.String(32), nullable=False),
        sa.Column("capacity_litres", sa.Float(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="available"),
        sa.Column("current_batch_id", sa.Integer(), nullable=True),
        sa.Column("location", sa.String(128), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        _version_id(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "brew_batches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("batch_number", sa.String(32), nullable=False),
        sa.Column("recipe_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="planned"),
        sa.Column("planned_date", sa.Date(), nullable=True),
        sa.Column("brew_date", sa.Date(), nullable=True),
        sa.Column("estimated_ready_date", sa.Date(), nullable=True),
        sa.Column("brewer", sa.String(128), nullable=True),
        sa.Column("batch_size_litres", sa.Float(), nullable=False),
        sa.Column("actual_volume_litres", sa.Float(), nullable=True),
        sa.Column("actual_og", sa.Float(), nullable=True),
        sa.Column("actual_fg", sa.Float(), nullable=True),
        sa.Column("actual_abv", sa.Float(), nullable=True),
        sa.Column("actual_ibu", sa.Float(), nullable=True),
        sa.Column("vessel_id", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _version_id(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.id"]),
        sa.ForeignKeyConstraint(["vessel_id"], ["vessels.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("batch_number", name="uq_brew_batches_batch_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("brew_batches", schema=None) as batch_op:
        batch_op.create_index("ix_brew_batches_recipe_id", ["recipe_id"], unique=False)
        batch_op.create_index("ix_brew_batches_status", ["status"], unique=False)
        batch_op.create_index("ix_brew_batches_vessel_id", ["vessel_id"], unique=False)
        batch_op.create_index("ix_brew_batches_status_planned", ["status", "planned_date"], unique=False)

    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("po_number", sa.String(32), nullable=False),
        sa.Column("supplier_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="draft"),
        sa.Column("order_date", sa.Date(), nullable=True),
        sa.Column("expected_delivery_date", sa.Date(), nullable=True),
        sa.Column("subtotal_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        _version_id(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("po_number", name="uq_purchase_orders_po_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("purchase_orders", schema=None) as batch_op:
        batch_op.create_index("ix_purchase_orders_status", ["status"], unique=False)
        batch_op.create_index("ix_purchase_orders_supplier_status", ["supplier_id", "status"], unique=False)

    op.create_table(
        "purchase_order_lines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("purchase_order_id", sa.Integer(), nullable=False),
        sa.Column("inventory_item_id", sa.Integer(), nullable=False),
        sa.Column("quantity_ordered", sa.Float(), nullable=False),
        sa.Column("quantity_received", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("unit", sa.String(8), nullable=False),
        sa.Column("unit_cost_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("line_total_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        _version_id(),
        sa.CheckConstraint("quantity_ordered > 0", name="ck_po_lines_ordered_positive"),
        sa.CheckConstraint(
            "quantity_received >= 0 AND quantity_received <= quantity_ordered",
            name="ck_po_lines_received_bounds",
        ),
        sa.ForeignKeyConstraint(["purchase_order_id"], ["purchase_orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["inventory_item_id"], ["inventory_items.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("purchase_order_lines", schema=None) as batch_op:
        batch_op.create_index("ix_purchase_order_lines_purchase_order_id", ["purchase_order_id"], unique=False)
        batch_op.create_index("ix_purchase_order_lines_inventory_item_id", ["inventory_item_id"], unique=False)

    op.create_table(
        "inventory_lots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("inventory_item_id", sa.Integer(), nullable=False),
        sa.Column("lot_number", sa.String(64), nullable=False),
        sa.Column("quantity_on_hand", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("unit", sa.String(8), nullable=False),
        sa.Column("unit_cost_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("received_date", sa.Date(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("purchase_order_id", sa.Integer(), nullable=True),
        sa.Column("location", sa.String(128), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _version_id(),
        *_timestamps(updated=False),
        sa.CheckConstraint("quantity_on_hand >= 0", name="ck_inventory_lots_qty_nonneg"),
        sa.ForeignKeyConstraint(["inventory_item_id"], ["inventory_items.id"]),
        sa.ForeignKeyConstraint(["purchase_order_id"], ["purchase_orders.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("inventory_lots", schema=None) as batch_op:
        batch_op.create_index("ix_inventory_lots_inventory_item_id", ["inventory_item_id"], unique=False)
        batch_op.create_index("ix_inventory_lots_purchase_order_id", ["purchase_order_id"], unique=False)
        batch_op.create_index("ix_inventory_lots_item_received", ["inventory_item_id", "received_date"], unique=False)

    op.create_table(
        "stock_movements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("inventory_lot_id", sa.Integer(), nullable=False),
        sa.Column("movement_type", sa.String(32), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("reference_type", sa.String(32), nullable=True),
        sa.Column("reference_id", sa.Integer(), nullable=True),
        sa.Column("reason", sa.String(255), nullable=True),
        sa.Column("performed_by", sa.String(128), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["inventory_lot_id"], ["inventory_lots.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("stock_movements", schema=None) as batch_op:
        batch_op.create_index("ix_stock_movements_inventory_lot_id", ["inventory_lot_id"], unique=False)
        batch_op.create_index("ix_stock_movements_movement_type", ["movement_type"], unique=False)
        batch_op.create_index("ix_stock_movements_lot_created", ["inventory_lot_id", "created_at"], unique=False)
        batch_op.create_index("ix_stock_movements_reference", ["reference_type", "reference_id"], unique=False)

    op.create_table(
        "brew_ingredient_consumptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("brew_batch_id", sa.Integer(), nullable=False),
        sa.Column("recipe_ingredient_id", sa.Integer(), nullable=True),
        sa.Column("inventory_lot_id", sa.Integer(), nullable=False),
        sa.Column("stock_movement_id", sa.Integer(), nullable=True),
        sa.Column("planned_quantity", sa.Float(), nullable=False),
        sa.Column("actual_quantity", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(8), nullable=False),
        sa.Column("usage_stage", sa.String(32), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["brew_batch_id"], ["brew_batches.id"]),
        sa.ForeignKeyConstraint(["recipe_ingredient_id"], ["recipe_ingredients.id"]),
        sa.ForeignKeyConstraint(["inventory_lot_id"], ["inventory_lots.id"]),
        sa.ForeignKeyConstraint(["stock_movement_id"], ["stock_movements.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("brew_ingredient_consumptions", schema=None) as batch_op:
        batch_op.create_index("ix_brew_ingredient_consumptions_brew_batch_id", ["brew_batch_id"], unique=False)
        batch_op.create_index("ix_brew_ingredient_consumptions_inventory_lot_id", ["inventory_lot_id"], unique=False)

    op.create_table(
        "fermentation_log_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("brew_batch_id", sa.Integer(), nullable=False),
        sa.Column("logged_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("gravity", sa.Float(), nullable=True),
        sa.Column("temperature_celsius", sa.Float(), nullable=True),
        sa.Column("ph", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("logged_by", sa.String(128), nullable=True),
        sa.ForeignKeyConstraint(["brew_batch_id"], ["brew_batches.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("fermentation_log_entries", schema=None) as batch_op:
        batch_op.create_index("ix_fermentation_log_batch_logged", ["brew_batch_id", "logged_at"], unique=False)

    op.create_table(
        "batch_measurement_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("brew_batch_id", sa.Integer(), nullable=False),
        sa.Column("logged_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("og", sa.Float(), nullable=True),
        sa.Column("fg", sa.Float(), nullable=True),
        sa.Column("volume_litres", sa.Float(), nullable=True),
        sa.Column("ibu", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("logged_by", sa.String(128), nullable=True),
        sa.ForeignKeyConstraint(["brew_batch_id"], ["brew_batches.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("batch_measurement_log", schema=None) as batch_op:
        batch_op.create_index("ix_batch_measurement_log_brew_batch_id", ["brew_batch_id"], unique=False)

    op.create_table(
        "packaging_runs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("brew_batch_id", sa.Integer(), nullable=False),
        sa.Column("packaging_date", sa.Date(), nullable=False),
        sa.Column("format", sa.String(32), nullable=False),
        sa.Column("quantity_units", sa.Integer(), nullable=False),
        sa.Column("volume_litres", sa.Float(), nullable=True),
        sa.Column("best_before_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("performed_by", sa.String(128), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["brew_batch_id"], ["brew_batches.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("packaging_runs", schema=None) as batch_op:
        batch_op.create_index("ix_packaging_runs_brew_batch_id", ["brew_batch_id"], unique=False)

    op.create_table(
        "finished_goods_stock",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("recipe_id", sa.Integer(), nullable=False),
        sa.Column("brew_batch_id", sa.Integer(), nullable=False),
        sa.Column("packaging_run_id", sa.Integer(), nullable=True),
        sa.Column("format", sa.String(32), nullable=False),
        sa.Column("quantity_on_hand", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("quantity_reserved", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("location", sa.String(128), nullable=True),
        sa.Column("best_before_date", sa.Date(), nullable=True),
        sa.Column("unit_price_cents", sa.Integer(), nullable=True),
        _version_id(),
        *_timestamps(),
        sa.CheckConstraint("quantity_on_hand >= 0", name="ck_fg_on_hand_nonneg"),
        sa.CheckConstraint(
            "quantity_reserved >= 0 AND quantity_reserved <= quantity_on_hand",
            name="ck_fg_reserved_bounds",
        ),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.id"]),
        sa.ForeignKeyConstraint(["brew_batch_id"], ["brew_batches.id"]),
        sa.ForeignKeyConstraint(["packaging_run_id"], ["packaging_runs.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("finished_goods_stock", schema=None) as batch_op:
        batch_op.create_index("ix_finished_goods_stock_brew_batch_id", ["brew_batch_id"], unique=False)
        batch_op.create_index("ix_finished_goods_recipe_format", ["recipe_id", "format"], unique=False)

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("customer_type", sa.String(32), nullable=False, server_default="venue"),
        sa.Column("contact_name", sa.String(128), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("delivery_notes", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_number", sa.String(32), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="draft"),
        sa.Column("order_date", sa.Date(), nullable=False),
        sa.Column("delivery_date", sa.Date(), nullable=True),
        sa.Column("channel", sa.String(32), nullable=False, server_default="wholesale"),
        sa.Column("subtotal_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("invoice_number", sa.String(32), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _version_id(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_number", name="uq_orders_order_number"),
        sa.UniqueConstraint("invoice_number", name="uq_orders_invoice_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("orders", schema=None) as batch_op:
        batch_op.create_index("ix_orders_status", ["status"], unique=False)
        batch_op.create_index("ix_orders_customer_status", ["customer_id", "status"], unique=False)

    op.create_table(
        "order_lines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("recipe_id", sa.Integer(), nullable=True),
        sa.Column("format", sa.String(32), nullable=True),
        sa.Column("finished_goods_id", sa.Integer(), nullable=True),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("line_total_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.id"]),
        sa.ForeignKeyConstraint(["finished_goods_id"], ["finished_goods_stock.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("order_lines", schema=None) as batch_op:
        batch_op.create_index("ix_order_lines_order_id", ["order_id"], unique=False)
        batch_op.create_index("ix_order_lines_finished_goods_id", ["finished_goods_id"], unique=False)


def downgrade():
    for table in (
        "order_lines",
        "orders",
        "customers",
        "finished_goods_stock",
        "packaging_runs",
        "batch_measurement_log",
        "fermentation_log_entries",
        "brew_ingredient_consumptions",
        "stock_movements",
        "inventory_lots",
        "purchase_order_lines",
        "purchase_orders",
        "brew_batches",
        "vessels",
        "recipe_ingredients",
        "recipes",
        "inventory_items",
        "suppliers",
    ):
        op.drop_table(table)
