"""Order line reservations and quality checks

order_lines.quantity_reserved records what each line holds against its
finished goods row, so cancelling an order releases only its own share.
quality_checks stores lab and sensory checks per batch.

Revision ID: 20261020_reservations_quality
Revises: 20261019_initial
Create Date: 2026-10-20
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261020_reservations_quality"
down_revision = "20261019_initial"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("order_lines", schema=None) as batch_op:
        batch_op.add_column(
            sa.Column("quantity_reserved", sa.Integer(), nullable=False, server_default=sa.text("0"))
        )
        batch_op.create_check_constraint(
            "ck_order_lines_reserved_range",
            "quantity_reserved >= 0 AND quantity_reserved <= quantity",
        )

    op.create_table(
        "quality_checks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("brew_batch_id", sa.Integer(), nullable=False),
        sa.Column("check_type", sa.String(32), nullable=False),
        sa.Column("checked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("checked_by", sa.String(200), nullable=True),
        sa.Column("ph", sa.Float(), nullable=True),
        sa.Column("dissolved_oxygen", sa.Float(), nullable=True),
        sa.Column("turbidity", sa.Float(), nullable=True),
        sa.Column("colour_srm", sa.Float(), nullable=True),
        sa.Column("abv", sa.Float(), nullable=True),
        sa.Column("co2_volumes", sa.Float(), nullable=True),
        sa.Column("sensory_notes", sa.Text(), nullable=True),
        sa.Column("microbiological", sa.Text(), nullable=True),
        sa.Column("result", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["brew_batch_id"], ["brew_batches.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("quality_checks", schema=None) as batch_op:
        batch_op.create_index("ix_quality_checks_batch_checked", ["brew_batch_id", "checked_at"], unique=False)


def downgrade():
    with op.batch_alter_table("quality_checks", schema=None) as batch_op:
        batch_op.drop_index("ix_quality_checks_batch_checked")
    op.drop_table("quality_checks")

    with op.batch_alter_table("order_lines", schema=None) as batch_op:
        batch_op.drop_constraint("ck_order_lines_reserved_range", type_="check")
        batch_op.drop_column("quantity_reserved")
