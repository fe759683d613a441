"""create competitor inventory tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "competitor_dealers",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("website_url", sa.Text(), nullable=True),
        sa.Column("scrape_url", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("last_scraped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_scrape_status", sa.String(length=32), nullable=True),
        sa.Column("last_scrape_vehicles_count", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_competitor_dealers_is_active", "competitor_dealers", ["is_active"], unique=False)

    op.create_table(
        "competitor_vehicles",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("dealer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("fingerprint", sa.String(length=512), nullable=False),
        sa.Column("external_url", sa.Text(), nullable=True),
        sa.Column("brand", sa.String(length=120), nullable=False),
        sa.Column("model", sa.String(length=120), nullable=False),
        sa.Column("variant", sa.String(length=255), nullable=True),
        sa.Column("build_year", sa.Integer(), nullable=True),
        sa.Column("mileage", sa.Integer(), nullable=True),
        sa.Column("mileage_bucket", sa.Integer(), nullable=True),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("fuel_type", sa.String(length=64), nullable=True),
        sa.Column("transmission", sa.String(length=64), nullable=True),
        sa.Column("body_type", sa.String(length=64), nullable=True),
        sa.Column("color", sa.String(length=64), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("first_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sold_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("consecutive_missing_scrapes", sa.Integer(), nullable=False),
        sa.Column("total_stock_days", sa.Integer(), nullable=False),
        sa.Column("reappeared_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "status IN ('in_stock', 'sold', 'removed')",
            name="ck_competitor_vehicles_status",
        ),
        sa.CheckConstraint(
            "(status = 'sold' AND sold_at IS NOT NULL) "
            "OR (status <> 'sold' AND sold_at IS NULL)",
            name="ck_competitor_vehicles_sold_at",
        ),
        sa.CheckConstraint(
            "consecutive_missing_scrapes >= 0 AND reappeared_count >= 0",
            name="ck_competitor_vehicles_counters",
        ),
        sa.ForeignKeyConstraint(["dealer_id"], ["competitor_dealers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dealer_id", "fingerprint", name="uq_competitor_vehicles_dealer_fingerprint"),
    )
    op.create_index("ix_competitor_vehicles_dealer_id", "competitor_vehicles", ["dealer_id"], unique=False)
    op.create_index(
        "ix_competitor_vehicles_dealer_status",
        "competitor_vehicles",
        ["dealer_id", "status"],
        unique=False,
    )
    op.create_index("ix_competitor_vehicles_sold_at", "competitor_vehicles", ["sold_at"], unique=False)

    op.create_table(
        "competitor_price_history",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("vehicle_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("old_price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("new_price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("price_change", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["vehicle_id"], ["competitor_vehicles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_competitor_price_history_vehicle_created",
        "competitor_price_history",
        ["vehicle_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "competitor_scrape_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("dealer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("vehicles_found", sa.Integer(), nullable=False),
        sa.Column("vehicles_new", sa.Integer(), nullable=False),
        sa.Column("vehicles_sold", sa.Integer(), nullable=False),
        sa.Column("vehicles_reappeared", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["dealer_id"], ["competitor_dealers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_competitor_scrape_logs_dealer_created",
        "competitor_scrape_logs",
        ["dealer_id", "created_at"],
        unique=False,
    )
    op.create_index("ix_competitor_scrape_logs_status", "competitor_scrape_logs", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_competitor_scrape_logs_status", table_name="competitor_scrape_logs")
    op.drop_index("ix_competitor_scrape_logs_dealer_created", table_name="competitor_scrape_logs")
    op.drop_table("competitor_scrape_logs")
    op.drop_index("ix_competitor_price_history_vehicle_created", table_name="competitor_price_history")
    op.drop_table("competitor_price_history")
    op.drop_index("ix_competitor_vehicles_sold_at", table_name="competitor_vehicles")
    op.drop_index("ix_competitor_vehicles_dealer_status", table_name="competitor_vehicles")
    op.drop_index("ix_competitor_vehicles_dealer_id", table_name="competitor_vehicles")
    op.drop_table("competitor_vehicles")
    op.drop_index("ix_competitor_dealers_is_active", table_name="competitor_dealers")
    op.drop_table("competitor_dealers")
