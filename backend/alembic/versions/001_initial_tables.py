"""tokens and promising_addresses tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "tokens",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("symbol", sa.String(20), nullable=False),
        sa.Column("address", sa.String(64), nullable=False),
        sa.Column("chain", sa.String(10), nullable=False),
        sa.Column("start_time", sa.String(19), nullable=True),
        sa.Column("end_time", sa.String(19), nullable=True),
        sa.Column("market_cap_limit", sa.Float(), nullable=True),
        sa.Column("buyers_count", sa.Integer(), nullable=True),
        sa.Column("buyers_last_updated", sa.DateTime(timezone=True), nullable=True),
        sa.Column("buyers_import_status", sa.String(10), server_default="none", nullable=False),
        sa.Column("buyers_import_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_tokens_address", "tokens", ["address"])

    op.create_table(
        "promising_addresses",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("address", sa.String(64), nullable=False),
        sa.Column("address_key", sa.String(64), nullable=False),
        sa.Column("token_id", sa.String(36), nullable=False),
        sa.Column("token_symbol", sa.String(20), nullable=False),
        sa.Column("purchase_time", sa.String(32), server_default="", nullable=False),
        sa.Column("block_number", sa.Integer(), nullable=True),
        sa.Column("tx_hash", sa.String(100), nullable=True),
        sa.Column("related_tokens", sa.JSON(), nullable=False),
        sa.Column("is_marked_promising", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_promising_addresses_address_key", "promising_addresses", ["address_key"], unique=True)
    op.create_index("ix_promising_addresses_token_id", "promising_addresses", ["token_id"])
    op.create_index("ix_promising_addresses_created_at", "promising_addresses", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_promising_addresses_created_at", table_name="promising_addresses")
    op.drop_index("ix_promising_addresses_token_id", table_name="promising_addresses")
    op.drop_index("ix_promising_addresses_address_key", table_name="promising_addresses")
    op.drop_table("promising_addresses")

    op.drop_index("ix_tokens_address", table_name="tokens")
    op.drop_table("tokens")
