"""Initial schema: accounts, devices, device status, alarms, push tokens.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("code"),
    )
    op.create_index("ix_accounts_created_at", "accounts", ["created_at"], unique=False)

    op.create_table(
        "devices",
        sa.Column("device_id", sa.String(length=128), nullable=False),
        sa.Column("account_code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["account_code"], ["accounts.code"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("device_id"),
    )
    op.create_index("ix_devices_account_code", "devices", ["account_code"], unique=False)

    op.create_table(
        "device_status",
        sa.Column("device_id", sa.String(length=128), nullable=False),
        sa.Column("account_code", sa.String(length=32), nullable=False),
        sa.Column("online", sa.Boolean(), nullable=False),
        sa.Column("smoke", sa.Boolean(), nullable=False),
        sa.Column("temperature", sa.Float(), nullable=True),
        sa.Column("battery_level", sa.Float(), nullable=True),
        sa.Column("battery_ok", sa.Boolean(), nullable=True),
        sa.Column("signal_strength", sa.Float(), nullable=True),
        sa.Column("last_seen", sa.DateTime(timezone=True), nullable=True),
        sa.Column("raw_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("device_id"),
    )
    op.create_index("ix_device_status_account_code", "device_status", ["account_code"], unique=False)

    op.create_table(
        "alarms",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("device_id", sa.String(length=128), nullable=False),
        sa.Column("account_code", sa.String(length=32), nullable=False),
        sa.Column("smoke", sa.Boolean(), nullable=False),
        sa.Column("temperature", sa.Float(), nullable=True),
        sa.Column("battery_ok", sa.Boolean(), nullable=True),
        sa.Column("alarm_type", sa.String(length=16), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("acknowledged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("acknowledged_by", sa.String(length=255), nullable=True),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("raw_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_alarms_device_id", "alarms", ["device_id"], unique=False)
    op.create_index("ix_alarms_account_code", "alarms", ["account_code"], unique=False)
    op.create_index("ix_alarms_device_timestamp", "alarms", ["device_id", "timestamp"], unique=False)

    op.create_table(
        "push_tokens",
        sa.Column("token", sa.String(length=512), nullable=False),
        sa.Column("account_code", sa.String(length=32), nullable=False),
        sa.Column("platform", sa.String(length=16), nullable=True),
        sa.Column("device_info", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["account_code"], ["accounts.code"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("token"),
    )
    op.create_index("ix_push_tokens_account_code", "push_tokens", ["account_code"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_push_tokens_account_code", table_name="push_tokens")
    op.drop_table("push_tokens")
    op.drop_index("ix_alarms_device_timestamp", table_name="alarms")
    op.drop_index("ix_alarms_account_code", table_name="alarms")
    op.drop_index("ix_alarms_device_id", table_name="alarms")
    op.drop_table("alarms")
    op.drop_index("ix_device_status_account_code", table_name="device_status")
    op.drop_table("device_status")
    op.drop_index("ix_devices_account_code", table_name="devices")
    op.drop_table("devices")
    op.drop_index("ix_accounts_created_at", table_name="accounts")
    op.drop_table("accounts")
