"""Create ledger, release schedule, anticipation and queue tables.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _enum(name: str, *values: str) -> postgresql.ENUM:
    return postgresql.ENUM(*values, name=name, create_type=False)


currency_enum = _enum("currency", "BRL", "USD", "MXN")
company_status_enum = _enum("company_status", "ACTIVE", "INACTIVE", "BLOCKED")
account_type_enum = _enum(
    "transaction_account_type",
    "BALANCE_AVAILABLE",
    "BALANCE_PENDING",
    "BALANCE_RESERVE",
)
movement_type_enum = _enum("transaction_movement_type", "CREDIT", "DEBIT")
operation_type_enum = _enum(
    "transaction_operation_type",
    "PAYMENT",
    "RESERVE",
    "RELEASE",
    "ANTICIPATION",
    "REFUND",
    "WITHDRAWAL",
    "FEE",
)
payment_method_enum = _enum("payment_method", "PIX", "BILLET", "CREDIT_CARD")
schedule_type_enum = _enum(
    "release_schedule_type",
    "INSTALLMENT",
    "RESERVE_RELEASE",
    "PENDING_TO_AVAILABLE",
)
schedule_status_enum = _enum(
    "release_schedule_status",
    "SCHEDULED",
    "PROCESSING",
    "COMPLETED",
    "FAILED",
    "CANCELLED",
)
anticipation_status_enum = _enum(
    "anticipation_status",
    "PENDING",
    "APPROVED",
    "REJECTED",
    "PROCESSING",
    "COMPLETED",
)
queue_task_type_enum = _enum("queue_task_type", "SCHEDULED", "ANTICIPATION")
queue_task_status_enum = _enum(
    "queue_task_status",
    "PENDING",
    "PROCESSING",
    "COMPLETED",
    "FAILED",
)

ENUMS = (
    currency_enum,
    company_status_enum,
    account_type_enum,
    movement_type_enum,
    operation_type_enum,
    payment_method_enum,
    schedule_type_enum,
    schedule_status_enum,
    anticipation_status_enum,
    queue_task_type_enum,
    queue_task_status_enum,
)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "companies",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("status", company_status_enum, nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "company_tax_configs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("currency", currency_enum, nullable=False),
        sa.Column("tax_rate_anticipation", sa.Numeric(10, 4), nullable=False),
        sa.Column(
            "tax_fee_anticipation",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column(
            "available_days_anticipation",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.ForeignKeyConstraint(
            ["company_id"],
            ["companies.id"],
            name="fk_company_tax_configs_company_id",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "company_id",
            "currency",
            name="uq_company_tax_configs_company_currency",
        ),
    )

    permission_columns = [
        sa.Column(name, sa.Boolean(), nullable=True, server_default=sa.false())
        for name in (
            "read_infraction",
            "read_payment",
            "read_withdrawal",
            "read_balance",
            "write_payment",
            "write_withdrawal",
            "write_infraction",
            "refund_payment",
        )
    ]
    op.create_table(
        "api_keys",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("public_key", sa.String(length=64), nullable=False),
        sa.Column("secret_key_hash", sa.String(length=64), nullable=False),
        *permission_columns,
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["company_id"],
            ["companies.id"],
            name="fk_api_keys_company_id",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("public_key", name="uq_api_keys_public_key"),
    )
    op.create_index("ix_api_keys_company_id", "api_keys", ["company_id"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("source_id", sa.String(length=64), nullable=True),
        sa.Column("description", sa.String(length=280), nullable=True),
        sa.Column(
            "visible",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column(
            "amount_fee",
            sa.BigInteger(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("amount_net", sa.BigInteger(), nullable=False),
        sa.Column("idempotency_key", sa.String(length=255), nullable=False),
        sa.Column("currency", currency_enum, nullable=False),
        sa.Column("operation_type", operation_type_enum, nullable=False),
        sa.Column("account_type", account_type_enum, nullable=False),
        sa.Column("movement_type", movement_type_enum, nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("method", payment_method_enum, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "amount_net = amount - amount_fee",
            name="ck_transactions_net_amount",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "idempotency_key",
            name="uq_transactions_idempotency_key",
        ),
    )
    op.create_index(
        "ix_transactions_wallet_key",
        "transactions",
        ["company_id", "account_type", "currency", "id"],
    )

    op.create_table(
        "wallets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("account_type", account_type_enum, nullable=False),
        sa.Column("currency", currency_enum, nullable=False),
        sa.Column(
            "balance",
            sa.BigInteger(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column(
            "version",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("1"),
        ),
        sa.Column("last_entry_id", sa.String(length=32), nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "company_id",
            "account_type",
            "currency",
            name="uq_wallets_company_account_currency",
        ),
    )

    op.create_table(
        "payment_release_schedules",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("payment_id", sa.String(length=64), nullable=False),
        sa.Column("idempotency_key", sa.String(length=160), nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("type", schedule_type_enum, nullable=False),
        sa.Column("amount_gross", sa.BigInteger(), nullable=False),
        sa.Column(
            "amount_fee",
            sa.BigInteger(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("amount_net", sa.BigInteger(), nullable=False),
        sa.Column("currency", currency_enum, nullable=False),
        sa.Column("method", payment_method_enum, nullable=False),
        sa.Column("provider_name", sa.String(length=64), nullable=True),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "is_anticipation_available_date",
            sa.DateTime(timezone=True),
            nullable=True,
        ),
        sa.Column(
            "is_anticipatable",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column(
            "status",
            schedule_status_enum,
            nullable=False,
            server_default="SCHEDULED",
        ),
        sa.Column(
            "retry_count",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("installment_number", sa.Integer(), nullable=True),
        sa.Column("total_installments", sa.Integer(), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "idempotency_key",
            name="uq_payment_release_schedules_idempotency_key",
        ),
    )
    op.create_index(
        "ix_payment_release_schedules_payment_id",
        "payment_release_schedules",
        ["payment_id"],
    )
    op.create_index(
        "ix_payment_release_schedules_due",
        "payment_release_schedules",
        ["status", "scheduled_date", "id"],
    )
    op.create_index(
        "ix_payment_release_schedules_company_eligibility",
        "payment_release_schedules",
        ["company_id", "status", "type", "currency"],
    )

    op.create_table(
        "anticipations",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("group_payments_id", sa.String(length=64), nullable=False),
        sa.Column("type", schedule_type_enum, nullable=False),
        sa.Column("currency", currency_enum, nullable=False),
        sa.Column("total_amount", sa.BigInteger(), nullable=False),
        sa.Column("amount_net", sa.BigInteger(), nullable=False),
        sa.Column("amount_fee", sa.BigInteger(), nullable=False),
        sa.Column("amount_organization", sa.BigInteger(), nullable=False),
        sa.Column("tax", sa.Numeric(10, 4), nullable=False),
        sa.Column("fee", sa.BigInteger(), nullable=False),
        sa.Column("status", anticipation_status_enum, nullable=False),
        sa.Column("payments_ids", postgresql.JSONB(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "uq_anticipations_company_open",
        "anticipations",
        ["company_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('PENDING', 'PROCESSING')"),
    )
    op.create_index(
        "ix_anticipations_company_created_at",
        "anticipations",
        ["company_id", "created_at"],
    )

    op.create_table(
        "queue_tasks",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("type", queue_task_type_enum, nullable=False),
        sa.Column("dedup_key", sa.String(length=96), nullable=False),
        sa.Column("payload", postgresql.JSONB(), nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("description", sa.String(length=280), nullable=True),
        sa.Column("anticipation_id", sa.String(length=32), nullable=True),
        sa.Column(
            "status",
            queue_task_status_enum,
            nullable=False,
            server_default="PENDING",
        ),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["anticipation_id"],
            ["anticipations.id"],
            name="fk_queue_tasks_anticipation_id",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dedup_key", name="uq_queue_tasks_dedup_key"),
    )
    op.create_index("ix_queue_tasks_company_id", "queue_tasks", ["company_id"])


def downgrade() -> None:
    op.drop_index("ix_queue_tasks_company_id", table_name="queue_tasks")
    op.drop_table("queue_tasks")
    op.drop_index(
        "ix_anticipations_company_created_at",
        table_name="anticipations",
    )
    op.drop_index("uq_anticipations_company_open", table_name="anticipations")
    op.drop_table("anticipations")
    op.drop_index(
        "ix_payment_release_schedules_company_eligibility",
        table_name="payment_release_schedules",
    )
    op.drop_index(
        "ix_payment_release_schedules_due",
        table_name="payment_release_schedules",
    )
    op.drop_index(
        "ix_payment_release_schedules_payment_id",
        table_name="payment_release_schedules",
    )
    op.drop_table("payment_release_schedules")
    op.drop_table("wallets")
    op.drop_index("ix_transactions_wallet_key", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_api_keys_company_id", table_name="api_keys")
    op.drop_table("api_keys")
    op.drop_table("company_tax_configs")
    op.drop_table("companies")

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
