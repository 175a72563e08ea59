"""Initial schema for ledger entities."""
from __future__ import annotations

from collections.abc import Iterable

import sqlalchemy as sa
from alembic import op

revision = "20260301_01"
down_revision = None
branch_labels = None
depends_on: Iterable[str] | None = None


def _drop_enum(name: str) -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(sa.text(f"DROP TYPE IF EXISTS {name}"))


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:  # noqa: D401
    """Create ledger tables, indexes and constraints."""

    user_role = sa.Enum("ADMIN", "USER", name="user_role")
    transaction_kind = sa.Enum("given", "received", name="transaction_kind")
    payment_method_type = sa.Enum("upi", "qr", name="payment_method_type")
    payment_claim_status = sa.Enum("pending", "completed", "failed", name="payment_claim_status")
    deletion_request_status = sa.Enum("pending", "approved", "rejected", name="deletion_request_status")

    for enum_type in (
        user_role,
        transaction_kind,
        payment_method_type,
        payment_claim_status,
        deletion_request_status,
    ):
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("email", sa.String(length=320)),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="USER"),
        *_timestamps(),
        sa.UniqueConstraint("phone", name="uq_users_phone"),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("mobile", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_customers_owner_id", "customers", ["owner_id"])
    op.create_index("ix_customers_owner_mobile", "customers", ["owner_id", "mobile"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("kind", transaction_kind, nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("balance", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("lock_version", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_transactions_owner_id", "transactions", ["owner_id"])
    op.create_index(
        "ix_transactions_owner_customer",
        "transactions",
        ["owner_id", "customer_id", "occurred_at", "sequence"],
    )

    op.create_table(
        "shared_links",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("phone_number", sa.String(length=32), nullable=False),
        sa.Column("customer_id", sa.String(length=36)),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("token", name="uq_shared_links_token"),
    )
    op.create_index("ix_shared_links_owner_id", "shared_links", ["owner_id"])
    op.create_index("ix_shared_links_expires_at", "shared_links", ["expires_at"])

    op.create_table(
        "payment_methods",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("type", payment_method_type, nullable=False),
        sa.Column("upi_id", sa.String(length=255)),
        sa.Column("qr_code", sa.Text()),
        sa.Column("label", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_payment_methods_owner_id", "payment_methods", ["owner_id"])

    op.create_table(
        "payment_claims",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("shared_link_token", sa.String(length=128), nullable=False),
        sa.Column("payer_phone_number", sa.String(length=32), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("payment_method_id", sa.String(length=36)),
        sa.Column("payment_method_type", payment_method_type, nullable=False),
        sa.Column("payment_method_label", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("payment_method_upi_id", sa.String(length=255)),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("proof_image_key", sa.String(length=512), nullable=False),
        sa.Column("status", payment_claim_status, nullable=False, server_default="pending"),
        sa.Column("processed_at", sa.DateTime(timezone=True)),
        sa.Column("processed_by", sa.String(length=36)),
        sa.Column("transaction_id", sa.String(length=36)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["payment_method_id"], ["payment_methods.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_payment_claims_owner_id", "payment_claims", ["owner_id"])
    op.create_index("ix_payment_claims_status", "payment_claims", ["status"])

    op.create_table(
        "account_deletion_requests",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("user_phone", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("status", deletion_request_status, nullable=False, server_default="pending"),
        sa.Column("reason", sa.Text(), nullable=False, server_default=""),
        sa.Column("processed_at", sa.DateTime(timezone=True)),
        sa.Column("processed_by", sa.String(length=36)),
        *_timestamps(),
    )
    op.create_index("ix_account_deletion_requests_user_id", "account_deletion_requests", ["user_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=36)),
        sa.Column("actor_id", sa.String(length=36)),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("resource_type", sa.String(length=128), nullable=False),
        sa.Column("resource_id", sa.String(length=128)),
        sa.Column("payload", sa.JSON()),
        *_timestamps(),
    )
    op.create_index("ix_audit_logs_owner_id", "audit_logs", ["owner_id"])


def downgrade() -> None:  # noqa: D401
    """Drop ledger tables."""

    op.drop_index("ix_audit_logs_owner_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_account_deletion_requests_user_id", table_name="account_deletion_requests")
    op.drop_table("account_deletion_requests")

    op.drop_index("ix_payment_claims_status", table_name="payment_claims")
    op.drop_index("ix_payment_claims_owner_id", table_name="payment_claims")
    op.drop_table("payment_claims")

    op.drop_index("ix_payment_methods_owner_id", table_name="payment_methods")
    op.drop_table("payment_methods")

    op.drop_index("ix_shared_links_expires_at", table_name="shared_links")
    op.drop_index("ix_shared_links_owner_id", table_name="shared_links")
    op.drop_table("shared_links")

    op.drop_index("ix_transactions_owner_customer", table_name="transactions")
    op.drop_index("ix_transactions_owner_id", table_name="transactions")
    op.drop_table("transactions")

    op.drop_index("ix_customers_owner_mobile", table_name="customers")
    op.drop_index("ix_customers_owner_id", table_name="customers")
    op.drop_table("customers")

    op.drop_table("users")

    for enum_name in (
        "deletion_request_status",
        "payment_claim_status",
        "payment_method_type",
        "transaction_kind",
        "user_role",
    ):
        _drop_enum(enum_name)
