"""Reject duplicate creation-order numbers within a pair ledger."""
from __future__ import annotations

from collections.abc import Iterable

from alembic import op

revision = "20260315_01"
down_revision = "20260301_01"
branch_labels = None
depends_on: Iterable[str] | None = None


def upgrade() -> None:
    with op.batch_alter_table("transactions") as batch_op:
        batch_op.create_unique_constraint(
            "uq_transactions_pair_sequence", ["owner_id", "customer_id", "sequence"]
        )


def downgrade() -> None:
    with op.batch_alter_table("transactions") as batch_op:
        batch_op.drop_constraint("uq_transactions_pair_sequence", type_="unique")
