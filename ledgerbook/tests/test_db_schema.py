"""Schema integrity tests for the ledger tables."""
from __future__ import annotations

from pathlib import Path

import pytest

sqlalchemy = pytest.importorskip("sqlalchemy")
alembic = pytest.importorskip("alembic")
alembic_command = pytest.importorskip("alembic.command")
alembic_config_module = pytest.importorskip("alembic.config")

sa = sqlalchemy
command = alembic_command
Config = alembic_config_module.Config


@pytest.fixture(scope="session")
def alembic_config(tmp_path_factory: pytest.TempPathFactory) -> Config:
    """Provide Alembic config bound to a temporary SQLite database."""

    project_root = Path(__file__).resolve().parents[2]
    db_path = tmp_path_factory.mktemp("db") / "test.db"

    config = Config(str(project_root / "alembic.ini"))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    config.set_main_option("script_location", str(project_root / "migrations"))
    config.attributes["configure_logger"] = False
    return config


@pytest.fixture(scope="session")
def migrated_engine(alembic_config: Config):
    """Run migrations against SQLite and yield an engine."""

    command.upgrade(alembic_config, "head")
    engine = sa.create_engine(alembic_config.get_main_option("sqlalchemy.url"))
    try:
        yield engine
    finally:
        engine.dispose()


def test_tables_exist(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    tables = set(inspector.get_table_names())
    expected = {
        "users",
        "customers",
        "transactions",
        "shared_links",
        "payment_methods",
        "payment_claims",
        "account_deletion_requests",
        "audit_logs",
    }
    assert expected.issubset(tables)


@pytest.mark.parametrize(
    "table_name",
    ["customers", "transactions", "shared_links", "payment_methods", "payment_claims"],
)
def test_owner_id_present(table_name: str, migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    columns = {column["name"]: column for column in inspector.get_columns(table_name)}
    assert "owner_id" in columns
    assert columns["owner_id"]["nullable"] is False


def test_transactions_carry_ordering_and_version_columns(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    columns = {column["name"] for column in inspector.get_columns("transactions")}
    assert {"occurred_at", "sequence", "balance", "lock_version"}.issubset(columns)


def test_foreign_keys_enforced(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    fk_expectations = {
        "customers": {"owner_id": "users"},
        "transactions": {"owner_id": "users", "customer_id": "customers"},
        "shared_links": {"owner_id": "users", "customer_id": "customers"},
        "payment_methods": {"owner_id": "users"},
        "payment_claims": {"owner_id": "users", "payment_method_id": "payment_methods"},
    }

    for table, expected in fk_expectations.items():
        foreign_keys = inspector.get_foreign_keys(table)
        fk_map = {tuple(fk["constrained_columns"]): fk["referred_table"] for fk in foreign_keys}
        for column, target in expected.items():
            assert (column,) in fk_map
            assert fk_map[(column,)] == target


def test_deletion_requests_outlive_their_user(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    assert inspector.get_foreign_keys("account_deletion_requests") == []


def test_unique_constraints(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    unique_expectations = {
        "users": {"uq_users_phone": {"phone"}},
        "shared_links": {"uq_shared_links_token": {"token"}},
        "transactions": {"uq_transactions_pair_sequence": {"owner_id", "customer_id", "sequence"}},
    }

    for table, expected in unique_expectations.items():
        constraints = inspector.get_unique_constraints(table)
        found = {constraint["name"]: set(constraint["column_names"]) for constraint in constraints}
        for name, columns in expected.items():
            assert name in found
            assert found[name] == columns


def test_owner_indexes(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    index_expectations = {
        "customers": "ix_customers_owner_id",
        "transactions": "ix_transactions_owner_customer",
        "shared_links": "ix_shared_links_owner_id",
        "payment_methods": "ix_payment_methods_owner_id",
        "payment_claims": "ix_payment_claims_owner_id",
        "audit_logs": "ix_audit_logs_owner_id",
    }

    for table, index_name in index_expectations.items():
        indexes = {index["name"] for index in inspector.get_indexes(table)}
        assert index_name in indexes


def test_downgrade_drops_everything(alembic_config: Config, migrated_engine: sa.Engine) -> None:
    command.downgrade(alembic_config, "base")
    try:
        tables = set(sa.inspect(migrated_engine).get_table_names())
        assert tables <= {"alembic_version"}
    finally:
        command.upgrade(alembic_config, "head")
