# tests/test_migrations.py
"""Alembic migrations run against a scratch database and match the models."""

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from aot_ledger.db.session import Base

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


@pytest.fixture()
def alembic_config(tmp_path, monkeypatch) -> tuple[Config, str]:
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("ALEMBIC_URL", url)
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    return config, url


def test_upgrade_targets_alembic_url_and_matches_models(alembic_config) -> None:
    config, url = alembic_config
    command.upgrade(config, "head")

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names()) - {"alembic_version"}
        assert tables == set(Base.metadata.tables)
        vote_columns = {column["name"] for column in inspector.get_columns("votes")}
        assert vote_columns == set(Base.metadata.tables["votes"].columns.keys())
        assert "voter_type" in vote_columns
    finally:
        engine.dispose()


def test_downgrade_drops_ledger_tables(alembic_config) -> None:
    config, url = alembic_config
    command.upgrade(config, "head")
    command.downgrade(config, "base")

    engine = create_engine(url)
    try:
        assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
    finally:
        engine.dispose()
