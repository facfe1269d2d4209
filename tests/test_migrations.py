"""Alembic upgrade/downgrade against a throwaway SQLite file."""
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ROOT = Path(__file__).resolve().parents[1]


def _alembic_config() -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(ROOT / "db" / "migrations"))
    return cfg


def _tables(db_path: Path) -> set:
    engine = create_engine(f"sqlite:///{db_path}")
    try:
        return set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_upgrade_then_downgrade(tmp_path, monkeypatch):
    db_path = tmp_path / "crm.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    cfg = _alembic_config()

    command.upgrade(cfg, "head")
    assert {"users", "products", "calls", "call_history"} <= _tables(db_path)

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        columns = {c["name"] for c in inspect(engine).get_columns("calls")}
    finally:
        engine.dispose()
    assert "ordered_at" in columns

    command.downgrade(cfg, "base")
    assert _tables(db_path) <= {"alembic_version"}
