"""
Tests for the command-line import script
"""

import duckdb
import pytest

from core.config import settings
from scripts import run_import


@pytest.fixture
def script_settings(tmp_path, monkeypatch):
    """Point the script at a temporary ledger, warehouse and staging area"""
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'imports.db'}")
    monkeypatch.setattr(settings, "WAREHOUSE_PATH", str(tmp_path / "warehouse.duckdb"))
    monkeypatch.setattr(settings, "STAGING_DIR", str(tmp_path / "staging"))
    return settings


def test_imports_local_files(tmp_path, script_settings, january_csv, february_csv, capsys):
    jan = tmp_path / "jan.csv"
    feb = tmp_path / "feb.csv"
    jan.write_bytes(january_csv)
    feb.write_bytes(february_csv)

    exit_code = run_import.main(["--table", "trips", str(jan), str(feb)])

    assert exit_code == 0
    assert "Loading data from file..." in capsys.readouterr().out

    conn = duckdb.connect(script_settings.WAREHOUSE_PATH, read_only=True)
    try:
        rows = conn.execute("SELECT filename, COUNT(*) FROM trips GROUP BY 1 ORDER BY 1").fetchall()
    finally:
        conn.close()
    assert rows == [("feb.csv", 1), ("jan.csv", 2)]


def test_classified_failure_exit_code(script_settings, capsys):
    exit_code = run_import.main(["--table", "broken", "data:application/json"])

    assert exit_code == 1
    assert "ERROR: Failed to fetch data from URL" in capsys.readouterr().err


def test_unclassified_failure_exit_code(tmp_path, script_settings):
    """A warehouse error ends the script with exit code 1 instead of a traceback"""
    unknown = tmp_path / "README"
    unknown.write_bytes(b"not a dataset")

    exit_code = run_import.main(["--table", "notes", str(unknown)])

    assert exit_code == 1


def test_reserved_word_table_exit_code(tmp_path, script_settings, january_csv):
    jan = tmp_path / "jan.csv"
    jan.write_bytes(january_csv)

    assert run_import.main(["--table", "select", str(jan)]) == 1
