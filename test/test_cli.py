#!/usr/bin/env python3
"""Tests for the canonfts command line entry point."""
import logging
import sqlite3
import sys

import pytest
import yaml

from canonfts import cfgload
from canonfts.cli import main


@pytest.fixture(autouse=True)
def _restore_logging():
    """main() reconfigures the root logger; restore the previous handlers."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def no_env_config(monkeypatch, tmp_path):
    monkeypatch.delenv(cfgload.CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


class TestMain:
    def test_dump_defaults(self, capsys):
        assert main(["--dump-defaults"]) == 0
        dumped = yaml.safe_load(capsys.readouterr().out)
        assert dumped["edition"]["id"] == "bjt"

    @pytest.mark.usefixtures("requires_fts5", "no_env_config")
    def test_successful_run(self, test_env, tmp_path, capsys):
        config_path = tmp_path / "config.yaml"
        assert main(["--config", str(config_path)]) == 0

        out = capsys.readouterr().out
        assert "Buddha Jayanti Tripitaka" in out
        assert "Indexed 9 entries from 2 of 2 files" in out
        assert "Record ids: 1-9" in out
        assert test_env["db_path"].exists()

    @pytest.mark.usefixtures("requires_fts5", "no_env_config")
    def test_overrides(self, test_env, tmp_path, capsys):
        other_db = tmp_path / "other" / "out.db"
        code = main([
            "--config", str(tmp_path / "config.yaml"),
            "--output", str(other_db),
            "--batch-size", "2",
            "--suggestions",
        ])
        assert code == 0
        assert other_db.exists()
        assert not test_env["db_path"].exists()

        conn = sqlite3.connect(other_db)
        try:
            tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master")}
        finally:
            conn.close()
        assert "bjt_suggestions" in tables

    @pytest.mark.usefixtures("no_env_config")
    def test_missing_input_dir(self, test_env, tmp_path, capsys):
        code = main([
            "--config", str(tmp_path / "config.yaml"),
            "--input-dir", str(tmp_path / "missing"),
        ])
        assert code == 1
        assert "Input folder not found" in capsys.readouterr().out
        assert not test_env["db_path"].exists()

    @pytest.mark.usefixtures("no_env_config")
    def test_missing_config_file(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "nope.yaml")]) == 1
        assert "Config file not found" in capsys.readouterr().out

    @pytest.mark.usefixtures("no_env_config")
    def test_negative_batch_size(self, test_env, tmp_path, capsys):
        code = main(["--config", str(tmp_path / "config.yaml"), "--batch-size", "-5"])
        assert code == 1
        assert "batch_size" in capsys.readouterr().out

    @pytest.mark.usefixtures("requires_fts5", "no_env_config")
    def test_malformed_tree(self, test_env, tmp_path, capsys):
        test_env["tree_path"].write_text("{}{", encoding="utf-8")
        assert main(["--config", str(tmp_path / "config.yaml")]) == 1
        assert "Failed to read tree file" in capsys.readouterr().out
        assert not test_env["db_path"].exists()


if __name__ == "__main__":
    sys.exit(pytest.main(["-v", __file__]))
