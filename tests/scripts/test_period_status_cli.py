"""
Smoke tests for scripts/period_status.py.
"""

import importlib.util
import json
import logging
from pathlib import Path

import pytest

from kpi_config import DATABASE_URL_ENV

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "period_status.py"


@pytest.fixture
def period_status(monkeypatch):
    monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
    spec = importlib.util.spec_from_file_location("period_status_cli", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    yield module
    # main() silences logging for the whole process
    logging.disable(logging.NOTSET)


def _run(module, monkeypatch, *argv) -> int:
    monkeypatch.setattr("sys.argv", ["period_status.py", *argv])
    return module.main()


class TestPeriodStatusCli:
    def test_json_output(self, period_status, monkeypatch, capsys):
        assert _run(period_status, monkeypatch, "--today", "2024-11-02", "--json") == 0
        payload = json.loads(capsys.readouterr().out)

        assert payload["weekly"]["period_key"] == "2024-W44"
        assert payload["weekly"]["start_date"] == "2024-10-26"
        assert payload["weekly"]["due_date"] == "2024-11-03"
        assert payload["weekly"]["entry_open"] is True
        assert payload["monthly"]["period_key"] == "2024-10"
        assert payload["monthly"]["entry_open"] is False

    def test_privileged_text_output(self, period_status, monkeypatch, capsys):
        assert _run(period_status, monkeypatch, "--today", "2024-03-13", "--privileged") == 0
        out = capsys.readouterr().out
        assert "WEEKLY  2024-W11" in out
        assert "CLOSED" not in out

    def test_missing_config(self, period_status, monkeypatch, capsys, tmp_path):
        assert _run(period_status, monkeypatch, "--config", str(tmp_path / "absent.yaml")) == 1
        assert "ERROR" in capsys.readouterr().err
