import json
import logging

import pytest

from volt_analytics.observability.logger import get_run_id, new_run_id, set_run_id, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_handlers():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestRunId:
    def test_set_and_get(self):
        set_run_id("abc")
        assert get_run_id() == "abc"

    def test_new_run_id_changes(self):
        first = new_run_id()
        assert new_run_id() != first


class TestSetupLogging:
    def test_json_lines_carry_run_id(self, capsys):
        setup_logging(level="INFO", format="json")
        set_run_id("run-42")
        logging.getLogger("volt_analytics.test").info("hello %s", "world")
        line = capsys.readouterr().err.strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["event"] == "hello world"
        assert entry["run_id"] == "run-42"
        assert entry["level"] == "info"
        assert entry["logger"] == "volt_analytics.test"

    def test_level_filter(self, capsys):
        setup_logging(level="WARNING", format="json")
        logging.getLogger("volt_analytics.test").info("quiet")
        assert "quiet" not in capsys.readouterr().err

    def test_console_format(self, capsys):
        setup_logging(level="DEBUG", format="console")
        logging.getLogger("volt_analytics.test").debug("readable")
        assert "readable" in capsys.readouterr().err
