import json
import logging
from pathlib import Path

import pytest

from resultant_rights.utils.errors import ConfigurationError
from resultant_rights.utils.logging import JsonFormatter, configure_logging, get_logger


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord("resultant_rights.test", logging.INFO, __file__, 1, "matched %s", ("rules",), None)
    record.side = "target"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "matched rules"
    assert payload["level"] == "INFO"
    assert payload["side"] == "target"


def test_configure_logging_writes_json_file(tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"
    configure_logging(level="DEBUG", log_dir=log_dir)
    get_logger("resultant_rights.test").info("resolved", extra={"records": 3})
    for handler in logging.getLogger().handlers:
        handler.flush()
    lines = (log_dir / "resultant-rights.log").read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[-1])["records"] == 3
    configure_logging(level="WARNING", log_dir=log_dir)


def test_unusable_log_directory_is_a_configuration_error(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Cannot create log directory"):
        configure_logging(log_dir=blocker / "logs")


def test_unknown_level_is_a_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Cannot configure logging"):
        configure_logging(level="chatty", log_dir=tmp_path / "logs")
    configure_logging(level="WARNING", log_dir=tmp_path / "logs")
