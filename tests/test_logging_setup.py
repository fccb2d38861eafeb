import logging

import pytest

from evm_freeze.utils import get_current_log_file, logging_setup, setup_logging


@pytest.fixture
def fresh_logging(monkeypatch):
    root = logging.getLogger()
    handlers = list(root.handlers)
    monkeypatch.setattr(logging_setup, "_is_logging_configured", False)
    monkeypatch.setattr(logging_setup, "_current_log_file", None)
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers


def test_setup_logging_writes_to_file(tmp_path, fresh_logging):
    setup_logging(log_dir=tmp_path / "logs")
    log_file = get_current_log_file()

    assert log_file.parent == tmp_path / "logs"
    assert log_file.name.startswith("evm_freeze_")

    logging.getLogger("evm_freeze.test").debug("written to file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "written to file" in log_file.read_text()
    assert logging.getLogger("httpx").level == logging.WARNING


def test_setup_logging_is_idempotent(tmp_path, fresh_logging):
    setup_logging(log_dir=tmp_path)
    n_handlers = len(logging.getLogger().handlers)
    log_file = get_current_log_file()

    setup_logging(log_dir=tmp_path / "other")

    assert len(logging.getLogger().handlers) == n_handlers
    assert get_current_log_file() == log_file
