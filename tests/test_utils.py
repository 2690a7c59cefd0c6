import json
import logging
import logging.handlers

import pytest

from utils import load_config, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_load_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"simulation_parameters": {"num_classes": 2}}))
    assert load_config(str(path)) == {"simulation_parameters": {"num_classes": 2}}


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.json"))


def test_load_config_bad_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with pytest.raises(json.JSONDecodeError):
        load_config(str(path))


def test_load_config_requires_object(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError, match="JSON object"):
        load_config(str(path))


def test_setup_logging_creates_rotating_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "sim.log"
    setup_logging({"logging": {"level": "debug", "log_file": str(log_file)}})

    root = restore_root_logger
    assert root.level == logging.DEBUG
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
    assert log_file.exists()


def test_setup_logging_without_file(restore_root_logger):
    setup_logging({"logging": {"level": "WARNING", "log_file": None}})
    root = restore_root_logger
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0], logging.handlers.RotatingFileHandler)


def test_setup_logging_unknown_level_falls_back(restore_root_logger):
    setup_logging({"logging": {"level": "chatty", "log_file": None}})
    assert restore_root_logger.level == logging.INFO
