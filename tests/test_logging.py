import logging
import sys

import pytest

from glue_gun.logging import ROOT_LOGGER_NAME, configure_logging, get_logger


def test_get_logger_names():
    assert get_logger().name == ROOT_LOGGER_NAME
    assert get_logger("Watch").name == "glue_gun.Watch"
    assert get_logger("glue_gun.compile.iso").name == "glue_gun.compile.iso"


def test_configure_logging_replaces_handler(capsys):
    configure_logging("INFO")
    logger = configure_logging("debug")

    ours = [h for h in logger.handlers if getattr(h, "_glue_gun_handler", False)]
    assert len(ours) == 1
    assert logger.level == logging.DEBUG

    get_logger("test").debug("visible")
    assert "visible" in capsys.readouterr().err


def test_configure_logging_filters_by_level(capsys):
    configure_logging(logging.WARNING)
    get_logger("test").info("hidden")
    get_logger("test").warning("shown")
    err = capsys.readouterr().err
    assert "hidden" not in err
    assert "WARNING [glue_gun.test] shown" in err


def test_configure_logging_invalid_level():
    with pytest.raises(ValueError):
        configure_logging("LOUD")


if __name__ == "__main__":
    pytest.main(sys.argv)
