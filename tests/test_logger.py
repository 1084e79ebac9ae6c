import logging
from datetime import datetime

import pytest

from actorgen import logger
from actorgen.logger import Level, formatters


def test_level_parse():
    assert Level.parse("debug") is Level.DEBUG
    assert Level.parse("WARN") is Level.WARN

    with pytest.raises(ValueError, match="Unknown log level"):
        Level.parse("verbose")


def test_compact_formatter():
    logger.set_colors(False)

    line = formatters.compact(
        time=datetime(2024, 1, 1),
        level=Level.INFO,
        location="actorgen.emitter:emit_actor:1",
        message="emitted actor",
        fields={"actor": "Counter", "handlers": 2},
    )

    assert line == "[INFO] emitted actor actor='Counter' handlers=2"


def test_verbose_formatter_includes_location():
    logger.set_colors(False)

    line = formatters.verbose(
        time=datetime(2024, 1, 1, 12, 30, 15, 250000),
        level=Level.ERROR,
        location="actorgen.runtime:ask:10",
        message="handler failed",
        fields={},
    )

    assert line == "12:30:15.250 [ERROR] actorgen.runtime:ask:10 handler failed"


def test_custom_formatter_receives_fields():
    seen = []

    def capture(*, time, level, location, message, fields):
        seen.append((level, message, fields))
        return message

    logger.set_formatter(capture)
    logger.set_level("DEBUG")
    try:
        logger.debug("parsed", actor="Counter")
    finally:
        logger.set_formatter(formatters.verbose)
        logger.set_level(Level.WARN)

    assert seen == [(Level.DEBUG, "parsed", {"actor": "Counter"})]


def test_formatter_by_name():
    with pytest.raises(ValueError, match="Unknown log format"):
        logger.set_formatter("json")

    logger.set_formatter("compact")
    try:
        assert logger._formatter is formatters.compact
    finally:
        logger.set_formatter("verbose")


def test_configure_applies_every_setting():
    logger.configure("ERROR", format="compact", colors=False)
    try:
        assert logger._logger.level == logging.ERROR
        assert logger._formatter is formatters.compact
        assert logger._use_colors is False
    finally:
        logger.configure(Level.WARN, format="verbose")

    assert logger._logger.level == logging.WARNING


def test_off_silences_everything():
    logger.set_level("OFF")
    try:
        assert not logger._logger.isEnabledFor(logging.CRITICAL)
    finally:
        logger.set_level(Level.WARN)
