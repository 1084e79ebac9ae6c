"""Structured logging for actorgen.

Messages carry keyword fields that are rendered after the text:

    logger.debug("emitted actor", actor="Counter", handlers=2)
    # 12:30:15.250 [DEBUG] emitter:emit_actor:118 emitted actor actor='Counter' handlers=2
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from enum import IntEnum
from typing import Any, Protocol


class Level(IntEnum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    OFF = 4

    @classmethod
    def parse(cls, name: str) -> Level:
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {name!r}") from None


RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
MAGENTA = "\033[35m"
CYAN = "\033[36m"

# label and ANSI codes for the label; the message shares the label's color
# only for warnings and errors
_STYLES: dict[Level, tuple[str, tuple[str, ...], bool]] = {
    Level.DEBUG: ("[DEBUG]", (MAGENTA,), False),
    Level.INFO: ("[INFO]", (CYAN,), False),
    Level.WARN: ("[WARN]", (YELLOW, BOLD), True),
    Level.ERROR: ("[ERROR]", (RED, BOLD), True),
}


class FormatterFn(Protocol):
    def __call__(
        self,
        *,
        time: datetime,
        level: Level,
        location: str,
        message: str,
        fields: dict[str, Any],
    ) -> str: ...


_use_colors: bool = sys.stderr.isatty()


def _paint(text: str, *codes: str) -> str:
    if not _use_colors or not codes:
        return text
    return f"{''.join(codes)}{text}{RESET}"


def _label(level: Level) -> str:
    label, codes, _ = _STYLES.get(level, ("???", (), False))
    return _paint(label, *codes)


def _message(level: Level, message: str) -> str:
    _, codes, tint = _STYLES.get(level, ("", (), False))
    return _paint(message, codes[0]) if tint else message


def _fields(fields: dict[str, Any]) -> str:
    rendered = (
        f"{_paint(key, DIM)}={_paint(repr(value), GREEN) if isinstance(value, str) else value}"
        for key, value in fields.items()
    )
    return "".join(f" {part}" for part in rendered)


class formatters:
    @staticmethod
    def verbose(
        *,
        time: datetime,
        level: Level,
        location: str,
        message: str,
        fields: dict[str, Any],
    ) -> str:
        stamp = _paint(time.strftime("%H:%M:%S.%f")[:-3], DIM)
        return f"{stamp} {_label(level)} {_paint(location, BLUE)} {_message(level, message)}{_fields(fields)}"

    @staticmethod
    def compact(
        *,
        time: datetime,
        level: Level,
        location: str,
        message: str,
        fields: dict[str, Any],
    ) -> str:
        del time, location
        return f"{_label(level)} {message}{_fields(fields)}"


FORMATTERS: dict[str, FormatterFn] = {
    "verbose": formatters.verbose,
    "compact": formatters.compact,
}

_formatter: FormatterFn = formatters.verbose

_TO_LOGGING = {
    Level.DEBUG: logging.DEBUG,
    Level.INFO: logging.INFO,
    Level.WARN: logging.WARNING,
    Level.ERROR: logging.ERROR,
    Level.OFF: logging.CRITICAL + 1,
}


def _from_logging(levelno: int) -> Level:
    if levelno >= logging.ERROR:
        return Level.ERROR
    if levelno >= logging.WARNING:
        return Level.WARN
    if levelno >= logging.INFO:
        return Level.INFO
    return Level.DEBUG


class _ActorgenFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = _formatter(
            time=datetime.fromtimestamp(record.created),
            level=_from_logging(record.levelno),
            location=f"{record.module}:{record.funcName}:{record.lineno}",
            message=record.getMessage(),
            fields=getattr(record, "fields", {}),
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


_logger = logging.getLogger("actorgen")
_logger.setLevel(logging.WARNING)
_logger.propagate = False

_handler = logging.StreamHandler()
_handler.setFormatter(_ActorgenFormatter())
_logger.addHandler(_handler)


def set_level(level: Level | str) -> None:
    if isinstance(level, str):
        level = Level.parse(level)
    _logger.setLevel(_TO_LOGGING[level])


def set_formatter(fn: FormatterFn | str) -> None:
    global _formatter
    if isinstance(fn, str):
        if fn not in FORMATTERS:
            raise ValueError(f"Unknown log format: {fn!r}")
        fn = FORMATTERS[fn]
    _formatter = fn


def set_colors(enabled: bool) -> None:
    global _use_colors
    _use_colors = enabled


def configure(level: Level | str, *, format: str | None = None, colors: bool | None = None) -> None:
    """Apply a ``[logging]`` configuration section in one call."""
    set_level(level)
    if format is not None:
        set_formatter(format)
    if colors is not None:
        set_colors(colors)


def debug(msg: str, **fields: Any) -> None:
    _logger.debug(msg, extra={"fields": fields}, stacklevel=2)


def info(msg: str, **fields: Any) -> None:
    _logger.info(msg, extra={"fields": fields}, stacklevel=2)


def warn(msg: str, **fields: Any) -> None:
    _logger.warning(msg, extra={"fields": fields}, stacklevel=2)


def error(msg: str, **fields: Any) -> None:
    _logger.error(msg, extra={"fields": fields}, stacklevel=2)


def exception(msg: str, **fields: Any) -> None:
    _logger.exception(msg, extra={"fields": fields}, stacklevel=2)
