"""TOML-based configuration for actorgen.

Provides ``load_config`` / ``discover_config`` for loading ``actorgen.toml``
and frozen dataclasses for code generation, the local runtime and logging.
"""

from __future__ import annotations

import keyword
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .logger import FORMATTERS, Level


__all__ = [
    "ActorgenConfig",
    "GeneratorConfig",
    "LoggingConfig",
    "RuntimeConfig",
    "discover_config",
    "load_config",
]


CONFIG_FILENAME = "actorgen.toml"


def _check_identifier(name: str, value: str) -> None:
    if not value.isidentifier() or keyword.iskeyword(value):
        raise ValueError(f"{name} must be a valid Python identifier, got {value!r}")


@dataclass(frozen=True)
class GeneratorConfig:
    """Settings controlling the code emitted for each actor.

    Parameters
    ----------
    namespace_prefix : str
        Prefix of the hidden namespace class wrapping the internal actor
        type; ``"_Actor"`` turns ``Counter`` into ``_ActorCounter``.
    runtime_module : str
        Dotted path of the module providing the runtime surface used by
        generated code (``Message``, ``message``, ``on``, ``Actor``,
        ``Address``, ``Spawner``, ``dataclass``).
    runtime_alias : str
        Name the runtime module is imported as in generated code.
    address_field : str
        Name of the handle attribute holding the actor address.

    Examples
    --------
    >>> GeneratorConfig(namespace_prefix="_Hidden")
    GeneratorConfig(namespace_prefix='_Hidden', runtime_module='actorgen.runtime', runtime_alias='_actorgen', address_field='_addr')
    """

    namespace_prefix: str = "_Actor"
    runtime_module: str = "actorgen.runtime"
    runtime_alias: str = "_actorgen"
    address_field: str = "_addr"

    def __post_init__(self) -> None:
        _check_identifier("namespace_prefix", self.namespace_prefix)
        _check_identifier("runtime_alias", self.runtime_alias)
        _check_identifier("address_field", self.address_field)
        if self.namespace_prefix.startswith("__"):
            raise ValueError("namespace_prefix must not start with '__' (name mangling)")
        for part in self.runtime_module.split("."):
            _check_identifier("runtime_module", part)


@dataclass(frozen=True)
class RuntimeConfig:
    """Settings for the local actor runtime.

    Parameters
    ----------
    ask_timeout : float | None
        Seconds to wait for a reply. ``None`` waits forever.
    mailbox_size : int
        Maximum queued messages per actor. ``0`` for unbounded.
    isolate_messages : bool
        Round-trip every delivered message through msgpack so caller and
        actor never share mutable objects.
    """

    ask_timeout: float | None = None
    mailbox_size: int = 0
    isolate_messages: bool = False

    def __post_init__(self) -> None:
        if self.ask_timeout is not None and self.ask_timeout <= 0:
            raise ValueError("ask_timeout must be > 0")
        if self.mailbox_size < 0:
            raise ValueError("mailbox_size must be >= 0")


@dataclass(frozen=True)
class LoggingConfig:
    """Settings for the ``actorgen`` logger.

    Parameters
    ----------
    level : str
        One of ``DEBUG``, ``INFO``, ``WARN``, ``ERROR``, ``OFF``.
    format : str
        ``"verbose"`` (time and location) or ``"compact"``.
    colors : bool | None
        Force ANSI colors on or off. ``None`` colors only a terminal.
    """

    level: str = "WARN"
    format: str = "verbose"
    colors: bool | None = None

    def __post_init__(self) -> None:
        Level.parse(self.level)
        if self.format not in FORMATTERS:
            raise ValueError(f"Unknown log format: {self.format!r}")


@dataclass(frozen=True)
class ActorgenConfig:
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def discover_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``actorgen.toml``.

    Examples
    --------
    >>> discover_config(Path("/my/project"))
    PosixPath('/my/project/actorgen.toml')
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(path: Path | None = None) -> ActorgenConfig:
    """Load an ``ActorgenConfig`` from a TOML file.

    If *path* is ``None``, auto-discovers ``actorgen.toml`` by walking up from
    the current working directory. Returns the default config if no file is
    found.

    Raises
    ------
    FileNotFoundError
        If an explicit *path* is given but does not exist.
    """
    if path is None:
        discovered = discover_config()
        if discovered is None:
            return ActorgenConfig()
        path = discovered

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    return ActorgenConfig(
        generator=GeneratorConfig(**raw.get("generator", {})),
        runtime=RuntimeConfig(**raw.get("runtime", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
    )
