from __future__ import annotations


class TransformError(ValueError):
    """Raised when an actor declaration cannot be transformed.

    The whole transformation is aborted; no partial output is produced.
    """

    def __init__(self, message: str, *, actor: str | None = None, lineno: int | None = None) -> None:
        self.actor = actor
        self.lineno = lineno
        prefix = ""
        if actor is not None:
            prefix = f"actor {actor!r}: "
        suffix = f" (line {lineno})" if lineno is not None else ""
        super().__init__(f"{prefix}{message}{suffix}")


class ActorDied(RuntimeError):
    """Raised when a request targets an actor that has already terminated."""

    def __init__(self, actor_id: str) -> None:
        self.actor_id = actor_id
        super().__init__(f"Actor {actor_id} has died")
