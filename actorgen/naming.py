from __future__ import annotations

from enum import Enum

from .config import GeneratorConfig


class Role(Enum):
    NAMESPACE = "namespace"
    MESSAGE = "Message"
    DISPATCH = "dispatch"


def synthesize(
    actor: str,
    method: str | None,
    role: Role,
    config: GeneratorConfig | None = None,
) -> str:
    """Deterministic name of a generated declaration.

    Message and dispatch names spell the length of the actor name before it,
    so no two (actor, method) pairs share a name, and they never start with
    two underscores, which Python would mangle inside class bodies.

    Examples:
        synthesize("Counter", None, Role.NAMESPACE) -> "_ActorCounter"
        synthesize("Counter", "increment", Role.MESSAGE) -> "_Message7_Counter__increment"
        synthesize("Counter", "increment", Role.DISPATCH) -> "_dispatch7_Counter__increment"
    """
    config = config or GeneratorConfig()

    match role:
        case Role.NAMESPACE:
            return f"{config.namespace_prefix}{actor}"
        case Role.MESSAGE | Role.DISPATCH:
            if method is None:
                raise ValueError(f"{role.name.lower()} names need a method name")
            return f"_{role.value}{len(actor)}_{actor}__{method}"
