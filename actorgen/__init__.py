"""actorgen - turn plain classes into message-driven actors.

A declaration holds the actor's state, a method block holds its behavior.
Methods tagged with ``@handler`` become asynchronous calls on a public handle;
each call is sent to the actor as a message and awaits its reply:

    from dataclasses import dataclass
    from actorgen import LocalSpawner, actor, handler, impl

    @actor
    @dataclass
    class Counter:
        count: int

    @actor
    class Counter(impl):
        @classmethod
        def new(cls, start: int):
            return cls(count=start)

        @handler
        async def increment(self, by: int) -> int:
            self.count += by
            return self.count

    async def main():
        async with LocalSpawner() as spawner:
            counter = Counter.new(spawner, 5)
            print(await counter.increment(3))  # 8

The same expansion is available as a source-to-source rewrite through
``transform_source`` and ``python -m actorgen``.
"""

from .config import ActorgenConfig, GeneratorConfig, LoggingConfig, RuntimeConfig, load_config
from .decorators import actor, handler, impl
from .emitter import emit_actor, transform_module, transform_source
from .errors import ActorDied, TransformError
from .runtime import Address, LocalSpawner, Message, Spawner, result_type

__all__ = [
    # Tags
    "actor",
    "handler",
    "impl",
    # Transformation
    "emit_actor",
    "transform_module",
    "transform_source",
    # Runtime
    "Address",
    "LocalSpawner",
    "Message",
    "Spawner",
    "result_type",
    # Errors
    "ActorDied",
    "TransformError",
    # Configuration
    "ActorgenConfig",
    "GeneratorConfig",
    "LoggingConfig",
    "RuntimeConfig",
    "load_config",
]

__version__ = "0.1.0"
