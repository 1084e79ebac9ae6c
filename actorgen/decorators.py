from __future__ import annotations

from typing import Any, Callable, TypeVar, overload

from . import logger
from .config import GeneratorConfig
from .loader import load_actor

F = TypeVar("F", bound=Callable[..., Any])


class impl:
    """Marker base of an actor's method block.

    Usage:
        @actor
        class Counter(impl):
            @classmethod
            def new(cls, start: int):
                return cls(count=start)
    """

    __slots__ = ()


def handler(fn: F) -> F:
    """Tag a method of a method block as a message handler.

    The tag is read from the source; at runtime the method is left untouched.
    """
    return fn


@overload
def actor[T: type](cls: T, /) -> T: ...


@overload
def actor[T: type](*, config: GeneratorConfig | None = None) -> Callable[[T], T]: ...


def actor(cls: type | None = None, /, *, config: GeneratorConfig | None = None) -> Any:
    """Turn a declaration plus a method block into an actor.

    Applied to a plain class, it marks the actor's declaration and returns the
    class unchanged. Applied to a ``class Name(impl)`` block, it expands both
    and returns the public handle, which then takes over the name.

    Usage:
        @actor
        @dataclass
        class Counter:
            count: int

        @actor
        class Counter(impl):
            ...
    """
    def decorator(c: type) -> type:
        if not issubclass(c, impl):
            logger.debug("registered actor declaration", actor=c.__name__)
            c.__actor_declaration__ = True
            return c

        return load_actor(c, config)

    if cls is not None:
        return decorator(cls)
    return decorator
