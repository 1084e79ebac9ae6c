from __future__ import annotations

from . import logger
from .errors import TransformError
from .model import Classification, Method, MethodBlock, Receiver

CONSTRUCTOR = "new"


def _check_constructor(block: MethodBlock, method: Method) -> None:
    if method.receiver is Receiver.INSTANCE:
        raise TransformError(
            "`new` must be a classmethod or staticmethod",
            actor=block.name,
            lineno=method.lineno,
        )
    if method.is_async:
        raise TransformError("`new` must not be async", actor=block.name, lineno=method.lineno)
    if method.variadic:
        raise TransformError(
            "`new` cannot take *args or **kwargs",
            actor=block.name,
            lineno=method.lineno,
        )


def _check_handler(block: MethodBlock, method: Method) -> None:
    if method.receiver is not Receiver.INSTANCE:
        raise TransformError(
            f"handler {method.name!r} must be an instance method",
            actor=block.name,
            lineno=method.lineno,
        )
    if method.variadic:
        raise TransformError(
            f"handler {method.name!r} cannot take *args or **kwargs",
            actor=block.name,
            lineno=method.lineno,
        )


def classify(block: MethodBlock) -> Classification:
    """Split a method block into its constructor, handlers and plain methods.

    The constructor is also part of the plain group so that it stays callable
    on the internal actor type.
    """
    constructors = [m for m in block.methods if m.name == CONSTRUCTOR]
    if not constructors:
        raise TransformError("actor must have a `new` method", actor=block.name, lineno=block.lineno)
    if len(constructors) > 1:
        raise TransformError("actor has more than one `new` method", actor=block.name)

    constructor = constructors[0]
    _check_constructor(block, constructor)

    handlers: list[Method] = []
    plain: list[Method] = []
    for method in block.methods:
        if method.is_handler and method is not constructor:
            _check_handler(block, method)
            handlers.append(method)
        else:
            plain.append(method)

    logger.debug(
        "classified methods",
        actor=block.name,
        handlers=[m.name for m in handlers],
        plain=[m.name for m in plain],
    )
    return Classification(constructor=constructor, handlers=handlers, plain=plain)
