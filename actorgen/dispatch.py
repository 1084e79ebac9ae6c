"""Dispatch bindings.

Each handler gets a method on the internal actor, registered for its message
type with the runtime's ``on`` decorator:

    @_actorgen.on(_Message7_Counter__increment)
    async def _dispatch7_Counter__increment(self, message):
        return await self.increment(message.by)
"""

from __future__ import annotations

import ast

from . import logger
from .config import GeneratorConfig
from .errors import TransformError
from .model import DispatchBinding, MessageType, Method
from .naming import Role, synthesize
from .nodes import attr, forward, load, runtime_ref

MESSAGE_PARAM = "message"


def bind_handler(
    actor: str,
    method: Method,
    message: MessageType,
    config: GeneratorConfig | None = None,
) -> DispatchBinding:
    config = config or GeneratorConfig()
    if not isinstance(method, Method):
        raise TransformError(
            f"tried to bind a handler for non-method {type(method).__name__}",
            actor=actor,
        )
    if message.method is not method:
        raise TransformError(
            f"message {message.name} does not belong to handler {method.name!r}",
            actor=actor,
        )

    name = synthesize(actor, method.name, Role.DISPATCH, config)

    call: ast.expr = forward(
        attr("self", method.name),
        method.params,
        lambda p: attr(MESSAGE_PARAM, p.name),
    )
    if method.is_async:
        call = ast.Await(value=call)

    node = ast.AsyncFunctionDef(
        name=name,
        args=ast.arguments(
            posonlyargs=[],
            args=[ast.arg(arg="self"), ast.arg(arg=MESSAGE_PARAM, annotation=load(message.name))],
            vararg=None,
            kwonlyargs=[],
            kw_defaults=[],
            kwarg=None,
            defaults=[],
        ),
        body=[ast.Return(value=call)],
        decorator_list=[
            ast.Call(func=runtime_ref("on", config), args=[load(message.name)], keywords=[]),
        ],
        returns=None,
        type_params=[],
    )

    return DispatchBinding(name=name, message=message, method=method, node=node)


def bind_handlers(
    actor: str,
    messages: list[MessageType],
    config: GeneratorConfig | None = None,
) -> list[DispatchBinding]:
    bindings = [bind_handler(actor, m.method, m, config) for m in messages]
    logger.debug("bound handlers", actor=actor, bindings=[b.name for b in bindings])
    return bindings
