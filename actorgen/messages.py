"""Message type synthesis.

Every handler gets a record type carrying its arguments, e.g. for

    @handler
    async def increment(self, by: int) -> int: ...

on actor ``Counter``:

    @_actorgen.message
    class _Message7_Counter__increment(_actorgen.Message[int]):
        by: int
"""

from __future__ import annotations

import ast

from . import logger
from .config import GeneratorConfig
from .errors import TransformError
from .model import MessageType, Method
from .naming import Role, synthesize
from .nodes import clone, load, runtime_ref


def _result(method: Method) -> ast.expr:
    if method.returns is None:
        return ast.Constant(value=None)
    return clone(method.returns)


def synthesize_message(
    actor: str,
    method: Method,
    config: GeneratorConfig | None = None,
    *,
    type_params: list[ast.AST] | None = None,
) -> MessageType:
    config = config or GeneratorConfig()
    if not isinstance(method, Method):
        raise TransformError(
            f"tried to generate a message for non-method {type(method).__name__}",
            actor=actor,
        )

    name = synthesize(actor, method.name, Role.MESSAGE, config)

    body: list[ast.stmt] = [
        ast.AnnAssign(
            target=ast.Name(id=p.name, ctx=ast.Store()),
            annotation=clone(p.annotation) if p.annotation is not None else load("object"),
            value=None,
            simple=1,
        )
        for p in method.params
    ]

    node = ast.ClassDef(
        name=name,
        bases=[
            ast.Subscript(
                value=runtime_ref("Message", config),
                slice=_result(method),
                ctx=ast.Load(),
            )
        ],
        keywords=[],
        body=body or [ast.Pass()],
        decorator_list=[runtime_ref("message", config)],
        type_params=[clone(t) for t in type_params or []],
    )

    return MessageType(
        name=name,
        actor=actor,
        method=method,
        fields=list(method.params),
        result=method.returns,
        node=node,
    )


def synthesize_messages(
    actor: str,
    handlers: list[Method],
    config: GeneratorConfig | None = None,
    *,
    type_params: list[ast.AST] | None = None,
) -> list[MessageType]:
    messages = [synthesize_message(actor, m, config, type_params=type_params) for m in handlers]
    logger.debug("synthesized messages", actor=actor, messages=[m.name for m in messages])
    return messages
