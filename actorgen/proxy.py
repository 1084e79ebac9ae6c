"""Public handle generation.

For an actor ``Counter`` the handle reads:

    @_actorgen.handle
    class Counter:
        _addr: _actorgen.Address

        @classmethod
        def new(cls, spawner: _actorgen.Spawner, start: int) -> 'Counter':
            return cls(spawner.spawn(_ActorCounter.Counter.new(start)))

        async def increment(self, by: int) -> int:
            return await self._addr.ask(_Message7_Counter__increment(by))

Handles only carry an address, so copies share the running actor, and
isolated messages pass them along by reference.
"""

from __future__ import annotations

import ast

from . import logger
from .config import GeneratorConfig
from .errors import TransformError
from .model import Classification, MessageType, Method, ProxyHandle
from .naming import Role, synthesize
from .nodes import arguments, attr, clone, clone_opt, forward, load, runtime_ref

SPAWNER_PARAM = "spawner"


def _check_collisions(actor: str, classification: Classification, config: GeneratorConfig) -> None:
    ctor = classification.constructor
    for p in ctor.params:
        if p.name in (SPAWNER_PARAM, "cls"):
            raise TransformError(
                f"`new` parameter {p.name!r} collides with the generated constructor",
                actor=actor,
                lineno=ctor.lineno,
            )
    for m in classification.handlers:
        if m.name == config.address_field:
            raise TransformError(
                f"handler {m.name!r} collides with the handle's address field",
                actor=actor,
                lineno=m.lineno,
            )


def _constructor(actor: str, ctor: Method, config: GeneratorConfig) -> ast.FunctionDef:
    internal = attr(synthesize(actor, None, Role.NAMESPACE, config), actor)
    instance = forward(attr(internal, ctor.name), ctor.params, lambda p: load(p.name))
    spawn = ast.Call(func=attr(SPAWNER_PARAM, "spawn"), args=[instance], keywords=[])

    return ast.FunctionDef(
        name=ctor.name,
        args=arguments(
            ctor.params,
            receiver="cls",
            leading=[ast.arg(arg=SPAWNER_PARAM, annotation=runtime_ref("Spawner", config))],
        ),
        body=[ast.Return(value=ast.Call(func=load("cls"), args=[spawn], keywords=[]))],
        decorator_list=[load("classmethod")],
        returns=ast.Constant(value=actor),
        type_params=[],
    )


def _api_method(method: Method, message: MessageType, config: GeneratorConfig) -> ast.AsyncFunctionDef:
    # message fields are positional, in parameter order
    msg = ast.Call(func=load(message.name), args=[load(p.name) for p in method.params], keywords=[])

    ask = ast.Call(
        func=attr(attr("self", config.address_field), "ask"),
        args=[msg],
        keywords=[],
    )

    return ast.AsyncFunctionDef(
        name=method.name,
        args=arguments(method.params, receiver="self"),
        body=[ast.Return(value=ast.Await(value=ask))],
        decorator_list=[],
        returns=clone_opt(method.returns),
        type_params=[],
    )


def generate_proxy(
    actor: str,
    classification: Classification,
    messages: list[MessageType],
    config: GeneratorConfig | None = None,
    *,
    docstring: str | None = None,
    type_params: list[ast.AST] | None = None,
) -> ProxyHandle:
    config = config or GeneratorConfig()
    _check_collisions(actor, classification, config)

    by_method = {id(m.method): m for m in messages}
    body: list[ast.stmt] = []
    if docstring is not None:
        body.append(ast.Expr(value=ast.Constant(value=docstring)))

    body.append(
        ast.AnnAssign(
            target=ast.Name(id=config.address_field, ctx=ast.Store()),
            annotation=runtime_ref("Address", config),
            value=None,
            simple=1,
        )
    )
    body.append(_constructor(actor, classification.constructor, config))

    for method in classification.handlers:
        message = by_method.get(id(method))
        if message is None:
            raise TransformError(f"no message synthesized for handler {method.name!r}", actor=actor)
        body.append(_api_method(method, message, config))

    node = ast.ClassDef(
        name=actor,
        bases=[],
        keywords=[],
        body=body,
        decorator_list=[runtime_ref("handle", config)],
        type_params=[clone(t) for t in type_params or []],
    )

    logger.debug("generated handle", actor=actor, methods=[m.name for m in classification.handlers])
    return ProxyHandle(
        name=actor,
        constructor=classification.constructor,
        handlers=list(classification.handlers),
        node=node,
    )
