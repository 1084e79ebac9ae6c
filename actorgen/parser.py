"""Declaration parser.

Recognizes the two class shapes accepted by the transformer:

    @actor
    class Counter:              # aggregate declaration
        count: int

    @actor
    class Counter(impl):        # method block
        @classmethod
        def new(cls, start: int): ...

        @handler
        async def increment(self, by: int) -> int: ...

A class is a method block when one of its bases resolves to ``impl``;
every other class is an aggregate declaration.
"""

from __future__ import annotations

import ast

from . import logger
from .errors import TransformError
from .model import (
    ActorDeclaration,
    Field,
    FunctionNode,
    Method,
    MethodBlock,
    MethodKind,
    Param,
    ParamKind,
    Receiver,
)

ACTOR_TAG = "actor"
HANDLER_TAG = "handler"
IMPL_TAG = "impl"


def tag_name(expr: ast.expr) -> str | None:
    """Last path segment of a decorator or base expression.

    ``handler``, ``actorgen.handler`` and ``handler(...)`` all resolve
    to ``"handler"``.
    """
    match expr:
        case ast.Name(id=name):
            return name
        case ast.Attribute(attr=name):
            return name
        case ast.Call(func=func):
            return tag_name(func)
        case ast.Subscript(value=value):
            return tag_name(value)
        case _:
            return None


def has_tag(exprs: list[ast.expr], tag: str) -> bool:
    return any(tag_name(e) == tag for e in exprs)


def is_actor_item(node: ast.AST) -> bool:
    return isinstance(node, ast.ClassDef) and has_tag(node.decorator_list, ACTOR_TAG)


def is_method_block(node: ast.ClassDef) -> bool:
    return has_tag(node.bases, IMPL_TAG)


def parse_item(node: ast.AST) -> ActorDeclaration | MethodBlock:
    if not isinstance(node, ast.ClassDef):
        raise TransformError(
            f"expected an actor declaration or method block, got {type(node).__name__}",
            lineno=getattr(node, "lineno", None),
        )

    if is_method_block(node):
        return parse_block(node)
    return parse_declaration(node)


def parse_source(source: str) -> ActorDeclaration | MethodBlock:
    try:
        tree = ast.parse(source)
    except SyntaxError as e:
        raise TransformError(f"invalid syntax: {e.msg}", lineno=e.lineno) from e

    if len(tree.body) != 1:
        raise TransformError(f"expected exactly one item, got {len(tree.body)}")
    return parse_item(tree.body[0])


def _strip_actor_tag(decorators: list[ast.expr]) -> list[ast.expr]:
    return [d for d in decorators if tag_name(d) != ACTOR_TAG]


def parse_declaration(node: ast.ClassDef) -> ActorDeclaration:
    fields: list[Field] = []

    for stmt in node.body:
        match stmt:
            case ast.FunctionDef() | ast.AsyncFunctionDef():
                raise TransformError(
                    f"declaration cannot define method {stmt.name!r}; "
                    f"move it into a `class {node.name}(impl)` block",
                    actor=node.name,
                    lineno=stmt.lineno,
                )
            case ast.AnnAssign(target=ast.Name(id=name), annotation=annotation, value=value):
                fields.append(Field(name=name, annotation=annotation, default=value))

    declaration = ActorDeclaration(
        name=node.name,
        fields=fields,
        body=list(node.body),
        type_params=list(getattr(node, "type_params", [])),
        bases=list(node.bases),
        keywords=list(node.keywords),
        decorators=_strip_actor_tag(node.decorator_list),
        lineno=node.lineno,
    )
    logger.debug("parsed actor declaration", actor=node.name, fields=len(fields))
    return declaration


def parse_block(node: ast.ClassDef) -> MethodBlock:
    docstring = ast.get_docstring(node, clean=False)
    body = node.body[1:] if docstring is not None else node.body

    methods: list[Method] = []
    items: list[ast.stmt] = []
    seen: set[str] = set()

    for stmt in body:
        match stmt:
            case ast.FunctionDef() | ast.AsyncFunctionDef():
                if stmt.name in seen:
                    raise TransformError(
                        f"method {stmt.name!r} is defined more than once",
                        actor=node.name,
                        lineno=stmt.lineno,
                    )
                seen.add(stmt.name)
                methods.append(parse_method(stmt, actor=node.name))
            case ast.AnnAssign():
                raise TransformError(
                    "method block cannot declare fields; declare them on the actor class",
                    actor=node.name,
                    lineno=stmt.lineno,
                )
            case _:
                items.append(stmt)

    block = MethodBlock(
        name=node.name,
        methods=methods,
        items=items,
        docstring=docstring,
        bases=[b for b in node.bases if tag_name(b) != IMPL_TAG],
        lineno=node.lineno,
    )
    logger.debug(
        "parsed method block",
        actor=node.name,
        methods=len(methods),
        handlers=sum(1 for m in methods if m.is_handler),
    )
    return block


def _receiver(node: FunctionNode) -> Receiver:
    if has_tag(node.decorator_list, "staticmethod"):
        return Receiver.NONE
    if has_tag(node.decorator_list, "classmethod"):
        return Receiver.CLASS
    return Receiver.INSTANCE


def _params(args: ast.arguments) -> list[Param]:
    positional = [(a, ParamKind.POSITIONAL_ONLY) for a in args.posonlyargs]
    positional += [(a, ParamKind.POSITIONAL_OR_KEYWORD) for a in args.args]

    # defaults line up with the tail of the positional parameters
    defaults: list[ast.expr | None] = [None] * (len(positional) - len(args.defaults))
    defaults += args.defaults

    params = [
        Param(name=a.arg, annotation=a.annotation, default=d, kind=kind)
        for (a, kind), d in zip(positional, defaults)
    ]
    params += [
        Param(name=a.arg, annotation=a.annotation, default=d, kind=ParamKind.KEYWORD_ONLY)
        for a, d in zip(args.kwonlyargs, args.kw_defaults)
    ]
    return params


def parse_method(node: FunctionNode, *, actor: str) -> Method:
    receiver = _receiver(node)
    params = _params(node.args)

    if receiver is not Receiver.NONE:
        if not params or params[0].is_keyword_only:
            raise TransformError(
                f"method {node.name!r} has no receiver parameter",
                actor=actor,
                lineno=node.lineno,
            )
        params = params[1:]

    kind = MethodKind.HANDLER if has_tag(node.decorator_list, HANDLER_TAG) else MethodKind.PLAIN

    return Method(
        name=node.name,
        params=params,
        returns=node.returns,
        kind=kind,
        node=node,
        receiver=receiver,
        is_async=isinstance(node, ast.AsyncFunctionDef),
        variadic=node.args.vararg is not None or node.args.kwarg is not None,
    )
