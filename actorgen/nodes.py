"""Small ``ast`` builders shared by the generators."""

from __future__ import annotations

import ast
import copy
from collections.abc import Callable

from .config import GeneratorConfig
from .model import Param, ParamKind


def load(name: str) -> ast.Name:
    return ast.Name(id=name, ctx=ast.Load())


def attr(value: ast.expr | str, name: str) -> ast.Attribute:
    if isinstance(value, str):
        value = load(value)
    return ast.Attribute(value=value, attr=name, ctx=ast.Load())


def runtime_ref(name: str, config: GeneratorConfig) -> ast.Attribute:
    return attr(config.runtime_alias, name)


def runtime_import(config: GeneratorConfig) -> ast.Import:
    return ast.Import(names=[ast.alias(name=config.runtime_module, asname=config.runtime_alias)])


def clone[N: ast.AST](node: N) -> N:
    return copy.deepcopy(node)


def clone_opt[N: ast.AST](node: N | None) -> N | None:
    return None if node is None else copy.deepcopy(node)


def arguments(
    params: list[Param],
    *,
    receiver: str | None = None,
    leading: list[ast.arg] | None = None,
) -> ast.arguments:
    """Signature mirroring *params*, annotations and defaults included."""
    head = [ast.arg(arg=receiver)] if receiver is not None else []
    head += leading or []

    posonly = [p for p in params if p.kind is ParamKind.POSITIONAL_ONLY]
    regular = [p for p in params if p.kind is ParamKind.POSITIONAL_OR_KEYWORD]
    kwonly = [p for p in params if p.kind is ParamKind.KEYWORD_ONLY]

    def arg(p: Param) -> ast.arg:
        return ast.arg(arg=p.name, annotation=clone_opt(p.annotation))

    # receiver and leading parameters go first, ahead of any positional-only ones
    if posonly:
        posonlyargs, args = head + [arg(p) for p in posonly], [arg(p) for p in regular]
    else:
        posonlyargs, args = [], head + [arg(p) for p in regular]

    positional = posonly + regular
    defaults = [clone(p.default) for p in positional if p.default is not None]

    return ast.arguments(
        posonlyargs=posonlyargs,
        args=args,
        vararg=None,
        kwonlyargs=[arg(p) for p in kwonly],
        kw_defaults=[clone_opt(p.default) for p in kwonly],
        kwarg=None,
        defaults=defaults,
    )


def forward(
    func: ast.expr,
    params: list[Param],
    value: Callable[[Param], ast.expr],
) -> ast.Call:
    """Call *func* with one argument per parameter, in declared order.

    Positional parameters are passed positionally, keyword-only ones by name.
    """
    return ast.Call(
        func=func,
        args=[value(p) for p in params if not p.is_keyword_only],
        keywords=[ast.keyword(arg=p.name, value=value(p)) for p in params if p.is_keyword_only],
    )
