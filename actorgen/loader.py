"""Decorator-mode expansion.

When ``@actor`` is applied to a method block at import time, the block's
defining file is parsed, the block is paired with its declaration, and the
emitted unit is compiled and executed inside a factory function:

    def _actorgen_factory(<captured variables>):
        import actorgen.runtime as _actorgen
        <message types, hidden namespace, handle>
        return Counter

Generated names therefore live in the factory's closure instead of the
module namespace, and variables the methods captured from an enclosing
function are passed back in as factory arguments.
"""

from __future__ import annotations

import __future__
import ast
import inspect
import linecache
import sys
from collections.abc import Callable, Iterator
from typing import Any

from . import logger
from .config import GeneratorConfig
from .emitter import emit_actor, pair_actors
from .errors import TransformError
from .nodes import load, runtime_import
from .parser import is_method_block, parse_block, parse_declaration

FACTORY = "_actorgen_factory"


def _functions(cls: type) -> Iterator[Callable[..., Any]]:
    for value in vars(cls).values():
        match value:
            case classmethod() | staticmethod():
                value = value.__func__
            case property():
                value = value.fget
        if inspect.isfunction(value):
            yield inspect.unwrap(value)


def _first_line(node: ast.ClassDef) -> int:
    return min([node.lineno, *(d.lineno for d in node.decorator_list)])


def _find_block(cls: type, candidates: list[ast.ClassDef]) -> ast.ClassDef:
    firstlineno = getattr(cls, "__firstlineno__", None)
    if firstlineno is not None:
        for node in candidates:
            if _first_line(node) == firstlineno:
                return node

    for fn in _functions(cls):
        line = fn.__code__.co_firstlineno
        for node in candidates:
            if node.lineno <= line <= (node.end_lineno or node.lineno):
                return node

    if len(candidates) == 1:
        return candidates[0]
    raise TransformError("cannot locate the source of the method block", actor=cls.__name__)


def _free_variables(cls: type) -> dict[str, Any]:
    captured: dict[str, Any] = {}
    for fn in _functions(cls):
        for name, cell in zip(fn.__code__.co_freevars, fn.__closure__ or ()):
            if name == "__class__":
                continue
            try:
                captured[name] = cell.cell_contents
            except ValueError:
                # cell not bound yet
                continue
    return captured


def _future_flags(namespace: dict[str, Any]) -> int:
    flags = 0
    for name in __future__.all_feature_names:
        feature = getattr(__future__, name)
        if namespace.get(name) is feature:
            flags |= feature.compiler_flag
    return flags


def _factory(name: str, unit: list[ast.stmt], params: list[str], config: GeneratorConfig) -> ast.FunctionDef:
    return ast.FunctionDef(
        name=FACTORY,
        args=ast.arguments(
            posonlyargs=[],
            args=[ast.arg(arg=p) for p in params],
            vararg=None,
            kwonlyargs=[],
            kw_defaults=[],
            kwarg=None,
            defaults=[],
        ),
        body=[runtime_import(config), *unit, ast.Return(value=load(name))],
        decorator_list=[],
        returns=None,
        type_params=[],
    )


def _read_tree(cls: type, namespace: dict[str, Any]) -> tuple[str, ast.Module]:
    try:
        filename = inspect.getsourcefile(cls)
    except TypeError as e:
        raise TransformError("source file is not available", actor=cls.__name__) from e

    lines = linecache.getlines(filename, namespace) if filename else []
    if not lines:
        raise TransformError("source code is not available", actor=cls.__name__)

    return filename, ast.parse("".join(lines), filename=filename)


def load_actor(block_cls: type, config: GeneratorConfig | None = None) -> type:
    """Expand the method block *block_cls* and return the generated handle class."""
    config = config or GeneratorConfig()
    name = block_cls.__name__

    module = sys.modules.get(block_cls.__module__)
    if module is None:
        raise TransformError(f"module {block_cls.__module__!r} is not loaded", actor=name)
    namespace = vars(module)

    filename, tree = _read_tree(block_cls, namespace)
    pairs = pair_actors(tree, strict=False)
    candidates = [n for n in pairs if is_method_block(n) and n.name == name]
    block_node = _find_block(block_cls, candidates)

    declaration_node = pairs[block_node]
    if declaration_node is None:
        raise TransformError(
            "method block has no preceding actor declaration",
            actor=name,
            lineno=block_node.lineno,
        )

    unit = emit_actor(parse_declaration(declaration_node), parse_block(block_node), config)

    captured = _free_variables(block_cls)
    params = sorted(captured)
    tree = ast.Module(body=[_factory(name, unit, params, config)], type_ignores=[])
    ast.fix_missing_locations(tree)

    code = compile(tree, filename, "exec", flags=_future_flags(namespace), dont_inherit=True)
    local_ns: dict[str, Any] = {}
    exec(code, namespace, local_ns)

    handle = local_ns[FACTORY](**captured)
    handle.__qualname__ = block_cls.__qualname__
    logger.debug("loaded actor", actor=name, module=block_cls.__module__, captured=params)
    return handle
