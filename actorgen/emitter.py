"""Assembles generated declarations into an output unit and rewrites modules.

For each actor the unit is, in order:

    * the message types of its handlers;
    * the hidden namespace ``_Actor<Name>`` holding the internal actor type
      (declaration body, method block, dispatch bindings, ``Actor`` base);
    * the public handle, bound to the actor's own name.
"""

from __future__ import annotations

import ast
from collections.abc import Iterator

from . import logger
from .classifier import classify
from .config import GeneratorConfig
from .dispatch import bind_handlers
from .errors import TransformError
from .messages import synthesize_messages
from .model import ActorDeclaration, Classification, DispatchBinding, MessageType, MethodBlock
from .naming import Role, synthesize
from .nodes import clone, runtime_import, runtime_ref
from .parser import has_tag, is_actor_item, is_method_block, parse_block, parse_declaration
from .proxy import generate_proxy


def _internal_type(
    declaration: ActorDeclaration,
    block: MethodBlock | None,
    bindings: list[DispatchBinding],
    config: GeneratorConfig,
) -> ast.ClassDef:
    decorators = [clone(d) for d in declaration.decorators]
    if not has_tag(decorators, "dataclass"):
        decorators.append(runtime_ref("dataclass", config))

    body = [clone(s) for s in declaration.body]
    bases = [clone(b) for b in declaration.bases]
    if block is not None:
        body += [clone(s) for s in block.items]
        body += [clone(m.node) for m in block.methods]
        bases += [clone(b) for b in block.bases]
    body += [b.node for b in bindings]

    return ast.ClassDef(
        name=declaration.name,
        bases=bases + [runtime_ref("Actor", config)],
        keywords=[clone(k) for k in declaration.keywords],
        body=body or [ast.Pass()],
        decorator_list=decorators,
        type_params=[clone(t) for t in declaration.type_params],
    )


def _namespace(name: str, internal: ast.ClassDef) -> ast.ClassDef:
    return ast.ClassDef(
        name=name,
        bases=[],
        keywords=[],
        body=[internal],
        decorator_list=[],
        type_params=[],
    )


def _check_actor_name(declaration: ActorDeclaration) -> None:
    name = declaration.name
    if name.startswith("__") and not name.endswith("__"):
        raise TransformError(
            "actor names starting with two underscores are mangled inside the generated classes",
            actor=name,
            lineno=declaration.lineno,
        )


def _check_names(
    declaration: ActorDeclaration,
    block: MethodBlock,
    namespace: str,
    messages: list[MessageType],
    bindings: list[DispatchBinding],
) -> None:
    taken = {declaration.name, *(m.name for m in block.methods), *(f.name for f in declaration.fields)}
    for generated in [namespace, *(m.name for m in messages), *(b.name for b in bindings)]:
        if generated in taken:
            raise TransformError(
                f"generated name {generated!r} collides with an existing name",
                actor=declaration.name,
            )
        taken.add(generated)


def emit_actor(
    declaration: ActorDeclaration,
    block: MethodBlock,
    config: GeneratorConfig | None = None,
) -> list[ast.stmt]:
    config = config or GeneratorConfig()
    name = declaration.name
    if block.name != name:
        raise TransformError(
            f"method block {block.name!r} does not match declaration",
            actor=name,
            lineno=block.lineno,
        )

    _check_actor_name(declaration)
    classification: Classification = classify(block)
    messages = synthesize_messages(name, classification.handlers, config, type_params=declaration.type_params)
    bindings = bind_handlers(name, messages, config)
    proxy = generate_proxy(
        name,
        classification,
        messages,
        config,
        docstring=block.docstring,
        type_params=declaration.type_params,
    )

    namespace = synthesize(name, None, Role.NAMESPACE, config)
    _check_names(declaration, block, namespace, messages, bindings)

    internal = _internal_type(declaration, block, bindings, config)
    logger.debug("emitted actor", actor=name, namespace=namespace, handlers=len(messages))
    return [*(m.node for m in messages), _namespace(namespace, internal), proxy.node]


def emit_declaration(
    declaration: ActorDeclaration,
    config: GeneratorConfig | None = None,
) -> list[ast.stmt]:
    """Unit for a declaration with no method block: only the hidden namespace."""
    config = config or GeneratorConfig()
    _check_actor_name(declaration)
    namespace = synthesize(declaration.name, None, Role.NAMESPACE, config)
    return [_namespace(namespace, _internal_type(declaration, None, [], config))]


def _iter_actor_items(node: ast.AST) -> Iterator[ast.ClassDef]:
    for child in ast.iter_child_nodes(node):
        if is_actor_item(child):
            yield child
        yield from _iter_actor_items(child)


def pair_actors(tree: ast.AST, *, strict: bool = True) -> dict[ast.ClassDef, ast.ClassDef | None]:
    """Pair every method block with the nearest preceding declaration of its name.

    The mapping goes both ways; a declaration without a block maps to
    ``None``. A block without a declaration is an error, unless *strict* is
    false, in which case it maps to ``None`` as well.
    """
    pending: dict[str, ast.ClassDef] = {}
    pairs: dict[ast.ClassDef, ast.ClassDef | None] = {}

    for node in _iter_actor_items(tree):
        if not is_method_block(node):
            pending[node.name] = node
            pairs[node] = None
            continue

        declaration = pending.pop(node.name, None)
        if declaration is None:
            if not strict:
                pairs[node] = None
                continue
            raise TransformError(
                "method block has no preceding actor declaration",
                actor=node.name,
                lineno=node.lineno,
            )
        pairs[declaration] = node
        pairs[node] = declaration

    return pairs


class _ActorRewriter(ast.NodeTransformer):
    def __init__(self, pairs: dict[ast.ClassDef, ast.ClassDef | None], config: GeneratorConfig) -> None:
        self.pairs = pairs
        self.config = config
        # names each scope's units introduce, mapped to the actor that owns them
        self.scopes: list[dict[str, str]] = [{}]

    def _visit_scope(self, node: ast.AST) -> ast.AST:
        self.scopes.append({})
        try:
            return self.generic_visit(node)
        finally:
            self.scopes.pop()

    visit_FunctionDef = _visit_scope
    visit_AsyncFunctionDef = _visit_scope

    def _claim(self, node: ast.ClassDef, unit: list[ast.stmt]) -> list[ast.stmt]:
        actor = node.name
        owners = self.scopes[-1]
        for stmt in unit:
            assert isinstance(stmt, ast.ClassDef)
            owner = owners.setdefault(stmt.name, actor)
            if owner != actor:
                raise TransformError(
                    f"generated name {stmt.name!r} is also introduced by actor {owner!r}",
                    actor=actor,
                    lineno=node.lineno,
                )
        return unit

    def visit_ClassDef(self, node: ast.ClassDef) -> ast.AST | list[ast.stmt] | None:
        if node not in self.pairs:
            return self._visit_scope(node)

        partner = self.pairs[node]
        if is_method_block(node):
            assert partner is not None
            return self._claim(node, emit_actor(parse_declaration(partner), parse_block(node), self.config))
        if partner is None:
            return self._claim(node, emit_declaration(parse_declaration(node), self.config))
        # emitted together with its method block
        return None


def _import_position(body: list[ast.stmt]) -> int:
    index = 0
    if body and isinstance(body[0], ast.Expr) and isinstance(body[0].value, ast.Constant):
        if isinstance(body[0].value.value, str):
            index = 1
    while index < len(body):
        stmt = body[index]
        if not (isinstance(stmt, ast.ImportFrom) and stmt.module == "__future__"):
            break
        index += 1
    return index


def transform_module(tree: ast.Module, config: GeneratorConfig | None = None) -> ast.Module:
    config = config or GeneratorConfig()
    pairs = pair_actors(tree)
    if not pairs:
        return tree

    tree = _ActorRewriter(pairs, config).visit(tree)
    tree.body.insert(_import_position(tree.body), runtime_import(config))
    ast.fix_missing_locations(tree)

    logger.debug("transformed module", actors=sum(1 for n in pairs if not is_method_block(n)))
    return tree


def transform_source(
    source: str,
    config: GeneratorConfig | None = None,
    *,
    filename: str = "<unknown>",
) -> str:
    """Rewrite every actor declaration and method block in *source*."""
    try:
        tree = ast.parse(source, filename=filename)
    except SyntaxError as e:
        raise TransformError(f"invalid syntax: {e.msg}", lineno=e.lineno) from e

    return ast.unparse(transform_module(tree, config)) + "\n"
