"""Intermediate model produced by the parser and consumed by the generators.

Source fragments (annotations, defaults, method nodes, class bodies) are kept
as ``ast`` nodes and re-emitted unchanged; nothing here interprets them.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from enum import Enum, auto


type FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef


class MethodKind(Enum):
    HANDLER = auto()
    PLAIN = auto()


class Receiver(Enum):
    INSTANCE = auto()
    CLASS = auto()
    NONE = auto()


class ParamKind(Enum):
    POSITIONAL_ONLY = auto()
    POSITIONAL_OR_KEYWORD = auto()
    KEYWORD_ONLY = auto()


@dataclass
class Param:
    name: str
    annotation: ast.expr | None = None
    default: ast.expr | None = None
    kind: ParamKind = ParamKind.POSITIONAL_OR_KEYWORD

    @property
    def is_keyword_only(self) -> bool:
        return self.kind is ParamKind.KEYWORD_ONLY


@dataclass
class Field:
    name: str
    annotation: ast.expr
    default: ast.expr | None = None


@dataclass
class Method:
    """A method of a method block.

    ``params`` excludes the receiver. ``returns`` is ``None`` when the method
    declares no return annotation, which stands for a unit (``None``) result.
    """

    name: str
    params: list[Param]
    returns: ast.expr | None
    kind: MethodKind
    node: FunctionNode
    receiver: Receiver = Receiver.INSTANCE
    is_async: bool = False
    variadic: bool = False

    @property
    def is_handler(self) -> bool:
        return self.kind is MethodKind.HANDLER

    @property
    def lineno(self) -> int:
        return self.node.lineno


@dataclass
class ActorDeclaration:
    name: str
    fields: list[Field]
    body: list[ast.stmt]
    type_params: list[ast.AST] = field(default_factory=list)
    bases: list[ast.expr] = field(default_factory=list)
    keywords: list[ast.keyword] = field(default_factory=list)
    decorators: list[ast.expr] = field(default_factory=list)
    lineno: int | None = None


@dataclass
class MethodBlock:
    name: str
    methods: list[Method]
    items: list[ast.stmt] = field(default_factory=list)
    docstring: str | None = None
    bases: list[ast.expr] = field(default_factory=list)
    lineno: int | None = None


@dataclass
class Classification:
    constructor: Method
    handlers: list[Method]
    plain: list[Method]


@dataclass
class MessageType:
    name: str
    actor: str
    method: Method
    fields: list[Param]
    result: ast.expr | None
    node: ast.ClassDef


@dataclass
class DispatchBinding:
    name: str
    message: MessageType
    method: Method
    node: ast.AsyncFunctionDef


@dataclass
class ProxyHandle:
    name: str
    constructor: Method
    handlers: list[Method]
    node: ast.ClassDef
