"""Shared fixtures for actorgen tests."""

import ast
import textwrap
from typing import Any, Callable

import pytest

from actorgen import transform_source
from actorgen.config import GeneratorConfig


COUNTER_SOURCE = '''
from dataclasses import dataclass

from actorgen import actor, handler, impl


@actor
@dataclass
class Counter:
    """Counter state."""

    count: int


@actor
class Counter(impl):
    """Counts things."""

    @classmethod
    def new(cls, start: int):
        return cls(count=start)

    @handler
    async def increment(self, by: int) -> int:
        self.count += by
        return self.count

    @handler
    async def reset(self):
        self.count = 0

    @handler
    def peek(self) -> int:
        return self._current()

    def _current(self) -> int:
        return self.count
'''


def class_node(source: str) -> ast.ClassDef:
    """Parse a single class statement from *source*."""
    tree = ast.parse(textwrap.dedent(source))
    node = tree.body[0]
    assert isinstance(node, ast.ClassDef)
    return node


@pytest.fixture
def counter_source() -> str:
    return COUNTER_SOURCE


@pytest.fixture
def load_generated() -> Callable[..., dict[str, Any]]:
    """Transform a module and execute the output, returning its namespace."""

    def load(source: str, module: str = "generated", config: GeneratorConfig | None = None) -> dict[str, Any]:
        output = transform_source(textwrap.dedent(source), config)
        namespace: dict[str, Any] = {"__name__": module}
        exec(compile(output, f"<{module}>", "exec"), namespace)
        return namespace

    return load
