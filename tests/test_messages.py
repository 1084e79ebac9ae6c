import ast

import pytest

from actorgen.config import GeneratorConfig
from actorgen.errors import TransformError
from actorgen.messages import synthesize_message, synthesize_messages
from actorgen.parser import parse_source


def handlers(body: str):
    block = parse_source("@actor\nclass Counter(impl):\n" + body)
    return [m for m in block.methods if m.is_handler]


def test_message_carries_handler_arguments():
    [method] = handlers('''
    @handler
    async def move(self, x: int, y: int, *, scale: float = 1.0) -> tuple[int, int]:
        pass
''')

    msg = synthesize_message("Counter", method)

    assert msg.name == "_Message7_Counter__move"
    assert msg.actor == "Counter"
    assert msg.method is method
    assert [p.name for p in msg.fields] == ["x", "y", "scale"]
    assert ast.unparse(msg.node) == (
        "@_actorgen.message\n"
        "class _Message7_Counter__move(_actorgen.Message[tuple[int, int]]):\n"
        "    x: int\n"
        "    y: int\n"
        "    scale: float"
    )


def test_unit_result_and_no_arguments():
    [method] = handlers('''
    @handler
    async def reset(self):
        pass
''')

    msg = synthesize_message("Counter", method)

    assert msg.result is None
    assert ast.unparse(msg.node) == (
        "@_actorgen.message\n"
        "class _Message7_Counter__reset(_actorgen.Message[None]):\n"
        "    pass"
    )


def test_unannotated_parameter_becomes_object():
    [method] = handlers('''
    @handler
    async def put(self, item):
        pass
''')

    node = synthesize_message("Counter", method).node

    assert ast.unparse(node.body[0]) == "item: object"


def test_message_uses_configured_runtime_alias():
    [method] = handlers('''
    @handler
    async def reset(self):
        pass
''')

    node = synthesize_message("Counter", method, GeneratorConfig(runtime_alias="rt")).node

    assert ast.unparse(node.decorator_list[0]) == "rt.message"
    assert ast.unparse(node.bases[0]) == "rt.Message[None]"


def test_generic_message_gets_type_parameters():
    block = parse_source('''
@actor
class Box(impl):
    @handler
    async def put(self, item: T) -> T:
        pass
''')
    declaration = parse_source("@actor\nclass Box[T]:\n    item: T\n")

    msg = synthesize_message("Box", block.methods[0], type_params=declaration.type_params)

    assert ast.unparse(msg.node).splitlines()[1] == "class _Message3_Box__put[T](_actorgen.Message[T]):"


def test_one_message_per_handler():
    methods = handlers('''
    @handler
    async def a(self): pass

    @handler
    async def b(self, x: int): pass
''')

    messages = synthesize_messages("Counter", methods)

    assert [m.name for m in messages] == ["_Message7_Counter__a", "_Message7_Counter__b"]


def test_rejects_non_method_input():
    with pytest.raises(TransformError, match="non-method"):
        synthesize_message("Counter", ast.parse("x = 1").body[0])
