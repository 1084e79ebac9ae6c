import ast

import pytest

from actorgen.dispatch import bind_handler, bind_handlers
from actorgen.errors import TransformError
from actorgen.messages import synthesize_message, synthesize_messages
from actorgen.parser import parse_source


def handlers(body: str):
    block = parse_source("@actor\nclass Counter(impl):\n" + body)
    return [m for m in block.methods if m.is_handler]


def test_async_handler_is_awaited():
    [method] = handlers('''
    @handler
    async def increment(self, by: int) -> int:
        return by
''')
    msg = synthesize_message("Counter", method)

    binding = bind_handler("Counter", method, msg)

    assert binding.name == "_dispatch7_Counter__increment"
    assert binding.message is msg
    assert ast.unparse(binding.node) == (
        "@_actorgen.on(_Message7_Counter__increment)\n"
        "async def _dispatch7_Counter__increment(self, message: _Message7_Counter__increment):\n"
        "    return await self.increment(message.by)"
    )


def test_sync_handler_is_called_directly():
    [method] = handlers('''
    @handler
    def peek(self) -> int:
        return 0
''')

    node = bind_handler("Counter", method, synthesize_message("Counter", method)).node

    assert ast.unparse(node.body[0]) == "return self.peek()"


def test_keyword_only_arguments_are_forwarded_by_name():
    [method] = handlers('''
    @handler
    async def move(self, x: int, /, y: int, *, scale: float = 1.0):
        pass
''')

    node = bind_handler("Counter", method, synthesize_message("Counter", method)).node

    assert ast.unparse(node.body[0]) == (
        "return await self.move(message.x, message.y, scale=message.scale)"
    )


def test_message_must_belong_to_handler():
    a, b = handlers('''
    @handler
    async def a(self): pass

    @handler
    async def b(self): pass
''')

    with pytest.raises(TransformError, match="does not belong"):
        bind_handler("Counter", a, synthesize_message("Counter", b))


def test_rejects_non_method_input():
    [method] = handlers('''
    @handler
    async def a(self): pass
''')

    with pytest.raises(TransformError, match="non-method"):
        bind_handler("Counter", "a", synthesize_message("Counter", method))


def test_bind_handlers_keeps_order():
    methods = handlers('''
    @handler
    async def b(self): pass

    @handler
    async def a(self): pass
''')

    bindings = bind_handlers("Counter", synthesize_messages("Counter", methods))

    assert [b.name for b in bindings] == ["_dispatch7_Counter__b", "_dispatch7_Counter__a"]
