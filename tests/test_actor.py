import asyncio
import copy
import inspect
from dataclasses import dataclass

import pytest

from actorgen import ActorDied, LocalSpawner, actor, handler, impl
from actorgen.config import GeneratorConfig, RuntimeConfig
from actorgen.runtime import Address


@actor
@dataclass
class Counter:
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
    async def add(self, amount: int, *, times: int = 1) -> int:
        self.count += amount * times
        return self.count

    @handler
    def peek(self) -> int:
        return self._current()

    @handler
    async def reset(self):
        self.count = 0

    def _current(self) -> int:
        return self.count


@actor
@dataclass
class Flaky:
    calls: int = 0


@actor
class Flaky(impl):
    @classmethod
    def new(cls):
        return cls()

    @handler
    async def fail(self, reason: str) -> None:
        self.calls += 1
        raise ValueError(reason)

    @handler
    async def calls_so_far(self) -> int:
        return self.calls


@actor
@dataclass
class Named:
    name: str


@actor(config=GeneratorConfig(address_field="ref"))
class Named(impl):
    @classmethod
    def new(cls, name: str):
        return cls(name=name)

    @handler
    async def greet(self, greeting: str = "Hello") -> str:
        return f"{greeting}, {self.name}"


@actor
@dataclass
class _Private:
    secret: str


@actor
class _Private(impl):
    @classmethod
    def new(cls, secret: str):
        return cls(secret=secret)

    @handler
    async def reveal(self) -> str:
        return self.secret


@actor
@dataclass
class Relay:
    target: Counter | None = None


@actor
class Relay(impl):
    @classmethod
    def new(cls):
        return cls()

    @handler
    async def link(self, target: Counter) -> None:
        self.target = target

    @handler
    async def forward(self, by: int) -> int:
        return await self.target.increment(by)


def make_stepper(step: int):
    @actor
    @dataclass
    class Stepper:
        value: int

    @actor
    class Stepper(impl):
        @classmethod
        def new(cls):
            return cls(value=0)

        @handler
        async def advance(self) -> int:
            self.value += step
            return self.value

    return Stepper


@pytest.mark.asyncio
async def test_counter():
    async with LocalSpawner() as spawner:
        counter = Counter.new(spawner, 5)

        assert await counter.increment(3) == 8
        assert await counter.increment(2) == 10


@pytest.mark.asyncio
async def test_unit_handler_returns_none():
    async with LocalSpawner() as spawner:
        counter = Counter.new(spawner, 5)

        assert await counter.reset() is None
        assert await counter.peek() == 0


@pytest.mark.asyncio
async def test_sync_handler_and_plain_method():
    async with LocalSpawner() as spawner:
        counter = Counter.new(spawner, 4)

        assert await counter.peek() == 4
        assert not hasattr(counter, "_current")


@pytest.mark.asyncio
async def test_keyword_only_and_default_arguments():
    async with LocalSpawner() as spawner:
        counter = Counter.new(spawner, 0)

        assert await counter.add(2) == 2
        assert await counter.add(2, times=3) == 8


@pytest.mark.asyncio
async def test_messages_are_handled_in_order():
    async with LocalSpawner() as spawner:
        counter = Counter.new(spawner, 0)

        results = await asyncio.gather(*(counter.increment(1) for _ in range(20)))

        assert sorted(results) == list(range(1, 21))
        assert await counter.peek() == 20


def test_handle_shape():
    assert Counter.__name__ == "Counter"
    assert Counter.__doc__ == "Counts things."
    assert inspect.iscoroutinefunction(Counter.increment)
    assert list(inspect.signature(Counter.new).parameters) == ["spawner", "start"]
    assert list(inspect.signature(Counter.add).parameters) == ["self", "amount", "times"]
    assert inspect.signature(Counter.add).parameters["times"].kind is inspect.Parameter.KEYWORD_ONLY


def test_generated_names_stay_out_of_module_namespace():
    assert "_ActorCounter" not in globals()
    assert "_Message7_Counter__increment" not in globals()


@pytest.mark.asyncio
async def test_handler_error_reaches_caller_and_actor_survives():
    async with LocalSpawner() as spawner:
        flaky = Flaky.new(spawner)

        with pytest.raises(ValueError, match="boom"):
            await flaky.fail("boom")

        assert await flaky.calls_so_far() == 1


@pytest.mark.asyncio
async def test_dead_actor():
    spawner = LocalSpawner()
    counter = Counter.new(spawner, 0)
    await counter.increment(1)

    await spawner.shutdown()

    with pytest.raises(ActorDied):
        await counter.increment(1)


@pytest.mark.asyncio
async def test_stopped_actor():
    async with LocalSpawner() as spawner:
        counter = Counter.new(spawner, 0)

        assert await spawner.stop(counter._addr)
        assert not counter._addr.is_alive

        with pytest.raises(ActorDied):
            await counter.peek()


@pytest.mark.asyncio
async def test_copies_share_the_actor():
    async with LocalSpawner() as spawner:
        counter = Counter.new(spawner, 0)
        other = copy.copy(counter)

        await counter.increment(2)

        assert other == counter
        assert await other.increment(3) == 5


@pytest.mark.asyncio
async def test_separate_instances_are_independent():
    async with LocalSpawner() as spawner:
        a = Counter.new(spawner, 0)
        b = Counter.new(spawner, 100)

        await a.increment(1)

        assert a != b
        assert await b.peek() == 100


@pytest.mark.asyncio
async def test_custom_address_field():
    async with LocalSpawner() as spawner:
        named = Named.new(spawner, "Ada")

        assert isinstance(named.ref, Address)
        assert await named.greet() == "Hello, Ada"
        assert await named.greet("Hi") == "Hi, Ada"


@pytest.mark.asyncio
async def test_actor_defined_in_a_function_sees_its_variables():
    step = 3

    @actor
    @dataclass
    class Stepper:
        value: int

    @actor
    class Stepper(impl):
        @classmethod
        def new(cls):
            return cls(value=0)

        @handler
        async def advance(self) -> int:
            self.value += step
            return self.value

    async with LocalSpawner() as spawner:
        stepper = Stepper.new(spawner)

        assert await stepper.advance() == 3
        assert await stepper.advance() == 6


@pytest.mark.asyncio
async def test_actor_with_a_private_name():
    async with LocalSpawner() as spawner:
        private = _Private.new(spawner, "hidden")

        assert await private.reveal() == "hidden"
        assert _Private.__name__ == "_Private"


@pytest.mark.asyncio
async def test_handles_pass_between_isolated_actors():
    async with LocalSpawner(RuntimeConfig(isolate_messages=True)) as spawner:
        counter = Counter.new(spawner, 0)
        relay = Relay.new(spawner)

        await relay.link(counter)

        assert await relay.forward(4) == 4
        assert await counter.peek() == 4


@pytest.mark.asyncio
async def test_isolated_messages_reach_the_actor_of_each_load():
    slow = make_stepper(1)
    fast = make_stepper(10)

    async with LocalSpawner(RuntimeConfig(isolate_messages=True)) as spawner:
        a = slow.new(spawner)
        b = fast.new(spawner)

        assert await a.advance() == 1
        assert await b.advance() == 10
        assert await a.advance() == 2
