"""Local actor runtime targeted by generated code.

Generated modules import this as ``_actorgen`` and only rely on the names in
``__all__``: message types derive ``Message[R]`` and are decorated with
``message``, the internal actor derives ``Actor`` and registers one ``on``
binding per message type, and the public handle is decorated with ``handle``
and holds an ``Address`` obtained from a ``Spawner``.

Usage:
    async with LocalSpawner() as spawner:
        counter = Counter.new(spawner, 5)
        await counter.increment(3)  # 8
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Protocol, get_args, get_origin, runtime_checkable
from uuid import uuid4

from . import logger
from .config import RuntimeConfig
from .errors import ActorDied
from .serializable import roundtrip, serializable

__all__ = [
    "Actor",
    "Address",
    "Envelope",
    "LocalSpawner",
    "Mailbox",
    "Message",
    "Spawner",
    "Stop",
    "dataclass",
    "handle",
    "message",
    "on",
    "result_type",
]


class Message[R]:
    """Base of message records; ``R`` is the type of the reply."""

    __slots__ = ()


def result_type(message_type: type) -> Any:
    """Reply type associated with a message type.

    Returns ``None`` for messages declared as ``Message[None]``.
    """
    for klass in message_type.__mro__:
        for base in getattr(klass, "__orig_bases__", ()):
            if get_origin(base) is Message:
                args = get_args(base)
                if not args or args[0] is type(None):
                    return None
                return args[0]
    raise TypeError(f"{message_type.__name__} is not a Message")


def message[T](cls: type[T]) -> type[T]:
    return serializable(dataclass(cls))


def on(msg_type: type):
    """Register the decorated method as the handler for *msg_type*.

    Usage:
        class Counter(Actor):
            @on(Increment)
            async def handle_increment(self, msg: Increment):
                self.count += msg.amount
    """
    def decorator(fn):
        fn._handler_for = msg_type
        return fn
    return decorator


class Actor:
    """Base of internal actor types.

    Collects the ``@on`` bindings of the class hierarchy into ``_handlers``
    and dispatches each delivered message to the one registered for its type.
    """

    _handlers: ClassVar[dict[type, Callable[..., Any]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._handlers = {}
        for klass in reversed(cls.__mro__):
            for attr in vars(klass).values():
                msg_type = getattr(attr, "_handler_for", None)
                if msg_type is not None:
                    cls._handlers[msg_type] = attr

    async def receive(self, msg: Any) -> Any:
        handler = type(self)._handlers.get(type(msg))
        if handler is None:
            raise NotImplementedError(f"No handler for {type(msg).__name__}")
        return await handler(self, msg)


@dataclass
class Stop:
    pass


@dataclass
class Envelope[M]:
    payload: M
    reply_to: asyncio.Future[Any] | None = field(default=None, repr=False)


class Mailbox[M]:
    def __init__(self, actor_id: str, maxsize: int = 0) -> None:
        self.actor_id = actor_id
        self._queue: asyncio.Queue[Envelope[M | Stop]] = asyncio.Queue(maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, envelope: Envelope[M | Stop]) -> None:
        if self._closed:
            raise ActorDied(self.actor_id)
        await self._queue.put(envelope)
        # the actor may have stopped while we were waiting for room
        if self._closed:
            self._drain()

    async def get(self) -> Envelope[M | Stop]:
        return await self._queue.get()

    def close(self) -> None:
        self._closed = True
        self._drain()

    def _drain(self) -> None:
        while not self._queue.empty():
            envelope = self._queue.get_nowait()
            fail_pending(envelope, self.actor_id)


def fail_pending(envelope: Envelope[Any] | None, actor_id: str) -> None:
    if envelope is None or envelope.reply_to is None:
        return
    if not envelope.reply_to.done():
        envelope.reply_to.set_exception(ActorDied(actor_id))


@dataclass(frozen=True)
class Address[A]:
    """Sendable reference to a running actor.

    Addresses compare by actor id; copies refer to the same actor.
    """

    __by_reference__: ClassVar[bool] = True

    actor_id: str
    mailbox: Mailbox[Any] = field(repr=False, compare=False)
    isolate: bool = field(default=False, repr=False, compare=False)
    default_timeout: float | None = field(default=None, repr=False, compare=False)

    @property
    def is_alive(self) -> bool:
        return not self.mailbox.closed

    def _prepare(self, msg: Any) -> Any:
        if self.isolate:
            return roundtrip(msg)
        return msg

    async def send(self, msg: Any) -> None:
        """Deliver *msg* without waiting for the reply.

        Raises:
            ActorDied: If the actor has terminated
        """
        logger.debug("send", actor_id=self.actor_id, msg_type=type(msg).__name__)
        await self.mailbox.put(Envelope(payload=self._prepare(msg)))

    async def ask[R](self, msg: Message[R], timeout: float | None = None) -> R:
        """Deliver *msg* and suspend until the actor replies.

        Args:
            msg: The message to send
            timeout: Seconds to wait; defaults to the spawner's ``ask_timeout``

        Returns:
            The value returned by the handler

        Raises:
            ActorDied: If the actor has terminated or stops before replying
            asyncio.TimeoutError: If no reply arrives within the timeout
        """
        logger.debug("ask", actor_id=self.actor_id, msg_type=type(msg).__name__)
        reply_to: asyncio.Future[R] = asyncio.get_running_loop().create_future()
        await self.mailbox.put(Envelope(payload=self._prepare(msg), reply_to=reply_to))

        timeout = timeout if timeout is not None else self.default_timeout
        if timeout is None:
            return await reply_to
        return await asyncio.wait_for(reply_to, timeout)

    async def stop(self) -> None:
        """Ask the actor to stop once the messages already queued are handled."""
        if self.mailbox.closed:
            return
        await self.mailbox.put(Envelope(payload=Stop()))


def handle[T](cls: type[T]) -> type[T]:
    """Make *cls* a public actor handle.

    Handles are frozen records around an ``Address``; like addresses they are
    shared, not copied, when a message is isolated.
    """
    cls.__by_reference__ = True
    return dataclass(frozen=True)(cls)


@runtime_checkable
class Spawner(Protocol):
    def spawn[A: Actor](self, actor: A) -> Address[A]: ...


class LocalSpawner:
    """Runs every spawned actor as a task on the running event loop.

    Each actor handles one message at a time, in mailbox order. A handler
    exception is delivered to the asker and the actor keeps running.

    Usage:
        async with LocalSpawner() as spawner:
            counter = Counter.new(spawner, 0)
    """

    def __init__(self, config: RuntimeConfig | None = None) -> None:
        self._config = config or RuntimeConfig()
        self._actors: dict[str, tuple[asyncio.Task[None], Address[Any]]] = {}

    @property
    def addresses(self) -> list[Address[Any]]:
        return [address for _, address in self._actors.values()]

    def spawn[A: Actor](self, actor: A, *, name: str | None = None) -> Address[A]:
        if not isinstance(actor, Actor):
            raise TypeError(f"{type(actor).__name__} is not an actor")

        loop = asyncio.get_running_loop()
        actor_id = f"{type(actor).__name__}/{name or uuid4().hex[:8]}"
        if actor_id in self._actors:
            raise ValueError(f"Actor {actor_id} already exists")

        address: Address[A] = Address(
            actor_id=actor_id,
            mailbox=Mailbox(actor_id, self._config.mailbox_size),
            isolate=self._config.isolate_messages,
            default_timeout=self._config.ask_timeout,
        )
        task = loop.create_task(self._run_actor_loop(actor, address), name=actor_id)
        self._actors[actor_id] = (task, address)

        logger.debug("spawned actor", actor_id=actor_id)
        return address

    async def _run_actor_loop(self, actor: Actor, address: Address[Any]) -> None:
        mailbox = address.mailbox
        envelope: Envelope[Any] | None = None

        try:
            while True:
                envelope = await mailbox.get()
                if isinstance(envelope.payload, Stop):
                    break

                try:
                    result = await actor.receive(envelope.payload)
                except Exception as exc:
                    if envelope.reply_to is None:
                        logger.exception(
                            "handler failed",
                            actor_id=address.actor_id,
                            msg_type=type(envelope.payload).__name__,
                        )
                    elif not envelope.reply_to.done():
                        envelope.reply_to.set_exception(exc)
                else:
                    if envelope.reply_to is not None and not envelope.reply_to.done():
                        envelope.reply_to.set_result(result)
                envelope = None
        except asyncio.CancelledError:
            pass
        finally:
            fail_pending(envelope, address.actor_id)
            mailbox.close()
            self._actors.pop(address.actor_id, None)
            logger.debug("actor stopped", actor_id=address.actor_id)

    async def stop(self, address: Address[Any]) -> bool:
        """Stop an actor after it drains its mailbox.

        Returns:
            True if the actor was running, False otherwise
        """
        entry = self._actors.get(address.actor_id)
        if entry is None:
            return False

        task, _ = entry
        await address.stop()
        await task
        return True

    async def shutdown(self) -> None:
        entries = list(self._actors.values())
        for task, _ in entries:
            task.cancel()
        await asyncio.gather(*(task for task, _ in entries), return_exceptions=True)

        # tasks cancelled before their first step never reach their cleanup
        for _, address in entries:
            address.mailbox.close()
            self._actors.pop(address.actor_id, None)

    async def __aenter__(self) -> LocalSpawner:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.shutdown()
