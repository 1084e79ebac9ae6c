"""msgpack codec for message records.

Registered dataclasses travel as maps tagged with their type name. Tuples,
sets and enums are tagged the same way so a round trip gives back the same
Python types. ``roundtrip`` copies a value inside the process and leaves
actor references shared.
"""

from __future__ import annotations

import importlib
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, TypeVar

import msgpack

T = TypeVar("T")

TYPE_KEY = "__type__"
TUPLE_KEY = "__tuple__"
SET_KEY = "__set__"
ENUM_KEY = "__enum__"
REF_KEY = "__ref__"
CLASS_KEY = "__class__"

_registry: dict[str, type] = {}


def type_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def serializable(cls: type[T]) -> type[T]:
    if not is_dataclass(cls):
        raise TypeError(f"{cls.__name__} must be a dataclass")

    name = type_name(cls)
    _registry[name] = cls
    cls.__serializable_type__ = name
    return cls


def serialize(obj: Any) -> bytes:
    return msgpack.packb(obj, default=_encode, use_bin_type=True, strict_types=True)


def deserialize(data: bytes) -> Any:
    return msgpack.unpackb(data, object_hook=_decode, raw=False, strict_map_key=False)


def roundtrip[M](obj: M) -> M:
    """Deep copy of *obj* through its serialized form.

    Unlike ``serialize``, actor references inside *obj* are shared with the
    copy rather than packed.
    """
    codec = _LocalCodec()
    data = msgpack.packb(obj, default=codec.encode, use_bin_type=True, strict_types=True)
    return msgpack.unpackb(data, object_hook=codec.decode, raw=False, strict_map_key=False)


def _encode(obj: Any) -> Any:
    # called by msgpack for everything it cannot pack natively
    match obj:
        case Enum():
            _registry.setdefault(type_name(type(obj)), type(obj))
            return {ENUM_KEY: type_name(type(obj)), "value": obj.value}

        case tuple():
            return {TUPLE_KEY: list(obj)}

        case set() | frozenset():
            return {SET_KEY: list(obj)}

        case _ if is_dataclass(obj) and not isinstance(obj, type):
            name = getattr(type(obj), "__serializable_type__", None)
            if name is None:
                raise TypeError(f"{type(obj).__name__} is not @serializable")
            return {TYPE_KEY: name, **{f.name: getattr(obj, f.name) for f in fields(obj)}}

        case _:
            raise TypeError(f"Cannot serialize {type(obj)}")


def _resolve(name: str) -> type:
    cls = _registry.get(name)
    if cls is not None:
        return cls

    module_name, _, qualname = name.rpartition(".")
    try:
        cls = getattr(importlib.import_module(module_name), qualname)
    except (ImportError, AttributeError, ValueError):
        raise TypeError(f"Unknown type: {name}") from None
    _registry[name] = cls
    return cls


def _decode(data: dict[Any, Any]) -> Any:
    # maps are decoded innermost first, so nested values are already rebuilt
    match data:
        case {"__type__": str(name), **values}:
            return _resolve(name)(**values)

        case {"__tuple__": list(items)}:
            return tuple(items)

        case {"__set__": list(items)}:
            return set(items)

        case {"__enum__": str(name), "value": value}:
            return _resolve(name)(value)

        case _:
            return data


class _LocalCodec:
    """Codec for copies that stay inside the process.

    Objects whose type sets ``__by_reference__`` are handed over as they are,
    and records and enums are rebuilt with the exact class they were packed
    from, even when another class was registered under the same name.
    """

    def __init__(self) -> None:
        self.kept: list[Any] = []

    def _keep(self, obj: Any) -> int:
        self.kept.append(obj)
        return len(self.kept) - 1

    def encode(self, obj: Any) -> Any:
        if getattr(type(obj), "__by_reference__", False):
            return {REF_KEY: self._keep(obj)}

        data = _encode(obj)
        if TYPE_KEY in data or ENUM_KEY in data:
            data[CLASS_KEY] = self._keep(type(obj))
        return data

    def decode(self, data: dict[Any, Any]) -> Any:
        match data:
            case {"__ref__": int(index)}:
                return self.kept[index]

            case {"__class__": int(index), "__type__": str(), **values}:
                return self.kept[index](**values)

            case {"__class__": int(index), "__enum__": str(), "value": value}:
                return self.kept[index](value)

            case _:
                return _decode(data)
