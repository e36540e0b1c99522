"""Type descriptors of checked Puffs declarations.

A descriptor is a chain of constructors (pointer, array, slice, table)
ending in a named type. Names are IdMap handles.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from puffsgen.symbols import IdMap


@dataclass(frozen=True)
class NamedType:
    """A primitive or a struct, referred to by name."""

    name: int


@dataclass(frozen=True)
class PointerType:
    inner: Type


@dataclass(frozen=True)
class ArrayType:
    """Fixed-length array. The length is a front-end constant."""

    length: int
    inner: Type


@dataclass(frozen=True)
class SliceType:
    inner: Type


@dataclass(frozen=True)
class TableType:
    inner: Type


Type = NamedType | PointerType | ArrayType | SliceType | TableType


def type_string(ty: Type, ids: IdMap) -> str:
    """Render *ty* in Puffs syntax, e.g. ``ptr [4] u8``."""
    parts: list[str] = []
    while not isinstance(ty, NamedType):
        if isinstance(ty, PointerType):
            parts.append("ptr ")
        elif isinstance(ty, ArrayType):
            parts.append(f"[{ty.length}] ")
        elif isinstance(ty, SliceType):
            parts.append("[] ")
        elif isinstance(ty, TableType):
            parts.append("table ")
        else:
            raise TypeError(f"not a type descriptor: {ty!r}")
        ty = ty.inner
    parts.append(ids.name(ty.name))
    return "".join(parts)


def is_pointer(ty: Type) -> bool:
    return isinstance(ty, PointerType)
