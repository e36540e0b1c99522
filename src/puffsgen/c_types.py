"""Puffs type -> C declarator mapping."""

from __future__ import annotations

from dataclasses import dataclass

from puffsgen.errors import TOO_MANY_POINTERS, UNSUPPORTED_TYPE, GenerationError
from puffsgen.symbols import (
    ID_BOOL,
    ID_BUF1,
    ID_BUF2,
    ID_I8,
    ID_I16,
    ID_I32,
    ID_I64,
    ID_U8,
    ID_U16,
    ID_U32,
    ID_U64,
    ID_USIZE,
    IdMap,
)
from puffsgen.types import ArrayType, NamedType, PointerType, Type, type_string

MAX_POINTERS = 16

_C_TYPE_NAMES: dict[int, str] = {
    ID_I8: "int8_t",
    ID_I16: "int16_t",
    ID_I32: "int32_t",
    ID_I64: "int64_t",
    ID_U8: "uint8_t",
    ID_U16: "uint16_t",
    ID_U32: "uint32_t",
    ID_U64: "uint64_t",
    ID_USIZE: "size_t",
    ID_BOOL: "bool",
    ID_BUF1: "puffs_base_buf1",
    ID_BUF2: "puffs_base_buf2",
}


@dataclass(frozen=True)
class CType:
    """A C type split around the declared name.

    ``uint8_t *x[4]`` is base ``uint8_t``, 1 pointer, dims ``(4,)``.
    """

    base: str
    pointers: int = 0
    dims: tuple[int, ...] = ()

    def declare(self, name: str) -> str:
        stars = "*" * self.pointers
        dims = "".join(f"[{n}]" for n in self.dims)
        return f"{self.base} {stars}{name}{dims}"

    @property
    def is_array(self) -> bool:
        return bool(self.dims)


def primitive_name(ty: Type) -> str | None:
    """Return the C spelling if *ty* is a built-in primitive, else None."""
    if isinstance(ty, NamedType):
        return _C_TYPE_NAMES.get(ty.name)
    return None


def map_type(ty: Type, ids: IdMap) -> CType:
    """Map a Puffs type to C, peeling pointers and arrays layer by layer."""
    pointers = 0
    dims: list[int] = []
    x = ty
    while True:
        if isinstance(x, PointerType):
            if pointers == MAX_POINTERS:
                raise GenerationError(
                    TOO_MANY_POINTERS,
                    f"cannot convert Puffs type {type_string(ty, ids)!r} to C: "
                    "too many ptr's",
                )
            pointers += 1
            x = x.inner
            continue
        if isinstance(x, ArrayType):
            dims.append(x.length)
            x = x.inner
            continue
        base = primitive_name(x)
        if base is None:
            raise GenerationError(
                UNSUPPORTED_TYPE,
                f"cannot convert Puffs type {type_string(ty, ids)!r} to C",
            )
        return CType(base, pointers, tuple(dims))


def declare_field(ty: Type, name: str, ids: IdMap) -> str:
    """C declaration text (without ``;``) for a field or parameter."""
    return map_type(ty, ids).declare(name)
