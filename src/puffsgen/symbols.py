"""Identifier interning for the Puffs AST.

AST nodes refer to names by integer handle. The IdMap resolves a handle to
its printable string and back. Built-in names are interned first, in a
fixed order, so their handles are stable constants.
"""

from __future__ import annotations

# Built-in names, in handle order. Handle 0 is reserved for "no name".
BUILTIN_NAMES: tuple[str, ...] = (
    "",
    "this",
    "i8",
    "i16",
    "i32",
    "i64",
    "u8",
    "u16",
    "u32",
    "u64",
    "usize",
    "bool",
    "buf1",
    "buf2",
)

ID_NONE = 0
ID_THIS = 1
ID_I8 = 2
ID_I16 = 3
ID_I32 = 4
ID_I64 = 5
ID_U8 = 6
ID_U16 = 7
ID_U32 = 8
ID_U64 = 9
ID_USIZE = 10
ID_BOOL = 11
ID_BUF1 = 12
ID_BUF2 = 13


class IdMap:
    """Bidirectional identifier <-> string table."""

    def __init__(self) -> None:
        self._names: list[str] = []
        self._ids: dict[str, int] = {}
        for name in BUILTIN_NAMES:
            self.intern(name)

    def intern(self, name: str) -> int:
        """Return the handle for *name*, assigning a new one if needed."""
        existing = self._ids.get(name)
        if existing is not None:
            return existing
        handle = len(self._names)
        self._names.append(name)
        self._ids[name] = handle
        return handle

    def lookup(self, name: str) -> int | None:
        """Return the handle for *name*, or None if it was never interned."""
        return self._ids.get(name)

    def name(self, handle: int) -> str:
        """Return the string for *handle*. Raises KeyError if unknown."""
        if 0 <= handle < len(self._names):
            return self._names[handle]
        raise KeyError(f"unknown identifier handle {handle}")

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._ids
