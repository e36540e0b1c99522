"""ABI rules shared by every generated package.

Status codes are non-positive integers. The value of the i'th built-in
status is ``-2 * i``, plus one for errors, so the least significant bit
marks a non-recoverable status. The first two entries (``status_ok`` = 0
and ``error_bad_version`` = -1) must never change: a caller checks the
constructor's result for bad_version even when it was built against a
different version of the package. The order of the rest may change.

A suspendible struct starts with its status field, then its magic field.
The constructor writes ``self->status`` before anything that depends on
``sizeof(*self)``, so a version mismatch is reported safely even if the
caller reserved a struct of a different size.
"""

from __future__ import annotations

from enum import Enum

# Compiled-in version token, passed by callers as puffs_version.
VERSION = 0x00001

# Arbitrary non-zero values, from md5sum("puffs") and md5sum("zeroed").
MAGIC = 0xCB3699CC
ALREADY_ZEROED = 0x68602EF1

STATUS_FIELD = "status"
MAGIC_FIELD = "magic"
MAGIC_FIELD_TYPE = "uint32_t"

_ERROR_PREFIX = "error_"
_STATUS_PREFIX = "status_"


class Status(Enum):
    """Built-in status codes of a generated package, in ABI order."""

    OK = "status_ok"
    BAD_VERSION = "error_bad_version"
    BAD_RECEIVER = "error_bad_receiver"
    BAD_ARGUMENT = "error_bad_argument"
    CONSTRUCTOR_NOT_CALLED = "error_constructor_not_called"
    SHORT_DST = "status_short_dst"
    SHORT_SRC = "status_short_src"

    @property
    def index(self) -> int:
        return _STATUS_INDEX[self]

    @property
    def is_error(self) -> bool:
        return self.value.startswith(_ERROR_PREFIX)

    @property
    def code(self) -> int:
        """The numeric value baked into generated code."""
        return status_code(self.index, self.value)

    def c_name(self, pkg_name: str) -> str:
        return f"puffs_{pkg_name}_{self.value}"

    def message(self, pkg_name: str) -> str:
        """Human-readable text, e.g. ``"gif: bad version"``."""
        s = self.value
        if s.startswith(_STATUS_PREFIX):
            s = s[len(_STATUS_PREFIX):]
        elif s.startswith(_ERROR_PREFIX):
            s = s[len(_ERROR_PREFIX):]
        return f"{pkg_name}: {s.replace('_', ' ')}"


_STATUS_INDEX: dict[Status, int] = {s: i for i, s in enumerate(Status)}


def status_code(index: int, name: str) -> int:
    """Encode the status declared at *index*."""
    value = -2 * index
    if name.startswith(_ERROR_PREFIX):
        value += 1
    return value


def status_type(pkg_name: str) -> str:
    return f"puffs_{pkg_name}_status"


def struct_type(pkg_name: str, struct_name: str) -> str:
    return f"puffs_{pkg_name}_{struct_name}"


def ctor_name(pkg_name: str, struct_name: str, *, ctor: bool) -> str:
    kind = "constructor" if ctor else "destructor"
    return f"puffs_{pkg_name}_{struct_name}_{kind}"


def func_name(pkg_name: str, name: str, receiver: str | None = None) -> str:
    if receiver:
        return f"puffs_{pkg_name}_{receiver}_{name}"
    return f"puffs_{pkg_name}_{name}"


def header_fields(pkg_name: str, suspendible: bool) -> list[tuple[str, str]]:
    """The (C type, name) pairs that precede a struct's declared fields."""
    if not suspendible:
        return []
    return [
        (status_type(pkg_name), STATUS_FIELD),
        (MAGIC_FIELD_TYPE, MAGIC_FIELD),
    ]


def include_guard(pkg_name: str) -> str:
    return f"PUFFS_{pkg_name.upper()}_H"
