"""AST node definitions for checked Puffs packages.

One frozen dataclass per kind. Names are IdMap handles; the front end has
already resolved types and folded constants.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from puffsgen.source import Span
from puffsgen.symbols import IdMap
from puffsgen.tokens import AssignOp, AssociativeOp, BinaryOp, JumpKind, UnaryOp
from puffsgen.types import Type

# ── Expressions ──────────────────────────────────────────────────
#
# Every expression may carry the constant the front end folded it to.


@dataclass(frozen=True)
class IdentExpr:
    name: int
    const_value: int | None = None


@dataclass(frozen=True)
class FieldExpr:
    """``base.field``."""

    base: Expr
    field: int
    const_value: int | None = None


@dataclass(frozen=True)
class CallExpr:
    func: Expr
    args: tuple[Expr, ...] = ()
    const_value: int | None = None


@dataclass(frozen=True)
class IndexExpr:
    base: Expr
    index: Expr
    const_value: int | None = None


@dataclass(frozen=True)
class SliceExpr:
    base: Expr
    low: Expr | None = None
    high: Expr | None = None
    const_value: int | None = None


@dataclass(frozen=True)
class UnaryExpr:
    op: UnaryOp
    operand: Expr
    const_value: int | None = None


@dataclass(frozen=True)
class BinaryExpr:
    op: BinaryOp
    left: Expr
    right: Expr
    const_value: int | None = None


@dataclass(frozen=True)
class AssociativeExpr:
    """A flattened n-ary ``a + b + c`` chain."""

    op: AssociativeOp
    args: tuple[Expr, ...]
    const_value: int | None = None


Expr = Union[
    IdentExpr, FieldExpr, CallExpr, IndexExpr, SliceExpr,
    UnaryExpr, BinaryExpr, AssociativeExpr,
]


def const_expr(value: int) -> IdentExpr:
    """A literal: an anonymous expression folded to *value*."""
    return IdentExpr(0, const_value=value)


# ── Statements ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Assert:
    """Compile-time assertion. Already discharged by the checker."""

    condition: Expr
    span: Span | None = None


@dataclass(frozen=True)
class Assign:
    left: Expr
    op: AssignOp
    right: Expr
    span: Span | None = None


@dataclass(frozen=True)
class VarDecl:
    name: int
    type: Type
    value: Expr | None = None
    span: Span | None = None


@dataclass(frozen=True)
class While:
    condition: Expr
    body: tuple[Stmt, ...] = ()
    label: int = 0
    span: Span | None = None


@dataclass(frozen=True)
class Jump:
    """``break`` or ``continue``, optionally naming a loop label."""

    kind: JumpKind
    label: int = 0
    span: Span | None = None


@dataclass(frozen=True)
class If:
    condition: Expr
    body: tuple[Stmt, ...] = ()
    else_body: tuple[Stmt, ...] = ()
    span: Span | None = None


@dataclass(frozen=True)
class Return:
    value: Expr | None = None
    span: Span | None = None


Stmt = Union[Assert, Assign, VarDecl, While, Jump, If, Return]


# ── Declarations ─────────────────────────────────────────────────


@dataclass(frozen=True)
class Field:
    """A struct field or a function parameter."""

    name: int
    type: Type
    default: int | None = None


@dataclass(frozen=True)
class StructDef:
    name: int
    fields: tuple[Field, ...] = ()
    suspendible: bool = False
    public: bool = False
    span: Span | None = None


@dataclass(frozen=True)
class FuncDef:
    name: int
    params: tuple[Field, ...] = ()
    body: tuple[Stmt, ...] = ()
    receiver: int = 0
    suspendible: bool = False
    public: bool = False
    span: Span | None = None


Declaration = Union[StructDef, FuncDef]


@dataclass(frozen=True)
class File:
    filename: str
    declarations: tuple[Declaration, ...] = ()


@dataclass(frozen=True)
class Package:
    name: str
    ids: IdMap = field(compare=False)
    files: tuple[File, ...] = ()
