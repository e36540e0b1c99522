"""Decode JSON-serialized checked ASTs into a Package.

The front end (lexer, parser, type checker) is a separate tool. It hands
over one JSON document per source file::

    {"package": "demo",
     "decls": [{"kind": "struct", "name": "foo", "suspendible": true,
                "fields": [{"name": "a", "type": "u32", "default": 5}]},
               {"kind": "func", "name": "bar", "receiver": "foo", ...}]}

Types are a name, or ``{"ptr": T}``, ``{"array": T, "length": n}``,
``{"slice": T}``, ``{"table": T}``. An expression object may carry the
folded ``"const"`` alongside its structure.
"""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from typing import Any, TypeVar

from puffsgen.ast_nodes import (
    Assert,
    Assign,
    AssociativeExpr,
    BinaryExpr,
    CallExpr,
    Declaration,
    Expr,
    Field,
    FieldExpr,
    File,
    FuncDef,
    IdentExpr,
    If,
    IndexExpr,
    Jump,
    Package,
    Return,
    SliceExpr,
    Stmt,
    StructDef,
    UnaryExpr,
    VarDecl,
    While,
)
from puffsgen.errors import BAD_INPUT, GenerationError
from puffsgen.source import Span
from puffsgen.symbols import IdMap
from puffsgen.tokens import AssignOp, AssociativeOp, BinaryOp, JumpKind, UnaryOp
from puffsgen.types import ArrayType, NamedType, PointerType, SliceType, TableType, Type

logger = logging.getLogger(__name__)

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")

E = TypeVar("E", bound=Enum)


class _BadInput(Exception):
    pass


class Loader:
    """Decode the documents of one package, sharing one IdMap."""

    def __init__(self, ids: IdMap | None = None) -> None:
        self.ids = ids or IdMap()
        self._filename = "<input>"

    # ── Public API ─────────────────────────────────────────────

    def load_file(self, text: str, filename: str) -> tuple[str | None, File]:
        """Decode one document. Returns (declared package name, file)."""
        self._filename = filename
        try:
            doc = json.loads(text)
        except json.JSONDecodeError as e:
            raise GenerationError(
                BAD_INPUT, f"{filename}: invalid JSON: {e}",
            ) from None
        except RecursionError:
            raise GenerationError(
                BAD_INPUT, f"{filename}: JSON nesting too deep",
            ) from None
        try:
            if not isinstance(doc, dict):
                raise _BadInput("top level must be an object")
            pkg = doc.get("package")
            if pkg is not None:
                self._ident(pkg)
            decls = tuple(self._decl(d) for d in self._list(doc, "decls"))
        except _BadInput as e:
            raise GenerationError(BAD_INPUT, f"{filename}: {e}") from None
        except RecursionError:
            raise GenerationError(
                BAD_INPUT, f"{filename}: AST nesting too deep",
            ) from None
        logger.debug("loaded %d declarations from %s", len(decls), filename)
        return pkg, File(filename, decls)

    # ── Helpers ────────────────────────────────────────────────

    def _ident(self, value: Any) -> int:
        if not isinstance(value, str) or not _IDENT_RE.match(value):
            raise _BadInput(f"invalid identifier {value!r}")
        return self.ids.intern(value)

    def _label(self, node: dict) -> int:
        label = node.get("label")
        return 0 if label is None else self._ident(label)

    def _get(self, node: dict, key: str) -> Any:
        if key not in node:
            raise _BadInput(f"missing {key!r} in {node.get('kind', 'node')}")
        return node[key]

    def _list(self, node: dict, key: str) -> list:
        value = node.get(key, [])
        if not isinstance(value, list):
            raise _BadInput(f"{key!r} must be a list")
        return value

    def _obj(self, value: Any) -> dict:
        if not isinstance(value, dict):
            raise _BadInput(f"expected an object, got {value!r}")
        return value

    def _int(self, value: Any) -> int:
        if not isinstance(value, int):
            raise _BadInput(f"expected an integer, got {value!r}")
        return int(value)

    def _op(self, enum: type[E], value: Any) -> E:
        try:
            return enum(value)
        except ValueError:
            raise _BadInput(f"unknown {enum.__name__} {value!r}") from None

    def _span(self, node: dict) -> Span | None:
        line = node.get("line")
        if line is None:
            return None
        col = node.get("col", 1)
        return Span(self._filename, self._int(line), self._int(col),
                    self._int(line), self._int(col))

    # ── Declarations ───────────────────────────────────────────

    def _decl(self, value: Any) -> Declaration:
        node = self._obj(value)
        kind = self._get(node, "kind")
        if kind == "struct":
            return StructDef(
                name=self._ident(self._get(node, "name")),
                fields=tuple(self._field(f) for f in self._list(node, "fields")),
                suspendible=bool(node.get("suspendible", False)),
                public=bool(node.get("public", False)),
                span=self._span(node),
            )
        if kind == "func":
            receiver = node.get("receiver")
            return FuncDef(
                name=self._ident(self._get(node, "name")),
                params=tuple(self._field(p) for p in self._list(node, "params")),
                body=self._body(node, "body"),
                receiver=0 if receiver is None else self._ident(receiver),
                suspendible=bool(node.get("suspendible", False)),
                public=bool(node.get("public", False)),
                span=self._span(node),
            )
        raise _BadInput(f"unknown declaration kind {kind!r}")

    def _field(self, value: Any) -> Field:
        node = self._obj(value)
        default = node.get("default")
        return Field(
            name=self._ident(self._get(node, "name")),
            type=self._type(self._get(node, "type")),
            default=None if default is None else self._int(default),
        )

    def _type(self, value: Any) -> Type:
        if isinstance(value, str):
            return NamedType(self._ident(value))
        node = self._obj(value)
        if "ptr" in node:
            return PointerType(self._type(node["ptr"]))
        if "array" in node:
            return ArrayType(self._int(self._get(node, "length")), self._type(node["array"]))
        if "slice" in node:
            return SliceType(self._type(node["slice"]))
        if "table" in node:
            return TableType(self._type(node["table"]))
        raise _BadInput(f"unknown type {node!r}")

    # ── Statements ─────────────────────────────────────────────

    def _body(self, node: dict, key: str) -> tuple[Stmt, ...]:
        return tuple(self._stmt(s) for s in self._list(node, key))

    def _stmt(self, value: Any) -> Stmt:
        node = self._obj(value)
        kind = self._get(node, "kind")
        span = self._span(node)
        if kind == "assert":
            return Assert(self._expr(self._get(node, "cond")), span)
        if kind == "assign":
            return Assign(
                left=self._expr(self._get(node, "lhs")),
                op=self._op(AssignOp, node.get("op", "=")),
                right=self._expr(self._get(node, "rhs")),
                span=span,
            )
        if kind == "var":
            init = node.get("value")
            return VarDecl(
                name=self._ident(self._get(node, "name")),
                type=self._type(self._get(node, "type")),
                value=None if init is None else self._expr(init),
                span=span,
            )
        if kind == "while":
            return While(
                condition=self._expr(self._get(node, "cond")),
                body=self._body(node, "body"),
                label=self._label(node),
                span=span,
            )
        if kind in ("break", "continue"):
            return Jump(JumpKind(kind), self._label(node), span)
        if kind == "if":
            return If(
                condition=self._expr(self._get(node, "cond")),
                body=self._body(node, "body"),
                else_body=self._body(node, "else"),
                span=span,
            )
        if kind == "return":
            result = node.get("value")
            return Return(None if result is None else self._expr(result), span)
        raise _BadInput(f"unknown statement kind {kind!r}")

    # ── Expressions ────────────────────────────────────────────

    def _expr(self, value: Any) -> Expr:
        node = self._obj(value)
        const = node.get("const")
        if const is not None:
            const = self._int(const)

        if "ident" in node:
            return IdentExpr(self._ident(node["ident"]), const)
        if "dot" in node:
            return FieldExpr(
                self._expr(node["dot"]), self._ident(self._get(node, "field")), const,
            )
        if "binary" in node:
            return BinaryExpr(
                self._op(BinaryOp, node["binary"]),
                self._expr(self._get(node, "lhs")),
                self._expr(self._get(node, "rhs")),
                const,
            )
        if "unary" in node:
            return UnaryExpr(
                self._op(UnaryOp, node["unary"]),
                self._expr(self._get(node, "operand")),
                const,
            )
        if "assoc" in node:
            return AssociativeExpr(
                self._op(AssociativeOp, node["assoc"]),
                tuple(self._expr(a) for a in self._list(node, "args")),
                const,
            )
        if "call" in node:
            return CallExpr(
                self._expr(node["call"]),
                tuple(self._expr(a) for a in self._list(node, "args")),
                const,
            )
        if "index" in node:
            return IndexExpr(
                self._expr(node["index"]), self._expr(self._get(node, "at")), const,
            )
        if "slice" in node:
            lo, hi = node.get("lo"), node.get("hi")
            return SliceExpr(
                self._expr(node["slice"]),
                None if lo is None else self._expr(lo),
                None if hi is None else self._expr(hi),
                const,
            )
        if const is not None:
            return IdentExpr(0, const)
        raise _BadInput(f"unknown expression {node!r}")


def load_package(
    sources: list[tuple[str, str]],
    *,
    package_name: str | None = None,
    default_name: str | None = None,
) -> Package:
    """Decode (filename, text) pairs into one Package.

    *package_name* overrides the documents' own ``package`` entries, which
    must otherwise agree. *default_name* is used when neither is given.
    """
    loader = Loader()
    files: list[File] = []
    declared: str | None = None
    for filename, text in sources:
        pkg, f = loader.load_file(text, filename)
        if pkg is not None and package_name is None:
            if declared is not None and pkg != declared:
                raise GenerationError(
                    BAD_INPUT,
                    f"{filename}: package {pkg!r} does not match {declared!r}",
                )
            declared = pkg
        files.append(f)

    name = package_name or declared or default_name
    if name is None:
        raise GenerationError(BAD_INPUT, "no package name given")
    if not _IDENT_RE.match(name):
        raise GenerationError(BAD_INPUT, f"invalid package name {name!r}")
    return Package(name, loader.ids, tuple(files))
