"""Shared test helpers: terse constructors for checked Puffs ASTs."""

from __future__ import annotations

import shutil

from puffsgen.ast_nodes import (
    Assert,
    Assign,
    BinaryExpr,
    Expr,
    Field,
    FieldExpr,
    File,
    FuncDef,
    IdentExpr,
    Jump,
    Package,
    Stmt,
    StructDef,
    VarDecl,
    While,
    const_expr,
)
from puffsgen.c_emitter import CEmitter
from puffsgen.symbols import ID_THIS, IdMap
from puffsgen.tokens import AssignOp, BinaryOp, JumpKind
from puffsgen.types import ArrayType, NamedType, PointerType, Type


class AstBuilder:
    """Builds AST nodes against one IdMap."""

    def __init__(self) -> None:
        self.ids = IdMap()

    def id(self, name: str) -> int:
        return self.ids.intern(name)

    # Types

    def t(self, name: str) -> NamedType:
        return NamedType(self.id(name))

    def ptr(self, inner: Type | str) -> PointerType:
        return PointerType(self.t(inner) if isinstance(inner, str) else inner)

    def array(self, length: int, inner: Type | str) -> ArrayType:
        return ArrayType(length, self.t(inner) if isinstance(inner, str) else inner)

    # Expressions

    def ident(self, name: str) -> IdentExpr:
        return IdentExpr(self.id(name))

    def this(self) -> IdentExpr:
        return IdentExpr(ID_THIS)

    def const(self, value: int) -> IdentExpr:
        return const_expr(value)

    def dot(self, base: Expr, name: str) -> FieldExpr:
        return FieldExpr(base, self.id(name))

    def binary(self, op: str, left: Expr, right: Expr) -> BinaryExpr:
        return BinaryExpr(BinaryOp(op), left, right)

    # Statements

    def assign(self, left: Expr, op: str, right: Expr) -> Assign:
        return Assign(left, AssignOp(op), right)

    def assert_(self, cond: Expr) -> Assert:
        return Assert(cond)

    def var(self, name: str, ty: Type | str = "u32", value: Expr | None = None) -> VarDecl:
        return VarDecl(self.id(name), self.t(ty) if isinstance(ty, str) else ty, value)

    def while_(self, cond: Expr, *body: Stmt, label: str | None = None) -> While:
        return While(cond, tuple(body), self.id(label) if label else 0)

    def brk(self, label: str | None = None) -> Jump:
        return Jump(JumpKind.BREAK, self.id(label) if label else 0)

    def cont(self, label: str | None = None) -> Jump:
        return Jump(JumpKind.CONTINUE, self.id(label) if label else 0)

    # Declarations

    def field(self, name: str, ty: Type | str = "u32", default: int | None = None) -> Field:
        return Field(self.id(name), self.t(ty) if isinstance(ty, str) else ty, default)

    def struct(
        self, name: str, *fields: Field, suspendible: bool = True, public: bool = True,
    ) -> StructDef:
        return StructDef(self.id(name), tuple(fields), suspendible, public)

    def func(
        self,
        name: str,
        *body: Stmt,
        params: tuple[Field, ...] = (),
        receiver: str | None = None,
        suspendible: bool = True,
        public: bool = True,
    ) -> FuncDef:
        return FuncDef(
            self.id(name),
            params,
            tuple(body),
            self.id(receiver) if receiver else 0,
            suspendible,
            public,
        )

    def package(self, *decls, name: str = "demo", files: int = 1) -> Package:
        """Wrap *decls* in a package, split round-robin over *files* files."""
        buckets: list[list] = [[] for _ in range(files)]
        for i, d in enumerate(decls):
            buckets[i % files].append(d)
        return Package(
            name,
            self.ids,
            tuple(File(f"f{i}.puffs", tuple(ds)) for i, ds in enumerate(buckets)),
        )


def emit(package: Package) -> str:
    """Emit C for *package*."""
    return CEmitter(package).emit()


def region(c_code: str, section: str) -> str:
    """Text after the ``// ---------------- <section>`` marker."""
    marker = f"// ---------------- {section}\n"
    assert marker in c_code, f"missing section {section!r}"
    return c_code.split(marker, 1)[1]


def demo_package(b: AstBuilder) -> Package:
    """The reference package: one suspendible struct and one method.

    struct foo { a u32 = 5, b u32 }
    pub func foo.bar!(p ptr u32) {
        var x u32
        while x < 10 { x += 1; continue }
    }
    """
    foo = b.struct("foo", b.field("a", "u32", 5), b.field("b", "u32"))
    bar = b.func(
        "bar",
        b.var("x"),
        b.while_(
            b.binary("<", b.ident("x"), b.const(10)),
            b.assign(b.ident("x"), "+=", b.const(1)),
            b.cont(),
        ),
        params=(b.field("p", b.ptr("u32")),),
        receiver="foo",
    )
    return b.package(foo, bar)


def find_c_compiler() -> str | None:
    """Search PATH for a C compiler (gcc, cc, clang)."""
    for name in ("gcc", "cc", "clang"):
        if shutil.which(name):
            return name
    return None
