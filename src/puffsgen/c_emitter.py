"""Generate C source from a checked Puffs package."""

from __future__ import annotations

from enum import Enum

from puffsgen import abi
from puffsgen.abi import Status
from puffsgen.ast_nodes import (
    Assert,
    Assign,
    AssociativeExpr,
    BinaryExpr,
    CallExpr,
    Expr,
    FieldExpr,
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
from puffsgen.c_runtime import BASE_HEADER, BASE_IMPL, load_base
from puffsgen.c_types import declare_field, map_type, primitive_name
from puffsgen.errors import (
    RECEIVER_NOT_SUSPENDIBLE,
    UNSUPPORTED_EXPRESSION,
    UNSUPPORTED_STATEMENT,
    UNSUPPORTED_TYPE,
    GenerationError,
)
from puffsgen.jump_targets import JumpTargets, check_body_depth, check_expr_depth
from puffsgen.symbols import ID_THIS
from puffsgen.tokens import BinaryOp
from puffsgen.types import Type, is_pointer, type_string

HEADER_BOUNDARY = "// C HEADER ENDS HERE."


class Visibility(Enum):
    PUBLIC = "public"
    PRIVATE = "private"

    def admits(self, public: bool) -> bool:
        return public if self is Visibility.PUBLIC else not public


class CEmitter:
    """Emit one C translation unit (header + implementation) for a package.

    An emitter holds the output buffer and the jump-target table of the
    function being emitted, so use one instance per run.
    """

    def __init__(self, package: Package) -> None:
        self._package = package
        self._pkg = package.name
        self._ids = package.ids
        self._out: list[str] = []
        self._indent = 0
        self._jump_targets: JumpTargets | None = None
        self._loop_stack: list[int] = []
        self._next_loop = 0

    # ── Public API ─────────────────────────────────────────────

    def emit(self) -> str:
        """Generate the complete C source for the package."""
        self._out = []
        self._indent = 0
        guard = abi.include_guard(self._pkg)

        self._line(f"#ifndef {guard}")
        self._line(f"#define {guard}")
        self._line("")
        self._line("// Code generated by puffs-gen-c. DO NOT EDIT.")
        self._line("")
        self._raw(load_base(BASE_HEADER))
        self._line("")
        self._line("// PUFFS_VERSION must be passed to every constructor.")
        self._line(f"#define PUFFS_VERSION (0x{abi.VERSION:05X})")
        self._line("")
        self._line("#ifdef __cplusplus")
        self._line('extern "C" {')
        self._line("#endif")
        self._line("")

        self._emit_status_enum()

        self._section("Public Structs")
        for sd in self._structs(Visibility.PUBLIC):
            self._emit_struct(sd)

        self._section("Public Constructor and Destructor Prototypes")
        for sd in self._structs(Visibility.PUBLIC):
            self._emit_ctor_prototypes(sd, public=True)

        self._section("Public Function Prototypes")
        for fd in self._funcs(Visibility.PUBLIC):
            self._line(f"{self._func_signature(fd)};")
            self._line("")

        self._line("#ifdef __cplusplus")
        self._line('}  // extern "C"')
        self._line("#endif")
        self._line("")
        self._line(f"#endif  // {guard}")
        self._line("")
        self._line(HEADER_BOUNDARY)
        self._line("")
        self._raw(load_base(BASE_IMPL))
        self._line("")

        self._emit_status_impls()

        self._section("Private Structs")
        for sd in self._structs(Visibility.PRIVATE):
            self._emit_struct(sd)

        self._section("Private Constructor and Destructor Prototypes")
        for sd in self._structs(Visibility.PRIVATE):
            self._emit_ctor_prototypes(sd, public=False)

        self._section("Private Function Prototypes")
        for fd in self._funcs(Visibility.PRIVATE):
            self._line(f"{self._func_signature(fd)};")
            self._line("")

        self._section("Constructor and Destructor Implementations")
        self._emit_sentinels()
        for vis in (Visibility.PUBLIC, Visibility.PRIVATE):
            for sd in self._structs(vis):
                self._emit_ctor_impls(sd)

        self._section("Function Implementations")
        for vis in (Visibility.PUBLIC, Visibility.PRIVATE):
            for fd in self._funcs(vis):
                self._emit_function(fd)

        return "\n".join(self._out) + "\n"

    # ── Output helpers ─────────────────────────────────────────

    def _line(self, text: str) -> None:
        if text:
            self._out.append("    " * self._indent + text)
        else:
            self._out.append("")

    def _raw(self, text: str) -> None:
        self._out.extend(text.rstrip("\n").split("\n"))

    def _section(self, title: str) -> None:
        self._line(f"// ---------------- {title}")
        self._line("")

    def _name(self, handle: int) -> str:
        return self._ids.name(handle)

    # ── Declaration iteration ──────────────────────────────────

    def _structs(self, vis: Visibility) -> list[StructDef]:
        return [
            decl
            for f in self._package.files
            for decl in f.declarations
            if isinstance(decl, StructDef) and vis.admits(decl.public)
        ]

    def _funcs(self, vis: Visibility) -> list[FuncDef]:
        return [
            decl
            for f in self._package.files
            for decl in f.declarations
            if isinstance(decl, FuncDef) and vis.admits(decl.public)
        ]

    # ── Status codes ───────────────────────────────────────────

    def _emit_status_enum(self) -> None:
        status_t = abi.status_type(self._pkg)
        self._section("Status Codes")
        self._line("// Status codes are non-positive integers.")
        self._line("//")
        self._line(
            "// The least significant bit indicates a non-recoverable "
            "status code: an error."
        )
        self._line("typedef enum {")
        self._indent += 1
        for s in Status:
            self._line(f"{s.c_name(self._pkg)} = {s.code},")
        self._indent -= 1
        self._line(f"}} {status_t};")
        self._line("")
        self._line(f"bool puffs_{self._pkg}_status_is_error({status_t} s);")
        self._line("")
        self._line(f"const char* puffs_{self._pkg}_status_string({status_t} s);")
        self._line("")

    def _emit_status_impls(self) -> None:
        status_t = abi.status_type(self._pkg)
        n = len(Status)
        table = f"puffs_{self._pkg}_status_strings"
        self._section("Status Codes Implementations")
        self._line(f"bool puffs_{self._pkg}_status_is_error({status_t} s) {{")
        self._indent += 1
        self._line("return s & 1;")
        self._indent -= 1
        self._line("}")
        self._line("")
        self._line(f"const char* {table}[{n}] = {{")
        self._indent += 1
        for s in Status:
            self._line(f'"{s.message(self._pkg)}",')
        self._indent -= 1
        self._line("};")
        self._line("")
        self._line(f"const char* puffs_{self._pkg}_status_string({status_t} s) {{")
        self._indent += 1
        self._line("s = -(s >> 1);")
        self._line(f"if ((0 <= s) && (s < {n})) {{")
        self._indent += 1
        self._line(f"return {table}[s];")
        self._indent -= 1
        self._line("}")
        self._line('return "";')
        self._indent -= 1
        self._line("}")
        self._line("")

    # ── Structs ────────────────────────────────────────────────

    def _emit_struct(self, sd: StructDef) -> None:
        # The status field must come first: a constructor called with the
        # wrong version writes it whatever sizeof(*self) the caller used.
        self._line("typedef struct {")
        self._indent += 1
        for c_type, name in abi.header_fields(self._pkg, sd.suspendible):
            self._line(f"{c_type} {name};")
        for f in sd.fields:
            self._line(f"{self._declare(f.type, 'f_' + self._name(f.name), sd)};")
        self._indent -= 1
        self._line(f"}} {abi.struct_type(self._pkg, self._name(sd.name))};")
        self._line("")

    def _declare(self, ty: Type, name: str, decl: StructDef | FuncDef) -> str:
        try:
            return declare_field(ty, name, self._ids)
        except GenerationError as e:
            raise _locate(e, decl, self._name(decl.name)) from None

    # ── Constructors and destructors ───────────────────────────

    def _ctor_signature(self, sd: StructDef, *, ctor: bool) -> str:
        struct_name = self._name(sd.name)
        fn = abi.ctor_name(self._pkg, struct_name, ctor=ctor)
        params = f"{abi.struct_type(self._pkg, struct_name)} *self"
        if ctor:
            params += ", uint32_t puffs_version, uint32_t for_internal_use_only"
        return f"void {fn}({params})"

    def _emit_ctor_prototypes(self, sd: StructDef, *, public: bool) -> None:
        if not sd.suspendible:
            return
        if public:
            struct_t = abi.struct_type(self._pkg, self._name(sd.name))
            ctor = abi.ctor_name(self._pkg, self._name(sd.name), ctor=True)
            self._line(f"// {ctor} is a constructor function.")
            self._line("//")
            self._line(f"// It should be called before any other {struct_t}_* function.")
            self._line("//")
            self._line(
                "// Pass PUFFS_VERSION and 0 for puffs_version and "
                "for_internal_use_only."
            )
        self._line(f"{self._ctor_signature(sd, ctor=True)};")
        self._line("")
        self._line(f"{self._ctor_signature(sd, ctor=False)};")
        self._line("")

    def _emit_sentinels(self) -> None:
        self._line("// PUFFS_MAGIC is a magic number to check that constructors are called.")
        self._line("// It's not foolproof, given C doesn't automatically zero memory before")
        self._line("// use, but it should catch 99.99% of cases.")
        self._line("//")
        self._line('// Its (non-zero) value is arbitrary, based on md5sum("puffs").')
        self._line(f"#define PUFFS_MAGIC (0x{abi.MAGIC:08X}U)")
        self._line("")
        self._line("// PUFFS_ALREADY_ZEROED is passed from a container struct's constructor")
        self._line("// to a containee struct's constructor when the container has already")
        self._line("// zeroed the containee's memory.")
        self._line("//")
        self._line('// Its (non-zero) value is arbitrary, based on md5sum("zeroed").')
        self._line(f"#define PUFFS_ALREADY_ZEROED (0x{abi.ALREADY_ZEROED:08X}U)")
        self._line("")

    def _emit_ctor_impls(self, sd: StructDef) -> None:
        if not sd.suspendible:
            return
        bad_version = Status.BAD_VERSION.c_name(self._pkg)

        self._line(f"{self._ctor_signature(sd, ctor=True)} {{")
        self._indent += 1
        self._emit_guard("!self", "return;")
        # Nothing before this check may depend on sizeof(*self).
        self._emit_guard(
            "puffs_version != PUFFS_VERSION",
            f"self->status = {bad_version};",
            "return;",
        )
        self._emit_guard(
            "for_internal_use_only != PUFFS_ALREADY_ZEROED",
            "memset(self, 0, sizeof(*self));",
        )
        self._line(f"self->{abi.MAGIC_FIELD} = PUFFS_MAGIC;")
        for f in sd.fields:
            if f.default is None:
                continue
            if map_type(f.type, self._ids).is_array:
                raise GenerationError(
                    UNSUPPORTED_TYPE,
                    f"cannot set a default value for array field "
                    f"{self._name(sd.name)}.{self._name(f.name)}",
                    span=sd.span,
                )
            self._line(f"self->f_{self._name(f.name)} = {f.default};")
        self._indent -= 1
        self._line("}")
        self._line("")

        # TODO: destroy sub-structures once structs can contain structs.
        self._line(f"{self._ctor_signature(sd, ctor=False)} {{")
        self._indent += 1
        self._emit_guard("!self", "return;")
        self._indent -= 1
        self._line("}")
        self._line("")

    def _emit_guard(self, cond: str, *body: str) -> None:
        self._line(f"if ({cond}) {{")
        self._indent += 1
        for text in body:
            self._line(text)
        self._indent -= 1
        self._line("}")

    # ── Functions ──────────────────────────────────────────────

    def _func_signature(self, fd: FuncDef) -> str:
        name = self._name(fd.name)
        receiver = self._name(fd.receiver) if fd.receiver else None
        if receiver and not fd.suspendible:
            raise GenerationError(
                RECEIVER_NOT_SUSPENDIBLE,
                f'cannot convert Puffs function "{receiver}.{name}" to C',
                span=fd.span,
                notes=["methods must be suspendible"],
            )
        ret = abi.status_type(self._pkg) if fd.suspendible else "void"
        params: list[str] = []
        if receiver:
            params.append(f"{abi.struct_type(self._pkg, receiver)} *self")
        for p in fd.params:
            params.append(self._declare(p.type, "a_" + self._name(p.name), fd))
        param_str = ", ".join(params) if params else "void"
        return f"{ret} {abi.func_name(self._pkg, name, receiver)}({param_str})"

    def _emit_function(self, fd: FuncDef) -> None:
        signature = self._func_signature(fd)
        try:
            self._emit_function_body(fd, signature)
        except GenerationError as e:
            raise _locate(e, fd, self._name(fd.name)) from None
        finally:
            self._jump_targets = None

    def _emit_function_body(self, fd: FuncDef, signature: str) -> None:
        self._jump_targets = JumpTargets.for_body(fd.body, self._ids)
        self._loop_stack = []
        self._next_loop = 0
        has_receiver = fd.receiver != 0
        status_t = abi.status_type(self._pkg)
        cleanup = False

        self._line(f"{signature} {{")
        self._indent += 1

        # A bad receiver is reported before anything that reads it.
        if fd.public and has_receiver:
            self._emit_guard(
                "!self", f"return {Status.BAD_RECEIVER.c_name(self._pkg)};",
            )

        if fd.suspendible:
            if has_receiver:
                self._line(f"{status_t} status = self->{abi.STATUS_FIELD};")
                if fd.public:
                    self._emit_guard("status & 1", "return status;")
            else:
                self._line(f"{status_t} status = {Status.OK.c_name(self._pkg)};")
            if fd.public and has_receiver:
                self._emit_guard(
                    f"self->{abi.MAGIC_FIELD} != PUFFS_MAGIC",
                    f"status = {Status.CONSTRUCTOR_NOT_CALLED.c_name(self._pkg)};",
                    "goto cleanup0;",
                )
                cleanup = True

        if fd.public:
            # TODO: check refinements (u32[..4095]) and array-typed arguments.
            nullable = [
                f"!a_{self._name(p.name)}" for p in fd.params if is_pointer(p.type)
            ]
            if nullable:
                if fd.suspendible:
                    self._emit_guard(
                        " || ".join(nullable),
                        f"status = {Status.BAD_ARGUMENT.c_name(self._pkg)};",
                        "goto cleanup0;",
                    )
                    cleanup = True
                else:
                    self._emit_guard(" || ".join(nullable), "return;")
        self._line("")

        self._emit_locals(fd.body, 0, set())
        self._line("")

        for stmt in fd.body:
            self._emit_stmt(stmt, 0)
        self._line("")

        if cleanup:
            self._indent -= 1
            self._line("cleanup0:")
            self._indent += 1
            if has_receiver:
                self._line(f"self->{abi.STATUS_FIELD} = status;")
        if fd.suspendible:
            self._line("return status;")

        self._indent -= 1
        self._line("}")
        self._line("")

    def _emit_locals(self, body: tuple[Stmt, ...], depth: int, seen: set[int]) -> None:
        """Declare every variable in *body*, nested loops included."""
        for stmt in body:
            check_body_depth(depth)
            if isinstance(stmt, VarDecl):
                if stmt.name in seen:
                    continue
                seen.add(stmt.name)
                c_type = primitive_name(stmt.type)
                if c_type is None:
                    raise GenerationError(
                        UNSUPPORTED_TYPE,
                        f"cannot convert Puffs type "
                        f"{type_string(stmt.type, self._ids)!r} to C",
                        span=stmt.span,
                    )
                self._line(f"{c_type} v_{self._name(stmt.name)};")
            elif isinstance(stmt, While):
                self._emit_locals(stmt.body, depth + 1, seen)
            elif isinstance(stmt, If):
                self._emit_locals(stmt.body, depth + 1, seen)
                self._emit_locals(stmt.else_body, depth + 1, seen)

    # ── Statements ─────────────────────────────────────────────

    def _emit_stmt(self, stmt: Stmt, depth: int) -> None:
        check_body_depth(depth)

        if isinstance(stmt, Assert):
            # Assertions only apply at compile time.
            return
        if isinstance(stmt, Assign):
            lhs = self._emit_expr(stmt.left, 0)
            rhs = self._emit_expr(stmt.right, 0)
            self._line(f"{lhs}{stmt.op.c_text}{rhs};")
            return
        if isinstance(stmt, VarDecl):
            value = "0" if stmt.value is None else self._emit_expr(stmt.value, 0)
            self._line(f"v_{self._name(stmt.name)} = {value};")
            return
        if isinstance(stmt, While):
            self._emit_while(stmt, depth)
            return
        if isinstance(stmt, Jump):
            jt = self._jump_targets
            target = jt.target(jt.resolve(self._loop_stack, stmt))
            self._line(f"goto label_{target}_{stmt.kind.value};")
            return
        if isinstance(stmt, If):
            raise GenerationError(
                UNSUPPORTED_STATEMENT, "cannot convert Puffs if statement to C",
                span=stmt.span,
            )
        if isinstance(stmt, Return):
            raise GenerationError(
                UNSUPPORTED_STATEMENT, "cannot convert Puffs return statement to C",
                span=stmt.span,
            )
        raise GenerationError(
            UNSUPPORTED_STATEMENT,
            f"unrecognized statement {type(stmt).__name__}",
        )

    def _emit_while(self, stmt: While, depth: int) -> None:
        jt = self._jump_targets
        loop = self._next_loop
        self._next_loop += 1
        info = jt.loops[loop]

        # The continue label is allocated on entry, before the body, so
        # nested jumps find the id already in the table.
        if info.has_continue:
            self._line(f"label_{jt.target(loop)}_continue:;")
        cond = self._emit_expr(stmt.condition, 0)
        self._line(f"while ({cond}) {{")
        self._indent += 1
        self._loop_stack.append(loop)
        for s in stmt.body:
            self._emit_stmt(s, depth + 1)
        self._loop_stack.pop()
        self._indent -= 1
        self._line("}")
        if info.has_break:
            self._line(f"label_{jt.target(loop)}_break:;")

    # ── Expressions ────────────────────────────────────────────

    def _emit_expr(self, expr: Expr, depth: int) -> str:
        check_expr_depth(depth)

        if expr.const_value is not None:
            return str(expr.const_value)

        if isinstance(expr, IdentExpr):
            if expr.name == ID_THIS:
                return "self"
            return f"v_{self._name(expr.name)}"
        if isinstance(expr, FieldExpr):
            base = self._emit_expr(expr.base, depth + 1)
            return f"{base}->f_{self._name(expr.field)}"
        if isinstance(expr, BinaryExpr):
            if expr.op is BinaryOp.AS:
                raise GenerationError(
                    UNSUPPORTED_EXPRESSION,
                    "cannot convert Puffs type conversion (as) to C",
                )
            lhs = self._emit_expr(expr.left, depth + 1)
            rhs = self._emit_expr(expr.right, depth + 1)
            return f"({lhs}{expr.op.c_text}{rhs})"
        if isinstance(expr, (CallExpr, IndexExpr, SliceExpr, UnaryExpr, AssociativeExpr)):
            raise GenerationError(
                UNSUPPORTED_EXPRESSION,
                f"cannot convert Puffs {_EXPR_KIND[type(expr)]} to C",
            )
        raise GenerationError(
            UNSUPPORTED_EXPRESSION,
            f"unrecognized expression {type(expr).__name__}",
        )


_EXPR_KIND: dict[type, str] = {
    CallExpr: "function call",
    IndexExpr: "index expression",
    SliceExpr: "slice expression",
    UnaryExpr: "unary operator",
    AssociativeExpr: "associative operator",
}


def _locate(err: GenerationError, decl: StructDef | FuncDef, name: str) -> GenerationError:
    """Re-raise *err* with the offending declaration attached.

    A span already on *err* is more precise than the declaration's and wins.
    """
    diag = err.diagnostics[0]
    kind = "struct" if isinstance(decl, StructDef) else "function"
    return GenerationError(
        err.code,
        diag.message,
        span=diag.labels[0].span if diag.labels else decl.span,
        notes=[*diag.notes, f"in {kind} {name!r}"],
    )
