"""Loop numbering, break/continue label ids and recursion caps.

Every ``while`` in a function body gets a loop number from a single
pre-order walk. The jump-target table is a list indexed by loop number;
an entry is filled in the first time one of that loop's labels is needed,
so ids count up from 0 in the order labels are first used.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from puffsgen.ast_nodes import Jump, While
from puffsgen.errors import (
    BAD_JUMP,
    BODY_TOO_DEEP,
    EXPRESSION_TOO_DEEP,
    TOO_MANY_JUMP_TARGETS,
    GenerationError,
)
from puffsgen.tokens import JumpKind

if TYPE_CHECKING:
    from puffsgen.ast_nodes import Stmt
    from puffsgen.symbols import IdMap

MAX_JUMP_TARGETS = 1_000_000
MAX_BODY_DEPTH = 255
MAX_EXPR_DEPTH = 255


def check_body_depth(depth: int) -> None:
    if depth > MAX_BODY_DEPTH:
        raise GenerationError(BODY_TOO_DEEP, "body recursion depth too large")


def check_expr_depth(depth: int) -> None:
    if depth > MAX_EXPR_DEPTH:
        raise GenerationError(
            EXPRESSION_TOO_DEEP, "expression recursion depth too large",
        )


@dataclass
class LoopInfo:
    label: int
    has_break: bool = False
    has_continue: bool = False


class JumpTargets:
    """Jump-target table for one function body."""

    def __init__(self, loops: list[LoopInfo], ids: IdMap) -> None:
        self.loops = loops
        self._ids = ids
        self._targets: list[int | None] = [None] * len(loops)
        self._allocated = 0

    @classmethod
    def for_body(cls, body: tuple[Stmt, ...], ids: IdMap) -> JumpTargets:
        """Number the loops of *body* and record which labels each needs."""
        jt = cls([], ids)
        jt._walk(body, [], 0)
        return jt

    def _walk(self, body: tuple[Stmt, ...], stack: list[int], depth: int) -> None:
        for stmt in body:
            check_body_depth(depth)
            if isinstance(stmt, While):
                loop = len(self.loops)
                self.loops.append(LoopInfo(label=stmt.label))
                self._targets.append(None)
                stack.append(loop)
                self._walk(stmt.body, stack, depth + 1)
                stack.pop()
            elif isinstance(stmt, Jump):
                info = self.loops[self.resolve(stack, stmt)]
                if stmt.kind is JumpKind.BREAK:
                    info.has_break = True
                else:
                    info.has_continue = True

    def resolve(self, stack: list[int], jump: Jump) -> int:
        """Return the loop number *jump* refers to, given enclosing loops."""
        if jump.label == 0:
            if stack:
                return stack[-1]
            raise GenerationError(
                BAD_JUMP, f"{jump.kind.value} outside of a while loop",
                span=jump.span,
            )
        for loop in reversed(stack):
            if self.loops[loop].label == jump.label:
                return loop
        raise GenerationError(
            BAD_JUMP,
            f"{jump.kind.value} targets unknown loop label "
            f"{self._ids.name(jump.label)!r}",
            span=jump.span,
        )

    def target(self, loop: int) -> int:
        """Return the jump-target id of *loop*, allocating it if needed."""
        jt = self._targets[loop]
        if jt is not None:
            return jt
        if self._allocated == MAX_JUMP_TARGETS:
            raise GenerationError(TOO_MANY_JUMP_TARGETS, "too many jump targets")
        jt = self._allocated
        self._allocated += 1
        self._targets[loop] = jt
        return jt

    def __len__(self) -> int:
        return self._allocated
