"""Operator kinds of the Puffs AST and their C spellings."""

from __future__ import annotations

from enum import Enum

# Emitted for the and-not operator, which has no single C operator. The
# marker is not valid C, so the artifact fails to compile instead of
# computing the wrong value.
NO_SUCH_AMP_HAT = " no_such_amp_hat_C_operator "


class AssignOp(Enum):
    """Assignment operators. Values are the Puffs spellings."""

    EQ = "="
    PLUS_EQ = "+="
    MINUS_EQ = "-="
    STAR_EQ = "*="
    SLASH_EQ = "/="
    SHIFT_L_EQ = "<<="
    SHIFT_R_EQ = ">>="
    AMP_EQ = "&="
    AMP_HAT_EQ = "&^="
    PIPE_EQ = "|="
    HAT_EQ = "^="

    @property
    def c_text(self) -> str:
        if self is AssignOp.AMP_HAT_EQ:
            return NO_SUCH_AMP_HAT
        return f" {self.value} "


class UnaryOp(Enum):
    PLUS = "+"
    MINUS = "-"
    NOT = "not"


class BinaryOp(Enum):
    """Binary operators. Values are the Puffs spellings."""

    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    SHIFT_L = "<<"
    SHIFT_R = ">>"
    AMP = "&"
    AMP_HAT = "&^"
    PIPE = "|"
    HAT = "^"
    NOT_EQ = "!="
    LESS_THAN = "<"
    LESS_EQ = "<="
    EQ_EQ = "=="
    GREATER_EQ = ">="
    GREATER_THAN = ">"
    AND = "and"
    OR = "or"
    AS = "as"

    @property
    def c_text(self) -> str:
        if self is BinaryOp.AMP_HAT:
            return NO_SUCH_AMP_HAT
        return _BINARY_C_TEXT.get(self, f" {self.value} ")


_BINARY_C_TEXT: dict[BinaryOp, str] = {
    BinaryOp.AND: " && ",
    BinaryOp.OR: " || ",
}


class AssociativeOp(Enum):
    PLUS = "+"
    STAR = "*"
    AMP = "&"
    PIPE = "|"
    HAT = "^"
    AND = "and"
    OR = "or"


class JumpKind(Enum):
    BREAK = "break"
    CONTINUE = "continue"
