"""Rust-style colored diagnostic rendering and generator errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from puffsgen.source import Span


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# Stable diagnostic codes.
UNSUPPORTED_TYPE = "G001"
TOO_MANY_POINTERS = "G002"
UNSUPPORTED_STATEMENT = "G003"
UNSUPPORTED_EXPRESSION = "G004"
TOO_MANY_JUMP_TARGETS = "G005"
BODY_TOO_DEEP = "G006"
EXPRESSION_TOO_DEEP = "G007"
RECEIVER_NOT_SUSPENDIBLE = "G008"
BAD_JUMP = "G009"
BAD_INPUT = "G010"
FORMAT_FAILED = "F001"

# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels and notes."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        color = _COLORS[diag.severity]

        # Header: error[G001]: message
        lines.append(
            f"{self._c(color)}{diag.severity.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        for label in diag.labels:
            lines.append(
                f"  {self._c(_BLUE)}-->{self._c(_RESET)} {label.span}"
            )
            if label.message:
                lines.append(
                    f"  {self._c(_BLUE)}   |{self._c(_RESET)}   "
                    f"{self._c(color)}{label.message}{self._c(_RESET)}"
                )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)


class CompileError(Exception):
    """Batch error carrying multiple diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")


class GenerationError(CompileError):
    """A structural error that aborts C generation."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        span: Span | None = None,
        notes: list[str] | None = None,
    ) -> None:
        labels = [DiagnosticLabel(span=span, message="")] if span else []
        self.code = code
        super().__init__([
            Diagnostic(
                severity=Severity.ERROR,
                code=code,
                message=message,
                labels=labels,
                notes=notes or [],
            )
        ])
