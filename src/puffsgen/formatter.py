"""Normalize generated C by piping it through an external formatter."""

from __future__ import annotations

import logging
import shutil
import subprocess

logger = logging.getLogger(__name__)

DEFAULT_COMMAND: tuple[str, ...] = ("clang-format", "-style=Chromium")


class FormatError(Exception):
    """Raised when the formatter fails."""

    def __init__(self, message: str, stderr: str = "") -> None:
        self.stderr = stderr
        super().__init__(message)


def find_formatter(command: tuple[str, ...] | list[str] = DEFAULT_COMMAND) -> str | None:
    """Search PATH for the formatter executable."""
    return shutil.which(command[0]) if command else None


def format_source(
    source: str,
    command: tuple[str, ...] | list[str] = DEFAULT_COMMAND,
    *,
    timeout: float = 60,
) -> str:
    """Return *source* as rewritten by *command* (stdin in, stdout out).

    Raises FormatError on any failure; there is no retry.
    """
    if not command:
        raise FormatError("empty formatter command")
    cmd = list(command)
    if find_formatter(cmd) is None:
        raise FormatError(f"formatter '{cmd[0]}' not found")
    logger.debug("formatting %d bytes with %s", len(source), " ".join(cmd))

    try:
        result = subprocess.run(
            cmd,
            input=source,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise FormatError("formatter timed out") from None
    except OSError as e:
        raise FormatError(f"formatter '{cmd[0]}' could not be run: {e}") from None

    if result.returncode != 0:
        raise FormatError(
            f"formatter failed (exit {result.returncode})",
            stderr=result.stderr,
        )

    return result.stdout
