"""Full generation pipeline: serialized AST -> formatted C source."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from puffsgen.ast_nodes import Package
from puffsgen.c_emitter import CEmitter
from puffsgen.config import GenConfig
from puffsgen.errors import FORMAT_FAILED, CompileError, Diagnostic, Severity
from puffsgen.formatter import FormatError, format_source
from puffsgen.loader import load_package

logger = logging.getLogger(__name__)


@dataclass
class GenerateResult:
    """Outcome of a generation run. *output* is None unless ok."""

    ok: bool
    output: str | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)


def generate_package(package: Package, config: GenConfig | None = None) -> GenerateResult:
    """Emit C for *package*, then run the configured formatter.

    Any failure yields no output.
    """
    config = config or GenConfig()
    try:
        source = CEmitter(package).emit()
    except CompileError as e:
        return GenerateResult(ok=False, diagnostics=e.diagnostics)
    logger.debug("emitted %d lines for package %s", source.count("\n"), package.name)

    if config.format.enabled:
        try:
            source = format_source(source, config.format.command)
        except FormatError as e:
            notes = [e.stderr.strip()] if e.stderr.strip() else []
            return GenerateResult(ok=False, diagnostics=[
                Diagnostic(
                    severity=Severity.ERROR,
                    code=FORMAT_FAILED,
                    message=str(e),
                    notes=notes,
                )
            ])

    return GenerateResult(ok=True, output=source)


def generate(
    sources: list[tuple[str, str]],
    config: GenConfig | None = None,
    *,
    package_name: str | None = None,
) -> GenerateResult:
    """Run the pipeline on (filename, JSON text) pairs: load -> emit -> format."""
    config = config or GenConfig()
    try:
        package = load_package(
            sources,
            package_name=package_name,
            default_name=config.package.name,
        )
    except CompileError as e:
        return GenerateResult(ok=False, diagnostics=e.diagnostics)
    return generate_package(package, config)
