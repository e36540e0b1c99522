"""Load the C boilerplate bundled with the package."""

from __future__ import annotations

import importlib.resources

BASE_HEADER = "base_header.h"
BASE_IMPL = "base_impl.h"


def load_base(name: str) -> str:
    """Return the text of the bundled boilerplate file *name*."""
    return importlib.resources.files("puffsgen.runtime").joinpath(name).read_text()
