"""C code generator for the Puffs language."""

__version__ = "0.1.0"
