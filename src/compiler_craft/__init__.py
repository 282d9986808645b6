"""Compiler Craft - LLM-narrated walkthroughs of a compiler pipeline."""

from compiler_craft._version import __version__

__all__ = ["__version__"]
