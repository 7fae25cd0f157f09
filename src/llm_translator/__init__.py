"""
LLM Translator package.

Translates the current text selection with an LLM, triggered by a global
hotkey.
"""

from .core.version import get_version

__version__ = get_version()

__all__ = ["__version__", "get_version"]
