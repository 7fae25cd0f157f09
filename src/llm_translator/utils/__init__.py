"""
Utility helpers for LLM Translator.
"""

from .keyboard_utils import KeyboardUtils

__all__ = ["KeyboardUtils"]
