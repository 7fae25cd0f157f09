"""
Provider adapters for LLM Translator.
"""

from .openai_adapter import OpenAIChatClientAdapter

__all__ = ["OpenAIChatClientAdapter"]
