"""
Version helpers for LLM Translator.
"""

from importlib.metadata import PackageNotFoundError, version as pkg_version

DEFAULT_VERSION = "0.0.0+local"


def get_version() -> str:
    """Installed package version, or a local placeholder when not installed."""
    try:
        return pkg_version("llm-translator")
    except PackageNotFoundError:
        return DEFAULT_VERSION


__all__ = ["get_version", "DEFAULT_VERSION"]
