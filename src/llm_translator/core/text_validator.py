"""
Text validation for LLM Translator.

Classifies a captured text snapshot before it is admitted to the translation
pipeline. Verdicts are plain values, not exceptions: rejection is a routine
outcome and the caller decides how to surface it.
"""

import unicodedata
from dataclasses import dataclass
from typing import Optional, Union

# Characters per token used for the rough token estimate
CHARS_PER_TOKEN = 4

# Control characters that normal text may contain
ALLOWED_CONTROL_CHARS = frozenset("\n\r\t")


@dataclass(frozen=True)
class Valid:
    """Text can be translated."""

    def __str__(self) -> str:
        return "valid"


@dataclass(frozen=True)
class TooLong:
    """Text exceeds the character limit."""

    length: int
    max: int

    def __str__(self) -> str:
        return f"text is too long: {self.length} characters (max: {self.max})"


@dataclass(frozen=True)
class TooManyTokensEstimate:
    """Estimated token count exceeds the limit."""

    estimated: int
    max: int

    def __str__(self) -> str:
        return f"too many tokens: ~{self.estimated} (max: {self.max})"


@dataclass(frozen=True)
class ContainsBinaryData:
    """Text contains control characters and is probably not text at all."""

    def __str__(self) -> str:
        return "text contains binary data"


ValidationVerdict = Union[Valid, TooLong, TooManyTokensEstimate, ContainsBinaryData]


def estimate_tokens(text: str) -> int:
    """Rough token estimate: one token per four characters."""
    return len(text) // CHARS_PER_TOKEN


def contains_binary_data(text: str) -> bool:
    """Check for control characters other than newline, carriage return and tab."""
    return any(
        unicodedata.category(ch) == "Cc" and ch not in ALLOWED_CONTROL_CHARS
        for ch in text
    )


class TextValidator:
    """Validates text against length, token and content limits.

    Checks run cheapest first and the first failing check wins:
    length, then estimated tokens, then a scan for binary data.
    """

    def __init__(self, max_length: int = 5000, max_tokens_estimate: int = 1250):
        self.max_length = max_length
        self.max_tokens_estimate = max_tokens_estimate

    def validate(
        self,
        text: str,
        max_length: Optional[int] = None,
        max_tokens_estimate: Optional[int] = None,
    ) -> ValidationVerdict:
        """Classify text.

        Args:
            text: Text to check.
            max_length: Character limit, defaults to the validator's own.
            max_tokens_estimate: Token limit, defaults to the validator's own.

        Returns:
            ValidationVerdict: Valid or the first limit the text violates.
        """
        max_length = self.max_length if max_length is None else max_length
        max_tokens = self.max_tokens_estimate if max_tokens_estimate is None else max_tokens_estimate

        length = len(text)
        if length > max_length:
            return TooLong(length=length, max=max_length)

        estimated = estimate_tokens(text)
        if estimated > max_tokens:
            return TooManyTokensEstimate(estimated=estimated, max=max_tokens)

        if contains_binary_data(text):
            return ContainsBinaryData()

        return Valid()


__all__ = [
    "Valid",
    "TooLong",
    "TooManyTokensEstimate",
    "ContainsBinaryData",
    "ValidationVerdict",
    "TextValidator",
    "estimate_tokens",
    "contains_binary_data",
]
