"""
Text chunking for LLM Translator.

Splits oversized text into ordered chunks at paragraph, then sentence, then
word boundaries. Each chunk remembers the whitespace that followed it so the
translated chunks can be joined back with the original layout.
"""

import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

# Boundary patterns from coarsest to finest; each captures the separator
PARAGRAPH_BOUNDARY = re.compile(r"(\n[ \t]*\n\s*)")
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?。！？…])(\s+)")
LINE_BOUNDARY = re.compile(r"(\n+)")
WORD_BOUNDARY = re.compile(r"(\s+)")

BOUNDARIES = (PARAGRAPH_BOUNDARY, SENTENCE_BOUNDARY, LINE_BOUNDARY, WORD_BOUNDARY)


@dataclass(frozen=True)
class TextChunk:
    """One translatable segment."""

    index: int
    text: str
    separator: str = ""


def _pieces(text: str, pattern: "re.Pattern[str]") -> List[Tuple[str, str]]:
    """Split text into (segment, following separator) pairs."""
    parts = pattern.split(text)
    pairs = []
    prefix = ""
    for i in range(0, len(parts), 2):
        segment = parts[i]
        separator = parts[i + 1] if i + 1 < len(parts) else ""
        if not segment and not pairs:
            # Leading whitespace belongs to the first segment
            prefix += separator
            continue
        if segment or separator:
            pairs.append((prefix + segment, separator))
            prefix = ""
    if prefix:
        pairs.append((prefix, ""))
    return pairs


def _split(text: str, max_size: int, level: int) -> List[Tuple[str, str]]:
    if len(text) <= max_size:
        return [(text, "")]

    if level >= len(BOUNDARIES):
        # A single word longer than the limit
        return [(text[i:i + max_size], "") for i in range(0, len(text), max_size)]

    result: List[Tuple[str, str]] = []
    current = ""
    current_sep = ""

    for segment, separator in _pieces(text, BOUNDARIES[level]):
        if len(segment) > max_size:
            if current:
                result.append((current, current_sep))
                current, current_sep = "", ""
            sub = _split(segment, max_size, level + 1)
            last_text, last_sep = sub[-1]
            result.extend(sub[:-1])
            result.append((last_text, last_sep + separator))
            continue

        candidate = current + current_sep + segment if current else segment
        if current and len(candidate) > max_size:
            result.append((current, current_sep))
            current = segment
        else:
            current = candidate
        current_sep = separator

    if current:
        result.append((current, current_sep))

    return result


def split_text(text: str, max_chunk_size: int) -> List[TextChunk]:
    """Split text into chunks no longer than max_chunk_size.

    Text is never cut inside a word unless a single word is longer than the
    limit. Surrounding whitespace of the whole text is dropped; joining each
    chunk's text and separator in index order yields the stripped text.
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")

    body = text.strip()
    if not body:
        return []

    return [
        TextChunk(index=i, text=chunk_text, separator=separator)
        for i, (chunk_text, separator) in enumerate(_split(body, max_chunk_size, 0))
    ]


def merge_translations(chunks: Sequence[TextChunk], translations: Sequence[str]) -> str:
    """Join translated chunks by index, restoring the original separators."""
    if len(chunks) != len(translations):
        raise ValueError(f"Expected {len(chunks)} translations, got {len(translations)}")
    ordered = sorted(zip(chunks, translations), key=lambda pair: pair[0].index)
    return "".join(translated.strip() + chunk.separator for chunk, translated in ordered)


__all__ = ["TextChunk", "split_text", "merge_translations"]
