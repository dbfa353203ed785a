"""Small text helpers shared by the brief, script, pattern and timing stages."""

import re

EVIDENCE_TOKEN_PATTERN = re.compile(r"\[prov:([^\]]+)\]")
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def clamp_text(text: str, max_length: int = 120) -> str:
    """Clamp text to max_length characters, ending with an ellipsis when cut."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def strip_evidence_tokens(text: str) -> str:
    """Remove `[prov:<id>]` citations; they are never spoken."""
    return re.sub(r"\s{2,}", " ", EVIDENCE_TOKEN_PATTERN.sub("", text)).strip()


def split_sentences(text: str) -> list[str]:
    """Split spoken text on sentence terminators followed by whitespace.

    Terminators stay attached to their sentence, so decimals like "3.5x"
    are not split.
    """
    spoken = strip_evidence_tokens(text)
    return [s.strip() for s in SENTENCE_BOUNDARY.split(spoken) if s.strip()]


def count_words(text: str) -> int:
    """Count whitespace-separated spoken words."""
    return len(strip_evidence_tokens(text).split())


def estimate_text_ms(word_count: int, target_wpm: int = 110) -> float:
    """Estimated spoken length for a word count at the target rate."""
    return word_count / target_wpm * 60000
