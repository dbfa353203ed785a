"""
Duration estimation helpers.

All durations are integer milliseconds. Splitting a total across parts
always goes through distribute_proportionally so that children sum to
their parent exactly.
"""

import math
import re
from typing import Sequence

VOWEL_GROUP = re.compile(r"[aeiouy]+")


def distribute_proportionally(total: int, weights: Sequence[float]) -> list[int]:
    """Split an integer total across weights using the largest-remainder method.

    The parts always sum to ``total``. Ties in the remainders go to the
    earlier index. If every weight is zero the total is split equally.

    Args:
        total: Non-negative integer to distribute.
        weights: Non-negative weights, one per part.

    Returns:
        One integer share per weight.
    """
    if not weights:
        return []
    if total < 0:
        raise ValueError(f"total must be non-negative, got {total}")
    if any(w < 0 for w in weights):
        raise ValueError("weights must be non-negative")

    weight_sum = float(sum(weights))
    if weight_sum <= 0:
        weights = [1.0] * len(weights)
        weight_sum = float(len(weights))

    exact = [total * w / weight_sum for w in weights]
    shares = [math.floor(x) for x in exact]
    leftover = total - sum(shares)

    by_remainder = sorted(range(len(exact)), key=lambda i: (-(exact[i] - shares[i]), i))
    for i in by_remainder[:leftover]:
        shares[i] += 1
    return shares


def count_syllables(word: str) -> int:
    """Rough English syllable count: vowel groups, minus a silent trailing e."""
    cleaned = re.sub(r"[^a-z]", "", word.lower())
    if not cleaned:
        return 1
    syllables = len(VOWEL_GROUP.findall(cleaned))
    if cleaned.endswith("e") and syllables > 1:
        syllables -= 1
    return max(1, syllables)


def estimate_word_ms(word: str, syllables_per_second: float = 3.5, min_word_ms: int = 150) -> float:
    """Estimated spoken length of one word."""
    return max(float(min_word_ms), count_syllables(word) / syllables_per_second * 1000)


def estimate_sentence_ms(sentence: str, target_wpm: int = 110, pause_ms: int = 200) -> float:
    """Estimated spoken length of a sentence plus its trailing pause."""
    words = len(sentence.split())
    return words / target_wpm * 60000 + pause_ms
