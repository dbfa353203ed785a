"""Pattern mapping: classify beats into visual templates with validated props."""

from .mapper import METRIC_TOKEN, PATTERN_RULES, PatternRule, map_beat_to_pattern, map_beats
from .schemas import PATTERN_SCHEMAS, PatternPropsError, validate_props

__all__ = [
    "METRIC_TOKEN",
    "PATTERN_RULES",
    "PATTERN_SCHEMAS",
    "PatternPropsError",
    "PatternRule",
    "map_beat_to_pattern",
    "map_beats",
    "validate_props",
]
