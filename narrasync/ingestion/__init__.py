"""Content ingestion module - Story IR extraction and insights loading."""

from .insights import Insights, load_insights
from .story_ir import extract_story_ir, extract_story_ir_from_file

__all__ = ["Insights", "load_insights", "extract_story_ir", "extract_story_ir_from_file"]
