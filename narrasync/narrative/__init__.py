"""Narrative brief synthesis: arc selection, controlling idea, proof pillars."""

from .brief import ARC_TEMPLATES, ArcTemplate, NarrativeBriefGenerator, insights_from_story_ir

__all__ = ["ARC_TEMPLATES", "ArcTemplate", "NarrativeBriefGenerator", "insights_from_story_ir"]
