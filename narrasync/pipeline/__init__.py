"""Pipeline module for orchestrating render plan generation."""

from .orchestrator import NarrativePipeline, PipelineResult

__all__ = ["NarrativePipeline", "PipelineResult"]
