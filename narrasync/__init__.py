"""Narrative synchronization pipeline: source content to a frame-accurate render plan."""

__version__ = "0.1.0"
