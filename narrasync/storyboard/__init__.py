"""Storyboard documents: atomic load/save and markdown summary."""

from .document import (
    SUMMARY_FILENAME,
    beats_total_sec,
    load_storyboard,
    render_markdown,
    save_storyboard,
)

__all__ = [
    "SUMMARY_FILENAME",
    "beats_total_sec",
    "load_storyboard",
    "render_markdown",
    "save_storyboard",
]
