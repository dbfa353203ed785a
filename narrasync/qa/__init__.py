"""Render plan preflight checks."""

from .preflight import QAIssue, QAReport, qa_preflight

__all__ = ["QAIssue", "QAReport", "qa_preflight"]
