"""Shared test fixtures."""

import pytest

from narrasync.audio import MockTTSProvider
from narrasync.config import Config, TTSConfig


@pytest.fixture
def test_config(tmp_path) -> Config:
    """Provide a test configuration with the mock provider and a temp cache."""
    config = Config()
    config.tts.provider = "mock"
    config.timing.cache_dir = str(tmp_path / "cache")
    return config


@pytest.fixture
def mock_tts() -> MockTTSProvider:
    """Provide a deterministic offline speech provider."""
    return MockTTSProvider(TTSConfig(provider="mock"))


@pytest.fixture
def sample_insights() -> dict:
    """Provide insights in the camelCase shape upstream extractors write."""
    return {
        "challenges": [
            {
                "description": "Alert triage eats engineering time",
                "cause": "Unranked alert queues",
                "impact": "Slower incident response",
            }
        ],
        "solutions": [
            {
                "approach": "Impact scoring",
                "mechanism": "Dollar-weighted routing",
                "outcome": "Faster resolution",
            }
        ],
        "statistics": [{"value": "30%", "context": "resolve time"}],
        "caseStudies": [{"company": "MidCo", "summary": "Cut resolve time by 30%"}],
        "keyMetrics": [{"improvement": "2x", "label": "pages routed"}],
        "audienceLevel": "executive",
    }


@pytest.fixture
def sample_markdown() -> str:
    """Provide a small report covering every beat kind the parser knows."""
    return """# Incident Triage Playbook

## Executive Summary

**You are not short on data, you are short on signal.** Teams drown in alerts.

## The Problem

Manual triage burns 12 hours a week per engineer and major incidents take weeks to resolve.

## Key Insights

- Impact scoring cut resolve time by 30%
- Routing by dollar impact reduced pages 2x
- Teams recovered 3 days per sprint

## Resolve Time by Quarter

| Quarter | Hours |
|---------|-------|
| Q1 | 48 |
| Q2 | 36 |
| Q3 | 22 |

## Case Study

MidCo adopted impact scoring and cut resolve time by 30% in one quarter.

## How It Works

- Quantify risk in dollars
- Route by impact level
- Prove the savings

## Next Steps

Start with the two-minute assessment. It shows where your time pays off.
"""


@pytest.fixture
def sample_storyboard() -> dict:
    """Provide a storyboard with two acts, three scenes and six beats."""
    return {
        "title": "Triage in 60 Seconds",
        "logline": "Signal over noise.",
        "videoSpecs": {"format": "vertical"},
        "acts": [
            {"label": "Setup", "summary": "The pain", "scenes": [1, 2]},
            {"label": "Payoff", "summary": "The fix", "scenes": [3]},
        ],
        "scenes": [
            {
                "sceneNumber": 1,
                "label": "Hook",
                "purpose": "Grab attention",
                "beats": [
                    {"beat": "Open on alerts", "voiceover": "x" * 100, "durationSec": 10},
                    {"beat": "Zoom out", "voiceover": "x" * 50, "durationSec": 3},
                ],
            },
            {
                "sceneNumber": 2,
                "label": "Problem",
                "beats": [{"beat": "Show the queue", "voiceover": "x" * 25}],
            },
            {
                "sceneNumber": 3,
                "label": "Fix",
                "beats": [
                    {"beat": "Score", "voiceover": "x" * 101},
                    {"beat": "Route", "voiceover": ""},
                    {"beat": "Prove it", "voiceover": "x" * 200, "customField": "kept"},
                ],
            },
        ],
    }
