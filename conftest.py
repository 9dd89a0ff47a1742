"""Shared pytest configuration."""

import pytest


PROVIDER_ENV_VARS = [
    "GEMINI_API_KEY",
    "GEMINI_BASE_URL",
    "GEMINI_MODEL",
    "GEMINI_FORMAT_INSTRUCTION",
    "ELEVENLABS_API_KEY",
    "AI_PROVIDER",
    "TTS_PROVIDER",
    "STT_PROVIDER",
]


@pytest.fixture(autouse=True)
def clean_provider_env(monkeypatch):
    """Keep real credentials from the developer's shell out of tests."""
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
