"""Configuration settings for the chatbot."""

import os
from pathlib import Path
from typing import Optional, Dict, Any, Union
from dataclasses import dataclass, fields
import json
import structlog
from dotenv import load_dotenv
import threading

from ..core.errors import ConfigurationError


logger = structlog.get_logger()


@dataclass
class GeminiSettings:
    """Generation endpoint settings."""
    api_key: Optional[str] = None
    base_url: str = "https://generativelanguage.googleapis.com"
    model: str = "gemini-2.0-flash"
    format_instruction: str = ""
    timeout: float = 60.0  # seconds


@dataclass
class SpeechSettings:
    """Voice capture settings."""
    language: str = "en-US"
    listen_timeout: float = 5.0  # seconds to wait for speech to start
    phrase_time_limit: float = 15.0  # seconds
    ambient_noise_duration: float = 0.5  # seconds


@dataclass
class ElevenLabsSettings:
    """Speech playback settings."""
    api_key: Optional[str] = None
    voice_id: str = "pNInz6obpgDQGcFmaJgB"  # Adam voice
    model_id: str = "eleven_flash_v2_5"
    output_format: str = "mp3_22050_32"
    stability: float = 0.5
    similarity_boost: float = 0.8
    speed: float = 1.0


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = "INFO"
    format: str = "json"
    file_enabled: bool = False
    file_rotation_mb: int = 10
    file_backup_count: int = 7


_SECRET_FIELDS = {"api_key"}

# (environment variable, section, attribute, type)
_ENV_OVERRIDES = [
    ("GEMINI_API_KEY", "gemini", "api_key", str),
    ("GEMINI_BASE_URL", "gemini", "base_url", str),
    ("GEMINI_MODEL", "gemini", "model", str),
    ("GEMINI_FORMAT_INSTRUCTION", "gemini", "format_instruction", str),
    ("GEMINI_TIMEOUT", "gemini", "timeout", float),
    ("SPEECH_LANGUAGE", "speech", "language", str),
    ("SPEECH_LISTEN_TIMEOUT", "speech", "listen_timeout", float),
    ("SPEECH_PHRASE_TIME_LIMIT", "speech", "phrase_time_limit", float),
    ("ELEVENLABS_API_KEY", "elevenlabs", "api_key", str),
    ("ELEVENLABS_VOICE_ID", "elevenlabs", "voice_id", str),
    ("ELEVENLABS_MODEL_ID", "elevenlabs", "model_id", str),
    ("ELEVENLABS_OUTPUT_FORMAT", "elevenlabs", "output_format", str),
    ("LOG_LEVEL", "logging", "level", str),
    ("LOG_FORMAT", "logging", "format", str),
    ("LOG_FILE_ENABLED", "logging", "file_enabled", bool),
]


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Main settings class: .env file, then JSON config file, then environment."""

    SECTIONS = ("gemini", "speech", "elevenlabs", "logging")

    def __init__(self, config_file: Optional[Union[str, Path]] = None, load_env_file: bool = True):
        self.config_file = Path(config_file) if config_file else None
        self._lock = threading.RLock()
        self._env_loaded = False

        self.gemini = GeminiSettings()
        self.speech = SpeechSettings()
        self.elevenlabs = ElevenLabsSettings()
        self.logging = LoggingSettings()

        self.ai_provider = "gemini"
        self.tts_provider = "elevenlabs"
        self.stt_provider = "google"

        if load_env_file:
            self._load_env_file()

        if self.config_file and self.config_file.exists():
            self.load_from_file()

        self.load_from_env()

    def _load_env_file(self) -> None:
        """Load environment variables from the nearest .env file."""
        if self._env_loaded:
            return
        current_dir = Path.cwd()
        for parent in [current_dir] + list(current_dir.parents):
            env_file = parent / ".env"
            if env_file.exists():
                load_dotenv(env_file)
                logger.debug("Loaded .env file", path=str(env_file))
                break
        self._env_loaded = True

    def load_from_file(self) -> None:
        """Load settings from the JSON configuration file."""
        if not self.config_file or not self.config_file.exists():
            return

        try:
            with self._lock:
                with open(self.config_file, "r") as f:
                    config = json.load(f)

                for section_name in self.SECTIONS:
                    section = getattr(self, section_name)
                    for key, value in config.get(section_name, {}).items():
                        if hasattr(section, key):
                            setattr(section, key, value)

                for key in ("ai_provider", "tts_provider", "stt_provider"):
                    if key in config:
                        setattr(self, key, config[key])

                logger.info("Loaded settings from file", file=str(self.config_file))

        except (OSError, json.JSONDecodeError) as e:
            logger.error(
                "Failed to load settings from file",
                file=str(self.config_file),
                error=str(e),
            )

    def load_from_env(self) -> None:
        """Apply environment variable overrides."""
        with self._lock:
            self.ai_provider = os.getenv("AI_PROVIDER", self.ai_provider)
            self.tts_provider = os.getenv("TTS_PROVIDER", self.tts_provider)
            self.stt_provider = os.getenv("STT_PROVIDER", self.stt_provider)

            for env_name, section_name, attr, kind in _ENV_OVERRIDES:
                raw = os.getenv(env_name)
                if raw is None or raw == "":
                    continue
                try:
                    value = _parse_bool(raw) if kind is bool else kind(raw)
                except ValueError:
                    logger.warning("Ignoring invalid environment value", variable=env_name)
                    continue
                setattr(getattr(self, section_name), attr, value)

    def reload(self) -> None:
        """Reload settings from file and environment."""
        with self._lock:
            if self.config_file and self.config_file.exists():
                self.load_from_file()
            self.load_from_env()
            logger.info("Settings reloaded")

    def validate(self) -> list[str]:
        """Validate current settings and return list of issues."""
        issues = []

        if not self.gemini.api_key:
            issues.append("GEMINI_API_KEY is not set")
        if not self.gemini.base_url:
            issues.append("GEMINI_BASE_URL is not set")
        if not self.gemini.model:
            issues.append("GEMINI_MODEL is not set")
        if self.gemini.timeout <= 0:
            issues.append(f"Invalid Gemini timeout: {self.gemini.timeout}")
        if self.speech.listen_timeout <= 0:
            issues.append(f"Invalid listen timeout: {self.speech.listen_timeout}")

        return issues

    def require_generation_config(self) -> None:
        """
        Raises:
            ConfigurationError: If the Gemini credential or endpoint is missing
        """
        missing = [
            issue for issue in self.validate() if issue.startswith(("GEMINI_API_KEY", "GEMINI_BASE_URL"))
        ]
        if missing:
            raise ConfigurationError("; ".join(missing))

    def get_provider_config(self, provider_type: str) -> Dict[str, Any]:
        """Get configuration for a specific provider."""
        if provider_type == "gemini":
            return {
                "api_key": self.gemini.api_key,
                "base_url": self.gemini.base_url,
                "model_name": self.gemini.model,
                "format_instruction": self.gemini.format_instruction,
                "timeout": self.gemini.timeout,
            }
        elif provider_type == "elevenlabs":
            return {
                "api_key": self.elevenlabs.api_key,
                "voice_id": self.elevenlabs.voice_id,
                "model_id": self.elevenlabs.model_id,
                "output_format": self.elevenlabs.output_format,
                "stability": self.elevenlabs.stability,
                "similarity_boost": self.elevenlabs.similarity_boost,
                "speed": self.elevenlabs.speed,
            }
        elif provider_type == "google":
            return {
                "language": self.speech.language,
                "listen_timeout": self.speech.listen_timeout,
                "phrase_time_limit": self.speech.phrase_time_limit,
                "ambient_noise_duration": self.speech.ambient_noise_duration,
            }
        else:
            raise ValueError(f"Unknown provider type: {provider_type}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary. API keys are reported as set/unset only."""
        result: Dict[str, Any] = {
            "ai_provider": self.ai_provider,
            "tts_provider": self.tts_provider,
            "stt_provider": self.stt_provider,
        }
        for section_name in self.SECTIONS:
            section = getattr(self, section_name)
            values = {}
            for f in fields(section):
                value = getattr(section, f.name)
                if f.name in _SECRET_FIELDS:
                    values[f"{f.name}_set"] = bool(value)
                else:
                    values[f.name] = value
            result[section_name] = values
        return result


# Global settings instance
settings = Settings()
