"""Provider registry for loading providers by name."""

from typing import Any, Callable, Dict, Optional, Type
import structlog

from .stt.base import STTProvider
from .ai.base import AIProvider
from .tts.base import TTSProvider


logger = structlog.get_logger()


ConfigGetter = Callable[[], Dict[str, Any]]


class ProviderRegistry:
    """Registry of provider classes, keyed by kind ("ai", "tts", "stt") and name."""

    KINDS = {"ai": AIProvider, "tts": TTSProvider, "stt": STTProvider}

    def __init__(self):
        self._providers: Dict[str, Dict[str, type]] = {kind: {} for kind in self.KINDS}
        self._provider_configs: Dict[str, ConfigGetter] = {}

    def _register(
        self, kind: str, name: str, provider_class: type, config_getter: Optional[ConfigGetter]
    ) -> None:
        if not issubclass(provider_class, self.KINDS[kind]):
            raise TypeError(
                f"{provider_class.__name__} is not a {self.KINDS[kind].__name__}"
            )
        self._providers[kind][name] = provider_class
        if config_getter:
            self._provider_configs[f"{kind}:{name}"] = config_getter
        logger.debug(
            "Registered provider", kind=kind, name=name, class_name=provider_class.__name__
        )

    def _create(self, kind: str, name: str, **kwargs):
        if name not in self._providers[kind]:
            raise ValueError(f"Unknown {kind.upper()} provider: {name}")

        config: Dict[str, Any] = {}
        config_getter = self._provider_configs.get(f"{kind}:{name}")
        if config_getter:
            config.update(config_getter())
        # Explicit arguments win over settings.
        config.update(kwargs)

        return self._providers[kind][name](**config)

    def register_ai_provider(
        self, name: str, provider_class: Type[AIProvider], config_getter: ConfigGetter = None
    ) -> None:
        """Register an AI provider."""
        self._register("ai", name, provider_class, config_getter)

    def register_tts_provider(
        self, name: str, provider_class: Type[TTSProvider], config_getter: ConfigGetter = None
    ) -> None:
        """Register a TTS provider."""
        self._register("tts", name, provider_class, config_getter)

    def register_stt_provider(
        self, name: str, provider_class: Type[STTProvider], config_getter: ConfigGetter = None
    ) -> None:
        """Register an STT provider."""
        self._register("stt", name, provider_class, config_getter)

    def get_ai_provider(self, name: str, **kwargs) -> AIProvider:
        """Get an AI provider instance."""
        return self._create("ai", name, **kwargs)

    def get_tts_provider(self, name: str, **kwargs) -> TTSProvider:
        """Get a TTS provider instance."""
        return self._create("tts", name, **kwargs)

    def get_stt_provider(self, name: str, **kwargs) -> STTProvider:
        """Get an STT provider instance."""
        return self._create("stt", name, **kwargs)

    def list_ai_providers(self) -> list[str]:
        return list(self._providers["ai"])

    def list_tts_providers(self) -> list[str]:
        return list(self._providers["tts"])

    def list_stt_providers(self) -> list[str]:
        return list(self._providers["stt"])

    def clear(self) -> None:
        """Clear all registered providers."""
        for providers in self._providers.values():
            providers.clear()
        self._provider_configs.clear()


# Global registry instance
registry = ProviderRegistry()
