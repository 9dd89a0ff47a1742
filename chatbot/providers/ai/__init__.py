"""Text-generation providers."""


def register_providers():
    """Register all AI providers."""
    # Import at function level to avoid circular imports
    from ..registry import registry
    from ...config.settings import settings
    from .gemini import GeminiProvider

    def get_gemini_config():
        return settings.get_provider_config("gemini")

    registry.register_ai_provider("gemini", GeminiProvider, get_gemini_config)
