"""Speech-to-Text providers."""

def register_providers():
    """Register all STT providers."""
    # Import at function level to avoid circular imports
    from ..registry import registry
    from ...config.settings import settings
    from .google_speech import GoogleSpeechProvider

    def get_google_config():
        return settings.get_provider_config("google")

    registry.register_stt_provider(
        "google",
        GoogleSpeechProvider,
        get_google_config
    )
