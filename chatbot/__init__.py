"""
Gemini Voice Chatbot - a terminal chat client for the Gemini API.

Sends typed or spoken prompts to Gemini, renders replies with fenced
code blocks separated out, and reads replies aloud through ElevenLabs.
"""

__version__ = "1.0.0"

import structlog

# Until setup_logging() runs, structlog goes through stdlib logging, which
# only shows warnings and above (on stderr).
structlog.configure(
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
)
