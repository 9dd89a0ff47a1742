"""One-shot bridge from speech recognition into the input buffer."""

from typing import Callable, Optional
import structlog

from ..providers.stt.base import STTProvider
from ..state.conversation_store import ConversationState
from .errors import RECOGNITION_FAILURE_TEXT, RecognitionError


logger = structlog.get_logger()


Notify = Callable[[str, str], None]


class VoiceCaptureAdapter:
    """
    Runs a single recognition session and writes the transcript to ``input_text``.

    The transcript replaces the buffer rather than appending to it. On a
    recognition error the buffer is left unchanged and ``notify`` is called.
    """

    def __init__(self, state: ConversationState, stt_provider: STTProvider, notify: Notify):
        self.state = state
        self.stt_provider = stt_provider
        self.notify = notify
        self.is_listening = False

    async def start(self) -> Optional[str]:
        """
        Listen once and fill the input buffer.

        Returns:
            The recognized transcript, or None on error or if already listening
        """
        if self.is_listening:
            logger.debug("Voice capture already running")
            return None

        self.is_listening = True
        logger.info("Voice capture started")
        try:
            transcript = await self.stt_provider.listen_once()
            if not transcript.alternatives or not transcript.text:
                raise RecognitionError()
        except RecognitionError as e:
            logger.warning("Voice capture failed", error=str(e))
            self.notify("error", e.message)
            return None
        except Exception as e:
            logger.error("Unexpected error during voice capture", error=str(e), exc_info=True)
            self.notify("error", RECOGNITION_FAILURE_TEXT)
            return None
        finally:
            self.is_listening = False

        self.state.input_text = transcript.text
        logger.info("Voice capture finished", length=len(transcript.text))
        return transcript.text
