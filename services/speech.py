# FILE: services/speech.py
"""
Speech collaborators behind minimal capability interfaces.

The orchestrator only sees SpeechRecognizer / SpeechSynthesizer, never a
vendor API. A recognizer may be unsupported; the session then runs text-only.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger("speech")

TranscriptListener = Callable[[str], None]
CaptureEndedListener = Callable[[], None]


# -----------------------------
# Speech-to-text
# -----------------------------
class SpeechRecognizer(ABC):
    def __init__(self):
        self._on_transcript: Optional[TranscriptListener] = None
        self._on_capture_ended: Optional[CaptureEndedListener] = None

    @property
    @abstractmethod
    def supported(self) -> bool:
        pass

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass

    def set_listener(
        self,
        on_transcript: TranscriptListener,
        on_capture_ended: CaptureEndedListener,
    ) -> None:
        self._on_transcript = on_transcript
        self._on_capture_ended = on_capture_ended

    def emit_transcript(self, text: str) -> None:
        if self._on_transcript:
            self._on_transcript(text)

    def emit_capture_ended(self) -> None:
        if self._on_capture_ended:
            self._on_capture_ended()


class NullSpeechRecognizer(SpeechRecognizer):
    """No microphone available."""

    @property
    def supported(self) -> bool:
        return False

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None


class PushSpeechRecognizer(SpeechRecognizer):
    """
    Recognition happens on a remote client, which pushes the evolving
    transcript here. start/stop only track whether capture is open.
    """

    def __init__(self):
        super().__init__()
        self.active = False

    @property
    def supported(self) -> bool:
        return True

    async def start(self) -> None:
        self.active = True

    async def stop(self) -> None:
        self.active = False

    def push(self, transcript: str, final: bool = False) -> None:
        if not self.active:
            logger.debug("Dropping transcript pushed while capture is closed")
            return
        self.emit_transcript(transcript)
        if final:
            self.active = False
            self.emit_capture_ended()


# -----------------------------
# Text-to-speech
# -----------------------------
class SpeechSynthesizer(ABC):
    @abstractmethod
    async def speak(self, text: str) -> None:
        """Play `text`, cancelling whatever is currently playing."""


class NullSpeechSynthesizer(SpeechSynthesizer):
    async def speak(self, text: str) -> None:
        return None


class ConsoleSpeechSynthesizer(SpeechSynthesizer):
    async def speak(self, text: str) -> None:
        print(f"🔊 {text}")


class QueuedSpeechSynthesizer(SpeechSynthesizer):
    """
    Holds the latest utterance for a polling client to play.
    A new utterance replaces one that has not been collected yet.
    """

    def __init__(self):
        self.pending: Optional[str] = None

    async def speak(self, text: str) -> None:
        if self.pending is not None:
            logger.debug("Cancelling unplayed utterance")
        self.pending = text

    def drain(self) -> Optional[str]:
        text, self.pending = self.pending, None
        return text
