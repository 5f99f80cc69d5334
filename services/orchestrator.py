# FILE: services/orchestrator.py
"""
Conversation Orchestrator

- Owns the session phase (idle / listening / executing) and the timeline
- Single-flight: one command at a time per session, extra submissions are rejected
- Speech output is fire-and-forget and never gates the return to idle
"""

import asyncio
import logging
import uuid
from typing import Callable, Optional, Set

from config import GREETING_TEXT
from core.intent import ParsedIntent
from core.session_phase import SessionPhase
from models.event import AssistantEvent, SessionSnapshot, Timeline
from models.response import DispatchResponse
from services.action_registry import ActionRegistry, failure_response
from services.intent_parser import parse_intent
from services.speech import (
    NullSpeechRecognizer,
    NullSpeechSynthesizer,
    SpeechRecognizer,
    SpeechSynthesizer,
)

logger = logging.getLogger("conversation_orchestrator")


class SessionBusyError(RuntimeError):
    """Raised when the session cannot accept input in its current phase."""

    def __init__(self, phase: SessionPhase, message: Optional[str] = None):
        self.phase = phase
        super().__init__(message or f"Session is {phase.value}; try again when it is idle")


class ConversationOrchestrator:
    def __init__(
        self,
        registry: ActionRegistry,
        recognizer: Optional[SpeechRecognizer] = None,
        synthesizer: Optional[SpeechSynthesizer] = None,
        *,
        session_id: Optional[str] = None,
        tts_enabled: bool = True,
        greeting: str = GREETING_TEXT,
        parser: Callable[[str], ParsedIntent] = parse_intent,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.registry = registry
        self.recognizer = recognizer or NullSpeechRecognizer()
        self.synthesizer = synthesizer or NullSpeechSynthesizer()
        self.parser = parser

        self.phase = SessionPhase.IDLE
        self.tts_enabled = tts_enabled
        self.transcript = ""
        self.timeline = Timeline()
        # Outcome of the most recent command, for metrics
        self.last_intent: Optional[ParsedIntent] = None
        self.last_response: Optional[DispatchResponse] = None
        self._speech_tasks: Set[asyncio.Task] = set()

        self.recognizer.set_listener(self._on_transcript, self._on_capture_ended)
        self.timeline.record("system", greeting)

    @property
    def microphone_supported(self) -> bool:
        return self.recognizer.supported

    # -----------------------------
    # Microphone
    # -----------------------------
    async def toggle_mic(self) -> SessionPhase:
        """
        Idle -> Listening, or Listening -> Idle and submit the transcript.
        Without a microphone this is a no-op (text-only session).
        """
        if self.phase is SessionPhase.EXECUTING:
            logger.warning(f"[REJECTED] session={self.session_id}, action=mic, phase={self.phase.value}")
            raise SessionBusyError(self.phase)

        if not self.microphone_supported:
            logger.info(f"[MIC_UNSUPPORTED] session={self.session_id}")
            return self.phase

        if self.phase is SessionPhase.IDLE:
            self.transcript = ""
            self.phase = SessionPhase.LISTENING
            try:
                await self.recognizer.start()
            except Exception:
                self.phase = SessionPhase.IDLE
                logger.exception(f"[MIC_ERROR] session={self.session_id}, action=start")
                raise
            logger.info(f"[LISTENING] session={self.session_id}")
            return self.phase

        self.phase = SessionPhase.IDLE
        try:
            await self.recognizer.stop()
        except Exception:
            # Capture is over either way; the buffered words still count
            logger.exception(f"[MIC_ERROR] session={self.session_id}, action=stop")
        logger.info(f"[MIC_OFF] session={self.session_id}, transcript_length={len(self.transcript)}")
        await self.submit_transcript()
        return self.phase

    async def submit_transcript(self) -> Optional[AssistantEvent]:
        """Submit whatever the recognizer captured, if anything."""
        text = self.transcript.strip()
        if not text:
            return None

        self.transcript = ""
        try:
            return await self.submit(text)
        except SessionBusyError:
            self.transcript = text
            raise

    def _on_transcript(self, text: str) -> None:
        if self.phase is SessionPhase.LISTENING:
            self.transcript = text

    def _on_capture_ended(self) -> None:
        # Recognizer stopped on its own: go idle, keep the transcript buffered
        if self.phase is SessionPhase.LISTENING:
            self.phase = SessionPhase.IDLE
            logger.info(f"[CAPTURE_ENDED] session={self.session_id}")

    # -----------------------------
    # Commands
    # -----------------------------
    async def submit(self, text: str) -> Optional[AssistantEvent]:
        """
        Run one command: user event, parse, dispatch, assistant event.
        Returns the assistant event, or None for blank input.
        """
        utterance = (text or "").strip()

        if self.phase is not SessionPhase.IDLE:
            logger.warning(f"[REJECTED] session={self.session_id}, action=submit, phase={self.phase.value}")
            raise SessionBusyError(self.phase)
        if not utterance:
            return None

        self.phase = SessionPhase.EXECUTING
        try:
            self.timeline.record("user", utterance)
            response = await self._run(utterance)
            self.last_response = response
            event = self.timeline.record("assistant", response.response_text, response.payload)
        finally:
            self.phase = SessionPhase.IDLE

        if self.tts_enabled:
            self._speak_later(response.response_text)
        return event

    async def _run(self, utterance: str) -> DispatchResponse:
        self.last_intent = None
        try:
            intent = self.last_intent = self.parser(utterance)
            logger.info(
                f"[INTENT] session={self.session_id}, kind={intent.kind.value}, params={intent.params}"
            )
            return await self.registry.dispatch(intent)
        except Exception as e:
            logger.exception(f"[COMMAND_ERROR] session={self.session_id}")
            return failure_response(e)

    # -----------------------------
    # Voice output
    # -----------------------------
    def set_tts(self, enabled: bool) -> bool:
        self.tts_enabled = enabled
        return self.tts_enabled

    def toggle_tts(self) -> bool:
        return self.set_tts(not self.tts_enabled)

    def _speak_later(self, text: str) -> None:
        task = asyncio.create_task(self._speak(text))
        self._speech_tasks.add(task)
        task.add_done_callback(self._speech_tasks.discard)

    async def _speak(self, text: str) -> None:
        try:
            await self.synthesizer.speak(text)
        except Exception:
            logger.exception(f"[TTS_ERROR] session={self.session_id}")

    async def flush_speech(self) -> None:
        """Wait for queued speech to finish (shutdown / tests)."""
        if self._speech_tasks:
            await asyncio.gather(*list(self._speech_tasks))

    # -----------------------------
    # Read-only view
    # -----------------------------
    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            phase=self.phase,
            tts_enabled=self.tts_enabled,
            microphone_supported=self.microphone_supported,
            transcript=self.transcript,
            events=list(self.timeline.snapshot()),
        )
