# FILE: services/session_store.py
"""
In-memory session registry for the HTTP layer.
Sessions live for the lifetime of the process only.
"""

import logging
from typing import Dict, Optional

from config import TTS_DEFAULT
from services.action_registry import ActionRegistry
from services.orchestrator import ConversationOrchestrator
from services.speech import PushSpeechRecognizer, QueuedSpeechSynthesizer

logger = logging.getLogger("session_store")


class SessionNotFoundError(KeyError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(session_id)

    def __str__(self) -> str:
        return f"Unknown session: {self.session_id}"


class SessionStore:
    def __init__(self, registry: ActionRegistry, tts_default: bool = TTS_DEFAULT):
        self.registry = registry
        self.tts_default = tts_default
        self._sessions: Dict[str, ConversationOrchestrator] = {}

    def create(self, tts_enabled: Optional[bool] = None) -> ConversationOrchestrator:
        session = ConversationOrchestrator(
            self.registry,
            PushSpeechRecognizer(),
            QueuedSpeechSynthesizer(),
            tts_enabled=self.tts_default if tts_enabled is None else tts_enabled,
        )
        self._sessions[session.session_id] = session
        logger.info(f"[SESSION_START] session={session.session_id}")
        return session

    def get(self, session_id: str) -> ConversationOrchestrator:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id)

    async def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        await session.flush_speech()
        logger.info(f"[SESSION_END] session={session_id}")

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
