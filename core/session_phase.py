# core/session_phase.py
from enum import Enum


class SessionPhase(str, Enum):
    """
    Where a conversation session currently is.
    Transitions are owned by the ConversationOrchestrator.
    """

    IDLE = "idle"
    LISTENING = "listening"
    EXECUTING = "executing"

    def is_listening(self) -> bool:
        return self is SessionPhase.LISTENING
