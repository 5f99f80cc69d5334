# FILE: models/event.py
import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from core.session_phase import SessionPhase

Role = Literal["user", "assistant", "system"]


# -----------------------------
# Assistant Event
# -----------------------------
class AssistantEvent(BaseModel):
    """
    One entry of the conversation timeline.
    Created exactly once and never changed afterwards.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: Role
    text: Optional[str] = None
    structured_payload: Optional[Dict[str, Any]] = None
    timestamp: datetime


def _detached(event: AssistantEvent) -> AssistantEvent:
    return event.model_copy(deep=True)


# -----------------------------
# Timeline (append-only)
# -----------------------------
class Timeline:
    """
    Ordered, append-only log of AssistantEvents.

    Only `record` adds entries; there is no way to remove, replace or
    reorder them. Timestamps never go backwards even if the wall clock does.
    Readers always get deep copies, so editing a returned payload never
    reaches the stored event.
    """

    def __init__(self):
        self._events: List[AssistantEvent] = []

    def record(
        self,
        role: Role,
        text: Optional[str] = None,
        structured_payload: Optional[Dict[str, Any]] = None,
    ) -> AssistantEvent:
        now = datetime.now(timezone.utc)
        if self._events and now < self._events[-1].timestamp:
            now = self._events[-1].timestamp

        event = AssistantEvent(
            role=role,
            text=text,
            # detached copy so callers can't mutate a recorded payload
            structured_payload=copy.deepcopy(structured_payload),
            timestamp=now,
        )
        self._events.append(event)
        return _detached(event)

    def snapshot(self) -> Tuple[AssistantEvent, ...]:
        return tuple(_detached(event) for event in self._events)

    def since(self, index: int) -> Tuple[AssistantEvent, ...]:
        return tuple(_detached(event) for event in self._events[index:])

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[AssistantEvent]:
        return iter(self.snapshot())

    def __getitem__(self, index: int) -> AssistantEvent:
        return _detached(self._events[index])


# -----------------------------
# Session Snapshot (Orchestrator → UI)
# -----------------------------
class SessionSnapshot(BaseModel):
    session_id: str
    phase: SessionPhase
    tts_enabled: bool
    microphone_supported: bool
    transcript: str = ""
    events: List[AssistantEvent] = Field(default_factory=list)
