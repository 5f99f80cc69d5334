import asyncio
import pytest
from unittest.mock import AsyncMock

from config import GREETING_TEXT
from core.session_phase import SessionPhase
from services.finance_backend import FinanceBackendError
from services.orchestrator import ConversationOrchestrator, SessionBusyError


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _session(registry, recognizer=None, synthesizer=None, **kwargs):
    return ConversationOrchestrator(registry, recognizer, synthesizer, **kwargs)


def _roles(session):
    return [event.role for event in session.timeline]


# ---------------------------------------------------------------------
# SESSION START
# ---------------------------------------------------------------------

def test_new_session_is_idle_with_greeting(registry):
    session = _session(registry)

    assert session.phase is SessionPhase.IDLE
    assert len(session.timeline) == 1
    assert session.timeline[0].role == "system"
    assert session.timeline[0].text == GREETING_TEXT


# ---------------------------------------------------------------------
# TEXT COMMANDS
# ---------------------------------------------------------------------

def test_text_command_appends_user_then_assistant(registry, synthesizer):
    session = _session(registry, synthesizer=synthesizer)

    async def scenario():
        event = await session.submit("  freeze card ending 1234  ")
        await session.flush_speech()
        return event

    event = asyncio.run(scenario())

    assert _roles(session) == ["system", "user", "assistant"]
    assert session.timeline[1].text == "freeze card ending 1234"
    assert event == session.timeline[2]
    assert event.text == "Card ending in 1234 is now frozen."
    assert synthesizer.spoken == [event.text]
    assert session.phase is SessionPhase.IDLE


def test_payload_is_recorded_on_assistant_event(registry):
    session = _session(registry)

    event = asyncio.run(session.submit("show spend by category for the last 7 days"))

    assert event.structured_payload["kind"] == "spend.breakdown"
    assert event.structured_payload["window_days"] == 7


def test_unknown_input_is_still_recorded(registry):
    session = _session(registry)

    event = asyncio.run(session.submit("gibberish nonsense"))

    assert session.timeline[1].text == "gibberish nonsense"
    assert event.text.startswith("Sorry, I didn't catch that.")


def test_blank_input_is_ignored(registry):
    session = _session(registry)

    assert asyncio.run(session.submit("   ")) is None
    assert len(session.timeline) == 1


# ---------------------------------------------------------------------
# FAILURES
# ---------------------------------------------------------------------

def test_backend_failure_returns_to_idle(registry, backend):
    backend.get_cash_balance = AsyncMock(side_effect=FinanceBackendError("ledger offline"))
    session = _session(registry)

    event = asyncio.run(session.submit("cash balance"))

    assert event.text == "Something went wrong: ledger offline"
    assert event.structured_payload is None
    assert session.phase is SessionPhase.IDLE


def test_parser_crash_cannot_leave_session_executing(registry):
    def broken_parser(text):
        raise ValueError("bad rule table")

    session = _session(registry, parser=broken_parser)

    event = asyncio.run(session.submit("cash balance"))

    assert event.text == "Something went wrong: bad rule table"
    assert session.phase is SessionPhase.IDLE
    assert _roles(session) == ["system", "user", "assistant"]


# ---------------------------------------------------------------------
# SINGLE-FLIGHT
# ---------------------------------------------------------------------

def test_second_submission_while_executing_is_rejected(registry, backend, recognizer):
    session = _session(registry, recognizer)

    async def scenario():
        gate = asyncio.Event()
        original = backend.get_cash_balance

        async def slow_balance():
            await gate.wait()
            return await original()

        backend.get_cash_balance = slow_balance

        first = asyncio.create_task(session.submit("cash balance"))
        await asyncio.sleep(0)
        assert session.phase is SessionPhase.EXECUTING

        with pytest.raises(SessionBusyError):
            await session.submit("freeze card ending 1234")
        with pytest.raises(SessionBusyError):
            await session.toggle_mic()

        gate.set()
        await first

    asyncio.run(scenario())

    assert _roles(session) == ["system", "user", "assistant"]
    assert session.timeline[1].text == "cash balance"
    assert recognizer.started == 0
    assert session.phase is SessionPhase.IDLE


def test_commands_alternate_user_and_assistant(registry):
    session = _session(registry)

    async def scenario():
        for text in ["cash balance", "help", "approve expense report RPT-9", "nonsense"]:
            await session.submit(text)

    asyncio.run(scenario())

    assert _roles(session) == ["system"] + ["user", "assistant"] * 4


# ---------------------------------------------------------------------
# TIMELINE
# ---------------------------------------------------------------------

def test_earlier_events_are_never_changed(registry):
    session = _session(registry)
    asyncio.run(session.submit("cash balance"))
    before = session.timeline.snapshot()

    asyncio.run(session.submit("freeze card ending 1111"))
    after = session.timeline.snapshot()

    assert len(after) == len(before) + 2
    assert after[: len(before)] == before
    timestamps = [event.timestamp for event in after]
    assert timestamps == sorted(timestamps)
    assert len({event.id for event in after}) == len(after)


def test_events_are_immutable(registry):
    session = _session(registry)
    event = asyncio.run(session.submit("cash balance"))

    with pytest.raises(Exception):
        event.text = "rewritten"


def test_editing_a_returned_payload_leaves_timeline_unchanged(registry):
    session = _session(registry)
    event = asyncio.run(session.submit("show spend by category for the last 7 days"))

    event.structured_payload["window_days"] = 111
    session.timeline[2].structured_payload["window_days"] = 999
    session.timeline.snapshot()[2].structured_payload["categories"].clear()
    for listed in session.timeline:
        if listed.structured_payload:
            listed.structured_payload["kind"] = "tampered"
    session.snapshot().events[2].structured_payload["total"] = 0

    stored = session.timeline.snapshot()[2].structured_payload
    assert stored["window_days"] == 7
    assert stored["kind"] == "spend.breakdown"
    assert stored["categories"]
    assert stored["total"] > 0


# ---------------------------------------------------------------------
# VOICE OUTPUT
# ---------------------------------------------------------------------

def test_tts_off_suppresses_speech_for_later_commands_only(registry, synthesizer):
    session = _session(registry, synthesizer=synthesizer)

    async def scenario():
        await session.submit("cash balance")
        await session.flush_speech()
        session.set_tts(False)
        await session.submit("freeze card ending 2222")
        await session.flush_speech()

    asyncio.run(scenario())

    assert len(synthesizer.spoken) == 1
    assert synthesizer.spoken[0].startswith("Available cash balance")
    assert len(session.timeline) == 5


def test_toggle_tts_flips_setting(registry):
    session = _session(registry, tts_enabled=False)

    assert session.toggle_tts() is True
    assert session.toggle_tts() is False


def test_speech_does_not_gate_return_to_idle(registry, make_synthesizer):
    slow = make_synthesizer(delay=0.05)
    session = _session(registry, synthesizer=slow)

    async def scenario():
        await session.submit("help")
        assert session.phase is SessionPhase.IDLE
        assert slow.spoken == []
        await session.flush_speech()

    asyncio.run(scenario())

    assert len(slow.spoken) == 1


def test_speech_failure_is_contained(registry, make_synthesizer):
    session = _session(registry, synthesizer=make_synthesizer(fail=True))

    async def scenario():
        await session.submit("help")
        await session.flush_speech()
        await session.submit("cash balance")
        await session.flush_speech()

    asyncio.run(scenario())

    assert _roles(session) == ["system", "user", "assistant", "user", "assistant"]
    assert session.phase is SessionPhase.IDLE


# ---------------------------------------------------------------------
# MICROPHONE
# ---------------------------------------------------------------------

def test_mic_round_trip_submits_transcript(registry, recognizer):
    session = _session(registry, recognizer)

    async def scenario():
        assert await session.toggle_mic() is SessionPhase.LISTENING
        recognizer.hear("freeze card")
        recognizer.hear("freeze card ending 4321")
        return await session.toggle_mic()

    phase = asyncio.run(scenario())

    assert phase is SessionPhase.IDLE
    assert recognizer.started == 1 and recognizer.stopped == 1
    assert session.timeline[1].text == "freeze card ending 4321"
    assert session.timeline[2].text == "Card ending in 4321 is now frozen."
    assert session.transcript == ""


def test_mic_off_with_empty_transcript_submits_nothing(registry, recognizer):
    session = _session(registry, recognizer)

    async def scenario():
        await session.toggle_mic()
        recognizer.hear("   ")
        await session.toggle_mic()

    asyncio.run(scenario())

    assert len(session.timeline) == 1
    assert session.phase is SessionPhase.IDLE


def test_listening_clears_previous_transcript(registry, recognizer):
    session = _session(registry, recognizer)
    session.transcript = "stale words"

    asyncio.run(session.toggle_mic())

    assert session.transcript == ""
    assert session.phase is SessionPhase.LISTENING


def test_typed_submission_while_listening_is_rejected(registry, recognizer):
    session = _session(registry, recognizer)

    async def scenario():
        await session.toggle_mic()
        with pytest.raises(SessionBusyError):
            await session.submit("cash balance")

    asyncio.run(scenario())

    assert len(session.timeline) == 1


def test_unsupported_microphone_falls_back_to_text(registry, make_recognizer):
    recognizer = make_recognizer(supported=False)
    session = _session(registry, recognizer)

    async def scenario():
        phase = await session.toggle_mic()
        event = await session.submit("cash balance")
        return phase, event

    phase, event = asyncio.run(scenario())

    assert phase is SessionPhase.IDLE
    assert recognizer.started == 0
    assert event.text.startswith("Available cash balance")


def test_capture_ended_keeps_transcript_for_later_submit(registry, recognizer):
    session = _session(registry, recognizer)

    async def scenario():
        await session.toggle_mic()
        recognizer.hear("approve expense report RPT-55")
        recognizer.emit_capture_ended()
        assert session.phase is SessionPhase.IDLE
        assert session.transcript == "approve expense report RPT-55"
        return await session.submit_transcript()

    event = asyncio.run(scenario())

    assert event.text == "Expense report RPT-55 is approved."


def test_transcript_ignored_when_not_listening(registry, recognizer):
    session = _session(registry, recognizer)

    recognizer.hear("cash balance")

    assert session.transcript == ""


def test_mic_start_failure_returns_to_idle(registry, make_recognizer):
    recognizer = make_recognizer(fail_start=True)
    session = _session(registry, recognizer)

    async def scenario():
        with pytest.raises(RuntimeError, match="mic device busy"):
            await session.toggle_mic()
        assert session.phase is SessionPhase.IDLE
        return await session.submit("cash balance")

    event = asyncio.run(scenario())

    assert recognizer.started == 1
    assert event.text.startswith("Available cash balance")
    assert session.phase is SessionPhase.IDLE


def test_mic_stop_failure_still_submits_transcript(registry, make_recognizer):
    recognizer = make_recognizer(fail_stop=True)
    session = _session(registry, recognizer)

    async def scenario():
        await session.toggle_mic()
        recognizer.hear("freeze card ending 4321")
        return await session.toggle_mic()

    phase = asyncio.run(scenario())

    assert phase is SessionPhase.IDLE
    assert recognizer.stopped == 1
    assert session.timeline[1].text == "freeze card ending 4321"
    assert session.timeline[2].text == "Card ending in 4321 is now frozen."
    assert session.transcript == ""
