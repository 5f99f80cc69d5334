import asyncio
import logging

from config import EXECUTOR_TIMEOUT, LOG_LEVEL, TTS_DEFAULT
from services.action_registry import ActionRegistry
from services.finance_backend import build_backend
from services.orchestrator import ConversationOrchestrator
from services.speech import ConsoleSpeechSynthesizer

PROMPT = "you> "


def print_events(events):
    for event in events:
        print(f"[{event.timestamp:%H:%M:%S}] {event.role}: {event.text}")
        if event.structured_payload:
            print(f"    {event.structured_payload}")


async def main():
    backend = build_backend()
    session = ConversationOrchestrator(
        ActionRegistry(backend, timeout=EXECUTOR_TIMEOUT),
        synthesizer=ConsoleSpeechSynthesizer(),
        tts_enabled=TTS_DEFAULT,
    )
    print_events(session.timeline)
    print("Type a request, /voice to toggle speech, /quit to exit.")

    try:
        while True:
            line = await asyncio.to_thread(input, PROMPT)
            line = line.strip()
            if line == "/quit":
                break
            if line == "/voice":
                print("Voice on" if session.toggle_tts() else "Voice off")
                continue

            seen = len(session.timeline)
            await session.submit(line)
            # user event is already on screen as typed
            print_events(session.timeline.since(seen + 1))
            await session.flush_speech()
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        await backend.aclose()


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s")
    asyncio.run(main())
