# tests/conftest.py
import sys
import os
from pathlib import Path

# ---------------------------------------------------------
# Ensure project root is on PYTHONPATH BEFORE app imports
# ---------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Tests always run against the in-process backend, without delays
os.environ["MOCK_MODE"] = "true"
os.environ["MOCK_LATENCY_SCALE"] = "0"

# ---------------------------------------------------------
# Now safe to import app + dependencies
# ---------------------------------------------------------
import asyncio
import random
import pytest

from services.action_registry import ActionRegistry
from services.finance_backend import MockFinanceBackend
from services.speech import SpeechRecognizer, SpeechSynthesizer


class FakeRecognizer(SpeechRecognizer):
    """Scriptable microphone for session tests."""

    def __init__(self, supported: bool = True, fail_start: bool = False, fail_stop: bool = False):
        super().__init__()
        self._supported = supported
        self.fail_start = fail_start
        self.fail_stop = fail_stop
        self.started = 0
        self.stopped = 0

    @property
    def supported(self) -> bool:
        return self._supported

    async def start(self) -> None:
        self.started += 1
        if self.fail_start:
            raise RuntimeError("mic device busy")

    async def stop(self) -> None:
        self.stopped += 1
        if self.fail_stop:
            raise RuntimeError("mic device lost")

    def hear(self, text: str) -> None:
        self.emit_transcript(text)


class RecordingSynthesizer(SpeechSynthesizer):
    def __init__(self, fail: bool = False, delay: float = 0):
        self.spoken = []
        self.fail = fail
        self.delay = delay

    async def speak(self, text: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("audio device unavailable")
        self.spoken.append(text)


@pytest.fixture
def backend():
    return MockFinanceBackend(latency_scale=0, rng=random.Random(7))


@pytest.fixture
def registry(backend):
    return ActionRegistry(backend, timeout=5)


@pytest.fixture
def recognizer():
    return FakeRecognizer()


@pytest.fixture
def synthesizer():
    return RecordingSynthesizer()


@pytest.fixture
def make_recognizer():
    return FakeRecognizer


@pytest.fixture
def make_synthesizer():
    return RecordingSynthesizer
