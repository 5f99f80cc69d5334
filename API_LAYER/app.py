# app.py
import logging
import json
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from asyncio import Lock
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import DEBUG, EXECUTOR_TIMEOUT, LOG_LEVEL, MOCK_MODE
from core.intent import IntentKind, ParsedIntent
from models.event import SessionSnapshot
from services.action_registry import ActionRegistry
from services.finance_backend import build_backend
from services.intent_parser import parse_intent
from services.orchestrator import SessionBusyError
from services.session_store import SessionNotFoundError, SessionStore


# -----------------------------
# Structured Logging Setup
# -----------------------------
class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            {
                "time": self.formatTime(record, self.datefmt),
                "level": record.levelname,
                "name": record.name,
                "message": record.getMessage(),
                "exception": self.formatException(record.exc_info) if record.exc_info else None,
            }
        )


logger = logging.getLogger("voice_finance_api")
root_logger = logging.getLogger()
root_logger.setLevel(LOG_LEVEL)
handler = logging.StreamHandler()
handler.setFormatter(JSONFormatter())
if not any(isinstance(h.formatter, JSONFormatter) for h in root_logger.handlers):
    root_logger.addHandler(handler)

# -----------------------------
# FastAPI App
# -----------------------------
app = FastAPI(title="Voice Finance Assistant API", version="1.0")

# -----------------------------
# Backend + Sessions (process lifetime)
# -----------------------------
backend = build_backend()
registry = ActionRegistry(backend, timeout=EXECUTOR_TIMEOUT)
store = SessionStore(registry)

# -----------------------------
# Metrics
# -----------------------------
metrics_lock = Lock()
request_counters = {kind.value: 0 for kind in IntentKind}
request_counters.update({"total": 0, "errors": 0, "rejected": 0})

# -----------------------------
# Pydantic Models
# -----------------------------
class UtteranceRequest(BaseModel):
    text: str


class TranscriptRequest(BaseModel):
    text: str
    final: bool = False


class TtsRequest(BaseModel):
    enabled: bool


class SessionRequest(BaseModel):
    tts_enabled: Optional[bool] = Field(None)

# -----------------------------
# Failure envelope
# -----------------------------
def failure(status_code: int, error_type: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"type": error_type, "message": message}},
    )


@app.exception_handler(SessionNotFoundError)
async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
    return failure(404, "session_not_found", str(exc))


@app.exception_handler(SessionBusyError)
async def session_busy_handler(request: Request, exc: SessionBusyError):
    async with metrics_lock:
        request_counters["rejected"] += 1
    return failure(409, "session_busy", str(exc))


@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    return failure(422, "invalid_request", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return failure(exc.status_code, "http_error", str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_handler(request: Request, exc: Exception):
    async with metrics_lock:
        request_counters["errors"] += 1
    logger.exception(f"[ERROR] path={request.url.path}, exception={exc}")
    return failure(500, "internal_error", str(exc) if DEBUG else "An unexpected error occurred")

# -----------------------------
# Shutdown
# -----------------------------
@app.on_event("shutdown")
async def shutdown():
    await store.close_all()
    await backend.aclose()
    logger.info("✅ Sessions closed, finance backend released")

# -----------------------------
# API Endpoints
# -----------------------------
@app.get("/")
async def root():
    return {"message": "Voice Finance Assistant API is running."}


@app.get("/health")
async def health() -> Dict[str, Any]:
    return {"status": "ok", "mock_mode": MOCK_MODE, "sessions": len(store)}


@app.get("/metrics")
async def metrics() -> Dict[str, Any]:
    async with metrics_lock:
        return request_counters.copy()


@app.post("/parse", response_model=ParsedIntent)
async def parse(request: UtteranceRequest) -> ParsedIntent:
    return parse_intent(request.text)


@app.post("/sessions", response_model=SessionSnapshot, status_code=201)
async def create_session(request: Optional[SessionRequest] = None) -> SessionSnapshot:
    session = store.create(tts_enabled=request.tts_enabled if request else None)
    return session.snapshot()


@app.get("/sessions/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str) -> SessionSnapshot:
    return store.get(session_id).snapshot()


@app.delete("/sessions/{session_id}")
async def end_session(session_id: str) -> Dict[str, str]:
    await store.close(session_id)
    return {"status": "closed", "session_id": session_id}


@app.post("/sessions/{session_id}/utterances", response_model=SessionSnapshot)
async def submit_utterance(session_id: str, request: UtteranceRequest) -> SessionSnapshot:
    session = store.get(session_id)
    text = request.text.strip()
    if not text:
        raise HTTPException(status_code=422, detail="Utterance is empty")

    logger.info(f"[REQUEST_START] session={session_id}, text_length={len(text)}")
    await session.submit(text)

    intent = session.last_intent
    kind = intent.kind.value if intent else IntentKind.UNKNOWN.value
    async with metrics_lock:
        request_counters["total"] += 1
        request_counters[kind] += 1
        if session.last_response and session.last_response.failed:
            request_counters["errors"] += 1
    return session.snapshot()


@app.post("/sessions/{session_id}/mic", response_model=SessionSnapshot)
async def toggle_mic(session_id: str) -> SessionSnapshot:
    session = store.get(session_id)
    await session.toggle_mic()
    return session.snapshot()


@app.post("/sessions/{session_id}/transcript", response_model=SessionSnapshot)
async def push_transcript(session_id: str, request: TranscriptRequest) -> SessionSnapshot:
    session = store.get(session_id)
    was_listening = session.phase.is_listening()
    session.recognizer.push(request.text, final=request.final)
    if request.final and was_listening:
        await session.submit_transcript()
    return session.snapshot()


@app.put("/sessions/{session_id}/tts", response_model=SessionSnapshot)
async def set_tts(session_id: str, request: TtsRequest) -> SessionSnapshot:
    session = store.get(session_id)
    session.set_tts(request.enabled)
    return session.snapshot()


@app.get("/sessions/{session_id}/speech")
async def collect_speech(session_id: str) -> Dict[str, Optional[str]]:
    session = store.get(session_id)
    await session.flush_speech()
    return {"text": session.synthesizer.drain()}


# -----------------------------
# Entrypoint
# -----------------------------
import os
import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("API_LAYER.app:app", host="0.0.0.0", port=port, workers=1)
