import os
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

def get_env_var(name: str) -> str:
    """Get environment variable or raise a clear error if missing."""
    value = os.getenv(name)
    if not value:
        raise RuntimeError(
            f"❌ Missing required environment variable: {name}\n"
            f"👉 Did you copy .env.example to .env and fill in your keys?"
        )
    return value

def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"

# Finance backend
MOCK_MODE = _flag("MOCK_MODE", "true")
FINANCE_API_BASE_URL = None if MOCK_MODE else get_env_var("FINANCE_API_BASE_URL")
FINANCE_API_TIMEOUT = float(os.getenv("FINANCE_API_TIMEOUT", "10"))
MOCK_LATENCY_SCALE = float(os.getenv("MOCK_LATENCY_SCALE", "1.0"))

# Conversation
EXECUTOR_TIMEOUT = float(os.getenv("EXECUTOR_TIMEOUT", "30"))
TTS_DEFAULT = _flag("TTS_DEFAULT", "true")
GREETING_TEXT = os.getenv(
    "GREETING_TEXT",
    "Hi! I can check balances, summarize spend, create/freeze cards, and approve expenses. "
    "Hold the mic and talk, or type below.",
)

# Optional vars (with defaults)
DEBUG = _flag("DEBUG", "false")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
