# config.py
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# --- Keys (Gemini) ---
GOOGLE_API_KEY = (
    os.getenv("GOOGLE_API_KEY")
    or os.getenv("GEMINI_API_KEY")
    or os.getenv("API_KEY")
    or ""
).strip()

# --- Models ---
AUDIT_MODEL = os.getenv("AUDIT_MODEL", "gemini-2.5-pro").strip()
APPROVALS_MODEL = os.getenv("APPROVALS_MODEL", "gemini-2.5-flash").strip()
MODEL_CHOICES = [
    "gemini-2.5-pro",
    "gemini-2.5-flash",
    "gemini-3-pro-preview",
    "gemini-3-flash-preview",
]

# Google Search grounding for the ingredient audit (approvals feed is never grounded)
ENABLE_GROUNDING = _flag("ENABLE_GROUNDING", "1")

# --- Client behaviour (timeouts/retries belong to the client library) ---
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.0"))
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "120"))
LLM_MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "2"))

APPROVALS_BATCH_SIZE = int(os.getenv("APPROVALS_BATCH_SIZE", "6"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
