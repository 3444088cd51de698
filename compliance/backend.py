# compliance/backend.py
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from langchain_core.messages import BaseMessage
from langchain_google_genai import ChatGoogleGenerativeAI

import config
from .errors import ConfigurationError, TransportError
from .query import GenerationRequest

logger = logging.getLogger(__name__)

GOOGLE_SEARCH_TOOL = {"google_search": {}}

_AUTH_MARKERS = ("api key", "api_key", "permission_denied", "permission denied",
                 "unauthenticated", "unauthorized", "401", "403")
_RATE_MARKERS = ("429", "quota", "rate limit", "ratelimit", "resource_exhausted",
                 "resource exhausted", "too many requests")


@dataclass(frozen=True)
class BackendSettings:
    """
    Everything the AI client needs. `model` and `enable_grounding` are the
    switchable surface; normalization never looks at them.
    """
    api_key: str
    model: str = "gemini-2.5-pro"
    approvals_model: str = "gemini-2.5-flash"
    enable_grounding: bool = True
    temperature: float = 0.0
    timeout: float = 120.0
    max_retries: int = 2
    approvals_batch_size: int = 6


@dataclass
class GenerationResult:
    """
    Raw answer from a backend: an already-parsed payload when the backend offers
    one, the model text otherwise, and grounding citation chunks if search ran.
    """
    payload: Any = None
    text: str = ""
    grounding_chunks: List[Dict[str, Any]] = field(default_factory=list)


def load_settings(**overrides) -> BackendSettings:
    settings = BackendSettings(
        api_key=config.GOOGLE_API_KEY,
        model=config.AUDIT_MODEL,
        approvals_model=config.APPROVALS_MODEL,
        enable_grounding=config.ENABLE_GROUNDING,
        temperature=config.LLM_TEMPERATURE,
        timeout=config.LLM_TIMEOUT,
        max_retries=config.LLM_MAX_RETRIES,
        approvals_batch_size=config.APPROVALS_BATCH_SIZE,
    )
    return replace(settings, **overrides) if overrides else settings


def get_llm(
    settings: BackendSettings,
    model: str,
    json_mode: bool = False,
    schema: Optional[Dict[str, Any]] = None,
) -> ChatGoogleGenerativeAI:
    """
    Deterministic Gemini chat model. Timeout and retries are left to the client library.
    JSON mode (and with it the response schema) cannot be combined with the search tool,
    so both are only set for ungrounded calls; grounded calls carry the shape in the prompt.
    """
    kwargs: Dict[str, Any] = dict(
        model=model,
        temperature=settings.temperature,
        google_api_key=settings.api_key,
        timeout=settings.timeout,
        max_retries=settings.max_retries,
    )
    if json_mode:
        kwargs["response_mime_type"] = "application/json"
        if schema:
            kwargs["response_schema"] = schema
    return ChatGoogleGenerativeAI(**kwargs)


def message_text(message: BaseMessage) -> str:
    """Flattens str or content-block message content into plain text."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type", "text") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts)


def grounding_chunks(message: BaseMessage) -> List[Dict[str, Any]]:
    """Citation chunks from Gemini grounding metadata, or [] when search did not run."""
    for meta in (message.response_metadata or {}, message.additional_kwargs or {}):
        gm = meta.get("grounding_metadata") or meta.get("groundingMetadata")
        if not isinstance(gm, dict):
            continue
        chunks = gm.get("grounding_chunks") or gm.get("groundingChunks") or []
        if isinstance(chunks, list):
            return [c for c in chunks if isinstance(c, dict)]
    return []


def classify_failure(exc: BaseException) -> str:
    code = getattr(exc, "code", None) or getattr(exc, "status_code", None)
    if code in (401, 403):
        return "auth"
    if code == 429:
        return "rate_limit"
    text = f"{type(exc).__name__}: {exc}".lower()
    if any(k in text for k in _AUTH_MARKERS):
        return "auth"
    if any(k in text for k in _RATE_MARKERS):
        return "rate_limit"
    return "network"


def _transport_error(exc: Exception) -> TransportError:
    reason = classify_failure(exc)
    logger.warning("AI backend call failed (%s): %s", reason, exc)
    return TransportError(str(exc) or type(exc).__name__, reason=reason)


class GeminiBackend:
    """
    Explicit client handle for Gemini. Each call builds its own chat model
    from the injected settings; nothing is shared between requests.
    """

    def __init__(
        self,
        settings: BackendSettings,
        llm_factory: Callable[..., Any] = get_llm,
    ):
        self.settings = settings
        self._llm_factory = llm_factory

    def _runnable(self, request: GenerationRequest):
        model = request.model or self.settings.model
        llm = self._llm_factory(
            self.settings, model, json_mode=not request.grounding, schema=request.schema
        )
        if request.grounding:
            return llm.bind_tools([GOOGLE_SEARCH_TOOL])
        return llm

    def _to_result(self, message: BaseMessage) -> GenerationResult:
        result = GenerationResult(text=message_text(message), grounding_chunks=grounding_chunks(message))
        logger.info("AI backend answered: %d chars, %d grounding chunks",
                    len(result.text), len(result.grounding_chunks))
        return result

    def generate(self, request: GenerationRequest) -> GenerationResult:
        logger.info("Dispatching request (model=%s, grounding=%s, prompt=%d chars)",
                    request.model or self.settings.model, request.grounding, len(request.prompt))
        try:
            message = self._runnable(request).invoke(request.prompt)
        except Exception as e:
            raise _transport_error(e) from e
        return self._to_result(message)

    async def agenerate(self, request: GenerationRequest) -> GenerationResult:
        logger.info("Dispatching async request (model=%s, grounding=%s, prompt=%d chars)",
                    request.model or self.settings.model, request.grounding, len(request.prompt))
        try:
            message = await self._runnable(request).ainvoke(request.prompt)
        except Exception as e:
            raise _transport_error(e) from e
        return self._to_result(message)


def create_backend(settings: Optional[BackendSettings] = None) -> GeminiBackend:
    """Builds the client handle; a blank API key is fatal here, before any request."""
    settings = settings or load_settings()
    if not (settings.api_key or "").strip():
        raise ConfigurationError(
            "GOOGLE_API_KEY is not set. Add it to your environment or .env file."
        )
    return GeminiBackend(settings)
