# compliance/normalize.py
"""
Response normalization: the single gate every AI answer passes through.

Whatever comes back (parsed payload, JSON-ish text, nothing at all, or a transport
failure) is reshaped into fully-populated models so rendering code never has to
check for missing fields.
"""
import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel

from .backend import GenerationResult
from .errors import MalformedResponseError, TransportError
from .json_utils import parse_json_strict
from .models import (
    ApprovedIngredient,
    ComplianceStatus,
    GroundingLink,
    IngredientResult,
    RegionDetail,
)

logger = logging.getLogger(__name__)

NO_DATA_SUMMARY = (
    "No regulatory data could be retrieved for this ingredient. "
    "Check the spelling or try again later."
)
MISSING_SUMMARY = "No summary was provided by the audit service."
TRANSPORT_SUMMARIES = {
    "auth": "The audit service rejected the configured API key. Check GOOGLE_API_KEY and try again.",
    "rate_limit": "The audit service is rate-limited or out of quota right now. Please retry in a few minutes.",
    "network": "The audit service could not be reached (network error). Please retry shortly.",
}

# Canonical defaults, keyed by wire name
DETAIL_DEFAULTS: Dict[str, Any] = {
    "region": "Unknown",
    "status": ComplianceStatus.UNKNOWN,
    "regulatoryId": "N/A",
    "approvalDate": "N/A",
    "applicant": "N/A",
    "dosageForm": "N/A",
    "materialSource": "N/A",
    "limit": "N/A",
    "notes": "",
    "sources": [],
}

# wire name -> accepted spellings
_DETAIL_KEYS = {
    "region": ("region",),
    "status": ("status",),
    "regulatoryId": ("regulatoryId", "regulatory_id"),
    "approvalDate": ("approvalDate", "approval_date"),
    "applicant": ("applicant",),
    "dosageForm": ("dosageForm", "dosage_form"),
    "materialSource": ("materialSource", "material_source"),
    "limit": ("limit",),
    "notes": ("notes",),
    "sources": ("sources",),
}

_PASS_TERMS = r"(?:passed|approved|authori[sz]ed|permitted|allowed|gras|compliant|accepted)"
_BLOCK_TERMS = r"(?:prohibited|banned|rejected|refused|restrict\w*|conditional\w*|limited)"
_NEGATION = r"\b(?:not|non|un|dis|never|no\s+longer)[\s-]*(?:(?:yet|been|be)\s+)*"

# checked in order; a negated verdict is never read as its positive form
STATUS_PATTERNS = (
    (re.compile(_NEGATION + _PASS_TERMS + r"\b"), ComplianceStatus.PROHIBITED),
    (re.compile(_NEGATION + _BLOCK_TERMS), ComplianceStatus.UNKNOWN),
    (re.compile(r"\b(?:prohibited|banned|rejected|refused)\b"), ComplianceStatus.PROHIBITED),
    (re.compile(r"\b(?:restrict\w*|conditional\w*|limited)\b"), ComplianceStatus.RESTRICTED),
    (re.compile(r"\b" + _PASS_TERMS + r"\b|\bno questions\b"), ComplianceStatus.PASSED),
)

_BLANK_CAS = {"", "n/a", "na", "none", "null", "unknown", "-"}
_PAYLOAD_KEYS = ("name", "summary", "details", "cas")
_WRAPPER_KEYS = ("result", "data", "audit", "ingredient")
_CITATION_KEYS = ("groundingSources", "grounding_sources", "citations")
APPROVAL_REGIONS = ("CN", "US", "EU")


# =============================================================================
# Field coercion
# =============================================================================
def _pick(d: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return None


def _as_text(value: Any, default: str) -> str:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip() or default
    return default


def coerce_status(value: Any, default: ComplianceStatus = ComplianceStatus.UNKNOWN) -> ComplianceStatus:
    """Maps free-text status onto the enum; anything unrecognised is `default`."""
    if isinstance(value, ComplianceStatus):
        return value
    if not isinstance(value, str):
        return default
    s = value.strip().lower()
    for status in ComplianceStatus:
        if s == status.value.lower():
            return status
    for pattern, status in STATUS_PATTERNS:
        if pattern.search(s):
            return status
    return default


def _as_str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    seen, out = set(), []
    for v in value:
        if not isinstance(v, str):
            continue
        v = v.strip()
        if v and v not in seen:
            out.append(v)
            seen.add(v)
    return out


def _as_mapping(raw: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(raw, BaseModel):
        return raw.model_dump(by_alias=True)
    if isinstance(raw, Mapping):
        return raw
    return None


# =============================================================================
# Details
# =============================================================================
def normalize_detail(raw: Any) -> RegionDetail:
    """
    Fills every one of the ten fields, from `raw` when present and from
    DETAIL_DEFAULTS otherwise. Applying it to its own output changes nothing.
    """
    d = _as_mapping(raw) or {}
    values = {key: _pick(d, *spellings) for key, spellings in _DETAIL_KEYS.items()}

    region = _as_text(values["region"], DETAIL_DEFAULTS["region"])
    if region != DETAIL_DEFAULTS["region"]:
        region = region.upper()

    return RegionDetail(
        region=region,
        status=coerce_status(values["status"], DETAIL_DEFAULTS["status"]),
        regulatoryId=_as_text(values["regulatoryId"], DETAIL_DEFAULTS["regulatoryId"]),
        approvalDate=_as_text(values["approvalDate"], DETAIL_DEFAULTS["approvalDate"]),
        applicant=_as_text(values["applicant"], DETAIL_DEFAULTS["applicant"]),
        dosageForm=_as_text(values["dosageForm"], DETAIL_DEFAULTS["dosageForm"]),
        materialSource=_as_text(values["materialSource"], DETAIL_DEFAULTS["materialSource"]),
        limit=_as_text(values["limit"], DETAIL_DEFAULTS["limit"]),
        notes=_as_text(values["notes"], DETAIL_DEFAULTS["notes"]),
        sources=_as_str_list(values["sources"]) or list(DETAIL_DEFAULTS["sources"]),
    )


def normalize_details(value: Any) -> List[RegionDetail]:
    """Order-preserving; non-sequence input gives [], non-record entries are skipped."""
    if not isinstance(value, (list, tuple)):
        return []
    out = []
    for i, item in enumerate(value):
        if _as_mapping(item) is None:
            logger.debug("Skipping non-record detail #%d: %r", i, item)
            continue
        out.append(normalize_detail(item))
    return out


# =============================================================================
# Grounding citations
# =============================================================================
def link_from_chunk(chunk: Any) -> Optional[GroundingLink]:
    """
    Accepts a Gemini grounding chunk ({"web": {"title", "uri"}}), a flat
    {"title", "uri"|"url"} citation, a GroundingLink, or a bare URL string.
    """
    if isinstance(chunk, str):
        uri = chunk.strip()
        return GroundingLink(title=uri, uri=uri) if uri else None
    d = _as_mapping(chunk)
    if d is None:
        return None
    web = d.get("web")
    if isinstance(web, Mapping):
        d = web
    uri = _as_text(_pick(d, "uri", "url"), "")
    if not uri:
        return None
    return GroundingLink(title=_as_text(d.get("title"), uri), uri=uri)


def merge_links(*groups: Iterable[Any]) -> List[GroundingLink]:
    """Deduplicates by URI: first-seen position, last-seen title."""
    titles: Dict[str, str] = {}
    for group in groups:
        for chunk in group or []:
            link = link_from_chunk(chunk)
            if link is not None:
                titles[link.uri] = link.title
    return [GroundingLink(title=t, uri=u) for u, t in titles.items()]


def _embedded_citations(payload: Mapping[str, Any]) -> List[Any]:
    found = _pick(payload, *_CITATION_KEYS)
    return list(found) if isinstance(found, (list, tuple)) else []


# =============================================================================
# Result
# =============================================================================
def floor_result(fallback_name: Any, summary: str = NO_DATA_SUMMARY) -> IngredientResult:
    """Minimal fully-typed result used whenever upstream data is missing or unusable."""
    return IngredientResult(
        name=_as_text(fallback_name, "Unknown ingredient"),
        cas=None,
        summary=summary,
        details=[],
        groundingSources=[],
    )


def transport_summary(error: BaseException) -> str:
    reason = getattr(error, "reason", "network")
    return TRANSPORT_SUMMARIES.get(reason, TRANSPORT_SUMMARIES["network"])


def read_payload(response: Any) -> Any:
    """
    Structured payload when the backend gave one, else the text parsed as JSON
    (code fences stripped). Raises MalformedResponseError.
    """
    if isinstance(response, GenerationResult):
        if response.payload is not None:
            payload = response.payload
            return parse_json_strict(payload) if isinstance(payload, str) else payload
        return parse_json_strict(response.text)
    if isinstance(response, str):
        return parse_json_strict(response)
    return response


def _unwrap(payload: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(payload, (list, tuple)):
        return {"details": list(payload)}
    d = _as_mapping(payload)
    if d is None:
        return None
    if any(k in d for k in _PAYLOAD_KEYS):
        return d
    for key in _WRAPPER_KEYS:
        inner = _as_mapping(d.get(key))
        if inner is not None and any(k in inner for k in _PAYLOAD_KEYS):
            return inner
    return None


def _clean_cas(value: Any) -> Optional[str]:
    cas = _as_text(value, "")
    return None if cas.lower() in _BLANK_CAS else cas


def normalize_result(response: Any, fallback_name: str) -> IngredientResult:
    """
    Total: any input (GenerationResult, raw payload, text, None, or an exception
    already caught at the call boundary) yields a complete IngredientResult.
    """
    if isinstance(response, TransportError):
        return floor_result(fallback_name, transport_summary(response))
    if isinstance(response, BaseException):
        logger.warning("Audit failed before normalization: %s", response)
        return floor_result(fallback_name)
    if response is None:
        return floor_result(fallback_name)

    try:
        payload = read_payload(response)
    except MalformedResponseError:
        text = response.text if isinstance(response, GenerationResult) else str(response)
        logger.warning("Unparseable audit response: %.200s", text)
        return floor_result(fallback_name)

    data = _unwrap(payload)
    if data is None:
        logger.warning("Audit response had no usable fields (got %s)", type(payload).__name__)
        return floor_result(fallback_name)

    details = normalize_details(data.get("details"))
    chunks = response.grounding_chunks if isinstance(response, GenerationResult) else []
    links = merge_links(_embedded_citations(data), chunks)

    result = IngredientResult(
        name=_as_text(data.get("name"), _as_text(fallback_name, "Unknown ingredient")),
        cas=_clean_cas(data.get("cas")),
        summary=_as_text(data.get("summary"), MISSING_SUMMARY),
        details=details,
        groundingSources=links,
    )
    logger.info("Normalized audit for %r: %d records, %d citations", result.name, len(details), len(links))
    return result


# =============================================================================
# Approvals feed
# =============================================================================
def normalize_approval(raw: Any, index: int = 0) -> Optional[ApprovedIngredient]:
    """None for records without a name or outside CN/US/EU."""
    d = _as_mapping(raw)
    if d is None:
        return None
    name = _as_text(d.get("name"), "")
    region = _as_text(d.get("region"), "").upper()
    if not name or region not in APPROVAL_REGIONS:
        return None
    date = _as_text(d.get("date"), "N/A")
    url = _as_text(d.get("url"), "")
    return ApprovedIngredient(
        id=_as_text(d.get("id"), f"ap_{date}_{index}"),
        name=name,
        cas=_clean_cas(d.get("cas")),
        date=date,
        region=region,
        agency=_as_text(d.get("agency"), "N/A"),
        category=_as_text(d.get("category"), "N/A"),
        regulatoryId=_as_text(_pick(d, "regulatoryId", "regulatory_id"), "N/A"),
        url=url if url.lower().startswith("http") else None,
    )


def normalize_approvals(response: Any, limit: int = 6) -> List[ApprovedIngredient]:
    """Total: failures of any kind give []."""
    if response is None or isinstance(response, BaseException):
        return []
    try:
        payload = read_payload(response)
    except MalformedResponseError:
        logger.warning("Unparseable approvals response")
        return []

    d = _as_mapping(payload)
    if d is not None:
        payload = _pick(d, "approvals", "items", "data") or []
    if not isinstance(payload, (list, tuple)):
        return []

    out: List[ApprovedIngredient] = []
    for i, raw in enumerate(payload):
        item = normalize_approval(raw, i)
        if item is not None:
            out.append(item)
        if len(out) >= limit:
            break
    return out
