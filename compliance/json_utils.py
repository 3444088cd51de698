# compliance/json_utils.py
import json
import re
from typing import Any

from .errors import MalformedResponseError

# deeply nested input makes the decoder recurse past the interpreter limit
_JSON_ERRORS = (ValueError, RecursionError)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.+?)\s*```", flags=re.DOTALL)


def strip_code_fences(raw: str) -> str:
    """Returns the body of the first ``` / ```json block, or the text unchanged."""
    m = _FENCE_RE.search(raw or "")
    return m.group(1).strip() if m else (raw or "").strip()


def _slice(raw: str, open_ch: str, close_ch: str) -> str:
    start, end = raw.find(open_ch), raw.rfind(close_ch)
    if start == -1 or end == -1 or start >= end:
        return ""
    return raw[start:end + 1]


def _repair(candidate: str) -> str:
    repaired = candidate.replace("\ufeff", "")
    repaired = re.sub(r"(?<!:)//.*?$", "", repaired, flags=re.MULTILINE)
    repaired = re.sub(r"/\*.*?\*/", "", repaired, flags=re.DOTALL)
    repaired = re.sub(r",\s*([}\]])", r"\1", repaired)
    if repaired.count("'") > repaired.count('"'):
        repaired = re.sub(r"(?<!\\)'", '"', repaired)
    return repaired.strip()


def parse_json_strict(raw: str) -> Any:
    """
    Attempts to coerce an LLM response into valid JSON (object or array).
    Tries: direct JSON → fenced ```json → outermost {…} / […] slice → light repairs.
    Raises MalformedResponseError when nothing works.
    """
    if not raw or not raw.strip():
        raise MalformedResponseError("Empty model output")

    # direct
    try:
        return json.loads(raw)
    except _JSON_ERRORS:
        pass

    # fenced
    block = strip_code_fences(raw)
    try:
        return json.loads(block)
    except _JSON_ERRORS:
        raw = block

    # slice by outermost braces, then brackets (the approvals feed is an array)
    pairs = [("{", "}"), ("[", "]")]
    if raw.find("[") != -1 and (raw.find("{") == -1 or raw.find("[") < raw.find("{")):
        pairs.reverse()
    for open_ch, close_ch in pairs:
        candidate = _slice(raw, open_ch, close_ch)
        if not candidate:
            continue
        try:
            return json.loads(candidate)
        except _JSON_ERRORS:
            try:
                return json.loads(_repair(candidate))
            except _JSON_ERRORS:
                pass
    raise MalformedResponseError("Could not coerce model output to JSON")
