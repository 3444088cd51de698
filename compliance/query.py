# compliance/query.py
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional, Tuple

from langchain_core.prompts import PromptTemplate

from .errors import ValidationError
from .prompts import APPROVALS_PROMPT_TMPL, AUDIT_PROMPT_TMPL

logger = logging.getLogger(__name__)

# Authoritative portals the audit is anchored to
MANDATORY_SITES: Tuple[str, ...] = (
    "fda.gov",
    "nifdc.org.cn",
    "nhc.gov.cn",
    "samr.gov.cn",
    "efsa.europa.eu",
    "europa.eu",
)

DETAIL_FIELDS: Tuple[str, ...] = (
    "region", "status", "regulatoryId", "approvalDate", "applicant",
    "dosageForm", "materialSource", "limit", "notes", "sources",
)

_STR = {"type": "string"}

AUDIT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": _STR,
        "cas": _STR,
        "summary": {"type": "string", "description": "Audit summary based on official source documents"},
        "details": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "region": _STR,
                    "status": {"type": "string", "enum": ["Passed", "Restricted", "Prohibited", "Unknown"]},
                    "regulatoryId": {"type": "string", "description": "Identifier taken from an official page or PDF"},
                    "approvalDate": _STR,
                    "applicant": _STR,
                    "dosageForm": _STR,
                    "materialSource": _STR,
                    "limit": _STR,
                    "notes": {"type": "string", "description": "Includes how the source PDF was checked"},
                    "sources": {"type": "array", "items": _STR},
                },
                "required": list(DETAIL_FIELDS),
            },
        },
    },
    "required": ["name", "summary", "details"],
}

APPROVALS_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "id": _STR,
            "name": _STR,
            "cas": _STR,
            "date": _STR,
            "region": {"type": "string", "enum": ["CN", "US", "EU"]},
            "agency": _STR,
            "category": _STR,
            "regulatoryId": _STR,
            "url": _STR,
        },
        "required": ["id", "name", "date", "region", "agency", "category", "regulatoryId"],
    },
}


@dataclass(frozen=True)
class GenerationRequest:
    """
    What a backend is asked to do: one prompt, the output shape it should follow,
    and whether live search grounding is wanted. `model=None` means the backend default.
    """
    prompt: str
    schema: Dict[str, Any] = field(default_factory=dict)
    grounding: bool = False
    model: Optional[str] = None


_AUDIT_TEMPLATE = PromptTemplate(
    template=AUDIT_PROMPT_TMPL,
    input_variables=["ingredient", "sites", "grounding"],
    template_format="jinja2",
)

_APPROVALS_TEMPLATE = PromptTemplate(
    template=APPROVALS_PROMPT_TMPL,
    input_variables=["count", "period"],
    template_format="jinja2",
)


def validate_query(ingredient_name: Optional[str]) -> str:
    """Trims the query; raises ValidationError when nothing is left."""
    name = (ingredient_name or "").strip()
    if not name:
        raise ValidationError("Ingredient name must not be empty")
    return name


def build_audit_request(
    ingredient_name: str,
    grounding: bool = True,
    model: Optional[str] = None,
) -> GenerationRequest:
    name = validate_query(ingredient_name)
    prompt = _AUDIT_TEMPLATE.format(
        ingredient=name,
        sites=", ".join(MANDATORY_SITES),
        grounding=grounding,
    )
    logger.debug("Built audit request for %r (grounding=%s, %d chars)", name, grounding, len(prompt))
    return GenerationRequest(prompt=prompt, schema=AUDIT_SCHEMA, grounding=grounding, model=model)


def build_approvals_request(
    count: int = 6,
    model: Optional[str] = None,
    today: Optional[date] = None,
) -> GenerationRequest:
    """Fixed-size batch of recent approval events; never grounded."""
    year = (today or date.today()).year
    prompt = _APPROVALS_TEMPLATE.format(count=count, period=f"{year - 1}-{year}")
    return GenerationRequest(prompt=prompt, schema=APPROVALS_SCHEMA, grounding=False, model=model)
