# compliance/models.py
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ComplianceStatus(str, Enum):
    PASSED = "Passed"
    RESTRICTED = "Restricted"
    PROHIBITED = "Prohibited"
    UNKNOWN = "Unknown"


class _Frozen(BaseModel):
    # camelCase on the wire (what the model is asked to emit), snake_case in Python
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class GroundingLink(_Frozen):
    """One citation surfaced by search grounding."""
    title: str
    uri: str


class RegionDetail(_Frozen):
    """
    One independent regulatory record. Every field is always populated;
    see compliance.normalize.DETAIL_DEFAULTS for the sentinel values.
    """
    region: str
    status: ComplianceStatus
    regulatory_id: str = Field(alias="regulatoryId")
    approval_date: str = Field(alias="approvalDate")
    applicant: str
    dosage_form: str = Field(alias="dosageForm")
    material_source: str = Field(alias="materialSource")
    limit: str
    notes: str
    sources: List[str] = Field(default_factory=list)


class IngredientResult(_Frozen):
    name: str
    cas: Optional[str] = None
    summary: str
    details: List[RegionDetail] = Field(default_factory=list)
    grounding_sources: List[GroundingLink] = Field(default_factory=list, alias="groundingSources")


class ApprovedIngredient(_Frozen):
    """A lighter record for the dashboard feed."""
    id: str
    name: str
    cas: Optional[str] = None
    date: str
    region: Literal["CN", "US", "EU"]
    agency: str
    category: str
    regulatory_id: str = Field(alias="regulatoryId")
    url: Optional[str] = None


class Alert(_Frozen):
    id: str
    date: str
    region: str
    type: str
    title: str
    severity: Literal["low", "medium", "high"]
