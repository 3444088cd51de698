import json

import pytest

from compliance.backend import GenerationResult
from compliance.errors import TransportError
from compliance.models import ComplianceStatus, IngredientResult, RegionDetail
from compliance.normalize import (
    DETAIL_DEFAULTS,
    MISSING_SUMMARY,
    NO_DATA_SUMMARY,
    TRANSPORT_SUMMARIES,
    coerce_status,
    floor_result,
    link_from_chunk,
    merge_links,
    normalize_approvals,
    normalize_detail,
    normalize_result,
)

REQUIRED = ("region", "status", "regulatory_id", "approval_date", "applicant",
            "dosage_form", "material_source", "limit", "notes", "sources")


def _assert_complete(result: IngredientResult):
    assert isinstance(result.details, list)
    for d in result.details:
        for f in REQUIRED:
            assert getattr(d, f) is not None
        assert isinstance(d.sources, list)
    assert result.summary
    assert isinstance(result.grounding_sources, list)


@pytest.mark.parametrize("response", [
    None,
    "",
    "garbage {",
    GenerationResult(),
    GenerationResult(text="```json\n{not valid}\n```"),
    GenerationResult(payload={"details": "not a list"}),
    GenerationResult(payload={"details": [None, 3, "x", {}]}),
    GenerationResult(payload=[{"region": "us"}]),
    GenerationResult(payload=42),
    {"unrelated": True},
    ValueError("boom"),
])
def test_output_always_complete(response):
    result = normalize_result(response, "X")
    _assert_complete(result)
    assert result.name


def test_floor_for_unusable_input():
    for response in (None, GenerationResult(text="no json here"), {"foo": 1}):
        result = normalize_result(response, "X")
        assert result == floor_result("X")
        assert result.summary == NO_DATA_SUMMARY
        assert result.details == [] and result.grounding_sources == []


def test_scenario_second_record_defaulted(full_detail):
    payload = {"name": "X", "summary": "ok", "details": [full_detail, {"region": "CN"}]}
    result = normalize_result(GenerationResult(payload=payload), "X")
    assert [d.region for d in result.details] == ["CN", "CN"]
    first, second = result.details
    assert first.regulatory_id == "ABC-1"
    assert first.status is ComplianceStatus.PASSED
    assert second.status is ComplianceStatus.UNKNOWN
    assert second.sources == []
    assert second.regulatory_id == "N/A"
    assert second.notes == ""


def test_raw_text_fenced_payload(full_detail):
    text = "```json\n" + json.dumps({"name": "Ergo", "cas": "497-30-3", "summary": "s",
                                     "details": [full_detail]}) + "\n```"
    result = normalize_result(GenerationResult(text=text), "fallback")
    assert result.name == "Ergo"
    assert result.cas == "497-30-3"
    assert len(result.details) == 1


def test_missing_name_and_summary_use_fallbacks():
    result = normalize_result(GenerationResult(payload={"details": []}), "  Stevia ")
    assert result.name == "Stevia"
    assert result.summary == MISSING_SUMMARY
    assert result.cas is None


@pytest.mark.parametrize("cas", ["", "N/A", "none", None, 7.5])
def test_blank_cas_becomes_none(cas):
    result = normalize_result({"name": "X", "cas": cas, "summary": "s"}, "X")
    assert result.cas in (None, "7.5")


def test_wrapped_payload_is_unwrapped():
    result = normalize_result({"result": {"name": "Y", "summary": "s", "details": [{}]}}, "X")
    assert result.name == "Y"
    assert len(result.details) == 1


def test_defaulting_is_a_fixed_point(full_detail):
    for raw in (full_detail, {}, {"region": "eu", "status": "approved", "sources": "http://a"}):
        once = normalize_detail(raw)
        assert normalize_detail(once) == once
        assert normalize_detail(once.model_dump()) == once
        assert normalize_detail(once.model_dump(by_alias=True)) == once


def test_empty_detail_gets_canonical_defaults():
    d = normalize_detail({})
    assert d.region == DETAIL_DEFAULTS["region"]
    assert d.status is DETAIL_DEFAULTS["status"]
    assert d.sources == DETAIL_DEFAULTS["sources"]
    for f in ("regulatory_id", "approval_date", "applicant", "dosage_form", "material_source", "limit"):
        assert getattr(d, f) == "N/A"


@pytest.mark.parametrize("raw,field,expected", [
    ({"limit": 30}, "limit", "30"),
    ({"approvalDate": 20250715}, "approval_date", "20250715"),
    ({"notes": 1.5}, "notes", "1.5"),
    ({"applicant": True}, "applicant", "N/A"),
    ({"dosageForm": False}, "dosage_form", "N/A"),
    ({"sources": "http://a"}, "sources", ["http://a"]),
    ({"sources": "   "}, "sources", []),
])
def test_scalar_fields_coerced_to_text(raw, field, expected):
    once = normalize_detail(raw)
    assert getattr(once, field) == expected
    assert normalize_detail(once.model_dump(by_alias=True)) == once


def test_snake_case_keys_accepted():
    d = normalize_detail({"regulatory_id": "GRN 1051", "dosage_form": "Capsule"})
    assert d.regulatory_id == "GRN 1051"
    assert d.dosage_form == "Capsule"


def test_sources_cleaned_and_deduplicated():
    d = normalize_detail({"sources": [" http://a ", "", None, "http://a", "http://b"]})
    assert d.sources == ["http://a", "http://b"]


@pytest.mark.parametrize("raw,expected", [
    ("Passed", ComplianceStatus.PASSED),
    ("prohibited", ComplianceStatus.PROHIBITED),
    ("Approved (GRAS, no questions letter)", ComplianceStatus.PASSED),
    ("Not approved for food", ComplianceStatus.PROHIBITED),
    ("Not authorised", ComplianceStatus.PROHIBITED),
    ("Not authorized in the EU", ComplianceStatus.PROHIBITED),
    ("Not yet approved", ComplianceStatus.PROHIBITED),
    ("Unapproved", ComplianceStatus.PROHIBITED),
    ("Disallowed", ComplianceStatus.PROHIBITED),
    ("Non-compliant", ComplianceStatus.PROHIBITED),
    ("Not GRAS", ComplianceStatus.PROHIBITED),
    ("No longer permitted", ComplianceStatus.PROHIBITED),
    ("Conditionally approved", ComplianceStatus.RESTRICTED),
    ("Not restricted", ComplianceStatus.UNKNOWN),
    ("Authorised novel food", ComplianceStatus.PASSED),
    ("Restricted to supplements", ComplianceStatus.RESTRICTED),
    ("Checking", ComplianceStatus.UNKNOWN),
    (None, ComplianceStatus.UNKNOWN),
    (3, ComplianceStatus.UNKNOWN),
])
def test_coerce_status(raw, expected):
    assert coerce_status(raw) is expected


def test_duplicate_citation_uri_merged():
    links = merge_links([{"web": {"title": "A", "uri": "http://u"}},
                         {"web": {"title": "B", "uri": "http://u"}}])
    assert len(links) == 1
    assert links[0].uri == "http://u"
    assert links[0].title in ("A", "B")


def test_grounding_merged_with_embedded_citations():
    payload = {
        "name": "X", "summary": "s", "details": [],
        "groundingSources": [{"title": "Embedded", "url": "http://a"}, {"title": "Same", "uri": "http://b"}],
    }
    chunks = [{"web": {"title": "Search B", "uri": "http://b"}}, {"web": {"uri": "http://c"}}, {"retrieved": {}}]
    result = normalize_result(GenerationResult(payload=payload, grounding_chunks=chunks), "X")
    uris = [l.uri for l in result.grounding_sources]
    assert uris == ["http://a", "http://b", "http://c"]
    assert len(set(uris)) == len(uris)
    # untitled chunk falls back to its URI
    assert result.grounding_sources[2].title == "http://c"


def test_link_from_chunk_rejects_missing_uri():
    assert link_from_chunk({"web": {"title": "t"}}) is None
    assert link_from_chunk(5) is None
    assert link_from_chunk("http://x").uri == "http://x"


@pytest.mark.parametrize("reason", ["auth", "rate_limit", "network"])
def test_transport_error_floor(reason):
    result = normalize_result(TransportError("down", reason=reason), "X")
    assert result.name == "X"
    assert result.details == []
    assert result.grounding_sources == []
    assert result.summary == TRANSPORT_SUMMARIES[reason]


def test_transport_summaries_are_distinct():
    assert len(set(TRANSPORT_SUMMARIES.values()) | {NO_DATA_SUMMARY}) == 4


def test_approvals_sanitized():
    payload = [
        {"id": "a1", "name": "Allulose", "date": "2025-07-15", "region": "cn", "agency": "NHC",
         "category": "New food raw material", "regulatoryId": "No. 4", "url": "http://www.nhc.gov.cn"},
        {"name": "No region"},
        {"name": "Wrong region", "region": "JP"},
        "junk",
        {"name": "Ergothioneine", "region": "US", "url": "not a url", "cas": "N/A"},
    ]
    feed = normalize_approvals(GenerationResult(payload=payload))
    assert [a.name for a in feed] == ["Allulose", "Ergothioneine"]
    assert feed[0].region == "CN"
    ergo = feed[1]
    assert ergo.url is None and ergo.cas is None
    assert ergo.agency == "N/A" and ergo.regulatory_id == "N/A"
    assert ergo.id.startswith("ap_")


def test_approvals_wrapped_and_limited():
    items = [{"name": f"n{i}", "region": "EU"} for i in range(10)]
    feed = normalize_approvals(GenerationResult(text=json.dumps({"approvals": items})), limit=6)
    assert len(feed) == 6


@pytest.mark.parametrize("response", [None, GenerationResult(text="oops"), TransportError("x"), {"x": 1}])
def test_approvals_failures_are_empty(response):
    assert normalize_approvals(response) == []


def test_region_detail_model_is_frozen(full_detail):
    d = normalize_detail(full_detail)
    with pytest.raises(Exception):
        d.region = "US"
    assert isinstance(d, RegionDetail)


def test_deeply_nested_text_falls_back():
    deep = GenerationResult(text="[" * 100000 + "]" * 100000)
    assert normalize_result(deep, "X") == floor_result("X")
    assert normalize_approvals(deep) == []
