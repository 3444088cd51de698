# compliance/utils.py
from typing import Dict, List, Tuple
from collections import Counter
import io
import csv
import json

from .models import ComplianceStatus, IngredientResult, RegionDetail

CSV_FIELDS = [
    "ingredient",
    "cas",
    "region",
    "status",
    "regulatoryId",
    "approvalDate",
    "applicant",
    "dosageForm",
    "materialSource",
    "limit",
    "notes",
    "sources",
]


def group_by_region(details: List[RegionDetail]) -> Dict[str, List[RegionDetail]]:
    """
    Groups records by region. Regions appear in first-seen order and records
    keep their response order inside each group.
    """
    groups: Dict[str, List[RegionDetail]] = {}
    for d in details:
        groups.setdefault(d.region, []).append(d)
    return groups


def status_counts(details: List[RegionDetail]) -> Dict[ComplianceStatus, int]:
    counts = Counter(d.status for d in details)
    return {s: counts.get(s, 0) for s in ComplianceStatus}


def make_downloads(result: IngredientResult) -> Tuple[bytes, bytes]:
    """
    Returns (json_bytes, csv_bytes) for the audit report.
    CSV has one row per regulatory record; sources are joined with " | ".
    """
    # JSON
    json_bytes = json.dumps(
        result.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2
    ).encode("utf-8")

    # CSV
    csv_io = io.StringIO()
    writer = csv.DictWriter(csv_io, fieldnames=CSV_FIELDS)
    writer.writeheader()
    for d in result.details:
        row = d.model_dump(mode="json", by_alias=True)
        row["sources"] = " | ".join(d.sources)
        row["ingredient"] = result.name
        row["cas"] = result.cas or ""
        writer.writerow({k: row.get(k, "") for k in CSV_FIELDS})

    return json_bytes, csv_io.getvalue().encode("utf-8")
