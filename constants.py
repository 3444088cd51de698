# constants.py
from compliance.models import Alert, ApprovedIngredient, ComplianceStatus

COLORS = {
    "primary": "#2D5A27",
    "secondary": "#F8FAFC",
    "accent": "#C5A059",
    "danger": "#EF4444",
    "warning": "#F59E0B",
    "success": "#10B981",
}

STATUS_BADGES = {
    ComplianceStatus.PASSED: "✅ Passed",
    ComplianceStatus.RESTRICTED: "⚠️ Restricted",
    ComplianceStatus.PROHIBITED: "🛑 Prohibited",
    ComplianceStatus.UNKNOWN: "❔ Unknown",
}

REGULATORY_URLS = {
    "CN_NMPA_COSMETIC": "https://hzpsys.nifdc.org.cn/hzpGS/ysyhzpylml#",
    "CN_NHC_FOOD": "http://www.nhc.gov.cn/sps/s7891/202310/7c4f1c9c0f914b188c6e2646d5f782c5.shtml",
    "CN_SAMR_HEALTH": "https://www.samr.gov.cn/fgs/index.html",
    "US_FDA_GRAS": "https://www.cfsanappsexternal.fda.gov/scripts/fdcc/?set=GRASNotices",
    "US_FDA_NDI": "https://www.fda.gov/food/new-dietary-ingredient-ndi-notification-process",
    "EU_NOVEL_FOOD": "https://ec.europa.eu/food/food-feed-portal/screen/novel-food-catalogue/search",
    "EU_EFSA_OPINIONS": "https://www.efsa.europa.eu/en/publications",
}

# Evidence base: (title, what to check there, url) per region
PORTALS = {
    "CN": [
        ("NMPA new cosmetic ingredient filings", "Check filing number and filing entity",
         REGULATORY_URLS["CN_NMPA_COSMETIC"]),
        ("NHC 'three new foods' announcements", "Trace new food raw material / additive notices",
         REGULATORY_URLS["CN_NHC_FOOD"]),
        ("SAMR health food catalogue", "Filed raw materials and dosage limits",
         REGULATORY_URLS["CN_SAMR_HEALTH"]),
    ],
    "US": [
        ("FDA GRAS Notice (GRN) inventory", "Notifier and intended use per GRN",
         REGULATORY_URLS["US_FDA_GRAS"]),
        ("NDI notifications", "New dietary ingredient acknowledgement letters",
         REGULATORY_URLS["US_FDA_NDI"]),
    ],
    "EU": [
        ("Novel Food catalogue", "Novel Food status and implementing regulations",
         REGULATORY_URLS["EU_NOVEL_FOOD"]),
        ("EFSA scientific opinions", "Safety opinions behind each authorisation",
         REGULATORY_URLS["EU_EFSA_OPINIONS"]),
    ],
}

# Seed feed shown until a refresh succeeds
RECENT_APPROVALS = [
    ApprovedIngredient(
        id="ap_2026_01_10", name="Recombinant humanized collagen", cas=None,
        date="2026-01-10", region="CN", agency="NMPA", category="New cosmetic ingredient",
        regulatoryId="国妆原备字20260002", url=REGULATORY_URLS["CN_NMPA_COSMETIC"],
    ),
    ApprovedIngredient(
        id="ap_2025_12_15", name="2'-Fucosyllactose (2'-FL)", cas="41263-94-9",
        date="2025-12-15", region="CN", agency="NHC", category="Nutrition fortifier",
        regulatoryId="Announcement 2025-12 batch", url=REGULATORY_URLS["CN_NHC_FOOD"],
    ),
    ApprovedIngredient(
        id="ap_2025_07_15", name="D-Allulose (Psicose)", cas="551-68-8",
        date="2025-07-15", region="CN", agency="NHC", category="New food raw material",
        regulatoryId="2025 Announcement No. 4", url=REGULATORY_URLS["CN_NHC_FOOD"],
    ),
    ApprovedIngredient(
        id="ap_2025_11_20", name="L-Ergothioneine", cas="497-30-3",
        date="2025-11-20", region="US", agency="FDA", category="GRAS",
        regulatoryId="Blue California GRN 1051", url=REGULATORY_URLS["US_FDA_GRAS"],
    ),
    ApprovedIngredient(
        id="ap_2025_09_10", name="Monomethylsilanetriol", cas="2445-53-6",
        date="2025-09-10", region="EU", agency="EFSA", category="Novel Food",
        regulatoryId="(EU) 2017/2470", url=REGULATORY_URLS["EU_NOVEL_FOOD"],
    ),
]

MOCK_ALERTS = [
    Alert(
        id="al_01", date="2026-01-11", region="China", type="Compliance sweep",
        title="NHC reiterates: ergothioneine is not approved for food; oral products under inspection",
        severity="high",
    ),
    Alert(
        id="al_02", date="2026-01-08", region="United States", type="FDA",
        title="FDA tightens GRAS review of ingredients made via synthetic-biology routes",
        severity="medium",
    ),
]
