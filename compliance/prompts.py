# compliance/prompts.py
AUDIT_PROMPT_TMPL = """
You are a regulatory-affairs auditor. Task: run a global compliance audit for the ingredient "{{ ingredient }}".

{% if grounding %}Mandatory search scope (anchor lock):
1. Search ONLY official pages and PDFs on these domains: {{ sites }}.
2. Use "site:<domain>" queries to find GRAS Notices (GRN), new dietary ingredient (NDI) notifications,
   new food raw material / new cosmetic ingredient filings, Novel Food authorisations and EFSA opinions.
3. Prefer numbers taken from published PDF documents or official notice tables.
{% else %}Answer from your knowledge of the official registers published on: {{ sites }}.
{% endif %}
Audit rules (no invented identifiers):
- NEVER invent a GRN number, filing number or regulation number. Every regulatoryId must be traceable
  to a real published record. If you cannot trace one, use "N/A".
- If the same ingredient was filed several times (e.g. different applicant companies under GRN 1051 and
  GRN 1100), list EVERY filing as a separate record. Never merge filings.
- For each record check applicant, regulatory ID, approval date and process description against the
  official publication.

Fields required for every record in "details":
- region: "CN", "US" or "EU"
- status: one of "Passed", "Restricted", "Prohibited", "Unknown"
- regulatoryId: the official identifier exactly as published
- approvalDate: date of approval or publication (YYYY-MM-DD when known)
- applicant: the filing company or body
- dosageForm: permitted use / product form
- materialSource: origin of the material or production process
- limit: usage limit or maximum level
- notes: audit notes, including how the source document was checked
- sources: list of URLs of the official pages or PDFs used

Output STRICT JSON ONLY (no markdown, no prose), with this schema:
{% raw %}
{
  "name": "<ingredient name>",
  "cas": "<CAS number or empty string>",
  "summary": "<audit summary based on the official sources>",
  "details": [
    {
      "region": "CN | US | EU",
      "status": "Passed | Restricted | Prohibited | Unknown",
      "regulatoryId": "<official identifier>",
      "approvalDate": "<date>",
      "applicant": "<company>",
      "dosageForm": "<form>",
      "materialSource": "<source>",
      "limit": "<limit>",
      "notes": "<notes>",
      "sources": ["<url>"]
    }
  ]
}
{% endraw %}
Include every independent record found.
"""

APPROVALS_PROMPT_TMPL = """
List {{ count }} real, recent ({{ period }}) ingredient approval events from food, dietary-supplement
and cosmetic regulators in China (NHC, NMPA, SAMR), the United States (FDA) and the European Union
(EFSA / European Commission). Include the concrete notice number or GRN for each.

Return ONLY a JSON array (no markdown, no prose), each item shaped like:
{% raw %}
{
  "id": "<short unique id>",
  "name": "<ingredient name>",
  "cas": "<CAS number or empty string>",
  "date": "YYYY-MM-DD",
  "region": "CN | US | EU",
  "agency": "<agency>",
  "category": "<e.g. GRAS, Novel Food, new food raw material>",
  "regulatoryId": "<notice number or GRN>",
  "url": "<official URL or empty string>"
}
{% endraw %}
"""
