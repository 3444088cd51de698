import pytest

from compliance.backend import BackendSettings, GenerationResult


class FakeBackend:
    """Stands in for GeminiBackend: records requests, returns or raises a preset outcome."""

    def __init__(self, outcome=None, settings=None):
        self.settings = settings or BackendSettings(api_key="test-key")
        self.outcome = outcome if outcome is not None else GenerationResult()
        self.requests = []

    def _answer(self, request):
        self.requests.append(request)
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome

    def generate(self, request):
        return self._answer(request)

    async def agenerate(self, request):
        return self._answer(request)


@pytest.fixture
def fake_backend():
    def _make(outcome=None, **settings):
        cfg = BackendSettings(api_key="test-key", **settings)
        return FakeBackend(outcome, cfg)
    return _make


@pytest.fixture
def full_detail():
    return {
        "region": "CN",
        "status": "Passed",
        "regulatoryId": "ABC-1",
        "approvalDate": "2025-07-15",
        "applicant": "Acme Bio",
        "dosageForm": "Powder",
        "materialSource": "Fermentation",
        "limit": "≤ 30 mg/day",
        "notes": "Checked against NHC announcement PDF",
        "sources": ["http://www.nhc.gov.cn/notice.pdf"],
    }
