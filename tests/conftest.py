# tests/conftest.py
import json

import httpx
import pytest

APPS_SCRIPT_URL = "https://script.google.com/macros/s/test-deployment/exec"
AIRTABLE_HOST = "api.airtable.com"

ENV_VARS = (
    "GOOGLE_APPS_SCRIPT_URL",
    "AIRTABLE_API_KEY",
    "AIRTABLE_BASE_ID",
    "AIRTABLE_TABLE_NAME",
    "AIRTABLE_API_URL",
    "UPSTREAM_TIMEOUT_SECONDS",
    "ENVIRONMENT",
    "NODE_ENV",
)


@pytest.fixture
def invoice_env(monkeypatch):
    """Configure the three required env vars; everything else unset."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GOOGLE_APPS_SCRIPT_URL", APPS_SCRIPT_URL)
    monkeypatch.setenv("AIRTABLE_API_KEY", "pat-test-key")
    monkeypatch.setenv("AIRTABLE_BASE_ID", "appBASE123")
    return monkeypatch


class FakeUpstreams:
    """
    httpx transport standing in for Apps Script and Airtable.

    Each service replies with the (status, body) configured on it; body may be
    a dict (sent as JSON) or a str (sent as text). Every request is recorded.
    """

    def __init__(self):
        self.apps_script = (200, {"success": True, "fileName": "inv.pdf",
                                  "fileUrl": "https://drive/x", "fileId": "fid1"})
        self.airtable = (200, {"id": "rct1", "fields": {}})
        self.requests = []

    def _reply(self, status, body):
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == AIRTABLE_HOST:
            return self._reply(*self.airtable)
        return self._reply(*self.apps_script)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, host: str):
        return [r for r in self.requests if r.url.host == host]

    @staticmethod
    def json_of(request: httpx.Request):
        return json.loads(request.content)


@pytest.fixture
def upstreams():
    return FakeUpstreams()
