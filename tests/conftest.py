# tests/conftest.py

import pytest

from flatfile_pipeline.flatfile_listener.records import FieldSpec, SheetSchema
from flatfile_pipeline.flatfile_listener.errors import PlatformAPIError


class DummyResponse:
    def __init__(self, json_data=None, status_code=200):
        self._json = json_data if json_data is not None else {}
        self.status_code = status_code
        self.text = str(self._json.get("message", "")) if isinstance(self._json, dict) else ""
        self.content = b"{}" if json_data is not None else b""

    def json(self):
        return self._json


class FakeClient:
    """In-memory stand-in for FlatfileClient that records every call."""

    def __init__(self, sheets=None, records=None, fail_on=None):
        self.sheets = sheets if sheets is not None else []
        self.records = records if records is not None else {}
        self.fail_on = set(fail_on or [])
        self.calls = []

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise PlatformAPIError(f"{name} exploded", status_code=500)

    def names(self):
        return [c[0] for c in self.calls]

    def ack_job(self, job_id, info, progress):
        self._call("ack_job", job_id, info, progress)

    def complete_job(self, job_id, message):
        self._call("complete_job", job_id, message)

    def fail_job(self, job_id, message):
        self._call("fail_job", job_id, message)

    def list_sheets(self, workbook_id):
        self._call("list_sheets", workbook_id)
        return self.sheets

    def get_records(self, sheet_id):
        self._call("get_records", sheet_id)
        return self.records.get(sheet_id, {"records": []})

    def update_records(self, sheet_id, records):
        self._call("update_records", sheet_id, records)


@pytest.fixture
def dummy_response():
    return DummyResponse


@pytest.fixture
def client_factory():
    return FakeClient


@pytest.fixture
def fake_client():
    sheets = [
        {"id": "us_sh_1", "name": "Contacts", "slug": "contacts"},
        {"id": "us_sh_2", "name": "Companies", "slug": "companies"},
    ]
    records = {
        "us_sh_1": {"records": [{"id": "us_rc_1", "values": {"email": {"value": "a@b.co"}}}]},
        "us_sh_2": {"records": [{"id": "us_rc_2", "values": {"name": {"value": "Acme"}}}]},
    }
    return FakeClient(sheets=sheets, records=records)


@pytest.fixture
def contacts_schema():
    return SheetSchema(
        name="Contacts",
        slug="contacts",
        fields=(
            FieldSpec("firstName", "string", "First Name"),
            FieldSpec("lastName", "string", "Last Name"),
            FieldSpec("email", "string", "Email"),
            FieldSpec("phone", "string", "Phone"),
        ),
        rules=(
            {"rule": "capitalize", "field": "firstName"},
            {"rule": "capitalize", "field": "lastName"},
            {"rule": "string", "field": "firstName"},
            {"rule": "string", "field": "lastName"},
            {"rule": "email", "field": "email"},
            {"rule": "phone", "field": "phone"},
        ),
    )


@pytest.fixture
def flatfile_env(monkeypatch):
    monkeypatch.setenv("FLATFILE_API_KEY", "sk_test_123456")
    monkeypatch.setenv("WEBHOOK_URL", "https://hooks.example.com/contacts")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("FLATFILE_API_BASE_URL", raising=False)
    monkeypatch.delenv("HTTP_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("K_SERVICE", raising=False)
