# tests/test_client.py

import logging

import pytest
import requests

from flatfile_pipeline.flatfile_listener import client as fc
from flatfile_pipeline.flatfile_listener.errors import ConfigurationError, PlatformAPIError

BASE = "https://platform.example.com/api/v1"


@pytest.fixture
def api():
    return fc.FlatfileClient(api_key="sk_test", base_url=BASE + "/", timeout=7)


@pytest.fixture
def requests_log(monkeypatch, dummy_response):
    calls = []
    responses = []

    def fake_request(method, url, headers, params, json, timeout):
        calls.append({"method": method, "url": url, "headers": headers,
                      "params": params, "json": json, "timeout": timeout})
        return responses.pop(0) if responses else dummy_response({"data": {"success": True}}, 200)

    monkeypatch.setattr(fc.requests, "request", fake_request)
    return calls, responses


def test_requires_api_key():
    with pytest.raises(ConfigurationError):
        fc.FlatfileClient(api_key=None, base_url=BASE)


def test_ack_job(api, requests_log):
    calls, _ = requests_log

    api.ack_job("us_jb_1", info="Starting", progress=10)

    call = calls[0]
    assert call["method"] == "POST"
    assert call["url"] == f"{BASE}/jobs/us_jb_1/ack"
    assert call["json"] == {"info": "Starting", "progress": 10}
    assert call["headers"]["Authorization"] == "Bearer sk_test"
    assert call["timeout"] == 7


def test_complete_and_fail_carry_outcome_message(api, requests_log):
    calls, _ = requests_log

    api.complete_job("us_jb_1", message="done")
    api.fail_job("us_jb_2", message="nope")

    assert calls[0]["url"].endswith("/jobs/us_jb_1/complete")
    assert calls[0]["json"] == {"outcome": {"message": "done"}}
    assert calls[1]["url"].endswith("/jobs/us_jb_2/fail")
    assert calls[1]["json"] == {"outcome": {"message": "nope"}}


def test_list_sheets_returns_data(api, requests_log, dummy_response):
    calls, responses = requests_log
    responses.append(dummy_response({"data": [{"id": "us_sh_1"}, {"id": "us_sh_2"}]}, 200))

    sheets = api.list_sheets("us_wb_1")

    assert [s["id"] for s in sheets] == ["us_sh_1", "us_sh_2"]
    assert calls[0]["method"] == "GET"
    assert calls[0]["url"] == f"{BASE}/sheets"
    assert calls[0]["params"] == {"workbookId": "us_wb_1"}


def test_get_records_and_update(api, requests_log, dummy_response):
    calls, responses = requests_log
    responses.append(dummy_response({"data": {"records": [{"id": "us_rc_1"}]}}, 200))

    payload = api.get_records("us_sh_1")
    api.update_records("us_sh_1", [{"id": "us_rc_1", "values": {}}])

    assert payload["records"][0]["id"] == "us_rc_1"
    assert calls[0]["url"] == f"{BASE}/sheets/us_sh_1/records"
    assert calls[1]["method"] == "PUT"
    assert calls[1]["json"] == [{"id": "us_rc_1", "values": {}}]


def test_http_error_raises_platform_error(api, requests_log, dummy_response, caplog):
    _, responses = requests_log
    responses.append(dummy_response({"message": "Server Error"}, 500))
    caplog.set_level(logging.ERROR)

    with pytest.raises(PlatformAPIError) as exc:
        api.list_sheets("us_wb_1")

    assert exc.value.status_code == 500
    assert "Flatfile GET /sheets error" in caplog.text


def test_network_error_raises_platform_error(api, monkeypatch):
    def fake_request(*args, **kwargs):
        raise requests.Timeout("timed out")

    monkeypatch.setattr(fc.requests, "request", fake_request)

    with pytest.raises(PlatformAPIError):
        api.ack_job("us_jb_1", info="x", progress=10)


def test_get_client_from_config():
    client = fc.get_client({
        "FLATFILE_API_KEY": "sk_abc",
        "FLATFILE_API_BASE_URL": BASE,
        "HTTP_TIMEOUT_SECONDS": 12.0,
    })
    assert client.base_url == BASE
    assert client.timeout == 12.0
