import json
import logging

import pytest
import requests
import responses

from app.console.client import ConsoleClient
from app.console.config import ConfigError, ConsoleConfig
from app.console.errors import ConsoleApiError
from app.console.notices import format_error, format_notice

BASE = "https://hub.example.com"


def _client():
    return ConsoleClient(ConsoleConfig(api_base_url=BASE, api_key="anon-key"), access_token="admin-token")


@responses.activate
def test_create_user_sends_headers_and_unwraps_data():
    responses.add(
        responses.POST,
        f"{BASE}/functions/v1/admin_create_user",
        json={"ok": True, "data": {"id": "u1", "inviteSent": False, "tempPassword": "Xx1!xxxxxxxxxxxx"}, "correlationId": "c1"},
        status=200,
    )

    data = _client().create_user(email="a@example.com", full_name="A", temp_password="Xx1!xxxxxxxxxxxx")

    assert data["id"] == "u1"
    request = responses.calls[0].request
    assert request.headers["Authorization"] == "Bearer admin-token"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Content-Type"] == "application/json"
    assert len(request.headers["x-correlation-id"]) == 36
    assert b'"tempPassword"' in request.body


@responses.activate
def test_error_envelope_raises_console_error():
    responses.add(
        responses.POST,
        f"{BASE}/functions/v1/admin_create_user",
        json={"ok": False, "error": {"message": "Forbidden: Admin role required", "code": "FORBIDDEN"}, "correlationId": "abcdef1234567890"},
        status=403,
    )

    with pytest.raises(ConsoleApiError) as excinfo:
        _client().send_password_reset("a@example.com")

    error = excinfo.value
    assert error.code == "FORBIDDEN"
    assert error.status_code == 403
    assert error.correlation_id == "abcdef1234567890"
    assert format_error(error) == "Forbidden: Admin role required (ID: abcdef12)"


@responses.activate
def test_sync_user_stores_puts_store_ids():
    responses.add(
        responses.PUT,
        f"{BASE}/admin/profiles/u1/stores",
        json={"ok": True, "data": {"store_ids": ["s1"]}, "correlationId": "c"},
        status=200,
    )
    assert _client().sync_user_stores("u1", ["s1"]) == {"store_ids": ["s1"]}
    assert responses.calls[0].request.body == b'{"store_ids": ["s1"]}'


@responses.activate
def test_transport_error_is_reported():
    responses.add(responses.GET, f"{BASE}/admin/stores", body=requests.ConnectionError("refused"))
    with pytest.raises(ConsoleApiError) as excinfo:
        _client().list_stores()
    assert excinfo.value.code == "TRANSPORT_ERROR"
    assert excinfo.value.status_code == 0


@responses.activate
def test_transport_error_is_logged(caplog):
    responses.add(responses.GET, f"{BASE}/admin/stores", body=requests.ConnectionError("refused"))
    caplog.set_level(logging.ERROR, logger="app.console.client")
    with pytest.raises(ConsoleApiError) as excinfo:
        _client().list_stores()

    events = [json.loads(record.getMessage()) for record in caplog.records]
    assert len(events) == 1
    assert events[0]["event"] == "console_api_error"
    assert events[0]["code"] == "TRANSPORT_ERROR"
    assert events[0]["status_code"] == 0
    assert events[0]["correlation_id"] == excinfo.value.correlation_id


@responses.activate
def test_server_error_logs_full_correlation_id(caplog):
    responses.add(
        responses.POST,
        f"{BASE}/functions/v1/admin_create_user",
        json={
            "ok": False,
            "error": {"code": "INTERNAL_ERROR", "message": "Unexpected error"},
            "correlationId": "abcdef12-3456-7890",
        },
        status=500,
    )
    caplog.set_level(logging.ERROR, logger="app.console.client")
    with pytest.raises(ConsoleApiError) as excinfo:
        _client().create_user(email="a@example.com", full_name="A", temp_password="Xx1!xxxxxxxxxxxx")

    assert format_error(excinfo.value) == "Unexpected error (ID: abcdef12)"
    events = [json.loads(record.getMessage()) for record in caplog.records]
    assert events == [
        {
            "event": "console_api_error",
            "correlation_id": "abcdef12-3456-7890",
            "code": "INTERNAL_ERROR",
            "message": "Unexpected error",
            "status_code": 500,
            "method": "POST",
            "path": "/functions/v1/admin_create_user",
        }
    ]


def test_format_notice_and_error():
    assert format_notice("Saved", "1234abcd-0000") == "Saved (ID: 1234abcd)"
    assert format_notice("Saved") == "Saved"
    assert format_error("plain") == "plain"
    assert format_error(ValueError("bad value")) == "bad value"
    assert format_error({"message": "from dict"}) == "from dict"
    assert format_error({"code": 1}) == '{"code": 1}'
    assert format_error(None) == "Unknown error"


def test_config_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("HUB_API_BASE_URL", "https://hub.example.com/")
    monkeypatch.setenv("HUB_API_KEY", "anon")
    config = ConsoleConfig.from_env(str(tmp_path / "missing.env"))
    assert config.api_base_url == "https://hub.example.com"
    assert config.api_key == "anon"

    monkeypatch.setenv("HUB_API_BASE_URL", "")
    with pytest.raises(ConfigError):
        ConsoleConfig.from_env(str(tmp_path / "missing.env"))
