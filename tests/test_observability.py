import json
import logging

import pytest

from app.hub.core.error_catalog import AppError, ErrorCatalog, ErrorKind
from app.hub.services.provisioning import (
    ProvisioningState,
    ProvisioningStateMachine,
    parse_provisioning_request,
)
from tests.hub_helpers import auth_headers, login


def _events(caplog, event):
    payloads = []
    for record in caplog.records:
        try:
            payload = json.loads(record.getMessage())
        except ValueError:
            continue
        if isinstance(payload, dict) and payload.get("event") == event:
            payloads.append(payload)
    return payloads


def test_request_log_carries_error_code(client, caplog):
    caplog.set_level(logging.INFO)
    client.post("/functions/v1/admin_create_user", json={}, headers={"x-correlation-id": "log-1"})

    [payload] = [p for p in _events(caplog, "http_request") if p["correlation_id"] == "log-1"]
    assert payload["route"] == "/functions/v1/admin_create_user"
    assert payload["method"] == "POST"
    assert payload["status_code"] == 401
    assert payload["error_code"] == "UNAUTHENTICATED"
    assert payload["error_class"] == "AppError"


def test_provisioning_states_are_logged(client, caplog):
    token = login(client)
    caplog.set_level(logging.INFO)
    client.post(
        "/functions/v1/admin_create_user",
        headers={**auth_headers(token), "x-correlation-id": "log-2"},
        json={"email": "states@example.com", "full_name": "States"},
    )

    steps = [p["to"] for p in _events(caplog, "provisioning_state") if p["correlation_id"] == "log-2"]
    assert steps == [
        "Authenticating",
        "Authorizing",
        "Validating",
        "Executing",
        "CreateOrFindAccount",
        "UpsertProfile",
        "Responding",
    ]


def test_state_machine_records_failure_kind():
    machine = ProvisioningStateMachine("c")
    machine.advance(ProvisioningState.AUTHENTICATING)
    machine.fail(ErrorKind.UNAUTHENTICATED)
    assert machine.state == ProvisioningState.FAILED
    assert machine.failure_kind == ErrorKind.UNAUTHENTICATED
    machine.fail(ErrorKind.INTERNAL)
    assert machine.failure_kind == ErrorKind.UNAUTHENTICATED


def test_state_machine_rejects_skipping_authorization():
    machine = ProvisioningStateMachine("c")
    machine.advance(ProvisioningState.AUTHENTICATING)
    with pytest.raises(RuntimeError):
        machine.advance(ProvisioningState.EXECUTING)


def test_parse_defaults_to_create_mode():
    request = parse_provisioning_request(b'{"email": "a@example.com", "full_name": "A", "role": ""}')
    assert request.mode == "create"
    assert request.role.value == "Employee"


def test_parse_rejects_non_object():
    with pytest.raises(AppError) as excinfo:
        parse_provisioning_request(b"[1, 2]")
    assert excinfo.value.error is ErrorCatalog.INVALID_REQUEST
