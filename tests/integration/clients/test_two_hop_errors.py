# tests/integration/clients/test_two_hop_errors.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""End-to-end propagation of an error across two services.

A route of the ``orders`` service calls the ``pets`` service through httpx.
The pets service (mocked with respx) answers 404 with an error document; the
orders service must re-render it with the remote representation one level
down and the remote error code inherited at the top.
"""

from __future__ import annotations

import httpx
import pytest
import respx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from restapi_errors.adapters.clients.errors import RestApiResponseError, RetryableError
from restapi_errors.config import Settings
from restapi_errors.dependencies.errors import get_client_error_decoder, install_error_handling
from restapi_errors.domain.services.exception_chain import qualified_type_name

PETS_URL = "https://pets.example"

REMOTE_BODY = {
    "timestamp": "2024-05-01T12:30:00Z",
    "status": 404,
    "statusText": "Not Found",
    "errorCode": "PET:404",
    "errorCodeInherited": True,
    "message": "Pet 7 not found",
    "exceptionType": "pets.errors.PetLookupFailed",
    "application": "pets",
    "path": "/pets/7",
    "shelter": "north",
    "cause": {
        "status": 404,
        "statusText": "Not Found",
        "errorCode": "PET:404",
        "message": "no row for id 7",
        "exceptionType": "pets.db.NoRow",
    },
}


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    for key in ("API_PATHS", "ERROR_FIELD_POLICIES", "ERROR_DEFAULT_FIELD_POLICY"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("APPLICATION_NAME", "orders")
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def client(settings: Settings) -> TestClient:
    app = FastAPI()
    install_error_handling(app, settings)
    decoder = get_client_error_decoder(settings)

    @app.get("/orders/{pet_id}")
    async def get_order(pet_id: int) -> dict[str, object]:
        async with httpx.AsyncClient(
            base_url=PETS_URL, event_hooks={"response": [decoder.araise_for_error]}
        ) as pets:
            response = await pets.get(f"/pets/{pet_id}")
        return {"pet": response.json()}

    return TestClient(app, raise_server_exceptions=False)


def test_remote_error_is_nested_with_inherited_code(client: TestClient) -> None:
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{PETS_URL}/pets/7").mock(return_value=httpx.Response(404, json=REMOTE_BODY))
        r = client.get("/orders/7", headers={"Accept": "application/json"})

    assert r.status_code == 404
    body = r.json()
    assert body["application"] == "orders"
    assert body["path"] == "/orders/7"
    assert body["exceptionType"] == qualified_type_name(RestApiResponseError)
    assert body["message"] == f"Status 404 reading GET {PETS_URL}/pets/7"
    assert body["errorCode"] == "PET:404"
    assert body["errorCodeInherited"] is True

    remote = body["cause"]
    assert remote["application"] == "pets"
    assert remote["path"] == "/pets/7"
    assert remote["message"] == "Pet 7 not found"
    assert remote["shelter"] == "north"
    assert remote["cause"]["message"] == "no row for id 7"
    assert "cause" not in remote["cause"]


def test_remote_header_only_error_is_nested(client: TestClient) -> None:
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{PETS_URL}/pets/8").mock(
            return_value=httpx.Response(
                409,
                headers={"X-ERROR-CODE": "PET:409", "X-ERROR-MESSAGE": "Pet 8 is reserved"},
            )
        )
        r = client.get("/orders/8")

    assert r.status_code == 409
    body = r.json()
    assert body["errorCode"] == "PET:409"
    assert body["cause"]["message"] == "Pet 8 is reserved"
    assert body["cause"]["status"] == 409


def test_retry_hint_surfaces_as_retryable_error(client: TestClient) -> None:
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{PETS_URL}/pets/9").mock(
            return_value=httpx.Response(503, headers={"Retry-After": "5"}, json={"status": 503})
        )
        r = client.get("/orders/9")

    assert r.status_code == 503
    body = r.json()
    assert body["exceptionType"] == qualified_type_name(RetryableError)
    assert body["id"]
    assert body["cause"]["exceptionType"] == qualified_type_name(RestApiResponseError)
    assert body["cause"]["cause"]["status"] == 503
