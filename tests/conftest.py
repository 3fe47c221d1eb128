"""Pytest configuration and fixtures."""

import base64

import pytest
from fastapi.testclient import TestClient

from pa_sandbox.api.app import app
from pa_sandbox.auth import AccessPolicy, AdministrativeCredential, AuthContext, ScopedCapability
from pa_sandbox.services import RequestService
from pa_sandbox.storage import create_local_storage


def basic_header(username: str = "user", password: str = "pass") -> str:
    """Authorization header for an administrative credential."""
    encoded = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


BEARER = {"Authorization": "Bearer test_api+test_token"}
BASIC = {"Authorization": basic_header()}


@pytest.fixture
def request_fields():
    """A minimal valid PA request."""
    return {
        "state": "CA",
        "urgent": False,
        "patient": {
            "first_name": "John",
            "last_name": "Doe",
            "date_of_birth": "1980-01-15",
        },
        "prescription": {"drug_id": "drug123"},
    }


@pytest.fixture
def storage():
    """Fresh, empty stores."""
    return create_local_storage()


@pytest.fixture
def service(storage):
    return RequestService(storage, AccessPolicy())


@pytest.fixture
def bearer_ctx():
    """Scoped capability with everything read/update/delete need."""
    return AuthContext(
        credential=ScopedCapability(client_id="test_api", capability_token_id="test_token"),
        api_version="1",
        api_id="test_api",
        capability_reference="test_token",
    )


@pytest.fixture
def admin_ctx():
    return AuthContext(
        credential=AdministrativeCredential(username="user", password="pass"),
        api_version="1",
        api_id="test_api",
    )


@pytest.fixture
def client():
    """Test client with a fresh app state (lifespan runs per test)."""
    with TestClient(app) as test_client:
        yield test_client
