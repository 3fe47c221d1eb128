"""
Tests for the request service.

Policy failures must surface before any store call, so part of this module
runs the service against a mock StorageProvider and asserts it was never
touched.
"""

from unittest.mock import MagicMock

import pytest

from pa_sandbox.auth import AccessPolicy, AuthContext, ScopedCapability
from pa_sandbox.core.errors import (
    AdministrativeCredentialRequired,
    MissingCapabilityReference,
    NoValidTargets,
    NotFound,
    UnsupportedVersion,
    ValidationFailed,
)
from pa_sandbox.core.models import RequestStatus, WorkflowStatus
from pa_sandbox.services import RequestPageService, RequestService


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_storage():
    return MagicMock()


@pytest.fixture
def guarded(mock_storage):
    """Service over a mock store, to prove denied calls never reach it."""
    return RequestService(mock_storage, AccessPolicy())


@pytest.fixture
def created(service, bearer_ctx, request_fields):
    return service.create_request(bearer_ctx, {"request": request_fields})


# =============================================================================
# Fail fast
# =============================================================================


class TestFailFast:
    @pytest.mark.parametrize("call", [
        lambda s, ctx: s.issue_tokens(ctx, {"request_ids": ["r1"]}),
        lambda s, ctx: s.revoke_token(ctx, "t1"),
    ])
    def test_scoped_capability_never_reaches_store(self, guarded, mock_storage, bearer_ctx, call):
        with pytest.raises(AdministrativeCredentialRequired):
            call(guarded, bearer_ctx)

        assert mock_storage.mock_calls == []

    def test_version_checked_before_store(self, guarded, mock_storage, request_fields):
        ctx = AuthContext(
            credential=ScopedCapability(client_id="test_api", capability_token_id="t"),
            api_id="test_api",
        )
        with pytest.raises(UnsupportedVersion):
            guarded.create_request(ctx, {"request": request_fields})

        assert mock_storage.mock_calls == []

    @pytest.mark.parametrize("call", [
        lambda s, ctx: s.get_request(ctx, "r1"),
        lambda s, ctx: s.update_request(ctx, "r1", {"request": {"memo": "m"}}),
        lambda s, ctx: s.delete_request(ctx, "r1", {"remote_user": {"display_name": "u"}}),
    ])
    def test_capability_reference_checked_before_store(self, guarded, mock_storage, call):
        ctx = AuthContext(
            credential=ScopedCapability(client_id="test_api", capability_token_id="t"),
            api_version="1",
        )
        with pytest.raises(MissingCapabilityReference):
            call(guarded, ctx)

        assert mock_storage.mock_calls == []


# =============================================================================
# Requests
# =============================================================================


class TestRequests:
    def test_create_get_update_delete(self, service, bearer_ctx, created):
        """Create -> oversized memo rejected -> delete -> gone."""
        assert created.status == RequestStatus.PENDING
        assert created.workflow_status == WorkflowStatus.NEW
        assert created.state == "CA"

        with pytest.raises(ValidationFailed) as exc:
            service.update_request(bearer_ctx, created.id, {"request": {"memo": "a" * 4001}})
        assert "memo must not exceed 4000 characters" in exc.value.violations

        service.delete_request(bearer_ctx, created.id, {"remote_user": {"display_name": "Test User"}})

        with pytest.raises(NotFound):
            service.get_request(bearer_ctx, created.id)

    def test_update_then_get(self, service, bearer_ctx, created):
        updated = service.update_request(bearer_ctx, created.id, {"request": {"memo": "new"}})
        assert service.get_request(bearer_ctx, created.id).model_dump() == updated.model_dump()

    def test_create_needs_api_id(self, service, request_fields):
        ctx = AuthContext(
            credential=ScopedCapability(client_id="test_api", capability_token_id="t"),
            api_version="1",
        )
        with pytest.raises(ValidationFailed) as exc:
            service.create_request(ctx, {"request": request_fields})
        assert exc.value.message == "api_id parameter is required"

    @pytest.mark.parametrize("payload", [None, {}, {"request": "CA"}, ["CA"], "CA"])
    def test_create_needs_request_wrapper(self, service, bearer_ctx, payload):
        with pytest.raises(ValidationFailed) as exc:
            service.create_request(bearer_ctx, payload)
        assert exc.value.message == "Request body must contain a request object"

    @pytest.mark.parametrize("payload", [None, {}, {"memo": "unwrapped"}])
    def test_update_needs_request_wrapper(self, service, bearer_ctx, created, payload):
        with pytest.raises(ValidationFailed) as exc:
            service.update_request(bearer_ctx, created.id, payload)
        assert exc.value.message == "Request body must contain request.memo"

    def test_delete_needs_remote_user(self, service, bearer_ctx, created):
        with pytest.raises(ValidationFailed) as exc:
            service.delete_request(bearer_ctx, created.id, {})
        assert exc.value.violations == ["remote_user is required"]

    def test_any_token_id_is_accepted_for_reads(self, service, created, request_fields):
        """
        Known gap, kept on purpose: the token_id is not resolved, so a
        reference to a token that never existed still reads the request.
        """
        ctx = AuthContext(
            credential=ScopedCapability(client_id="someone", capability_token_id="else"),
            api_version="1",
            capability_reference="never-issued",
        )
        assert service.get_request(ctx, created.id).id == created.id


# =============================================================================
# Search
# =============================================================================


class TestSearch:
    def test_search_by_tokens(self, service, bearer_ctx, admin_ctx, request_fields):
        a = service.create_request(bearer_ctx, {"request": request_fields})
        b = service.create_request(bearer_ctx, {"request": request_fields})
        service.create_request(bearer_ctx, {"request": request_fields})

        tokens = service.issue_tokens(admin_ctx, {"request_ids": [a.id, a.id, b.id]})
        found = service.search_requests(bearer_ctx, {"token_ids": [t.id for t in tokens]})

        assert sorted(request.id for request in found) == sorted([a.id, b.id])

    def test_search_excludes_deleted(self, service, bearer_ctx, admin_ctx, created):
        token = service.issue_tokens(admin_ctx, {"request_ids": [created.id]})[0]
        service.delete_request(bearer_ctx, created.id, {"remote_user": {"display_name": "Test User"}})

        assert service.search_requests(bearer_ctx, {"token_ids": [token.id]}) == []

    def test_search_after_revoke(self, service, bearer_ctx, admin_ctx, created):
        token = service.issue_tokens(admin_ctx, {"request_ids": [created.id]})[0]
        service.revoke_token(admin_ctx, token.id)

        assert service.search_requests(bearer_ctx, {"token_ids": [token.id]}) == []

    @pytest.mark.parametrize("payload", [None, {}, {"token_ids": "t1"}, ["t1"]])
    def test_token_ids_must_be_array(self, service, bearer_ctx, payload):
        with pytest.raises(ValidationFailed) as exc:
            service.search_requests(bearer_ctx, payload)
        assert exc.value.message == "token_ids array is required"

    def test_token_ids_must_be_strings(self, service, bearer_ctx):
        with pytest.raises(ValidationFailed) as exc:
            service.search_requests(bearer_ctx, {"token_ids": ["t1", 2]})
        assert exc.value.violations == ["token_ids.1 must be a string"]


# =============================================================================
# Tokens
# =============================================================================


class TestTokens:
    def test_partial_issue(self, service, admin_ctx, created):
        tokens = service.issue_tokens(admin_ctx, {"request_ids": [created.id, "nope"]})

        assert len(tokens) == 1
        assert tokens[0].request_id == created.id

    def test_no_valid_targets(self, service, admin_ctx):
        with pytest.raises(NoValidTargets) as exc:
            service.issue_tokens(admin_ctx, {"request_ids": ["nope"]})
        assert exc.value.status_code == 404

    def test_empty_request_ids(self, service, admin_ctx):
        with pytest.raises(NoValidTargets):
            service.issue_tokens(admin_ctx, {"request_ids": []})

    def test_revoke_unknown(self, service, admin_ctx):
        with pytest.raises(NotFound):
            service.revoke_token(admin_ctx, "nope")


# =============================================================================
# Request pages
# =============================================================================


class TestRequestPages:
    def test_page_is_built_per_call(self, bearer_ctx):
        pages = RequestPageService(AccessPolicy(), api_base_url="https://api.test/")

        first = pages.get_page(bearer_ctx, "r1")
        first["forms"].clear()
        second = pages.get_page(bearer_ctx, "r1")

        assert second["forms"][0]["identifier"] == "pa_form_r1"
        assert second["actions"][0]["href"] == "https://api.test/request-pages/r1/submit"

    def test_denied_without_reference(self):
        ctx = AuthContext(
            credential=ScopedCapability(client_id="test_api", capability_token_id="t"),
            api_version="1",
        )
        with pytest.raises(MissingCapabilityReference):
            RequestPageService(AccessPolicy()).get_page(ctx, "r1")
