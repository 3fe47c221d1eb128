"""
Tests for the access policy.

The policy is pure: every test here runs without any store.
"""

import pytest

from pa_sandbox.auth import (
    AccessPolicy,
    AdministrativeCredential,
    AuthContext,
    Operation,
    OPERATION_REQUIREMENTS,
    ScopedCapability,
)
from pa_sandbox.core.errors import (
    AdministrativeCredentialRequired,
    MissingCapabilityReference,
    UnsupportedVersion,
)


SCOPED = ScopedCapability(client_id="test_api", capability_token_id="test_token")
ADMIN = AdministrativeCredential(username="user", password="pass")

REFERENCED = [Operation.READ, Operation.UPDATE, Operation.DELETE, Operation.READ_PAGE]
BASIC_ONLY = [Operation.ISSUE_TOKENS, Operation.REVOKE_TOKEN]


@pytest.fixture
def policy():
    return AccessPolicy()


# =============================================================================
# Requirement Table
# =============================================================================


def test_every_operation_has_a_requirement():
    assert set(OPERATION_REQUIREMENTS) == set(Operation)


# =============================================================================
# API Version
# =============================================================================


class TestVersion:
    @pytest.mark.parametrize("operation", list(Operation))
    @pytest.mark.parametrize("version", [None, "", "2", "v1"])
    def test_wrong_version_denied(self, policy, operation, version):
        decision = policy.check(operation, version, ADMIN, capability_reference="t1")

        assert not decision.allowed
        assert decision.reason is UnsupportedVersion
        assert decision.message == "API version v=1 is required"

    def test_configured_version(self):
        policy = AccessPolicy(supported_version="2")

        assert policy.check(Operation.CREATE, "2", SCOPED).allowed
        assert not policy.check(Operation.CREATE, "1", SCOPED).allowed


# =============================================================================
# Credential Kind
# =============================================================================


class TestCredentialKind:
    @pytest.mark.parametrize("operation", BASIC_ONLY)
    def test_scoped_capability_rejected(self, policy, operation):
        decision = policy.check(operation, "1", SCOPED)

        assert not decision.allowed
        assert decision.reason is AdministrativeCredentialRequired

    @pytest.mark.parametrize("operation", BASIC_ONLY)
    def test_credential_checked_before_version(self, policy, operation):
        decision = policy.check(operation, None, SCOPED)
        assert decision.reason is AdministrativeCredentialRequired

    @pytest.mark.parametrize("operation", BASIC_ONLY)
    def test_administrative_allowed(self, policy, operation):
        assert policy.check(operation, "1", ADMIN).allowed

    @pytest.mark.parametrize("credential", [SCOPED, ADMIN])
    @pytest.mark.parametrize("operation", [Operation.CREATE, Operation.SEARCH])
    def test_either_kind_allowed(self, policy, operation, credential):
        assert policy.check(operation, "1", credential).allowed

    def test_unknown_credential_type(self, policy):
        with pytest.raises(TypeError):
            policy.check(Operation.ISSUE_TOKENS, "1", object())


# =============================================================================
# Capability Reference
# =============================================================================


class TestCapabilityReference:
    @pytest.mark.parametrize("operation", REFERENCED)
    @pytest.mark.parametrize("reference", [None, ""])
    def test_missing_reference(self, policy, operation, reference):
        decision = policy.check(operation, "1", SCOPED, capability_reference=reference)

        assert not decision.allowed
        assert decision.reason is MissingCapabilityReference

    @pytest.mark.parametrize("operation", REFERENCED)
    def test_reference_present(self, policy, operation):
        assert policy.check(operation, "1", SCOPED, capability_reference="t1").allowed

    def test_reference_is_not_bound_to_a_live_token(self, policy):
        """
        Known gap, kept on purpose: any token_id value passes, and it does not
        have to match the bearer's own capability token either.
        """
        decision = policy.check(
            Operation.READ, "1", SCOPED, capability_reference="no-such-token",
        )
        assert decision.allowed

    @pytest.mark.parametrize("operation", [Operation.CREATE, Operation.SEARCH, *BASIC_ONLY])
    def test_reference_not_required(self, policy, operation):
        assert policy.check(operation, "1", ADMIN).allowed


# =============================================================================
# Enforce
# =============================================================================


class TestEnforce:
    def test_raises_reason(self, policy):
        ctx = AuthContext(credential=SCOPED, api_version="1")

        with pytest.raises(AdministrativeCredentialRequired) as exc:
            policy.enforce(Operation.ISSUE_TOKENS, ctx)
        assert exc.value.status_code == 401
        assert exc.value.message == "Basic authentication required"

    def test_version_message(self, policy):
        ctx = AuthContext(credential=SCOPED)

        with pytest.raises(UnsupportedVersion) as exc:
            policy.enforce(Operation.CREATE, ctx)
        assert exc.value.status_code == 400
        assert "v=1" in exc.value.message

    def test_allowed_returns_none(self, policy, bearer_ctx):
        assert policy.enforce(Operation.UPDATE, bearer_ctx) is None
