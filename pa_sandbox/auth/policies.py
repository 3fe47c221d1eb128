"""
Access policy - per-operation allow/deny decisions.

The policy is a pure function of (operation, API version, credential,
capability reference). It never touches storage, so services can put it in
front of every store call and tests can exercise it on its own.

Rules, checked in order:
1. Token issuance/revocation need an AdministrativeCredential
2. The API version must match the supported one
3. Read/update/delete of a specific request need a capability reference

The capability reference only has to be present. It is not resolved against
the token store, so any token_id value passes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from fastapi import Depends, Request

from pa_sandbox.auth.capabilities import (
    OPERATION_REQUIREMENTS,
    CredentialKind,
    Operation,
    Requirement,
)
from pa_sandbox.auth.context import AuthContext, get_auth_context
from pa_sandbox.auth.credentials import (
    AdministrativeCredential,
    Credential,
    ScopedCapability,
)
from pa_sandbox.core.errors import (
    AdministrativeCredentialRequired,
    MissingCapabilityReference,
    PolicyError,
    UnsupportedVersion,
)

logger = logging.getLogger(__name__)


SUPPORTED_API_VERSION = "1"


@dataclass(frozen=True)
class Decision:
    """Outcome of a policy check."""

    allowed: bool
    reason: type[PolicyError] | None = None
    message: str | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: type[PolicyError], message: str | None = None) -> Decision:
        return cls(allowed=False, reason=reason, message=message)


class AccessPolicy:
    """
    Decides whether a caller may perform an operation.

    Usage:
        policy = AccessPolicy()
        policy.enforce(Operation.READ, ctx)  # raises if denied
    """

    def __init__(
        self,
        supported_version: str = SUPPORTED_API_VERSION,
        requirements: dict[Operation, Requirement] | None = None,
    ):
        self.supported_version = supported_version
        self.requirements = requirements or OPERATION_REQUIREMENTS

    def check(
        self,
        operation: Operation,
        api_version: str | None,
        credential: Credential,
        capability_reference: str | None = None,
    ) -> Decision:
        """
        Check an operation against the requirement table.

        Returns: Decision with the first failing rule, or allowed
        """
        requirement = self.requirements[operation]

        if requirement.credential == CredentialKind.ADMINISTRATIVE:
            if isinstance(credential, ScopedCapability):
                return Decision.deny(AdministrativeCredentialRequired)
            if not isinstance(credential, AdministrativeCredential):
                raise TypeError(f"Unknown credential type: {type(credential).__name__}")

        if api_version != self.supported_version:
            return Decision.deny(
                UnsupportedVersion,
                f"API version v={self.supported_version} is required",
            )

        if requirement.capability_reference and not capability_reference:
            return Decision.deny(MissingCapabilityReference)

        return Decision.allow()

    def enforce(self, operation: Operation, ctx: AuthContext) -> None:
        """Raise the matching PolicyError if the context is not allowed."""
        decision = self.check(
            operation,
            api_version=ctx.api_version,
            credential=ctx.credential,
            capability_reference=ctx.capability_reference,
        )
        if not decision.allowed:
            logger.info(
                "Denied %s for %s: %s",
                operation.value, ctx.principal, decision.reason.__name__,
            )
            raise decision.reason(decision.message)


# =============================================================================
# FastAPI Dependency
# =============================================================================


def require(operation: Operation) -> Callable:
    """
    Route dependency that enforces the policy for an operation.

    Usage:
        @app.post("/requests/tokens")
        async def issue(ctx: AuthContext = Depends(require(Operation.ISSUE_TOKENS))):
            ...

    It runs before the handler reads the body, so a malformed body never
    hides a credential or policy error.
    """

    async def dependency(
        request: Request,
        ctx: AuthContext = Depends(get_auth_context),
    ) -> AuthContext:
        policy = getattr(request.app.state, "policy", None) or AccessPolicy()
        policy.enforce(operation, ctx)
        return ctx

    return dependency
