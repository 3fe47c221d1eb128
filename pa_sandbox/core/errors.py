"""
Error kinds for the PA sandbox.

Every failure the core can produce is a SandboxError subclass. Each class
carries the HTTP status it maps to, so the API layer renders them with a
single exception handler instead of per-route translation.
"""

from __future__ import annotations

from typing import Any


class SandboxError(Exception):
    """Base exception for sandbox errors."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Response body for this error."""
        return {"error": self.message}


# =============================================================================
# Credential Errors (raised by the credential parser)
# =============================================================================


class CredentialError(SandboxError):
    """Authorization header could not be turned into a credential."""

    status_code = 401
    default_message = "Invalid credentials"


class MissingCredential(CredentialError):
    """No Authorization header at all."""

    default_message = "Authorization header required"


class MalformedCredential(CredentialError):
    """Known scheme, but the credential does not have the expected shape."""

    default_message = "Invalid credential format"


class UnsupportedScheme(CredentialError):
    """Neither Bearer nor Basic."""

    default_message = "Invalid authorization type"


# =============================================================================
# Policy Errors (raised by the access policy)
# =============================================================================


class PolicyError(SandboxError):
    """Access policy denied the operation."""

    status_code = 400
    default_message = "Operation not permitted"


class UnsupportedVersion(PolicyError):
    default_message = "API version v=1 is required"


class AdministrativeCredentialRequired(PolicyError):
    status_code = 401
    default_message = "Basic authentication required"


class MissingCapabilityReference(PolicyError):
    default_message = "token_id parameter is required"


# =============================================================================
# Store Errors
# =============================================================================


class ValidationFailed(SandboxError):
    """
    One or more field rules were violated.

    Carries every violated rule, not just the first one found.
    """

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, violations: list[str], message: str | None = None):
        self.violations = list(violations)
        if message is None and self.violations:
            message = f"{self.default_message}: {'; '.join(self.violations)}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.violations}


class NotFound(SandboxError):
    """Unknown identifier. Soft-deleted records report the same error."""

    status_code = 404
    default_message = "Not found"


class NoValidTargets(SandboxError):
    """Token issuance resolved none of the requested identifiers."""

    status_code = 404
    default_message = "No valid request IDs found"


class EndpointDeprecated(SandboxError):
    status_code = 410
    default_message = "This endpoint is deprecated. Please use individual request endpoints."
