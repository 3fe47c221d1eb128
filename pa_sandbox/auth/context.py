"""
Auth context - the "who is calling, and with what" for each request.

This is the lightweight object passed from route handlers to services.
It contains everything the access policy needs to make a decision.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Query, Request

from pa_sandbox.auth.credentials import (
    AdministrativeCredential,
    Credential,
    parse_authorization,
)


@dataclass(frozen=True)
class AuthContext:
    """
    Authorization context for a request.

    Usage in routes:
        async def my_route(ctx: AuthContext = Depends(get_auth_context)):
            service.get_request(ctx, request_id)
    """

    credential: Credential

    # Query parameters every call may carry
    api_version: str | None = None
    api_id: str | None = None

    # token_id presented as proof of access to a specific request
    capability_reference: str | None = None

    @property
    def principal(self) -> str:
        """Who is calling, for log lines."""
        if isinstance(self.credential, AdministrativeCredential):
            return f"basic:{self.credential.username}"
        return f"bearer:{self.credential.client_id}"


# =============================================================================
# Context Resolution (FastAPI dependency)
# =============================================================================


def get_auth_context(
    request: Request,
    v: str | None = Query(default=None, description="API version"),
    api_id: str | None = Query(default=None),
    capability_reference: str | None = Query(
        default=None,
        alias="token_id",
        description="Capability token presented for the target request",
    ),
) -> AuthContext:
    """
    Resolve the auth context for a request.

    Credential errors are raised here, before any handler or store runs.
    """
    credential = parse_authorization(request.headers.get("Authorization"))
    return AuthContext(
        credential=credential,
        api_version=v,
        api_id=api_id,
        capability_reference=capability_reference,
    )
