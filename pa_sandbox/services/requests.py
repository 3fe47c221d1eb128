"""
Request Service - the externally visible request and token operations.

Every operation runs in the same order:
1. Access policy (fails fast, nothing touched yet)
2. Payload shape checks
3. Exactly one store call

The service owns no state of its own; it works against whatever
StorageProvider it was given.
"""

from __future__ import annotations

import logging
from typing import Any

from pa_sandbox.auth.capabilities import Operation
from pa_sandbox.auth.context import AuthContext
from pa_sandbox.auth.policies import AccessPolicy
from pa_sandbox.core.errors import NoValidTargets, ValidationFailed
from pa_sandbox.core.models import CapabilityToken, PaRequest
from pa_sandbox.storage.base import StorageProvider

logger = logging.getLogger(__name__)


def _body(payload: Any) -> dict[str, Any]:
    """A JSON body that is not an object carries none of the expected keys."""
    return payload if isinstance(payload, dict) else {}


def _string_list(payload: Any, key: str) -> list[str]:
    """Pull a required list of identifiers out of a request body."""
    values = _body(payload).get(key)
    if not isinstance(values, list):
        raise ValidationFailed([f"{key} must be an array"], f"{key} array is required")
    bad = [i for i, value in enumerate(values) if not isinstance(value, str)]
    if bad:
        raise ValidationFailed([f"{key}.{i} must be a string" for i in bad])
    return values


class RequestService:
    """
    Service for PA requests and their capability tokens.

    Usage:
        service = RequestService(storage, AccessPolicy())
        request = service.create_request(ctx, {"request": {...}})
        tokens = service.issue_tokens(admin_ctx, {"request_ids": [request.id]})
    """

    def __init__(self, storage: StorageProvider, policy: AccessPolicy | None = None):
        self.storage = storage
        self.policy = policy or AccessPolicy()

    # =========================================================================
    # Requests
    # =========================================================================

    def create_request(self, ctx: AuthContext, payload: Any) -> PaRequest:
        """Create a PA request from a {"request": {...}} body."""
        self.policy.enforce(Operation.CREATE, ctx)

        if not ctx.api_id:
            raise ValidationFailed(["api_id is required"], "api_id parameter is required")

        fields = _body(payload).get("request")
        if not isinstance(fields, dict):
            raise ValidationFailed(
                ["request is required"],
                "Request body must contain a request object",
            )

        return self.storage.requests.create(fields)

    def get_request(self, ctx: AuthContext, request_id: str) -> PaRequest:
        self.policy.enforce(Operation.READ, ctx)
        return self.storage.requests.get(request_id)

    def update_request(
        self,
        ctx: AuthContext,
        request_id: str,
        payload: Any,
    ) -> PaRequest:
        """Replace the memo from a {"request": {"memo": "..."}} body."""
        self.policy.enforce(Operation.UPDATE, ctx)

        fields = _body(payload).get("request")
        if not isinstance(fields, dict):
            raise ValidationFailed(
                ["request.memo is required"],
                "Request body must contain request.memo",
            )

        return self.storage.requests.update(request_id, fields.get("memo"))

    def delete_request(
        self,
        ctx: AuthContext,
        request_id: str,
        payload: Any,
    ) -> PaRequest:
        """Soft-delete a request; the body must name the acting remote_user."""
        self.policy.enforce(Operation.DELETE, ctx)
        actor = _body(payload).get("remote_user")
        return self.storage.requests.soft_delete(request_id, actor)

    def search_requests(self, ctx: AuthContext, payload: Any) -> list[PaRequest]:
        """
        Find every active request reachable from the presented tokens.

        Unknown token ids simply contribute nothing.
        """
        self.policy.enforce(Operation.SEARCH, ctx)
        token_ids = _string_list(payload, "token_ids")

        request_ids = self.storage.tokens.find_by_tokens(token_ids)
        if not request_ids:
            return []
        return self.storage.requests.search(lambda request: request.id in request_ids)

    # =========================================================================
    # Tokens
    # =========================================================================

    def issue_tokens(self, ctx: AuthContext, payload: Any) -> list[CapabilityToken]:
        """Issue one token per existing request in {"request_ids": [...]}."""
        self.policy.enforce(Operation.ISSUE_TOKENS, ctx)
        request_ids = _string_list(payload, "request_ids")

        tokens = self.storage.tokens.issue_many(request_ids)
        if not tokens:
            raise NoValidTargets()

        logger.info(
            "Issued %d token(s) for %d requested id(s) [%s]",
            len(tokens), len(request_ids), ctx.principal,
        )
        return tokens

    def revoke_token(self, ctx: AuthContext, token_id: str) -> None:
        self.policy.enforce(Operation.REVOKE_TOKEN, ctx)
        self.storage.tokens.revoke(token_id)
