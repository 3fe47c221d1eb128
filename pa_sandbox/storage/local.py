"""
In-memory storage implementations.

State lives for the lifetime of the process. Each store guards its map with
one lock, and every read-modify-write happens entirely under it, so a delete
racing an update can never leave a half-updated or resurrected record.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable

from pydantic import ValidationError

from pa_sandbox.core.errors import NotFound, ValidationFailed
from pa_sandbox.core.models import (
    CapabilityToken,
    MemoUpdate,
    PaRequest,
    PaRequestCreate,
    RemoteUser,
    describe_violations,
)
from pa_sandbox.core.utils import utc_now
from pa_sandbox.storage.base import (
    RequestPredicate,
    RequestStorage,
    StorageProvider,
    TokenStorage,
)

logger = logging.getLogger(__name__)


# =============================================================================
# In-Memory Request Storage
# =============================================================================


class InMemoryRequestStore(RequestStorage):
    """Request store backed by a dict keyed by request id."""

    def __init__(self):
        self._requests: dict[str, PaRequest] = {}
        self._lock = threading.RLock()

    def _get_active(self, request_id: str) -> PaRequest:
        # Caller holds the lock
        request = self._requests.get(request_id)
        if request is None or request.deleted:
            raise NotFound("Request not found")
        return request

    def create(self, fields: dict[str, Any]) -> PaRequest:
        try:
            draft = PaRequestCreate.model_validate(fields)
        except ValidationError as e:
            raise ValidationFailed(describe_violations(e))

        now = utc_now()
        request = PaRequest(**draft.model_dump(), created_at=now, updated_at=now)
        with self._lock:
            self._requests[request.id] = request
            logger.info("Created request %s (state=%s)", request.id, request.state)
            return request.model_copy(deep=True)

    def get(self, request_id: str) -> PaRequest:
        with self._lock:
            return self._get_active(request_id).model_copy(deep=True)

    def lookup(self, request_id: str) -> PaRequest | None:
        with self._lock:
            request = self._requests.get(request_id)
            return request.model_copy(deep=True) if request else None

    def update(self, request_id: str, memo: str | None) -> PaRequest:
        try:
            change = MemoUpdate(memo=memo)
        except ValidationError as e:
            raise ValidationFailed(describe_violations(e))

        with self._lock:
            request = self._get_active(request_id)
            request.update_memo(change.memo)
            logger.info("Updated memo on request %s", request_id)
            return request.model_copy(deep=True)

    def soft_delete(
        self,
        request_id: str,
        actor: RemoteUser | dict[str, Any] | str | None,
    ) -> PaRequest:
        if actor is None:
            raise ValidationFailed(["remote_user is required"])
        if isinstance(actor, str):
            actor = {"display_name": actor}
        try:
            remote_user = RemoteUser.model_validate(actor)
        except ValidationError as e:
            raise ValidationFailed(describe_violations(e, root="remote_user"))

        with self._lock:
            request = self._get_active(request_id)
            request.soft_delete(remote_user)
            logger.info(
                "Deleted request %s (by %s)", request_id, remote_user.display_name
            )
            return request.model_copy(deep=True)

    def search(self, predicate: RequestPredicate) -> list[PaRequest]:
        with self._lock:
            return [
                request.model_copy(deep=True)
                for request in self._requests.values()
                if not request.deleted and predicate(request)
            ]


# =============================================================================
# In-Memory Token Storage
# =============================================================================


class InMemoryTokenStore(TokenStorage):
    """Token store backed by a dict keyed by token id."""

    def __init__(
        self,
        requests: RequestStorage,
        api_base_url: str = "https://api.covermymeds.com",
        web_base_url: str = "https://covermymeds.com",
    ):
        # Only used to check that a request exists at issuance time
        self._requests = requests
        self.api_base_url = api_base_url.rstrip("/")
        self.web_base_url = web_base_url.rstrip("/")
        self._tokens: dict[str, CapabilityToken] = {}
        self._lock = threading.RLock()

    def issue(self, request_id: str) -> CapabilityToken:
        with self._lock:
            self._requests.get(request_id)  # raises NotFound
            token = CapabilityToken(
                request_id=request_id,
                api_base_url=self.api_base_url,
                web_base_url=self.web_base_url,
            )
            self._tokens[token.id] = token
            logger.info("Issued token %s for request %s", token.id, request_id)
            return token.model_copy()

    def issue_many(self, request_ids: Iterable[str]) -> list[CapabilityToken]:
        tokens = []
        for request_id in request_ids:
            try:
                tokens.append(self.issue(request_id))
            except NotFound:
                logger.debug("Skipping token for unknown request %s", request_id)
        return tokens

    def revoke(self, token_id: str) -> None:
        with self._lock:
            if token_id not in self._tokens:
                raise NotFound("Token not found")
            del self._tokens[token_id]
            logger.info("Revoked token %s", token_id)

    def get(self, token_id: str) -> CapabilityToken | None:
        with self._lock:
            token = self._tokens.get(token_id)
            return token.model_copy() if token else None

    def find_by_tokens(self, token_ids: Iterable[str]) -> set[str]:
        with self._lock:
            return {
                self._tokens[token_id].request_id
                for token_id in token_ids
                if token_id in self._tokens
            }


# =============================================================================
# Factory
# =============================================================================


def create_local_storage(
    api_base_url: str = "https://api.covermymeds.com",
    web_base_url: str = "https://covermymeds.com",
) -> StorageProvider:
    """Create a StorageProvider with fresh, empty in-memory stores."""
    requests = InMemoryRequestStore()
    return StorageProvider(
        requests=requests,
        tokens=InMemoryTokenStore(
            requests,
            api_base_url=api_base_url,
            web_base_url=web_base_url,
        ),
    )
