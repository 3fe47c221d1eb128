"""
Storage abstraction layer.

All request and token state goes through these interfaces. Services receive
a StorageProvider and never reach into the underlying collections, which
allows swapping the in-memory implementations without changing application
code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable

from pydantic import BaseModel

from pa_sandbox.core.models import CapabilityToken, PaRequest, RemoteUser


RequestPredicate = Callable[[PaRequest], bool]


# =============================================================================
# Storage Interfaces
# =============================================================================


class RequestStorage(ABC):
    """
    Owns PA request identity and mutation.

    Reads never return deleted requests; `lookup` is the audit exception.
    """

    @abstractmethod
    def create(self, fields: dict[str, Any]) -> PaRequest:
        """Validate fields and store a new PENDING/NEW request."""
        pass

    @abstractmethod
    def get(self, request_id: str) -> PaRequest:
        """Get an active request, or raise NotFound."""
        pass

    @abstractmethod
    def lookup(self, request_id: str) -> PaRequest | None:
        """Get a request regardless of lifecycle (audit read)."""
        pass

    @abstractmethod
    def update(self, request_id: str, memo: str | None) -> PaRequest:
        """Replace the memo of an active request."""
        pass

    @abstractmethod
    def soft_delete(
        self,
        request_id: str,
        actor: RemoteUser | dict[str, Any] | str | None,
    ) -> PaRequest:
        """Move an active request to DELETED, recording who did it."""
        pass

    @abstractmethod
    def search(self, predicate: RequestPredicate) -> list[PaRequest]:
        """All active requests matching predicate, in no particular order."""
        pass


class TokenStorage(ABC):
    """
    Owns capability tokens and their association to requests.

    Many tokens may point at one request; each token points at exactly one.
    """

    @abstractmethod
    def issue(self, request_id: str) -> CapabilityToken:
        """Issue a token for an existing request, or raise NotFound."""
        pass

    @abstractmethod
    def issue_many(self, request_ids: Iterable[str]) -> list[CapabilityToken]:
        """Issue one token per resolvable request id, skipping the rest."""
        pass

    @abstractmethod
    def revoke(self, token_id: str) -> None:
        """Remove a token, or raise NotFound."""
        pass

    @abstractmethod
    def get(self, token_id: str) -> CapabilityToken | None:
        """Get a token by ID."""
        pass

    @abstractmethod
    def find_by_tokens(self, token_ids: Iterable[str]) -> set[str]:
        """Distinct request ids reachable from any of the given tokens."""
        pass


# =============================================================================
# Storage Provider (dependency injection container)
# =============================================================================


class StorageProvider(BaseModel):
    """
    Container for both stores.

    Initialize once at app startup. Services receive this and use the
    interfaces without knowing the underlying implementation.
    """

    model_config = {"arbitrary_types_allowed": True}

    requests: RequestStorage
    tokens: TokenStorage
