"""
Operations and what each one requires.

This defines WHAT a caller must present, not HOW we check it.
The actual checking happens in policies.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Operation(str, Enum):
    """Externally visible operations of the request API."""

    # Requests
    CREATE = "request.create"
    READ = "request.read"
    UPDATE = "request.update"
    DELETE = "request.delete"
    SEARCH = "request.search"

    # Tokens
    ISSUE_TOKENS = "token.issue"
    REVOKE_TOKEN = "token.revoke"

    # Request pages
    READ_PAGE = "page.read"


class CredentialKind(str, Enum):
    """Which credential an operation accepts."""

    ANY = "any"                    # Bearer or Basic
    ADMINISTRATIVE = "basic"       # Basic only


@dataclass(frozen=True)
class Requirement:
    """What a caller must present to perform an operation."""

    credential: CredentialKind = CredentialKind.ANY
    capability_reference: bool = False  # token_id query parameter


# =============================================================================
# Requirement Table
# =============================================================================


OPERATION_REQUIREMENTS: dict[Operation, Requirement] = {
    Operation.CREATE: Requirement(),
    Operation.SEARCH: Requirement(),
    Operation.READ: Requirement(capability_reference=True),
    Operation.UPDATE: Requirement(capability_reference=True),
    Operation.DELETE: Requirement(capability_reference=True),
    Operation.READ_PAGE: Requirement(capability_reference=True),
    Operation.ISSUE_TOKENS: Requirement(credential=CredentialKind.ADMINISTRATIVE),
    Operation.REVOKE_TOKEN: Requirement(credential=CredentialKind.ADMINISTRATIVE),
}
