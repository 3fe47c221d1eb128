"""
Authorization system - two credential kinds, one policy table.

Design principles:
1. Credentials are parsed once, into a closed set of types
2. One requirement table decides what each operation needs
3. The policy never touches storage
"""

from pa_sandbox.auth.capabilities import (
    CredentialKind,
    Operation,
    Requirement,
    OPERATION_REQUIREMENTS,
)
from pa_sandbox.auth.context import AuthContext, get_auth_context
from pa_sandbox.auth.credentials import (
    AdministrativeCredential,
    Credential,
    ScopedCapability,
    parse_authorization,
)
from pa_sandbox.auth.policies import (
    AccessPolicy,
    Decision,
    SUPPORTED_API_VERSION,
    require,
)

__all__ = [
    # Main interface
    "AccessPolicy",
    "AuthContext",
    "get_auth_context",
    "require",
    "parse_authorization",
    # Types
    "Credential",
    "ScopedCapability",
    "AdministrativeCredential",
    "Decision",
    "Operation",
    "CredentialKind",
    "Requirement",
    "OPERATION_REQUIREMENTS",
    "SUPPORTED_API_VERSION",
]
