"""
Core module - data models, error kinds and shared utilities.

This module contains:
- models: PaRequest, CapabilityToken and their sub-records
- errors: every failure the sandbox can report
- utils: Shared utility functions
"""

from pa_sandbox.core.models import (
    PaRequest,
    PaRequestCreate,
    MemoUpdate,
    Patient,
    Prescription,
    RemoteUser,
    CapabilityToken,
    RequestStatus,
    WorkflowStatus,
    RequestLifecycle,
    MEMO_MAX_LENGTH,
)

from pa_sandbox.core.errors import (
    SandboxError,
    MissingCredential,
    MalformedCredential,
    UnsupportedScheme,
    UnsupportedVersion,
    AdministrativeCredentialRequired,
    MissingCapabilityReference,
    ValidationFailed,
    NotFound,
    NoValidTargets,
    EndpointDeprecated,
)

from pa_sandbox.core.utils import (
    generate_id,
    utc_now,
)

__all__ = [
    # Models
    "PaRequest",
    "PaRequestCreate",
    "MemoUpdate",
    "Patient",
    "Prescription",
    "RemoteUser",
    "CapabilityToken",
    "RequestStatus",
    "WorkflowStatus",
    "RequestLifecycle",
    "MEMO_MAX_LENGTH",
    # Errors
    "SandboxError",
    "MissingCredential",
    "MalformedCredential",
    "UnsupportedScheme",
    "UnsupportedVersion",
    "AdministrativeCredentialRequired",
    "MissingCapabilityReference",
    "ValidationFailed",
    "NotFound",
    "NoValidTargets",
    "EndpointDeprecated",
    # Utils
    "generate_id",
    "utc_now",
]
