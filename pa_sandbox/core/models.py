"""
Core data models for the PA sandbox.

These models represent the two entities the sandbox owns: prior-authorization
requests and the capability tokens that grant scoped access to them.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, computed_field

from pa_sandbox.core.utils import generate_id, utc_now


MEMO_MAX_LENGTH = 4000

# pydantic error types for a value that should have been a mapping
OBJECT_ERRORS = ("model_type", "model_attributes_type", "dict_type")


# =============================================================================
# Enums
# =============================================================================


class RequestStatus(str, Enum):
    """Decision status of a PA request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


class WorkflowStatus(str, Enum):
    """Where the request sits in the review workflow."""

    NEW = "NEW"
    UNDER_REVIEW = "UNDER_REVIEW"
    ADDITIONAL_INFO_REQUIRED = "ADDITIONAL_INFO_REQUIRED"
    COMPLETED = "COMPLETED"  # Terminal


class RequestLifecycle(str, Enum):
    """
    Storage lifecycle of a request.

    ACTIVE -> DELETED is the only transition. A deleted request is kept for
    audit but can never be read, changed or searched again.
    """

    ACTIVE = "active"
    DELETED = "deleted"


# =============================================================================
# Sub-records
# =============================================================================


class Patient(BaseModel):
    """Patient the medication is prescribed for."""

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    date_of_birth: str = Field(min_length=1)
    middle_name: str | None = None


class Prescription(BaseModel):
    """Drug being requested."""

    drug_id: str = Field(min_length=1)
    drug_name: str | None = None
    ndc_code: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ndc_code", "drug_code"),
    )
    quantity: float | None = None
    days_supply: int | None = None


class RemoteUser(BaseModel):
    """Actor descriptor recorded when a request is deleted."""

    display_name: str = Field(min_length=1)
    phone_number: str | None = None
    fax_number: str | None = None


# =============================================================================
# Inbound payloads
# =============================================================================


class PaRequestCreate(BaseModel):
    """Fields a client may supply when creating a request."""

    state: str = Field(min_length=2, max_length=2)
    patient: Patient
    prescription: Prescription
    memo: str | None = Field(default=None, max_length=MEMO_MAX_LENGTH)
    urgent: bool = False
    form_id: str | None = None


class MemoUpdate(BaseModel):
    """The only mutable part of a stored request."""

    memo: str = Field(min_length=1, max_length=MEMO_MAX_LENGTH)


def describe_violations(exc: ValidationError, root: str | None = None) -> list[str]:
    """
    Turn a pydantic ValidationError into human-readable rule violations.

    Every error is reported, in the order pydantic found them. Field paths
    are prefixed with root when the validated value was nested in a body.
    """
    violations = []
    for error in exc.errors():
        parts = [root, *error["loc"]]
        field = ".".join(str(part) for part in parts if part not in (None, "")) or "body"
        kind = error["type"]
        if kind == "missing" or error.get("input") in (None, ""):
            violations.append(f"{field} is required")
        elif kind in OBJECT_ERRORS:
            violations.append(f"{field} must be an object")
        elif field == "state" and kind in ("string_too_short", "string_too_long"):
            violations.append("state must be 2 characters")
        elif kind == "string_too_long":
            limit = error["ctx"]["max_length"]
            violations.append(f"{field} must not exceed {limit} characters")
        else:
            violations.append(f"{field}: {error['msg']}")
    return violations


# =============================================================================
# PA Request
# =============================================================================


class PaRequest(PaRequestCreate):
    """
    A prior-authorization request.

    Only the memo can change after creation, and nothing can change once the
    request has been deleted.
    """

    id: str = Field(default_factory=generate_id)

    # Decision state
    status: RequestStatus = RequestStatus.PENDING
    workflow_status: WorkflowStatus = WorkflowStatus.NEW

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    # Lifecycle
    lifecycle: RequestLifecycle = Field(default=RequestLifecycle.ACTIVE, exclude=True)
    deleted_at: datetime | None = None
    deleted_by: RemoteUser | None = None

    @computed_field
    @property
    def deleted(self) -> bool:
        return self.lifecycle == RequestLifecycle.DELETED

    def _ensure_active(self) -> None:
        if self.deleted:
            raise ValueError(f"Request {self.id} is deleted and immutable")

    def update_memo(self, memo: str) -> None:
        """Replace the memo and set updated_at."""
        self._ensure_active()
        self.memo = memo
        self.updated_at = utc_now()

    def soft_delete(self, actor: RemoteUser) -> None:
        """Move the request to its terminal DELETED state."""
        self._ensure_active()
        self.lifecycle = RequestLifecycle.DELETED
        self.deleted_at = utc_now()
        self.deleted_by = actor

    def to_response(self) -> dict[str, Any]:
        """JSON-ready representation for API responses."""
        return self.model_dump(mode="json")


# =============================================================================
# Capability Token
# =============================================================================


class CapabilityToken(BaseModel):
    """
    An opaque token granting scoped access to exactly one request.

    The access URLs are derived from (request_id, id) and never change.
    """

    id: str = Field(default_factory=generate_id)
    request_id: str
    created_at: datetime = Field(default_factory=utc_now)

    # Base URLs used to derive the access links
    api_base_url: str = Field(default="https://api.covermymeds.com", exclude=True)
    web_base_url: str = Field(default="https://covermymeds.com", exclude=True)

    @computed_field
    @property
    def href(self) -> str:
        return f"{self.api_base_url}/requests/tokens/{self.id}"

    @computed_field
    @property
    def html_url(self) -> str:
        return f"{self.web_base_url}/request/{self.request_id}/view/{self.id}"

    @computed_field
    @property
    def pdf_url(self) -> str:
        return f"{self.api_base_url}/requests/{self.request_id}/pdf?token_id={self.id}"

    def to_response(self) -> dict[str, Any]:
        """JSON-ready representation for API responses."""
        return self.model_dump(mode="json")
