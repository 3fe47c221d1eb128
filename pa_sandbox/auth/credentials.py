"""
Credential parsing - turns an Authorization header into a typed credential.

Two schemes are understood:

    Bearer <client_id>+<capability_token_id>   -> ScopedCapability
    Basic base64(<username>:<password>)        -> AdministrativeCredential

Parsing only checks the SHAPE of a credential. Whether a capability token
really exists is not this module's concern.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Union

from pa_sandbox.core.errors import (
    MalformedCredential,
    MissingCredential,
    UnsupportedScheme,
)


BEARER_DELIMITER = "+"


@dataclass(frozen=True)
class ScopedCapability:
    """Bearer credential scoped to one request via a capability token."""

    client_id: str
    capability_token_id: str

    @property
    def kind(self) -> str:
        return "bearer"


@dataclass(frozen=True)
class AdministrativeCredential:
    """
    Basic credential for token lifecycle operations.

    The sandbox accepts any non-empty username/password pair.
    """

    username: str
    password: str

    @property
    def kind(self) -> str:
        return "basic"

    def __repr__(self) -> str:
        return f"AdministrativeCredential(username={self.username!r}, password='***')"


Credential = Union[ScopedCapability, AdministrativeCredential]


def parse_authorization(header: str | None) -> Credential:
    """
    Parse a raw Authorization header.

    Raises:
        MissingCredential: header absent or blank
        UnsupportedScheme: neither Bearer nor Basic
        MalformedCredential: scheme recognized, payload has the wrong shape
    """
    if header is None or not header.strip():
        raise MissingCredential()

    scheme, _, value = header.partition(" ")
    if scheme == "Bearer":
        return _parse_bearer(value)
    if scheme == "Basic":
        return _parse_basic(value)
    raise UnsupportedScheme()


def _parse_bearer(value: str) -> ScopedCapability:
    parts = value.strip().split(BEARER_DELIMITER)
    if len(parts) != 2 or not all(parts):
        raise MalformedCredential("Invalid bearer token format")
    client_id, capability_token_id = parts
    return ScopedCapability(client_id=client_id, capability_token_id=capability_token_id)


def _parse_basic(value: str) -> AdministrativeCredential:
    try:
        decoded = base64.b64decode(value.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise MalformedCredential("Invalid basic auth format")

    username, _, password = decoded.partition(":")
    if not username or not password:
        raise MalformedCredential("Invalid basic auth format")
    return AdministrativeCredential(username=username, password=password)
