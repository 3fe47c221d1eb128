"""Services - the operations the HTTP API exposes, with policy in front."""

from pa_sandbox.services.requests import RequestService
from pa_sandbox.services.request_pages import RequestPageService

__all__ = [
    "RequestService",
    "RequestPageService",
]
