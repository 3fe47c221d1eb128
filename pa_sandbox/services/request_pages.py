"""
Request pages - the form a prescriber fills in for a PA request.

The sandbox serves one canned form (patient name, date of birth, insurance
type) with submit/save actions for any id. A page is a pure function of the
request id, so it is built on every call and nothing is kept between calls.
"""

from __future__ import annotations

from typing import Any

from pa_sandbox.auth.capabilities import Operation
from pa_sandbox.auth.context import AuthContext
from pa_sandbox.auth.policies import AccessPolicy


INSURANCE_CHOICES = [
    {"code": "COMMERCIAL", "display": "Commercial Insurance"},
    {"code": "MEDICARE", "display": "Medicare"},
    {"code": "MEDICAID", "display": "Medicaid"},
]


class RequestPageService:
    """Builds request pages."""

    def __init__(
        self,
        policy: AccessPolicy | None = None,
        api_base_url: str = "https://api.covermymeds.com",
    ):
        self.policy = policy or AccessPolicy()
        self.api_base_url = api_base_url.rstrip("/")

    def get_page(self, ctx: AuthContext, request_id: str) -> dict[str, Any]:
        self.policy.enforce(Operation.READ_PAGE, ctx)
        return self._build_page(request_id)

    def _build_page(self, request_id: str) -> dict[str, Any]:
        return {
            "id": request_id,
            "forms": [{
                "identifier": f"pa_form_{request_id}",
                "question_sets": [{
                    "title": "Patient Information",
                    "questions": [
                        {
                            "question_id": "q1",
                            "question_type": "FREE_TEXT",
                            "question_text": "Patient Name",
                            "flag": "REQUIRED",
                        },
                        {
                            "question_id": "q2",
                            "question_type": "DATE",
                            "question_text": "Date of Birth",
                            "flag": "REQUIRED",
                        },
                        {
                            "question_id": "q3",
                            "question_type": "CHOICE",
                            "question_text": "Insurance Type",
                            "choices": INSURANCE_CHOICES,
                        },
                    ],
                }],
            }],
            "actions": [
                self._action(request_id, "submit", "Submit PA Request"),
                self._action(request_id, "save", "Save Draft"),
            ],
        }

    def _action(self, request_id: str, ref: str, title: str) -> dict[str, str]:
        return {
            "ref": ref,
            "title": title,
            "href": f"{self.api_base_url}/request-pages/{request_id}/{ref}",
            "method": "POST",
            "display": "DEFAULT",
        }
