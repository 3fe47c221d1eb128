"""
FastAPI application for the PA sandbox.

This is the HTTP API that the CLI, dashboard and assistant tools talk to.
Every /requests and /request-pages route resolves an AuthContext from the
Authorization header and enforces the access policy in a route dependency.
The JSON body is read only after that, so credential and policy errors
always win over a malformed body.
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pa_sandbox.auth import AccessPolicy, AuthContext, Operation, get_auth_context, require
from pa_sandbox.config import get_settings
from pa_sandbox.core.errors import EndpointDeprecated, SandboxError, ValidationFailed
from pa_sandbox.integrations.sentry import capture_exception, init_sentry
from pa_sandbox.services import RequestPageService, RequestService
from pa_sandbox.storage import StorageProvider, create_local_storage

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# =============================================================================
# App State
# =============================================================================


class AppState:
    """Application state - initialized at startup."""

    policy: AccessPolicy
    storage: StorageProvider
    request_service: RequestService
    page_service: RequestPageService


state = AppState()


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and tear down app resources."""
    settings = get_settings()
    configure_logging(settings.log_level)

    if init_sentry():
        logger.info("Sentry error tracking enabled")

    # Fresh, empty stores for every process start
    policy = AccessPolicy(supported_version=settings.api_version)
    state.policy = policy
    app.state.policy = policy
    state.storage = create_local_storage(
        api_base_url=settings.api_base_url,
        web_base_url=settings.web_base_url,
    )
    state.request_service = RequestService(state.storage, policy)
    state.page_service = RequestPageService(policy, api_base_url=settings.api_base_url)

    logger.info("PA sandbox starting in %s mode", settings.environment)

    yield

    logger.info("PA sandbox shutting down")


# =============================================================================
# App Setup
# =============================================================================


app = FastAPI(
    title="PA Sandbox API",
    description="Sandbox emulating a prior-authorization request workflow",
    version="0.1.0",
    lifespan=lifespan,
)


settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def access_log_middleware(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    logger.info(
        "%s %s %s %.1fms",
        request.method, request.url.path, response.status_code,
        (time.time() - start) * 1000,
    )
    return response


# =============================================================================
# Error Handling
# =============================================================================


@app.exception_handler(SandboxError)
async def sandbox_error_handler(request: Request, exc: SandboxError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    violations = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    error = ValidationFailed(violations)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    capture_exception(exc, path=request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


# =============================================================================
# Dependencies
# =============================================================================


def get_request_service() -> RequestService:
    return state.request_service


def get_page_service() -> RequestPageService:
    return state.page_service


async def read_json_body(request: Request) -> Any:
    """
    Parse the JSON body, or None when there is none.

    Routes call this after the policy dependency has run.
    """
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationFailed(["body must be valid JSON"], "Invalid JSON body")


# =============================================================================
# Health Check
# =============================================================================


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "pa-sandbox"}


# =============================================================================
# Search & Tokens (registered before /requests/{request_id})
# =============================================================================


@app.post("/requests/search")
async def search_requests(
    request: Request,
    ctx: AuthContext = Depends(require(Operation.SEARCH)),
    service: RequestService = Depends(get_request_service),
):
    """
    Find requests by the tokens the caller holds.

    Body: {"token_ids": ["...", "..."]}
    """
    found = service.search_requests(ctx, await read_json_body(request))
    return {"requests": [item.to_response() for item in found]}


@app.get("/requests/search")
async def search_requests_deprecated(ctx: AuthContext = Depends(get_auth_context)):
    """GET search was replaced by POST /requests/search."""
    raise EndpointDeprecated()


@app.post("/requests/tokens", status_code=201)
async def issue_tokens(
    request: Request,
    ctx: AuthContext = Depends(require(Operation.ISSUE_TOKENS)),
    service: RequestService = Depends(get_request_service),
):
    """
    Issue capability tokens. Requires Basic auth.

    Body: {"request_ids": ["...", "..."]}
    """
    tokens = service.issue_tokens(ctx, await read_json_body(request))
    return {"tokens": [token.to_response() for token in tokens]}


@app.delete("/requests/tokens/{token_id}", status_code=204, response_class=Response)
async def revoke_token(
    token_id: str,
    ctx: AuthContext = Depends(require(Operation.REVOKE_TOKEN)),
    service: RequestService = Depends(get_request_service),
):
    """Revoke a capability token. Requires Basic auth."""
    service.revoke_token(ctx, token_id)
    return Response(status_code=204)


# =============================================================================
# Requests
# =============================================================================


@app.post("/requests", status_code=201)
async def create_request(
    request: Request,
    ctx: AuthContext = Depends(require(Operation.CREATE)),
    service: RequestService = Depends(get_request_service),
):
    """
    Create a PA request.

    Body: {"request": {"state": "CA", "patient": {...}, "prescription": {...}}}
    """
    created = service.create_request(ctx, await read_json_body(request))
    return created.to_response()


@app.get("/requests/{request_id}")
async def get_request(
    request_id: str,
    ctx: AuthContext = Depends(require(Operation.READ)),
    service: RequestService = Depends(get_request_service),
):
    """Get a request by ID. Requires token_id."""
    return service.get_request(ctx, request_id).to_response()


@app.put("/requests/{request_id}", status_code=204, response_class=Response)
async def update_request(
    request_id: str,
    request: Request,
    ctx: AuthContext = Depends(require(Operation.UPDATE)),
    service: RequestService = Depends(get_request_service),
):
    """
    Update a request's memo. Requires token_id.

    Body: {"request": {"memo": "..."}}
    """
    service.update_request(ctx, request_id, await read_json_body(request))
    return Response(status_code=204)


@app.delete("/requests/{request_id}", status_code=204, response_class=Response)
async def delete_request(
    request_id: str,
    request: Request,
    ctx: AuthContext = Depends(require(Operation.DELETE)),
    service: RequestService = Depends(get_request_service),
):
    """
    Soft-delete a request. Requires token_id.

    Body: {"remote_user": {"display_name": "...", "phone_number": "...", "fax_number": "..."}}
    """
    service.delete_request(ctx, request_id, await read_json_body(request))
    return Response(status_code=204)


# =============================================================================
# Request Pages
# =============================================================================


@app.get("/request-pages/{request_id}")
async def get_request_page(
    request_id: str,
    ctx: AuthContext = Depends(require(Operation.READ_PAGE)),
    service: RequestPageService = Depends(get_page_service),
):
    """Get the form page for a request. Requires token_id."""
    return service.get_page(ctx, request_id)
