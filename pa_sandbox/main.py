"""
PA Sandbox - Main entry point.

Runs the API with uvicorn:

    python -m pa_sandbox.main --port 3000
"""

from __future__ import annotations

import argparse

import uvicorn

from pa_sandbox.config import get_settings


ENDPOINTS = [
    "POST   /requests",
    "GET    /requests/{id}",
    "PUT    /requests/{id}",
    "DELETE /requests/{id}",
    "POST   /requests/search",
    "POST   /requests/tokens",
    "DELETE /requests/tokens/{token_id}",
    "GET    /request-pages/{id}",
]


def banner(host: str, port: int, api_version: str) -> str:
    """Startup summary of the endpoints and the parameters they expect."""
    lines = [f"PA sandbox running on http://{host}:{port}", "", "Available endpoints:"]
    lines += [f"  {endpoint}" for endpoint in ENDPOINTS]
    lines += [
        "",
        "Remember to include:",
        f"  - v={api_version} query parameter",
        "  - api_id query parameter",
        "  - Authorization header (Bearer <api_id>+<token_id> or Basic)",
        "  - token_id parameter where required",
    ]
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Run the PA sandbox API")
    parser.add_argument("--host", default=settings.api_host)
    parser.add_argument("--port", type=int, default=settings.api_port)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args(argv)

    print(banner(args.host, args.port, settings.api_version))
    uvicorn.run(
        "pa_sandbox.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
