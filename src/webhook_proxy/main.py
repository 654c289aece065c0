"""FastAPI application entry point."""

import argparse
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from pydantic import ValidationError

from webhook_proxy import __version__
from webhook_proxy.config import Settings, get_settings
from webhook_proxy.exceptions import InvalidConfigurationError
from webhook_proxy.proxy import Gateway, build_webhook_router
from webhook_proxy.proxy.router import ALL_METHODS

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Configure structured logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def create_app(gateway: Gateway | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    When no gateway is given one is built from the environment settings, so an
    invalid configuration fails here, before any traffic is served.
    """
    if gateway is None:
        settings = get_settings()
        setup_logging(settings.log_level)
        gateway = Gateway.from_settings(settings)

    config = gateway.config

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        """Application lifespan handler."""
        logger.info(
            f"Webhook proxy starting up: provider={config.provider_kind} "
            f"upstream={config.upstream_url} allowed_paths={list(config.allowed_paths) or 'all'}"
        )
        yield
        logger.info("Webhook proxy shutting down")

    app = FastAPI(
        title="Webhook Proxy",
        description="Validates source-control webhooks and relays them to an upstream service",
        version=__version__,
        lifespan=lifespan,
    )

    @app.api_route("/health", methods=ALL_METHODS)
    async def health_check(request: Request) -> dict[str, Any]:
        """Health check endpoint."""
        if request.method not in ("GET", "HEAD"):
            raise HTTPException(
                status_code=405, detail="Method Not Allowed", headers={"Allow": "GET, HEAD"}
            )
        return {"status": "healthy", "version": __version__}

    # Catch-all, so it must come after every other route
    app.include_router(build_webhook_router(gateway), tags=["webhook"])

    return app


def cli() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Webhook Proxy - validate and forward source-control webhooks"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the proxy server")
    serve_parser.add_argument("--host", default=None, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    serve_parser.add_argument("--upstream-url", default=None, help="Upstream base URL")
    serve_parser.add_argument("--provider", default=None, help="Webhook provider (github, gitlab)")
    serve_parser.add_argument("--secret", default=None, help="Webhook secret")
    serve_parser.add_argument(
        "--allowed-paths", default=None, help="Comma-separated list of allowed upstream paths"
    )

    args = parser.parse_args()

    if args.command != "serve":
        parser.print_help()
        return

    overrides = {
        "host": args.host,
        "port": args.port,
        "upstream_url": args.upstream_url,
        "provider": args.provider,
        "webhook_secret": args.secret,
        "allowed_paths": args.allowed_paths,
    }

    try:
        settings = Settings(**{key: value for key, value in overrides.items() if value is not None})
        setup_logging(settings.log_level)
        app = create_app(Gateway.from_settings(settings))
    except (ValidationError, InvalidConfigurationError) as e:
        setup_logging("INFO")
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    cli()
