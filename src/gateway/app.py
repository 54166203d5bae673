from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config.settings import Settings, get_settings
from src.constants import HEALTH_PATH, MCP_PATH, MCP_SERVER_VERSION, SERVICE_NAME
from src.gateway.auth import BearerAuthenticator
from src.gateway.dispatch import McpEndpoint
from src.gateway.mcp_server import build_mcp_server
from src.gateway.protocol import HealthResponse
from src.tools.builtins import register_builtins
from src.tools.registry import ToolRegistry
from src.vault.client import VaultClient

logger = structlog.get_logger()

CORS_ALLOWED_METHODS = ["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"]
CORS_ALLOWED_HEADERS = ["Accept", "Content-Type", "mcp-session-id", "Authorization"]
CORS_EXPOSED_HEADERS = ["Mcp-Session-Id"]

router = APIRouter()


@router.get(HEALTH_PATH)
async def health() -> dict[str, str]:
    return HealthResponse().model_dump()


def build_registry(settings: Settings, vault_client: VaultClient) -> ToolRegistry:
    """Register the KV tools and freeze the registry for the process lifetime."""
    registry = ToolRegistry()
    register_builtins(registry, vault_client, settings.vault.token)
    registry.freeze()
    return registry


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: everything is wired in create_app, this only reports it."""
    settings: Settings = app.state.settings
    logger.info(
        "gateway_started",
        vault_url=settings.vault.base_url,
        auth_enabled=app.state.authenticator.enabled,
        tools=app.state.tool_registry.names(),
    )
    if not settings.vault.token:
        logger.warning("vault_token_missing", msg="VAULT_TOKEN is empty; backend calls will fail")

    yield

    logger.info("gateway_stopped")


def create_app(
    settings: Settings | None = None,
    *,
    vault_client: VaultClient | None = None,
) -> FastAPI:
    """Build the gateway application from an immutable settings snapshot."""
    settings = settings or get_settings()
    vault_client = vault_client or VaultClient(settings.vault)

    registry = build_registry(settings, vault_client)
    authenticator = BearerAuthenticator(settings.mcp.auth_token)
    mcp_server = build_mcp_server(registry)

    app = FastAPI(title="Vault MCP Gateway", version=MCP_SERVER_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.tool_registry = registry
    app.state.authenticator = authenticator
    app.state.mcp_server = mcp_server

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.mcp.cors_origin_list,
        allow_methods=CORS_ALLOWED_METHODS,
        allow_headers=CORS_ALLOWED_HEADERS,
        expose_headers=CORS_EXPOSED_HEADERS,
    )

    app.include_router(router)
    # Raw ASGI route: any method, the transport decides what it supports.
    app.add_route(MCP_PATH, McpEndpoint(mcp_server, authenticator))

    logger.debug("app_created", service=SERVICE_NAME)
    return app
