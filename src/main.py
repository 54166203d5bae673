"""Process entry point: bind the gateway to a socket, over TLS when configured.

    python -m src.main
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

import structlog
import uvicorn

from src.config.settings import McpSettings, get_settings
from src.gateway.app import create_app
from src.infra.logging import setup_logging

logger = structlog.get_logger()


@dataclass(frozen=True)
class ListenerPlan:
    scheme: str
    ssl_keyfile: Path | None = None
    ssl_certfile: Path | None = None


def plan_listener(settings: McpSettings) -> ListenerPlan:
    """HTTPS only when TLS is enabled and both key and certificate exist; HTTP otherwise."""
    if settings.tls_enabled:
        if settings.tls_key.is_file() and settings.tls_cert.is_file():
            return ListenerPlan("https", settings.tls_key, settings.tls_cert)
        logger.warning(
            "listener_tls_material_missing",
            tls_key=str(settings.tls_key),
            tls_cert=str(settings.tls_cert),
            msg="TLS enabled but certificate files not found; serving plain HTTP",
        )
    return ListenerPlan("http")


def main() -> None:
    settings = get_settings()
    setup_logging(json_output=settings.log.json_output, log_level=settings.log.level)

    plan = plan_listener(settings.mcp)
    config = uvicorn.Config(
        create_app(settings),
        host=settings.mcp.host,
        port=settings.mcp.port,
        ssl_keyfile=str(plan.ssl_keyfile) if plan.ssl_keyfile else None,
        ssl_certfile=str(plan.ssl_certfile) if plan.ssl_certfile else None,
        log_level=settings.log.level.lower(),
        log_config=None,  # logging already configured by setup_logging
    )
    server = uvicorn.Server(config)

    logger.info(
        "listener_starting",
        url=f"{plan.scheme}://{settings.mcp.host}:{settings.mcp.port}",
        certificate=str(plan.ssl_certfile) if plan.ssl_certfile else None,
    )
    try:
        server.run()
    except OSError:
        logger.exception("listener_bind_failed", port=settings.mcp.port)
        sys.exit(1)
    except SystemExit as e:
        # uvicorn exits on its own when the socket cannot be bound
        if e.code not in (0, None):
            logger.error("listener_bind_failed", port=settings.mcp.port, exit_code=e.code)
        raise

    if not server.started:
        logger.error("listener_start_failed", port=settings.mcp.port)
        sys.exit(1)


if __name__ == "__main__":
    main()
