"""Server entry point — ``python -m hdi.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from hdi.core.config.settings import get_settings
from hdi.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the Headache Diary Insights MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.hdi_log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.hdi_allow_insecure_bind and not _is_loopback_host(settings.hdi_host):
        raise RuntimeError(
            "Refusing to bind the headache diary server to a non-loopback host without "
            "an auth layer. Set HDI_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting Headache Diary Insights server on %s:%d",
        settings.hdi_host,
        settings.hdi_port,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.hdi_host,
        port=settings.hdi_port,
    )


if __name__ == "__main__":
    run()
