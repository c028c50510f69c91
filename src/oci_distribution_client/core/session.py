"""HTTP session factory."""

import aiohttp

from .types import RegistryConfig


def create_session(
    config: RegistryConfig, connector: aiohttp.BaseConnector | None = None
) -> aiohttp.ClientSession:
    """Create the aiohttp session used as the client's transport.

    Must be called from within a running event loop.

    Args:
        config: Registry configuration (timeout, user agent)
        connector: Optional connector for connection pooling
    """
    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=config.timeout),
        headers={"User-Agent": config.user_agent},
    )
