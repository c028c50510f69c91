"""Test configuration and fixtures."""

import asyncio
import os
import socket

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

from oci_distribution_client import RegistryClient
from tests.helpers import TEST_REPO, FakeRegistry


def is_port_open(host, port):
    """Check if a port is open."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(1)
            result = sock.connect_ex((host, port))
            return result == 0
    except OSError:
        return False


@pytest_asyncio.fixture
async def serve():
    """Serve aiohttp applications on localhost; yields a factory returning base URLs."""
    servers = []

    async def _serve(app):
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return f"http://{server.host}:{server.port}"

    yield _serve

    for server in servers:
        await server.close()


@pytest.fixture
def fake_registry():
    """In-memory registry state."""
    return FakeRegistry()


@pytest_asyncio.fixture
async def fake_registry_url(serve, fake_registry):
    """URL of the running in-memory registry."""
    return await serve(fake_registry.app())


@pytest_asyncio.fixture
async def client(fake_registry_url):
    """Client bound to TEST_REPO on the in-memory registry."""
    async with RegistryClient(fake_registry_url, TEST_REPO) as registry_client:
        yield registry_client


@pytest.fixture(scope="session")
def registry_port():
    """Get registry port for testing."""
    return int(os.getenv("REGISTRY_PORT", "15000"))


@pytest_asyncio.fixture
async def registry_url(registry_port):
    """Get real registry URL and ensure it's available."""
    url = f"http://localhost:{registry_port}"

    # Wait for registry to be available (for CI)
    max_attempts = 30
    for attempt in range(max_attempts):
        if is_port_open("localhost", registry_port):
            async with RegistryClient(url, "library/probe") as probe:
                if await probe.ping():
                    return url

        if attempt < max_attempts - 1:
            await asyncio.sleep(1)

    # Skip if registry not available
    pytest.skip(f"Registry not available at {url}")


# Pytest configuration
def pytest_configure(config):
    """Configure pytest markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test requiring registry"
    )
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


def pytest_collection_modifyitems(config, items):
    """Modify test collection."""
    # Skip integration tests if no registry
    skip_integration = pytest.mark.skip(reason="Registry not available")

    for item in items:
        if (
            "integration" in item.keywords
            and os.getenv("REGISTRY_AVAILABLE", "false").lower() != "true"
        ):
            item.add_marker(skip_integration)
