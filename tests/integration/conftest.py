"""Shared fixtures for integration tests.

Provides:
- postgres_container: Session-scoped single-node PostgreSQL container
- locator_for: Builds a connection locator for any running container
- standalone_endpoint: Descriptor pointing at the single-node container

Every integration test is skipped when no Docker daemon answers.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from docker import from_env  # type: ignore[import-untyped]
from docker.errors import DockerException  # type: ignore[import-untyped]
from testcontainers.postgres import PostgresContainer  # type: ignore[import-untyped]

from replicaprobe.infrastructure.postgres import EndpointDescriptor

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


def pytest_configure(config: pytest.Config) -> None:  # noqa: ARG001
    """Point testcontainers at the local Docker socket before fixtures run."""
    if not os.environ.get("DOCKER_HOST"):
        possible_sockets = [
            Path("/var/run/docker.sock"),
            Path.home() / ".docker" / "run" / "docker.sock",
        ]
        for socket_path in possible_sockets:
            if socket_path.exists():
                os.environ["DOCKER_HOST"] = f"unix://{socket_path}"
                os.environ["TESTCONTAINERS_DOCKER_SOCKET_OVERRIDE"] = str(socket_path)
                break

    # Ryuk (testcontainers cleanup daemon) has known issues on macOS/Docker Desktop
    if sys.platform == "darwin" and not os.environ.get("TESTCONTAINERS_RYUK_DISABLED"):
        os.environ["TESTCONTAINERS_RYUK_DISABLED"] = "true"


def is_docker_available() -> bool:
    """Check the Docker daemon answers a ping, not just that a socket exists."""
    try:
        client = from_env()
        client.ping()
    except DockerException:
        return False
    else:
        return True


def container_locator(container: PostgresContainer) -> str:
    """Locator string for a running PostgreSQL container on its mapped port."""
    host = container.get_container_host_ip()
    port = int(container.get_exposed_port(5432))
    return f"postgresql://{container.username}:{container.password}@{host}:{port}/{container.dbname}"


@pytest.fixture(scope="session")
def locator_for() -> Callable[[PostgresContainer], str]:
    return container_locator


@pytest.fixture(scope="session")
def docker_available() -> None:
    if not is_docker_available():
        pytest.skip("Docker daemon not accessible")


@pytest.fixture(scope="session")
def postgres_container(docker_available: None) -> Iterator[PostgresContainer]:  # noqa: ARG001
    """Provide session-scoped PostgreSQL container.

    Yields
    ------
    PostgresContainer
        Running single-node PostgreSQL. ``cluster_name`` is left unset.
    """
    with PostgresContainer(
        "postgres:16-alpine",
        username="test_user",
        password="test_password",
        dbname="test_db",
        driver=None,
    ) as container:
        yield container


@pytest.fixture
def standalone_endpoint(postgres_container: PostgresContainer) -> EndpointDescriptor:
    return EndpointDescriptor.from_locator("standalone", container_locator(postgres_container))
