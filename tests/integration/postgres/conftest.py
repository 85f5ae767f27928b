"""Fixtures for a primary and one streaming hot standby.

Both containers join a private Docker network so the standby can run
``pg_basebackup -R`` against the primary's internal address. Node identities
come from ``cluster_name``: ``primary`` on the primary and ``replica-1`` on
the standby.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import asyncpg
import pytest
from docker import DockerClient  # type: ignore[import-untyped]
from docker.errors import APIError, NotFound  # type: ignore[import-untyped]
from testcontainers.postgres import PostgresContainer  # type: ignore[import-untyped]

from replicaprobe.probe.config import EndpointSettings

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

NETWORK = "replicaprobe-replication-test-network"
IMAGE = "postgres:16-alpine"
REPLICA_NAME = "replica-1"
DATA_DIR = "/var/lib/postgresql/data"

ROLE_SQL = """
    DO $$
    BEGIN
        IF NOT EXISTS (SELECT FROM pg_roles WHERE rolname = 'replicator') THEN
            CREATE ROLE replicator WITH REPLICATION LOGIN PASSWORD 'replica_pass';
        END IF;
    END
    $$;
"""


def _join_network(container: PostgresContainer) -> str:
    """Attach ``container`` to the shared network and return its address there."""
    client = DockerClient.from_env()
    try:
        network = client.networks.get(NETWORK)
    except NotFound:
        network = client.networks.create(NETWORK, driver="bridge")
    network.connect(container.get_wrapped_container())

    wrapped = container.get_wrapped_container()
    wrapped.reload()
    address: str = wrapped.attrs["NetworkSettings"]["Networks"][NETWORK]["IPAddress"]
    return address


def _remove_network() -> None:
    try:
        network = DockerClient.from_env().networks.get(NETWORK)
        network.reload()
        if not network.attrs.get("Containers"):
            network.remove()
    except (NotFound, APIError):
        # Already gone, or a container is still attached.
        return


def _exec(container: PostgresContainer, script: str, what: str) -> None:
    result = container.get_wrapped_container().exec_run(["sh", "-c", script])
    if result.exit_code != 0:
        msg = f"{what} failed: {result.output.decode()}"
        raise RuntimeError(msg)


async def _create_replicator(primary: PostgresContainer) -> None:
    _exec(
        primary,
        f"""
        set -e
        if ! grep -q "host replication replicator" {DATA_DIR}/pg_hba.conf; then
            echo "host replication replicator 0.0.0.0/0 md5" >> {DATA_DIR}/pg_hba.conf
        fi
        """,
        "pg_hba.conf update",
    )
    conn = await asyncpg.connect(
        host=primary.get_container_host_ip(),
        port=int(primary.get_exposed_port(5432)),
        database=primary.dbname,
        user=primary.username,
        password=primary.password,
    )
    try:
        await conn.execute(ROLE_SQL)
        await conn.execute("SELECT pg_reload_conf()")
    finally:
        await conn.close()


class StandbyContainer(PostgresContainer):  # type: ignore[misc]
    """Container whose postgres is started by hand after the base backup.

    PID 1 is a keep-alive shell, so the image's own entrypoint never
    initialises a fresh cluster.
    """

    def __init__(self) -> None:
        super().__init__(image=IMAGE, driver=None)  # type: ignore[misc]
        self.with_command(["sh", "-c", "while true; do sleep 86400; done"])  # type: ignore[misc]

    def _connect(self) -> None:
        # postgres is not running yet
        return

    def follow(self, primary_address: str) -> None:
        _exec(
            self,
            f"""
            set -e
            rm -rf {DATA_DIR} && mkdir -p {DATA_DIR}
            PGPASSWORD=replica_pass pg_basebackup -h {primary_address} -p 5432 -U replicator \\
                -D {DATA_DIR} -Fp -Xs -R
            chown -R postgres:postgres {DATA_DIR} && chmod 700 {DATA_DIR}
            su postgres -c 'pg_ctl start -w -D {DATA_DIR} -l /tmp/standby.log \\
                -o "-c hot_standby=on -c cluster_name={REPLICA_NAME}"'
            """,
            "Standby setup",
        )


@pytest.fixture(scope="class")
def primary_container(docker_available: None) -> Iterator[tuple[PostgresContainer, str]]:  # noqa: ARG001
    """Primary with WAL streaming enabled, plus its address on the shared network."""
    container = PostgresContainer(image=IMAGE, driver=None).with_command(
        "postgres -c wal_level=replica -c max_wal_senders=4 -c hot_standby=on -c cluster_name=primary"
    )
    container.start()
    try:
        address = _join_network(container)
        asyncio.run(_create_replicator(container))
        yield container, address
    finally:
        container.stop()
        _remove_network()


@pytest.fixture(scope="class")
def replica_container(primary_container: tuple[PostgresContainer, str]) -> Iterator[StandbyContainer]:
    _, primary_address = primary_container
    container = StandbyContainer()
    container.start()
    try:
        _join_network(container)
        container.follow(primary_address)
        yield container
    finally:
        container.stop()


@pytest.fixture
def replication_settings(
    primary_container: tuple[PostgresContainer, str],
    replica_container: StandbyContainer,
    locator_for: Callable[[PostgresContainer], str],
) -> EndpointSettings:
    """Endpoint settings where sync, balancer and async all reach the standby."""
    primary, _ = primary_container
    replica = locator_for(replica_container)
    return EndpointSettings(
        database_url=locator_for(primary),
        database_url_read_sync=replica,
        database_url_read_balancer=replica,
        database_url_read_async=replica,
    )
