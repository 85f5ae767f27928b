"""Per-endpoint state probe.

Each call to `ReplicaStateFetcher.afetch` opens its own connection, runs the
named queries from `queries`, and closes the connection before returning,
whatever happened in between. No connection outlives a single probe, so a
slow or wedged endpoint only affects the attempt that hit it.

Failure semantics
-----------------
A failed connection, or a failed identity/role/visibility query, raises
`ProbeFailureError`. It is never folded into ``row_visible=False``: a broken
probe must not be reported as "the replica lacks the write".

The lag query is the exception. When it fails (or returns NULL because the
standby has not replayed anything yet) the observation reports
``LagStatus.UNKNOWN``, which is deliberately distinct from a lag of zero.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import asyncpg

from ...core.enums import LagStatus, ReplicaRole
from ...core.exceptions import ProbeFailureError
from ...domain import UNKNOWN_NODE, ReplicaObservation
from ...logger import get_logger
from .config import FetcherSettings
from .queries import NODE_IDENTITY, REPLICA_ROLE, REPLICATION_LAG, ProbeQuery, TableQueries

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from ...domain import WriteWitness
    from .endpoint import EndpointDescriptor

    type ConnectFn = Callable[..., Awaitable[asyncpg.Connection]]

logger = get_logger(__name__)

PROBE_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    TimeoutError,
)


class ReplicaStateFetcher:
    """Opens a short-lived connection to one endpoint and reports its state.

    Parameters
    ----------
    settings
        Timeouts, application name and the table holding the witnessed row.
    connect
        Connection factory with the signature of ``asyncpg.connect``.

    Examples
    --------
    >>> fetcher = ReplicaStateFetcher()
    >>> observation = await fetcher.afetch(sync_endpoint, witness, want_lag=True)
    >>> observation.row_visible, observation.lag_bytes
    (True, 0)
    """

    __slots__ = ("_connect", "_settings", "_table_queries")

    def __init__(self, settings: FetcherSettings | None = None, connect: ConnectFn | None = None) -> None:
        self._settings = settings or FetcherSettings()
        self._connect = connect or asyncpg.connect
        self._table_queries = TableQueries.for_table(self._settings.table)

    @property
    def settings(self) -> FetcherSettings:
        return self._settings

    @asynccontextmanager
    async def aconnect(self, endpoint: EndpointDescriptor) -> AsyncIterator[asyncpg.Connection]:
        """Open a connection that is closed on every exit path.

        Raises
        ------
        ProbeFailureError
            If the connection cannot be established.
        """
        params = endpoint.parameters.to_connect_params(self._settings.server_settings)
        try:
            conn = await self._connect(
                **params,
                timeout=self._settings.connect_timeout_s,
                command_timeout=self._settings.query_timeout_s,
            )
        except PROBE_ERRORS as e:
            logger.warning("Probe connection failed", endpoint=endpoint.describe(), error=str(e))
            raise ProbeFailureError(endpoint.name, "connect", str(e)) from e

        try:
            yield conn
        finally:
            await self._aclose(conn, endpoint)

    async def afetch(
        self,
        endpoint: EndpointDescriptor,
        witness: WriteWitness,
        want_lag: bool,
    ) -> ReplicaObservation:
        """Probe ``endpoint`` for the witnessed row.

        Parameters
        ----------
        endpoint
            Endpoint to probe.
        witness
            The row written on the primary and, optionally, the primary's LSN.
        want_lag
            Whether to compute the replay distance in bytes.

        Returns
        -------
        ReplicaObservation
            Fresh observation for this probe.

        Raises
        ------
        ProbeFailureError
            On connection failure or identity/role/visibility query failure.
        """
        async with self.aconnect(endpoint) as conn:
            node_row = await self._afetchrow(conn, endpoint, NODE_IDENTITY)
            role_row = await self._afetchrow(conn, endpoint, REPLICA_ROLE)
            visible_row = await self._afetchrow(conn, endpoint, self._table_queries.row_visibility, witness.row_id)

            node = node_row["node"] if node_row is not None else None
            role = ReplicaRole.from_flag(role_row["is_replica"] if role_row is not None else None)

            lag, lag_bytes = LagStatus.NOT_REQUESTED, None
            if want_lag:
                lag, lag_bytes = await self._alag(conn, endpoint, role, witness.primary_lsn)

        observation = ReplicaObservation(
            node_identity=node or UNKNOWN_NODE,
            is_replica=role,
            row_visible=visible_row is not None,
            lag=lag,
            lag_bytes=lag_bytes,
        )
        logger.debug(
            "Probe completed",
            endpoint=endpoint.describe(),
            node=observation.node_identity,
            is_replica=observation.is_replica.value,
            row_visible=observation.row_visible,
            lag_bytes=observation.lag_bytes,
        )
        return observation

    async def _afetchrow(
        self,
        conn: asyncpg.Connection,
        endpoint: EndpointDescriptor,
        query: ProbeQuery,
        *args: Any,
    ) -> asyncpg.Record | None:
        try:
            return await conn.fetchrow(query.sql, *args, timeout=self._settings.query_timeout_s)
        except PROBE_ERRORS as e:
            logger.warning("Probe query failed", endpoint=endpoint.describe(), query=query.name, error=str(e))
            raise ProbeFailureError(endpoint.name, query.name, str(e)) from e

    async def _alag(
        self,
        conn: asyncpg.Connection,
        endpoint: EndpointDescriptor,
        role: ReplicaRole,
        primary_lsn: str | None,
    ) -> tuple[LagStatus, int | None]:
        if role == ReplicaRole.NO:
            return LagStatus.KNOWN, 0
        if primary_lsn is None:
            return LagStatus.UNKNOWN, None

        try:
            lag = await conn.fetchval(REPLICATION_LAG.sql, primary_lsn, timeout=self._settings.query_timeout_s)
        except PROBE_ERRORS as e:
            logger.warning(
                "Lag query failed, reporting lag as unknown",
                endpoint=endpoint.describe(),
                query=REPLICATION_LAG.name,
                error=str(e),
            )
            return LagStatus.UNKNOWN, None

        if lag is None:
            return LagStatus.UNKNOWN, None
        # Replay may already be past the captured position.
        return LagStatus.KNOWN, max(0, int(lag))

    async def _aclose(self, conn: asyncpg.Connection, endpoint: EndpointDescriptor) -> None:
        try:
            await conn.close(timeout=self._settings.connect_timeout_s)
        except PROBE_ERRORS as e:
            logger.warning(
                "Probe connection did not close cleanly, terminating",
                endpoint=endpoint.describe(),
                error=str(e),
            )
            conn.terminate()
