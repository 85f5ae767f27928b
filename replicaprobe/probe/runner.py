"""One complete probing run: write, read session, optional catch-up polling."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from ..core.enums import ProbePhase
from ..core.exceptions import MissingEndpointError, ProbeFailureError
from ..domain import ProbeReport
from ..infrastructure.postgres.fetcher import ReplicaStateFetcher
from ..infrastructure.postgres.witness import PrimaryWitnessWriter
from ..logger import bind_context, get_logger, unbind_context
from .poller import AsyncCatchUpPoller
from .session import ConsistencyProbeSession

if TYPE_CHECKING:
    from ..core.types import ClockFn, SleepFn
    from ..domain import PollResult
    from .config import EndpointSettings, ProbeOptions

logger = get_logger(__name__)


class ReplicationProbe:
    """Runs one bounded probing session and exits.

    Examples
    --------
    >>> probe = ReplicationProbe(EndpointSettings(), ProbeOptions(want_lag=True))
    >>> report = await probe.arun()
    >>> [a.observation.row_visible for a in report.reads]
    [True, False, True, True]
    """

    __slots__ = ("_endpoint_settings", "_fetcher", "_options", "_poller", "_session", "_writer")

    def __init__(
        self,
        endpoint_settings: EndpointSettings,
        options: ProbeOptions,
        fetcher: ReplicaStateFetcher | None = None,
        writer: PrimaryWitnessWriter | None = None,
        clock: ClockFn = time.monotonic,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._endpoint_settings = endpoint_settings
        self._options = options
        self._fetcher = fetcher or ReplicaStateFetcher()
        self._writer = writer or PrimaryWitnessWriter(self._fetcher)
        self._session = ConsistencyProbeSession(self._fetcher, clock=clock, sleep=sleep)
        self._poller = AsyncCatchUpPoller(self._fetcher, clock=clock, sleep=sleep)

    async def arun(self, ensure_table: bool = False) -> ProbeReport:
        """Write a witness row, then read it back as configured.

        Parameters
        ----------
        ensure_table
            Create the witness table on the primary first.

        Raises
        ------
        MissingEndpointError
            If a required endpoint is not configured. Raised before any I/O.
        InvalidLocatorError
            If a configured locator is malformed. Raised before any I/O.
        WitnessError
            If the write on the primary fails.
        ProbeFailureError
            If a read or catch-up probe fails. ``exc.phase`` names the failed
            phase, ``exc.witness`` the written row, ``exc.reads`` the read
            attempts completed so far and ``exc.attempts`` the partial log
            of the failed phase.
        """
        options = self._options
        endpoints = self._endpoint_settings.resolve_endpoints(
            require_async=options.await_async,
            require_primary=True,
        )
        primary = endpoints.primary
        if primary is None:
            raise MissingEndpointError(["DATABASE_URL"])

        bind_context(routing_mode=str(options.routing_mode), want_lag=options.want_lag)
        try:
            if ensure_table:
                await self._writer.aensure_table(primary)
            witness = await self._writer.awrite(primary, capture_lsn=options.want_lag)

            try:
                reads = await self._session.arun(
                    attempts=options.attempts,
                    inter_attempt_delay_s=options.inter_attempt_delay_s,
                    mode=options.routing_mode,
                    endpoints=endpoints,
                    witness=witness,
                    want_lag=options.want_lag,
                )
            except ProbeFailureError as e:
                e.phase, e.witness, e.reads = ProbePhase.SESSION, witness, e.attempts
                raise

            catch_up: PollResult | None = None
            if options.await_async and endpoints.async_replica is not None:
                try:
                    catch_up = await self._poller.aawait_visibility(
                        endpoints.async_replica,
                        witness,
                        options.polling_deadline,
                        options.want_lag,
                    )
                except ProbeFailureError as e:
                    e.phase, e.witness, e.reads = ProbePhase.CATCH_UP, witness, reads
                    raise

            report = ProbeReport(
                witness=witness,
                routing_mode=options.routing_mode,
                want_lag=options.want_lag,
                reads=reads,
                catch_up=catch_up,
            )
            logger.info(
                "Probe run finished",
                row_id=witness.row_id,
                reads=len(reads),
                all_reads_visible=report.all_reads_visible,
                caught_up=None if catch_up is None else catch_up.caught_up,
            )
            return report
        finally:
            unbind_context("routing_mode", "want_lag")
