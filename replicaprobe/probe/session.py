"""Bounded sequence of read attempts against the routed endpoint."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from ..core.exceptions import ProbeFailureError
from ..domain import ProbeAttempt
from ..logger import get_logger
from .routing import resolve_target

if TYPE_CHECKING:
    from ..core.enums import RoutingMode
    from ..core.types import ClockFn, SleepFn
    from ..domain import WriteWitness
    from ..infrastructure.postgres.fetcher import ReplicaStateFetcher
    from .config import EndpointSet

logger = get_logger(__name__)


class ConsistencyProbeSession:
    """Runs read attempts one after another and keeps the ordered log.

    Attempts are never issued concurrently. The session owns its attempt
    log; a `ProbeFailureError` aborts the session and carries the attempts
    completed so far in ``exc.attempts``.

    Parameters
    ----------
    fetcher
        Probe used for every attempt.
    clock
        Monotonic clock in seconds.
    sleep
        Coroutine used to suspend between attempts.
    """

    __slots__ = ("_clock", "_fetcher", "_sleep")

    def __init__(
        self,
        fetcher: ReplicaStateFetcher,
        clock: ClockFn = time.monotonic,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._fetcher = fetcher
        self._clock = clock
        self._sleep = sleep

    async def arun(
        self,
        attempts: int,
        inter_attempt_delay_s: float,
        mode: RoutingMode,
        endpoints: EndpointSet,
        witness: WriteWitness,
        want_lag: bool,
    ) -> tuple[ProbeAttempt, ...]:
        """Issue ``attempts`` reads and return them in order.

        Parameters
        ----------
        attempts
            Number of reads. Values below 1 are treated as 1.
        inter_attempt_delay_s
            Pause between two consecutive reads. None after the last one.
        mode
            Routing mode, fixed for the whole session.
        endpoints
            Sticky and balanced endpoints.
        witness
            Row to look for.
        want_lag
            Whether each observation includes replay lag.

        Returns
        -------
        tuple[ProbeAttempt, ...]
            One entry per attempt, sequence numbers 1..N.

        Raises
        ------
        ProbeFailureError
            If any probe fails. ``exc.attempts`` holds the partial log.
        """
        if attempts < 1:
            logger.warning("Attempts below 1, running a single attempt", requested=attempts)
            attempts = 1

        log: list[ProbeAttempt] = []
        started = self._clock()
        logger.info(
            "Probe session started",
            mode=str(mode),
            attempts=attempts,
            delay_s=inter_attempt_delay_s,
            row_id=witness.row_id,
        )

        for sequence in range(1, attempts + 1):
            target = resolve_target(mode, endpoints.sticky, endpoints.balanced)
            try:
                observation = await self._fetcher.afetch(target, witness, want_lag)
            except ProbeFailureError as e:
                e.attempts = tuple(log)
                logger.error(
                    "Probe session aborted",
                    attempt=sequence,
                    endpoint=e.endpoint,
                    query=e.query,
                    completed=len(log),
                )
                raise

            attempt = ProbeAttempt(
                sequence=sequence,
                target=target,
                observation=observation,
                elapsed_s=max(0.0, self._clock() - started),
            )
            log.append(attempt)
            logger.info(
                "Read attempt",
                attempt=f"{sequence}/{attempts}",
                endpoint=target.describe(),
                node=observation.node_identity,
                row_visible=observation.row_visible,
                elapsed_s=round(attempt.elapsed_s, 3),
            )

            if sequence < attempts and inter_attempt_delay_s > 0:
                await self._sleep(inter_attempt_delay_s)

        return tuple(log)
