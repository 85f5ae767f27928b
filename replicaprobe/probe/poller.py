"""Deadline-bounded catch-up polling of one endpoint.

States: ``Polling -> CaughtUp | TimedOut``.

The deadline is checked before every fetch, so no fetch starts once it has
passed. A fetch already in flight when the deadline is reached is allowed to
finish; nothing cancels it. The poll also ends without a final sleep when
the deadline passes during a fetch.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from ..core.exceptions import ProbeFailureError
from ..domain import PollResult, ProbeAttempt
from ..logger import get_logger

if TYPE_CHECKING:
    from ..core.types import ClockFn, SleepFn
    from ..domain import PollingDeadline, WriteWitness
    from ..infrastructure.postgres.endpoint import EndpointDescriptor
    from ..infrastructure.postgres.fetcher import ReplicaStateFetcher

logger = get_logger(__name__)


class AsyncCatchUpPoller:
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

    async def aawait_visibility(
        self,
        endpoint: EndpointDescriptor,
        witness: WriteWitness,
        deadline: PollingDeadline,
        want_lag: bool,
    ) -> PollResult:
        """Poll ``endpoint`` until the witnessed row is visible or time runs out.

        Returns
        -------
        PollResult
            Attempts in order. ``caught_up`` is True only if the last attempt
            saw the row.

        Raises
        ------
        ProbeFailureError
            If a probe fails. ``exc.attempts`` holds the partial log.
        """
        log: list[ProbeAttempt] = []
        started = self._clock()
        logger.info(
            "Catch-up polling started",
            endpoint=endpoint.describe(),
            max_duration_s=deadline.max_duration_s,
            poll_interval_s=deadline.poll_interval_s,
        )

        while self._clock() - started < deadline.max_duration_s:
            try:
                observation = await self._fetcher.afetch(endpoint, witness, want_lag)
            except ProbeFailureError as e:
                e.attempts = tuple(log)
                logger.error(
                    "Catch-up polling aborted",
                    endpoint=e.endpoint,
                    query=e.query,
                    completed=len(log),
                )
                raise

            elapsed = max(0.0, self._clock() - started)
            log.append(
                ProbeAttempt(
                    sequence=len(log) + 1,
                    target=endpoint,
                    observation=observation,
                    elapsed_s=elapsed,
                )
            )

            if observation.row_visible:
                logger.info("Endpoint caught up", endpoint=endpoint.describe(), attempts=len(log), elapsed_s=elapsed)
                return PollResult(attempts=tuple(log), caught_up=True)

            if elapsed >= deadline.max_duration_s:
                break
            if deadline.poll_interval_s > 0:
                await self._sleep(deadline.poll_interval_s)

        logger.warning(
            "Endpoint did not catch up before the deadline",
            endpoint=endpoint.describe(),
            attempts=len(log),
            max_duration_s=deadline.max_duration_s,
        )
        return PollResult(attempts=tuple(log), caught_up=False)
