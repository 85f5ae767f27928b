"""Plain-text rows for rendering attempt logs as tables.

Cells are strings without markup so any table renderer can consume them.
The lag column is only meaningful when lag was requested; otherwise it is
``"-"``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.enums import LagStatus

if TYPE_CHECKING:
    from ..domain import ProbeAttempt, ReplicaObservation

READ_HEADERS: tuple[str, ...] = ("attempt", "node", "replica", "found")
POLL_HEADERS: tuple[str, ...] = ("attempt", "elapsed", "node", "found")
LAG_HEADER = "lsn_lag_bytes"
NOT_REQUESTED = "-"


def read_headers(want_lag: bool) -> list[str]:
    return [*READ_HEADERS, LAG_HEADER] if want_lag else list(READ_HEADERS)


def poll_headers(want_lag: bool) -> list[str]:
    return [*POLL_HEADERS, LAG_HEADER] if want_lag else list(POLL_HEADERS)


def lag_cell(observation: ReplicaObservation, want_lag: bool) -> str:
    if not want_lag or observation.lag == LagStatus.NOT_REQUESTED:
        return NOT_REQUESTED
    if observation.lag == LagStatus.UNKNOWN:
        return LagStatus.UNKNOWN.value
    return str(observation.lag_bytes)


def found_cell(observation: ReplicaObservation) -> str:
    return "yes" if observation.row_visible else "no"


def build_read_row(attempt: ProbeAttempt, total: int, want_lag: bool) -> list[str]:
    """``[i/N, node, replica, found(, lag)]`` for one session attempt."""
    observation = attempt.observation
    row = [
        f"{attempt.sequence}/{total}",
        observation.node_identity,
        observation.is_replica.value,
        found_cell(observation),
    ]
    if want_lag:
        row.append(lag_cell(observation, want_lag))
    return row


def build_poll_row(attempt: ProbeAttempt, want_lag: bool) -> list[str]:
    """``[i, <ms>ms, node, found(, lag)]`` for one catch-up attempt."""
    observation = attempt.observation
    row = [
        str(attempt.sequence),
        f"{attempt.elapsed_ms}ms",
        observation.node_identity,
        found_cell(observation),
    ]
    if want_lag:
        row.append(lag_cell(observation, want_lag))
    return row
