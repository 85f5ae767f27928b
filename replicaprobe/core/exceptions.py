"""Exception hierarchy for the probing engine.

Every failure carries enough context (endpoint name, failing sub-query,
missing setting) to render a precise diagnostic without re-probing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..domain import ProbeAttempt, WriteWitness
    from .enums import ProbePhase


class ReplicaProbeError(Exception):
    """Base class for all probing errors."""


class InvalidLocatorError(ReplicaProbeError):
    """A connection locator could not be parsed as a URI."""


class MissingEndpointError(ReplicaProbeError):
    """One or more required endpoints are not configured."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(f"{' and '.join(self.missing)} must be set.")


class ProbeFailureError(ReplicaProbeError):
    """A probe against one endpoint failed.

    Attributes
    ----------
    endpoint : str
        Name of the endpoint that was probed.
    query : str
        Name of the failed sub-query (``connect`` for connection failures).
    reason : str
        Driver error message.
    attempts : tuple[ProbeAttempt, ...]
        Attempts completed before the failure. Filled in by the session or
        poller that was running when the probe failed.
    phase : ProbePhase or None
        Phase of a full run that failed. Set by ``ReplicationProbe``.
    witness : WriteWitness or None
        Row written before the failure. Set by ``ReplicationProbe``.
    reads : tuple[ProbeAttempt, ...]
        Read-session attempts completed before the failure. Equal to
        ``attempts`` when the session itself failed; the full read log when
        catch-up polling failed.
    """

    def __init__(self, endpoint: str, query: str, reason: str) -> None:
        self.endpoint = endpoint
        self.query = query
        self.reason = reason
        self.attempts: tuple[ProbeAttempt, ...] = ()
        self.phase: ProbePhase | None = None
        self.witness: WriteWitness | None = None
        self.reads: tuple[ProbeAttempt, ...] = ()
        super().__init__(f"Probe of endpoint {endpoint!r} failed during {query!r}: {reason}")


class WitnessError(ReplicaProbeError):
    """The write on the primary did not produce a usable witness."""
