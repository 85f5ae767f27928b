"""Probe read-your-writes and eventual consistency on a replicated PostgreSQL cluster.

Usage
-----
::

    probe = ReplicationProbe(EndpointSettings(), ProbeOptions(routing_mode="sticky", want_lag=True))
    report = await probe.arun()
"""

from __future__ import annotations

from .core import (
    InvalidLocatorError,
    LagStatus,
    MissingEndpointError,
    PollOutcome,
    ProbeFailureError,
    ProbePhase,
    ReplicaProbeError,
    ReplicaRole,
    RoutingMode,
    WitnessError,
)
from .domain import PollingDeadline, PollResult, ProbeAttempt, ProbeReport, ReplicaObservation, WriteWitness
from .infrastructure.postgres import EndpointDescriptor, EndpointParameters, FetcherSettings, resolve_locator
from .infrastructure.postgres.fetcher import ReplicaStateFetcher
from .infrastructure.postgres.witness import PrimaryWitnessWriter
from .logger import LoggingConfig, configure_logging
from .probe import (
    AsyncCatchUpPoller,
    ConsistencyProbeSession,
    EndpointSet,
    EndpointSettings,
    ProbeOptions,
    ReplicationProbe,
    resolve_target,
)

__all__ = [
    "AsyncCatchUpPoller",
    "ConsistencyProbeSession",
    "EndpointDescriptor",
    "EndpointParameters",
    "EndpointSet",
    "EndpointSettings",
    "FetcherSettings",
    "InvalidLocatorError",
    "LagStatus",
    "LoggingConfig",
    "MissingEndpointError",
    "PollOutcome",
    "PollResult",
    "PollingDeadline",
    "PrimaryWitnessWriter",
    "ProbeAttempt",
    "ProbeFailureError",
    "ProbePhase",
    "ProbeOptions",
    "ProbeReport",
    "ReplicaObservation",
    "ReplicaProbeError",
    "ReplicaRole",
    "ReplicaStateFetcher",
    "ReplicationProbe",
    "RoutingMode",
    "WitnessError",
    "WriteWitness",
    "configure_logging",
    "resolve_locator",
    "resolve_target",
]
