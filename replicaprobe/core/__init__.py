"""Core module exports."""

from __future__ import annotations

from .enums import LagStatus, PollOutcome, ProbePhase, ReplicaRole, RoutingMode
from .exceptions import (
    InvalidLocatorError,
    MissingEndpointError,
    ProbeFailureError,
    ReplicaProbeError,
    WitnessError,
)
from .types import ClockFn, SleepFn

__all__ = [
    "ClockFn",
    "InvalidLocatorError",
    "LagStatus",
    "MissingEndpointError",
    "PollOutcome",
    "ProbeFailureError",
    "ProbePhase",
    "ReplicaProbeError",
    "ReplicaRole",
    "RoutingMode",
    "SleepFn",
    "WitnessError",
]
