"""Replica consistency probing.

- `resolve_target`: sticky vs. balanced read routing
- `ConsistencyProbeSession`: bounded sequence of read attempts
- `AsyncCatchUpPoller`: deadline-bounded polling of the async replica
- `ReplicationProbe`: write, read session and catch-up in one run
"""

from __future__ import annotations

from .config import EndpointSet, EndpointSettings, ProbeOptions
from .poller import AsyncCatchUpPoller
from .routing import resolve_target
from .rows import build_poll_row, build_read_row, poll_headers, read_headers
from .runner import ReplicationProbe
from .session import ConsistencyProbeSession

__all__ = [
    "AsyncCatchUpPoller",
    "ConsistencyProbeSession",
    "EndpointSet",
    "EndpointSettings",
    "ProbeOptions",
    "ReplicationProbe",
    "build_poll_row",
    "build_read_row",
    "poll_headers",
    "read_headers",
    "resolve_target",
]
