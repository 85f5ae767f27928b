from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.enums import RoutingMode

if TYPE_CHECKING:
    from ..infrastructure.postgres.endpoint import EndpointDescriptor


def resolve_target(
    mode: RoutingMode,
    sticky: EndpointDescriptor,
    balanced: EndpointDescriptor,
) -> EndpointDescriptor:
    """Pick the endpoint a read goes to.

    ``STICKY`` pins every read to the synchronous replica (read-your-writes).
    ``BALANCED`` hands every read to the load-balanced endpoint; which backend
    the balancer picks is not visible here, only what comes back.
    """
    if mode == RoutingMode.STICKY:
        return sticky
    return balanced
