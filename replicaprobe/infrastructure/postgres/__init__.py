"""PostgreSQL access for the probing engine.

This module provides:

- `resolve_locator`: connection locator -> `EndpointParameters`
- `EndpointDescriptor`: named endpoint with its resolved parameters
- `FetcherSettings`: timeouts and the probed table

The probe itself lives in `fetcher` (`ReplicaStateFetcher`) and the primary
write in `witness` (`PrimaryWitnessWriter`); both depend on the domain
models and are imported from their modules.

Usage
-----
::

    sync = EndpointDescriptor.from_locator("sync", "postgresql://app:pw@replica-sync:5432/shop")
    fetcher = ReplicaStateFetcher(FetcherSettings(table="product"))
    observation = await fetcher.afetch(sync, witness, want_lag=True)
"""

from .config import EndpointParameters, FetcherSettings
from .endpoint import EndpointDescriptor
from .locator import HINT_KEYS, resolve_locator
from .queries import ProbeQuery, TableQueries

__all__ = [
    "HINT_KEYS",
    "EndpointDescriptor",
    "EndpointParameters",
    "FetcherSettings",
    "ProbeQuery",
    "TableQueries",
    "resolve_locator",
]
