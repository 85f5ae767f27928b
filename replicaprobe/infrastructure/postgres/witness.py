from __future__ import annotations

import secrets
from decimal import Decimal
from typing import TYPE_CHECKING

from ...core.exceptions import ProbeFailureError, WitnessError
from ...domain import WriteWitness
from ...logger import get_logger
from .fetcher import PROBE_ERRORS, ReplicaStateFetcher
from .queries import CURRENT_WAL_LSN, TableQueries

if TYPE_CHECKING:
    from .endpoint import EndpointDescriptor

logger = get_logger(__name__)


def _demo_row() -> tuple[str, Decimal]:
    name = f"Demo {secrets.token_hex(3)}"
    price = Decimal(secrets.randbelow(99_99 - 10_00 + 1) + 10_00) / 100
    return name, price


class PrimaryWitnessWriter:
    """Writes one demo row on the primary and returns its `WriteWitness`.

    Uses the same short-lived connection handling as the probes, so the
    primary connection is closed before any replica is read.
    """

    __slots__ = ("_fetcher", "_queries")

    def __init__(self, fetcher: ReplicaStateFetcher | None = None) -> None:
        self._fetcher = fetcher or ReplicaStateFetcher()
        self._queries = TableQueries.for_table(self._fetcher.settings.table)

    async def aensure_table(self, primary: EndpointDescriptor) -> None:
        """Create the demo table on the primary if it does not exist."""
        try:
            async with self._fetcher.aconnect(primary) as conn:
                await conn.execute(self._queries.create_table.sql)
        except ProbeFailureError as e:
            raise WitnessError(f"Could not prepare table on {primary.name!r}: {e.reason}") from e
        except PROBE_ERRORS as e:
            raise WitnessError(f"Could not prepare table on {primary.name!r}: {e}") from e

    async def awrite(self, primary: EndpointDescriptor, capture_lsn: bool) -> WriteWitness:
        """Insert a row and optionally capture ``pg_current_wal_lsn()``.

        Parameters
        ----------
        primary
            The primary endpoint.
        capture_lsn
            Read the primary's WAL position right after the insert.

        Returns
        -------
        WriteWitness
            Identifier of the inserted row and the captured position.

        Raises
        ------
        WitnessError
            If the insert fails or does not return an identifier.
        """
        name, price = _demo_row()
        try:
            async with self._fetcher.aconnect(primary) as conn:
                row_id = await conn.fetchval(self._queries.insert_witness.sql, name, price)
                lsn = await conn.fetchval(CURRENT_WAL_LSN.sql) if capture_lsn else None
        except ProbeFailureError as e:
            raise WitnessError(f"Could not write witness row on {primary.name!r}: {e.reason}") from e
        except PROBE_ERRORS as e:
            raise WitnessError(f"Could not write witness row on {primary.name!r}: {e}") from e

        if not row_id:
            raise WitnessError(f"Insert on {primary.name!r} did not return a row id")

        logger.info(
            "Witness row written",
            endpoint=primary.describe(),
            row_id=row_id,
            name=name,
            price=str(price),
            primary_lsn=lsn,
        )
        return WriteWitness(row_id=row_id, primary_lsn=lsn)
