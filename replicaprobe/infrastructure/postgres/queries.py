"""Named, parameterized queries issued by a probe.

Values are always bound as ``$n`` parameters. The only identifier is the
probed table, validated by `FetcherSettings` and quoted once in `for_table`.
"""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict


class ProbeQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    sql: str


NODE_IDENTITY = ProbeQuery(
    name="node_identity",
    sql="SELECT current_setting('cluster_name', true) AS node",
)

REPLICA_ROLE = ProbeQuery(
    name="replica_role",
    sql="SELECT pg_is_in_recovery() AS is_replica",
)

# pg_lsn has no binary codec in asyncpg, so the position travels as text.
REPLICATION_LAG = ProbeQuery(
    name="replication_lag",
    sql=(
        "SELECT CASE WHEN pg_is_in_recovery() "
        "THEN pg_wal_lsn_diff($1::text::pg_lsn, pg_last_wal_replay_lsn())::bigint "
        "ELSE 0 END AS lag_bytes"
    ),
)

CURRENT_WAL_LSN = ProbeQuery(
    name="current_wal_lsn",
    sql="SELECT pg_current_wal_lsn()::text AS lsn",
)


class TableQueries(BaseModel):
    """Queries bound to the table that holds the witnessed row."""

    model_config = ConfigDict(frozen=True)

    row_visibility: ProbeQuery
    insert_witness: ProbeQuery
    create_table: ProbeQuery

    @classmethod
    def for_table(cls, table: str) -> Self:
        quoted = '"' + table.replace('"', '""') + '"'
        return cls(
            row_visibility=ProbeQuery(
                name="row_visibility",
                sql=f"SELECT 1 FROM {quoted} WHERE id = $1",
            ),
            insert_witness=ProbeQuery(
                name="insert_witness",
                sql=f"INSERT INTO {quoted} (name, price) VALUES ($1, $2) RETURNING id",
            ),
            create_table=ProbeQuery(
                name="create_table",
                sql=(
                    f"CREATE TABLE IF NOT EXISTS {quoted} ("
                    "id SERIAL PRIMARY KEY, "
                    "name TEXT NOT NULL, "
                    "price NUMERIC(10, 2) NOT NULL)"
                ),
            ),
        )
