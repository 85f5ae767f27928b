"""Configuration models for per-probe PostgreSQL connections.

- `EndpointParameters`: resolved connection parameters for one endpoint
- `FetcherSettings`: timeouts and the probed table shared by every fetch
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class EndpointParameters(BaseModel):
    """Connection parameters for one PostgreSQL endpoint.

    Every field is optional. An absent field is left out of the driver call
    so that asyncpg's own defaults (``PGHOST``, ``PGUSER``, ...) apply.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str | None = Field(default=None)
    port: int | None = Field(default=None, ge=1, le=65535)
    user: str | None = Field(default=None)
    password: SecretStr | None = Field(default=None)
    database: str | None = Field(default=None)
    server_version: str | None = Field(default=None, description="Informational; asyncpg negotiates the protocol")
    charset: str | None = Field(default=None, description="Sent as the client_encoding server setting")

    def to_connect_params(self, server_settings: dict[str, str] | None = None) -> dict[str, Any]:
        """Convert to ``asyncpg.connect()`` keyword arguments.

        Parameters
        ----------
        server_settings
            Extra server settings merged with the charset hint.

        Returns
        -------
        dict[str, Any]
            Only the parameters that are actually set.
        """
        params: dict[str, Any] = {
            key: value
            for key, value in (
                ("host", self.host),
                ("port", self.port),
                ("user", self.user),
                ("database", self.database),
            )
            if value is not None
        }
        if self.password is not None:
            params["password"] = self.password.get_secret_value()

        settings = dict(server_settings or {})
        if self.charset:
            settings["client_encoding"] = self.charset
        if settings:
            params["server_settings"] = settings

        return params


class FetcherSettings(BaseModel):
    """Settings shared by every short-lived probe connection."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    table: str = Field(default="product", description="Table holding the witnessed row")
    application_name: str = Field(default="replicaprobe")
    connect_timeout_s: float = Field(default=5.0, gt=0.0, le=300.0)
    query_timeout_s: float = Field(default=5.0, gt=0.0, le=300.0)

    @field_validator("table")
    @classmethod
    def _validate_table(cls, value: str) -> str:
        if not _IDENTIFIER.match(value):
            msg = f"table must be a plain SQL identifier, got {value!r}"
            raise ValueError(msg)
        return value

    @property
    def server_settings(self) -> dict[str, str]:
        return {"application_name": self.application_name}
