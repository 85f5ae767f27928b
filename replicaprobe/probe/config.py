"""Configuration for a probing run.

- `EndpointSettings`: connection locators, read from ``DATABASE_URL*``
- `ProbeOptions`: attempts, delays, routing and catch-up options (``PROBE_*``)
- `EndpointSet`: the resolved endpoints a run probes
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.enums import RoutingMode
from ..core.exceptions import MissingEndpointError
from ..domain import PollingDeadline
from ..infrastructure.postgres.endpoint import EndpointDescriptor


class EndpointSet(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    sticky: EndpointDescriptor = Field(description="Synchronous replica")
    balanced: EndpointDescriptor = Field(description="Load-balanced read endpoint")
    primary: EndpointDescriptor | None = Field(default=None)
    async_replica: EndpointDescriptor | None = Field(default=None)


class EndpointSettings(BaseSettings):
    """Connection locators, one per endpoint. Empty means not configured."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    database_url: str = Field(default="", repr=False, description="Primary")
    database_url_read_sync: str = Field(default="", repr=False)
    database_url_read_balancer: str = Field(default="", repr=False)
    database_url_read_async: str = Field(default="", repr=False)

    def resolve_endpoints(self, require_async: bool = False, require_primary: bool = False) -> EndpointSet:
        """Check that required endpoints are configured and resolve them.

        Parameters
        ----------
        require_async
            The asynchronous replica is needed (catch-up polling).
        require_primary
            The primary is needed (the run writes its own witness).

        Returns
        -------
        EndpointSet
            Resolved endpoints. Optional endpoints are resolved when set.

        Raises
        ------
        MissingEndpointError
            If a required locator is empty. All missing names are reported.
        InvalidLocatorError
            If a configured locator cannot be parsed.
        """
        required = [
            ("DATABASE_URL_READ_BALANCER", self.database_url_read_balancer, True),
            ("DATABASE_URL_READ_SYNC", self.database_url_read_sync, True),
            ("DATABASE_URL_READ_ASYNC", self.database_url_read_async, require_async),
            ("DATABASE_URL", self.database_url, require_primary),
        ]
        missing = [name for name, locator, needed in required if needed and not locator.strip()]
        if missing:
            raise MissingEndpointError(missing)

        return EndpointSet(
            sticky=EndpointDescriptor.from_locator("sync", self.database_url_read_sync),
            balanced=EndpointDescriptor.from_locator("balancer", self.database_url_read_balancer),
            primary=self._optional("primary", self.database_url),
            async_replica=self._optional("async", self.database_url_read_async),
        )

    @staticmethod
    def _optional(name: str, locator: str) -> EndpointDescriptor | None:
        return EndpointDescriptor.from_locator(name, locator) if locator.strip() else None


class ProbeOptions(BaseSettings):
    """Options for one probing run.

    Out-of-range numbers are clamped rather than rejected: ``attempts`` and
    ``await_deadline_seconds`` to at least 1, ``inter_attempt_delay_ms`` to
    at least 0.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PROBE_",
        extra="ignore",
        frozen=True,
    )

    attempts: int = Field(default=4, ge=1, description="Read attempts in the session")
    inter_attempt_delay_ms: int = Field(default=400, ge=0, description="Delay between reads and between polls")
    routing_mode: RoutingMode = Field(default=RoutingMode.BALANCED)
    want_lag: bool = Field(default=False, description="Report replay lag in bytes")
    await_async: bool = Field(default=False, description="Poll the async replica after the session")
    await_deadline_seconds: int = Field(default=6, ge=1, description="Catch-up polling deadline")

    @field_validator("attempts", "await_deadline_seconds", mode="before")
    @classmethod
    def _at_least_one(cls, value: Any) -> Any:
        return max(1, int(value)) if _is_int_like(value) else value

    @field_validator("inter_attempt_delay_ms", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> Any:
        return max(0, int(value)) if _is_int_like(value) else value

    @property
    def inter_attempt_delay_s(self) -> float:
        return self.inter_attempt_delay_ms / 1000

    @property
    def polling_deadline(self) -> PollingDeadline:
        return PollingDeadline(
            max_duration_s=float(self.await_deadline_seconds),
            poll_interval_s=self.inter_attempt_delay_s,
        )


def _is_int_like(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and value.strip().lstrip("-").isdigit()
