from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from .core.enums import LagStatus, PollOutcome, ReplicaRole, RoutingMode
from .infrastructure.postgres.endpoint import EndpointDescriptor

UNKNOWN_NODE = "unknown"


class WriteWitness(BaseModel):
    """The row just written on the primary, plus the primary's WAL position."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    row_id: int = Field(gt=0, description="Identifier of the written row")
    primary_lsn: str | None = Field(
        default=None,
        description="pg_current_wal_lsn() right after the write, e.g. '0/3000148'",
    )


class ReplicaObservation(BaseModel):
    """What one probe saw on one endpoint."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    node_identity: str = Field(default=UNKNOWN_NODE, min_length=1)
    is_replica: ReplicaRole = Field(default=ReplicaRole.UNKNOWN)
    row_visible: bool
    lag: LagStatus = Field(default=LagStatus.NOT_REQUESTED)
    lag_bytes: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_lag(self) -> ReplicaObservation:
        if (self.lag == LagStatus.KNOWN) != (self.lag_bytes is not None):
            msg = "lag_bytes must be set exactly when lag is KNOWN"
            raise ValueError(msg)
        return self


class ProbeAttempt(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    sequence: int = Field(ge=1)
    target: EndpointDescriptor
    observation: ReplicaObservation
    elapsed_s: float = Field(ge=0.0)

    @property
    def elapsed_ms(self) -> int:
        return int(self.elapsed_s * 1000)


class PollingDeadline(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_duration_s: float = Field(gt=0.0)
    poll_interval_s: float = Field(default=0.4, ge=0.0)


class PollResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    attempts: tuple[ProbeAttempt, ...]
    caught_up: bool

    @computed_field  # type: ignore[prop-decorator]
    @property
    def outcome(self) -> PollOutcome:
        return PollOutcome.CAUGHT_UP if self.caught_up else PollOutcome.TIMED_OUT


class ProbeReport(BaseModel):
    """Everything one probing run observed."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    witness: WriteWitness
    routing_mode: RoutingMode
    want_lag: bool
    reads: tuple[ProbeAttempt, ...]
    catch_up: PollResult | None = None

    @property
    def all_reads_visible(self) -> bool:
        return all(attempt.observation.row_visible for attempt in self.reads)
