from __future__ import annotations

from enum import StrEnum


class RoutingMode(StrEnum):
    STICKY = "sticky"
    BALANCED = "balanced"


class ReplicaRole(StrEnum):
    YES = "yes"
    NO = "no"
    UNKNOWN = "unknown"

    @classmethod
    def from_flag(cls, flag: bool | None) -> ReplicaRole:
        if flag is None:
            return cls.UNKNOWN
        return cls.YES if flag else cls.NO


class LagStatus(StrEnum):
    NOT_REQUESTED = "not_requested"
    KNOWN = "known"
    UNKNOWN = "unknown"


class PollOutcome(StrEnum):
    CAUGHT_UP = "caught_up"
    TIMED_OUT = "timed_out"


class ProbePhase(StrEnum):
    SESSION = "session"
    CATCH_UP = "catch_up"
