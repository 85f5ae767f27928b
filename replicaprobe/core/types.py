from __future__ import annotations

from collections.abc import Awaitable, Callable

type ClockFn = Callable[[], float]
type SleepFn = Callable[[float], Awaitable[None]]
