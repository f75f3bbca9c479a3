"""Running performance metrics for agent turns."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class MetricsSnapshot:
    """Immutable copy of the agent counters."""

    total_requests: int = 0
    total_tokens: int = 0
    average_response_time: float = 0.0
    success_rate: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


class Metrics:
    """Aggregate updated once per top-level turn.

    Averages are incremental: avg' = (avg * (n - 1) + sample) / n.
    average_response_time is in milliseconds, success_rate in percent.
    """

    def __init__(self) -> None:
        self.total_requests = 0
        self.total_tokens = 0
        self.average_response_time = 0.0
        self.success_rate = 0.0

    def record_outcome(self, duration_ms: float, success: bool, tokens: int = 0) -> None:
        self.total_requests += 1
        n = self.total_requests
        self.total_tokens += tokens
        self.average_response_time = (self.average_response_time * (n - 1) + duration_ms) / n
        sample = 100.0 if success else 0.0
        self.success_rate = (self.success_rate * (n - 1) + sample) / n

    def snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot(
            total_requests=self.total_requests,
            total_tokens=self.total_tokens,
            average_response_time=self.average_response_time,
            success_rate=self.success_rate,
        )

    def reset(self) -> None:
        self.__init__()
