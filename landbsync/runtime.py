from __future__ import annotations

import time
from dataclasses import dataclass, field


class Deadline:
    """Monotonic deadline shared by every external call of one request."""

    def __init__(self, timeout_s: float | None):
        self._expires_at = None if timeout_s is None else time.monotonic() + max(0.0, float(timeout_s))

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def timeout(self, cap: float | None = None) -> float | None:
        """HTTP timeout for the next call: the remaining time, bounded by ``cap``."""
        remaining = self.remaining()
        if remaining is None:
            return cap
        if cap is None:
            return remaining
        return min(remaining, cap)


@dataclass(frozen=True)
class NodeChange:
    node_id: str
    node_name: str
    node_index: int
    upserted: dict[str, str] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return not self.upserted and not self.deleted


@dataclass
class SyncReport:
    changes: list[NodeChange] = field(default_factory=list)

    @property
    def mutated(self) -> list[NodeChange]:
        return [c for c in self.changes if not c.skipped]

    @property
    def skipped(self) -> list[NodeChange]:
        return [c for c in self.changes if c.skipped]
