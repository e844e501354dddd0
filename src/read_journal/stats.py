"""
Run-wide caption confidence statistics.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ConfidenceStats:
    """Running sum and count of caption confidences; never decremented."""

    total: float = 0.0
    count: int = 0

    def record(self, confidence: float) -> None:
        self.total += confidence
        self.count += 1

    def mean(self) -> float:
        """Mean confidence, or 0.0 when nothing was recorded."""

        if self.count == 0:
            return 0.0
        return self.total / self.count
