from dataclasses import dataclass, field
from typing import Iterable, List


@dataclass(frozen=True)
class GapReport:
    expected: int
    received_count: int
    missing: List[int] = field(default_factory=list)

    @property
    def missing_count(self) -> int:
        return self.expected - self.received_count


def missing(expected_total: int, received: Iterable[int]) -> List[int]:
    seen = set(received)
    return [n for n in range(1, expected_total + 1) if n not in seen]


def detect_gaps(expected_total: int, received: Iterable[int]) -> GapReport:
    seen = set(received)
    return GapReport(
        expected=expected_total,
        received_count=len(seen),
        missing=missing(expected_total, seen),
    )
