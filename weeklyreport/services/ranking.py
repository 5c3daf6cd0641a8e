"""
Ranking classifier — map a completion percentage to a ranking bucket.

Two named threshold policies exist and are deliberately kept apart:

  - ``STRICT_RANKING`` (department, office and ranking endpoints):
    ≥100 EXCELLENT, ≥95 GOOD, ≥90 AVERAGE, ≥85 POOR, otherwise FAIL.
  - ``LOOSE_RANKING`` (per-user rankings inside the position views):
    >90 EXCELLENT, ≥80 GOOD, ≥70 AVERAGE, otherwise POOR.  No FAIL bucket.
"""

import enum
from dataclasses import dataclass


class Ranking(str, enum.Enum):
    """Ranking buckets with their Vietnamese display labels."""

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    AVERAGE = "AVERAGE"
    POOR = "POOR"
    FAIL = "FAIL"

    @property
    def label(self) -> str:
        return RANKING_LABELS[self]


RANKING_LABELS = {
    Ranking.EXCELLENT: "Xuất sắc",
    Ranking.GOOD: "Tốt",
    Ranking.AVERAGE: "Trung bình",
    Ranking.POOR: "Yếu",
    Ranking.FAIL: "Kém",
}


@dataclass(frozen=True)
class RankingPolicy:
    """
    Ordered thresholds evaluated top-down; the first match wins.

    Each threshold is ``(bucket, cut, inclusive)``.  A rate matching
    none of them falls into ``floor``.
    """

    name: str
    thresholds: tuple[tuple[Ranking, float, bool], ...]
    floor: Ranking

    @property
    def buckets(self) -> tuple[Ranking, ...]:
        return tuple(bucket for bucket, _, _ in self.thresholds) + (self.floor,)

    def classify(self, rate: float) -> Ranking:
        for bucket, cut, inclusive in self.thresholds:
            matched = rate >= cut if inclusive else rate > cut
            if matched:
                return bucket
        return self.floor


STRICT_RANKING = RankingPolicy(
    name="strict",
    thresholds=(
        (Ranking.EXCELLENT, 100, True),
        (Ranking.GOOD, 95, True),
        (Ranking.AVERAGE, 90, True),
        (Ranking.POOR, 85, True),
    ),
    floor=Ranking.FAIL,
)

LOOSE_RANKING = RankingPolicy(
    name="loose",
    thresholds=(
        (Ranking.EXCELLENT, 90, False),
        (Ranking.GOOD, 80, True),
        (Ranking.AVERAGE, 70, True),
    ),
    floor=Ranking.POOR,
)


def classify(rate: float, policy: RankingPolicy = STRICT_RANKING) -> Ranking:
    """Classify ``rate`` (0–100) with the given policy (strict by default)."""
    return policy.classify(rate)
