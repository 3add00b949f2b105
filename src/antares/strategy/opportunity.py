"""
Opportunity ranking and best-ever tracking.

Turns per-cycle gains into the ranked, reportable view shown to the
user, and keeps the record of the best opportunity seen this session.
"""

import heapq
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from antares.config.constants import DEFAULT_REPORT_THRESHOLD, DEFAULT_TOP_N
from antares.core.types import Cycle, GainResult, Opportunity


logger = logging.getLogger(__name__)

# (multiplier, bottleneck, -index, gain); -index keeps ties in discovery order
_RankEntry = tuple[float, float, int, GainResult]


@dataclass(slots=True, frozen=True)
class RankedPass:
    """Result of ranking one pass of gains."""

    current_best: Opportunity | None
    opportunities: tuple[Opportunity, ...]
    best_ever_changed: bool

    @property
    def is_reportable(self) -> bool:
        """Check if any cycle cleared the report threshold."""
        return bool(self.opportunities)


def _rank_key(entry: _RankEntry) -> tuple[float, float, int]:
    return entry[0], entry[1], entry[2]


def make_opportunity(cycle: Cycle, gain: GainResult, timestamp_us: int) -> Opportunity:
    """Project a cycle and its gain onto an Opportunity."""
    return Opportunity(
        multiplier=gain.multiplier,
        size=gain.bottleneck_size,
        size_currency=cycle.start,
        path=cycle.describe(),
        cycle=cycle,
        timestamp_us=timestamp_us,
    )


class OpportunityRanker:
    """
    Ranks cycles by gain.

    Ordering is by multiplier, then bottleneck size, both descending.
    Exact ties keep cycle discovery order. Only cycles whose multiplier
    strictly exceeds the report threshold make the reportable list; the
    current best is tracked whether or not it is reportable.
    """

    def __init__(
        self,
        report_threshold: float = DEFAULT_REPORT_THRESHOLD,
        top_n: int = DEFAULT_TOP_N,
    ) -> None:
        """
        Initialize ranker.

        Args:
            report_threshold: Multiplier a cycle must exceed to be reported.
            top_n: Maximum opportunities kept per pass.
        """
        if top_n < 1:
            raise ValueError(f"top_n must be positive, got {top_n}")

        self._report_threshold = report_threshold
        self._top_n = top_n
        self._best_ever: Opportunity | None = None
        self._best_ever_updates = 0

    def rank(
        self,
        cycles: Sequence[Cycle],
        gains: Sequence[GainResult | None],
        timestamp_us: int,
    ) -> RankedPass:
        """
        Rank one pass of gains.

        Args:
            cycles: All cycles, in discovery order.
            gains: Gain per cycle, aligned with ``cycles``. None marks a
                cycle excluded from this pass.
            timestamp_us: Timestamp stamped on the opportunities.

        Returns:
            The current best, the top reportable opportunities and whether
            the best-ever record changed.
        """
        threshold = self._report_threshold

        entries: list[_RankEntry] = [
            (gain.multiplier, gain.bottleneck_size, -i, gain)
            for i, gain in enumerate(gains)
            if gain is not None
        ]
        if not entries:
            return RankedPass(current_best=None, opportunities=(), best_ever_changed=False)

        best = max(entries, key=_rank_key)
        reportable = [entry for entry in entries if entry[0] > threshold]
        top = heapq.nlargest(self._top_n, reportable, key=_rank_key)

        current_best = make_opportunity(cycles[-best[2]], best[3], timestamp_us)
        opportunities = tuple(
            current_best
            if entry[2] == best[2]
            else make_opportunity(cycles[-entry[2]], entry[3], timestamp_us)
            for entry in top
        )

        return RankedPass(
            current_best=current_best,
            opportunities=opportunities,
            best_ever_changed=self._update_best_ever(current_best),
        )

    def _update_best_ever(self, candidate: Opportunity) -> bool:
        """Replace the best-ever record if the candidate strictly beats it."""
        if candidate.multiplier <= self._report_threshold:
            return False
        if self._best_ever is not None and candidate.multiplier <= self._best_ever.multiplier:
            return False

        self._best_ever = candidate
        self._best_ever_updates += 1
        logger.info(
            f"New best: {candidate.path} x{candidate.multiplier:.6f} "
            f"size={candidate.size:.6f} {candidate.size_currency}"
        )
        return True

    @property
    def best_ever(self) -> Opportunity | None:
        """Get the best reportable opportunity seen so far."""
        return self._best_ever

    @property
    def best_ever_updates(self) -> int:
        """Get how many times the best-ever record was replaced."""
        return self._best_ever_updates

    @property
    def report_threshold(self) -> float:
        return self._report_threshold

    @property
    def top_n(self) -> int:
        return self._top_n

    def reset(self) -> None:
        """Forget the best-ever record."""
        self._best_ever = None
        self._best_ever_updates = 0
