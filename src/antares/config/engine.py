"""Construction-time configuration for the arbitrage engine."""

from dataclasses import dataclass

from antares.config.constants import (
    DEFAULT_EXCLUDED_CURRENCIES,
    DEFAULT_FEE_RATE,
    DEFAULT_LOG_BUFFER_SIZE,
    DEFAULT_MAX_CYCLE_LEN,
    DEFAULT_MIN_CYCLE_LEN,
    DEFAULT_REPORT_THRESHOLD,
    DEFAULT_TOP_N,
)


@dataclass(slots=True, frozen=True)
class EngineConfig:
    """
    Engine parameters, passed once at construction.

    Attributes:
        fee_rate: Taker fee charged on every hop.
        min_cycle_len: Shortest cycle (edge count) to enumerate.
        max_cycle_len: Longest cycle (edge count) to enumerate.
        report_threshold: Multiplier a cycle must exceed to be reported.
        excluded_currencies: Currencies dropped while building the graph.
        top_n: Number of ranked opportunities kept per pass.
        enumeration_budget: Neighbor steps allowed per component, or None.
        log_buffer_size: Log lines retained for the dashboard.
    """

    fee_rate: float = DEFAULT_FEE_RATE
    min_cycle_len: int = DEFAULT_MIN_CYCLE_LEN
    max_cycle_len: int = DEFAULT_MAX_CYCLE_LEN
    report_threshold: float = DEFAULT_REPORT_THRESHOLD
    excluded_currencies: frozenset[str] = DEFAULT_EXCLUDED_CURRENCIES
    top_n: int = DEFAULT_TOP_N
    enumeration_budget: int | None = None
    log_buffer_size: int = DEFAULT_LOG_BUFFER_SIZE

    def __post_init__(self) -> None:
        if not 0.0 <= self.fee_rate < 1.0:
            raise ValueError(f"fee_rate must be in [0, 1), got {self.fee_rate}")
        if self.min_cycle_len < 3 or self.min_cycle_len > self.max_cycle_len:
            raise ValueError(
                f"invalid cycle length window [{self.min_cycle_len}, {self.max_cycle_len}]"
            )

    @property
    def hop_multiplier(self) -> float:
        """Fraction of value kept after paying the fee on one hop."""
        return 1.0 - self.fee_rate
