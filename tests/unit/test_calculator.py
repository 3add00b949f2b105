"""
Unit tests for GainCalculator.

Tests the multiplier, fee handling and bottleneck size propagation.
"""

import math

import pytest

from antares.core.types import Cycle, EdgeWeight, GainResult
from antares.strategy.calculator import GainCalculator
from antares.strategy.graph import GraphModel


class TestGainCalculator:
    """Tests for GainCalculator."""

    @pytest.fixture
    def edges(self) -> list[EdgeWeight]:
        return [EdgeWeight(2.0, 10.0), EdgeWeight(0.5, 100.0), EdgeWeight(1.0, 1.0)]

    def test_initialization(self) -> None:
        """Test calculator initialization."""
        calc = GainCalculator(fee_rate=0.012)

        assert calc.fee_rate == 0.012
        assert calc.hop_multiplier == pytest.approx(0.988)
        assert calc.cycle_fee_multiplier(3) == pytest.approx(0.988**3)

    @pytest.mark.parametrize("fee_rate", [-0.1, 1.0, 1.5])
    def test_invalid_fee_rate(self, fee_rate: float) -> None:
        with pytest.raises(ValueError):
            GainCalculator(fee_rate=fee_rate)

    def test_bottleneck_propagation_without_fee(self, edges: list[EdgeWeight]) -> None:
        """Test the running bottleneck through three hops."""
        # inf -> min(inf, 10)*2 = 20 -> min(20, 100)*0.5 = 10 -> min(10, 1)*1 = 1
        gain = GainCalculator(fee_rate=0.0).calculate(edges)

        assert gain == GainResult(1.0, 1.0)

    def test_fee_applied_per_hop(self, edges: list[EdgeWeight]) -> None:
        """Test that a 1% fee is charged on each of the three hops."""
        gain = GainCalculator(fee_rate=0.01).calculate(edges)

        assert gain.multiplier == pytest.approx(0.970299)
        assert gain.bottleneck_size == pytest.approx(0.99)

    def test_bottleneck_limited_by_first_hop(self) -> None:
        """Test a cycle whose first hop is the thinnest."""
        edges = [EdgeWeight(1.0, 0.5), EdgeWeight(1.0, 100.0), EdgeWeight(1.0, 100.0)]

        gain = GainCalculator(fee_rate=0.0).calculate(edges)

        assert gain.bottleneck_size == 0.5

    def test_profitable_cycle(self) -> None:
        edges = [EdgeWeight(1.01, 10.0)] * 3

        gain = GainCalculator(fee_rate=0.0).calculate(edges)

        assert gain.multiplier == pytest.approx(1.01**3)
        assert gain.multiplier > 1.0

    def test_unpopulated_edge_gives_zero(self) -> None:
        """Test that a placeholder edge zeroes the multiplier."""
        edges = [EdgeWeight(2.0, 10.0), EdgeWeight(), EdgeWeight(1.0, 1.0)]

        gain = GainCalculator(fee_rate=0.0).calculate(edges)

        assert gain.multiplier == 0.0
        assert gain.is_comparable

    def test_nan_is_not_comparable(self) -> None:
        edges = [EdgeWeight(float("nan"), 1.0), EdgeWeight(1.0, 1.0), EdgeWeight(1.0, 1.0)]

        gain = GainCalculator(fee_rate=0.0).calculate(edges)

        assert math.isnan(gain.multiplier)
        assert not GainCalculator.is_comparable(gain)

    def test_gain_ordering(self) -> None:
        """Test that multiplier dominates and bottleneck breaks ties."""
        assert GainResult(1.02, 1.0) > GainResult(1.01, 500.0)
        assert GainResult(1.01, 5.0) > GainResult(1.01, 1.0)

    def test_calculate_cycle_from_graph(self, edges: list[EdgeWeight]) -> None:
        """Test lookup of a cycle's edges in the graph."""
        graph = GraphModel()
        for node in ("A", "B", "C"):
            graph.add_node(node)
        graph.add_edge("A", "B", edges[0])
        graph.add_edge("B", "C", edges[1])
        graph.add_edge("C", "A", edges[2])

        gain = GainCalculator(fee_rate=0.0).calculate_cycle(graph, Cycle(("A", "B", "C", "A")))

        assert gain == GainResult(1.0, 1.0)
