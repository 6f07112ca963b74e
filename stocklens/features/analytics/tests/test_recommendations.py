"""Tests for the stock recommendation decision table."""

import math

import pytest

from stocklens.features.analytics.recommendations import (
    StockPosition,
    decide,
    optimal_stock_level,
    safety_stock,
)
from stocklens.features.analytics.schemas import (
    MovementType,
    RecommendationAction,
    RecommendationPolicy,
)


def _position(**overrides) -> StockPosition:
    values = {
        "movement": MovementType.SLOW_MOVING,
        "avg_inventory": 100.0,
        "avg_daily_sales": 10.0,
        "stddev_sales": 2.0,
        "avg_price": 12.0,
        "holding_cost": 200.0,
        "understock_percentage": 0.0,
    }
    values.update(overrides)
    return StockPosition(**values)


class TestOptimalLevels:
    """Tests for target and safety stock."""

    def test_slow_mover_buffer(self):
        """Slow movers carry half a sales deviation."""
        assert optimal_stock_level(_position()) == pytest.approx(11.0)

    def test_fast_mover_buffer(self):
        """Fast movers carry one and a half sales deviations."""
        position = _position(movement=MovementType.FAST_SELLING)
        assert optimal_stock_level(position) == pytest.approx(13.0)

    def test_safety_stock_service_level(self):
        """Safety stock covers lead-time variability at the service level."""
        position = _position(stddev_sales=10.0, avg_daily_sales=1.0)
        assert safety_stock(position) == pytest.approx(1.65 * 10.0 * math.sqrt(7))

    def test_safety_stock_minimum_cover(self):
        """Without variability, safety stock is three days of sales."""
        position = _position(stddev_sales=0.0)
        assert safety_stock(position) == pytest.approx(30.0)


class TestSlowMovers:
    """Tests for slow-moving branches."""

    def test_high_holding_cost_reduces(self):
        """Slow movers above 1000 holding cost are reduced with top priority."""
        decision = decide(_position(holding_cost=1200.0))

        assert decision.action is RecommendationAction.REDUCE
        assert decision.priority_score == 5
        # max(30% of 100, 100 - 11)
        assert decision.adjustment_units == pytest.approx(89.0)
        assert decision.estimated_cost_impact == pytest.approx(89.0 * 12.0 * 0.25)
        assert "Reduce by 89 units" in decision.recommendation

    def test_reduce_keeps_at_least_thirty_percent(self):
        """Reduction never goes below 30% of the average inventory."""
        decision = decide(
            _position(avg_inventory=20.0, avg_daily_sales=18.0, holding_cost=5000.0)
        )

        assert decision.adjustment_units == pytest.approx(6.0)

    def test_holding_cost_at_threshold_maintains(self):
        """Exactly 1000 is not above the reduce threshold."""
        decision = decide(_position(holding_cost=1000.0))

        assert decision.action is RecommendationAction.MAINTAIN
        assert decision.priority_score == 2

    def test_low_cost_slow_mover_maintains(self):
        """Holding cost at or below 500 gets the lowest priority."""
        decision = decide(_position(holding_cost=500.0))

        assert decision.action is RecommendationAction.MAINTAIN
        assert decision.priority_score == 1
        assert decision.adjustment_units == 0.0
        assert decision.estimated_cost_impact == 0.0


class TestFastMovers:
    """Tests for fast-selling branches."""

    def test_urgent_understock_increases(self):
        """Above 15% understock a short fast mover is increased at priority 4."""
        decision = decide(
            _position(
                movement=MovementType.FAST_SELLING,
                avg_inventory=10.0,
                stddev_sales=4.0,
                understock_percentage=20.0,
            )
        )

        # optimal = 10 + 1.5 * 4 = 16
        assert decision.action is RecommendationAction.INCREASE
        assert decision.priority_score == 4
        assert decision.adjustment_units == pytest.approx(6.0)
        assert decision.estimated_cost_impact == pytest.approx(6.0 * 12.0 * 0.1)
        assert "Increase by 6 units" in decision.recommendation

    def test_urgent_understock_already_stocked_optimizes(self):
        """Priority 4 still optimizes when inventory covers the target."""
        decision = decide(
            _position(movement=MovementType.FAST_SELLING, understock_percentage=20.0)
        )

        assert decision.action is RecommendationAction.OPTIMIZE
        assert decision.priority_score == 4
        assert decision.adjustment_units == 0.0

    def test_below_target_increases(self):
        """Below target without urgent understock is priority 3."""
        decision = decide(
            _position(
                movement=MovementType.FAST_SELLING,
                avg_inventory=10.0,
                understock_percentage=12.0,
            )
        )

        assert decision.action is RecommendationAction.INCREASE
        assert decision.priority_score == 3

    def test_well_stocked_optimizes(self):
        """At or above target is a priority 1 fine-tune."""
        decision = decide(
            _position(movement=MovementType.FAST_SELLING, understock_percentage=12.0)
        )

        assert decision.action is RecommendationAction.OPTIMIZE
        assert decision.priority_score == 1
        assert "Fine-tune to 13 units" in decision.recommendation

    def test_custom_policy(self):
        """Thresholds come from the policy."""
        policy = RecommendationPolicy(reduce_holding_cost_above=100.0)

        decision = decide(_position(holding_cost=150.0), policy)

        assert decision.action is RecommendationAction.REDUCE
