"""Stock recommendation decision table.

A ``StockPosition`` gathers the unrounded per-group inputs; ``decide`` maps it
to an action, adjustment, priority and cost impact. The first matching rule
wins, in this order:

    Slow, holding cost > reduce threshold  -> REDUCE    (priority 5)
    Slow, otherwise                        -> MAINTAIN  (priority 2 or 1)
    Fast, understock% > urgent threshold   -> INCREASE/OPTIMIZE (priority 4)
    Fast, below optimal level              -> INCREASE  (priority 3)
    Fast, at or above optimal level        -> OPTIMIZE  (priority 1)
    anything else                          -> REVIEW    (priority 1)
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from stocklens.features.analytics.schemas import (
    MovementType,
    RecommendationAction,
    RecommendationPolicy,
)
from stocklens.shared.utils import round_half_up

DEFAULT_POLICY = RecommendationPolicy()


@dataclass(frozen=True)
class StockPosition:
    """Unrounded inputs for one (store_region_id, product_id) group."""

    movement: MovementType
    avg_inventory: float
    avg_daily_sales: float
    stddev_sales: float
    avg_price: float
    holding_cost: float
    understock_percentage: float


@dataclass(frozen=True)
class Decision:
    """Outcome of the decision table for one group."""

    action: RecommendationAction
    adjustment_units: float
    priority_score: int
    estimated_cost_impact: float
    recommendation: str


def optimal_stock_level(
    position: StockPosition, policy: RecommendationPolicy = DEFAULT_POLICY
) -> float:
    """Target stock: daily sales plus a movement-dependent stddev buffer."""
    if position.movement is MovementType.FAST_SELLING:
        buffer = policy.fast_buffer_stddevs
    else:
        buffer = policy.slow_buffer_stddevs
    return position.avg_daily_sales + buffer * position.stddev_sales


def safety_stock(position: StockPosition, policy: RecommendationPolicy = DEFAULT_POLICY) -> float:
    """Advisory safety stock: service-level buffer over lead time or minimum cover days."""
    lead_time = math.sqrt(policy.lead_time_days)
    service_buffer = policy.service_level_z * position.stddev_sales * lead_time
    cover = position.avg_daily_sales * policy.min_cover_days
    return max(service_buffer, cover)


def _increase_or_optimize(
    position: StockPosition, optimal: float, priority: int, policy: RecommendationPolicy
) -> Decision:
    if position.avg_inventory < optimal:
        units = optimal - position.avg_inventory
        return Decision(
            action=RecommendationAction.INCREASE,
            adjustment_units=units,
            priority_score=priority,
            estimated_cost_impact=units * position.avg_price * policy.increase_cost_rate,
            recommendation=(
                "INCREASE: Fast-seller understocked. "
                f"Increase by {round_half_up(units, 0):.0f} units to prevent stockouts"
            ),
        )
    return Decision(
        action=RecommendationAction.OPTIMIZE,
        adjustment_units=0.0,
        priority_score=priority,
        estimated_cost_impact=0.0,
        recommendation=(
            f"OPTIMIZE: Fast-seller well-stocked. Fine-tune to {round_half_up(optimal, 0):.0f} "
            "units for efficiency"
        ),
    )


def decide(position: StockPosition, policy: RecommendationPolicy = DEFAULT_POLICY) -> Decision:
    """Apply the decision table to a stock position.

    Args:
        position: Unrounded group inputs.
        policy: Thresholds and rates.

    Returns:
        The first matching decision.
    """
    optimal = optimal_stock_level(position, policy)
    holding_cost = position.holding_cost

    match position.movement:
        case MovementType.SLOW_MOVING if holding_cost > policy.reduce_holding_cost_above:
            units = max(
                position.avg_inventory * policy.reduce_fraction,
                position.avg_inventory - optimal,
            )
            return Decision(
                action=RecommendationAction.REDUCE,
                adjustment_units=units,
                priority_score=5,
                estimated_cost_impact=units * position.avg_price * policy.reduce_cost_rate,
                recommendation=(
                    "REDUCE: High holding cost slow-mover. "
                    f"Reduce by {round_half_up(units, 0):.0f} units to optimize costs"
                ),
            )
        case MovementType.SLOW_MOVING:
            return Decision(
                action=RecommendationAction.MAINTAIN,
                adjustment_units=0.0,
                priority_score=2 if holding_cost > policy.watch_holding_cost_above else 1,
                estimated_cost_impact=0.0,
                recommendation=(
                    "MAINTAIN: Low-cost slow-mover. Current level acceptable, monitor sales trends"
                ),
            )
        case MovementType.FAST_SELLING if (
            position.understock_percentage > policy.urgent_understock_pct
        ):
            return _increase_or_optimize(position, optimal, 4, policy)
        case MovementType.FAST_SELLING if position.avg_inventory < optimal:
            return _increase_or_optimize(position, optimal, 3, policy)
        case MovementType.FAST_SELLING:
            return _increase_or_optimize(position, optimal, 1, policy)
        case _:
            return Decision(
                action=RecommendationAction.REVIEW,
                adjustment_units=0.0,
                priority_score=1,
                estimated_cost_impact=0.0,
                recommendation="REVIEW: Analyze sales pattern and adjust accordingly",
            )
