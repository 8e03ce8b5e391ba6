"""Rebalancing module for swap-based portfolio rebalancing."""

from basketswap.rebalancing.engine import PreparedBatch, RebalanceOutcome, RebalancingEngine
from basketswap.rebalancing.planner import PlanningError, plan_rebalance

__all__ = [
    "PlanningError",
    "PreparedBatch",
    "RebalanceOutcome",
    "RebalancingEngine",
    "plan_rebalance",
]
