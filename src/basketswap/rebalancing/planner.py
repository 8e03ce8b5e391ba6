"""Swap planning - convert a target allocation into sell->buy swap actions."""

import math
from dataclasses import dataclass
from typing import Optional

import structlog

from basketswap.logging_config import get_plan_logger
from basketswap.models import AssetHolding, RebalancePlan, SwapAction

logger = structlog.get_logger(__name__)

DUST_THRESHOLD_USD = 0.01
TARGET_SUM_EPSILON = 0.01


class PlanningError(ValueError):
    """Raised when holdings or targets cannot produce a meaningful plan."""


@dataclass
class _Imbalance:
    holding: AssetHolding
    target_pct: float
    target_usd: float
    diff_usd: float  # positive: needs buying, negative: needs selling


def plan_rebalance(
    holdings: list[AssetHolding],
    targets: list[float],
    total_usd: Optional[float] = None,
    dust_threshold_usd: float = DUST_THRESHOLD_USD,
) -> RebalancePlan:
    """Compute the swaps that move ``holdings`` to the ``targets`` percentages.

    Sellers and buyers are paired greedily, largest imbalance first, so the
    plan holds at most max(sellers, buyers) swaps. Any residual left after
    one side is exhausted stays unswapped.

    Args:
        holdings: Current positions, in slider order
        targets: Target percentages, index-aligned with ``holdings``
        total_usd: Portfolio value; defaults to the sum of ``balance_usd``
        dust_threshold_usd: Imbalances smaller than this are ignored

    Returns:
        RebalancePlan with swaps in execution order

    Raises:
        PlanningError: On mismatched inputs, a non-positive total, or a
            non-positive price on a holding that has to sell.
    """
    if len(holdings) != len(targets):
        raise PlanningError(
            f"target allocation has {len(targets)} entries for {len(holdings)} holdings"
        )

    if total_usd is None:
        total_usd = sum(h.balance_usd for h in holdings)

    if not math.isfinite(total_usd) or total_usd <= 0:
        raise PlanningError(f"portfolio total must be positive, got {total_usd}")

    for holding, target in zip(holdings, targets):
        if not math.isfinite(target) or target < 0 or target > 100:
            raise PlanningError(f"target for {holding.symbol} must be between 0 and 100, got {target}")

    target_sum = sum(targets)
    if abs(target_sum - 100.0) > TARGET_SUM_EPSILON:
        logger.warning("planner.targets_not_100", target_sum=round(target_sum, 4))

    imbalances = []
    for holding, target in zip(holdings, targets):
        target_usd = total_usd * target / 100.0
        imbalances.append(
            _Imbalance(
                holding=holding,
                target_pct=target,
                target_usd=target_usd,
                diff_usd=target_usd - holding.balance_usd,
            )
        )

    sellers = sorted(
        (d for d in imbalances if d.diff_usd < -dust_threshold_usd),
        key=lambda d: d.diff_usd,
    )
    buyers = sorted(
        (d for d in imbalances if d.diff_usd > dust_threshold_usd),
        key=lambda d: -d.diff_usd,
    )

    # Only sellers are converted to token units
    for d in sellers:
        price = d.holding.price
        if not math.isfinite(price) or price <= 0:
            logger.error(
                "planner.invalid_price",
                symbol=d.holding.symbol,
                address=d.holding.address,
                price=price,
            )
            raise PlanningError(
                f"{d.holding.symbol} has no usable price ({price}); cannot size its swap"
            )

    logger.info(
        "planner.imbalances",
        total_usd=round(total_usd, 2),
        sells=[(d.holding.symbol, round(-d.diff_usd, 2)) for d in sellers],
        buys=[(d.holding.symbol, round(d.diff_usd, 2)) for d in buyers],
    )

    swaps: list[SwapAction] = []
    sell_idx = 0
    buy_idx = 0

    while sell_idx < len(sellers) and buy_idx < len(buyers):
        seller = sellers[sell_idx]
        buyer = buyers[buy_idx]

        swap_usd = min(abs(seller.diff_usd), buyer.diff_usd)
        swap = SwapAction(
            from_address=seller.holding.address,
            to_address=buyer.holding.address,
            from_symbol=seller.holding.symbol,
            to_symbol=buyer.holding.symbol,
            from_amount=swap_usd / seller.holding.price,
            from_amount_usd=swap_usd,
        )
        swaps.append(swap)

        logger.info(
            "planner.swap_planned",
            sequence=len(swaps),
            from_symbol=swap.from_symbol,
            to_symbol=swap.to_symbol,
            from_amount=round(swap.from_amount, 6),
            usd=round(swap_usd, 2),
        )

        seller.diff_usd += swap_usd
        buyer.diff_usd -= swap_usd

        if abs(seller.diff_usd) < dust_threshold_usd:
            sell_idx += 1
        if abs(buyer.diff_usd) < dust_threshold_usd:
            buy_idx += 1

    residual = sum(abs(d.diff_usd) for d in sellers[sell_idx:] + buyers[buy_idx:])
    if residual >= dust_threshold_usd:
        logger.warning("planner.unmatched_residual", residual_usd=round(residual, 4))

    plan = RebalancePlan(
        swaps=swaps,
        total_value_usd=sum(s.from_amount_usd for s in swaps),
    )

    get_plan_logger().info(
        "plan.created",
        swaps=plan.total_swaps,
        total_value_usd=round(plan.total_value_usd, 2),
        portfolio_usd=round(total_usd, 2),
        targets={h.symbol: round(t, 2) for h, t in zip(holdings, targets)},
    )

    return plan
