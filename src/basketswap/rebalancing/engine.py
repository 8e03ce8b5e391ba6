"""Rebalancing engine - snapshot, plan, quote, batch and submit."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog

from basketswap.allocation import AllocationError, AllocationModel
from basketswap.config import AppConfig
from basketswap.execution.base import BatchSubmitter
from basketswap.execution.batch import (
    build_batch_calls,
    build_transfer_calls,
    count_calls,
    needs_approval,
    validate_swaps,
)
from basketswap.execution.erc20 import to_base_units
from basketswap.logging_config import get_execution_logger
from basketswap.models import (
    AssetHolding,
    BatchCall,
    RebalancePlan,
    SwapWithQuote,
    TransferInstruction,
)
from basketswap.portfolio.base import PortfolioProvider
from basketswap.portfolio.snapshot import holdings_from_feed
from basketswap.portfolio.tokenlist import TokenList
from basketswap.quotes.base import QuoteProvider, QuoteRequest
from basketswap.quotes.fetcher import fetch_quotes
from basketswap.rebalancing.planner import plan_rebalance

logger = structlog.get_logger(__name__)


@dataclass
class PreparedBatch:
    """Quoted swaps and the ordered call list ready for submission."""

    plan: RebalancePlan
    swaps: list[SwapWithQuote]
    calls: list[BatchCall]


@dataclass
class RebalanceOutcome:
    plan: RebalancePlan
    calls: list[BatchCall] = field(default_factory=list)
    tx_hash: Optional[str] = None
    dry_run: bool = True


class RebalancingEngine:
    """Drives one rebalance from portfolio snapshot to submitted batch.

    Planning and batch building are pure; the only I/O happens in the
    injected portfolio, quote and submission collaborators.
    """

    def __init__(
        self,
        config: AppConfig,
        portfolio_provider: PortfolioProvider,
        quote_provider: QuoteProvider,
        submitter: BatchSubmitter,
        token_list: Optional[TokenList] = None,
    ):
        self._config = config
        self._portfolio = portfolio_provider
        self._quotes = quote_provider
        self._submitter = submitter
        self._token_list = token_list
        self._execution_log = get_execution_logger()

    def load_allocation(self, owner_address: str) -> AllocationModel:
        """Fetch the owner's balances and initialize the sliders from them."""
        feed = self._portfolio.get_portfolio(owner_address)
        holdings = holdings_from_feed(feed)
        logger.info(
            "engine.portfolio_loaded",
            owner=owner_address,
            holdings=len(holdings),
            total_usd=round(feed.total_balance_usd, 2),
        )
        return AllocationModel.from_holdings(
            holdings, epsilon=self._config.rebalancing.slider_epsilon
        )

    def apply_targets(self, model: AllocationModel, targets: dict[str, float]) -> None:
        """Move the sliders to per-symbol targets; unnamed unlocked holdings go to 0%.

        Symbols not yet held are added from the token list at 0% first.
        The highest-index unlocked holding absorbs the remainder, so it is
        set last and decreases are applied before increases.

        Raises:
            AllocationError: For unknown symbols, targets on locked holdings,
                or targets that cannot sum to 100 around the locked holdings.
        """
        for symbol in targets:
            try:
                model.index_of(symbol)
            except AllocationError:
                entry = self._find_listed_token(symbol)
                if entry is None:
                    raise
                model.add_asset(entry)

        locked = model.locked
        # Unnamed locked holdings keep their value
        wanted = [v if is_locked else 0.0 for v, is_locked in zip(model.values, locked)]
        for symbol, pct in targets.items():
            wanted[model.index_of(symbol)] = pct

        epsilon = self._config.rebalancing.slider_epsilon
        symbols = [h.symbol for h in model.holdings]
        for i, is_locked in enumerate(locked):
            if is_locked and abs(wanted[i] - model.values[i]) > epsilon:
                raise AllocationError(
                    f"{symbols[i]} is locked at {model.values[i]:.2f}%, "
                    f"cannot target {wanted[i]:.2f}%"
                )

        total = sum(wanted)
        if abs(total - 100.0) > epsilon:
            held = ", ".join(
                f"{symbols[i]} {model.values[i]:.2f}%" for i, is_locked in enumerate(locked) if is_locked
            )
            raise AllocationError(
                f"targets plus locked holdings sum to {total:.2f}%, not 100%"
                + (f" (locked: {held})" if held else "")
            )

        unlocked = [i for i, is_locked in enumerate(locked) if not is_locked]
        if len(unlocked) <= 1:
            return

        absorber = unlocked[-1]
        current = model.values
        order = sorted(
            (i for i in unlocked if i != absorber),
            key=lambda i: wanted[i] - current[i],
        )
        for i in order:
            model.set_slider(i, wanted[i])

        missed = [
            f"{symbols[i]} {value:.2f}% (wanted {wanted[i]:.2f}%)"
            for i, value in enumerate(model.values)
            if abs(value - wanted[i]) > epsilon
        ]
        if missed:
            raise AllocationError(f"could not reach target allocation: {', '.join(missed)}")

    def plan(self, model: AllocationModel) -> RebalancePlan:
        return plan_rebalance(
            model.holdings,
            model.targets(),
            dust_threshold_usd=self._config.rebalancing.dust_threshold_usd,
        )

    async def prepare(
        self,
        plan: RebalancePlan,
        holdings: list[AssetHolding],
        owner_address: str,
    ) -> PreparedBatch:
        """Validate the plan, fetch all quotes concurrently and build the batch.

        Validation runs before any quote request is sent.
        """
        validate_swaps(plan.swaps, holdings)

        by_address = {h.address.lower(): h for h in holdings}
        requests = [
            QuoteRequest(
                from_token=swap.from_address,
                to_token=swap.to_address,
                from_amount=str(
                    to_base_units(swap.from_amount, by_address[swap.from_address.lower()].decimals)
                ),
                from_address=owner_address,
                slippage=self._config.quotes.slippage,
            )
            for swap in plan.swaps
        ]

        quotes = await fetch_quotes(
            self._quotes, requests, max_concurrency=self._config.quotes.max_concurrency
        )

        swaps = [
            SwapWithQuote(action=action, quote=quote, needs_approval=needs_approval(action, quote))
            for action, quote in zip(plan.swaps, quotes)
        ]
        calls = build_batch_calls(swaps)
        return PreparedBatch(plan=plan, swaps=swaps, calls=calls)

    def submit(self, prepared: PreparedBatch) -> str:
        tx_hash = self._submitter.submit(prepared.calls)
        self._execution_log.info(
            "rebalance.executed",
            tx_hash=tx_hash,
            swaps=len(prepared.swaps),
            calls=len(prepared.calls),
            total_value_usd=round(prepared.plan.total_value_usd, 2),
        )
        return tx_hash

    async def rebalance(
        self,
        owner_address: str,
        targets: dict[str, float],
        dry_run: bool = True,
        on_prepared: Optional[Callable[[PreparedBatch], None]] = None,
    ) -> RebalanceOutcome:
        """Run the full flow for one owner. Dry runs stop after planning.

        ``on_prepared`` sees the quoted batch before it is submitted.
        """
        start_time = datetime.now(timezone.utc)
        logger.info("engine.starting", owner=owner_address, dry_run=dry_run)

        model = self.load_allocation(owner_address)
        self.apply_targets(model, targets)
        plan = self.plan(model)

        if plan.is_balanced:
            logger.info("engine.already_balanced")
            return RebalanceOutcome(plan=plan, dry_run=dry_run)

        if dry_run:
            logger.info("engine.dry_run", swaps=plan.total_swaps)
            return RebalanceOutcome(plan=plan, dry_run=True)

        prepared = await self.prepare(plan, model.holdings, owner_address)
        logger.info(
            "engine.batch_ready",
            swaps=plan.total_swaps,
            calls=count_calls(prepared.swaps),
            total_value_usd=round(plan.total_value_usd, 2),
        )
        if on_prepared is not None:
            on_prepared(prepared)
        tx_hash = self.submit(prepared)

        duration = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.info(
            "engine.completed",
            duration_seconds=round(duration, 2),
            swaps=plan.total_swaps,
            calls=len(prepared.calls),
            tx_hash=tx_hash,
        )
        return RebalanceOutcome(plan=plan, calls=prepared.calls, tx_hash=tx_hash, dry_run=False)

    def send(self, owner_address: str, transfers: list[TransferInstruction]) -> str:
        """Submit several transfers from the owner's holdings as one batch."""
        holdings = holdings_from_feed(self._portfolio.get_portfolio(owner_address))
        calls = build_transfer_calls(transfers, holdings)
        tx_hash = self._submitter.submit(calls)
        self._execution_log.info("send.executed", tx_hash=tx_hash, transfers=len(calls))
        return tx_hash

    def _find_listed_token(self, symbol: str):
        if self._token_list is None:
            return None
        matches = [t for t in self._token_list.search(symbol) if t.symbol.lower() == symbol.lower()]
        return matches[0] if matches else None
