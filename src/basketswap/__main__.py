"""Entry point: python -m basketswap"""

import asyncio
import sys
from pathlib import Path

import structlog

from basketswap.allocation import AllocationError
from basketswap.config import Secrets, load_config
from basketswap.execution import BatchValidationError, SubmissionError, count_calls, estimate_calls
from basketswap.logging_config import configure_logging
from basketswap.models import RebalancePlan
from basketswap.portfolio import PortfolioFetchError, TokenList
from basketswap.providers import create_portfolio_provider, create_quote_provider, create_submitter
from basketswap.quotes import QuoteFetchError
from basketswap.rebalancing import PlanningError, PreparedBatch, RebalanceOutcome, RebalancingEngine

logger = structlog.get_logger(__name__)


def _print_plan(plan: RebalancePlan, calls_label: str, calls: int) -> None:
    print("=" * 80)
    print("BASKETSWAP REBALANCE PLAN")
    print("=" * 80)

    for n, swap in enumerate(plan.swaps, start=1):
        print(
            f"  #{n} {swap.from_amount:.4f} {swap.from_symbol} -> {swap.to_symbol}"
            f" (${swap.from_amount_usd:,.2f})"
        )
    print("-" * 60)
    print(f"  Total swaps: {plan.total_swaps}")
    print(f"  {calls_label}: {calls}")
    print(f"  Total value: ${plan.total_value_usd:,.2f}")


def _print_prepared(prepared: PreparedBatch) -> None:
    _print_plan(prepared.plan, "Total calls", count_calls(prepared.swaps))
    print("  Submitting batch...")


def _print_outcome(outcome: RebalanceOutcome) -> None:
    plan = outcome.plan
    if plan.is_balanced:
        print("No swaps needed - portfolio is balanced!")
    elif outcome.dry_run:
        # Approval needs are only known once quotes are in
        _print_plan(plan, "Estimated calls", estimate_calls(plan.swaps))
        print("  Dry run - nothing submitted.")
    else:
        print(f"  Transaction: {outcome.tx_hash}")


def main(config_path: Path = Path("config/settings.yaml")) -> int:
    config = load_config(config_path)
    try:
        secrets = Secrets()
    except Exception as e:
        print(f"Failed to load secrets from .env: {e}")
        return 1

    configure_logging(config.logging)

    rebal = config.rebalancing
    if not rebal.owner_address:
        print("rebalancing.owner_address is not configured")
        return 1

    token_list = None
    token_list_path = Path(config.portfolio.token_list_path)
    if token_list_path.exists():
        token_list = TokenList.load(token_list_path, chain_id=config.chain.chain_id)

    engine = RebalancingEngine(
        config,
        create_portfolio_provider(config, secrets),
        create_quote_provider(config, secrets),
        create_submitter(config, secrets),
        token_list=token_list,
    )

    try:
        outcome = asyncio.run(
            engine.rebalance(
                rebal.owner_address,
                rebal.targets,
                dry_run=rebal.dry_run,
                on_prepared=_print_prepared,
            )
        )
    except (AllocationError, PlanningError, BatchValidationError) as e:
        print(f"ERROR: {e}")
        logger.error("basketswap.rejected", error=str(e))
        return 1
    except (PortfolioFetchError, QuoteFetchError) as e:
        print(f"ERROR: {e}")
        print("       Nothing was submitted; retry when the service recovers.")
        logger.error("basketswap.collaborator_failed", error=str(e))
        return 1
    except SubmissionError as e:
        print(f"ERROR: {e}")
        print("       Check the relay before retrying; the batch may have been sent.")
        logger.error("basketswap.submission_failed", error=str(e))
        return 1

    _print_outcome(outcome)
    return 0


if __name__ == "__main__":
    sys.exit(main())
