"""Tests for the command-line plan summary."""

from basketswap.__main__ import _print_outcome, _print_prepared
from basketswap.models import RebalancePlan, SwapAction, SwapWithQuote
from basketswap.rebalancing import PreparedBatch, RebalanceOutcome
from factories import GLMR, USDC, make_quote


def _plan():
    return RebalancePlan(
        swaps=[
            SwapAction(
                from_address=USDC, to_address=GLMR, from_symbol="USDC", to_symbol="GLMR",
                from_amount=100.0, from_amount_usd=100.0,
            )
        ],
        total_value_usd=1000.0,
    )


class TestPlanSummary:
    def test_prepared_summary_counts_approval(self, capsys):
        plan = _plan()
        swaps = [SwapWithQuote(action=plan.swaps[0], quote=make_quote(), needs_approval=True)]

        _print_prepared(PreparedBatch(plan=plan, swaps=swaps, calls=[]))

        out = capsys.readouterr().out
        assert "#1 100.0000 USDC -> GLMR ($100.00)" in out
        assert "Total swaps: 1" in out
        assert "Total calls: 2" in out
        assert "Total value: $1,000.00" in out

    def test_dry_run_shows_estimated_calls(self, capsys):
        _print_outcome(RebalanceOutcome(plan=_plan(), dry_run=True))

        out = capsys.readouterr().out
        assert "Estimated calls: 2" in out
        assert "Dry run - nothing submitted." in out

    def test_submitted_shows_transaction(self, capsys):
        _print_outcome(RebalanceOutcome(plan=_plan(), tx_hash="0xabc", dry_run=False))
        assert "Transaction: 0xabc" in capsys.readouterr().out

    def test_balanced(self, capsys):
        _print_outcome(RebalanceOutcome(plan=RebalancePlan(), dry_run=True))
        assert "portfolio is balanced" in capsys.readouterr().out
