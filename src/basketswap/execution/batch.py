"""Batch building - turn quoted swaps and transfers into an ordered call list."""

from collections import defaultdict

import structlog

from basketswap.execution.erc20 import (
    encode_approve,
    encode_transfer,
    is_address,
    is_native_token,
    to_base_units,
)
from basketswap.models import (
    AssetHolding,
    BatchCall,
    SwapAction,
    SwapQuote,
    SwapWithQuote,
    TransferInstruction,
)

logger = structlog.get_logger(__name__)

# Relative slack when comparing planned amounts with float balances
BALANCE_TOLERANCE = 1e-9


class BatchValidationError(ValueError):
    """Raised when a batch cannot be built from the given swaps or transfers."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


def _holdings_by_address(holdings: list[AssetHolding]) -> dict[str, AssetHolding]:
    return {h.address.lower(): h for h in holdings}


def validate_swaps(swaps: list[SwapAction], holdings: list[AssetHolding]) -> None:
    """Check every swap's source against current holdings before any quoting.

    Amounts are summed per source asset, since one seller can fund several
    buyers.

    Raises:
        BatchValidationError: Listing every missing asset or overdrawn balance.
    """
    by_address = _holdings_by_address(holdings)
    planned: dict[str, float] = defaultdict(float)
    problems: list[str] = []

    for swap in swaps:
        key = swap.from_address.lower()
        if key not in by_address:
            problems.append(f"{swap.from_symbol} ({swap.from_address}) is not in the portfolio")
            continue
        if swap.from_amount <= 0:
            problems.append(f"swap from {swap.from_symbol} has non-positive amount {swap.from_amount}")
            continue
        planned[key] += swap.from_amount

    for key, amount in planned.items():
        holding = by_address[key]
        if amount > holding.balance * (1 + BALANCE_TOLERANCE):
            problems.append(
                f"insufficient {holding.symbol} balance: planned {amount:.8f}, "
                f"available {holding.balance:.8f}"
            )

    if problems:
        logger.error("batch.validation_failed", problems=problems)
        raise BatchValidationError(problems)


def needs_approval(action: SwapAction, quote: SwapQuote) -> bool:
    """Token-standard sources need an allowance for the quote's spender."""
    return not is_native_token(action.from_address) and bool(quote.estimate.approval_address)


def build_batch_calls(swaps: list[SwapWithQuote]) -> list[BatchCall]:
    """Flatten quoted swaps into approval + swap calls, preserving input order.

    Each approval directly precedes the swap that spends it. Native sources
    never get an approval call.
    """
    calls: list[BatchCall] = []

    for item in swaps:
        action = item.action
        quote = item.quote

        if item.needs_approval and not is_native_token(action.from_address):
            spender = quote.estimate.approval_address
            if not spender:
                raise BatchValidationError(
                    [f"quote for {action.from_symbol} -> {action.to_symbol} has no approval address"]
                )
            calls.append(
                BatchCall(
                    to=action.from_address,
                    data=encode_approve(spender, quote.estimate.from_amount),
                    value=0,
                    description=f"Approve {action.from_symbol} for swap",
                )
            )

        tx = quote.transaction_request
        calls.append(
            BatchCall(
                to=tx.to,
                data=tx.data,
                value=tx.value,
                description=(
                    f"Swap {action.from_amount:.4f} {action.from_symbol} -> {action.to_symbol}"
                ),
            )
        )

    logger.info(
        "batch.calls_built",
        swaps=len(swaps),
        calls=len(calls),
        approvals=len(calls) - len(swaps),
    )
    return calls


def count_calls(swaps: list[SwapWithQuote]) -> int:
    """Number of calls the batch will contain (approvals count as extra calls)."""
    return sum(
        2 if s.needs_approval and not is_native_token(s.action.from_address) else 1
        for s in swaps
    )


def estimate_calls(swaps: list[SwapAction]) -> int:
    """Call count before quoting: every token-standard source is assumed to need approval."""
    return sum(1 if is_native_token(s.from_address) else 2 for s in swaps)


def build_transfer_calls(
    transfers: list[TransferInstruction],
    holdings: list[AssetHolding],
) -> list[BatchCall]:
    """Build one atomic list of native and token-standard transfers.

    Raises:
        BatchValidationError: If any instruction lacks a recipient, references
            an unknown token, or has a non-positive amount.
    """
    by_address = _holdings_by_address(holdings)
    problems: list[str] = []

    for n, transfer in enumerate(transfers, start=1):
        if not transfer.recipient:
            problems.append(f"send #{n}: recipient is required")
        elif not is_address(transfer.recipient):
            problems.append(f"send #{n}: invalid recipient {transfer.recipient}")
        if not transfer.token_address:
            problems.append(f"send #{n}: token is required")
        elif transfer.token_address.lower() not in by_address:
            problems.append(f"send #{n}: token {transfer.token_address} not found")
        if transfer.amount <= 0:
            problems.append(f"send #{n}: amount must be positive")

    if problems:
        logger.error("batch.validation_failed", problems=problems)
        raise BatchValidationError(problems)

    calls: list[BatchCall] = []
    for transfer in transfers:
        token = by_address[transfer.token_address.lower()]
        amount = to_base_units(transfer.amount, token.decimals)

        if is_native_token(token.address):
            calls.append(
                BatchCall(
                    to=transfer.recipient,
                    data="0x",
                    value=amount,
                    description=f"Send {transfer.amount} {token.symbol} to {transfer.recipient}",
                )
            )
        else:
            calls.append(
                BatchCall(
                    to=token.address,
                    data=encode_transfer(transfer.recipient, amount),
                    value=0,
                    description=f"Send {transfer.amount} {token.symbol} to {transfer.recipient}",
                )
            )

    logger.info("batch.transfers_built", calls=len(calls))
    return calls
