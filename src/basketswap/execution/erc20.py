"""Token-standard call encoding and native-asset detection."""

import re
from decimal import ROUND_DOWN, Decimal

NATIVE_PRECOMPILE = "0x0000000000000000000000000000000000000802"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_PLACEHOLDER = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

NATIVE_ADDRESSES = frozenset(
    addr.lower() for addr in (NATIVE_PRECOMPILE, ZERO_ADDRESS, NATIVE_PLACEHOLDER)
)

# keccak256("approve(address,uint256)")[:4], keccak256("transfer(address,uint256)")[:4]
APPROVE_SELECTOR = "095ea7b3"
TRANSFER_SELECTOR = "a9059cbb"

MAX_UINT256 = 2**256 - 1

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_address(value: str) -> bool:
    return bool(value) and bool(_ADDRESS_RE.match(value))


def is_native_token(address: str) -> bool:
    """True for the chain's native-currency sentinel addresses (case-insensitive)."""
    return (address or "").lower() in NATIVE_ADDRESSES


def _encode_address(address: str) -> str:
    if not is_address(address):
        raise ValueError(f"invalid address: {address!r}")
    return address[2:].lower().rjust(64, "0")


def _encode_uint256(amount: int) -> str:
    if amount < 0 or amount > MAX_UINT256:
        raise ValueError(f"amount out of uint256 range: {amount}")
    return format(amount, "x").rjust(64, "0")


def encode_approve(spender: str, amount: int) -> str:
    """Call data for ``approve(spender, amount)``."""
    return "0x" + APPROVE_SELECTOR + _encode_address(spender) + _encode_uint256(amount)


def encode_transfer(recipient: str, amount: int) -> str:
    """Call data for ``transfer(recipient, amount)``."""
    return "0x" + TRANSFER_SELECTOR + _encode_address(recipient) + _encode_uint256(amount)


def to_base_units(amount: float, decimals: int) -> int:
    """Convert a human token amount to integer base units, rounding down."""
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")
    scaled = Decimal(str(amount)) * (Decimal(10) ** decimals)
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))
