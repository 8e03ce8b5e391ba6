"""Allocation sliders - keep N percentages summing to 100 while one moves."""

from dataclasses import dataclass

import structlog

from basketswap.models import AssetHolding, TokenListEntry

logger = structlog.get_logger(__name__)

SUM_EPSILON = 0.01


class AllocationError(ValueError):
    """Raised when a slider operation is rejected."""


class LockedSliderError(AllocationError):
    """Raised when a locked slider is edited directly."""


@dataclass
class SliderUpdate:
    """Outcome of a single slider move."""

    values: list[float]
    accepted: bool
    reason: str  # "applied" or "last_unlocked_slider"
    residual: float  # sum(values) - 100 after the move


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def set_slider(
    values: list[float],
    locked: list[bool],
    index: int,
    new_value: float,
    epsilon: float = SUM_EPSILON,
) -> SliderUpdate:
    """Move one slider and let a single unlocked slider absorb the change.

    The compensating slider is the highest-index unlocked entry other than
    ``index``. Locked entries are never changed. The input list is not
    modified.

    Raises:
        AllocationError: If ``index`` is out of range or the lists differ in length.
        LockedSliderError: If the slider at ``index`` is locked.
    """
    if len(values) != len(locked):
        raise AllocationError(
            f"values and locked flags differ in length ({len(values)} != {len(locked)})"
        )
    if not 0 <= index < len(values):
        raise AllocationError(f"slider index {index} out of range for {len(values)} sliders")
    if locked[index]:
        raise LockedSliderError(f"slider {index} is locked")

    updated = list(values)
    unlocked = [i for i, is_locked in enumerate(locked) if not is_locked]

    if len(unlocked) <= 1:
        return SliderUpdate(
            values=updated,
            accepted=False,
            reason="last_unlocked_slider",
            residual=sum(updated) - 100.0,
        )

    adjust_index = [i for i in unlocked if i != index][-1]

    clamped = _clamp(new_value)
    delta = clamped - updated[index]
    updated[index] = clamped
    updated[adjust_index] = _clamp(updated[adjust_index] - delta)

    total = sum(updated)
    if abs(total - 100.0) > epsilon:
        updated[adjust_index] = _clamp(updated[adjust_index] + (100.0 - total))

    residual = sum(updated) - 100.0
    if abs(residual) > epsilon:
        logger.debug(
            "allocation.residual",
            index=index,
            adjust_index=adjust_index,
            residual=round(residual, 4),
        )

    return SliderUpdate(values=updated, accepted=True, reason="applied", residual=residual)


class AllocationModel:
    """Target percentages for a portfolio's holdings, edited one slider at a time."""

    def __init__(self, holdings: list[AssetHolding], epsilon: float = SUM_EPSILON):
        self._holdings = [h.model_copy() for h in holdings]
        self._original = [h.percentage for h in self._holdings]
        self._values = list(self._original)
        self._locked = [h.locked for h in self._holdings]
        self._epsilon = epsilon

    @classmethod
    def from_holdings(cls, holdings: list[AssetHolding], epsilon: float = SUM_EPSILON) -> "AllocationModel":
        return cls(holdings, epsilon=epsilon)

    @property
    def holdings(self) -> list[AssetHolding]:
        """Holdings in slider order, carrying current lock state."""
        return [
            h.model_copy(update={"locked": is_locked})
            for h, is_locked in zip(self._holdings, self._locked)
        ]

    @property
    def values(self) -> list[float]:
        return list(self._values)

    @property
    def locked(self) -> list[bool]:
        return list(self._locked)

    def __len__(self) -> int:
        return len(self._values)

    def index_of(self, symbol_or_address: str) -> int:
        """Find a slider by symbol or address (case-insensitive)."""
        key = symbol_or_address.lower()
        for i, holding in enumerate(self._holdings):
            if holding.address.lower() == key or holding.symbol.lower() == key:
                return i
        raise AllocationError(f"no holding matches '{symbol_or_address}'")

    def set_slider(self, index: int, new_value: float) -> SliderUpdate:
        update = set_slider(self._values, self._locked, index, new_value, self._epsilon)
        if update.accepted:
            self._values = update.values
        else:
            logger.info("allocation.slider_rejected", index=index, reason=update.reason)
        return update

    def lock(self, index: int) -> None:
        self._check_index(index)
        self._locked[index] = True

    def unlock(self, index: int) -> None:
        self._check_index(index)
        self._locked[index] = False

    def toggle_lock(self, index: int) -> bool:
        self._check_index(index)
        self._locked[index] = not self._locked[index]
        return self._locked[index]

    def add_asset(self, entry: TokenListEntry, price: float = 0.0) -> int:
        """Append a zero-balance holding at 0% and return its slider index."""
        address = entry.address.lower()
        if any(h.address.lower() == address for h in self._holdings):
            raise AllocationError(f"{entry.symbol} ({entry.address}) is already in the portfolio")

        holding = AssetHolding(
            address=entry.address,
            symbol=entry.symbol,
            name=entry.name,
            decimals=entry.decimals,
            price=price,
            logo_url=entry.logo_uri,
        )
        self._holdings.append(holding)
        self._original.append(0.0)
        self._values.append(0.0)
        self._locked.append(False)

        logger.info("allocation.asset_added", symbol=entry.symbol, address=entry.address)
        return len(self._holdings) - 1

    def targets(self) -> list[float]:
        """Current target allocation, index-aligned with ``holdings``."""
        return list(self._values)

    def total(self) -> float:
        return sum(self._values)

    def has_changes(self) -> bool:
        return any(
            abs(value - original) > 1e-9
            for value, original in zip(self._values, self._original)
        )

    def reset(self) -> None:
        """Restore the percentages from the loaded snapshot. Locks are kept."""
        self._values = list(self._original)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._values):
            raise AllocationError(f"slider index {index} out of range for {len(self._values)} sliders")
