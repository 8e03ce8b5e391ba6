"""Allocation sliders with lock support."""

from basketswap.allocation.model import (
    AllocationError,
    AllocationModel,
    LockedSliderError,
    SliderUpdate,
    set_slider,
)

__all__ = [
    "AllocationError",
    "AllocationModel",
    "LockedSliderError",
    "SliderUpdate",
    "set_slider",
]
