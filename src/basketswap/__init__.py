"""Basket rebalancing through batched token swaps."""

__version__ = "0.1.0"
