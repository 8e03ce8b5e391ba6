"""Batch construction and submission."""

from basketswap.execution.base import BatchSubmitter, SubmissionError
from basketswap.execution.batch import (
    BatchValidationError,
    build_batch_calls,
    build_transfer_calls,
    count_calls,
    estimate_calls,
    needs_approval,
    validate_swaps,
)
from basketswap.execution.erc20 import is_native_token

__all__ = [
    "BatchSubmitter",
    "BatchValidationError",
    "SubmissionError",
    "build_batch_calls",
    "build_transfer_calls",
    "count_calls",
    "estimate_calls",
    "is_native_token",
    "needs_approval",
    "validate_swaps",
]
