"""Abstract base class for batch submitters."""

from abc import ABC, abstractmethod

from basketswap.models import BatchCall


class SubmissionError(Exception):
    """Raised when the submission service rejects or fails a batch."""


class BatchSubmitter(ABC):
    """Interface for submitting an ordered call list as one atomic unit."""

    @abstractmethod
    def submit(self, calls: list[BatchCall]) -> str:
        """Submit the calls in order. Returns the transaction identifier.

        Raises:
            SubmissionError: If the batch was not accepted.
        """
        ...
