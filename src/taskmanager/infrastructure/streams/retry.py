from __future__ import annotations

from dataclasses import dataclass, field

from src.taskmanager.domain.exceptions import NonRetryableError


@dataclass
class RetryPolicy:
    """Fixed backoff between redeliveries of a failed batch.

    ``skip_exhausted`` decides what happens once ``max_retries`` is used up:
    acknowledge and move on, or leave the batch pending for redelivery.
    """

    interval_s: float = 1.0
    max_retries: int = 3
    skip_exhausted: bool = True
    not_retryable: tuple[type[BaseException], ...] = field(
        default_factory=lambda: (NonRetryableError,)
    )

    def __post_init__(self) -> None:
        if self.interval_s < 0:
            raise ValueError("interval_s must not be negative")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")

    @property
    def max_attempts(self) -> int:
        return 1 + self.max_retries

    def add_not_retryable(self, *exc_types: type[BaseException]) -> None:
        self.not_retryable = tuple(dict.fromkeys(self.not_retryable + exc_types))

    def is_retryable(self, exc: BaseException) -> bool:
        return not isinstance(exc, self.not_retryable)

    def can_retry(self, attempt: int) -> bool:
        """Whether another attempt may follow the given (1-based) attempt."""
        return attempt < self.max_attempts
