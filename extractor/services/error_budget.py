"""Error budget guarding a remote inference API.

The error budget is a plain failure counter with a fixed threshold. Every
failed API call increments it, every successful call decrements it (never
below zero). While the count is above the threshold the feature is tripped
and no further entries are dispatched.

Trip and recovery are asymmetric: a single failure past the threshold trips
the budget immediately, while recovery needs one success per failure. The
tripped state is derived from the live counter on every check, so in-flight
successes can bring the budget back below the threshold during a run.

Usage:
    budget = ErrorBudget("object detection")

    if not budget.is_tripped:
        try:
            await call_api()
            budget.record_success()
        except httpx.RequestError:
            budget.record_failure()
"""

from __future__ import annotations

import threading

from extractor.core.logging import get_logger
from extractor.core.metrics import set_error_budget

logger = get_logger(__name__)

# Maximum number of outstanding errors before a feature is skipped
ERROR_THRESHOLD = 5


class ErrorBudget:
    """Failure counter with a fixed trip threshold.

    Attributes:
        name: Feature name for logging and metrics
        threshold: The budget trips when the count exceeds this value
    """

    def __init__(self, name: str, threshold: int = ERROR_THRESHOLD) -> None:
        if threshold < 0:
            raise ValueError(f"Error threshold must not be negative, got {threshold}")
        self._name = name
        self._threshold = threshold
        self._count = 0
        self._lock = threading.Lock()
        set_error_budget(name, 0)

    @property
    def name(self) -> str:
        return self._name

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def count(self) -> int:
        return self._count

    @property
    def is_tripped(self) -> bool:
        """Whether the count is above the threshold. Read without locking."""
        return self._count > self._threshold

    def record_failure(self) -> None:
        """Record a failed remote call.

        Warns once when the count crosses the threshold. Further failures
        while tripped do not warn again.
        """
        with self._lock:
            previous = self._count
            self._count += 1
            current = self._count
        set_error_budget(self._name, current)

        if previous <= self._threshold < current:
            logger.warning(
                f"Too many errors. Skip processing of {self._name}",
                extra={"feature": self._name, "error_count": current},
            )

    def record_success(self) -> None:
        """Record a successful remote call."""
        with self._lock:
            if self._count > 0:
                self._count -= 1
            current = self._count
        set_error_budget(self._name, current)

    def __repr__(self) -> str:
        return f"ErrorBudget(name={self._name!r}, count={self._count}, threshold={self._threshold})"
