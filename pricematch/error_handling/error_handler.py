"""
Error isolation and run reporting for the pricing match engine.

A failure computing one product or listing must never abort a tenant's
run. ErrorHandler wraps each per-item computation, logs the failure with
diagnostic context, and records it in the run's RunReport.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from .exceptions import ProcessingWarning, RowParseWarning


# Configure logging
logger = logging.getLogger(__name__)


EngineWarning = Union[RowParseWarning, ProcessingWarning]


@dataclass
class RunReport:
    """
    Collects non-fatal issues and counters for a single run.

    Attributes:
        max_samples: Maximum number of warnings kept per warning kind
        counts: Occurrences per warning kind and free-form counters
        samples: Up to max_samples warnings per kind, in arrival order
    """
    max_samples: int = 5
    counts: Counter = field(default_factory=Counter)
    samples: Dict[str, List[EngineWarning]] = field(default_factory=dict)

    def add_warning(self, warning: EngineWarning) -> None:
        """
        Record a warning, keeping its sample if the kind is not yet full.

        Args:
            warning: RowParseWarning or ProcessingWarning to record
        """
        kind = type(warning).__name__
        self.counts[kind] += 1
        kept = self.samples.setdefault(kind, [])
        if len(kept) < self.max_samples:
            kept.append(warning)
        logger.warning(f"{kind}: {warning}")

    def extend(self, warnings: List[EngineWarning]) -> None:
        for warning in warnings:
            self.add_warning(warning)

    def increment(self, counter: str, amount: int = 1) -> None:
        self.counts[counter] += amount

    @property
    def warning_count(self) -> int:
        return sum(self.counts[kind] for kind in self.samples)

    @property
    def warnings(self) -> List[EngineWarning]:
        """All sampled warnings, flattened."""
        return [w for kept in self.samples.values() for w in kept]

    def summary(self) -> Dict[str, Any]:
        """
        Build a JSON-friendly summary for display to the user.

        Returns:
            Dictionary with counts and stringified samples per warning kind
        """
        return {
            'counts': dict(self.counts),
            'samples': {
                kind: [str(w) for w in kept] for kind, kept in self.samples.items()
            },
        }


class ErrorHandler:
    """
    Runs per-item computations in isolation.

    Attributes:
        report: Run report receiving a ProcessingWarning for every failure
    """

    def __init__(self, report: Optional[RunReport] = None):
        """
        Initialize error handler.

        Args:
            report: Report to record failures into (a new one if omitted)
        """
        self.report = report if report is not None else RunReport()

    def isolate(
        self,
        operation: Callable,
        *args,
        subject: str = "",
        **kwargs
    ) -> Any:
        """
        Execute operation, degrading any exception to a recorded warning.

        Args:
            operation: Callable to execute
            *args: Positional arguments for the operation
            subject: Identifier of the product or listing being computed
            **kwargs: Keyword arguments for the operation

        Returns:
            Result of the operation, or None if it raised
        """
        try:
            return operation(*args, **kwargs)
        except Exception as e:
            self._log_error(
                operation_name=operation.__name__,
                subject=subject,
                error=e
            )
            self.report.add_warning(
                ProcessingWarning(
                    operation=operation.__name__,
                    subject=subject,
                    message=f"{type(e).__name__}: {e}"
                )
            )
            return None

    def _log_error(
        self,
        operation_name: str,
        subject: str,
        error: Exception
    ) -> None:
        """
        Log error with timestamp, context, and diagnostic data.

        Args:
            operation_name: Name of the operation that failed
            subject: Identifier of the item being computed
            error: The exception that occurred
        """
        context = {
            'timestamp': datetime.now().isoformat(),
            'operation': operation_name,
            'subject': subject,
            'error_type': type(error).__name__,
            'error_message': str(error),
        }

        logger.error(
            f"Operation failed: {operation_name} | "
            f"Subject: {subject} | "
            f"Error: {type(error).__name__}: {str(error)}"
        )
        logger.debug(f"Full error context: {context}")
