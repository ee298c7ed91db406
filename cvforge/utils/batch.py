"""
Concurrent execution of independent units (templates, postings, bullets).

One unit's failure never aborts its siblings: every unit yields a UnitResult and the
caller gets a BatchOutcome with a success/failure summary.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from loguru import logger

U = TypeVar("U")
R = TypeVar("R")


@dataclass
class UnitResult(Generic[U, R]):
    """
    Outcome of a single unit.

    Attributes:
        index: Position of the unit in the input sequence
        unit: The input unit
        value: Worker return value (None on failure)
        error: Exception raised by the worker (None on success)
    """

    index: int
    unit: U
    value: Optional[R] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchOutcome(Generic[U, R]):
    """Per-unit results of a multi-unit operation, in input order."""

    results: List[UnitResult[U, R]] = field(default_factory=list)

    @property
    def succeeded(self) -> List[UnitResult[U, R]]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> List[UnitResult[U, R]]:
        return [r for r in self.results if not r.ok]

    @property
    def partial_failure(self) -> bool:
        """True when some, but not all, units failed."""
        return bool(self.failed) and bool(self.succeeded)

    @property
    def summary(self) -> dict[str, int]:
        return {
            "total": len(self.results),
            "successful": len(self.succeeded),
            "failed": len(self.failed),
        }

    def values(self) -> List[R]:
        """Return values of successful units, in input order."""
        return [r.value for r in self.succeeded]


def run_concurrently(
    units: Sequence[U],
    worker: Callable[[U], R],
    label: str = "unit",
    max_workers: int = 4,
    describe: Callable[[U], Any] = None,
) -> BatchOutcome[U, R]:
    """
    Run worker over units on a thread pool and collect every outcome.

    Args:
        units: Independent inputs with no ordering dependency
        worker: Function applied to each unit
        label: Noun used in log messages (e.g., "template")
        max_workers: Thread pool size (1 runs units sequentially)
        describe: Optional function giving a short log-friendly name for a unit

    Returns:
        BatchOutcome with one UnitResult per unit, ordered like the input
    """
    results: List[Optional[UnitResult[U, R]]] = [None] * len(units)
    if not units:
        return BatchOutcome(results=[])

    name_of = describe or (lambda unit: unit)

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(units)))) as executor:
        future_to_index = {executor.submit(worker, unit): i for i, unit in enumerate(units)}
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            unit = units[index]
            try:
                results[index] = UnitResult(index=index, unit=unit, value=future.result())
            except Exception as e:
                logger.error(f"{label} {name_of(unit)!s} failed: {e}")
                results[index] = UnitResult(index=index, unit=unit, error=e)

    outcome = BatchOutcome(results=results)
    summary = outcome.summary
    logger.info(
        f"{label} batch finished: {summary['successful']}/{summary['total']} succeeded"
    )
    return outcome
