"""
Store backend contract and batch dispatch.

A backend applies creates and updates to the destination store one batch
at a time. The dispatcher chunks pending operations, paces the batches and
turns a failed batch into a warning that contributes zero successes.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, TypeVar

from ..common.pacing import FixedIntervalPacer
from ..models import CreateOp, UpdateOp
from .snapshot import InventorySnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BackendError(Exception):
    """A call against the destination store failed."""


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most `size` items."""
    if size < 1:
        raise ValueError("Batch size must be >= 1")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


class StoreBackend(ABC):
    """
    Execution strategy against the destination store.

    Subclasses set `name`, batch sizes and the inter-batch delay.
    Selectable backends also set `settings_section`, the SyncSettings
    attribute passed to their `from_settings()`.
    """

    name = "base"
    settings_section = ""
    requires_connection = False
    create_batch_size = 100
    update_batch_size = 100
    batch_delay = 0.0
    on_warning: Optional[Callable[[str], None]] = None

    def connect(self) -> None:
        """Open long-lived channels (no-op for stateless backends)."""

    def close(self) -> None:
        """Release resources."""

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def warn(self, message: str) -> None:
        """Report a per-item failure to the process log and the run's warning hook."""
        logger.warning(message)
        if self.on_warning:
            self.on_warning(message)

    @abstractmethod
    def load_snapshot(self) -> InventorySnapshot:
        """Load the store's current items keyed by SKU."""

    @abstractmethod
    def apply_creates(self, batch: List[CreateOp], snapshot: InventorySnapshot) -> int:
        """
        Create one batch of items and register them in `snapshot`.

        Returns:
            Number of items created

        Raises:
            BackendError: If the whole batch failed
        """

    @abstractmethod
    def apply_updates(self, batch: List[UpdateOp]) -> int:
        """
        Update one batch of items.

        Returns:
            Number of items updated

        Raises:
            BackendError: If the whole batch failed
        """

    @abstractmethod
    def count_published(self) -> int:
        """Count published items in the store."""


@dataclass
class DispatchResult:
    applied: int = 0
    failed: int = 0
    batches: int = 0
    failed_batches: int = 0
    stopped: bool = False


class BatchDispatcher:
    """
    Sends operations through a backend in paced, fixed-size batches.

    No retries: a failed batch is reported once and skipped.

    Usage:
        dispatcher = BatchDispatcher(FixedIntervalPacer(1.0), on_warning=log_warning)
        result = dispatcher.dispatch(updates, backend.apply_updates, batch_size=100)
    """

    def __init__(
        self,
        pacer: Optional[FixedIntervalPacer] = None,
        on_warning: Optional[Callable[[str], None]] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ):
        self.pacer = pacer or FixedIntervalPacer(0)
        self.on_warning = on_warning
        self.should_stop = should_stop

    def dispatch(
        self,
        operations: Sequence[T],
        apply_batch: Callable[[List[T]], int],
        batch_size: int,
        label: str = "batch",
        on_batch: Optional[Callable[[int, int], None]] = None,
    ) -> DispatchResult:
        """
        Apply `operations` in chunks of `batch_size`.

        Args:
            operations: Pending operations
            apply_batch: Backend call applying one chunk, returning successes
            batch_size: Maximum operations per call
            label: Name used in warnings (e.g. "price update")
            on_batch: Called after every batch with (applied, failed)

        Returns:
            Aggregate result; `applied` never exceeds len(operations)
        """
        result = DispatchResult()
        for batch in chunked(operations, batch_size):
            if self.should_stop and self.should_stop():
                result.stopped = True
                break

            self.pacer.wait()
            result.batches += 1
            try:
                applied = max(0, min(int(apply_batch(batch)), len(batch)))
            except BackendError as e:
                applied = 0
                result.failed_batches += 1
                message = f"{label} batch of {len(batch)} failed: {e}"
                logger.warning(message)
                if self.on_warning:
                    self.on_warning(message)

            failed = len(batch) - applied
            result.applied += applied
            result.failed += failed
            if on_batch:
                on_batch(applied, failed)

        return result
