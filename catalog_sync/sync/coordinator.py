"""
Run Coordinator

Owns the single run slot and its state machine:

    idle -> starting -> downloading -> [connecting] -> fetching -> syncing
         -> complete | error | stopped

A run downloads the group listing, resolves the exchange rate, loads the
store snapshot and then processes groups strictly in order: fetch rows,
normalize, diff, and dispatch updates and creates in paced batches.
Every batch and every group updates the shared state and notifies
subscribers before the next unit of work starts.
"""

import logging
import threading
from typing import Callable, Optional

from ..common.config_loader import ConfigurationError, SyncSettings
from ..common.pacing import FixedIntervalPacer
from ..feed import CurrencyRateProvider, FeedClient, FeedError
from ..models import Group, LogEntry, RunMode, RunPhase, RunState, Severity
from ..models.run_state import utc_now
from ..reconcile import CatalogNormalizer, ReconciliationDiffer
from ..store import BatchDispatcher, InventorySnapshot, StoreBackend, create_backend
from .publisher import ProgressPublisher

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class RunCoordinator:
    """
    Single-flight sync runner with observable state.

    Usage:
        coordinator = RunCoordinator(settings)
        if coordinator.start("full", "ssh"):
            ...
        coordinator.status()
    """

    def __init__(
        self,
        settings: SyncSettings,
        publisher: Optional[ProgressPublisher] = None,
        feed_client: Optional[FeedClient] = None,
        rate_provider: Optional[CurrencyRateProvider] = None,
        backend_factory: Callable[[str, SyncSettings], StoreBackend] = create_backend,
        clock=utc_now,
    ):
        self.settings = settings
        self.publisher = publisher or ProgressPublisher()
        self.feed_client = feed_client or FeedClient(
            base_url=settings.feed.base_url,
            category_id=settings.feed.category_id,
            timeout=settings.feed.timeout,
        )
        self.rate_provider = rate_provider or CurrencyRateProvider(
            url=settings.currency.url,
            default_rate=settings.currency.default_rate,
            field=settings.currency.field,
            timeout=settings.currency.timeout,
        )
        self.backend_factory = backend_factory
        self._clock = clock
        self._lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None
        self._state = RunState(log_capacity=settings.log_capacity)

        if self.rate_provider.on_warning is None:
            self.rate_provider.on_warning = lambda message: self.log(message, Severity.WARN)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def status(self, include_logs: bool = True) -> dict:
        """Consistent copy of the run state."""
        with self._lock:
            return self._state.to_dict(include_logs=include_logs)

    @property
    def running(self) -> bool:
        with self._lock:
            return self._state.running

    @property
    def phase(self) -> RunPhase:
        with self._lock:
            return self._state.phase

    def subscribe(self):
        """Subscribe to events; the first event is `init` with the full state."""
        with self._lock:
            return self.publisher.subscribe(initial={"type": "init", "data": self.status()})

    # ------------------------------------------------------------------
    # State mutation (always under the lock, always published)
    # ------------------------------------------------------------------

    def log(self, message: str, severity: Severity = Severity.INFO) -> None:
        """Append to the run log, mirror to process logging and publish."""
        entry = LogEntry(timestamp=self._clock(), message=message, severity=Severity(severity))
        logger.log(_LOG_LEVELS[entry.severity], message)
        with self._lock:
            self._state.append_log(entry)
            self.publisher.publish("log", entry.to_dict())

    def _update(self, **changes) -> None:
        with self._lock:
            for name, value in changes.items():
                setattr(self._state, name, value)
            self.publisher.publish("progress", self._state.to_dict(include_logs=False))

    def _count(self, **deltas: int) -> None:
        with self._lock:
            for name, delta in deltas.items():
                if delta:
                    setattr(self._state, name, getattr(self._state, name) + delta)
            self.publisher.publish("progress", self._state.to_dict(include_logs=False))

    def _stop_requested(self) -> bool:
        with self._lock:
            return self._state.stop_requested

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def start(self, mode: str = "full", method: Optional[str] = None, background: bool = True) -> bool:
        """
        Start a run unless one is already active.

        Args:
            mode: "full" or "prices"
            method: "ssh" or "rest" (default from settings)
            background: Run on a worker thread; False runs inline

        Returns:
            True if the run was started, False if rejected

        Raises:
            ValueError: For an unknown mode
        """
        run_mode = RunMode(mode)
        method = method or self.settings.default_method

        with self._lock:
            if self._state.running:
                logger.warning("Sync already running, start request rejected")
                return False

            self._state = RunState(
                running=True,
                phase=RunPhase.STARTING,
                mode=run_mode.value,
                method=method,
                start_time=self._clock(),
                log_capacity=self.settings.log_capacity,
            )
            self.publisher.publish("progress", self._state.to_dict(include_logs=False))

        if background:
            self._thread = threading.Thread(
                target=self._run, args=(run_mode, method), name="catalog-sync", daemon=True
            )
            self._thread.start()
        else:
            self._run(run_mode, method)
        return True

    def request_stop(self) -> bool:
        """Ask the active run to stop before its next group or batch."""
        with self._lock:
            if not self._state.running:
                return False
            self._state.stop_requested = True
        self.log("Stop requested...", Severity.WARN)
        self._update()
        return True

    def reset(self) -> bool:
        """Return a finished run to idle; rejected while running."""
        with self._lock:
            if self._state.running:
                return False
            self._state = RunState(log_capacity=self.settings.log_capacity)
            self.publisher.publish("progress", self._state.to_dict(include_logs=False))
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join the worker thread; True once no run is active."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        return not self.running

    def count_published(self, method: Optional[str] = None) -> int:
        """Ad-hoc count of published store items through a fresh backend."""
        backend = self.backend_factory(method or self.settings.default_method, self.settings)
        with backend:
            if backend.requires_connection:
                backend.connect()
            return backend.count_published()

    # ------------------------------------------------------------------
    # Run body
    # ------------------------------------------------------------------

    def _finish(self, phase: RunPhase, end_time=None) -> None:
        self._update(phase=phase, running=False, end_time=end_time or self._clock())

    def _run(self, mode: RunMode, method: str) -> None:
        try:
            stopped = self._execute(mode, method)
        except ConfigurationError as e:
            self.log(f"Configuration error: {e}", Severity.ERROR)
            self._finish(RunPhase.ERROR)
            return
        except Exception as e:
            logger.exception("Sync failed")
            self.log(f"Sync failed: {e}", Severity.ERROR)
            self._finish(RunPhase.ERROR)
            return

        end_time = self._clock()
        with self._lock:
            state = self._state.to_dict(include_logs=False)
            minutes = (end_time - self._state.start_time).total_seconds() / 60
        outcome = "stopped" if stopped else "complete"
        self.log(
            f"Sync {outcome} in {minutes:.1f} min! Created: {state['created']}, "
            f"Updated: {state['updated']}, Skipped: {state['skipped']}, Errors: {state['errors']}",
            Severity.WARN if stopped else Severity.SUCCESS,
        )
        self._finish(RunPhase.STOPPED if stopped else RunPhase.COMPLETE, end_time)

    def _execute(self, mode: RunMode, method: str) -> bool:
        """Run all phases; returns True when the run was stopped early."""
        backend = self.backend_factory(method, self.settings)
        backend.on_warning = lambda message: self.log(message, Severity.WARN)

        with backend:
            self.log(f"Starting {method} sync ({mode.value} mode)...")

            self._update(phase=RunPhase.DOWNLOADING)
            self.log("Downloading card data from feed...")
            groups = self.feed_client.fetch_groups()
            self.log(f"Found {len(groups)} sets", Severity.SUCCESS)
            self._update(total=len(groups))

            rate = self.rate_provider.fetch_rate()
            self.log(f"Exchange rate: {rate:,.2f} per USD")

            if backend.requires_connection:
                self._update(phase=RunPhase.CONNECTING)
                self.log("Connecting to store host...")
                backend.connect()

            self._update(phase=RunPhase.FETCHING)
            self.log("Fetching existing products...")
            snapshot = backend.load_snapshot()
            self.log(f"Found {len(snapshot)} existing products", Severity.SUCCESS)

            self._update(phase=RunPhase.SYNCING, progress=0)
            self.log("Starting product sync...")

            normalizer = CatalogNormalizer(
                rate=rate,
                min_price=self.settings.min_price,
                pricing=self.settings.pricing_for(method),
            )
            differ = ReconciliationDiffer(mode)
            dispatcher = BatchDispatcher(
                pacer=FixedIntervalPacer(backend.batch_delay),
                on_warning=lambda message: self.log(message, Severity.WARN),
                should_stop=self._stop_requested,
            )

            every = max(1, self.settings.progress_log_every)
            for index, group in enumerate(groups, 1):
                if self._stop_requested():
                    self.log(f"Stopping after {index - 1}/{len(groups)} sets", Severity.WARN)
                    return True

                self._update(progress=index, current_group=group.name)
                if self._process_group(group, normalizer, differ, dispatcher, backend, snapshot):
                    self.log(f"Stopped during set {group.name} ({index}/{len(groups)})", Severity.WARN)
                    return True

                if index % every == 0:
                    state = self.status(include_logs=False)
                    self.log(
                        f"{index}/{len(groups)} sets | updated {state['updated']} | "
                        f"created {state['created']} | skipped {state['skipped']}"
                    )

        return False

    def _process_group(
        self,
        group: Group,
        normalizer: CatalogNormalizer,
        differ: ReconciliationDiffer,
        dispatcher: BatchDispatcher,
        backend: StoreBackend,
        snapshot: InventorySnapshot,
    ) -> bool:
        """Reconcile one set; returns True when a stop request cut its batches short."""
        try:
            rows = self.feed_client.fetch_group_rows(group.group_id)
        except FeedError as e:
            self.log(f"Skipping set {group.name}: {e}", Severity.WARN)
            self._count(errors=1)
            return False

        entries = normalizer.normalize_rows(rows, group)
        if not entries:
            return False

        plan = differ.diff(entries, snapshot)
        if plan.skipped:
            self._count(skipped=plan.skipped)

        stopped = False
        if plan.updates:
            result = dispatcher.dispatch(
                plan.updates,
                backend.apply_updates,
                backend.update_batch_size,
                label="Price update",
                on_batch=lambda applied, failed: self._count(updated=applied, errors=failed),
            )
            stopped = result.stopped

        if plan.creates and not stopped:
            result = dispatcher.dispatch(
                plan.creates,
                lambda batch: backend.apply_creates(batch, snapshot),
                backend.create_batch_size,
                label="Create",
                on_batch=lambda applied, failed: self._count(created=applied, errors=failed),
            )
            stopped = result.stopped
        return stopped
