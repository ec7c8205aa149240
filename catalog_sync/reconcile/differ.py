"""
Reconciliation Differ

Decides CREATE, UPDATE or SKIP for each catalog entry against the
inventory snapshot:

    found, |stored - new| <= 1     -> SKIP
    found, price changed           -> UPDATE (full refresh only in full mode)
    not found, full mode           -> CREATE
    not found, prices-only mode    -> SKIP
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional

from ..models import CatalogEntry, CreateOp, Decision, ExistingRecord, RunMode, UpdateOp
from ..store.snapshot import InventorySnapshot

PRICE_TOLERANCE = Decimal(1)


@dataclass
class ReconciliationPlan:
    """Operations for one group."""
    creates: List[CreateOp] = field(default_factory=list)
    updates: List[UpdateOp] = field(default_factory=list)
    skipped: int = 0

    @property
    def total(self) -> int:
        return len(self.creates) + len(self.updates) + self.skipped


class ReconciliationDiffer:
    """Partitions entries into creates, updates and skips for a fixed run mode."""

    def __init__(self, mode: RunMode):
        self.mode = RunMode(mode)

    def decide(self, entry: CatalogEntry, existing: Optional[ExistingRecord]) -> Decision:
        if existing is not None:
            if abs(existing.current_price - Decimal(entry.local_price)) <= PRICE_TOLERANCE:
                return Decision.SKIP
            return Decision.UPDATE
        if self.mode is RunMode.FULL:
            return Decision.CREATE
        return Decision.SKIP

    def _update_op(self, entry: CatalogEntry, existing: ExistingRecord) -> UpdateOp:
        op = UpdateOp(
            destination_id=existing.destination_id,
            price_local=entry.local_price,
            external_key=entry.external_key,
        )
        if self.mode is RunMode.FULL:
            op.title = entry.title
            op.description = entry.description
            op.image_url = entry.image_url
        return op

    def diff(self, entries: Iterable[CatalogEntry], snapshot: InventorySnapshot) -> ReconciliationPlan:
        """
        Build the plan for one group.

        Entries sharing an external key collapse to the last one; the
        earlier duplicates count as skipped.
        """
        plan = ReconciliationPlan()

        latest = {}
        for entry in entries:
            if entry.external_key in latest:
                plan.skipped += 1
            latest[entry.external_key] = entry

        for entry in latest.values():
            existing = snapshot.get(entry.external_key)
            decision = self.decide(entry, existing)
            if decision is Decision.SKIP:
                plan.skipped += 1
            elif decision is Decision.UPDATE:
                plan.updates.append(self._update_op(entry, existing))
            else:
                plan.creates.append(CreateOp(
                    external_key=entry.external_key,
                    title=entry.title,
                    price_local=entry.local_price,
                    description=entry.description,
                    image_url=entry.image_url,
                ))
        return plan
