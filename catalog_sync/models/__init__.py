"""
Data models for catalog reconciliation.

This module contains pure data classes with no business logic.
"""

from .catalog import (
    CatalogEntry,
    CreateOp,
    Decision,
    ExistingRecord,
    Group,
    RunMode,
    UpdateOp,
)
from .run_state import LogEntry, RunPhase, RunState, Severity

__all__ = [
    'CatalogEntry',
    'CreateOp',
    'Decision',
    'ExistingRecord',
    'Group',
    'LogEntry',
    'RunMode',
    'RunPhase',
    'RunState',
    'Severity',
    'UpdateOp',
]
