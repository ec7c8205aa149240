"""
Run orchestration.

Modules:
    publisher   - Non-blocking fan-out of log/progress events
    coordinator - Single-flight run state machine
"""

from .coordinator import RunCoordinator
from .publisher import ProgressPublisher, Subscription

__all__ = [
    'ProgressPublisher',
    'RunCoordinator',
    'Subscription',
]
