"""Single-slot undo."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from loguru import logger

from .exceptions import NoSnapshotAvailable
from .models.effects import utcnow
from .models.phase import Phase, PhaseState


@dataclass
class UndoSnapshot:
    states: Dict[Phase, PhaseState]
    reason: str = ""
    taken_at: datetime = field(default_factory=utcnow)


class UndoManager:
    """Keeps one snapshot of the store, taken right before a committed update.

    Each snapshot replaces the previous one; there is no redo. Restoring does
    not touch ripple effects.
    """

    def __init__(self):
        self._snapshot: Optional[UndoSnapshot] = None

    def snapshot(self, store, reason: str = "") -> UndoSnapshot:
        self._snapshot = UndoSnapshot(states=store.copy_states(), reason=reason)
        return self._snapshot

    def can_undo(self) -> bool:
        return self._snapshot is not None

    def undo(self, store):
        if self._snapshot is None:
            raise NoSnapshotAvailable()
        snapshot, self._snapshot = self._snapshot, None
        store.restore_states(snapshot.states)
        logger.info(f"Restored snapshot from {snapshot.taken_at:%H:%M:%S} ({snapshot.reason})")
        return store

    def discard(self) -> None:
        self._snapshot = None
