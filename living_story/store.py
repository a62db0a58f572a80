"""In-memory store of phase content and sync/lock metadata."""

import copy
from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger

from .dependencies import DependencyResolver
from .models.content import PhaseContent, coerce_content, content_to_dict, empty_content
from .models.effects import utcnow
from .models.phase import ALL_PHASES, Phase, PhaseState, SyncStatus, to_phase


class PhaseStore:
    """Holds the current content and sync/lock flags for all five phases.

    All mutation goes through these methods. Staleness is only computed at
    the moment of a write: locking or unlocking never changes sync status.
    """

    def __init__(self, resolver: Optional[DependencyResolver] = None):
        self.resolver = resolver or DependencyResolver()
        self._states: Dict[Phase, PhaseState] = {
            phase: PhaseState(content=empty_content(phase)) for phase in ALL_PHASES
        }

    def get(self, phase) -> PhaseState:
        return self._states[to_phase(phase)]

    def states(self) -> Dict[Phase, PhaseState]:
        return dict(self._states)

    def set_content(self, phase, content) -> List[Phase]:
        """Replace a phase's content and mark unlocked downstream phases stale.

        Returns the phases that were marked out of sync. Locked receivers are
        skipped, but propagation still reaches the phases beyond them.
        """
        phase = to_phase(phase)
        state = self._states[phase]
        state.content = coerce_content(phase, content)
        state.last_updated_at = utcnow()

        if state.is_locked:
            logger.debug(f"Phase {int(phase)} is locked; not propagating staleness")
            return []

        marked = []
        for target in self.resolver.affected_phases(phase):
            target_state = self._states[target]
            if target_state.is_locked:
                continue
            target_state.sync_status = SyncStatus.OUT_OF_SYNC
            marked.append(target)
        return marked

    def replace_generated(self, phase, content) -> None:
        """Store regenerated content for a phase and mark it in sync."""
        phase = to_phase(phase)
        state = self._states[phase]
        state.content = coerce_content(phase, content)
        state.last_updated_at = utcnow()
        state.sync_status = SyncStatus.IN_SYNC

    def mark_in_sync(self, phase) -> None:
        self._states[to_phase(phase)].sync_status = SyncStatus.IN_SYNC

    def set_lock(self, phase, locked: bool) -> None:
        self._states[to_phase(phase)].is_locked = bool(locked)

    def is_out_of_sync(self, phase) -> bool:
        return self._states[to_phase(phase)].is_out_of_sync

    def copy_states(self) -> Dict[Phase, PhaseState]:
        return copy.deepcopy(self._states)

    def restore_states(self, states: Dict[Phase, PhaseState]) -> None:
        self._states = copy.deepcopy(states)

    # -------------------------------------------------------------------------
    # Rehydration seam for external storage
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            int(phase): {
                "content": content_to_dict(state.content),
                "is_locked": state.is_locked,
                "sync_status": state.sync_status.value,
                "last_updated_at": (
                    state.last_updated_at.isoformat() if state.last_updated_at else None
                ),
            }
            for phase, state in self._states.items()
        }

    @classmethod
    def from_dict(cls, data: dict, resolver: Optional[DependencyResolver] = None) -> "PhaseStore":
        """Build a store from ``to_dict`` output; missing phases stay empty.

        Raises ``InvalidPhaseTransition`` for unknown phase numbers and
        ``InvalidContentError`` for content that does not fit its phase.
        """
        store = cls(resolver)
        for key, entry in (data or {}).items():
            # JSON documents carry the phase numbers as string keys
            if isinstance(key, str) and key.isdigit():
                key = int(key)
            phase = to_phase(key)
            entry = entry or {}
            state = store._states[phase]
            state.content = coerce_content(phase, entry.get("content"))
            state.is_locked = bool(entry.get("is_locked", False))
            status = entry.get("sync_status", SyncStatus.IN_SYNC.value)
            state.sync_status = SyncStatus(status)
            stamp = entry.get("last_updated_at")
            if isinstance(stamp, str):
                stamp = datetime.fromisoformat(stamp)
            state.last_updated_at = stamp

        # Brainstorm has no upstream, so it can never be stale.
        store._states[Phase.BRAINSTORM].sync_status = SyncStatus.IN_SYNC
        return store

    def content_snapshot(self) -> Dict[Phase, PhaseContent]:
        return {phase: state.content.model_copy(deep=True) for phase, state in self._states.items()}
