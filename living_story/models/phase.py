"""Phase identifiers and per-phase state."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Optional

from ..exceptions import InvalidPhaseTransition


class Phase(IntEnum):
    BRAINSTORM = 0
    ONE_LINE = 1
    SCENE_LINES = 2
    SCENE_BEATS = 3
    SCRIPT_EXPORT = 4

    @property
    def label(self) -> str:
        return PHASE_LABELS[self]


PHASE_LABELS = {
    Phase.BRAINSTORM: "Brainstorm",
    Phase.ONE_LINE: "One-Line Summary",
    Phase.SCENE_LINES: "Scene Lines",
    Phase.SCENE_BEATS: "Scene Beats",
    Phase.SCRIPT_EXPORT: "Script Export",
}

ALL_PHASES = tuple(Phase)


def to_phase(value: Any) -> Phase:
    """Convert an integer to a Phase, rejecting other types and out-of-range numbers."""
    if isinstance(value, Phase):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPhaseTransition(f"Invalid phase number: {value!r}")
    try:
        return Phase(value)
    except ValueError:
        raise InvalidPhaseTransition(f"Invalid phase number: {value!r}") from None


class SyncStatus(str, Enum):
    IN_SYNC = "in_sync"
    OUT_OF_SYNC = "out_of_sync"


class PhaseDisplayState(str, Enum):
    """What a phase shows to the user.

    Locked is orthogonal to sync status but displayed as its own state;
    Updating is transient while a regeneration targets the phase.
    """

    IN_SYNC = "in_sync"
    OUT_OF_SYNC = "out_of_sync"
    LOCKED = "locked"
    UPDATING = "updating"


@dataclass
class PhaseState:
    content: Any
    is_locked: bool = False
    last_updated_at: Optional[datetime] = None
    sync_status: SyncStatus = field(default=SyncStatus.IN_SYNC)

    @property
    def is_out_of_sync(self) -> bool:
        return self.sync_status is SyncStatus.OUT_OF_SYNC
