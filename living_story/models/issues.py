"""Consistency issue records."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .effects import new_id
from .phase import Phase


class IssueKind(str, Enum):
    CHARACTER_INCONSISTENCY = "character_inconsistency"
    PLOT_HOLE = "plot_hole"
    TIMELINE_CONFLICT = "timeline_conflict"
    EMOTIONAL_DISCONNECT = "emotional_disconnect"


class IssueSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IssueStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


@dataclass
class ConsistencyIssue:
    description: str
    kind: IssueKind
    severity: IssueSeverity = IssueSeverity.MEDIUM
    suggested_fix: Optional[str] = None
    affected_phases: List[Phase] = field(default_factory=list)
    status: IssueStatus = IssueStatus.OPEN
    id: str = field(default_factory=lambda: new_id("issue"))

    @property
    def is_open(self) -> bool:
        return self.status is IssueStatus.OPEN
