"""Ripple effect and update history records."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from .phase import Phase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class EffectKind(str, Enum):
    UPDATE = "update"
    REGENERATE = "regenerate"
    REFRESH = "refresh"


class EffectStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class ProposedChange:
    phase: Phase
    before_summary: str = ""
    after_summary: str = ""
    confidence: int = 0  # 0-100, advisory only
    risk_level: str = "low"  # low, medium, high
    applied: bool = False
    skipped: bool = False  # target was locked when the effect ran
    error: Optional[str] = None


@dataclass
class RippleEffect:
    source_phase: Phase
    affected_phases: List[Phase] = field(default_factory=list)
    kind: EffectKind = EffectKind.UPDATE
    status: EffectStatus = EffectStatus.PENDING
    description: str = ""
    changes: List[ProposedChange] = field(default_factory=list)
    id: str = field(default_factory=lambda: new_id("effect"))
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status in (EffectStatus.PENDING, EffectStatus.PROCESSING)

    @property
    def failed_changes(self) -> List[ProposedChange]:
        return [c for c in self.changes if c.error is not None]


@dataclass
class UpdateRecord:
    """One committed update, kept for display; undo does not read it."""

    source_phase: Phase
    affected_phases: List[Phase] = field(default_factory=list)
    reason: str = ""
    id: str = field(default_factory=lambda: new_id("update"))
    timestamp: datetime = field(default_factory=utcnow)
