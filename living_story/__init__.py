"""Living Story - phase dependency and ripple-update engine for screenwriting."""

__version__ = "0.1.0"

from .config import Config, EngineConfig, GeneratorConfig, ScoringConfig
from .consistency import ConsistencyAuditor
from .dependencies import DependencyResolver, PhaseDependency, affected_phases
from .engine import LivingStoryEngine, UpdateResult
from .exceptions import (
    EffectNotFoundError,
    EngineBusyError,
    GenerationError,
    InvalidContentError,
    InvalidPhaseTransition,
    IssueNotFoundError,
    LivingStoryError,
    NoSnapshotAvailable,
)
from .generation import (
    CallableGenerator,
    ComplianceChecker,
    ComplianceReport,
    GenerationCollaborator,
    GenerationOptions,
    LLMGenerator,
)
from .models import Phase, PhaseDisplayState, SyncStatus
from .ripple import RippleEffectQueue
from .store import PhaseStore
from .undo import UndoManager

__all__ = [
    "Config",
    "EngineConfig",
    "GeneratorConfig",
    "ScoringConfig",
    "ConsistencyAuditor",
    "DependencyResolver",
    "PhaseDependency",
    "affected_phases",
    "LivingStoryEngine",
    "UpdateResult",
    "EffectNotFoundError",
    "EngineBusyError",
    "GenerationError",
    "InvalidContentError",
    "InvalidPhaseTransition",
    "IssueNotFoundError",
    "LivingStoryError",
    "NoSnapshotAvailable",
    "CallableGenerator",
    "ComplianceChecker",
    "ComplianceReport",
    "GenerationCollaborator",
    "GenerationOptions",
    "LLMGenerator",
    "Phase",
    "PhaseDisplayState",
    "SyncStatus",
    "RippleEffectQueue",
    "PhaseStore",
    "UndoManager",
]
