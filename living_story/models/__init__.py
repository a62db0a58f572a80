from .phase import (
    ALL_PHASES,
    Phase,
    PhaseDisplayState,
    PhaseState,
    SyncStatus,
    to_phase,
)
from .content import (
    CONTENT_TYPES,
    BeatDescriptor,
    BrainstormContent,
    OneLineContent,
    PhaseContent,
    SceneBeatsContent,
    SceneDescriptor,
    SceneLinesContent,
    ScriptExportContent,
    coerce_content,
    content_from_dict,
    content_to_dict,
    empty_content,
)
from .effects import (
    EffectKind,
    EffectStatus,
    ProposedChange,
    RippleEffect,
    UpdateRecord,
)
from .issues import (
    ConsistencyIssue,
    IssueKind,
    IssueSeverity,
    IssueStatus,
)

__all__ = [
    "ALL_PHASES",
    "Phase",
    "PhaseDisplayState",
    "PhaseState",
    "SyncStatus",
    "to_phase",
    "CONTENT_TYPES",
    "BeatDescriptor",
    "BrainstormContent",
    "OneLineContent",
    "PhaseContent",
    "SceneBeatsContent",
    "SceneDescriptor",
    "SceneLinesContent",
    "ScriptExportContent",
    "coerce_content",
    "content_from_dict",
    "content_to_dict",
    "empty_content",
    "EffectKind",
    "EffectStatus",
    "ProposedChange",
    "RippleEffect",
    "UpdateRecord",
    "ConsistencyIssue",
    "IssueKind",
    "IssueSeverity",
    "IssueStatus",
]
