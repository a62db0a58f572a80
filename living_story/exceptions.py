"""Exception types raised by the living story engine."""

from typing import Optional


class LivingStoryError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, error_code: str = "LIVING_STORY_ERROR"):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class GenerationError(LivingStoryError):
    """Raised when the generation collaborator fails or times out for a phase."""

    def __init__(self, phase: Optional[int], message: str):
        if phase is None:
            text = f"Generation failed: {message}"
        else:
            text = f"Generation failed for phase {int(phase)}: {message}"
        super().__init__(text, error_code="GENERATION_FAILED")
        self.phase = phase
        self.reason = message


class NoSnapshotAvailable(LivingStoryError):
    """Raised when undo is requested with nothing to restore."""

    def __init__(self):
        super().__init__("No snapshot available to undo", error_code="NO_SNAPSHOT")


class InvalidPhaseTransition(LivingStoryError):
    """Raised for operations not allowed in the current state.

    Covers applying or dismissing a ripple effect in the wrong status and
    out-of-range phase numbers. Never leaves state half-mutated.
    """

    def __init__(self, message: str, error_code: str = "INVALID_TRANSITION"):
        super().__init__(message, error_code=error_code)


class EffectNotFoundError(InvalidPhaseTransition):
    """Raised when a ripple effect id is unknown or was superseded."""

    def __init__(self, effect_id: str):
        super().__init__(
            f"Ripple effect '{effect_id}' not found (it may have been superseded)",
            error_code="EFFECT_NOT_FOUND",
        )
        self.effect_id = effect_id


class EngineBusyError(LivingStoryError):
    """Raised when a write is attempted while another update is processing."""

    def __init__(self, message: str = "Another update is already in progress; retry once it finishes"):
        super().__init__(message, error_code="ENGINE_BUSY")


class InvalidContentError(LivingStoryError):
    """Raised when content does not fit the schema of its phase."""

    def __init__(self, phase: int, message: str):
        super().__init__(
            f"Invalid content for phase {int(phase)}: {message}",
            error_code="INVALID_CONTENT",
        )
        self.phase = phase


class IssueNotFoundError(LivingStoryError):
    """Raised when a consistency issue id is unknown."""

    def __init__(self, issue_id: str):
        super().__init__(f"Consistency issue '{issue_id}' not found", error_code="ISSUE_NOT_FOUND")
        self.issue_id = issue_id
