"""Living Story Engine - keeps the five story phases consistent.

The engine owns a PhaseStore and routes every mutation through it. An edit
to one phase marks the unlocked downstream phases stale and stages a ripple
effect proposing their regeneration; the effect is applied immediately or
on approval. Calls into the generation collaborator are the only
suspension points: everything else is synchronous.
"""

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from loguru import logger

from .config import Config
from .consistency import ConsistencyAuditor
from .dependencies import DependencyResolver
from .exceptions import (
    EngineBusyError,
    GenerationError,
    InvalidContentError,
    InvalidPhaseTransition,
    NoSnapshotAvailable,
)
from .generation import ComplianceChecker, ComplianceReport, GenerationCollaborator, GenerationOptions
from .models.content import PhaseContent, coerce_content
from .models.effects import (
    EffectStatus,
    ProposedChange,
    RippleEffect,
    UpdateRecord,
)
from .models.issues import ConsistencyIssue
from .models.phase import Phase, PhaseDisplayState, to_phase
from .ripple import RippleEffectQueue, kind_for, risk_level, score_change
from .store import PhaseStore
from .undo import UndoManager


@dataclass
class UpdateResult:
    success: bool
    update_id: str
    affected_phases: List[Phase] = field(default_factory=list)
    effect_id: Optional[str] = None
    consistency_issues: List[ConsistencyIssue] = field(default_factory=list)


class LivingStoryEngine:
    """Coordinates edits, ripple effects, undo and consistency audits."""

    def __init__(
        self,
        generator: GenerationCollaborator,
        config: Optional[Config] = None,
        store: Optional[PhaseStore] = None,
        compliance_checker: Optional[ComplianceChecker] = None,
    ):
        self.config = config or Config()
        self.generator = generator
        self.store = store or PhaseStore()
        self.resolver: DependencyResolver = self.store.resolver
        self.queue = RippleEffectQueue()
        self.auditor = ConsistencyAuditor()
        self.undo_manager = UndoManager()
        self.compliance_checker = compliance_checker

        self._is_updating = False
        self._updating_phases: set = set()
        self._affected_phases: List[Phase] = []
        self._update_error: Optional[str] = None
        self._history: deque = deque(maxlen=self.config.engine.max_history_size)

    # -------------------------------------------------------------------------
    # Query surface
    # -------------------------------------------------------------------------

    @property
    def is_updating(self) -> bool:
        return self._is_updating

    @property
    def affected_phases(self) -> List[Phase]:
        return list(self._affected_phases)

    @property
    def consistency_issues(self) -> List[ConsistencyIssue]:
        return self.auditor.open_issues

    @property
    def update_error(self) -> Optional[str]:
        return self._update_error

    @property
    def update_history(self) -> List[UpdateRecord]:
        return list(self._history)

    @property
    def ripple_effects(self) -> List[RippleEffect]:
        return self.queue.effects

    def clear_error(self) -> None:
        self._update_error = None

    def get_phase_content(self, phase) -> PhaseContent:
        return self.store.get(phase).content.model_copy(deep=True)

    def story_data(self) -> Dict[Phase, PhaseContent]:
        return self.store.content_snapshot()

    def is_phase_out_of_sync(self, phase) -> bool:
        return self.store.is_out_of_sync(phase)

    def phase_status(self, phase) -> PhaseDisplayState:
        phase = to_phase(phase)
        state = self.store.get(phase)
        if phase in self._updating_phases:
            return PhaseDisplayState.UPDATING
        if state.is_locked:
            return PhaseDisplayState.LOCKED
        if state.is_out_of_sync:
            return PhaseDisplayState.OUT_OF_SYNC
        return PhaseDisplayState.IN_SYNC

    def can_undo(self) -> bool:
        return self.undo_manager.can_undo()

    # -------------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------------

    async def update_phase(
        self,
        phase,
        content,
        reason: Optional[str] = None,
        immediate: Optional[bool] = None,
        skip_ripple: bool = False,
        lock: bool = False,
    ) -> UpdateResult:
        """Commit new content for a phase and stage the downstream ripple.

        With ``immediate`` the staged effect is applied right away, as part
        of the same committed update (one undo step covers both).
        ``skip_ripple`` still marks downstream phases stale but stages no
        effect. ``lock`` locks the phase once its content is written.
        """
        phase = to_phase(phase)
        self._ensure_idle()
        typed = coerce_content(phase, content)
        if immediate is None:
            immediate = self.config.engine.immediate_by_default
        reason = reason or f"{phase.label} updated"

        self.undo_manager.snapshot(self.store, reason)
        marked = self.store.set_content(phase, typed)
        if lock:
            self.store.set_lock(phase, True)
        self._affected_phases = list(marked)
        self._update_error = None

        effect = None
        if marked and not skip_ripple:
            effect = self.queue.enqueue(
                phase,
                self._propose_changes(phase, marked),
                kind=kind_for(self.resolver.dependency(phase, marked[0])),
                description=reason,
            )

        record = self._record(phase, marked, reason)
        logger.info(
            f"Phase {int(phase)} updated ({reason}); "
            f"out of sync: {[int(p) for p in marked] or 'none'}"
        )

        if immediate and effect is not None:
            await self._apply(effect.id, take_snapshot=False)
        else:
            self._audit()

        return UpdateResult(
            success=self._update_error is None,
            update_id=record.id,
            affected_phases=list(marked),
            effect_id=effect.id if effect is not None else None,
            consistency_issues=self.consistency_issues,
        )

    async def refresh_from_previous_phase(self, phase) -> bool:
        """Regenerate one phase from the phase before it.

        Returns False (and sets ``update_error``) when generation fails; the
        phase then keeps its current sync status.
        """
        phase = to_phase(phase)
        if phase is Phase.BRAINSTORM:
            raise InvalidPhaseTransition("Brainstorm has no previous phase to refresh from")
        self._ensure_idle()

        previous = Phase(phase - 1)
        reason = f"Manual refresh from {previous.label}"
        self.undo_manager.snapshot(self.store, reason)

        self._is_updating = True
        self._updating_phases = {phase}
        self._affected_phases = [phase]
        try:
            content = await self._generate(phase, reason, source_phase=previous)
        except GenerationError as e:
            self._update_error = e.message
            logger.error(e.message)
            success = False
        else:
            self.store.replace_generated(phase, content)
            self._update_error = None
            success = True
        finally:
            self._is_updating = False
            self._updating_phases = set()

        self._record(previous, [phase], reason)
        self._audit()
        return success

    def lock_phase(self, phase, locked: bool) -> None:
        phase = to_phase(phase)
        self._ensure_idle()
        self.store.set_lock(phase, locked)
        logger.info(f"Phase {int(phase)} {'locked' if locked else 'unlocked'}")

    def undo_last_update(self) -> bool:
        """Restore the state before the last committed update.

        Returns False when there is nothing to undo. Raises EngineBusyError
        while an update is processing.
        """
        self._ensure_idle()
        try:
            self.undo_manager.undo(self.store)
        except NoSnapshotAvailable as e:
            logger.warning(e.message)
            return False
        self._affected_phases = []
        self._update_error = None
        return True

    # -------------------------------------------------------------------------
    # Ripple effects
    # -------------------------------------------------------------------------

    async def apply_ripple_effect(self, effect_id: str) -> RippleEffect:
        self._ensure_idle()
        return await self._apply(effect_id, take_snapshot=True)

    def dismiss_ripple_effect(self, effect_id: str) -> RippleEffect:
        return self.queue.dismiss(effect_id)

    def preview_ripple_effect(self, effect_id: str) -> List[ProposedChange]:
        return self.queue.preview(effect_id)

    # -------------------------------------------------------------------------
    # Consistency issues and compliance
    # -------------------------------------------------------------------------

    def resolve_issue(self, issue_id: str) -> ConsistencyIssue:
        return self.auditor.resolve(issue_id)

    def dismiss_issue(self, issue_id: str) -> ConsistencyIssue:
        return self.auditor.dismiss(issue_id)

    def check_compliance(self, phase) -> Optional[ComplianceReport]:
        if self.compliance_checker is None:
            return None
        phase = to_phase(phase)
        return self.compliance_checker.analyze(self.store.get(phase).content.to_text(), phase)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _ensure_idle(self) -> None:
        if self._is_updating:
            raise EngineBusyError()

    def _propose_changes(self, source: Phase, targets: List[Phase]) -> List[ProposedChange]:
        changes = []
        for target in targets:
            dependency = self.resolver.dependency(source, target)
            current = self.store.get(target).content
            changes.append(ProposedChange(
                phase=target,
                before_summary=current.summary_text(),
                after_summary=(
                    f"{dependency.update_type.replace('_', ' ').capitalize()} "
                    f"from updated {source.label}"
                ),
                confidence=score_change(dependency, not current.is_empty(), self.config.scoring),
                risk_level=risk_level(source),
            ))
        return changes

    async def _apply(self, effect_id: str, take_snapshot: bool) -> RippleEffect:
        effect = self.queue.get(effect_id)
        if effect.status is not EffectStatus.PENDING:
            raise InvalidPhaseTransition(
                f"Cannot apply effect {effect_id} in status '{effect.status.value}'"
            )
        if take_snapshot:
            self.undo_manager.snapshot(self.store, f"Apply {effect.description}")

        self._is_updating = True
        self._affected_phases = list(effect.affected_phases)

        async def regenerate(change: ProposedChange) -> None:
            if self.store.get(change.phase).is_locked:
                change.skipped = True
                logger.info(f"Phase {int(change.phase)} is locked; skipping regeneration")
                return
            self._updating_phases = {change.phase}
            content = await self._generate(
                change.phase, effect.description, source_phase=effect.source_phase
            )
            self.store.replace_generated(change.phase, content)
            change.after_summary = content.summary_text()

        try:
            effect = await self.queue.apply(effect_id, regenerate)
        finally:
            self._is_updating = False
            self._updating_phases = set()

        if effect.status is EffectStatus.FAILED:
            self._update_error = "; ".join(c.error for c in effect.failed_changes)
        else:
            self._update_error = None

        self._audit()
        return effect

    async def _generate(self, phase: Phase, reason: str, source_phase: Phase) -> PhaseContent:
        """Call the generation collaborator; every failure becomes GenerationError."""
        upstream = self.store.get(Phase(phase - 1)).content
        options = GenerationOptions(
            reason=reason,
            source_phase=source_phase,
            current_content=self.get_phase_content(phase),
            story=self.story_data(),
        )
        timeout = self.config.engine.generation_timeout

        try:
            call = self.generator.generate(phase, upstream, options)
            if timeout:
                result = await asyncio.wait_for(call, timeout)
            else:
                result = await call
        except GenerationError:
            raise
        except asyncio.TimeoutError as e:
            raise GenerationError(phase, f"timed out after {timeout}s") from e
        except Exception as e:
            raise GenerationError(phase, str(e) or type(e).__name__) from e

        try:
            return coerce_content(phase, result)
        except InvalidContentError as e:
            raise GenerationError(phase, e.message) from e

    def _record(self, source: Phase, affected: List[Phase], reason: str) -> UpdateRecord:
        record = UpdateRecord(source_phase=source, affected_phases=list(affected), reason=reason)
        self._history.append(record)
        return record

    def _audit(self) -> None:
        if self.config.engine.audit_after_update:
            self.auditor.audit(self.store)
