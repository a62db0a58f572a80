"""Ripple effect queue: staged downstream regenerations awaiting approval."""

import copy
from typing import Awaitable, Callable, List, Optional

from loguru import logger

from .config import ScoringConfig
from .dependencies import PhaseDependency
from .exceptions import EffectNotFoundError, EngineBusyError, GenerationError, InvalidPhaseTransition
from .models.effects import EffectKind, EffectStatus, ProposedChange, RippleEffect
from .models.phase import Phase, to_phase

RegenerateFn = Callable[[ProposedChange], Awaitable[None]]

_KIND_BY_UPDATE_TYPE = {
    "full_regenerate": EffectKind.REGENERATE,
    "intelligent_merge": EffectKind.UPDATE,
    "field_specific": EffectKind.REFRESH,
}


def kind_for(dependency: PhaseDependency) -> EffectKind:
    return _KIND_BY_UPDATE_TYPE[dependency.update_type]


def score_change(
    dependency: PhaseDependency,
    target_has_content: bool,
    scoring: Optional[ScoringConfig] = None,
) -> int:
    """Advisory confidence (0-100) that a target can be rewritten safely.

    Starts from the priority baseline, loses ``distance_penalty`` for every
    phase beyond the first, and ``existing_content_penalty`` when the target
    already holds content the user may have shaped.
    """
    scoring = scoring or ScoringConfig()
    score = scoring.base_for(dependency.priority)
    score -= scoring.distance_penalty * (int(dependency.target) - int(dependency.source) - 1)
    if target_has_content:
        score -= scoring.existing_content_penalty
    return max(0, min(100, score))


def risk_level(source_phase) -> str:
    source_phase = to_phase(source_phase)
    if source_phase <= Phase.ONE_LINE:
        return "high"
    if source_phase == Phase.SCENE_LINES:
        return "medium"
    return "low"


class RippleEffectQueue:
    """Holds at most one active (pending or processing) effect per source phase.

    A new proposal for a source replaces its pending one instead of queueing
    behind it, so only the latest proposal is ever actionable.
    """

    def __init__(self):
        self._effects: dict = {}

    @property
    def effects(self) -> List[RippleEffect]:
        return list(self._effects.values())

    def pending(self) -> List[RippleEffect]:
        return [e for e in self._effects.values() if e.status is EffectStatus.PENDING]

    def get(self, effect_id: str) -> RippleEffect:
        effect = self._effects.get(effect_id)
        if effect is None:
            raise EffectNotFoundError(effect_id)
        return effect

    def active_for(self, source_phase) -> Optional[RippleEffect]:
        source_phase = to_phase(source_phase)
        for effect in self._effects.values():
            if effect.source_phase == source_phase and effect.is_active:
                return effect
        return None

    def enqueue(
        self,
        source_phase,
        changes: List[ProposedChange],
        kind: EffectKind = EffectKind.UPDATE,
        description: str = "",
    ) -> RippleEffect:
        source_phase = to_phase(source_phase)
        ordered = sorted(changes, key=lambda c: c.phase)
        for change in ordered:
            if change.phase <= source_phase:
                raise InvalidPhaseTransition(
                    f"Phase {int(change.phase)} is not downstream of phase {int(source_phase)}"
                )

        current = self.active_for(source_phase)
        if current is not None:
            if current.status is EffectStatus.PROCESSING:
                raise EngineBusyError(
                    f"Ripple effect for phase {int(source_phase)} is still processing"
                )
            del self._effects[current.id]
            logger.debug(f"Superseded pending effect {current.id} for phase {int(source_phase)}")

        effect = RippleEffect(
            source_phase=source_phase,
            affected_phases=[c.phase for c in ordered],
            kind=kind,
            description=description,
            changes=ordered,
        )
        self._effects[effect.id] = effect
        logger.debug(
            f"Queued {kind.value} effect {effect.id} from phase {int(source_phase)} "
            f"-> {[int(p) for p in effect.affected_phases]}"
        )
        return effect

    async def apply(self, effect_id: str, regenerate: RegenerateFn) -> RippleEffect:
        """Run ``regenerate`` for each change in increasing phase order.

        A failing entry records its error and the rest still run; the effect
        ends ``failed`` if any entry failed, ``complete`` otherwise. An entry
        that ``regenerate`` marks ``skipped`` is neither applied nor failed.
        """
        effect = self.get(effect_id)
        if effect.status is not EffectStatus.PENDING:
            raise InvalidPhaseTransition(
                f"Cannot apply effect {effect_id} in status '{effect.status.value}'"
            )

        effect.status = EffectStatus.PROCESSING
        try:
            for change in effect.changes:
                try:
                    await regenerate(change)
                except GenerationError as e:
                    change.error = e.message
                    logger.warning(f"Effect {effect.id}: {e.message}")
                    continue
                if change.skipped:
                    continue
                change.applied = True
                change.error = None
        except Exception:
            effect.status = EffectStatus.FAILED
            raise

        if effect.failed_changes:
            effect.status = EffectStatus.FAILED
            logger.error(
                f"Effect {effect.id} failed for phases "
                f"{[int(c.phase) for c in effect.failed_changes]}"
            )
        else:
            effect.status = EffectStatus.COMPLETE
            applied = sum(1 for c in effect.changes if c.applied)
            logger.success(f"Effect {effect.id} applied to {applied} of {len(effect.changes)} phases")
        return effect

    def dismiss(self, effect_id: str) -> RippleEffect:
        effect = self.get(effect_id)
        if effect.status is not EffectStatus.PENDING:
            raise InvalidPhaseTransition(
                f"Only pending effects can be dismissed; {effect_id} is '{effect.status.value}'"
            )
        del self._effects[effect_id]
        logger.debug(f"Dismissed effect {effect_id}")
        return effect

    def preview(self, effect_id: str) -> List[ProposedChange]:
        return copy.deepcopy(self.get(effect_id).changes)

    def clear_finished(self) -> int:
        finished = [eid for eid, e in self._effects.items() if not e.is_active]
        for eid in finished:
            del self._effects[eid]
        return len(finished)
