"""Which downstream phases an edit can affect, and how.

The five phases form a strict linear refinement chain: phase ``i`` affects
every phase ``j > i``. The default resolver computes that range directly.
A custom edge table turns the resolver into a general downstream graph;
the edge table also carries the update strategy and priority used for
confidence scoring.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .models.phase import Phase, to_phase

UPDATE_TYPES = ("full_regenerate", "intelligent_merge", "field_specific")
PRIORITIES = ("high", "medium", "low")


@dataclass(frozen=True)
class PhaseDependency:
    source: Phase
    target: Phase
    update_type: str = "intelligent_merge"
    priority: str = "medium"

    def __post_init__(self):
        if self.target <= self.source:
            raise ValueError(
                f"Dependency {int(self.source)} -> {int(self.target)} must point downstream"
            )
        if self.update_type not in UPDATE_TYPES:
            raise ValueError(f"Unknown update type: {self.update_type}")
        if self.priority not in PRIORITIES:
            raise ValueError(f"Unknown priority: {self.priority}")


P = Phase

DEFAULT_DEPENDENCIES = (
    PhaseDependency(P.BRAINSTORM, P.ONE_LINE, "full_regenerate", "high"),
    PhaseDependency(P.BRAINSTORM, P.SCENE_LINES, "full_regenerate", "medium"),
    PhaseDependency(P.BRAINSTORM, P.SCENE_BEATS, "intelligent_merge", "low"),
    PhaseDependency(P.BRAINSTORM, P.SCRIPT_EXPORT, "field_specific", "low"),
    PhaseDependency(P.ONE_LINE, P.SCENE_LINES, "intelligent_merge", "high"),
    PhaseDependency(P.ONE_LINE, P.SCENE_BEATS, "intelligent_merge", "medium"),
    PhaseDependency(P.ONE_LINE, P.SCRIPT_EXPORT, "field_specific", "low"),
    PhaseDependency(P.SCENE_LINES, P.SCENE_BEATS, "intelligent_merge", "high"),
    PhaseDependency(P.SCENE_LINES, P.SCRIPT_EXPORT, "field_specific", "low"),
    PhaseDependency(P.SCENE_BEATS, P.SCRIPT_EXPORT, "field_specific", "low"),
)


class DependencyResolver:
    """Maps a source phase to the ordered phases it affects."""

    def __init__(self, dependencies: Optional[Iterable[PhaseDependency]] = None):
        self._linear = dependencies is None
        deps = DEFAULT_DEPENDENCIES if dependencies is None else tuple(dependencies)
        self._edges: Dict[Phase, Dict[Phase, PhaseDependency]] = {}
        for dep in deps:
            self._edges.setdefault(dep.source, {})[dep.target] = dep

    def affected_phases(self, source) -> List[Phase]:
        source = to_phase(source)
        if self._linear:
            return [Phase(p) for p in range(source + 1, len(Phase))]

        # Edges only point downstream, so the walk always terminates.
        seen = set()
        frontier = [source]
        while frontier:
            current = frontier.pop()
            for target in self._edges.get(current, {}):
                if target not in seen:
                    seen.add(target)
                    frontier.append(target)
        return sorted(seen)

    def dependency(self, source, target) -> PhaseDependency:
        """Edge metadata for ``source -> target``.

        Targets reached only transitively get a low-priority merge edge.
        """
        source, target = to_phase(source), to_phase(target)
        edge = self._edges.get(source, {}).get(target)
        if edge is not None:
            return edge
        return PhaseDependency(source, target, "intelligent_merge", "low")

    def dependencies_from(self, source) -> List[PhaseDependency]:
        source = to_phase(source)
        return [self.dependency(source, target) for target in self.affected_phases(source)]


_default_resolver = DependencyResolver()


def affected_phases(source) -> List[Phase]:
    """Phases affected by an edit to ``source`` under the default linear chain."""
    return _default_resolver.affected_phases(source)
