"""Cross-phase consistency auditing.

The auditor looks for contradictions between phases:

- Character consistency (characters in beats missing from the scene lines)
- Emotional disconnects (scenes promising tension whose beats carry none)
- Plot holes (beats for scenes that do not exist, scenes left without beats)
- Timeline conflicts (scenes sharing an order slot or an id)
- Export readiness (an export marked ready with nothing in it)

Issues stay open until the caller resolves or dismisses them; a later
audit never drops them and never reports the same open description twice.
"""

import re
from collections import Counter
from typing import Dict, List

from loguru import logger

from .exceptions import IssueNotFoundError
from .models.content import OneLineContent, SceneBeatsContent, SceneLinesContent, ScriptExportContent
from .models.issues import ConsistencyIssue, IssueKind, IssueSeverity, IssueStatus
from .models.phase import Phase

TENSION_PATTERN = re.compile(
    r"\b(tension|tense|stakes|conflict|confront\w*|showdown|climax|clash\w*|danger\w*)\b",
    re.IGNORECASE,
)
HIGH_TENSION_LEVEL = 7


class ConsistencyAuditor:
    def __init__(self):
        self._issues: Dict[str, ConsistencyIssue] = {}

    @property
    def issues(self) -> List[ConsistencyIssue]:
        return list(self._issues.values())

    @property
    def open_issues(self) -> List[ConsistencyIssue]:
        return [i for i in self._issues.values() if i.is_open]

    def audit(self, store) -> List[ConsistencyIssue]:
        """Check the store and merge new findings into the open issue list."""
        findings = self.find_issues(store)
        open_descriptions = {i.description for i in self.open_issues}

        added = 0
        for issue in findings:
            if issue.description in open_descriptions:
                continue
            self._issues[issue.id] = issue
            open_descriptions.add(issue.description)
            added += 1

        logger.debug(f"Audit found {len(findings)} issues, {added} new")
        return self.open_issues

    def find_issues(self, store) -> List[ConsistencyIssue]:
        """Run every check against ``store`` without touching tracked issues."""
        one_line = store.get(Phase.ONE_LINE).content
        scenes = store.get(Phase.SCENE_LINES).content
        beats = store.get(Phase.SCENE_BEATS).content
        export = store.get(Phase.SCRIPT_EXPORT).content

        findings: List[ConsistencyIssue] = []
        findings.extend(self._check_characters(one_line, scenes, beats))
        findings.extend(self._check_tension(scenes, beats))
        findings.extend(self._check_plot_holes(scenes, beats))
        findings.extend(self._check_timeline(scenes))
        findings.extend(self._check_export(export))
        return findings

    def resolve(self, issue_id: str) -> ConsistencyIssue:
        return self._close(issue_id, IssueStatus.RESOLVED)

    def dismiss(self, issue_id: str) -> ConsistencyIssue:
        return self._close(issue_id, IssueStatus.DISMISSED)

    def _close(self, issue_id: str, status: IssueStatus) -> ConsistencyIssue:
        issue = self._issues.get(issue_id)
        if issue is None:
            raise IssueNotFoundError(issue_id)
        if issue.is_open:
            issue.status = status
            logger.info(f"Issue {issue_id} {status.value}")
        return issue

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def _check_characters(
        self,
        one_line: OneLineContent,
        scenes: SceneLinesContent,
        beats: SceneBeatsContent,
    ) -> List[ConsistencyIssue]:
        if scenes.is_empty() or beats.is_empty():
            return []

        known = " ".join(s.mention_text() for s in scenes.scenes).lower()
        known_names = {c.lower() for c in one_line.characters}

        issues = []
        seen = set()
        for beat in beats.all_beats():
            for name in beat.characters:
                key = name.strip().lower()
                if not key or key in seen:
                    continue
                seen.add(key)
                if key in known_names or re.search(rf"\b{re.escape(key)}\b", known):
                    continue
                issues.append(ConsistencyIssue(
                    description=f"Character '{name}' appears in scene beats but in no scene line",
                    kind=IssueKind.CHARACTER_INCONSISTENCY,
                    severity=IssueSeverity.HIGH,
                    suggested_fix=f"Introduce {name} in a scene line, or remove them from the beats",
                    affected_phases=[Phase.SCENE_LINES, Phase.SCENE_BEATS],
                ))
        return issues

    def _check_tension(
        self, scenes: SceneLinesContent, beats: SceneBeatsContent
    ) -> List[ConsistencyIssue]:
        issues = []
        for index, scene in enumerate(scenes.ordered_scenes()):
            scene_beats = beats.beats.get(index) or []
            if not scene_beats or not self._claims_tension(scene):
                continue
            if any(beat.conflicts for beat in scene_beats):
                continue
            title = scene.title or scene.id
            issues.append(ConsistencyIssue(
                description=f"Scene '{title}' promises tension but none of its beats carries a conflict",
                kind=IssueKind.EMOTIONAL_DISCONNECT,
                severity=IssueSeverity.MEDIUM,
                suggested_fix=f"Add a conflict to a beat of '{title}', or soften its stakes",
                affected_phases=[Phase.SCENE_LINES, Phase.SCENE_BEATS],
            ))
        return issues

    @staticmethod
    def _claims_tension(scene) -> bool:
        if scene.tension_level is not None and scene.tension_level >= HIGH_TENSION_LEVEL:
            return True
        if scene.stakes.strip():
            return True
        return bool(TENSION_PATTERN.search(f"{scene.description} {scene.purpose}"))

    def _check_plot_holes(
        self, scenes: SceneLinesContent, beats: SceneBeatsContent
    ) -> List[ConsistencyIssue]:
        if beats.is_empty():
            return []

        ordered = scenes.ordered_scenes()
        issues = []
        for index in sorted(beats.beats):
            if not beats.beats[index]:
                continue
            if index < 0 or index >= len(ordered):
                issues.append(ConsistencyIssue(
                    description=f"Scene beats reference scene {index + 1}, which is not in the scene lines",
                    kind=IssueKind.PLOT_HOLE,
                    severity=IssueSeverity.HIGH,
                    suggested_fix="Regenerate the scene beats from the current scene lines",
                    affected_phases=[Phase.SCENE_LINES, Phase.SCENE_BEATS],
                ))

        for index, scene in enumerate(ordered):
            if not beats.beats.get(index):
                title = scene.title or scene.id
                issues.append(ConsistencyIssue(
                    description=f"Scene '{title}' has no beats",
                    kind=IssueKind.PLOT_HOLE,
                    severity=IssueSeverity.LOW,
                    suggested_fix=f"Break '{title}' down into beats",
                    affected_phases=[Phase.SCENE_BEATS],
                ))
        return issues

    def _check_timeline(self, scenes: SceneLinesContent) -> List[ConsistencyIssue]:
        issues = []
        orders = Counter(s.order for s in scenes.scenes)
        for order, count in sorted(orders.items()):
            if count < 2:
                continue
            titles = ", ".join(
                f"'{s.title or s.id}'" for s in scenes.scenes if s.order == order
            )
            issues.append(ConsistencyIssue(
                description=f"Scenes {titles} share order position {order}",
                kind=IssueKind.TIMELINE_CONFLICT,
                severity=IssueSeverity.MEDIUM,
                suggested_fix="Give every scene a distinct order",
                affected_phases=[Phase.SCENE_LINES],
            ))

        ids = Counter(s.id for s in scenes.scenes)
        for scene_id, count in sorted(ids.items()):
            if count > 1:
                issues.append(ConsistencyIssue(
                    description=f"Scene id '{scene_id}' is used by {count} scenes",
                    kind=IssueKind.TIMELINE_CONFLICT,
                    severity=IssueSeverity.MEDIUM,
                    suggested_fix="Give every scene a unique id",
                    affected_phases=[Phase.SCENE_LINES],
                ))
        return issues

    def _check_export(self, export: ScriptExportContent) -> List[ConsistencyIssue]:
        if export.export_ready and export.is_empty():
            return [ConsistencyIssue(
                description="Script export is marked ready but has no content",
                kind=IssueKind.PLOT_HOLE,
                severity=IssueSeverity.LOW,
                suggested_fix="Regenerate the export from the scene beats",
                affected_phases=[Phase.SCRIPT_EXPORT],
            )]
        return []
