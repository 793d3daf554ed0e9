"""
Progress Store - Cross-session player progress.

The snapshot is all the engine ever persists:
- cleared stage ids
- per-stage high scores
- global high score

The storage medium is the store's concern, not the engine's. Two stores
ship here: an in-memory one (tests, API default) and a JSON-file one.
"""

from __future__ import annotations
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..content.stage import ContentBundle, StageDefinition

logger = logging.getLogger(__name__)


@dataclass
class ProgressSnapshot:
    cleared_stage_ids: set[str] = field(default_factory=set)
    stage_high_scores: dict[str, int] = field(default_factory=dict)
    global_high_score: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "cleared_stage_ids": sorted(self.cleared_stage_ids),
            "stage_high_scores": dict(self.stage_high_scores),
            "global_high_score": self.global_high_score,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProgressSnapshot:
        return cls(
            cleared_stage_ids=set(data.get("cleared_stage_ids", [])),
            stage_high_scores={k: int(v) for k, v in data.get("stage_high_scores", {}).items()},
            global_high_score=int(data.get("global_high_score", 0)),
        )

    def is_cleared(self, stage_id: str) -> bool:
        return stage_id in self.cleared_stage_ids

    def high_score(self, stage_id: str) -> int:
        return self.stage_high_scores.get(stage_id, 0)


@dataclass
class StageRecord:
    """What recording one finished stage changed."""
    stage_id: str
    score: int
    cleared: bool
    newly_cleared: bool = False
    new_stage_high_score: bool = False
    new_global_high_score: bool = False


class ProgressStore(ABC):
    """Loads and saves a ProgressSnapshot."""

    @abstractmethod
    def load(self) -> ProgressSnapshot:
        pass

    @abstractmethod
    def save(self, snapshot: ProgressSnapshot):
        pass

    def record_stage_result(self, stage_id: str, score: int, cleared: bool) -> StageRecord:
        """Fold one stage result into the stored snapshot."""
        snapshot = self.load()
        record = StageRecord(stage_id=stage_id, score=score, cleared=cleared)

        if cleared and stage_id not in snapshot.cleared_stage_ids:
            snapshot.cleared_stage_ids.add(stage_id)
            record.newly_cleared = True
            logger.info("Stage %s cleared for the first time", stage_id)

        if score > snapshot.high_score(stage_id):
            snapshot.stage_high_scores[stage_id] = score
            record.new_stage_high_score = True

        if score > snapshot.global_high_score:
            snapshot.global_high_score = score
            record.new_global_high_score = True

        self.save(snapshot)
        return record

    def reset(self):
        self.save(ProgressSnapshot())


class InMemoryProgressStore(ProgressStore):
    def __init__(self, snapshot: ProgressSnapshot | None = None):
        self._data = (snapshot or ProgressSnapshot()).to_dict()

    def load(self) -> ProgressSnapshot:
        return ProgressSnapshot.from_dict(self._data)

    def save(self, snapshot: ProgressSnapshot):
        self._data = snapshot.to_dict()


class JsonFileProgressStore(ProgressStore):
    """
    Snapshot stored as one JSON file.

    Usage:
        store = JsonFileProgressStore("~/.approval/progress.json")
        store.record_stage_result("stage_1", 12000, cleared=True)
    """

    def __init__(self, path: str | Path | None = None):
        if path is None:
            path = Path.home() / ".approval" / "progress.json"
        self.path = Path(path).expanduser()

    def load(self) -> ProgressSnapshot:
        if not self.path.exists():
            return ProgressSnapshot()
        try:
            with open(self.path) as f:
                return ProgressSnapshot.from_dict(json.load(f))
        except (OSError, ValueError) as e:
            logger.warning("Unreadable progress file %s (%s); starting fresh", self.path, e)
            return ProgressSnapshot()

    def save(self, snapshot: ProgressSnapshot):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(snapshot.to_dict(), f, indent=2)


# =============================================================================
# Queries over content + progress
# =============================================================================

def is_stage_unlocked(stage: StageDefinition, snapshot: ProgressSnapshot) -> bool:
    """A stage is playable once every required stage is cleared."""
    return all(req in snapshot.cleared_stage_ids for req in stage.required_stage_ids)


def unlocked_stages(content: ContentBundle, snapshot: ProgressSnapshot) -> list[StageDefinition]:
    return [s for s in content.stages if is_stage_unlocked(s, snapshot)]


def total_score_attack_high_score(content: ContentBundle, snapshot: ProgressSnapshot) -> int:
    """Sum of high scores over stages without a clear condition."""
    return sum(
        snapshot.high_score(stage.id) for stage in content.stages if stage.is_score_attack
    )
