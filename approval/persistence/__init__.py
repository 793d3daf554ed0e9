"""Persistence - the progress snapshot is the only state kept between sessions."""

from .progress import (
    ProgressSnapshot,
    ProgressStore,
    InMemoryProgressStore,
    JsonFileProgressStore,
    StageRecord,
    is_stage_unlocked,
    unlocked_stages,
    total_score_attack_high_score,
)

__all__ = [
    "ProgressSnapshot",
    "ProgressStore",
    "InMemoryProgressStore",
    "JsonFileProgressStore",
    "StageRecord",
    "is_stage_unlocked",
    "unlocked_stages",
    "total_score_attack_high_score",
]
