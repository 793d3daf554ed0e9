"""
Stage & Settings Definitions - Read-only content configuration.

A ContentBundle is the full authored content for a run of the game:
- GameSettings: initial resources, thresholds, multipliers
- CardTemplate catalog
- StageDefinitions: decks, pools, quota table, probability table

Content is loaded and validated once, before gameplay begins.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .cards import CardTemplate, CardRarity


@dataclass(frozen=True)
class GameSettings:
    """Global rules knobs shared by every stage."""
    initial_followers: int = 100
    max_mental: int = 10
    max_motivation: int = 3
    initial_hand_size: int = 3

    # Monster mode
    monster_threshold: int = 3
    monster_mode_multiplier: float = 3.0
    monster_penalty_multiplier: float = 1.0

    # Quota penalty: ceil(turn / interval) * step
    penalty_turn_interval: int = 4
    penalty_step: int = 5

    # Draft
    draft_slot_count: int = 3
    last_draft_turn: int = 10  # no per-turn draft after this turn

    # Flaming
    flaming_chance_per_seed: float = 0.1
    flaming_damage_per_level: int = 1

    score_cap: int = 9_999_999_999

    # Turn flow
    auto_end_when_out_of_motivation: bool = False
    await_draw_animation: bool = False


@dataclass(frozen=True)
class ProbabilityRow:
    """Tier weights that apply from `min_impressions` upward."""
    min_impressions: int
    common_weight: float
    rare_weight: float
    epic_weight: float

    @property
    def total_weight(self) -> float:
        return self.common_weight + self.rare_weight + self.epic_weight


@dataclass(frozen=True)
class DraftProbabilityTable:
    """
    Ordered ascending rows; lookup is the last row whose
    min_impressions <= score.
    """
    rows: tuple[ProbabilityRow, ...] = (
        ProbabilityRow(0, 100, 0, 0),
    )

    def row_for(self, score: int) -> ProbabilityRow:
        selected = self.rows[0]
        for row in self.rows:
            if row.min_impressions <= score:
                selected = row
            else:
                break
        return selected

    def roll_tier(self, score: int, roll: float) -> CardRarity:
        """
        Pick a tier from the row for `score` using a uniform roll in [0, 1).

        Weights are cumulative in Common, Rare, Epic order.
        """
        row = self.row_for(score)
        total = row.total_weight
        if total <= 0:
            return CardRarity.COMMON
        point = roll * total
        if point < row.common_weight:
            return CardRarity.COMMON
        if point < row.common_weight + row.rare_weight:
            return CardRarity.RARE
        return CardRarity.EPIC


@dataclass(frozen=True)
class ClearCondition:
    """Score goal for a stage. Stages without one are score-attack stages."""
    target_score: int = 1_000_000


@dataclass(frozen=True)
class CutInPreset:
    """An acknowledgment screen the presentation shows before resuming."""
    preset_id: str
    title: str = ""
    message: str = ""


@dataclass(frozen=True)
class StageDefinition:
    """One playable stage."""
    id: str
    name: str
    initial_deck: tuple[str, ...] = ()
    draft_pool: tuple[str, ...] = ()
    monster_pool: tuple[str, ...] = ()

    # Per-turn quotas, index 0 = turn 1. Empty -> turn * 100.
    quota_table: tuple[int, ...] = ()
    probability_table: DraftProbabilityTable = field(default_factory=DraftProbabilityTable)

    max_turns: int = 20
    clear_condition: ClearCondition | None = None
    required_stage_ids: tuple[str, ...] = ()

    # Optional systems
    enable_flaming: bool = False
    enable_infection: bool = False
    infection_card_id: str | None = None
    infection_reset_rate: float = 100.0  # percent removed on reshuffle

    # Cut-ins
    start_preset: CutInPreset | None = None
    monster_preset: CutInPreset | None = None
    motivation_low_preset: CutInPreset | None = None

    tracked_card_id: str | None = None

    @property
    def is_score_attack(self) -> bool:
        return self.clear_condition is None

    def referenced_card_ids(self) -> set[str]:
        refs = set(self.initial_deck) | set(self.draft_pool) | set(self.monster_pool)
        if self.infection_card_id:
            refs.add(self.infection_card_id)
        if self.tracked_card_id:
            refs.add(self.tracked_card_id)
        return refs


@dataclass
class ContentBundle:
    """
    Complete authored content.

    Stages are kept in authoring order; that order defines "next stage".
    """
    settings: GameSettings = field(default_factory=GameSettings)
    cards: dict[str, CardTemplate] = field(default_factory=dict)
    stages: list[StageDefinition] = field(default_factory=list)

    def get_card(self, card_id: str) -> CardTemplate | None:
        return self.cards.get(card_id)

    def get_stage(self, stage_id: str) -> StageDefinition | None:
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        return None

    def next_stage(self, stage_id: str) -> StageDefinition | None:
        """Get the stage after `stage_id`, or None if it is the last one."""
        ids = [s.id for s in self.stages]
        if stage_id not in ids:
            return None
        idx = ids.index(stage_id)
        if idx >= len(self.stages) - 1:
            return None
        return self.stages[idx + 1]
