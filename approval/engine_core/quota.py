"""
Quota Evaluator - Per-turn impression targets and mental penalties.

At StartStep the evaluator captures the turn's baseline and sets the
quota. At EndStep it compares what was gained against the quota; a missed
quota costs mental:

    penalty = ceil(turn / penalty_turn_interval) * penalty_step

multiplied by monster_penalty_multiplier while monster mode is latched
(rounded up). The penalty grows with the turn number and never shrinks.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass

from ..content.stage import GameSettings, StageDefinition
from .events import EventLog, EventType
from .resources import ResourceLedger

logger = logging.getLogger(__name__)

DEFAULT_QUOTA_PER_TURN = 100


@dataclass
class QuotaState:
    turn_start_impressions: int = 0
    turn_start_followers: int = 0
    turn_start_mental: int = 0
    current_turn_quota: int = 0


@dataclass
class QuotaOutcome:
    """Result of an end-of-turn evaluation."""
    turn: int
    quota: int
    gained: int
    met: bool
    penalty: int = 0


class QuotaEvaluator:
    def __init__(
        self,
        settings: GameSettings,
        stage: StageDefinition,
        ledger: ResourceLedger,
        events: EventLog,
    ):
        self.settings = settings
        self.stage = stage
        self.ledger = ledger
        self.events = events
        self.state = QuotaState()

    def quota_for_turn(self, turn: int) -> int:
        """Table entry for `turn` (last entry past the end), or turn * 100."""
        table = self.stage.quota_table
        if not table:
            return turn * DEFAULT_QUOTA_PER_TURN
        index = min(max(turn - 1, 0), len(table) - 1)
        return table[index]

    def begin_turn(self, turn: int) -> int:
        """Capture the baseline for `turn` and return its quota."""
        self.state = QuotaState(
            turn_start_impressions=self.ledger.impressions,
            turn_start_followers=self.ledger.followers,
            turn_start_mental=self.ledger.mental,
            current_turn_quota=self.quota_for_turn(turn),
        )
        self.events.emit(EventType.QUOTA_SET, turn=turn, quota=self.state.current_turn_quota)
        return self.state.current_turn_quota

    def penalty_for_turn(self, turn: int, monster_mode: bool = False) -> int:
        interval = max(1, self.settings.penalty_turn_interval)
        penalty = math.ceil(turn / interval) * self.settings.penalty_step
        if monster_mode:
            penalty = math.ceil(penalty * self.settings.monster_penalty_multiplier)
        return penalty

    def evaluate(self, turn: int) -> QuotaOutcome:
        """
        Compare this turn's gain with its quota.

        Does not touch mental; the caller folds `penalty` together with
        the turn's flaming damage into a single damage_mental call.
        """
        gained = self.ledger.impressions - self.state.turn_start_impressions
        quota = self.state.current_turn_quota
        met = gained >= quota
        penalty = 0 if met else self.penalty_for_turn(turn, self.ledger.is_monster_mode)

        outcome = QuotaOutcome(turn=turn, quota=quota, gained=gained, met=met, penalty=penalty)
        logger.debug("Turn %d quota %d gained %d met=%s penalty=%d", turn, quota, gained, met, penalty)
        self.events.emit(
            EventType.QUOTA_EVALUATED,
            turn=turn,
            quota=quota,
            gained=gained,
            met=met,
            penalty=penalty,
        )
        return outcome
