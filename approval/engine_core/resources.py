"""
Resource Ledger - Owns the numeric economy of a session.

Tracks followers, mental, motivation, impressions, the flaming meter
and the infection meter. Every mutator clamps to bounds and emits a
change event carrying the new value(s).

Bounds:
- followers >= 0
- 0 <= mental <= max_mental
- 0 <= motivation <= max_motivation (+ persistent bonus)
- impressions never decrease and never exceed score_cap

Monster mode is latched here the first time mental falls to the
threshold; the heal and the draft are the MonsterModeController's job.
"""

from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass, asdict

from ..content.stage import GameSettings
from .events import EventLog, EventType

logger = logging.getLogger(__name__)


@dataclass
class PersistentModifiers:
    """Bonuses that survive across turns; reset only with the session."""
    extra_draws_per_turn: int = 0
    max_motivation_bonus: int = 0


@dataclass
class MentalChange:
    """Outcome of a mental mutation."""
    previous: int
    current: int
    monster_triggered: bool = False
    depleted: bool = False


@dataclass
class ResourceState:
    """Plain snapshot of the ledger values."""
    followers: int = 0
    mental: int = 0
    max_mental: int = 0
    motivation: int = 0
    max_motivation: int = 0
    impressions: int = 0
    flaming_seeds: int = 0
    flaming_level: int = 0
    is_on_fire: bool = False
    is_monster_mode: bool = False
    infection: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class ResourceLedger:
    """
    Single owner of resource values.

    The rng is injected so flaming rolls are reproducible.
    """

    def __init__(
        self,
        settings: GameSettings,
        events: EventLog,
        rng: random.Random,
        modifiers: PersistentModifiers | None = None,
    ):
        self.settings = settings
        self.events = events
        self.rng = rng
        self.modifiers = modifiers or PersistentModifiers()

        self.followers = 0
        self.mental = 0
        self.motivation = 0
        self.impressions = 0
        self.flaming_seeds = 0
        self.flaming_level = 0
        self.is_on_fire = False
        self.is_monster_mode = False
        self.infection = 0

    @property
    def max_mental(self) -> int:
        return self.settings.max_mental

    @property
    def max_motivation(self) -> int:
        return self.settings.max_motivation + self.modifiers.max_motivation_bonus

    def initialize(self):
        """Reset every value to the stage-start defaults and broadcast them."""
        self.followers = self.settings.initial_followers
        self.mental = self.settings.max_mental
        self.modifiers.extra_draws_per_turn = 0
        self.modifiers.max_motivation_bonus = 0
        self.motivation = self.max_motivation
        self.impressions = 0
        self.flaming_seeds = 0
        self.flaming_level = 0
        self.is_on_fire = False
        self.is_monster_mode = False
        self.infection = 0
        self._broadcast_all()

    def _broadcast_all(self):
        self.events.emit(EventType.FOLLOWERS_CHANGED, value=self.followers)
        self._emit_mental()
        self._emit_motivation()
        self.events.emit(EventType.IMPRESSIONS_CHANGED, value=self.impressions)
        self._emit_flaming()

    # =========================================================================
    # Followers & impressions
    # =========================================================================

    def add_followers(self, delta: int) -> int:
        """Add (or remove) followers, clamping at 0. Returns the applied delta."""
        previous = self.followers
        self.followers = max(0, self.followers + delta)
        self.events.emit(EventType.FOLLOWERS_CHANGED, value=self.followers)
        return self.followers - previous

    def add_impression(self, rate: float) -> int:
        """
        Gain floor(followers * rate) impressions.

        The monster-mode multiplier applies on every call while monster
        mode is latched. Returns the impressions actually gained.
        """
        if self.is_monster_mode:
            rate *= self.settings.monster_mode_multiplier
        return self.add_impressions_flat(math.floor(self.followers * rate))

    def add_impressions_flat(self, amount: int) -> int:
        """Add an already-computed amount, honoring the cap and monotonicity."""
        amount = max(0, int(amount))
        room = max(0, self.settings.score_cap - self.impressions)
        gained = min(amount, room)
        self.impressions += gained
        self.events.emit(EventType.IMPRESSIONS_CHANGED, value=self.impressions, gained=gained)
        return gained

    # =========================================================================
    # Mental
    # =========================================================================

    def damage_mental(self, amount: int) -> MentalChange:
        """
        Subtract mental, clamping to 0.

        Reaching 0 reports `depleted` (the caller ends the session).
        Otherwise, the first time mental is at or below the monster
        threshold, monster mode latches and a one-shot trigger is emitted.
        """
        previous = self.mental
        self.mental = max(0, self.mental - max(0, amount))
        change = MentalChange(previous=previous, current=self.mental)

        logger.debug(
            "damage_mental amount=%d mental %d -> %d threshold=%d latched=%s",
            amount, previous, self.mental, self.settings.monster_threshold, self.is_monster_mode,
        )

        if self.mental <= 0:
            change.depleted = True
        elif not self.is_monster_mode and self.mental <= self.settings.monster_threshold:
            self.is_monster_mode = True
            change.monster_triggered = True
            logger.info("Monster mode latched at mental=%d", self.mental)
            self.events.emit(EventType.MONSTER_MODE_TRIGGERED, mental=self.mental)

        self._emit_mental()
        return change

    def heal_mental(self, amount: int) -> int:
        """Add mental, clamping to max. Returns the amount actually healed."""
        previous = self.mental
        self.mental = min(self.max_mental, self.mental + max(0, amount))
        self._emit_mental()
        return self.mental - previous

    def _emit_mental(self):
        self.events.emit(EventType.MENTAL_CHANGED, value=self.mental, max=self.max_mental)

    # =========================================================================
    # Motivation
    # =========================================================================

    def use_motivation(self, cost: int) -> bool:
        """Spend motivation iff enough is available; no mutation otherwise."""
        if self.motivation < cost:
            return False
        self.motivation -= cost
        self._emit_motivation()
        return True

    def add_motivation(self, amount: int):
        self.motivation = min(self.max_motivation, max(0, self.motivation + amount))
        self._emit_motivation()

    def increase_max_motivation(self, amount: int):
        self.modifiers.max_motivation_bonus += amount
        self.motivation = min(self.motivation, self.max_motivation)
        self._emit_motivation()

    def reset_motivation(self):
        self.motivation = self.max_motivation
        self._emit_motivation()

    def _emit_motivation(self):
        self.events.emit(EventType.MOTIVATION_CHANGED, value=self.motivation, max=self.max_motivation)

    # =========================================================================
    # Flaming
    # =========================================================================

    def add_flaming_seeds(self, n: int):
        self.flaming_seeds = max(0, self.flaming_seeds + n)
        self._emit_flaming()

    def flaming_chance(self) -> float:
        """Probability of a flaming trigger at the current seed count."""
        return min(1.0, self.flaming_seeds * self.settings.flaming_chance_per_seed)

    def try_trigger_flaming(self, probability: float) -> bool:
        """Bernoulli trial; on success the account is on fire and the level rises."""
        fired = self.rng.random() < probability
        if fired:
            self.is_on_fire = True
            self.flaming_level += 1
            logger.debug("Flaming triggered (p=%.2f), level=%d", probability, self.flaming_level)
            self._emit_flaming()
        return fired

    def convert_seeds(self) -> int:
        """Return all seeds and zero the counter (seed conversions)."""
        seeds = self.flaming_seeds
        self.flaming_seeds = 0
        self._emit_flaming()
        return seeds

    def consume_flaming_level(self) -> int:
        """Return the flaming level and reset it; the caller applies the damage."""
        level = self.flaming_level
        self.flaming_level = 0
        self.is_on_fire = False
        self._emit_flaming()
        return level

    def _emit_flaming(self):
        self.events.emit(
            EventType.FLAMING_CHANGED,
            seeds=self.flaming_seeds,
            level=self.flaming_level,
            on_fire=self.is_on_fire,
        )

    # =========================================================================
    # Infection
    # =========================================================================

    def add_infection(self, n: int):
        self.infection = max(0, self.infection + n)
        self.events.emit(EventType.INFECTION_CHANGED, value=self.infection)

    def decay_infection(self, rate_percent: float):
        """Remove `rate_percent` of the infection meter (rounded down what remains)."""
        keep = max(0.0, 1.0 - rate_percent / 100.0)
        self.infection = math.floor(self.infection * keep)
        self.events.emit(EventType.INFECTION_CHANGED, value=self.infection)

    def snapshot(self) -> ResourceState:
        return ResourceState(
            followers=self.followers,
            mental=self.mental,
            max_mental=self.max_mental,
            motivation=self.motivation,
            max_motivation=self.max_motivation,
            impressions=self.impressions,
            flaming_seeds=self.flaming_seeds,
            flaming_level=self.flaming_level,
            is_on_fire=self.is_on_fire,
            is_monster_mode=self.is_monster_mode,
            infection=self.infection,
        )
