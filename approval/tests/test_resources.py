"""
Tests for the resource ledger.

Tests:
- Clamping of every resource
- Monster mode latch and depletion
- Impression multiplier and score cap
- Flaming seeds and infection
"""

import random

import pytest

from ..content.stage import GameSettings
from ..engine_core.events import EventLog, EventType
from ..engine_core.resources import ResourceLedger


def make_ledger(**settings) -> ResourceLedger:
    ledger = ResourceLedger(GameSettings(**settings), EventLog(), random.Random(0))
    ledger.initialize()
    return ledger


class TestInitialize:
    def test_starts_from_settings(self):
        ledger = make_ledger(initial_followers=50, max_mental=8, max_motivation=4)

        assert ledger.followers == 50
        assert ledger.mental == 8
        assert ledger.motivation == 4
        assert ledger.impressions == 0
        assert not ledger.is_monster_mode

    def test_reinitialize_clears_persistent_modifiers(self):
        ledger = make_ledger()
        ledger.modifiers.extra_draws_per_turn = 2
        ledger.modifiers.max_motivation_bonus = 1

        ledger.initialize()

        assert ledger.modifiers.extra_draws_per_turn == 0
        assert ledger.modifiers.max_motivation_bonus == 0
        assert ledger.max_motivation == GameSettings().max_motivation

    def test_broadcasts_every_value(self):
        ledger = make_ledger()
        types = {e.event_type for e in ledger.events.drain()}

        assert EventType.FOLLOWERS_CHANGED in types
        assert EventType.MENTAL_CHANGED in types
        assert EventType.MOTIVATION_CHANGED in types
        assert EventType.IMPRESSIONS_CHANGED in types


class TestMentalAndMonsterMode:
    """Mental 10, threshold 3."""

    def test_damage_to_threshold_latches_monster_mode(self):
        ledger = make_ledger(max_mental=10, monster_threshold=3)

        change = ledger.damage_mental(8)

        assert ledger.mental == 2
        assert change.monster_triggered
        assert not change.depleted
        assert ledger.is_monster_mode
        assert len(ledger.events.of_type(EventType.MONSTER_MODE_TRIGGERED)) == 1

    def test_heal_keeps_latch(self):
        ledger = make_ledger(max_mental=10, monster_threshold=3)
        ledger.damage_mental(8)

        healed = ledger.heal_mental(1)

        assert healed == 1
        assert ledger.mental == 3
        assert ledger.is_monster_mode

    def test_trigger_is_one_shot(self):
        ledger = make_ledger(max_mental=10, monster_threshold=3)
        ledger.damage_mental(8)
        ledger.heal_mental(5)

        change = ledger.damage_mental(5)

        assert not change.monster_triggered
        assert len(ledger.events.of_type(EventType.MONSTER_MODE_TRIGGERED)) == 1

    def test_reaching_zero_is_depletion_not_monster(self):
        ledger = make_ledger(max_mental=10, monster_threshold=3)

        change = ledger.damage_mental(12)

        assert ledger.mental == 0
        assert change.depleted
        assert not change.monster_triggered
        assert not ledger.is_monster_mode

    def test_heal_clamps_to_max(self):
        ledger = make_ledger(max_mental=10)
        ledger.damage_mental(2)

        assert ledger.heal_mental(5) == 2
        assert ledger.mental == 10

    def test_negative_damage_is_ignored(self):
        ledger = make_ledger(max_mental=10)
        ledger.damage_mental(-4)
        assert ledger.mental == 10


class TestFollowersAndImpressions:
    def test_followers_clamp_at_zero(self):
        ledger = make_ledger(initial_followers=30)

        applied = ledger.add_followers(-100)

        assert ledger.followers == 0
        assert applied == -30

    def test_impressions_floor_followers_times_rate(self):
        ledger = make_ledger(initial_followers=101)
        assert ledger.add_impression(0.5) == 50
        assert ledger.impressions == 50

    def test_monster_multiplier_applies_while_latched(self):
        ledger = make_ledger(initial_followers=100, monster_mode_multiplier=3.0)
        ledger.damage_mental(ledger.mental - 1)
        assert ledger.is_monster_mode

        assert ledger.add_impression(0.5) == 150

    def test_score_cap(self):
        ledger = make_ledger(score_cap=120)

        ledger.add_impressions_flat(100)
        gained = ledger.add_impressions_flat(100)

        assert gained == 20
        assert ledger.impressions == 120

    def test_impressions_never_decrease(self):
        ledger = make_ledger()
        ledger.add_impressions_flat(40)
        ledger.add_impressions_flat(-25)
        assert ledger.impressions == 40


class TestMotivation:
    def test_use_motivation_needs_enough(self):
        ledger = make_ledger(max_motivation=3)

        assert not ledger.use_motivation(4)
        assert ledger.motivation == 3
        assert ledger.use_motivation(3)
        assert ledger.motivation == 0

    def test_add_motivation_clamps(self):
        ledger = make_ledger(max_motivation=3)
        ledger.add_motivation(5)
        assert ledger.motivation == 3
        ledger.add_motivation(-10)
        assert ledger.motivation == 0

    def test_max_motivation_bonus_persists_until_initialize(self):
        ledger = make_ledger(max_motivation=3)
        ledger.increase_max_motivation(2)
        ledger.reset_motivation()

        assert ledger.max_motivation == 5
        assert ledger.motivation == 5

        ledger.initialize()
        assert ledger.max_motivation == 3


class TestFlaming:
    def test_chance_caps_at_one(self):
        ledger = make_ledger(flaming_chance_per_seed=0.25)
        ledger.add_flaming_seeds(10)
        assert ledger.flaming_chance() == 1.0

    @pytest.mark.parametrize("probability,fires", [(1.0, True), (0.0, False)])
    def test_trigger(self, probability, fires):
        ledger = make_ledger()

        assert ledger.try_trigger_flaming(probability) is fires
        assert ledger.is_on_fire is fires
        assert ledger.flaming_level == int(fires)

    def test_convert_seeds_zeroes_counter(self):
        ledger = make_ledger()
        ledger.add_flaming_seeds(4)

        assert ledger.convert_seeds() == 4
        assert ledger.flaming_seeds == 0

    def test_consume_flaming_level(self):
        ledger = make_ledger()
        ledger.try_trigger_flaming(1.0)
        ledger.try_trigger_flaming(1.0)

        assert ledger.consume_flaming_level() == 2
        assert ledger.flaming_level == 0
        assert not ledger.is_on_fire


class TestInfection:
    def test_decay_rounds_down(self):
        ledger = make_ledger()
        ledger.add_infection(5)
        ledger.decay_infection(50.0)
        assert ledger.infection == 2

    def test_full_decay(self):
        ledger = make_ledger()
        ledger.add_infection(7)
        ledger.decay_infection(100.0)
        assert ledger.infection == 0

    def test_snapshot(self):
        ledger = make_ledger(initial_followers=42)
        state = ledger.snapshot().to_dict()
        assert state["followers"] == 42
        assert state["is_monster_mode"] is False
