"""
Tests for the game loop (turn flow driven by commands).

Tests:
- Start, turn advance, Result and GameOver
- Quota penalty, flaming damage, monster mode at a turn boundary
- Drafts, cut-ins, draw animation gating
- Command queue ordering and deferred event dispatch
"""

import pytest

from ..content.stage import ClearCondition, CutInPreset, GameSettings
from ..engine_core.action import RejectionReason
from ..engine_core.context import GameContext
from ..engine_core.draft import DraftKind
from ..engine_core.events import MAX_PENDING_EVENTS, EventLog, EventType
from ..engine_core.turn import TurnPhase
from ..session.game_loop import GameLoop, LoopState
from .conftest import MONSTER_PRESET, make_content


def start_loop(content, seed: int = 3, **kwargs) -> GameLoop:
    loop = GameLoop(GameContext.create(content, "test", seed=seed), **kwargs)
    loop.start()
    return loop


class TestStartAndTurns:
    def test_start_reaches_player_action(self, loop):
        assert loop.state == LoopState.PLAYER_ACTION
        assert loop.ctx.turn.turn_count == 1
        assert loop.ctx.deck.hand == ["post_selfie"] * 3
        assert loop.ctx.ledger.motivation == 3

    def test_restart_returns_to_stage_start(self, loop):
        """Bonuses, resources and piles earned in one run do not leak into the next."""
        ctx = loop.ctx
        ctx.deck.add_card_to_hand("fan_meetup")
        assert loop.play_card("fan_meetup").success
        loop.play_card("post_selfie")
        loop.end_player_action()
        assert ctx.ledger.modifiers.extra_draws_per_turn == 1
        assert len(ctx.deck.hand) == 4

        loop.start()

        assert ctx.ledger.modifiers.extra_draws_per_turn == 0
        assert ctx.ledger.modifiers.max_motivation_bonus == 0
        assert ctx.ledger.max_motivation == 3
        assert ctx.ledger.motivation == 3
        assert ctx.ledger.impressions == 0
        assert ctx.turn.turn_count == 1
        assert ctx.deck.hand == ["post_selfie"] * 3
        assert ctx.deck.exhausted_count == 0
        assert ctx.deck.total_ever_added == 6
        assert loop.result is None
        assert loop.state == LoopState.PLAYER_ACTION

    def test_play_then_end_turn(self, loop):
        result = loop.play_card("post_selfie")
        assert result.success
        assert loop.ctx.ledger.impressions == 50

        loop.end_player_action()

        assert loop.ctx.turn.turn_count == 2
        assert loop.state == LoopState.PLAYER_ACTION
        assert len(loop.ctx.deck.hand) == 3
        assert loop.ctx.ledger.motivation == 3

    def test_turn_limit_gives_result(self):
        finished = []
        loop = start_loop(make_content(max_turns=3), on_finished=finished.append)

        for _ in range(3):
            loop.end_player_action()

        assert loop.state == LoopState.RESULT
        assert loop.is_finished
        assert loop.result.turns_played == 3
        assert not loop.result.cleared
        assert finished == [loop.result]

    def test_clear_condition(self):
        loop = start_loop(make_content(max_turns=1, clear_condition=ClearCondition(target_score=50)))

        loop.play_card("post_selfie")
        loop.end_player_action()

        assert loop.result.cleared
        assert loop.result.score == 50
        assert loop.ctx.events.of_type(EventType.STAGE_RESULT)

    def test_commands_after_result_are_rejected(self):
        loop = start_loop(make_content(max_turns=1))
        loop.end_player_action()

        assert loop.end_player_action().reason == RejectionReason.SESSION_INACTIVE
        assert loop.play_card("post_selfie").reason == RejectionReason.SESSION_INACTIVE
        assert loop.select_draft("post_selfie").reason == RejectionReason.SESSION_INACTIVE


class TestEndStep:
    def test_missed_quota_costs_mental(self):
        loop = start_loop(make_content(quota_table=(1000,)))

        loop.end_player_action()

        assert loop.ctx.ledger.mental == 5
        evaluated = loop.ctx.events.of_type(EventType.QUOTA_EVALUATED)
        assert evaluated[-1].payload["met"] is False

    def test_flaming_damage(self):
        loop = start_loop(make_content(enable_flaming=True))
        loop.ctx.ledger.try_trigger_flaming(1.0)
        loop.ctx.ledger.try_trigger_flaming(1.0)

        loop.end_player_action()

        assert loop.ctx.ledger.mental == 8
        assert loop.ctx.ledger.flaming_level == 0

    def test_depletion_is_game_over(self):
        content = make_content(
            GameSettings(penalty_step=10),
            quota_table=(1000,),
            clear_condition=ClearCondition(target_score=0),
        )
        loop = start_loop(content)

        loop.end_player_action()

        assert loop.state == LoopState.GAME_OVER
        assert loop.result.game_over
        assert loop.result.game_over_reason == "mental_depleted"
        assert not loop.result.cleared
        assert not loop.ctx.ledger.is_monster_mode

    def test_freeze_skips_the_next_draw(self):
        loop = start_loop(make_content(initial_deck=("freeze_post",) * 6))

        loop.play_card("freeze_post")
        loop.end_player_action()

        assert loop.ctx.deck.hand == []
        assert not loop.ctx.skip_next_draw


class TestMonsterMode:
    def test_turn_boundary_with_cut_in(self):
        content = make_content(
            GameSettings(penalty_step=8),
            quota_table=(1000,),
            monster_preset=MONSTER_PRESET,
        )
        loop = start_loop(content)

        loop.end_player_action()

        ctx = loop.ctx
        assert ctx.ledger.is_monster_mode
        assert ctx.ledger.mental == 3
        assert loop.state == LoopState.WAITING_ACKNOWLEDGMENT
        assert ctx.turn.phase == TurnPhase.END_STEP
        assert ctx.turn.pending_acknowledgment.preset_id == "monster"

        ack_id = ctx.turn.pending_acknowledgment.ack_id
        assert loop.acknowledge(ack_id).success
        assert loop.state == LoopState.WAITING_DRAFT
        assert ctx.pending_draft.kind == DraftKind.MONSTER
        assert loop.end_player_action().reason == RejectionReason.DRAFT_PENDING

        assert loop.select_draft("monster_rant").success
        assert ctx.turn.turn_count == 2
        assert loop.state == LoopState.PLAYER_ACTION
        assert "monster_rant" in ctx.deck.hand
        assert "monster_rant" in loop.resolver.playable_cards()

    def test_turn_boundary_without_cut_in(self):
        loop = start_loop(make_content(GameSettings(penalty_step=8), quota_table=(1000,)))

        loop.end_player_action()

        assert loop.state == LoopState.WAITING_DRAFT
        assert loop.ctx.pending_draft.resume_end_step

    def test_mid_action_monster_draft(self):
        loop = start_loop(make_content(initial_deck=("breakdown",) * 6))

        loop.play_card("breakdown")
        assert loop.state == LoopState.WAITING_DRAFT
        assert not loop.ctx.pending_draft.resume_end_step

        loop.select_draft("monster_livestream")

        deck = loop.ctx.deck
        assert loop.state == LoopState.PLAYER_ACTION
        assert loop.ctx.turn.turn_count == 1
        assert deck.count_in_hand("monster_livestream") == 1
        assert deck.count_in_draw_pile("monster_livestream") == 1
        assert deck.count_in_discard_pile("monster_livestream") == 1

    def test_only_one_monster_draft(self):
        loop = start_loop(make_content(initial_deck=("breakdown",) * 6))
        loop.play_card("breakdown")
        loop.select_draft("monster_rant")

        loop.ctx.ledger.heal_mental(10)
        loop.play_card("breakdown")

        assert loop.ctx.pending_draft is None


class TestDraftsAndCutIns:
    @pytest.fixture
    def draft_content(self):
        return make_content(draft_pool=("common_a", "common_b", "rare_a", "epic_a"))

    def test_draft_opens_each_turn(self, draft_content):
        loop = start_loop(draft_content)

        assert loop.state == LoopState.WAITING_DRAFT
        options = loop.ctx.pending_draft.options
        assert len(options) == 3
        assert loop.play_card("post_selfie").reason == RejectionReason.DRAFT_PENDING

    def test_invalid_choice(self, draft_content):
        loop = start_loop(draft_content)
        result = loop.select_draft("daily_vlog")
        assert result.reason == RejectionReason.INVALID_DRAFT_CHOICE
        assert loop.ctx.pending_draft is not None

    def test_pick_goes_on_top_of_draw(self, draft_content):
        loop = start_loop(draft_content)
        pick = loop.ctx.pending_draft.options[0]

        loop.select_draft(pick)

        assert loop.ctx.deck.draw_pile[0] == pick
        assert loop.state == LoopState.PLAYER_ACTION
        assert loop.select_draft(pick).reason == RejectionReason.NO_DRAFT_PENDING

    def test_no_draft_after_last_draft_turn(self):
        content = make_content(
            GameSettings(last_draft_turn=1),
            draft_pool=("common_a", "common_b", "rare_a", "epic_a"),
        )
        loop = start_loop(content)
        loop.select_draft(loop.ctx.pending_draft.options[0])

        loop.end_player_action()

        assert loop.ctx.turn.turn_count == 2
        assert loop.state == LoopState.PLAYER_ACTION

    def test_start_cut_in(self):
        preset = CutInPreset(preset_id="welcome", title="Hello")
        loop = start_loop(make_content(start_preset=preset))

        assert loop.state == LoopState.WAITING_ACKNOWLEDGMENT
        assert loop.ctx.deck.hand == []

        assert loop.acknowledge("ack_nope").reason == RejectionReason.ACKNOWLEDGMENT_MISMATCH
        assert loop.acknowledge(loop.ctx.turn.pending_acknowledgment.ack_id).success
        assert loop.state == LoopState.PLAYER_ACTION
        assert loop.acknowledge("ack_1").reason == RejectionReason.NO_ACKNOWLEDGMENT_PENDING

    def test_draw_animation_gate(self):
        loop = start_loop(make_content(GameSettings(await_draw_animation=True)))

        assert loop.state == LoopState.DRAWING
        assert loop.play_card("post_selfie").reason == RejectionReason.DRAW_IN_PROGRESS

        assert loop.complete_draw().success
        assert loop.state == LoopState.PLAYER_ACTION
        assert loop.complete_draw().reason == RejectionReason.NOT_DRAWING

    def test_auto_end_when_out_of_motivation(self):
        loop = start_loop(make_content(GameSettings(max_motivation=1, auto_end_when_out_of_motivation=True)))

        loop.play_card("post_selfie")

        assert loop.ctx.turn.turn_count == 2
        assert loop.ctx.ledger.motivation == 1


class TestCommandQueue:
    def test_observer_commands_run_after_the_current_one(self, loop):
        queued = []

        def on_event(event):
            if event.event_type == EventType.TURN_ENDED and not queued:
                queued.append(loop.end_player_action())

        loop.ctx.events.subscribe(on_event)
        result = loop.end_player_action()

        assert result.success
        assert queued == [None]
        assert loop.ctx.turn.turn_count == 3

    def test_observers_see_events_after_the_command(self, loop):
        seen = []
        loop.ctx.events.subscribe(
            lambda e: seen.append(loop.ctx.ledger.impressions)
            if e.event_type == EventType.IMPRESSIONS_CHANGED else None
        )

        loop.play_card("post_selfie")

        assert seen == [50]


class TestEventBacklog:
    def test_undrained_events_are_bounded(self):
        events = EventLog(max_pending=3)
        seen = []
        events.subscribe(seen.append)

        for turn in range(1, 6):
            events.emit(EventType.TURN_STARTED, turn=turn)
        events.dispatch()

        assert [e.payload["turn"] for e in events.drain()] == [3, 4, 5]
        assert len(seen) == 5
        assert events.drain() == []

    def test_long_unpolled_session_stays_bounded(self):
        loop = start_loop(make_content(max_turns=MAX_PENDING_EVENTS))

        while not loop.is_finished:
            loop.end_player_action()

        pending = loop.ctx.events.peek()
        assert len(pending) == MAX_PENDING_EVENTS
        assert pending[-1].event_type == EventType.STAGE_RESULT


class TestSnapshot:
    def test_snapshot_shape(self, loop):
        snap = loop.snapshot()

        assert snap["loop_state"] == "player_action"
        assert snap["playable_cards"] == ["post_selfie"]
        assert snap["resources"]["followers"] == 100
        assert snap["tracked_card"] is None
        assert snap["result"] is None

    def test_tracked_card(self):
        loop = start_loop(make_content(tracked_card_id="post_selfie"))
        tracked = loop.snapshot()["tracked_card"]
        assert tracked == {"card_id": "post_selfie", "hand": 3, "draw_pile": 3, "discard_pile": 0}
