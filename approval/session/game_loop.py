"""
Game Loop - Drives one stage session through commands.

The loop:
1. Start: reset the context, show the stage cut-in (if any), begin turn 1
2. StartStep: refill motivation, set the quota, draw, offer a draft
3. PlayerAction: the player plays cards (EffectResolver) until ending
4. EndStep: discard, evaluate the quota, apply penalty + flaming damage,
   handle a monster trigger (cut-in, then monster draft)
5. Repeat until the turn limit (Result) or mental runs out (GameOver)

Commands run one at a time from a FIFO queue. A command submitted while
another is running (for example from an event observer) is queued and
runs after it. Events are dispatched to observers after each command.
"""

from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from ..engine_core.action import Command, CommandResult, CommandType, RejectionReason
from ..engine_core.context import GameContext
from ..engine_core.draft import DraftKind, PendingDraft
from ..engine_core.effect_resolver import EffectResolver
from ..engine_core.events import EventType
from ..engine_core.turn import ResumePoint, TurnPhase

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """What the session is waiting for."""
    SETUP = "setup"
    WAITING_ACKNOWLEDGMENT = "waiting_acknowledgment"
    WAITING_DRAFT = "waiting_draft"
    DRAWING = "drawing"
    PLAYER_ACTION = "player_action"
    RESULT = "result"
    GAME_OVER = "game_over"


@dataclass
class StageResult:
    """Outcome of a finished session."""
    stage_id: str
    score: int
    cleared: bool
    turns_played: int
    game_over: bool = False
    game_over_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage_id": self.stage_id,
            "score": self.score,
            "cleared": self.cleared,
            "turns_played": self.turns_played,
            "game_over": self.game_over,
            "game_over_reason": self.game_over_reason,
        }


class GameLoop:
    """
    The command-driven session driver.

    Usage:
        ctx = GameContext.create(content, "stage_1", seed=42)
        loop = GameLoop(ctx)
        loop.start()

        if loop.ctx.pending_draft:
            loop.select_draft(loop.ctx.pending_draft.options[0])
        loop.play_card("post_selfie")
        loop.end_player_action()
    """

    def __init__(
        self,
        ctx: GameContext,
        on_finished: Callable[[StageResult], None] | None = None,
    ):
        self.ctx = ctx
        self.resolver = EffectResolver(ctx)
        self.on_finished = on_finished
        self.result: StageResult | None = None

        self._queue: deque[Command] = deque()
        self._processing = False

        ctx.turn.on_start_step = self._on_start_step
        ctx.turn.on_end_step = self._on_end_step
        ctx.turn.on_monster_draft_resume = self._on_monster_draft_resume

    @property
    def state(self) -> LoopState:
        ctx = self.ctx
        if ctx.turn.phase == TurnPhase.RESULT:
            return LoopState.RESULT
        if ctx.turn.phase == TurnPhase.GAME_OVER:
            return LoopState.GAME_OVER
        if ctx.turn.awaiting_acknowledgment:
            return LoopState.WAITING_ACKNOWLEDGMENT
        if ctx.pending_draft is not None:
            return LoopState.WAITING_DRAFT
        if ctx.is_drawing:
            return LoopState.DRAWING
        if ctx.turn.phase == TurnPhase.PLAYER_ACTION:
            return LoopState.PLAYER_ACTION
        return LoopState.SETUP

    @property
    def is_finished(self) -> bool:
        return self.result is not None

    def start(self):
        """Reset the context and begin the stage."""
        ctx = self.ctx
        ctx.reset()
        self.result = None
        self._queue.clear()

        logger.info("Starting stage %s (%d turns)", ctx.stage.id, ctx.stage.max_turns)
        preset = ctx.stage.start_preset
        if preset:
            ctx.turn.request_acknowledgment(
                ResumePoint.BEGIN_FIRST_TURN,
                title=preset.title,
                message=preset.message,
                preset_id=preset.preset_id,
            )
        ctx.turn.start_game()
        self._after_command()

    # =========================================================================
    # Command queue
    # =========================================================================

    def submit(self, command: Command) -> CommandResult | None:
        """
        Queue a command and run the queue.

        Returns the command's result, or None when it was queued behind a
        command that is still running.
        """
        self._queue.append(command)
        if self._processing:
            logger.debug("Queued %s behind a running command", command.command_type.value)
            return None

        first: CommandResult | None = None
        self._processing = True
        try:
            while self._queue:
                result = self._run(self._queue.popleft())
                if first is None:
                    first = result
                self._after_command()
        finally:
            self._processing = False
        return first

    def play_card(self, card_id: str) -> CommandResult | None:
        return self.submit(Command.play_card(card_id))

    def end_player_action(self) -> CommandResult | None:
        return self.submit(Command.end_player_action())

    def select_draft(self, card_id: str) -> CommandResult | None:
        return self.submit(Command.select_draft(card_id))

    def acknowledge(self, ack_id: str) -> CommandResult | None:
        return self.submit(Command.acknowledge(ack_id))

    def complete_draw(self) -> CommandResult | None:
        return self.submit(Command.complete_draw())

    def _run(self, command: Command) -> CommandResult:
        handlers = {
            CommandType.PLAY_CARD: self._handle_play_card,
            CommandType.END_PLAYER_ACTION: self._handle_end_player_action,
            CommandType.SELECT_DRAFT: self._handle_select_draft,
            CommandType.ACKNOWLEDGE: self._handle_acknowledge,
            CommandType.COMPLETE_DRAW: self._handle_complete_draw,
        }
        result = handlers[command.command_type](command)
        if not result.success:
            logger.debug("Rejected %s: %s", command.command_type.value, result.error)
        return result

    def _after_command(self):
        if self.ctx.turn.is_terminal and self.result is None:
            self._finish()
        self.ctx.events.dispatch()

    # =========================================================================
    # Handlers
    # =========================================================================

    def _handle_play_card(self, command: Command) -> CommandResult:
        result = self.resolver.try_play_card(command.card_id or "")
        if result.success:
            self._maybe_auto_end()
        return result

    def _maybe_auto_end(self):
        ctx = self.ctx
        if not ctx.settings.auto_end_when_out_of_motivation:
            return
        if ctx.ledger.motivation > 0 or ctx.pending_draft is not None or ctx.is_drawing:
            return
        if ctx.turn.phase == TurnPhase.PLAYER_ACTION:
            logger.debug("Out of motivation, ending action phase")
            ctx.turn.end_player_action()

    def _handle_end_player_action(self, command: Command) -> CommandResult:
        ctx = self.ctx
        if ctx.turn.is_terminal:
            return CommandResult.failure(RejectionReason.SESSION_INACTIVE)
        if ctx.turn.awaiting_acknowledgment:
            return CommandResult.failure(RejectionReason.ACKNOWLEDGMENT_PENDING)
        if ctx.pending_draft is not None:
            return CommandResult.failure(RejectionReason.DRAFT_PENDING)
        if ctx.is_drawing:
            return CommandResult.failure(RejectionReason.DRAW_IN_PROGRESS)
        if not ctx.turn.end_player_action():
            return CommandResult.failure(RejectionReason.WRONG_PHASE)
        return CommandResult.ok(changes=[f"Turn {ctx.turn.turn_count} ({ctx.turn.phase.value})"])

    def _handle_select_draft(self, command: Command) -> CommandResult:
        ctx = self.ctx
        if ctx.turn.is_terminal:
            return CommandResult.failure(RejectionReason.SESSION_INACTIVE)
        pending = ctx.pending_draft
        if pending is None:
            return CommandResult.failure(RejectionReason.NO_DRAFT_PENDING)
        if command.card_id not in pending.options:
            return CommandResult.failure(
                RejectionReason.INVALID_DRAFT_CHOICE,
                f"{command.card_id} is not one of {pending.options}",
            )

        ctx.pending_draft = None
        if pending.kind == DraftKind.NORMAL:
            ctx.draft.select_card(command.card_id, ctx.deck)
        else:
            ctx.monster.complete_draft(command.card_id)

        if pending.resume_end_step:
            ctx.turn.finish_end_step()
        return CommandResult.ok(changes=[f"Drafted {command.card_id}"], card_id=command.card_id)

    def _handle_acknowledge(self, command: Command) -> CommandResult:
        ctx = self.ctx
        if ctx.turn.pending_acknowledgment is None:
            return CommandResult.failure(RejectionReason.NO_ACKNOWLEDGMENT_PENDING)
        if not ctx.turn.acknowledge(command.ack_id or ""):
            return CommandResult.failure(
                RejectionReason.ACKNOWLEDGMENT_MISMATCH,
                f"Pending acknowledgment is {ctx.turn.pending_acknowledgment.ack_id}",
            )
        return CommandResult.ok(changes=[f"Acknowledged {command.ack_id}"])

    def _handle_complete_draw(self, command: Command) -> CommandResult:
        if not self.ctx.is_drawing:
            return CommandResult.failure(RejectionReason.NOT_DRAWING)
        self.ctx.is_drawing = False
        return CommandResult.ok()

    # =========================================================================
    # Turn hooks
    # =========================================================================

    def _on_start_step(self, turn: int):
        ctx = self.ctx
        settings = ctx.settings

        ctx.ledger.reset_motivation()
        ctx.quota.begin_turn(turn)

        if ctx.skip_next_draw:
            ctx.skip_next_draw = False
            logger.debug("Turn %d frozen, no draw", turn)
        else:
            count = settings.initial_hand_size + ctx.ledger.modifiers.extra_draws_per_turn
            drawn = ctx.deck.draw_cards(count)
            if drawn and settings.await_draw_animation:
                ctx.is_drawing = True

        if ctx.stage.draft_pool and settings.draft_slot_count > 0 and turn <= settings.last_draft_turn:
            self._open_normal_draft()

    def _open_normal_draft(self):
        ctx = self.ctx
        options = ctx.draft.generate_draft_options(
            ctx.stage.draft_pool,
            ctx.ledger.impressions,
            ctx.settings.draft_slot_count,
            ctx.stage.probability_table,
        )
        if not options:
            return
        ctx.pending_draft = PendingDraft(
            draft_id=ctx.draft.next_draft_id(),
            kind=DraftKind.NORMAL,
            options=options,
        )
        ctx.events.emit(
            EventType.DRAFT_OFFERED,
            draft_id=ctx.pending_draft.draft_id,
            kind=DraftKind.NORMAL.value,
            options=list(options),
        )

    def _on_end_step(self, turn: int) -> bool:
        """Returns True when the end step must wait (cut-in or monster draft)."""
        ctx = self.ctx
        ctx.deck.discard_hand()

        outcome = ctx.quota.evaluate(turn)
        flaming_damage = 0
        if ctx.stage.enable_flaming:
            flaming_damage = ctx.ledger.consume_flaming_level() * ctx.settings.flaming_damage_per_level

        total = outcome.penalty + flaming_damage
        if total <= 0:
            return False

        change = ctx.ledger.damage_mental(total)
        if change.depleted:
            ctx.turn.game_over("mental_depleted")
            return False
        if not change.monster_triggered:
            return False

        ctx.monster.activate()
        preset = ctx.stage.monster_preset
        if preset:
            ctx.turn.request_acknowledgment(
                ResumePoint.MONSTER_DRAFT,
                title=preset.title,
                message=preset.message,
                preset_id=preset.preset_id,
            )
            return True
        return self._open_monster_draft()

    def _on_monster_draft_resume(self):
        if not self._open_monster_draft():
            self.ctx.turn.finish_end_step()

    def _open_monster_draft(self) -> bool:
        pending = self.ctx.monster.begin_draft(resume_end_step=True)
        self.ctx.pending_draft = pending
        return pending is not None

    # =========================================================================
    # Result
    # =========================================================================

    def _finish(self):
        ctx = self.ctx
        stage = ctx.stage
        score = ctx.ledger.impressions
        game_over = ctx.turn.phase == TurnPhase.GAME_OVER
        cleared = (
            not game_over
            and stage.clear_condition is not None
            and score >= stage.clear_condition.target_score
        )
        ctx.session_active = False
        ctx.pending_draft = None
        ctx.is_drawing = False

        self.result = StageResult(
            stage_id=stage.id,
            score=score,
            cleared=cleared,
            turns_played=min(ctx.turn.turn_count, stage.max_turns),
            game_over=game_over,
            game_over_reason=ctx.turn.game_over_reason,
        )
        ctx.events.emit(EventType.STAGE_RESULT, **self.result.to_dict())
        logger.info(
            "Stage %s finished: score=%d cleared=%s game_over=%s",
            stage.id, score, cleared, game_over,
        )
        if self.on_finished:
            self.on_finished(self.result)

    # =========================================================================
    # Inspection
    # =========================================================================

    def snapshot(self) -> dict[str, Any]:
        """Plain-data view of the session for presentation clients."""
        ctx = self.ctx
        deck = ctx.deck.snapshot()
        pending_draft = ctx.pending_draft
        pending_ack = ctx.turn.pending_acknowledgment
        return {
            "stage_id": ctx.stage.id,
            "loop_state": self.state.value,
            "phase": ctx.turn.phase.value,
            "turn": ctx.turn.turn_count,
            "max_turns": ctx.stage.max_turns,
            "resources": ctx.ledger.snapshot().to_dict(),
            "quota": ctx.quota.state.current_turn_quota,
            "turn_start_impressions": ctx.quota.state.turn_start_impressions,
            "hand": deck.hand,
            "draw_pile_count": len(deck.draw_pile),
            "discard_pile": deck.discard_pile,
            "exhausted_count": deck.exhausted_count,
            "playable_cards": self.resolver.playable_cards(),
            "is_drawing": ctx.is_drawing,
            "pending_draft": {
                "draft_id": pending_draft.draft_id,
                "kind": pending_draft.kind.value,
                "options": list(pending_draft.options),
            } if pending_draft else None,
            "pending_acknowledgment": pending_ack.to_dict() if pending_ack else None,
            "tracked_card": self._tracked_card_counts(),
            "result": self.result.to_dict() if self.result else None,
        }

    def _tracked_card_counts(self) -> dict[str, Any] | None:
        card_id = self.ctx.stage.tracked_card_id
        if not card_id:
            return None
        deck = self.ctx.deck
        return {
            "card_id": card_id,
            "hand": deck.count_in_hand(card_id),
            "draw_pile": deck.count_in_draw_pile(card_id),
            "discard_pile": deck.count_in_discard_pile(card_id),
        }
