"""
Turn Phase Controller - Finite-state turn loop.

    SETUP -> START_STEP -> PLAYER_ACTION -> END_STEP -> START_STEP ...
                                                     -> RESULT
    any -> GAME_OVER

StartStep runs the start hook and advances to PlayerAction on its own.
PlayerAction leaves only through end_player_action(). EndStep runs the
end hook and then finishes the turn, unless the hook holds it (a monster
draft at a turn boundary) or an acknowledgment is pending.

While an acknowledgment is pending no phase transition happens.
acknowledge() clears it and performs the resumption it names.

Calls made in the wrong state are silent no-ops that return False.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .events import EventLog, EventType

logger = logging.getLogger(__name__)


class TurnPhase(Enum):
    SETUP = "setup"
    START_STEP = "start_step"
    PLAYER_ACTION = "player_action"
    END_STEP = "end_step"
    RESULT = "result"
    GAME_OVER = "game_over"


class ResumePoint(Enum):
    """What happens once a pending acknowledgment is dismissed."""
    BEGIN_FIRST_TURN = "begin_first_turn"
    MONSTER_DRAFT = "monster_draft"
    FINISH_END_STEP = "finish_end_step"


@dataclass
class PendingAcknowledgment:
    """A cut-in the presentation must dismiss before the session resumes."""
    ack_id: str
    resume: ResumePoint
    title: str = ""
    message: str = ""
    preset_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "ack_id": self.ack_id,
            "title": self.title,
            "message": self.message,
            "preset_id": self.preset_id,
            "resume": self.resume.value,
        }


TERMINAL_PHASES = (TurnPhase.RESULT, TurnPhase.GAME_OVER)


class TurnPhaseController:
    """
    Drives the phase machine.

    Hooks (set by the owner):
        on_start_step(turn)         -> None
        on_end_step(turn)           -> bool, True holds the end step open
        on_monster_draft_resume()   -> None
    """

    def __init__(self, max_turns: int, events: EventLog):
        self.max_turns = max_turns
        self.events = events
        self.phase = TurnPhase.SETUP
        self.turn_count = 1
        self.pending_acknowledgment: PendingAcknowledgment | None = None
        self.game_over_reason: str | None = None
        self._ack_counter = 0

        self.on_start_step: Callable[[int], None] | None = None
        self.on_end_step: Callable[[int], bool] | None = None
        self.on_monster_draft_resume: Callable[[], None] | None = None

    def reset(self):
        self.phase = TurnPhase.SETUP
        self.turn_count = 1
        self.pending_acknowledgment = None
        self.game_over_reason = None

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def awaiting_acknowledgment(self) -> bool:
        return self.pending_acknowledgment is not None

    def _set_phase(self, phase: TurnPhase):
        previous = self.phase
        self.phase = phase
        self.events.emit(
            EventType.PHASE_CHANGED,
            previous=previous.value,
            phase=phase.value,
            turn=self.turn_count,
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def start_game(self) -> bool:
        """Begin turn 1 (unless a start cut-in is pending)."""
        if self.phase != TurnPhase.SETUP:
            return False
        self.turn_count = 1
        if self.awaiting_acknowledgment:
            return True
        return self.enter_start_step()

    def enter_start_step(self) -> bool:
        if self.is_terminal or self.awaiting_acknowledgment:
            return False
        if self.phase not in (TurnPhase.SETUP, TurnPhase.END_STEP):
            return False

        self._set_phase(TurnPhase.START_STEP)
        self.events.emit(EventType.TURN_STARTED, turn=self.turn_count)
        self.events.emit(EventType.TURN_CHANGED, turn=self.turn_count)
        logger.debug("Turn %d start", self.turn_count)

        if self.on_start_step:
            self.on_start_step(self.turn_count)

        if self.phase == TurnPhase.START_STEP:
            self._set_phase(TurnPhase.PLAYER_ACTION)
        return True

    def end_player_action(self) -> bool:
        if self.phase != TurnPhase.PLAYER_ACTION or self.awaiting_acknowledgment:
            return False

        self._set_phase(TurnPhase.END_STEP)
        hold = False
        if self.on_end_step:
            hold = bool(self.on_end_step(self.turn_count))

        if self.phase == TurnPhase.END_STEP and not hold:
            self.finish_end_step()
        return True

    def finish_end_step(self) -> bool:
        """Close the turn: next StartStep, or Result past the turn limit."""
        if self.phase != TurnPhase.END_STEP or self.awaiting_acknowledgment:
            return False

        self.events.emit(EventType.TURN_ENDED, turn=self.turn_count)
        self.turn_count += 1

        if self.turn_count > self.max_turns:
            self._set_phase(TurnPhase.RESULT)
            logger.info("Turn limit reached after %d turns", self.max_turns)
            return True

        return self.enter_start_step()

    def game_over(self, reason: str) -> bool:
        if self.is_terminal:
            return False
        self.pending_acknowledgment = None
        self.game_over_reason = reason
        self._set_phase(TurnPhase.GAME_OVER)
        self.events.emit(EventType.GAME_OVER, reason=reason, turn=self.turn_count)
        logger.info("Game over on turn %d: %s", self.turn_count, reason)
        return True

    # =========================================================================
    # Acknowledgments
    # =========================================================================

    def request_acknowledgment(
        self,
        resume: ResumePoint,
        title: str = "",
        message: str = "",
        preset_id: str | None = None,
    ) -> PendingAcknowledgment | None:
        if self.is_terminal or self.awaiting_acknowledgment:
            return None
        self._ack_counter += 1
        pending = PendingAcknowledgment(
            ack_id=f"ack_{self._ack_counter}",
            resume=resume,
            title=title,
            message=message,
            preset_id=preset_id,
        )
        self.pending_acknowledgment = pending
        self.events.emit(EventType.ACKNOWLEDGMENT_REQUESTED, **pending.to_dict())
        return pending

    def acknowledge(self, ack_id: str) -> bool:
        """Dismiss the pending acknowledgment and resume. False on mismatch."""
        pending = self.pending_acknowledgment
        if pending is None or pending.ack_id != ack_id:
            return False

        self.pending_acknowledgment = None
        self.events.emit(EventType.ACKNOWLEDGED, ack_id=ack_id, resume=pending.resume.value)

        if pending.resume == ResumePoint.BEGIN_FIRST_TURN:
            self.enter_start_step()
        elif pending.resume == ResumePoint.MONSTER_DRAFT:
            if self.on_monster_draft_resume:
                self.on_monster_draft_resume()
        elif pending.resume == ResumePoint.FINISH_END_STEP:
            self.finish_end_step()
        return True
