"""
Command System - Commands, rejection reasons, and results.

Commands represent everything the outside world can ask of a session:
1. Player actions (play a card, end the action phase)
2. Draft responses (pick an offered card)
3. Presentation acknowledgments (cut-in dismissed, draw animation done)

All state changes flow through commands, which the GameLoop runs one at
a time from a FIFO queue.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CommandType(Enum):
    """Types of commands in the system."""
    PLAY_CARD = "play_card"
    END_PLAYER_ACTION = "end_player_action"
    SELECT_DRAFT = "select_draft"
    ACKNOWLEDGE = "acknowledge"
    COMPLETE_DRAW = "complete_draw"


class RejectionReason(Enum):
    """Why a command was rejected. A rejected command mutates nothing."""
    SESSION_INACTIVE = "session_inactive"
    DRAW_IN_PROGRESS = "draw_in_progress"
    DRAFT_PENDING = "draft_pending"
    ACKNOWLEDGMENT_PENDING = "acknowledgment_pending"
    WRONG_PHASE = "wrong_phase"
    CARD_NOT_IN_HAND = "card_not_in_hand"
    UNKNOWN_CARD = "unknown_card"
    CARD_UNPLAYABLE = "card_unplayable"
    HAND_CONDITION_NOT_MET = "hand_condition_not_met"
    INSUFFICIENT_MOTIVATION = "insufficient_motivation"
    NO_DRAFT_PENDING = "no_draft_pending"
    INVALID_DRAFT_CHOICE = "invalid_draft_choice"
    NO_ACKNOWLEDGMENT_PENDING = "no_acknowledgment_pending"
    ACKNOWLEDGMENT_MISMATCH = "acknowledgment_mismatch"
    NOT_DRAWING = "not_drawing"


@dataclass
class Command:
    """
    A command to be applied to a session.

    Use the factories rather than building payloads by hand.
    """
    command_type: CommandType
    card_id: str | None = None
    ack_id: str | None = None
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def play_card(cls, card_id: str) -> Command:
        return cls(command_type=CommandType.PLAY_CARD, card_id=card_id)

    @classmethod
    def end_player_action(cls) -> Command:
        return cls(command_type=CommandType.END_PLAYER_ACTION)

    @classmethod
    def select_draft(cls, card_id: str) -> Command:
        return cls(command_type=CommandType.SELECT_DRAFT, card_id=card_id)

    @classmethod
    def acknowledge(cls, ack_id: str) -> Command:
        return cls(command_type=CommandType.ACKNOWLEDGE, ack_id=ack_id)

    @classmethod
    def complete_draw(cls) -> Command:
        return cls(command_type=CommandType.COMPLETE_DRAW)


@dataclass
class CommandResult:
    """
    Result of applying a command.

    Contains:
    - Whether the command succeeded
    - Rejection reason and message (if rejected)
    - Human-readable changes (for logs/UI)
    """
    success: bool
    reason: RejectionReason | None = None
    error: str | None = None
    changes: list[str] = field(default_factory=list)

    # Set for card plays
    card_id: str | None = None
    impressions_gained: int = 0
    followers_gained: int = 0

    @classmethod
    def failure(cls, reason: RejectionReason, error: str | None = None) -> CommandResult:
        """Create a rejection result."""
        return cls(success=False, reason=reason, error=error or reason.value)

    @classmethod
    def ok(cls, changes: list[str] | None = None, **kwargs: Any) -> CommandResult:
        """Create a success result."""
        return cls(success=True, changes=changes or [], **kwargs)

    @property
    def error_code(self) -> str | None:
        return self.reason.value if self.reason else None
