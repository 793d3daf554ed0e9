"""
Event Log - Outbound notifications for the presentation layer.

Subsystems emit events into a queue while they mutate state.
Observers are only called when the owner dispatches the queue
(after a command has fully resolved), so listener side effects can
never interleave with an effect chain.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class EventType(Enum):
    """Kinds of events the engine emits."""
    # Resources
    FOLLOWERS_CHANGED = "followers_changed"
    MENTAL_CHANGED = "mental_changed"
    MOTIVATION_CHANGED = "motivation_changed"
    IMPRESSIONS_CHANGED = "impressions_changed"
    FLAMING_CHANGED = "flaming_changed"
    INFECTION_CHANGED = "infection_changed"

    # Turn flow
    TURN_STARTED = "turn_started"
    TURN_CHANGED = "turn_changed"
    TURN_ENDED = "turn_ended"
    PHASE_CHANGED = "phase_changed"
    QUOTA_SET = "quota_set"
    QUOTA_EVALUATED = "quota_evaluated"

    # Deck
    CARDS_DRAWN = "cards_drawn"
    DECK_SHUFFLED = "deck_shuffled"
    DECK_RESHUFFLED = "deck_reshuffled"
    CARD_PLAYED = "card_played"
    CARD_EXHAUSTED = "card_exhausted"
    CARD_POSTED = "card_posted"
    PLAY_REJECTED = "play_rejected"
    MOTIVATION_LOW = "motivation_low"

    # Drafts & monster mode
    DRAFT_OFFERED = "draft_offered"
    DRAFT_SELECTED = "draft_selected"
    MONSTER_MODE_TRIGGERED = "monster_mode_triggered"

    # External acknowledgment
    ACKNOWLEDGMENT_REQUESTED = "acknowledgment_requested"
    ACKNOWLEDGED = "acknowledged"

    # Terminal
    GAME_OVER = "game_over"
    STAGE_RESULT = "stage_result"


# Oldest undrained events are dropped past this many.
MAX_PENDING_EVENTS = 5000


@dataclass
class GameEvent:
    """A single notification."""
    event_type: EventType
    payload: dict[str, Any] = field(default_factory=dict)
    sequence: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type.value,
            "sequence": self.sequence,
            "payload": self.payload,
        }


Listener = Callable[[GameEvent], None]


class EventLog:
    """
    Event queue with observer dispatch.

    Usage:
        events = EventLog()
        events.subscribe(lambda e: print(e.event_type))
        events.emit(EventType.TURN_STARTED, turn=1)
        events.dispatch()       # observers see the event now

        pending = events.drain()  # or pull them instead
    """

    def __init__(self, max_pending: int = MAX_PENDING_EVENTS):
        self._pending: deque[GameEvent] = deque(maxlen=max_pending)
        self._undelivered: list[GameEvent] = []
        self._listeners: list[Listener] = []
        self._sequence = 0

    def emit(self, event_type: EventType, **payload: Any) -> GameEvent:
        self._sequence += 1
        event = GameEvent(event_type=event_type, payload=payload, sequence=self._sequence)
        self._pending.append(event)
        self._undelivered.append(event)
        return event

    def subscribe(self, listener: Listener):
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispatch(self):
        """Deliver events emitted since the last dispatch to observers, in order."""
        while self._undelivered:
            event = self._undelivered.pop(0)
            for listener in list(self._listeners):
                listener(event)

    def drain(self) -> list[GameEvent]:
        """Return and clear the pull queue."""
        events = list(self._pending)
        self._pending.clear()
        return events

    def peek(self) -> list[GameEvent]:
        return list(self._pending)

    def of_type(self, event_type: EventType) -> list[GameEvent]:
        """Pending events of one type (handy for tests and the API)."""
        return [e for e in self._pending if e.event_type == event_type]

    def clear(self):
        self._pending.clear()
        self._undelivered.clear()
