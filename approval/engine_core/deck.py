"""
Deck Engine - Draw pile, hand and discard pile of template ids.

Piles hold template ids; two entries with the same id are two copies of
the same card. The engine tracks how many cards ever entered circulation
and how many were exhausted, so that at all times:

    len(draw) + len(hand) + len(discard) + exhausted == total_ever_added

Index 0 of the draw pile is its top.
"""

from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from .events import EventLog, EventType

logger = logging.getLogger(__name__)


class Pile(Enum):
    DRAW = "draw"
    HAND = "hand"
    DISCARD = "discard"


@dataclass
class DeckState:
    """Plain snapshot of the piles."""
    draw_pile: list[str] = field(default_factory=list)
    hand: list[str] = field(default_factory=list)
    discard_pile: list[str] = field(default_factory=list)
    exhausted_count: int = 0
    total_ever_added: int = 0

    @property
    def population(self) -> int:
        return len(self.draw_pile) + len(self.hand) + len(self.discard_pile) + self.exhausted_count


class DeckEngine:
    """
    Owns the three piles.

    `on_reshuffle` is called after the discard pile is shuffled back into
    the draw pile (the infection meter hooks in here).
    """

    def __init__(self, events: EventLog, rng: random.Random):
        self.events = events
        self.rng = rng
        self.draw_pile: list[str] = []
        self.hand: list[str] = []
        self.discard_pile: list[str] = []
        self.exhausted_count = 0
        self.total_ever_added = 0
        self.on_reshuffle: Callable[[], None] | None = None

    def initialize_deck(self, card_ids: list[str] | tuple[str, ...]):
        """Copy the initial deck into the draw pile and shuffle it."""
        self.draw_pile = list(card_ids)
        self.hand = []
        self.discard_pile = []
        self.exhausted_count = 0
        self.total_ever_added = len(self.draw_pile)
        self.shuffle_draw_pile()

    def shuffle_draw_pile(self):
        """Fisher-Yates permutation of the draw pile in place."""
        self.rng.shuffle(self.draw_pile)
        self.events.emit(EventType.DECK_SHUFFLED, draw_count=len(self.draw_pile))

    def draw_cards(self, count: int) -> list[str]:
        """
        Draw up to `count` cards from the top of the draw pile into the hand.

        An empty draw pile is refilled from the discard pile (then shuffled).
        Stops early when both are empty. Returns the drawn ids.
        """
        drawn = []
        for _ in range(count):
            if not self.draw_pile:
                if not self.discard_pile:
                    break
                self._reshuffle_discard_into_draw()
            card_id = self.draw_pile.pop(0)
            self.hand.append(card_id)
            drawn.append(card_id)

        if drawn:
            self.events.emit(EventType.CARDS_DRAWN, cards=drawn, hand_size=len(self.hand))
        if len(drawn) < count:
            logger.debug("Draw stopped short: wanted %d, drew %d", count, len(drawn))
        return drawn

    def _reshuffle_discard_into_draw(self):
        self.draw_pile.extend(self.discard_pile)
        self.discard_pile.clear()
        self.shuffle_draw_pile()
        self.events.emit(EventType.DECK_RESHUFFLED, draw_count=len(self.draw_pile))
        if self.on_reshuffle:
            self.on_reshuffle()

    def discard_hand(self):
        self.discard_pile.extend(self.hand)
        self.hand.clear()

    def play_card(self, card_id: str) -> bool:
        """Move one copy from hand to discard."""
        if card_id not in self.hand:
            return False
        self.hand.remove(card_id)
        self.discard_pile.append(card_id)
        return True

    def exhaust_card(self, card_id: str) -> bool:
        """Remove one copy from hand permanently."""
        if card_id not in self.hand:
            return False
        self.hand.remove(card_id)
        self.exhausted_count += 1
        self.events.emit(EventType.CARD_EXHAUSTED, card_id=card_id)
        return True

    def exhaust_matching(self, pile: Pile, card_id: str, keep: int = 0) -> int:
        """
        Exhaust every copy of `card_id` in a pile except `keep` of them.

        Returns the number exhausted.
        """
        cards = self._pile(pile)
        matching = cards.count(card_id)
        to_remove = max(0, matching - keep)
        for _ in range(to_remove):
            cards.remove(card_id)
        if to_remove:
            self.exhausted_count += to_remove
            self.events.emit(EventType.CARD_EXHAUSTED, card_id=card_id, count=to_remove, pile=pile.value)
        return to_remove

    # =========================================================================
    # Insertion of new cards into circulation
    # =========================================================================

    def add_card_to_hand(self, card_id: str):
        self.hand.append(card_id)
        self.total_ever_added += 1

    def add_card_to_discard(self, card_id: str):
        self.discard_pile.append(card_id)
        self.total_ever_added += 1

    def add_card_to_top_of_draw(self, card_id: str):
        self.draw_pile.insert(0, card_id)
        self.total_ever_added += 1

    def add_card_to_middle_of_draw(self, card_id: str):
        """Insert at index ceil(len(draw_pile) / 2)."""
        index = math.ceil(len(self.draw_pile) / 2)
        self.draw_pile.insert(index, card_id)
        self.total_ever_added += 1

    # =========================================================================
    # Counting
    # =========================================================================

    def count_in_hand(self, card_id: str | None, exclude: str | None = None) -> int:
        return self._count(self.hand, card_id, exclude)

    def count_in_draw_pile(self, card_id: str | None, exclude: str | None = None) -> int:
        return self._count(self.draw_pile, card_id, exclude)

    def count_in_discard_pile(self, card_id: str | None, exclude: str | None = None) -> int:
        return self._count(self.discard_pile, card_id, exclude)

    @staticmethod
    def _count(cards: list[str], card_id: str | None, exclude: str | None) -> int:
        """
        Count copies of card_id (all cards when None).

        `exclude` names the card being resolved; one copy of it is not
        counted so a card never counts itself.
        """
        if card_id is None:
            count = len(cards)
            if exclude is not None and exclude in cards:
                count -= 1
            return count
        count = cards.count(card_id)
        if exclude is not None and exclude == card_id and count > 0:
            count -= 1
        return count

    def _pile(self, pile: Pile) -> list[str]:
        return {
            Pile.DRAW: self.draw_pile,
            Pile.HAND: self.hand,
            Pile.DISCARD: self.discard_pile,
        }[pile]

    def snapshot(self) -> DeckState:
        return DeckState(
            draw_pile=list(self.draw_pile),
            hand=list(self.hand),
            discard_pile=list(self.discard_pile),
            exhausted_count=self.exhausted_count,
            total_ever_added=self.total_ever_added,
        )
