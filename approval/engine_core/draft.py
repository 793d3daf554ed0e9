"""
Draft Selector - Tier-weighted card offers.

A draft offers `slot_count` distinct templates from a pool:
1. Templates already picked this session are excluded (if that empties
   the pool, the history is cleared and the full pool is used).
2. Each slot rolls a tier (Common/Rare/Epic) from the probability row
   for the current score.
3. A random template of that tier is taken from what remains; an empty
   tier falls back downward (Epic -> Rare -> Common), and when nothing
   below is left, upward to the nearest non-empty tier.

The monster draft offers the whole monster pool with no tier logic.
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from enum import Enum

from ..content.cards import CardTemplate, CardRarity
from ..content.stage import DraftProbabilityTable
from .deck import DeckEngine
from .events import EventLog, EventType

logger = logging.getLogger(__name__)

TIER_FALLBACK: dict[CardRarity, tuple[CardRarity, ...]] = {
    CardRarity.EPIC: (CardRarity.EPIC, CardRarity.RARE, CardRarity.COMMON),
    CardRarity.RARE: (CardRarity.RARE, CardRarity.COMMON, CardRarity.EPIC),
    CardRarity.COMMON: (CardRarity.COMMON, CardRarity.RARE, CardRarity.EPIC),
}


class DraftKind(Enum):
    NORMAL = "normal"
    MONSTER = "monster"


@dataclass
class PendingDraft:
    """
    A draft waiting for the player's pick.

    While one is pending no card may be played.
    """
    draft_id: str
    kind: DraftKind
    options: list[str] = field(default_factory=list)
    resume_end_step: bool = False  # Opened at a turn boundary


class DraftSelector:
    """
    Builds draft offers and records session picks.
    """

    def __init__(self, cards: dict[str, CardTemplate], events: EventLog, rng: random.Random):
        self.cards = cards
        self.events = events
        self.rng = rng
        self.selected_history: list[str] = []
        self._draft_counter = 0

    def reset_history(self):
        """Forget session picks (called at session start)."""
        self.selected_history.clear()

    def next_draft_id(self) -> str:
        self._draft_counter += 1
        return f"draft_{self._draft_counter}"

    def generate_draft_options(
        self,
        pool: list[str] | tuple[str, ...],
        current_score: int,
        slot_count: int,
        table: DraftProbabilityTable,
    ) -> list[str]:
        """Roll `slot_count` distinct offers from `pool` for `current_score`."""
        unique_pool = list(dict.fromkeys(pool))
        if not unique_pool:
            logger.warning("Draft pool is empty")
            return []

        available = [c for c in unique_pool if c not in self.selected_history]
        if not available:
            logger.info("Every draft card was already picked; clearing history")
            self.selected_history.clear()
            available = unique_pool

        options: list[str] = []
        for _ in range(slot_count):
            if not available:
                break
            tier = table.roll_tier(current_score, self.rng.random())
            card_id = self._select_by_tier(available, tier)
            options.append(card_id)
            available.remove(card_id)

        logger.debug("Draft options for score %d: %s", current_score, options)
        return options

    def _select_by_tier(self, pool: list[str], tier: CardRarity) -> str:
        by_tier: dict[CardRarity, list[str]] = {r: [] for r in CardRarity}
        for card_id in pool:
            by_tier[self.cards[card_id].rarity].append(card_id)

        for candidate in TIER_FALLBACK[tier]:
            if by_tier[candidate]:
                return self.rng.choice(by_tier[candidate])
        # Unreachable while pool is non-empty
        raise ValueError("Cannot select from an empty pool")

    def generate_monster_draft_options(self, pool: list[str] | tuple[str, ...]) -> list[str]:
        """The whole monster pool, unfiltered."""
        if not pool:
            logger.warning("Monster pool is empty")
        return list(pool)

    def select_card(self, card_id: str, deck: DeckEngine):
        """Put the picked card on top of the draw pile and exclude it for the session."""
        deck.add_card_to_top_of_draw(card_id)
        self.selected_history.append(card_id)
        self.events.emit(EventType.DRAFT_SELECTED, card_id=card_id, kind=DraftKind.NORMAL.value)
        logger.debug("Draft pick %s, %d picked this session", card_id, len(self.selected_history))
