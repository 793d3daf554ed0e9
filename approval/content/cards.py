"""
Card Templates - Declarative card definitions.

A CardTemplate is immutable and externally authored. The engine never
mutates a template; piles hold template ids, so "3 copies of card X" is
three entries of "X" in a pile.

Effect fields are read by the EffectResolver in a fixed order.
Every effect is gated by its field being non-zero / true, so a template
only describes what it actually does.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class CardRarity(Enum):
    """Draft tier of a card."""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"


class CardType(Enum):
    """Broad card category (display and risk defaults)."""
    NORMAL = "normal"
    RISK = "risk"
    MONSTER = "monster"
    SPECIAL = "special"
    PASSIVE = "passive"


class PlayCondition(Enum):
    """When a card may be played at all."""
    NONE = "none"
    NEVER = "never"
    MONSTER_MODE_ONLY = "monster_mode_only"
    NORMAL_MODE_ONLY = "normal_mode_only"


class RiskType(Enum):
    """Outcome of a card's probabilistic risk roll."""
    NONE = "none"
    FLAMING = "flaming"  # Mental damage
    FREEZE = "freeze"  # Next turn draws nothing
    BAN = "ban"  # Game over
    LOSE_FOLLOWER = "lose_follower"


class CardDestination(Enum):
    """Where a generated card is inserted."""
    DISCARD = "discard"
    HAND = "hand"
    DRAW_MIDDLE = "draw_middle"
    DRAW_TOP = "draw_top"


class CountSource(Enum):
    """Which pile a count-scaled effect counts."""
    HAND = "hand"
    DRAW_PILE = "draw_pile"
    DISCARD_PILE = "discard_pile"
    MIN_DRAW_DISCARD = "min_draw_discard"


@dataclass(frozen=True)
class GeneratedCard:
    """A card the played card inserts into a pile."""
    card_id: str
    destination: CardDestination = CardDestination.DISCARD
    copies: int = 1


@dataclass(frozen=True)
class CountScaledEffect:
    """
    An effect whose magnitude depends on a pile count.

    The count is the number of `target_card_id` entries in the source pile
    (every card when target_card_id is None). When counting the hand, the
    card being resolved is excluded. Nothing happens below `min_count`.
    """
    source: CountSource
    target_card_id: str | None = None
    min_count: int = 1
    exhaust_matching: bool = False
    impression_rate_per_card: float = 0.0
    followers_per_card: int = 0
    draw_per_card: int = 0


@dataclass(frozen=True)
class CardTemplate:
    """
    Immutable card definition.

    Costs:
        motivation_cost is paid on play; mental_cost damages mental when
        positive and heals when negative.
    """
    id: str
    name: str
    rarity: CardRarity = CardRarity.COMMON
    card_type: CardType = CardType.NORMAL
    is_exhaust: bool = False
    play_condition: PlayCondition = PlayCondition.NONE

    # Costs
    motivation_cost: int = 0
    mental_cost: int = 0

    # Followers / impressions
    follower_gain: int = 0
    is_turn_follower_effect: bool = False  # followers x turn instead of follower_gain
    impression_rate: float = 0.0
    is_turn_impression_effect: bool = False  # followers x turn/10 instead of impression_rate

    # Draw / motivation / persistent bonuses
    draw_count: int = 0
    motivation_recovery: int = 0
    turn_draw_bonus: int = 0
    max_motivation_bonus: int = 0

    # Hand-composition gate
    required_hand_card_id: str | None = None
    required_hand_count: int = 0

    # Generated cards and count-scaled effects
    generated_cards: tuple[GeneratedCard, ...] = ()
    count_effects: tuple[CountScaledEffect, ...] = ()

    # Flaming seeds
    flaming_seed_gain: int = 0
    rolls_flaming: bool = False
    seed_impression_rate: float = 0.0
    seed_gamble: bool = False
    seed_mental_heal: int = 0

    # Infection
    infection_gain: int = 0

    # Risk
    risk_type: RiskType = RiskType.NONE
    risk_probability: float = 1.0
    risk_value: int = 0

    # Presentation text
    flavor_text: str = ""
    post_comments: tuple[str, ...] = field(default_factory=tuple)

    def has_risk(self) -> bool:
        return self.risk_type != RiskType.NONE

    def referenced_card_ids(self) -> set[str]:
        """Template ids this card refers to (for content validation)."""
        refs = {g.card_id for g in self.generated_cards}
        refs.update(
            e.target_card_id for e in self.count_effects if e.target_card_id
        )
        if self.required_hand_card_id:
            refs.add(self.required_hand_card_id)
        return refs
