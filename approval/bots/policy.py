"""
Auto-Play Policy - Interface for simulated players.

A policy looks at a running GameLoop and decides:
- Which playable card to play next (or None to end the action phase)
- Which draft option to pick

run_to_completion() drives a session to its end with a policy; the CLI
uses it for `approval simulate`.
"""

from __future__ import annotations
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..content.cards import CardRarity, CardTemplate, RiskType
from ..engine_core.turn import TurnPhase

if TYPE_CHECKING:
    from ..session.game_loop import GameLoop, StageResult

logger = logging.getLogger(__name__)

RARITY_RANK = {CardRarity.COMMON: 0, CardRarity.RARE: 1, CardRarity.EPIC: 2}


@dataclass
class SimulationTrace:
    """What a simulated session did."""
    cards_played: list[str] = field(default_factory=list)
    drafts_taken: list[str] = field(default_factory=list)
    rejected: int = 0
    commands: int = 0


class AutoPlayPolicy(ABC):
    """
    Abstract base class for auto-play policies.
    """

    @abstractmethod
    def select_play(self, loop: GameLoop, playable: list[str]) -> str | None:
        """
        Pick a card id from `playable`, or None to end the action phase.
        """
        pass

    @abstractmethod
    def select_draft(self, loop: GameLoop, options: list[str]) -> str:
        """Pick one of the offered template ids."""
        pass

    def get_name(self) -> str:
        return self.__class__.__name__


class RandomPolicy(AutoPlayPolicy):
    """
    Plays random playable cards; ends the phase with probability
    `end_chance` even when something is playable.

    Used for:
    - Testing
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None, end_chance: float = 0.1):
        self.rng = random.Random(seed)
        self.end_chance = end_chance

    def select_play(self, loop: GameLoop, playable: list[str]) -> str | None:
        if not playable or self.rng.random() < self.end_chance:
            return None
        return self.rng.choice(playable)

    def select_draft(self, loop: GameLoop, options: list[str]) -> str:
        if not options:
            raise ValueError("No draft options available")
        return self.rng.choice(options)


class FirstPlayablePolicy(AutoPlayPolicy):
    """
    Always plays the first playable card and takes the first draft option.

    Used for deterministic tests.
    """

    def select_play(self, loop: GameLoop, playable: list[str]) -> str | None:
        return playable[0] if playable else None

    def select_draft(self, loop: GameLoop, options: list[str]) -> str:
        if not options:
            raise ValueError("No draft options available")
        return options[0]


class GreedyPolicy(AutoPlayPolicy):
    """
    Plays the card with the best immediate value and drafts the rarest card.

    Value is a rough estimate: impressions the card would gain now plus
    followers, minus a penalty for mental cost and risk. Cards that would
    drop mental to the monster threshold are avoided unless
    `embrace_monster` is set.
    """

    def __init__(self, embrace_monster: bool = False):
        self.embrace_monster = embrace_monster

    def estimate(self, loop: GameLoop, card: CardTemplate) -> float:
        ctx = loop.ctx
        ledger = ctx.ledger
        turn = ctx.turn.turn_count
        multiplier = ctx.settings.monster_mode_multiplier if ledger.is_monster_mode else 1.0

        rate = turn / 10 if card.is_turn_impression_effect else card.impression_rate
        value = ledger.followers * rate * multiplier
        value += ledger.followers * turn if card.is_turn_follower_effect else card.follower_gain
        value += 20 * (card.draw_count + card.motivation_recovery)
        value -= 15 * max(card.mental_cost, 0)
        if card.mental_cost < 0:
            value += 10 * min(-card.mental_cost, ledger.max_mental - ledger.mental)
        if card.risk_type == RiskType.BAN:
            value -= 1000 * card.risk_probability
        elif card.has_risk():
            value -= 30 * card.risk_probability * max(card.risk_value, 1)
        return value

    def select_play(self, loop: GameLoop, playable: list[str]) -> str | None:
        ctx = loop.ctx
        candidates = []
        for card_id in playable:
            card = ctx.get_card(card_id)
            if card is None:
                continue
            if (
                not self.embrace_monster
                and not ctx.ledger.is_monster_mode
                and card.mental_cost > 0
                and ctx.ledger.mental - card.mental_cost <= ctx.settings.monster_threshold
            ):
                continue
            candidates.append((self.estimate(loop, card), card_id))
        if not candidates:
            return None
        value, best = max(candidates)
        return best if value > 0 else None

    def select_draft(self, loop: GameLoop, options: list[str]) -> str:
        if not options:
            raise ValueError("No draft options available")
        ctx = loop.ctx
        return max(
            options,
            key=lambda c: (RARITY_RANK[ctx.cards[c].rarity], self.estimate(loop, ctx.cards[c])),
        )


POLICIES: dict[str, type[AutoPlayPolicy]] = {
    "random": RandomPolicy,
    "first": FirstPlayablePolicy,
    "greedy": GreedyPolicy,
}


def run_to_completion(
    loop: GameLoop,
    policy: AutoPlayPolicy,
    max_commands: int = 10_000,
) -> tuple[StageResult | None, SimulationTrace]:
    """
    Drive `loop` until the stage ends or `max_commands` have been issued.

    Cut-ins are acknowledged immediately and draw animations are completed
    immediately.
    """
    trace = SimulationTrace()
    ctx = loop.ctx

    while not loop.is_finished and trace.commands < max_commands:
        trace.commands += 1
        pending_ack = ctx.turn.pending_acknowledgment

        if pending_ack is not None:
            loop.acknowledge(pending_ack.ack_id)
        elif ctx.pending_draft is not None:
            choice = policy.select_draft(loop, list(ctx.pending_draft.options))
            loop.select_draft(choice)
            trace.drafts_taken.append(choice)
        elif ctx.is_drawing:
            loop.complete_draw()
        elif ctx.turn.phase == TurnPhase.PLAYER_ACTION:
            card_id = policy.select_play(loop, loop.resolver.playable_cards())
            if card_id is None:
                loop.end_player_action()
                continue
            result = loop.play_card(card_id)
            if result is not None and result.success:
                trace.cards_played.append(card_id)
            else:
                trace.rejected += 1
                loop.end_player_action()
        else:
            logger.warning("Session stuck in phase %s", ctx.turn.phase.value)
            break

    if not loop.is_finished:
        logger.warning("Simulation stopped after %d commands", trace.commands)
    return loop.result, trace
