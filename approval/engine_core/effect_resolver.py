"""
Effect Resolver - Validates and applies a card play.

A play is two-phase:

VALIDATION (first failing check rejects, nothing is mutated):
    session active -> not drawing -> no pending draft -> no pending
    acknowledgment -> PlayerAction phase -> card in hand -> known card ->
    play condition -> hand-composition gate -> motivation (spent here)

EXECUTION (fixed order, later steps see what earlier ones changed):
    1.  Flaming seeds (conversion, heal, or accumulation + roll)
    2.  Mental cost / heal, monster re-check
    3.  Followers
    4.  Impressions
    5.  Draw, motivation recovery, persistent bonuses
    6.  Generated cards, infection
    7.  Hand-count effects
    8.  Draw / discard / min(draw, discard) count effects
    9.  Risk roll
    10. Move the played card (exhaust or discard)
    11. Monster draft, or post the card

Every step is gated by its fields on the template. Game over at any step
skips the remaining effect steps; the card is still moved.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Callable

from ..content.cards import (
    CardTemplate,
    CardDestination,
    CountScaledEffect,
    CountSource,
    PlayCondition,
    RiskType,
)
from .action import CommandResult, RejectionReason
from .context import GameContext
from .deck import Pile
from .events import EventType
from .resources import MentalChange
from .turn import TurnPhase

logger = logging.getLogger(__name__)


@dataclass
class PlayContext:
    """Scratch state for one card resolution."""
    card: CardTemplate
    turn: int
    monster_activated: bool = False
    impressions_gained: int = 0
    followers_gained: int = 0
    changes: list[str] = field(default_factory=list)


class EffectResolver:
    """
    Resolves card plays against a GameContext.

    Usage:
        resolver = EffectResolver(ctx)
        result = resolver.try_play_card("post_selfie")
        if not result.success:
            print(result.reason)
    """

    def __init__(self, ctx: GameContext):
        self.ctx = ctx

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_play(self, card_id: str) -> CommandResult | None:
        """
        Run every check except the motivation payment.

        Returns a failure result, or None when the play is allowed.
        """
        ctx = self.ctx

        if not ctx.session_active or ctx.turn.is_terminal:
            return CommandResult.failure(RejectionReason.SESSION_INACTIVE)
        if ctx.is_drawing:
            return CommandResult.failure(RejectionReason.DRAW_IN_PROGRESS)
        if ctx.pending_draft is not None:
            return CommandResult.failure(RejectionReason.DRAFT_PENDING)
        if ctx.turn.awaiting_acknowledgment:
            return CommandResult.failure(RejectionReason.ACKNOWLEDGMENT_PENDING)
        if ctx.turn.phase != TurnPhase.PLAYER_ACTION:
            return CommandResult.failure(
                RejectionReason.WRONG_PHASE,
                f"Cannot play cards during {ctx.turn.phase.value}",
            )
        if card_id not in ctx.deck.hand:
            return CommandResult.failure(
                RejectionReason.CARD_NOT_IN_HAND, f"{card_id} is not in hand"
            )

        card = ctx.get_card(card_id)
        if card is None:
            return CommandResult.failure(RejectionReason.UNKNOWN_CARD, f"Unknown card: {card_id}")

        if not self._condition_allows(card):
            return CommandResult.failure(
                RejectionReason.CARD_UNPLAYABLE,
                f"{card.name} cannot be played now ({card.play_condition.value})",
            )

        if card.required_hand_card_id and card.required_hand_count > 0:
            held = ctx.deck.count_in_hand(card.required_hand_card_id, exclude=card.id)
            if held < card.required_hand_count:
                return CommandResult.failure(
                    RejectionReason.HAND_CONDITION_NOT_MET,
                    f"Needs {card.required_hand_count} x {card.required_hand_card_id} in hand",
                )

        if ctx.ledger.motivation < card.motivation_cost:
            return CommandResult.failure(
                RejectionReason.INSUFFICIENT_MOTIVATION,
                f"Needs {card.motivation_cost} motivation, have {ctx.ledger.motivation}",
            )
        return None

    def _condition_allows(self, card: CardTemplate) -> bool:
        condition = card.play_condition
        monster = self.ctx.ledger.is_monster_mode
        if condition == PlayCondition.NEVER:
            return False
        if condition == PlayCondition.MONSTER_MODE_ONLY:
            return monster
        if condition == PlayCondition.NORMAL_MODE_ONLY:
            return not monster
        return True

    def can_play(self, card_id: str) -> bool:
        return self.validate_play(card_id) is None

    def playable_cards(self) -> list[str]:
        """Distinct ids in hand that would pass validation right now."""
        return [c for c in dict.fromkeys(self.ctx.deck.hand) if self.can_play(c)]

    # =========================================================================
    # Play
    # =========================================================================

    def try_play_card(self, card_id: str) -> CommandResult:
        """Validate and, if allowed, resolve a card from hand."""
        rejection = self.validate_play(card_id)
        if rejection is not None:
            self._report_rejection(card_id, rejection)
            return rejection

        ctx = self.ctx
        card = ctx.get_card(card_id)
        ctx.ledger.use_motivation(card.motivation_cost)

        play = PlayContext(card=card, turn=ctx.turn.turn_count)
        ctx.events.emit(EventType.CARD_PLAYED, card_id=card.id, turn=play.turn)
        logger.debug("Resolving %s on turn %d", card.id, play.turn)

        steps: list[Callable[[PlayContext], None]] = [
            self._resolve_seeds,
            self._resolve_mental,
            self._resolve_followers,
            self._resolve_impressions,
            self._resolve_draw_and_bonuses,
            self._resolve_generated_cards,
            self._resolve_hand_counts,
            self._resolve_pile_counts,
            self._resolve_risk,
        ]
        for step in steps:
            step(play)
            if ctx.turn.is_terminal:
                break

        self._move_played_card(play)

        if not ctx.turn.is_terminal:
            self._post_play(play)

        return CommandResult.ok(
            changes=play.changes,
            card_id=card.id,
            impressions_gained=play.impressions_gained,
            followers_gained=play.followers_gained,
        )

    def _report_rejection(self, card_id: str, rejection: CommandResult):
        ctx = self.ctx
        ctx.events.emit(
            EventType.PLAY_REJECTED,
            card_id=card_id,
            reason=rejection.error_code,
            message=rejection.error,
        )
        if rejection.reason == RejectionReason.INSUFFICIENT_MOTIVATION:
            preset = ctx.stage.motivation_low_preset
            ctx.events.emit(
                EventType.MOTIVATION_LOW,
                card_id=card_id,
                motivation=ctx.ledger.motivation,
                preset_id=preset.preset_id if preset else None,
                title=preset.title if preset else "",
                message=preset.message if preset else "",
            )

    # =========================================================================
    # Execution steps
    # =========================================================================

    def _resolve_seeds(self, play: PlayContext):
        card = play.card
        ctx = self.ctx
        if not ctx.stage.enable_flaming:
            return
        ledger = ctx.ledger

        if card.seed_impression_rate > 0:
            chance = ledger.flaming_chance()
            seeds = ledger.convert_seeds()
            if card.seed_gamble and ledger.try_trigger_flaming(chance):
                play.changes.append(f"Gamble on {seeds} seeds backfired")
                return
            self._gain_impressions(play, card.seed_impression_rate * seeds)
            play.changes.append(f"Converted {seeds} seeds into impressions")
        elif card.seed_mental_heal > 0:
            seeds = ledger.convert_seeds()
            healed = ledger.heal_mental(seeds * card.seed_mental_heal)
            play.changes.append(f"Converted {seeds} seeds into {healed} mental")
        elif card.flaming_seed_gain > 0 or card.rolls_flaming:
            if card.flaming_seed_gain:
                ledger.add_flaming_seeds(card.flaming_seed_gain)
            if card.rolls_flaming and ledger.try_trigger_flaming(ledger.flaming_chance()):
                play.changes.append(f"Flaming! level {ledger.flaming_level}")

    def _resolve_mental(self, play: PlayContext):
        cost = play.card.mental_cost
        if cost > 0:
            self._apply_mental_damage(play, cost, "card cost")
        elif cost < 0:
            healed = self.ctx.ledger.heal_mental(-cost)
            play.changes.append(f"Healed {healed} mental")

    def _resolve_followers(self, play: PlayContext):
        card = play.card
        ledger = self.ctx.ledger
        if card.is_turn_follower_effect:
            gained = ledger.add_followers(ledger.followers * play.turn)
        elif card.follower_gain:
            gained = ledger.add_followers(card.follower_gain)
        else:
            return
        play.followers_gained += gained
        play.changes.append(f"Followers {gained:+d}")

    def _resolve_impressions(self, play: PlayContext):
        card = play.card
        if card.is_turn_impression_effect:
            self._gain_impressions(play, play.turn / 10)
        elif card.impression_rate > 0:
            self._gain_impressions(play, card.impression_rate)

    def _resolve_draw_and_bonuses(self, play: PlayContext):
        card = play.card
        ctx = self.ctx
        if card.draw_count > 0:
            drawn = ctx.deck.draw_cards(card.draw_count)
            play.changes.append(f"Drew {len(drawn)}")
        if card.motivation_recovery:
            ctx.ledger.add_motivation(card.motivation_recovery)
        if card.turn_draw_bonus:
            ctx.ledger.modifiers.extra_draws_per_turn += card.turn_draw_bonus
            play.changes.append(f"Draws per turn {card.turn_draw_bonus:+d}")
        if card.max_motivation_bonus:
            ctx.ledger.increase_max_motivation(card.max_motivation_bonus)
            play.changes.append(f"Max motivation {card.max_motivation_bonus:+d}")

    def _resolve_generated_cards(self, play: PlayContext):
        ctx = self.ctx
        deck = ctx.deck
        insert = {
            CardDestination.DISCARD: deck.add_card_to_discard,
            CardDestination.HAND: deck.add_card_to_hand,
            CardDestination.DRAW_MIDDLE: deck.add_card_to_middle_of_draw,
            CardDestination.DRAW_TOP: deck.add_card_to_top_of_draw,
        }
        for generated in play.card.generated_cards:
            for _ in range(generated.copies):
                insert[generated.destination](generated.card_id)
            play.changes.append(
                f"Added {generated.copies} x {generated.card_id} to {generated.destination.value}"
            )

        gain = play.card.infection_gain
        if gain > 0 and ctx.stage.enable_infection:
            ctx.ledger.add_infection(gain)
            if ctx.stage.infection_card_id:
                for _ in range(gain):
                    deck.add_card_to_discard(ctx.stage.infection_card_id)
            play.changes.append(f"Infection +{gain}")

    def _resolve_hand_counts(self, play: PlayContext):
        for effect in play.card.count_effects:
            if effect.source == CountSource.HAND:
                self._apply_count_effect(play, effect)

    def _resolve_pile_counts(self, play: PlayContext):
        for effect in play.card.count_effects:
            if effect.source != CountSource.HAND:
                self._apply_count_effect(play, effect)
                if self.ctx.turn.is_terminal:
                    return

    def _resolve_risk(self, play: PlayContext):
        card = play.card
        if not card.has_risk():
            return
        ctx = self.ctx
        if ctx.rng.random() >= card.risk_probability:
            return

        logger.debug("Risk %s fired for %s", card.risk_type.value, card.id)
        if card.risk_type == RiskType.FLAMING:
            self._apply_mental_damage(play, card.risk_value, "flaming")
        elif card.risk_type == RiskType.LOSE_FOLLOWER:
            lost = ctx.ledger.add_followers(-card.risk_value)
            play.followers_gained += lost
            play.changes.append(f"Lost {-lost} followers")
        elif card.risk_type == RiskType.BAN:
            play.changes.append("Account banned")
            ctx.turn.game_over("banned")
        elif card.risk_type == RiskType.FREEZE:
            ctx.skip_next_draw = True
            play.changes.append("Account frozen: next turn draws nothing")

    def _move_played_card(self, play: PlayContext):
        deck = self.ctx.deck
        if play.card.is_exhaust:
            deck.exhaust_card(play.card.id)
        else:
            deck.play_card(play.card.id)

    def _post_play(self, play: PlayContext):
        ctx = self.ctx
        if play.monster_activated and not ctx.monster.has_drafted:
            ctx.pending_draft = ctx.monster.begin_draft()
            if ctx.pending_draft is not None:
                return

        comment = ""
        if play.card.post_comments:
            comment = ctx.rng.choice(play.card.post_comments)
        ctx.events.emit(
            EventType.CARD_POSTED,
            card_id=play.card.id,
            comment=comment,
            impressions_gained=play.impressions_gained,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _gain_impressions(self, play: PlayContext, rate: float):
        gained = self.ctx.ledger.add_impression(rate)
        play.impressions_gained += gained
        play.changes.append(f"Impressions +{gained}")

    def _apply_mental_damage(self, play: PlayContext, amount: int, source: str) -> MentalChange:
        ctx = self.ctx
        change = ctx.ledger.damage_mental(amount)
        play.changes.append(f"Mental -{change.previous - change.current} ({source})")
        if change.depleted:
            ctx.turn.game_over("mental_depleted")
        elif change.monster_triggered:
            ctx.monster.activate()
            play.monster_activated = True
        return change

    def _count_for(self, effect: CountScaledEffect, card_id: str) -> int:
        deck = self.ctx.deck
        target = effect.target_card_id
        if effect.source == CountSource.HAND:
            return deck.count_in_hand(target, exclude=card_id)
        if effect.source == CountSource.DRAW_PILE:
            return deck.count_in_draw_pile(target)
        if effect.source == CountSource.DISCARD_PILE:
            return deck.count_in_discard_pile(target)
        return min(deck.count_in_draw_pile(target), deck.count_in_discard_pile(target))

    def _apply_count_effect(self, play: PlayContext, effect: CountScaledEffect):
        ctx = self.ctx
        count = self._count_for(effect, play.card.id)
        if count < max(effect.min_count, 0) or count == 0:
            return

        if effect.exhaust_matching and effect.target_card_id:
            target = effect.target_card_id
            piles = {
                CountSource.HAND: (Pile.HAND,),
                CountSource.DRAW_PILE: (Pile.DRAW,),
                CountSource.DISCARD_PILE: (Pile.DISCARD,),
                CountSource.MIN_DRAW_DISCARD: (Pile.DRAW, Pile.DISCARD),
            }[effect.source]
            for pile in piles:
                # The played card is still in hand and must survive to be moved
                keep = 1 if pile == Pile.HAND and target == play.card.id else 0
                removed = ctx.deck.exhaust_matching(pile, target, keep=keep)
                if removed:
                    play.changes.append(f"Exhausted {removed} x {target} from {pile.value}")

        if effect.impression_rate_per_card > 0:
            self._gain_impressions(play, effect.impression_rate_per_card * count)
        if effect.followers_per_card:
            gained = ctx.ledger.add_followers(effect.followers_per_card * count)
            play.followers_gained += gained
            play.changes.append(f"Followers {gained:+d}")
        if effect.draw_per_card > 0:
            drawn = ctx.deck.draw_cards(effect.draw_per_card * count)
            play.changes.append(f"Drew {len(drawn)}")
