"""
Game Context - Everything one session of one stage owns.

Subsystems never reach for globals; they receive the context (or the
pieces of it they need). Two contexts never share state, so any number
of sessions can run side by side.
"""

from __future__ import annotations
import random
from dataclasses import dataclass

from ..content.cards import CardTemplate
from ..content.stage import ContentBundle, GameSettings, StageDefinition
from .deck import DeckEngine
from .draft import DraftSelector, PendingDraft
from .events import EventLog
from .monster import MonsterModeController
from .quota import QuotaEvaluator
from .resources import ResourceLedger
from .turn import TurnPhaseController


@dataclass
class GameContext:
    content: ContentBundle
    stage: StageDefinition
    rng: random.Random
    events: EventLog
    ledger: ResourceLedger
    deck: DeckEngine
    draft: DraftSelector
    quota: QuotaEvaluator
    monster: MonsterModeController
    turn: TurnPhaseController

    # Gates on re-entrant play
    pending_draft: PendingDraft | None = None
    is_drawing: bool = False
    session_active: bool = True

    # Freeze risk: the next StartStep draws nothing
    skip_next_draw: bool = False

    @classmethod
    def create(
        cls,
        content: ContentBundle,
        stage_id: str,
        seed: int | None = None,
        rng: random.Random | None = None,
    ) -> GameContext:
        """
        Wire up a fresh context for `stage_id`.

        Raises KeyError if the stage does not exist.
        """
        stage = content.get_stage(stage_id)
        if stage is None:
            raise KeyError(f"Unknown stage: {stage_id}")

        rng = rng or random.Random(seed)
        events = EventLog()
        ledger = ResourceLedger(content.settings, events, rng)
        deck = DeckEngine(events, rng)
        draft = DraftSelector(content.cards, events, rng)
        quota = QuotaEvaluator(content.settings, stage, ledger, events)
        monster = MonsterModeController(stage, ledger, deck, draft, events)
        turn = TurnPhaseController(stage.max_turns, events)

        if stage.enable_infection:
            deck.on_reshuffle = lambda: ledger.decay_infection(stage.infection_reset_rate)

        return cls(
            content=content,
            stage=stage,
            rng=rng,
            events=events,
            ledger=ledger,
            deck=deck,
            draft=draft,
            quota=quota,
            monster=monster,
            turn=turn,
        )

    @property
    def settings(self) -> GameSettings:
        return self.content.settings

    @property
    def cards(self) -> dict[str, CardTemplate]:
        return self.content.cards

    def get_card(self, card_id: str) -> CardTemplate | None:
        return self.content.cards.get(card_id)

    def reset(self):
        """Return every subsystem to its stage-start state (no turn begun)."""
        self.ledger.initialize()
        self.deck.initialize_deck(self.stage.initial_deck)
        self.draft.reset_history()
        self.monster.reset()
        self.turn.reset()
        self.pending_draft = None
        self.is_drawing = False
        self.skip_next_draw = False
        self.session_active = True
