"""
Monster Mode Controller - One-shot comeback mechanic.

Monster mode latches (in the ResourceLedger) the first time mental falls
to the threshold. When it does:
1. Mental heals by ceil(current / 2)
2. Exactly one monster draft is offered over the stage's monster pool
3. The pick is added to the hand, the middle of the draw pile and the
   discard pile at once

Impressions are multiplied for the rest of the session.
"""

from __future__ import annotations
import logging
import math

from ..content.stage import StageDefinition
from .deck import DeckEngine
from .draft import DraftKind, DraftSelector, PendingDraft
from .events import EventLog, EventType
from .resources import ResourceLedger

logger = logging.getLogger(__name__)


class MonsterModeController:
    def __init__(
        self,
        stage: StageDefinition,
        ledger: ResourceLedger,
        deck: DeckEngine,
        draft: DraftSelector,
        events: EventLog,
    ):
        self.stage = stage
        self.ledger = ledger
        self.deck = deck
        self.draft = draft
        self.events = events
        self.has_drafted = False

    def reset(self):
        self.has_drafted = False

    def activate(self) -> int:
        """Heal ceil(mental / 2) after the latch. Returns the amount healed."""
        amount = math.ceil(self.ledger.mental / 2)
        healed = self.ledger.heal_mental(amount)
        logger.info("Monster mode activated, healed %d (mental=%d)", healed, self.ledger.mental)
        return healed

    def begin_draft(self, resume_end_step: bool = False) -> PendingDraft | None:
        """
        Open the monster draft.

        Returns None when a monster draft already happened this session or
        the monster pool is empty.
        """
        if self.has_drafted:
            return None
        options = self.draft.generate_monster_draft_options(self.stage.monster_pool)
        self.has_drafted = True
        if not options:
            return None

        pending = PendingDraft(
            draft_id=self.draft.next_draft_id(),
            kind=DraftKind.MONSTER,
            options=options,
            resume_end_step=resume_end_step,
        )
        self.events.emit(
            EventType.DRAFT_OFFERED,
            draft_id=pending.draft_id,
            kind=pending.kind.value,
            options=list(options),
        )
        return pending

    def complete_draft(self, card_id: str):
        """Add the chosen monster card to hand, draw-pile middle and discard."""
        self.deck.add_card_to_hand(card_id)
        self.deck.add_card_to_middle_of_draw(card_id)
        self.deck.add_card_to_discard(card_id)
        self.events.emit(EventType.DRAFT_SELECTED, card_id=card_id, kind=DraftKind.MONSTER.value)
        logger.debug("Monster draft pick %s", card_id)
