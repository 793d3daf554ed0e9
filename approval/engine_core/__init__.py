"""
Engine Core - Deterministic rules engine for one stage session.

The engine:
1. Owns the resource economy (ResourceLedger)
2. Owns the piles (DeckEngine)
3. Offers drafts (DraftSelector, MonsterModeController)
4. Tracks quotas (QuotaEvaluator)
5. Drives the turn phases (TurnPhaseController)
6. Resolves card plays (EffectResolver)

All randomness comes from the context's injected random.Random.
"""

from .events import EventLog, EventType, GameEvent
from .action import Command, CommandType, CommandResult, RejectionReason
from .resources import ResourceLedger, ResourceState, MentalChange, PersistentModifiers
from .deck import DeckEngine, DeckState, Pile
from .draft import DraftSelector, DraftKind, PendingDraft
from .quota import QuotaEvaluator, QuotaOutcome, QuotaState
from .monster import MonsterModeController
from .turn import TurnPhaseController, TurnPhase, ResumePoint, PendingAcknowledgment
from .context import GameContext
from .effect_resolver import EffectResolver, PlayContext

__all__ = [
    "EventLog",
    "EventType",
    "GameEvent",
    "Command",
    "CommandType",
    "CommandResult",
    "RejectionReason",
    "ResourceLedger",
    "ResourceState",
    "MentalChange",
    "PersistentModifiers",
    "DeckEngine",
    "DeckState",
    "Pile",
    "DraftSelector",
    "DraftKind",
    "PendingDraft",
    "QuotaEvaluator",
    "QuotaOutcome",
    "QuotaState",
    "MonsterModeController",
    "TurnPhaseController",
    "TurnPhase",
    "ResumePoint",
    "PendingAcknowledgment",
    "GameContext",
    "EffectResolver",
    "PlayContext",
]
