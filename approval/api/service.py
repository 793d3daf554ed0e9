"""
API Service - Business logic layer between the HTTP API and the engine.

The service:
1. Translates API requests to session commands
2. Manages sessions through the SessionManager
3. Formats engine state for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .schemas import (
    # Requests
    CreateSessionRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    CommandResponse,
    StageListResponse,
    ProgressResponse,
    EventListResponse,
    ContentValidationResponse,
    # Shared
    CardInfo,
    StageInfo,
    ResourcesInfo,
    DraftInfo,
    AcknowledgmentInfo,
    StageResultInfo,
    TrackedCardInfo,
    EventInfo,
    # Enums
    SessionStatus,
    LoopStatus,
    DraftKindName,
)
from ..content.cards import CardTemplate
from ..content.loader import load_content
from ..content.stage import ContentBundle, StageDefinition
from ..content.validation import validate_content
from ..engine_core.action import CommandResult
from ..games.starter import create_starter_content
from ..persistence.progress import (
    ProgressSnapshot,
    is_stage_unlocked,
    total_score_attack_high_score,
)
from ..session import Session, SessionManager


class SessionNotFoundError(KeyError):
    """No session with the given id."""


class StageNotFoundError(KeyError):
    """No stage with the given id."""


class CommandRejectedError(Exception):
    """The engine rejected a command. Nothing was mutated."""

    def __init__(self, result: CommandResult):
        self.result = result
        super().__init__(result.error or "rejected")

    @property
    def reason(self) -> str | None:
        return self.result.error_code


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        session = service.create_session(CreateSessionRequest(stage_id="stage_1"))
        state = service.get_state(session.session_id)
        service.play_card(session.session_id, "post_selfie")
    """
    content: ContentBundle = field(default_factory=create_starter_content)
    session_manager: SessionManager | None = None

    def __post_init__(self):
        if self.session_manager is None:
            self.session_manager = SessionManager(self.content)

    # =========================================================================
    # Stages & progress
    # =========================================================================

    def list_stages(self) -> StageListResponse:
        snapshot = self.session_manager.progress_store.load()
        return StageListResponse(
            stages=[self._stage_info(stage, snapshot) for stage in self.content.stages],
            total_score_attack_high_score=total_score_attack_high_score(self.content, snapshot),
        )

    def get_progress(self) -> ProgressResponse:
        snapshot = self.session_manager.progress_store.load()
        return ProgressResponse(
            cleared_stage_ids=sorted(snapshot.cleared_stage_ids),
            stage_high_scores=dict(snapshot.stage_high_scores),
            global_high_score=snapshot.global_high_score,
            total_score_attack_high_score=total_score_attack_high_score(self.content, snapshot),
        )

    def reset_progress(self) -> ProgressResponse:
        self.session_manager.progress_store.reset()
        return self.get_progress()

    def validate_content(self, raw: dict) -> ContentValidationResponse:
        """
        Check a content bundle without loading it into the service.

        Raises ContentValidationError with every problem found.
        """
        bundle = load_content(raw)
        result = validate_content(bundle)
        return ContentValidationResponse(
            valid=result.valid,
            card_count=len(bundle.cards),
            stage_count=len(bundle.stages),
            warnings=result.warnings,
        )

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """
        Start a stage.

        Raises StageNotFoundError or StageLockedError.
        """
        if self.content.get_stage(request.stage_id) is None:
            raise StageNotFoundError(request.stage_id)
        session = self.session_manager.create_session(
            request.stage_id,
            seed=request.seed,
            enforce_unlock=request.enforce_unlock,
        )
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse:
        return self._session_to_response(self._require_session(session_id))

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        if self.session_manager.get_session(session_id) is None:
            return False
        self.session_manager.end_session(session_id, reason)
        return True

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    def get_state(self, session_id: str) -> GameStateResponse:
        return self._state_response(self._require_session(session_id))

    def drain_events(self, session_id: str) -> EventListResponse:
        """Pull (and clear) the events emitted since the last poll."""
        session = self._require_session(session_id)
        events = [
            EventInfo(type=e.event_type.value, sequence=e.sequence, payload=e.payload)
            for e in session.ctx.events.drain()
        ]
        return EventListResponse(session_id=session_id, events=events, count=len(events))

    # =========================================================================
    # Commands
    # =========================================================================

    def play_card(self, session_id: str, card_id: str) -> CommandResponse:
        session = self._require_session(session_id)
        return self._command_response(session, "play_card", session.loop.play_card(card_id))

    def end_player_action(self, session_id: str) -> CommandResponse:
        session = self._require_session(session_id)
        return self._command_response(session, "end_player_action", session.loop.end_player_action())

    def select_draft(self, session_id: str, card_id: str) -> CommandResponse:
        session = self._require_session(session_id)
        return self._command_response(session, "select_draft", session.loop.select_draft(card_id))

    def acknowledge(self, session_id: str, ack_id: str) -> CommandResponse:
        session = self._require_session(session_id)
        return self._command_response(session, "acknowledge", session.loop.acknowledge(ack_id))

    def complete_draw(self, session_id: str) -> CommandResponse:
        session = self._require_session(session_id)
        return self._command_response(session, "complete_draw", session.loop.complete_draw())

    # =========================================================================
    # Conversion helpers
    # =========================================================================

    def _require_session(self, session_id: str) -> Session:
        session = self.session_manager.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _command_response(
        self, session: Session, command: str, result: CommandResult | None
    ) -> CommandResponse:
        if result is not None and not result.success:
            raise CommandRejectedError(result)
        result = result or CommandResult.ok(changes=["queued"])
        return CommandResponse(
            success=True,
            command=command,
            card_id=result.card_id,
            impressions_gained=result.impressions_gained,
            followers_gained=result.followers_gained,
            changes=result.changes,
            state=self._state_response(session),
        )

    def _session_to_response(self, session: Session) -> SessionResponse:
        return SessionResponse(
            session_id=session.session_id,
            stage_id=session.stage_id,
            stage_name=session.ctx.stage.name,
            status=SessionStatus(session.state.value),
            seed=session.seed,
            created_at=session.created_at,
        )

    def _stage_info(self, stage: StageDefinition, snapshot: ProgressSnapshot) -> StageInfo:
        return StageInfo(
            stage_id=stage.id,
            name=stage.name,
            max_turns=stage.max_turns,
            target_score=stage.clear_condition.target_score if stage.clear_condition else None,
            is_score_attack=stage.is_score_attack,
            required_stage_ids=list(stage.required_stage_ids),
            enable_flaming=stage.enable_flaming,
            enable_infection=stage.enable_infection,
            unlocked=is_stage_unlocked(stage, snapshot),
            cleared=snapshot.is_cleared(stage.id),
            high_score=snapshot.high_score(stage.id),
        )

    def _card_info(self, card_id: str) -> CardInfo:
        card: CardTemplate = self.content.cards[card_id]
        return CardInfo(
            card_id=card.id,
            name=card.name,
            rarity=card.rarity.value,
            card_type=card.card_type.value,
            play_condition=card.play_condition.value,
            motivation_cost=card.motivation_cost,
            mental_cost=card.mental_cost,
            is_exhaust=card.is_exhaust,
            flavor_text=card.flavor_text,
        )

    def _state_response(self, session: Session) -> GameStateResponse:
        ctx = session.ctx
        loop = session.loop
        snapshot = loop.snapshot()

        pending_draft = None
        if ctx.pending_draft is not None:
            pending_draft = DraftInfo(
                draft_id=ctx.pending_draft.draft_id,
                kind=DraftKindName(ctx.pending_draft.kind.value),
                options=[self._card_info(c) for c in ctx.pending_draft.options],
            )

        pending_ack = None
        if ctx.turn.pending_acknowledgment is not None:
            pending_ack = AcknowledgmentInfo(**ctx.turn.pending_acknowledgment.to_dict())

        result = None
        if loop.result is not None:
            record = session.record
            result = StageResultInfo(
                **loop.result.to_dict(),
                newly_cleared=bool(record and record.newly_cleared),
                new_high_score=bool(record and record.new_stage_high_score),
            )

        tracked = snapshot["tracked_card"]
        return GameStateResponse(
            session_id=session.session_id,
            stage_id=session.stage_id,
            status=SessionStatus(session.state.value),
            loop_state=LoopStatus(loop.state.value),
            phase=ctx.turn.phase.value,
            turn=ctx.turn.turn_count,
            max_turns=ctx.stage.max_turns,
            quota=ctx.quota.state.current_turn_quota,
            turn_gained=ctx.ledger.impressions - ctx.quota.state.turn_start_impressions,
            resources=ResourcesInfo.model_validate(ctx.ledger.snapshot()),
            hand=[self._card_info(c) for c in ctx.deck.hand],
            playable_card_ids=snapshot["playable_cards"],
            draw_pile_count=len(ctx.deck.draw_pile),
            discard_pile_count=len(ctx.deck.discard_pile),
            exhausted_count=ctx.deck.exhausted_count,
            is_drawing=ctx.is_drawing,
            pending_draft=pending_draft,
            pending_acknowledgment=pending_ack,
            tracked_card=TrackedCardInfo(**tracked) if tracked else None,
            result=result,
        )
