"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a presentation client and the
engine. All responses are explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or was ended
- STAGE_NOT_FOUND: Stage id is not in the loaded content
- STAGE_LOCKED: Required stages have not been cleared yet
- INVALID_CONTENT: Content failed validation
- ACTION_REJECTED: The engine rejected a command (see details.reason)
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    ACTIVE = "active"
    FINISHED = "finished"
    ABANDONED = "abandoned"


class LoopStatus(str, Enum):
    """What the session is waiting for."""
    SETUP = "setup"
    WAITING_ACKNOWLEDGMENT = "waiting_acknowledgment"
    WAITING_DRAFT = "waiting_draft"
    DRAWING = "drawing"
    PLAYER_ACTION = "player_action"
    RESULT = "result"
    GAME_OVER = "game_over"


class DraftKindName(str, Enum):
    NORMAL = "normal"
    MONSTER = "monster"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    STAGE_NOT_FOUND = "STAGE_NOT_FOUND"
    STAGE_LOCKED = "STAGE_LOCKED"
    INVALID_CONTENT = "INVALID_CONTENT"
    ACTION_REJECTED = "ACTION_REJECTED"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """Card information for display."""
    card_id: str
    name: str
    rarity: str = Field(description="common, rare, epic")
    card_type: str
    play_condition: str = "none"
    motivation_cost: int = 0
    mental_cost: int = 0
    is_exhaust: bool = False
    flavor_text: str = ""


class StageInfo(BaseModel):
    """Stage information plus the player's progress on it."""
    stage_id: str
    name: str
    max_turns: int
    target_score: Optional[int] = Field(None, description="None for score-attack stages")
    is_score_attack: bool = False
    required_stage_ids: list[str] = Field(default_factory=list)
    enable_flaming: bool = False
    enable_infection: bool = False
    unlocked: bool = True
    cleared: bool = False
    high_score: int = 0


class ResourcesInfo(BaseModel):
    """Resource values of a session."""
    followers: int
    mental: int
    max_mental: int
    motivation: int
    max_motivation: int
    impressions: int
    flaming_seeds: int = 0
    flaming_level: int = 0
    is_on_fire: bool = False
    is_monster_mode: bool = False
    infection: int = 0

    model_config = {"from_attributes": True}


class DraftInfo(BaseModel):
    """A pending draft offer."""
    draft_id: str
    kind: DraftKindName
    options: list[CardInfo] = Field(default_factory=list)


class AcknowledgmentInfo(BaseModel):
    """A cut-in the client must dismiss via POST /acknowledge."""
    ack_id: str
    title: str = ""
    message: str = ""
    preset_id: Optional[str] = None
    resume: str = Field(description="begin_first_turn, monster_draft, finish_end_step")


class StageResultInfo(BaseModel):
    """Outcome of a finished session."""
    stage_id: str
    score: int
    cleared: bool
    turns_played: int
    game_over: bool = False
    game_over_reason: Optional[str] = None
    newly_cleared: bool = False
    new_high_score: bool = False


class TrackedCardInfo(BaseModel):
    card_id: str
    hand: int = 0
    draw_pile: int = 0
    discard_pile: int = 0


class EventInfo(BaseModel):
    """One engine event."""
    type: str
    sequence: int
    payload: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to start a stage."""
    stage_id: str = Field(..., description="Stage to play")
    seed: Optional[int] = Field(None, description="RNG seed for a reproducible session")
    enforce_unlock: bool = Field(True, description="Reject locked stages")


class PlayCardRequest(BaseModel):
    card_id: str = Field(..., description="Template id of a card in hand")


class SelectDraftRequest(BaseModel):
    card_id: str = Field(..., description="One of the pending draft's options")


class AcknowledgeRequest(BaseModel):
    ack_id: str = Field(..., description="Id of the pending acknowledgment")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    stage_id: str
    stage_name: str
    status: SessionStatus
    seed: Optional[int] = None
    created_at: float = 0.0
    api_version: str = "v1"


class GameStateResponse(BaseModel):
    """Complete session state for display."""
    session_id: str
    stage_id: str
    status: SessionStatus
    loop_state: LoopStatus
    phase: str
    turn: int
    max_turns: int
    quota: int = 0
    turn_gained: int = Field(0, description="Impressions gained so far this turn")
    resources: ResourcesInfo
    hand: list[CardInfo] = Field(default_factory=list)
    playable_card_ids: list[str] = Field(default_factory=list)
    draw_pile_count: int = 0
    discard_pile_count: int = 0
    exhausted_count: int = 0
    is_drawing: bool = False
    pending_draft: Optional[DraftInfo] = None
    pending_acknowledgment: Optional[AcknowledgmentInfo] = None
    tracked_card: Optional[TrackedCardInfo] = None
    result: Optional[StageResultInfo] = None
    api_version: str = "v1"


class CommandResponse(BaseModel):
    """Response from a successful command, with the state after it."""
    success: bool
    command: str
    card_id: Optional[str] = None
    impressions_gained: int = 0
    followers_gained: int = 0
    changes: list[str] = Field(default_factory=list)
    state: GameStateResponse
    api_version: str = "v1"


class ContentValidationResponse(BaseModel):
    """Result of validating an uploaded content bundle."""
    valid: bool
    card_count: int = 0
    stage_count: int = 0
    warnings: list[str] = Field(default_factory=list)


class StageListResponse(BaseModel):
    stages: list[StageInfo]
    total_score_attack_high_score: int = 0


class ProgressResponse(BaseModel):
    """Persisted progress."""
    cleared_stage_ids: list[str] = Field(default_factory=list)
    stage_high_scores: dict[str, int] = Field(default_factory=dict)
    global_high_score: int = 0
    total_score_attack_high_score: int = 0


class EventListResponse(BaseModel):
    """Events emitted since the last poll."""
    session_id: str
    events: list[EventInfo] = Field(default_factory=list)
    count: int = 0


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
