"""
API Module - Presentation client interface.

Exposes the engine via REST API. A client:
1. Lists stages and their unlock state
2. Starts a session for a stage
3. Dismisses cut-ins and picks draft cards
4. Plays cards and ends the action phase
5. Reads the result when the stage ends

Sessions are in-memory; only stage progress is persisted.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    PlayCardRequest,
    SelectDraftRequest,
    AcknowledgeRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    CommandResponse,
    ContentValidationResponse,
    StageListResponse,
    ProgressResponse,
    EventListResponse,
    ErrorResponse,
    # Shared
    CardInfo,
    StageInfo,
    ResourcesInfo,
    DraftInfo,
    AcknowledgmentInfo,
    StageResultInfo,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "PlayCardRequest",
    "SelectDraftRequest",
    "AcknowledgeRequest",
    # Responses
    "SessionResponse",
    "GameStateResponse",
    "CommandResponse",
    "ContentValidationResponse",
    "StageListResponse",
    "ProgressResponse",
    "EventListResponse",
    "ErrorResponse",
    # Shared
    "CardInfo",
    "StageInfo",
    "ResourcesInfo",
    "DraftInfo",
    "AcknowledgmentInfo",
    "StageResultInfo",
    # Service
    "APIService",
    "create_app",
]
