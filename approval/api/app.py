"""
FastAPI Application - REST API for presentation clients.

Endpoints:
    GET    /api/v1/stages                            List stages with progress
    POST   /api/v1/content/validate                  Validate a content bundle
    GET    /api/v1/progress                          Get persisted progress
    DELETE /api/v1/progress                          Reset progress
    POST   /api/v1/sessions                          Start a stage session
    GET    /api/v1/sessions                          List active sessions
    GET    /api/v1/sessions/{id}                     Get session status
    DELETE /api/v1/sessions/{id}                     End session
    GET    /api/v1/sessions/{id}/state               Get full session state
    GET    /api/v1/sessions/{id}/events              Poll events since last poll
    POST   /api/v1/sessions/{id}/play                Play a card from hand
    POST   /api/v1/sessions/{id}/end-action          End the action phase
    POST   /api/v1/sessions/{id}/draft               Pick a draft option
    POST   /api/v1/sessions/{id}/acknowledge         Dismiss a cut-in
    POST   /api/v1/sessions/{id}/draw-complete       Finish the draw animation

Every command response carries the full state after the command.
Rejected commands return 409 with error_code ACTION_REJECTED and the
engine's rejection reason in details.reason.

Configuration (environment):
    APPROVAL_CONTENT_PATH   JSON content bundle (default: built-in starter pack)
    APPROVAL_PROGRESS_PATH  JSON progress file (default: in-memory)
    ALLOWED_ORIGINS         Comma-separated CORS origins (default: *)
    APPROVAL_LOG_LEVEL      Logging level for the approval package
"""

from typing import Annotated, Any, Optional, Union
import logging
import os

from fastapi import Body, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..content.loader import load_content
from ..content.validation import ContentValidationError
from ..games.starter import create_starter_content
from ..persistence.progress import InMemoryProgressStore, JsonFileProgressStore
from ..session import SessionManager, StageLockedError
from .service import (
    APIService,
    CommandRejectedError,
    SessionNotFoundError,
    StageNotFoundError,
)
from .schemas import (
    # Request models
    CreateSessionRequest,
    PlayCardRequest,
    SelectDraftRequest,
    AcknowledgeRequest,
    # Response models
    SessionResponse,
    GameStateResponse,
    CommandResponse,
    StageListResponse,
    ProgressResponse,
    EventListResponse,
    ContentValidationResponse,
    ErrorResponse,
    SessionListResponse,
    EndSessionResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)

# Environment configuration
APPROVAL_CONTENT_PATH = os.getenv("APPROVAL_CONTENT_PATH", None)
APPROVAL_PROGRESS_PATH = os.getenv("APPROVAL_PROGRESS_PATH", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
APPROVAL_LOG_LEVEL = os.getenv("APPROVAL_LOG_LEVEL", None)

logger = logging.getLogger(__name__)


def create_default_service() -> APIService:
    """Build the service from the environment configuration."""
    if APPROVAL_LOG_LEVEL:
        logging.getLogger("approval").setLevel(APPROVAL_LOG_LEVEL.upper())

    content = load_content(APPROVAL_CONTENT_PATH) if APPROVAL_CONTENT_PATH else create_starter_content()
    if APPROVAL_PROGRESS_PATH:
        store = JsonFileProgressStore(APPROVAL_PROGRESS_PATH)
    else:
        store = InMemoryProgressStore()
    logger.info(
        "Loaded %d cards and %d stages (progress: %s)",
        len(content.cards), len(content.stages), APPROVAL_PROGRESS_PATH or "in-memory",
    )
    return APIService(content=content, session_manager=SessionManager(content, store))


def create_app(service: APIService | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Approval Engine API",
        description="""
Rules engine for Approval Monster - drive stage sessions over HTTP.

## Session Flow

1. `POST /sessions` with a `stage_id`
2. Dismiss cut-ins with `POST /acknowledge` while `pending_acknowledgment` is set
3. Pick from `pending_draft` with `POST /draft`
4. `POST /play` cards, then `POST /end-action`
5. Repeat until `result` is set

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `STAGE_NOT_FOUND` | Stage id not in content |
| `STAGE_LOCKED` | Required stages not cleared |
| `INVALID_CONTENT` | Content failed validation |
| `ACTION_REJECTED` | Engine rejected the command |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or create_default_service()

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def session_not_found(session_id: str) -> JSONResponse:
        return make_error_response(
            ErrorCode.SESSION_NOT_FOUND,
            f"Session {session_id} not found",
            status_code=404,
        )

    def rejected(e: CommandRejectedError) -> JSONResponse:
        return make_error_response(
            ErrorCode.ACTION_REJECTED,
            str(e),
            status_code=409,
            details={"reason": e.reason},
        )

    # =========================================================================
    # Stage & Progress Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/stages",
        response_model=StageListResponse,
        tags=["Stages"],
        summary="List stages with unlock state and high scores",
    )
    async def list_stages() -> StageListResponse:
        return api_service.list_stages()

    @app.get(
        "/api/v1/progress",
        response_model=ProgressResponse,
        tags=["Progress"],
        summary="Get persisted progress",
    )
    async def get_progress() -> ProgressResponse:
        return api_service.get_progress()

    @app.delete(
        "/api/v1/progress",
        response_model=ProgressResponse,
        tags=["Progress"],
        summary="Reset persisted progress",
    )
    async def reset_progress() -> ProgressResponse:
        return api_service.reset_progress()

    @app.post(
        "/api/v1/content/validate",
        response_model=ContentValidationResponse,
        responses={
            422: {"model": ErrorResponse, "description": "Content has errors"},
        },
        tags=["Content"],
        summary="Validate a content bundle",
    )
    async def validate_content(
        bundle: Annotated[dict[str, Any], Body(description="Content bundle (settings, cards, stages)")],
    ) -> Union[ContentValidationResponse, JSONResponse]:
        """
        Check a content bundle for missing fields and dangling card or
        stage references. The running service keeps its own content.
        """
        try:
            return api_service.validate_content(bundle)
        except ContentValidationError as e:
            return make_error_response(
                ErrorCode.INVALID_CONTENT,
                str(e),
                status_code=422,
                details={"errors": e.errors},
            )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={
            403: {"model": ErrorResponse, "description": "Stage locked"},
            404: {"model": ErrorResponse, "description": "Unknown stage"},
        },
        tags=["Sessions"],
        summary="Start a stage session",
    )
    async def create_session(body: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Start a session for `stage_id`.

        Pass `seed` for a reproducible session.
        """
        try:
            return api_service.create_session(body)
        except StageNotFoundError:
            return make_error_response(
                ErrorCode.STAGE_NOT_FOUND,
                f"Stage {body.stage_id} not found",
                status_code=404,
            )
        except StageLockedError as e:
            return make_error_response(
                ErrorCode.STAGE_LOCKED,
                str(e),
                status_code=403,
                details={"missing": e.missing},
            )

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        try:
            return api_service.get_session(session_id)
        except SessionNotFoundError:
            return session_not_found(session_id)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a session",
    )
    async def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndSessionResponse:
        success = api_service.end_session(session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Get full session state",
    )
    async def get_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        try:
            return api_service.get_state(session_id)
        except SessionNotFoundError:
            return session_not_found(session_id)

    @app.get(
        "/api/v1/sessions/{session_id}/events",
        response_model=EventListResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Poll events emitted since the last poll",
    )
    async def get_events(session_id: str) -> Union[EventListResponse, JSONResponse]:
        try:
            return api_service.drain_events(session_id)
        except SessionNotFoundError:
            return session_not_found(session_id)

    # =========================================================================
    # Command Endpoints
    # =========================================================================

    command_responses = {
        404: {"model": ErrorResponse, "description": "Session not found"},
        409: {"model": ErrorResponse, "description": "Command rejected"},
    }

    @app.post(
        "/api/v1/sessions/{session_id}/play",
        response_model=CommandResponse,
        responses=command_responses,
        tags=["Game Loop"],
        summary="Play a card from hand",
    )
    async def play_card(session_id: str, body: PlayCardRequest) -> Union[CommandResponse, JSONResponse]:
        try:
            return api_service.play_card(session_id, body.card_id)
        except SessionNotFoundError:
            return session_not_found(session_id)
        except CommandRejectedError as e:
            return rejected(e)

    @app.post(
        "/api/v1/sessions/{session_id}/end-action",
        response_model=CommandResponse,
        responses=command_responses,
        tags=["Game Loop"],
        summary="End the action phase",
    )
    async def end_player_action(session_id: str) -> Union[CommandResponse, JSONResponse]:
        try:
            return api_service.end_player_action(session_id)
        except SessionNotFoundError:
            return session_not_found(session_id)
        except CommandRejectedError as e:
            return rejected(e)

    @app.post(
        "/api/v1/sessions/{session_id}/draft",
        response_model=CommandResponse,
        responses=command_responses,
        tags=["Game Loop"],
        summary="Pick a draft option",
    )
    async def select_draft(session_id: str, body: SelectDraftRequest) -> Union[CommandResponse, JSONResponse]:
        try:
            return api_service.select_draft(session_id, body.card_id)
        except SessionNotFoundError:
            return session_not_found(session_id)
        except CommandRejectedError as e:
            return rejected(e)

    @app.post(
        "/api/v1/sessions/{session_id}/acknowledge",
        response_model=CommandResponse,
        responses=command_responses,
        tags=["Game Loop"],
        summary="Dismiss the pending cut-in",
    )
    async def acknowledge(session_id: str, body: AcknowledgeRequest) -> Union[CommandResponse, JSONResponse]:
        try:
            return api_service.acknowledge(session_id, body.ack_id)
        except SessionNotFoundError:
            return session_not_found(session_id)
        except CommandRejectedError as e:
            return rejected(e)

    @app.post(
        "/api/v1/sessions/{session_id}/draw-complete",
        response_model=CommandResponse,
        responses=command_responses,
        tags=["Game Loop"],
        summary="Signal that the draw animation finished",
    )
    async def complete_draw(session_id: str) -> Union[CommandResponse, JSONResponse]:
        try:
            return api_service.complete_draw(session_id)
        except SessionNotFoundError:
            return session_not_found(session_id)
        except CommandRejectedError as e:
            return rejected(e)

    # =========================================================================
    # System Endpoints
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="approval-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Approval Engine API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


def create_app_or_report() -> FastAPI:
    """Like create_app(), but logs content errors before re-raising them."""
    try:
        return create_app()
    except ContentValidationError as e:
        for error in e.errors:
            logger.error("Invalid content: %s", error)
        raise


# For running directly: uvicorn approval.api.app:app
app = create_app_or_report()
