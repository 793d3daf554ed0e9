"""
Session Manager - Creates and manages stage sessions.

LIFECYCLE:
1. Content is loaded and validated once (ContentBundle)
2. A session is created for one stage: fresh GameContext + GameLoop
3. During play the client submits commands to the session's loop
4. When the stage ends (Result or GameOver) the outcome is recorded into
   the progress store
5. The session stays readable until ended or cleaned up

PERSISTENCE RULES:
- Session state is in-memory only
- The only persisted data is the progress snapshot
"""

from __future__ import annotations
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..content.stage import ContentBundle
from ..engine_core.context import GameContext
from ..persistence.progress import (
    InMemoryProgressStore,
    ProgressStore,
    StageRecord,
    is_stage_unlocked,
)
from .game_loop import GameLoop, StageResult

logger = logging.getLogger(__name__)


class SessionState(Enum):
    ACTIVE = "active"
    FINISHED = "finished"  # Result or GameOver reached
    ABANDONED = "abandoned"


class StageLockedError(Exception):
    """Raised when a session is requested for a stage that is still locked."""

    def __init__(self, stage_id: str, missing: list[str]):
        self.stage_id = stage_id
        self.missing = missing
        super().__init__(f"Stage '{stage_id}' is locked; clear {missing} first")


@dataclass
class Session:
    """
    One play-through of one stage.

    Contains:
    - The session's GameContext and GameLoop
    - The stage outcome and progress record once finished
    """
    session_id: str
    stage_id: str
    loop: GameLoop
    created_at: float
    seed: int | None = None
    state: SessionState = SessionState.ACTIVE
    record: StageRecord | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def ctx(self) -> GameContext:
        return self.loop.ctx

    @property
    def result(self) -> StageResult | None:
        return self.loop.result

    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE


class SessionManager:
    """
    Manages stage sessions.

    Responsibilities:
    - Create sessions for unlocked stages
    - Track active sessions
    - Record finished stages into progress
    - Clean up old sessions
    """

    def __init__(
        self,
        content: ContentBundle,
        progress_store: ProgressStore | None = None,
    ):
        self.content = content
        self.progress_store = progress_store or InMemoryProgressStore()
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        stage_id: str,
        seed: int | None = None,
        enforce_unlock: bool = True,
    ) -> Session:
        """
        Create and start a session for `stage_id`.

        Raises:
            KeyError: unknown stage
            StageLockedError: required stages not cleared yet
        """
        stage = self.content.get_stage(stage_id)
        if stage is None:
            raise KeyError(f"Unknown stage: {stage_id}")

        if enforce_unlock:
            snapshot = self.progress_store.load()
            if not is_stage_unlocked(stage, snapshot):
                missing = [s for s in stage.required_stage_ids if s not in snapshot.cleared_stage_ids]
                raise StageLockedError(stage_id, missing)

        session_id = str(uuid.uuid4())
        ctx = GameContext.create(self.content, stage_id, seed=seed)
        session = Session(
            session_id=session_id,
            stage_id=stage_id,
            loop=GameLoop(ctx),
            created_at=time.time(),
            seed=seed,
        )
        session.loop.on_finished = lambda result: self._record_result(session, result)

        self._sessions[session_id] = session
        logger.info("Created session %s for stage %s (seed=%s)", session_id, stage_id, seed)
        session.loop.start()
        return session

    def _record_result(self, session: Session, result: StageResult):
        session.state = SessionState.FINISHED
        session.record = self.progress_store.record_stage_result(
            result.stage_id, result.score, result.cleared
        )

    def get_session(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed"):
        """Remove a session. Unfinished sessions are marked abandoned."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        if session.state == SessionState.ACTIVE:
            session.state = SessionState.ABANDONED
            session.ctx.session_active = False
        logger.info("Ended session %s (%s)", session_id, reason)

    def list_active_sessions(self) -> list[str]:
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Drop finished sessions older than max_age.

        Returns the number removed.
        """
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return len(stale)
