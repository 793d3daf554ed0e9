"""
Session Module - Runs stage sessions.

A session is one play-through of one stage:
- Created for an unlocked stage
- Owns a GameContext driven by a GameLoop
- Records its outcome into the progress store when it ends

Sessions are in-memory only; progress is the only persisted data.
"""

from .manager import SessionManager, Session, SessionState, StageLockedError
from .game_loop import GameLoop, LoopState, StageResult

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "StageLockedError",
    "GameLoop",
    "LoopState",
    "StageResult",
]
