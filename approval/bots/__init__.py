"""
Bots module - Auto-play policies for simulation.

Provides:
- AutoPlayPolicy: Interface for simulated players
- RandomPolicy, FirstPlayablePolicy, GreedyPolicy
- run_to_completion: drive a session to its end
"""

from .policy import (
    AutoPlayPolicy,
    RandomPolicy,
    FirstPlayablePolicy,
    GreedyPolicy,
    POLICIES,
    SimulationTrace,
    run_to_completion,
)

__all__ = [
    "AutoPlayPolicy",
    "RandomPolicy",
    "FirstPlayablePolicy",
    "GreedyPolicy",
    "POLICIES",
    "SimulationTrace",
    "run_to_completion",
]
