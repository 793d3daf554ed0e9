"""
Approval - Rules engine for the Approval Monster card game.

A deterministic, content-driven engine for a single-player social-media
deck builder. The engine loads card and stage content and provides:
- Resource, deck and draft state
- Card effect resolution with risk rolls
- Turn flow with quotas, penalties and monster mode
- Persisted stage progress
- An HTTP API for presentation clients
"""

__version__ = "1.0.0"
