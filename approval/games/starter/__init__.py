"""
Starter - The built-in content pack.

Social-media themed cards and a four-stage campaign:
- stage_1: the basics (quota, drafts, monster mode)
- stage_2: flaming seeds and risk cards
- stage_3: infection cards clogging the deck
- score_attack: endless, scored by high score only

This module contains:
- The card catalog
- Stage definitions
- create_starter_content(), the bundle used by the CLI, API and tests
"""

from .cards import STARTER_CARDS, get_card_catalog
from .stages import create_starter_content, create_starter_stages

__all__ = [
    "STARTER_CARDS",
    "get_card_catalog",
    "create_starter_content",
    "create_starter_stages",
]
