"""
Pytest fixtures for Approval tests.
"""

import random

import pytest

from ..content.cards import (
    CardTemplate,
    CardRarity,
    CountScaledEffect,
    CountSource,
    PlayCondition,
    RiskType,
)
from ..content.stage import ContentBundle, GameSettings, StageDefinition, CutInPreset
from ..engine_core.context import GameContext
from ..engine_core.events import EventLog
from ..engine_core.turn import TurnPhase
from ..games.starter import create_starter_content, get_card_catalog
from ..session.game_loop import GameLoop


@pytest.fixture
def starter_content() -> ContentBundle:
    """The built-in content pack."""
    return create_starter_content()


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


# Small, fully predictable cards layered on top of the starter catalog
TEST_CARDS = [
    CardTemplate(id="breakdown", name="Breakdown", motivation_cost=0, mental_cost=8),
    CardTemplate(id="meltdown", name="Meltdown", motivation_cost=0, mental_cost=10),
    CardTemplate(id="free_post", name="Free Post", impression_rate=1.0),
    CardTemplate(id="common_a", name="Common A"),
    CardTemplate(id="common_b", name="Common B"),
    CardTemplate(id="rare_a", name="Rare A", rarity=CardRarity.RARE),
    CardTemplate(id="epic_a", name="Epic A", rarity=CardRarity.EPIC),
    CardTemplate(id="idle", name="Idle", play_condition=PlayCondition.NEVER),
    CardTemplate(id="burnout_post", name="Burnout Post", mental_cost=10, follower_gain=50),
    CardTemplate(
        id="echo",
        name="Echo",
        count_effects=(
            CountScaledEffect(
                source=CountSource.HAND,
                target_card_id="echo",
                exhaust_matching=True,
                followers_per_card=10,
            ),
        ),
    ),
    CardTemplate(id="ban_bait", name="Ban Bait", risk_type=RiskType.BAN, risk_probability=1.0),
    CardTemplate(id="freeze_post", name="Freeze Post", risk_type=RiskType.FREEZE, risk_probability=1.0),
    CardTemplate(
        id="flame_bait", name="Flame Bait", risk_type=RiskType.FLAMING, risk_probability=1.0, risk_value=3
    ),
    CardTemplate(
        id="lose_fans", name="Lose Fans", risk_type=RiskType.LOSE_FOLLOWER, risk_probability=1.0, risk_value=30
    ),
    CardTemplate(id="safe_bait", name="Safe Bait", risk_type=RiskType.BAN, risk_probability=0.0),
    CardTemplate(id="seed_post", name="Seed Post", flaming_seed_gain=2),
    CardTemplate(id="seed_cashout", name="Seed Cashout", seed_impression_rate=0.5),
]


def make_content(
    settings: GameSettings | None = None,
    **stage_fields,
) -> ContentBundle:
    """
    Starter catalog plus TEST_CARDS and a single stage "test".

    Stage fields default to a quiet stage: no drafts, no cut-ins, quota 0.
    """
    cards = get_card_catalog()
    cards.update({card.id: card for card in TEST_CARDS})
    stage_kwargs = dict(
        id="test",
        name="Test Stage",
        initial_deck=("post_selfie",) * 6,
        monster_pool=("monster_rant", "monster_livestream"),
        quota_table=(0,),
        max_turns=5,
    )
    stage_kwargs.update(stage_fields)
    return ContentBundle(
        settings=settings or GameSettings(),
        cards=cards,
        stages=[StageDefinition(**stage_kwargs)],
    )


def make_context(content: ContentBundle, hand: list[str], seed: int = 7) -> GameContext:
    """
    A reset context in PlayerAction on turn 1 holding exactly `hand`.

    The draw and discard piles start empty.
    """
    ctx = GameContext.create(content, "test", seed=seed)
    ctx.reset()
    ctx.deck.initialize_deck(hand)
    ctx.deck.draw_cards(len(hand))
    ctx.turn.phase = TurnPhase.PLAYER_ACTION
    ctx.events.drain()
    return ctx


@pytest.fixture
def test_content() -> ContentBundle:
    return make_content()


@pytest.fixture
def flaming_content() -> ContentBundle:
    return make_content(enable_flaming=True)


@pytest.fixture
def loop(test_content) -> GameLoop:
    """A started loop on the quiet test stage."""
    game = GameLoop(GameContext.create(test_content, "test", seed=3))
    game.start()
    return game


MONSTER_PRESET = CutInPreset(preset_id="monster", title="Snap", message="Pick one")
