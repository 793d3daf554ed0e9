"""
Starter Stages - The built-in campaign.

    stage_1 (First Post) -> stage_2 (Going Viral) -> stage_3 (Bot Invasion)
                         -> score_attack (endless, no clear condition)

Each later stage switches on one more system (flaming, infection).
"""

from ...content.stage import (
    ContentBundle,
    GameSettings,
    StageDefinition,
    DraftProbabilityTable,
    ProbabilityRow,
    ClearCondition,
    CutInPreset,
)
from .cards import get_card_catalog

BASIC_DECK = (
    ("post_selfie",) * 4
    + ("reply_fans",) * 3
    + ("rest_day",) * 1
    + ("coffee_break",) * 2
)

STANDARD_TABLE = DraftProbabilityTable(rows=(
    ProbabilityRow(0, 80, 20, 0),
    ProbabilityRow(1_000, 60, 30, 10),
    ProbabilityRow(10_000, 40, 40, 20),
    ProbabilityRow(100_000, 20, 45, 35),
))

MONSTER_CUT_IN = CutInPreset(
    preset_id="monster_awakens",
    title="Something snapped.",
    message="No more holding back. Pick your weapon.",
)

MOTIVATION_LOW_CUT_IN = CutInPreset(
    preset_id="too_tired",
    title="Too tired...",
    message="Not enough motivation for that one.",
)


def _quota_ramp(turns: int, start: int, growth: float) -> tuple[int, ...]:
    return tuple(int(start * growth ** i) for i in range(turns))


def create_starter_stages() -> list[StageDefinition]:
    return [
        StageDefinition(
            id="stage_1",
            name="First Post",
            initial_deck=BASIC_DECK,
            draft_pool=(
                "post_selfie", "reply_fans", "daily_vlog", "rest_day", "calm_mind",
                "trend_ride", "collab_stream", "meme_factory", "meme_avalanche",
                "thread_binge", "fan_meetup", "archive_dive",
            ),
            monster_pool=("monster_rant", "monster_livestream"),
            quota_table=_quota_ramp(10, 50, 1.5),
            probability_table=STANDARD_TABLE,
            max_turns=10,
            clear_condition=ClearCondition(target_score=2_000),
            start_preset=CutInPreset(
                preset_id="welcome",
                title="Your first account!",
                message="Hit the impression quota every turn or it gets to you.",
            ),
            motivation_low_preset=MOTIVATION_LOW_CUT_IN,
        ),
        StageDefinition(
            id="stage_2",
            name="Going Viral",
            initial_deck=BASIC_DECK + ("hot_take",) * 2,
            draft_pool=(
                "daily_vlog", "rest_day", "trend_ride", "collab_stream", "meme_factory",
                "hot_take", "apology_video", "shadowban_scare", "fan_meetup",
                "viral_bait", "flame_harvest",
            ),
            monster_pool=("monster_rant", "monster_livestream"),
            quota_table=_quota_ramp(15, 100, 1.6),
            probability_table=STANDARD_TABLE,
            max_turns=15,
            clear_condition=ClearCondition(target_score=50_000),
            required_stage_ids=("stage_1",),
            enable_flaming=True,
            monster_preset=MONSTER_CUT_IN,
            motivation_low_preset=MOTIVATION_LOW_CUT_IN,
        ),
        StageDefinition(
            id="stage_3",
            name="Bot Invasion",
            initial_deck=BASIC_DECK + ("buy_followers",) * 2,
            draft_pool=(
                "daily_vlog", "trend_ride", "collab_stream", "buy_followers",
                "thread_binge", "archive_dive", "fan_meetup", "viral_bait",
            ),
            monster_pool=("monster_rant", "monster_livestream"),
            quota_table=_quota_ramp(15, 150, 1.6),
            probability_table=STANDARD_TABLE,
            max_turns=15,
            clear_condition=ClearCondition(target_score=200_000),
            required_stage_ids=("stage_2",),
            enable_infection=True,
            infection_card_id="spam_bot",
            infection_reset_rate=50.0,
            monster_preset=MONSTER_CUT_IN,
            tracked_card_id="spam_bot",
        ),
        StageDefinition(
            id="score_attack",
            name="Score Attack",
            initial_deck=BASIC_DECK,
            draft_pool=(
                "post_selfie", "daily_vlog", "trend_ride", "collab_stream", "meme_factory",
                "meme_avalanche", "hot_take", "apology_video", "flame_harvest",
                "fan_meetup", "viral_bait", "archive_dive", "shadowban_scare",
            ),
            monster_pool=("monster_rant", "monster_livestream"),
            quota_table=_quota_ramp(20, 100, 1.7),
            probability_table=STANDARD_TABLE,
            max_turns=20,
            required_stage_ids=("stage_1",),
            enable_flaming=True,
            monster_preset=MONSTER_CUT_IN,
        ),
    ]


def create_starter_content(settings: GameSettings | None = None) -> ContentBundle:
    """
    Build the starter ContentBundle.

    Args:
        settings: Override the default GameSettings (tests use this)
    """
    return ContentBundle(
        settings=settings or GameSettings(),
        cards=get_card_catalog(),
        stages=create_starter_stages(),
    )
