"""
Starter Cards - The built-in card catalog.

A small but complete catalog that exercises every effect family:
- Plain impression / follower cards (commons)
- Turn-scaled cards, count-scaled cards, generators (rares)
- Persistent bonuses and high-risk cards (epics)
- Flaming seed cards, infection cards
- Monster-mode-only cards for the monster draft
"""

from ...content.cards import (
    CardTemplate,
    CardRarity,
    CardType,
    PlayCondition,
    RiskType,
    CardDestination,
    CountSource,
    GeneratedCard,
    CountScaledEffect,
)


# =============================================================================
# Commons
# =============================================================================

POST_SELFIE = CardTemplate(
    id="post_selfie",
    name="Post a Selfie",
    motivation_cost=1,
    impression_rate=0.5,
    flavor_text="Good lighting is half the battle.",
    post_comments=("cute!", "new phone?", "first"),
)

REPLY_FANS = CardTemplate(
    id="reply_fans",
    name="Reply to Fans",
    motivation_cost=1,
    follower_gain=20,
    post_comments=("omg they replied", "senpai noticed me"),
)

DAILY_VLOG = CardTemplate(
    id="daily_vlog",
    name="Daily Vlog",
    motivation_cost=2,
    follower_gain=10,
    impression_rate=1.0,
    post_comments=("watched the whole thing", "what's your camera?"),
)

REST_DAY = CardTemplate(
    id="rest_day",
    name="Rest Day",
    motivation_cost=1,
    mental_cost=-2,
    flavor_text="Log off. Touch grass.",
)

COFFEE_BREAK = CardTemplate(
    id="coffee_break",
    name="Coffee Break",
    is_exhaust=True,
    draw_count=1,
    motivation_recovery=1,
)

MEME = CardTemplate(
    id="meme",
    name="Meme",
    card_type=CardType.SPECIAL,
    is_exhaust=True,
    impression_rate=0.2,
    post_comments=("lmao", "stealing this"),
)

CALM_MIND = CardTemplate(
    id="calm_mind",
    name="Calm Mind",
    play_condition=PlayCondition.NORMAL_MODE_ONLY,
    motivation_cost=1,
    mental_cost=-3,
)

# =============================================================================
# Rares
# =============================================================================

TREND_RIDE = CardTemplate(
    id="trend_ride",
    name="Ride the Trend",
    rarity=CardRarity.RARE,
    motivation_cost=2,
    is_turn_impression_effect=True,
    post_comments=("late to this but ok",),
)

COLLAB_STREAM = CardTemplate(
    id="collab_stream",
    name="Collab Stream",
    rarity=CardRarity.RARE,
    motivation_cost=2,
    mental_cost=1,
    is_turn_follower_effect=True,
)

MEME_FACTORY = CardTemplate(
    id="meme_factory",
    name="Meme Factory",
    rarity=CardRarity.RARE,
    motivation_cost=1,
    generated_cards=(
        GeneratedCard("meme", CardDestination.DISCARD, copies=2),
        GeneratedCard("meme", CardDestination.HAND, copies=1),
    ),
)

MEME_AVALANCHE = CardTemplate(
    id="meme_avalanche",
    name="Meme Avalanche",
    rarity=CardRarity.RARE,
    motivation_cost=1,
    count_effects=(
        CountScaledEffect(
            source=CountSource.DISCARD_PILE,
            target_card_id="meme",
            min_count=2,
            exhaust_matching=True,
            impression_rate_per_card=0.3,
        ),
    ),
)

THREAD_BINGE = CardTemplate(
    id="thread_binge",
    name="Thread Binge",
    rarity=CardRarity.RARE,
    motivation_cost=1,
    required_hand_card_id="post_selfie",
    required_hand_count=1,
    count_effects=(
        CountScaledEffect(source=CountSource.HAND, target_card_id="post_selfie", draw_per_card=1),
    ),
)

HOT_TAKE = CardTemplate(
    id="hot_take",
    name="Hot Take",
    rarity=CardRarity.RARE,
    card_type=CardType.RISK,
    motivation_cost=1,
    impression_rate=2.0,
    flaming_seed_gain=1,
    rolls_flaming=True,
    risk_type=RiskType.FLAMING,
    risk_probability=0.3,
    risk_value=2,
    post_comments=("ratio", "delete this", "based"),
)

BUY_FOLLOWERS = CardTemplate(
    id="buy_followers",
    name="Buy Followers",
    rarity=CardRarity.RARE,
    card_type=CardType.RISK,
    motivation_cost=1,
    follower_gain=200,
    infection_gain=2,
)

# =============================================================================
# Epics
# =============================================================================

FAN_MEETUP = CardTemplate(
    id="fan_meetup",
    name="Fan Meetup",
    rarity=CardRarity.EPIC,
    is_exhaust=True,
    motivation_cost=2,
    turn_draw_bonus=1,
    max_motivation_bonus=1,
)

VIRAL_BAIT = CardTemplate(
    id="viral_bait",
    name="Viral Bait",
    rarity=CardRarity.EPIC,
    card_type=CardType.RISK,
    motivation_cost=2,
    impression_rate=3.0,
    risk_type=RiskType.BAN,
    risk_probability=0.05,
)

ARCHIVE_DIVE = CardTemplate(
    id="archive_dive",
    name="Archive Dive",
    rarity=CardRarity.EPIC,
    motivation_cost=1,
    count_effects=(
        CountScaledEffect(
            source=CountSource.MIN_DRAW_DISCARD,
            min_count=1,
            impression_rate_per_card=0.1,
            followers_per_card=5,
        ),
    ),
)

APOLOGY_VIDEO = CardTemplate(
    id="apology_video",
    name="Apology Video",
    rarity=CardRarity.RARE,
    motivation_cost=1,
    seed_mental_heal=1,
)

FLAME_HARVEST = CardTemplate(
    id="flame_harvest",
    name="Flame Harvest",
    rarity=CardRarity.EPIC,
    motivation_cost=1,
    seed_impression_rate=0.5,
    seed_gamble=True,
)

SHADOWBAN_SCARE = CardTemplate(
    id="shadowban_scare",
    name="Shadowban Scare",
    rarity=CardRarity.RARE,
    card_type=CardType.RISK,
    motivation_cost=1,
    impression_rate=1.5,
    risk_type=RiskType.FREEZE,
    risk_probability=0.25,
)

# =============================================================================
# Monster cards and special cards
# =============================================================================

MONSTER_RANT = CardTemplate(
    id="monster_rant",
    name="Unhinged Rant",
    rarity=CardRarity.EPIC,
    card_type=CardType.MONSTER,
    play_condition=PlayCondition.MONSTER_MODE_ONLY,
    motivation_cost=1,
    impression_rate=2.0,
    risk_type=RiskType.LOSE_FOLLOWER,
    risk_probability=0.5,
    risk_value=30,
)

MONSTER_LIVESTREAM = CardTemplate(
    id="monster_livestream",
    name="24h Livestream",
    rarity=CardRarity.EPIC,
    card_type=CardType.MONSTER,
    play_condition=PlayCondition.MONSTER_MODE_ONLY,
    motivation_cost=2,
    mental_cost=1,
    is_turn_impression_effect=True,
)

SPAM_BOT = CardTemplate(
    id="spam_bot",
    name="Spam Bot",
    card_type=CardType.PASSIVE,
    play_condition=PlayCondition.NEVER,
    flavor_text="Clogs your hand. Cannot be played.",
)


STARTER_CARDS: list[CardTemplate] = [
    POST_SELFIE,
    REPLY_FANS,
    DAILY_VLOG,
    REST_DAY,
    COFFEE_BREAK,
    MEME,
    CALM_MIND,
    TREND_RIDE,
    COLLAB_STREAM,
    MEME_FACTORY,
    MEME_AVALANCHE,
    THREAD_BINGE,
    HOT_TAKE,
    BUY_FOLLOWERS,
    FAN_MEETUP,
    VIRAL_BAIT,
    ARCHIVE_DIVE,
    APOLOGY_VIDEO,
    FLAME_HARVEST,
    SHADOWBAN_SCARE,
    MONSTER_RANT,
    MONSTER_LIVESTREAM,
    SPAM_BOT,
]


def get_card_catalog() -> dict[str, CardTemplate]:
    return {card.id: card for card in STARTER_CARDS}
