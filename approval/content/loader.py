"""
Content Loader - Builds a ContentBundle from JSON data.

Expected shape:

    {
        "settings": {...GameSettings fields...},
        "cards": [{"id": "post", "name": "Post", ...}, ...],
        "stages": [{"id": "stage_1", "name": "...", "initial_deck": [...], ...}]
    }

Enum fields use their string values ("rare", "draw_middle", ...).
Malformed entries are collected and reported together; the bundle is
validated before it is returned.
"""

from __future__ import annotations
import json
import logging
from dataclasses import MISSING, fields
from pathlib import Path
from typing import Any

from .cards import (
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
from .stage import (
    ContentBundle,
    GameSettings,
    StageDefinition,
    DraftProbabilityTable,
    ProbabilityRow,
    ClearCondition,
    CutInPreset,
)
from .validation import ContentValidationError, validate_content

logger = logging.getLogger(__name__)

_CARD_ENUMS = {
    "rarity": CardRarity,
    "card_type": CardType,
    "play_condition": PlayCondition,
    "risk_type": RiskType,
}


def load_content(source: str | Path | dict[str, Any]) -> ContentBundle:
    """
    Load and validate content from a JSON file path or an already-parsed dict.

    Raises ContentValidationError if anything is malformed or dangling.
    """
    if isinstance(source, dict):
        data = source
    else:
        path = Path(source)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ContentValidationError([f"Content file not found: {path}"])
        except json.JSONDecodeError as e:
            raise ContentValidationError([f"Invalid JSON in {path}: {e}"])

    if not isinstance(data, dict):
        raise ContentValidationError([f"Content must be an object, got {type(data).__name__}"])

    errors: list[str] = []
    settings = _parse_settings(data.get("settings", {}), errors)

    cards: dict[str, CardTemplate] = {}
    for raw in _entries(data, "cards", errors):
        try:
            card = parse_card(raw)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            errors.append(f"Invalid card {raw.get('id', '?')!r}: {e}")
            continue
        if card.id in cards:
            errors.append(f"Duplicate card id '{card.id}'")
        cards[card.id] = card

    stages = []
    for raw in _entries(data, "stages", errors):
        try:
            stages.append(parse_stage(raw))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            errors.append(f"Invalid stage {raw.get('id', '?')!r}: {e}")

    if errors:
        raise ContentValidationError(errors)

    bundle = ContentBundle(settings=settings, cards=cards, stages=stages)
    result = validate_content(bundle, raise_on_error=True)
    for warning in result.warnings:
        logger.warning("Content warning: %s", warning)

    logger.info("Loaded content: %d cards, %d stages", len(cards), len(stages))
    return bundle


def _entries(data: dict[str, Any], key: str, errors: list[str]) -> list[dict[str, Any]]:
    """The object entries of a top-level list; anything else is reported."""
    raw = data.get(key, [])
    if not isinstance(raw, list):
        errors.append(f"'{key}' must be a list, got {type(raw).__name__}")
        return []
    entries = []
    for index, entry in enumerate(raw):
        if isinstance(entry, dict):
            entries.append(entry)
        else:
            errors.append(f"Invalid {key[:-1]} at index {index}: expected an object, got {entry!r}")
    return entries


def _coerce(name: str, value: Any, default: Any) -> Any:
    """Check `value` against the type of a field's default (bool, number or id)."""
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ValueError(f"{name} must be true or false, got {value!r}")
        return value
    if isinstance(default, (int, float)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{name} must be a number, got {value!r}")
        return type(default)(value)
    if default is MISSING:
        if not isinstance(value, str):
            raise ValueError(f"{name} must be a string, got {value!r}")
        return value
    if isinstance(default, str) or default is None:
        if value is not None and not isinstance(value, str):
            raise ValueError(f"{name} must be a string, got {value!r}")
    return value


def _id_list(raw: dict[str, Any], key: str) -> tuple[str, ...]:
    values = raw.get(key, ())
    if not isinstance(values, (list, tuple)) or not all(isinstance(v, str) for v in values):
        raise ValueError(f"{key} must be a list of ids")
    return tuple(values)


def _parse_settings(raw: Any, errors: list[str]) -> GameSettings:
    if not isinstance(raw, dict):
        errors.append(f"'settings' must be an object, got {type(raw).__name__}")
        return GameSettings()

    defaults = {f.name: f.default for f in fields(GameSettings)}
    unknown = set(raw) - set(defaults)
    if unknown:
        errors.append(f"Unknown settings fields: {sorted(unknown)}")

    kwargs: dict[str, Any] = {}
    for key, value in raw.items():
        if key not in defaults:
            continue
        try:
            kwargs[key] = _coerce(f"settings.{key}", value, defaults[key])
        except ValueError as e:
            errors.append(str(e))
    return GameSettings(**kwargs)


def parse_card(raw: dict[str, Any]) -> CardTemplate:
    """Parse one card dict into a CardTemplate."""
    defaults = {f.name: f.default for f in fields(CardTemplate)}
    unknown = set(raw) - set(defaults)
    if unknown:
        raise ValueError(f"unknown fields {sorted(unknown)}")

    kwargs: dict[str, Any] = {}
    for key, value in raw.items():
        if key in _CARD_ENUMS:
            kwargs[key] = _CARD_ENUMS[key](value)
        elif key == "generated_cards":
            kwargs[key] = tuple(
                GeneratedCard(
                    card_id=g["card_id"],
                    destination=CardDestination(g.get("destination", "discard")),
                    copies=int(g.get("copies", 1)),
                )
                for g in value
            )
        elif key == "count_effects":
            kwargs[key] = tuple(_parse_count_effect(e) for e in value)
        elif key == "post_comments":
            kwargs[key] = tuple(value)
        else:
            kwargs[key] = _coerce(key, value, defaults[key])

    return CardTemplate(**kwargs)


def _parse_count_effect(raw: dict[str, Any]) -> CountScaledEffect:
    return CountScaledEffect(
        source=CountSource(raw["source"]),
        target_card_id=raw.get("target_card_id"),
        min_count=int(raw.get("min_count", 1)),
        exhaust_matching=bool(raw.get("exhaust_matching", False)),
        impression_rate_per_card=float(raw.get("impression_rate_per_card", 0.0)),
        followers_per_card=int(raw.get("followers_per_card", 0)),
        draw_per_card=int(raw.get("draw_per_card", 0)),
    )


def _parse_preset(raw: dict[str, Any] | None) -> CutInPreset | None:
    if raw is None:
        return None
    return CutInPreset(
        preset_id=raw["preset_id"],
        title=raw.get("title", ""),
        message=raw.get("message", ""),
    )


def parse_stage(raw: dict[str, Any]) -> StageDefinition:
    """Parse one stage dict into a StageDefinition."""
    table = raw.get("probability_table")
    probability_table = DraftProbabilityTable()
    if table:
        probability_table = DraftProbabilityTable(rows=tuple(
            ProbabilityRow(
                min_impressions=int(row["min_impressions"]),
                common_weight=float(row.get("common_weight", 0)),
                rare_weight=float(row.get("rare_weight", 0)),
                epic_weight=float(row.get("epic_weight", 0)),
            )
            for row in table
        ))

    clear = raw.get("clear_condition")
    clear_condition = ClearCondition(target_score=int(clear["target_score"])) if clear else None

    return StageDefinition(
        id=_coerce("id", raw["id"], MISSING),
        name=raw.get("name", raw["id"]),
        initial_deck=_id_list(raw, "initial_deck"),
        draft_pool=_id_list(raw, "draft_pool"),
        monster_pool=_id_list(raw, "monster_pool"),
        quota_table=tuple(int(q) for q in raw.get("quota_table", ())),
        probability_table=probability_table,
        max_turns=int(raw.get("max_turns", 20)),
        clear_condition=clear_condition,
        required_stage_ids=_id_list(raw, "required_stage_ids"),
        enable_flaming=bool(raw.get("enable_flaming", False)),
        enable_infection=bool(raw.get("enable_infection", False)),
        infection_card_id=raw.get("infection_card_id"),
        infection_reset_rate=float(raw.get("infection_reset_rate", 100.0)),
        start_preset=_parse_preset(raw.get("start_preset")),
        monster_preset=_parse_preset(raw.get("monster_preset")),
        motivation_low_preset=_parse_preset(raw.get("motivation_low_preset")),
        tracked_card_id=raw.get("tracked_card_id"),
    )
