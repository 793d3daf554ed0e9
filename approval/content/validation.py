"""
Content Validation - Checks authored content before gameplay begins.

Validates that:
1. Required fields are present
2. References are valid (every template id used by a card or stage exists)
3. Numeric settings are in range
4. Tables are well-formed (ascending probability rows, non-negative weights)

A dangling template reference is a fatal content-load error.
It must never surface mid-resolution.
"""

from __future__ import annotations
from dataclasses import dataclass

from .cards import CardTemplate
from .stage import ContentBundle, GameSettings, StageDefinition


class ContentValidationError(Exception):
    """Raised when content validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Content validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]


def validate_content(bundle: ContentBundle, raise_on_error: bool = False) -> ValidationResult:
    """
    Validate a complete content bundle.

    Returns ValidationResult with errors and warnings.
    Raises ContentValidationError if raise_on_error=True and errors exist.
    """
    errors: list[str] = []
    warnings: list[str] = []

    errors.extend(_validate_settings(bundle.settings))

    card_ids = set(bundle.cards)
    for card_id, card in bundle.cards.items():
        if card_id != card.id:
            errors.append(f"Card registered as '{card_id}' has id '{card.id}'")
        errors.extend(_validate_card(card, card_ids))

    stage_ids = [stage.id for stage in bundle.stages]
    if len(stage_ids) != len(set(stage_ids)):
        errors.append("Duplicate stage ids")

    for stage in bundle.stages:
        stage_errors, stage_warnings = _validate_stage(stage, card_ids, set(stage_ids))
        errors.extend(stage_errors)
        warnings.extend(stage_warnings)

    if not bundle.cards:
        warnings.append("No cards defined - content may be incomplete")
    if not bundle.stages:
        warnings.append("No stages defined")

    result = ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )
    if raise_on_error and not result.valid:
        raise ContentValidationError(errors)
    return result


def _validate_settings(settings: GameSettings) -> list[str]:
    errors = []
    if settings.max_mental < 1:
        errors.append("settings.max_mental must be >= 1")
    if settings.max_motivation < 0:
        errors.append("settings.max_motivation must be >= 0")
    if settings.initial_followers < 0:
        errors.append("settings.initial_followers must be >= 0")
    if settings.initial_hand_size < 0:
        errors.append("settings.initial_hand_size must be >= 0")
    if not 0 <= settings.monster_threshold < settings.max_mental:
        errors.append("settings.monster_threshold must be in [0, max_mental)")
    if settings.penalty_turn_interval < 1:
        errors.append("settings.penalty_turn_interval must be >= 1")
    if settings.penalty_step < 0:
        errors.append("settings.penalty_step must be >= 0")
    if settings.draft_slot_count < 0:
        errors.append("settings.draft_slot_count must be >= 0")
    return errors


def _validate_card(card: CardTemplate, card_ids: set[str]) -> list[str]:
    """Validate a single card template."""
    errors = []
    if not card.id:
        errors.append("Card has empty ID")
    if not card.name:
        errors.append(f"Card '{card.id}' has empty name")
    if card.motivation_cost < 0:
        errors.append(f"Card '{card.id}': motivation_cost must be >= 0")
    if not 0.0 <= card.risk_probability <= 1.0:
        errors.append(f"Card '{card.id}': risk_probability must be in [0, 1]")
    if card.required_hand_count < 0:
        errors.append(f"Card '{card.id}': required_hand_count must be >= 0")

    for ref in sorted(card.referenced_card_ids()):
        if ref not in card_ids:
            errors.append(f"Card '{card.id}' references unknown card '{ref}'")

    for generated in card.generated_cards:
        if generated.copies < 1:
            errors.append(f"Card '{card.id}': generated card copies must be >= 1")

    for effect in card.count_effects:
        if effect.min_count < 0:
            errors.append(f"Card '{card.id}': count effect min_count must be >= 0")

    return errors


def _validate_stage(
    stage: StageDefinition, card_ids: set[str], stage_ids: set[str]
) -> tuple[list[str], list[str]]:
    errors: list[str] = []
    warnings: list[str] = []

    if not stage.id:
        errors.append("Stage has empty ID")
    if stage.max_turns < 1:
        errors.append(f"Stage '{stage.id}': max_turns must be >= 1")

    for ref in sorted(stage.referenced_card_ids()):
        if ref not in card_ids:
            errors.append(f"Stage '{stage.id}' references unknown card '{ref}'")

    for required in stage.required_stage_ids:
        if required not in stage_ids:
            errors.append(f"Stage '{stage.id}' requires unknown stage '{required}'")

    rows = stage.probability_table.rows
    if not rows:
        errors.append(f"Stage '{stage.id}': probability table is empty")
    for prev, row in zip(rows, rows[1:]):
        if row.min_impressions < prev.min_impressions:
            errors.append(f"Stage '{stage.id}': probability rows must be ascending")
            break
    for row in rows:
        if min(row.common_weight, row.rare_weight, row.epic_weight) < 0:
            errors.append(f"Stage '{stage.id}': probability weights must be >= 0")
            break

    if stage.enable_infection and not stage.infection_card_id:
        warnings.append(f"Stage '{stage.id}': infection enabled without infection_card_id")
    if not stage.initial_deck:
        warnings.append(f"Stage '{stage.id}': initial deck is empty")
    if not stage.monster_pool:
        warnings.append(f"Stage '{stage.id}': monster pool is empty, monster draft will be skipped")

    return errors, warnings
