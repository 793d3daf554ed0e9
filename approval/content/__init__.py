"""Content schema - card templates, stages, settings, loading and validation."""

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
from .validation import validate_content, ContentValidationError, ValidationResult
from .loader import load_content, parse_card, parse_stage

__all__ = [
    "CardTemplate",
    "CardRarity",
    "CardType",
    "PlayCondition",
    "RiskType",
    "CardDestination",
    "CountSource",
    "GeneratedCard",
    "CountScaledEffect",
    "ContentBundle",
    "GameSettings",
    "StageDefinition",
    "DraftProbabilityTable",
    "ProbabilityRow",
    "ClearCondition",
    "CutInPreset",
    "validate_content",
    "ContentValidationError",
    "ValidationResult",
    "load_content",
    "parse_card",
    "parse_stage",
]
