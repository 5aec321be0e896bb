"""Skill and archetype profiles that configure how a bot scores its options.

A skill profile supplies base weights for the twelve scoring dimensions plus
two randomization percentages. An archetype profile supplies per-dimension
multipliers layered on top of those weights. Both tables are static.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Annotated, Mapping

from pydantic import AfterValidator, BaseModel, Field, PlainSerializer, model_validator


class ScoringDimension(str, Enum):
    """The twelve axes an option is measured against."""

    IMMEDIATE_INCOME = "immediate_income"
    INCOME_PER_MILEPOST = "income_per_milepost"
    MULTI_DELIVERY_POTENTIAL = "multi_delivery_potential"
    NETWORK_EXPANSION_VALUE = "network_expansion_value"
    VICTORY_PROGRESS = "victory_progress"
    COMPETITOR_BLOCKING = "competitor_blocking"
    RISK_EXPOSURE = "risk_exposure"
    LOAD_SCARCITY = "load_scarcity"
    UPGRADE_ROI = "upgrade_roi"
    BACKBONE_ALIGNMENT = "backbone_alignment"
    LOAD_COMBINATION_SCORE = "load_combination_score"
    MAJOR_CITY_PROXIMITY = "major_city_proximity"


# Fixed iteration order used for weight vectors and rationale tie-breaks
DIMENSIONS: tuple[ScoringDimension, ...] = tuple(ScoringDimension)

DimensionWeights = Mapping[ScoringDimension, float]

# Profile fields stay read-only after validation and dump as plain dicts
FrozenWeights = Annotated[
    Mapping[ScoringDimension, float],
    AfterValidator(lambda values: MappingProxyType(dict(values))),
    PlainSerializer(lambda values: dict(values), return_type=dict[ScoringDimension, float]),
]


def _total(values: Mapping[ScoringDimension, float], default: float) -> DimensionWeights:
    return MappingProxyType({d: float(values.get(d, default)) for d in DIMENSIONS})


def make_weights(**values: float) -> DimensionWeights:
    """Build a total weight mapping; unnamed dimensions weigh 0."""
    return _total({ScoringDimension(k): v for k, v in values.items()}, 0.0)


def make_multipliers(**values: float) -> DimensionWeights:
    """Build a total multiplier mapping; unnamed dimensions are neutral (1.0)."""
    return _total({ScoringDimension(k): v for k, v in values.items()}, 1.0)


class SkillLevel(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ArchetypeId(str, Enum):
    BACKBONE_BUILDER = "backbone_builder"
    FREIGHT_OPTIMIZER = "freight_optimizer"
    TRUNK_SPRINTER = "trunk_sprinter"
    CONTINENTAL_CONNECTOR = "continental_connector"
    OPPORTUNIST = "opportunist"


class SkillProfile(BaseModel, frozen=True):
    """Base weights and randomization for one difficulty tier."""

    level: SkillLevel
    base_weights: FrozenWeights
    random_choice_percent: float = Field(ge=0, le=100, description="Chance to try a random option first")
    suboptimality_percent: float = Field(ge=0, le=100, description="Chance to try the second best first")

    @model_validator(mode="after")
    def _check_percentages(self) -> SkillProfile:
        if self.random_choice_percent + self.suboptimality_percent > 100:
            raise ValueError("random_choice_percent + suboptimality_percent must not exceed 100")
        missing = set(DIMENSIONS) - set(self.base_weights)
        if missing:
            raise ValueError(f"base_weights missing dimensions: {sorted(d.value for d in missing)}")
        return self


class ArchetypeProfile(BaseModel, frozen=True):
    """Play style: multipliers on the base weights plus display metadata."""

    id: ArchetypeId
    name: str
    description: str
    multipliers: FrozenWeights

    @model_validator(mode="after")
    def _check_multipliers(self) -> ArchetypeProfile:
        missing = set(DIMENSIONS) - set(self.multipliers)
        if missing:
            raise ValueError(f"multipliers missing dimensions: {sorted(d.value for d in missing)}")
        return self


class BotConfig(BaseModel, frozen=True):
    """Personality of a bot seat."""

    skill_level: SkillLevel = SkillLevel.MEDIUM
    archetype: ArchetypeId = ArchetypeId.BACKBONE_BUILDER
    bot_id: str = ""
    bot_name: str = ""


_BALANCED_WEIGHTS = make_weights(
    immediate_income=0.8,
    income_per_milepost=0.7,
    multi_delivery_potential=0.6,
    network_expansion_value=0.7,
    victory_progress=0.5,
    competitor_blocking=0.3,
    risk_exposure=0.4,
    load_scarcity=0.5,
    upgrade_roi=0.6,
    backbone_alignment=0.5,
    load_combination_score=0.6,
    major_city_proximity=0.5,
)

SKILL_PROFILES: Mapping[SkillLevel, SkillProfile] = MappingProxyType(
    {
        # Greedy: chases immediate income, ignores long-term structure
        SkillLevel.EASY: SkillProfile(
            level=SkillLevel.EASY,
            base_weights=make_weights(
                immediate_income=1.0,
                income_per_milepost=0.3,
                multi_delivery_potential=0.2,
                network_expansion_value=0.3,
                victory_progress=0.1,
                competitor_blocking=0.0,
                risk_exposure=0.1,
                load_scarcity=0.2,
                upgrade_roi=0.3,
                backbone_alignment=0.1,
                load_combination_score=0.2,
                major_city_proximity=0.3,
            ),
            random_choice_percent=20,
            suboptimality_percent=30,
        ),
        SkillLevel.MEDIUM: SkillProfile(
            level=SkillLevel.MEDIUM,
            base_weights=_BALANCED_WEIGHTS,
            random_choice_percent=5,
            suboptimality_percent=10,
        ),
        SkillLevel.HARD: SkillProfile(
            level=SkillLevel.HARD,
            base_weights=make_weights(
                immediate_income=0.9,
                income_per_milepost=0.9,
                multi_delivery_potential=0.8,
                network_expansion_value=0.9,
                victory_progress=0.8,
                competitor_blocking=0.6,
                risk_exposure=0.7,
                load_scarcity=0.7,
                upgrade_roi=0.8,
                backbone_alignment=0.7,
                load_combination_score=0.8,
                major_city_proximity=0.7,
            ),
            random_choice_percent=0,
            suboptimality_percent=0,
        ),
    }
)

ARCHETYPE_PROFILES: Mapping[ArchetypeId, ArchetypeProfile] = MappingProxyType(
    {
        ArchetypeId.BACKBONE_BUILDER: ArchetypeProfile(
            id=ArchetypeId.BACKBONE_BUILDER,
            name="Backbone Builder",
            description="Builds a strong trunk network connecting major cities before focusing on deliveries.",
            multipliers=make_multipliers(
                network_expansion_value=1.5,
                backbone_alignment=2.0,
                major_city_proximity=1.5,
                victory_progress=1.3,
                immediate_income=0.7,
                load_scarcity=0.8,
            ),
        ),
        ArchetypeId.FREIGHT_OPTIMIZER: ArchetypeProfile(
            id=ArchetypeId.FREIGHT_OPTIMIZER,
            name="Freight Optimizer",
            description="Maximizes income per milepost by optimizing load combinations and delivery routes.",
            multipliers=make_multipliers(
                immediate_income=1.5,
                income_per_milepost=2.0,
                multi_delivery_potential=1.5,
                load_combination_score=1.5,
                network_expansion_value=0.7,
                victory_progress=0.8,
            ),
        ),
        ArchetypeId.TRUNK_SPRINTER: ArchetypeProfile(
            id=ArchetypeId.TRUNK_SPRINTER,
            name="Trunk Sprinter",
            description="Builds direct routes and upgrades trains early for fast, high-value deliveries.",
            multipliers=make_multipliers(
                upgrade_roi=2.0,
                immediate_income=1.3,
                income_per_milepost=1.5,
                network_expansion_value=0.8,
                backbone_alignment=0.6,
                competitor_blocking=0.5,
            ),
        ),
        ArchetypeId.CONTINENTAL_CONNECTOR: ArchetypeProfile(
            id=ArchetypeId.CONTINENTAL_CONNECTOR,
            name="Continental Connector",
            description="Races to connect 7 major cities for victory, prioritizing network reach over income.",
            multipliers=make_multipliers(
                victory_progress=2.0,
                network_expansion_value=1.5,
                major_city_proximity=2.0,
                backbone_alignment=1.3,
                immediate_income=0.6,
                load_combination_score=0.7,
                upgrade_roi=0.8,
            ),
        ),
        ArchetypeId.OPPORTUNIST: ArchetypeProfile(
            id=ArchetypeId.OPPORTUNIST,
            name="Opportunist",
            description="Adapts strategy dynamically, exploiting scarce loads and competitor weaknesses.",
            multipliers=make_multipliers(
                competitor_blocking=1.5,
                load_scarcity=1.5,
                risk_exposure=1.3,
                multi_delivery_potential=1.3,
                backbone_alignment=0.7,
                major_city_proximity=0.8,
            ),
        ),
    }
)


def get_skill_profile(level: SkillLevel | str) -> SkillProfile:
    """Look up a skill profile. Raises KeyError for an unknown level."""
    try:
        key = SkillLevel(level)
    except ValueError:
        raise KeyError(f"Unknown skill level: {level}") from None
    return SKILL_PROFILES[key]


def get_archetype_profile(archetype: ArchetypeId | str) -> ArchetypeProfile:
    """Look up an archetype profile. Raises KeyError for an unknown archetype."""
    try:
        key = ArchetypeId(archetype)
    except ValueError:
        raise KeyError(f"Unknown archetype: {archetype}") from None
    return ARCHETYPE_PROFILES[key]
