"""Static lookup tables for the synthesizer.

These tables centralize the vocabulary (score ranges, sub-score schema, archetype
definitions) so generation logic can stay small and the vocabulary can be
versioned independently of it.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from insights.schemas.profile import HealthScores

# ---------------------------------------------------------------------------
# Health scores
# ---------------------------------------------------------------------------

# Generation order matters: offsets are derived from the position in this table.
SCORE_RANGES: Dict[str, Tuple[int, int]] = {
    "wellbeing": (30, 95),
    "activity": (25, 90),
    "sleep": (35, 85),
    "mental_wellbeing": (40, 88),
    "readiness": (30, 92),
}

SCORE_FIELDS: Tuple[str, ...] = tuple(SCORE_RANGES)

# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------

RANGE = "range"
GATED = "gated"            # real value only when the availability coin-flip succeeds
COMPOSITE = "composite"    # "<h> hrs <m> mins"
UNAVAILABLE = "unavailable"  # always the "--" sentinel


@dataclass(frozen=True)
class SubScoreField:
    name: str
    kind: str
    unit: str = ""
    low: int = 0
    high: int = 0


# Offsets are derived from the position in this table; append new fields at the end.
SUB_SCORE_FIELDS: Tuple[SubScoreField, ...] = (
    SubScoreField("steps", RANGE, "steps", 1000, 8000),
    SubScoreField("active_hours", RANGE, "hrs", 8, 16),
    SubScoreField("active_calories", RANGE, "kcal", 30, 200),
    SubScoreField("intense_activity_duration", GATED, "mins", 10, 90),
    SubScoreField("extended_inactivity", COMPOSITE, "", 6, 14),
    SubScoreField("floors_climbed", GATED, "floors", 1, 15),
    SubScoreField("sleep_duration", RANGE, "hrs", 5, 10),
    SubScoreField("sleep_regularity", RANGE, "%", 70, 98),
    SubScoreField("sleep_debt", RANGE, "mins", 0, 120),
    SubScoreField("circadian_alignment", RANGE, "hrs", 0, 3),
    SubScoreField("sleep_continuity", GATED, "%", 85, 95),
    SubScoreField("physical_recovery", UNAVAILABLE),
    SubScoreField("mental_recovery", UNAVAILABLE),
    SubScoreField("activity_regularity", RANGE, "%", 10, 25),
    SubScoreField("walking_strain_capacity", RANGE, "%", 30, 70),
    SubScoreField("exercise_strain_capacity", RANGE, "%", 25, 65),
    SubScoreField("resting_heart_rate", UNAVAILABLE),
    SubScoreField("heart_rate_variability", UNAVAILABLE),
)

# Bucket schemas; names and order are what the dashboard labels and CSV columns expect.
SUB_SCORE_BUCKETS: Dict[str, Tuple[str, ...]] = {
    "activity": (
        "steps",
        "active_hours",
        "active_calories",
        "intense_activity_duration",
        "extended_inactivity",
        "floors_climbed",
    ),
    "sleep": (
        "sleep_duration",
        "sleep_regularity",
        "sleep_debt",
        "circadian_alignment",
        "sleep_continuity",
        "physical_recovery",
        "mental_recovery",
    ),
    "mental_wellbeing": (
        "circadian_alignment",
        "steps",
        "active_hours",
        "extended_inactivity",
        "activity_regularity",
        "sleep_regularity",
    ),
    "readiness": (
        "sleep_duration",
        "sleep_debt",
        "physical_recovery",
        "mental_recovery",
        "walking_strain_capacity",
        "exercise_strain_capacity",
        "resting_heart_rate",
        "heart_rate_variability",
    ),
    "wellbeing": (
        "sleep_duration",
        "steps",
        "active_hours",
        "active_calories",
        "sleep_regularity",
        "sleep_continuity",
        "sleep_debt",
        "intense_activity_duration",
        "extended_inactivity",
        "circadian_alignment",
        "physical_recovery",
        "mental_recovery",
        "floors_climbed",
    ),
}

# ---------------------------------------------------------------------------
# Archetypes
# ---------------------------------------------------------------------------

ORDINAL = "ordinal"
CATEGORICAL = "categorical"

_EXERCISES = (
    "running", "weightlifting", "yoga", "cycling", "swimming", "walking", "hiking", "tennis",
    "basketball", "soccer", "dancing", "pilates", "crossfit", "martial_arts", "climbing", "rowing",
)


@dataclass(frozen=True)
class ArchetypeDefinition:
    data_type: str
    values: Tuple[str, ...]
    description: str
    requires_wearable: bool = False

    @property
    def is_ordinal(self) -> bool:
        return self.data_type == ORDINAL


# Iteration order is part of the contract: offsets come from the position here.
ARCHETYPE_DEFINITIONS: Dict[str, ArchetypeDefinition] = {
    # Ordinal archetypes (0-3 ranking)
    "activity_level": ArchetypeDefinition(
        ORDINAL,
        ("sedentary", "lightly_active", "moderately_active", "highly_active"),
        "Overall level of physical activity including movement and exercise.",
    ),
    "exercise_frequency": ArchetypeDefinition(
        ORDINAL,
        ("rare_exerciser", "occasional_exerciser", "regular_exerciser", "frequent_exerciser"),
        "How often the individual exercises.",
    ),
    "mental_wellness": ArchetypeDefinition(
        ORDINAL,
        ("poor_mental_wellness", "fair_mental_wellness", "good_mental_wellness", "optimal_mental_wellness"),
        "Mental wellness and resiliency based on physical activity, sleep, and stress indicators.",
    ),
    "overall_wellness": ArchetypeDefinition(
        ORDINAL,
        ("poor_wellness", "fair_wellness", "good_wellness", "optimal_wellness"),
        "Overall wellbeing across all aspects of health.",
    ),
    "sleep_duration": ArchetypeDefinition(
        ORDINAL,
        ("very_short_sleeper", "short_sleeper", "average_sleeper", "long_sleeper"),
        "Typical sleep duration relative to recommended norms.",
    ),
    "sleep_efficiency": ArchetypeDefinition(
        ORDINAL,
        ("highly_inefficient_sleeper", "inefficient_sleeper", "efficient_sleeper", "highly_efficient_sleeper"),
        "How effectively the individual maintains uninterrupted sleep.",
        requires_wearable=True,
    ),
    "sleep_quality": ArchetypeDefinition(
        ORDINAL,
        ("poor_sleep_quality", "fair_sleep_quality", "good_sleep_quality", "optimal_sleep_quality"),
        "Long-term quality of sleep based on duration, regularity, recovery, and debt.",
    ),
    "sleep_regularity": ArchetypeDefinition(
        ORDINAL,
        ("highly_irregular_sleeper", "irregular_sleeper", "regular_sleeper", "highly_regular_sleeper"),
        "Consistency in sleep timings.",
    ),
    "bed_schedule": ArchetypeDefinition(
        ORDINAL,
        ("very_early_sleeper", "early_sleeper", "late_sleeper", "very_late_sleeper"),
        "Typical bedtime.",
    ),
    "wake_schedule": ArchetypeDefinition(
        ORDINAL,
        ("very_early_riser", "early_riser", "late_riser", "very_late_riser"),
        "Typical wake-up time.",
    ),
    # Categorical archetypes (no ranking)
    "primary_exercise": ArchetypeDefinition(
        CATEGORICAL,
        _EXERCISES,
        "Most commonly performed exercise.",
    ),
    "primary_exercise_type": ArchetypeDefinition(
        CATEGORICAL,
        ("strength_oriented", "cardio_oriented", "mind_body_oriented", "hybrid_oriented",
         "sport_oriented", "outdoor_oriented"),
        "Categorizes the primary exercise into strength, cardio, sports, etc.",
    ),
    "secondary_exercise": ArchetypeDefinition(
        CATEGORICAL,
        _EXERCISES,
        "Second most commonly performed exercise.",
    ),
    "sleep_pattern": ArchetypeDefinition(
        CATEGORICAL,
        ("consistent_early_riser", "inconsistent_early_riser", "consistent_late_sleeper",
         "inconsistent_late_sleeper", "early_morning_sleeper", "chronic_short_sleeper",
         "inconsistent_short_sleeper"),
        "Overall sleep behavior based on timing and consistency.",
    ),
}

# Ordinal archetype -> the HealthScores field that drives its rank
ARCHETYPE_SCORE_SELECTOR: Dict[str, str] = {
    "activity_level": "activity",
    "exercise_frequency": "activity",
    "sleep_duration": "sleep",
    "sleep_efficiency": "sleep",
    "sleep_quality": "sleep",
    "sleep_regularity": "sleep",
    "bed_schedule": "sleep",
    "wake_schedule": "sleep",
    "mental_wellness": "mental_wellbeing",
    "overall_wellness": "wellbeing",
}

NEUTRAL_SCORE = 50

ARCHETYPE_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "activity": ("activity_level", "exercise_frequency", "primary_exercise",
                 "primary_exercise_type", "secondary_exercise"),
    "sleep": ("sleep_duration", "sleep_efficiency", "sleep_quality", "sleep_regularity",
              "bed_schedule", "wake_schedule", "sleep_pattern"),
    "exercise": ("primary_exercise", "primary_exercise_type", "secondary_exercise"),
    "wellness": ("mental_wellness", "overall_wellness"),
}


def score_selector(archetype_name: str) -> Optional[str]:
    """HealthScores field that drives an ordinal archetype, or None for categorical ones."""
    return ARCHETYPE_SCORE_SELECTOR.get(archetype_name)


def relevant_score(archetype_name: str, scores: HealthScores) -> int:
    """Score used to rank an ordinal archetype; a missing (or zero) score reads as neutral."""
    field = score_selector(archetype_name)
    if field is None:
        return NEUTRAL_SCORE
    return getattr(scores, field) or NEUTRAL_SCORE
