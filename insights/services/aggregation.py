"""
Population-level aggregation over profiles: score averages, department
breakdown, risk indicators and archetype distributions.

Missing data never counts as zero. Scores that are None and sub-scores that
carry the "--" sentinel are left out of every average.
"""

import math
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Sequence, Union

from insights.schemas.department import Department
from insights.schemas.profile import (
    SENTINEL,
    DepartmentArchetypeAnalysis,
    DepartmentBreakdown,
    OrganizationMetrics,
    Profile,
    ProfileArchetypes,
    RiskIndicator,
    ScoreAverages,
    SubScore,
)
from insights.synthesis.mappings import ARCHETYPE_DEFINITIONS, SCORE_FIELDS
from insights.utils.timezone import isoformat_now

LOW_WELLBEING_THRESHOLD = 40
LOW_WELLBEING_MIN_COUNT = 5   # indicator raised above this many employees
LOW_WELLBEING_HIGH_COUNT = 10
CRITICAL_WELLBEING_THRESHOLD = 30


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def mean(values: Iterable[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


# Sub-scores

def average_sub_score_values(
    values: Sequence[Union[int, float, str]],
    sentinel_as_zero: bool = False,
) -> Optional[float]:
    """Mean of numeric sub-score values.

    "--" entries are excluded unless ``sentinel_as_zero`` is set, which only
    exists to show how far the naive reading drifts. Other strings (the
    composite inactivity value) are never numeric and are skipped.
    """
    numbers: List[float] = []
    for value in values:
        if value == SENTINEL:
            if sentinel_as_zero:
                numbers.append(0.0)
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        numbers.append(float(value))
    return mean(numbers)


def sub_score_averages(profiles: Sequence[Profile], bucket: str) -> Dict[str, Optional[float]]:
    """Per-field average of one sub-score bucket across profiles."""
    collected: "OrderedDict[str, List[Union[int, float, str]]]" = OrderedDict()
    for profile in profiles:
        if profile.sub_scores is None:
            continue
        items: List[SubScore] = getattr(profile.sub_scores, bucket)
        for item in items:
            collected.setdefault(item.name, []).append(item.value)
    averages: Dict[str, Optional[float]] = {}
    for name, values in collected.items():
        avg = average_sub_score_values(values)
        averages[name] = round(avg, 1) if avg is not None else None
    return averages


# Scores

def score_averages(profiles: Sequence[Profile]) -> ScoreAverages:
    averages = {}
    for field in SCORE_FIELDS:
        avg = mean(getattr(p.scores, field) for p in profiles)
        averages[field] = round_half_up(avg) if avg is not None else None
    return ScoreAverages(**averages)


def group_by_department(profiles: Sequence[Profile]) -> Dict[str, List[Profile]]:
    groups: Dict[str, List[Profile]] = {}
    for profile in profiles:
        groups.setdefault(profile.department or Department.UNASSIGNED.value, []).append(profile)
    return groups


def department_breakdown(profiles: Sequence[Profile]) -> List[DepartmentBreakdown]:
    return [
        DepartmentBreakdown(
            department=department,
            employee_count=len(members),
            average_scores=score_averages(members),
        )
        for department, members in group_by_department(profiles).items()
    ]


def risk_indicators(profiles: Sequence[Profile]) -> List[RiskIndicator]:
    wellbeing = [p.scores.wellbeing for p in profiles if p.scores.wellbeing is not None]
    indicators: List[RiskIndicator] = []

    low = sum(1 for score in wellbeing if score < LOW_WELLBEING_THRESHOLD)
    if low > LOW_WELLBEING_MIN_COUNT:
        indicators.append(
            RiskIndicator(
                type="wellbeing",
                severity="high" if low > LOW_WELLBEING_HIGH_COUNT else "medium",
                affected_employees=low,
                description=f"{low} employees with critically low wellbeing scores",
            )
        )

    critical = sum(1 for score in wellbeing if score < CRITICAL_WELLBEING_THRESHOLD)
    if critical:
        indicators.append(
            RiskIndicator(
                type="wellbeing_critical",
                severity="critical",
                affected_employees=critical,
                description=f"{critical} employees with wellbeing below {CRITICAL_WELLBEING_THRESHOLD}",
            )
        )
    return indicators


# Archetypes

def archetype_distribution(profile_archetypes: Sequence[ProfileArchetypes]) -> Dict[str, Dict[str, int]]:
    """Count of each archetype value across profiles; every known value starts at 0."""
    distribution = {
        name: {value: 0 for value in definition.values}
        for name, definition in ARCHETYPE_DEFINITIONS.items()
    }
    for entry in profile_archetypes:
        for archetype in entry.archetypes:
            if archetype.name in distribution:
                counts = distribution[archetype.name]
                counts[archetype.value] = counts.get(archetype.value, 0) + 1
    return distribution


def department_archetype_analysis(
    profiles: Sequence[Profile],
    profile_archetypes: Sequence[ProfileArchetypes],
) -> List[DepartmentArchetypeAnalysis]:
    departments = {p.profile_id: p.department or Department.UNASSIGNED.value for p in profiles}
    analysis: Dict[str, dict] = {}
    for entry in profile_archetypes:
        department = departments.get(entry.profile_id, Department.UNASSIGNED.value)
        bucket = analysis.setdefault(
            department,
            {"profile_count": 0, "completeness_total": 0, "wearable_data_count": 0, "distribution": {}},
        )
        bucket["profile_count"] += 1
        bucket["completeness_total"] += entry.archetype_completeness
        if entry.has_wearable_data:
            bucket["wearable_data_count"] += 1
        for archetype in entry.archetypes:
            counts = bucket["distribution"].setdefault(archetype.name, {})
            counts[archetype.value] = counts.get(archetype.value, 0) + 1

    return [
        DepartmentArchetypeAnalysis(
            department=department,
            profile_count=bucket["profile_count"],
            average_completeness=round_half_up(bucket["completeness_total"] / bucket["profile_count"]),
            wearable_data_count=bucket["wearable_data_count"],
            archetype_distribution=bucket["distribution"],
        )
        for department, bucket in analysis.items()
    ]


def organization_metrics(
    profiles: Sequence[Profile],
    profile_archetypes: Sequence[ProfileArchetypes],
) -> OrganizationMetrics:
    return OrganizationMetrics(
        total_employees=len(profiles),
        average_scores=score_averages(profiles),
        department_breakdown=department_breakdown(profiles),
        risk_indicators=risk_indicators(profiles),
        archetype_distribution=archetype_distribution(profile_archetypes),
        department_archetypes=department_archetype_analysis(profiles, profile_archetypes),
        last_updated=isoformat_now(),
    )
