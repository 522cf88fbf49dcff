"""
CSV export of profiles with archetypes and biomarker detail.

Column order and the "N/A" / "--" conventions are relied on by spreadsheets
built from earlier exports; keep them stable.
"""

import csv
import io
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from insights.schemas.department import department_name
from insights.schemas.profile import Profile, ProfileArchetypes, SubScore, SubScores
from insights.synthesis import generate_sub_scores
from insights.synthesis.demo import synthesize_demographics
from insights.utils.timezone import now_utc, to_utc_aware

NOT_AVAILABLE = "N/A"

PROFILE_HEADERS = [
    "Profile ID",
    "External ID",
    "Department",
    "Device Type",
    "Age",
    "Gender",
    "Wellbeing Score",
    "Activity Score",
    "Sleep Score",
    "Mental Health Score",
    "Readiness Score",
    "Created Date",
]

ARCHETYPE_HEADERS = [
    "Archetype Completeness (%)",
    "Total Archetypes",
    "Has Wearable Data",
    "Activity Level",
    "Exercise Frequency",
    "Sleep Duration Pattern",
    "Sleep Quality",
    "Mental Wellness State",
    "Overall Wellness State",
    "Primary Exercise Type",
    "Chronotype (Sleep Pattern)",
]

# Archetype columns after the three summary columns, in header order
ARCHETYPE_COLUMNS = (
    "activity_level",
    "exercise_frequency",
    "sleep_duration",
    "sleep_quality",
    "mental_wellness",
    "overall_wellness",
    "primary_exercise_type",
    "sleep_pattern",
)

SUB_SCORE_HEADERS = [
    "Activity: Steps",
    "Activity: Active Hours",
    "Activity: Active Calories",
    "Activity: Intense Activity Duration",
    "Activity: Extended Inactivity",
    "Activity: Floors Climbed",
    "Sleep: Duration",
    "Sleep: Regularity",
    "Sleep: Debt",
    "Sleep: Circadian Alignment",
    "Sleep: Continuity",
    "Sleep: Physical Recovery",
    "Sleep: Mental Recovery",
    "Mental: Circadian Alignment",
    "Mental: Steps",
    "Mental: Active Hours",
    "Mental: Extended Inactivity",
    "Mental: Activity Regularity",
    "Mental: Sleep Regularity",
    "Readiness: Sleep Duration",
    "Readiness: Sleep Debt",
    "Readiness: Physical Recovery",
    "Readiness: Mental Recovery",
    "Readiness: Walking Strain Capacity",
    "Readiness: Exercise Strain Capacity",
    "Readiness: Resting Heart Rate",
    "Readiness: Heart Rate Variability",
    "Wellbeing: Sleep Duration",
    "Wellbeing: Steps",
    "Wellbeing: Active Hours",
    "Wellbeing: Active Calories",
    "Wellbeing: Sleep Regularity",
    "Wellbeing: Sleep Continuity",
    "Wellbeing: Sleep Debt",
    "Wellbeing: Intense Activity Duration",
    "Wellbeing: Extended Inactivity",
    "Wellbeing: Circadian Alignment",
    "Wellbeing: Physical Recovery",
    "Wellbeing: Mental Recovery",
    "Wellbeing: Floors Climbed",
]

CSV_HEADERS = PROFILE_HEADERS + ARCHETYPE_HEADERS + SUB_SCORE_HEADERS

SUB_SCORE_BUCKET_ORDER = ("activity", "sleep", "mental_wellbeing", "readiness", "wellbeing")


def format_archetype_value(value: str) -> str:
    """``moderately_active`` -> ``Moderately Active``"""
    return " ".join(word[:1].upper() + word[1:] for word in value.split("_"))


def format_sub_score(item: SubScore) -> str:
    # "-- floors" for a missing gated biomarker; unitless sentinels stay a bare "--"
    return f"{item.value} {item.unit}" if item.unit else str(item.value)


def format_created_date(created_at_utc: Optional[str]) -> str:
    if not created_at_utc:
        return NOT_AVAILABLE
    try:
        created = datetime.fromisoformat(created_at_utc.replace("Z", "+00:00"))
    except ValueError:
        return NOT_AVAILABLE
    created = to_utc_aware(created)
    return f"{created.month}/{created.day}/{created.year}"


def _score_cell(score: Optional[int]):
    return NOT_AVAILABLE if score is None else score


def archetype_cells(entry: Optional[ProfileArchetypes]) -> List:
    if entry is None:
        return [NOT_AVAILABLE, "0", "No"] + [NOT_AVAILABLE] * len(ARCHETYPE_COLUMNS)
    by_name = {a.name: a.value for a in entry.archetypes}
    cells = [
        f"{entry.archetype_completeness}%",
        len(entry.archetypes),
        "Yes" if entry.has_wearable_data else "No",
    ]
    for name in ARCHETYPE_COLUMNS:
        value = by_name.get(name)
        cells.append(format_archetype_value(value) if value else NOT_AVAILABLE)
    return cells


def sub_score_cells(sub_scores: SubScores) -> List[str]:
    cells: List[str] = []
    for bucket in SUB_SCORE_BUCKET_ORDER:
        cells.extend(format_sub_score(item) for item in getattr(sub_scores, bucket))
    return cells


def profile_row(profile: Profile, archetypes: Optional[ProfileArchetypes]) -> List:
    demographics = profile.demographics or synthesize_demographics(profile.profile_id)
    sub_scores = profile.sub_scores or generate_sub_scores(profile.profile_id)
    scores = profile.scores
    return [
        profile.profile_id,
        profile.external_id,
        department_name(profile.department) if profile.department else "Unassigned",
        profile.device_type,
        demographics.age,
        demographics.gender,
        _score_cell(scores.wellbeing),
        _score_cell(scores.activity),
        _score_cell(scores.sleep),
        _score_cell(scores.mental_wellbeing),
        _score_cell(scores.readiness),
        format_created_date(profile.created_at_utc),
        *archetype_cells(archetypes),
        *sub_score_cells(sub_scores),
    ]


def _cell(value) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    return str(value)


def export_profiles_csv(
    profiles: Sequence[Profile],
    profile_archetypes: Sequence[ProfileArchetypes] = (),
) -> str:
    """Every cell quoted, embedded quotes doubled, rows separated by a bare newline."""
    archetypes_by_profile: Dict[str, ProfileArchetypes] = {a.profile_id: a for a in profile_archetypes}
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for profile in profiles:
        row = profile_row(profile, archetypes_by_profile.get(profile.profile_id))
        writer.writerow([_cell(value) for value in row])
    # No trailing newline after the last row
    return buffer.getvalue().rstrip("\n")


def export_filename(org_id: str = "default", today: Optional[datetime] = None) -> str:
    day = (today or now_utc()).date().isoformat()
    return f"sahha_profiles_with_biomarkers_{org_id}_{day}.csv"
