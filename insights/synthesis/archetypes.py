from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from .engine import SeededRandom
from .mappings import ARCHETYPE_CATEGORIES, ARCHETYPE_DEFINITIONS, relevant_score
from insights.schemas.profile import (
    Archetype,
    ArchetypesByCategory,
    HealthScores,
    ProfileArchetypes,
)
from insights.utils.timezone import isoformat_utc, now_utc, to_utc_aware

PRESENCE_STRIDE = 7
RANK_STRIDE = 11
PICK_STRIDE = 13
WINDOW_DAYS = 30

MAX_COMPLETENESS = 95


def score_to_ordinality(score: int, perturbation: int) -> int:
    """Rank 0-3 from a 0-100 score, nudged by -1/0/+1 depending on ``perturbation % 3``."""
    base = score // 25
    return min(3, max(0, base + (perturbation % 3) - 1))


def classify_archetypes(
    profile_id: str,
    external_id: str,
    scores: HealthScores,
    now: Optional[datetime] = None,
) -> List[Archetype]:
    """Assign archetypes for a profile.

    Each of the 14 dimensions has an ~85% chance of being present. Ordinal
    dimensions are ranked from the relevant health score, categorical ones are
    picked from their value list. ``now`` anchors the 30-day window.
    """
    rng = SeededRandom(profile_id)
    end = to_utc_aware(now) if now is not None else now_utc()
    start = end - timedelta(days=WINDOW_DAYS)
    start_iso, end_iso = isoformat_utc(start), isoformat_utc(end)

    archetypes: List[Archetype] = []
    for index, (name, definition) in enumerate(ARCHETYPE_DEFINITIONS.items()):
        if rng.rand_int(0, 99, index * PRESENCE_STRIDE) <= 15:
            continue

        ordinality = None
        if definition.is_ordinal:
            ordinality = score_to_ordinality(
                relevant_score(name, scores),
                rng.rand_int(0, 3, index * RANK_STRIDE),
            )
            value = definition.values[ordinality]
        else:
            value = rng.pick(definition.values, index * PICK_STRIDE)

        archetypes.append(
            Archetype(
                id=f"{profile_id}-{name}-{index}",
                profile_id=profile_id,
                external_id=external_id,
                name=name,
                value=value,
                data_type=definition.data_type,
                ordinality=ordinality,
                periodicity="monthly",
                start_date_time=start_iso,
                end_date_time=end_iso,
                created_at_utc=end_iso,
                description=definition.description,
                requires_wearable=definition.requires_wearable,
            )
        )
    return archetypes


def archetype_completeness(profile_id: str) -> Tuple[bool, int]:
    """(has_wearable_data, completeness %).

    Seeded on its own offsets; it does not track how many archetypes were
    assigned and callers must not reconcile the two.
    """
    rng = SeededRandom(profile_id)
    has_wearable = rng.rand_int(1, 10, 1) > 3
    if has_wearable:
        completeness = rng.rand_int(75, 95, 2)
    else:
        completeness = rng.rand_int(45, 75, 3)
    return has_wearable, min(MAX_COMPLETENESS, completeness)


def data_quality(completeness: int) -> str:
    if completeness > 80:
        return "high"
    if completeness > 60:
        return "medium"
    return "low"


def categorize_archetypes(archetypes: List[Archetype]) -> ArchetypesByCategory:
    # A dimension can sit in more than one category (exercise overlaps activity)
    return ArchetypesByCategory(
        **{
            category: [a for a in archetypes if a.name in names]
            for category, names in ARCHETYPE_CATEGORIES.items()
        }
    )


def build_profile_archetypes(
    profile_id: str,
    external_id: str,
    scores: HealthScores,
    editable_id: str = "",
    now: Optional[datetime] = None,
    archetypes: Optional[List[Archetype]] = None,
) -> ProfileArchetypes:
    """Archetype summary for a profile; ``archetypes`` (e.g. from Sahha) replaces classification."""
    if archetypes is None:
        archetypes = classify_archetypes(profile_id, external_id, scores, now=now)
    has_wearable, completeness = archetype_completeness(profile_id)
    return ProfileArchetypes(
        profile_id=profile_id,
        external_id=external_id,
        editable_id=editable_id or external_id,
        archetypes=archetypes,
        archetype_completeness=completeness,
        has_wearable_data=has_wearable,
        archetypes_by_category=categorize_archetypes(archetypes),
        data_quality=data_quality(completeness),
    )
