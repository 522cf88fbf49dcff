from typing import Dict

from .engine import SeededRandom
from .mappings import (
    COMPOSITE,
    GATED,
    RANGE,
    SUB_SCORE_BUCKETS,
    SUB_SCORE_FIELDS,
    SubScoreField,
)
from insights.schemas.profile import SENTINEL, SubScore, SubScores, SubScoreValue

FIELD_OFFSET = 3000
FIELD_STRIDE = 19
GATE_SHIFT = 7
MINUTES_SHIFT = 11


def _field_value(rng: SeededRandom, index: int, field: SubScoreField) -> SubScoreValue:
    offset = FIELD_OFFSET + index * FIELD_STRIDE
    if field.kind == RANGE:
        return rng.rand_int(field.low, field.high, offset)
    if field.kind == GATED:
        if rng.rand_int(0, 60, offset + GATE_SHIFT) > 30:
            return rng.rand_int(field.low, field.high, offset)
        return SENTINEL
    if field.kind == COMPOSITE:
        hours = rng.rand_int(field.low, field.high, offset)
        minutes = rng.rand_int(0, 59, offset + MINUTES_SHIFT)
        return f"{hours} hrs {minutes} mins"
    return SENTINEL


def generate_sub_scores(profile_id: str) -> SubScores:
    """Biomarker breakdown for the five score buckets.

    Every field is drawn once and shared by all the buckets listing it, so e.g.
    ``steps`` reads the same under activity, mental wellbeing and wellbeing.
    """
    rng = SeededRandom(profile_id)
    fields: Dict[str, SubScore] = {}
    for i, field in enumerate(SUB_SCORE_FIELDS):
        fields[field.name] = SubScore(
            name=field.name,
            value=_field_value(rng, i, field),
            unit=field.unit,
        )

    buckets = {
        bucket: [fields[name].model_copy() for name in names]
        for bucket, names in SUB_SCORE_BUCKETS.items()
    }
    return SubScores(**buckets)
