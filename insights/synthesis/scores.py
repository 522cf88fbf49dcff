from .engine import SeededRandom
from .mappings import SCORE_RANGES
from insights.schemas.profile import HealthScores

AVAILABILITY_OFFSET = 1000
AVAILABILITY_STRIDE = 17
VALUE_OFFSET = 2000
VALUE_STRIDE = 13


def generate_health_scores(profile_id: str) -> HealthScores:
    """Five top-level scores for a profile.

    Each score first passes an availability roll (roughly 80% succeed); a failed
    roll leaves the score as None, which downstream reads as "no data".
    """
    rng = SeededRandom(profile_id)
    values = {}
    for i, (field, (low, high)) in enumerate(SCORE_RANGES.items()):
        available = rng.rand_int(1, 10, AVAILABILITY_OFFSET + i * AVAILABILITY_STRIDE) > 2
        values[field] = rng.rand_int(low, high, VALUE_OFFSET + i * VALUE_STRIDE) if available else None
    return HealthScores(**values)
