from datetime import datetime, timedelta
from typing import List, Optional

from .engine import SeededRandom, profile_seed
from .scores import generate_health_scores
from .subscores import generate_sub_scores
from insights.schemas.department import Department
from insights.schemas.profile import Demographics, Profile
from insights.utils.timezone import isoformat_utc, now_utc, to_utc_aware

CREATED_AT_OFFSET = 5000

# (exclusive upper index, department) bands for the demo organization
_DEPARTMENT_BANDS = (
    (20, Department.TECH),
    (31, Department.SALES),
    (42, Department.OPERATIONS),
    (51, Department.ADMIN),
)

DEVICE_TYPES = ("iOS", "Android")


def demo_department(index: int) -> Department:
    for upper, department in _DEPARTMENT_BANDS:
        if index < upper:
            return department
    return Department.UNASSIGNED


def synthesize_demographics(profile_id: str) -> Demographics:
    seed = profile_seed(profile_id)
    return Demographics(age=22 + seed % 45, gender="Female" if seed % 2 == 0 else "Male")


def synthesize_profile(
    profile_id: str,
    external_id: Optional[str] = None,
    editable_id: str = "",
    device_type: Optional[str] = None,
    department: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Profile:
    """Fully synthesized profile (scores, sub-scores, demographics) for ``profile_id``."""
    rng = SeededRandom(profile_id)
    anchor = to_utc_aware(now) if now is not None else now_utc()
    created_at = anchor - timedelta(days=rng.rand_int(1, 365, CREATED_AT_OFFSET))
    return Profile(
        profile_id=profile_id,
        external_id=external_id or profile_id,
        editable_id=editable_id,
        device_type=device_type,
        is_sample_profile=True,
        created_at_utc=isoformat_utc(created_at),
        department=department,
        scores=generate_health_scores(profile_id),
        sub_scores=generate_sub_scores(profile_id),
        demographics=synthesize_demographics(profile_id),
        source="demo",
    )


def create_demo_profiles(count: int = 57, now: Optional[datetime] = None) -> List[Profile]:
    """The demo organization served when no Sahha credentials are configured."""
    profiles = []
    for index in range(count):
        n = index + 1
        profiles.append(
            synthesize_profile(
                f"demo_profile_{n}",
                external_id=f"ext_{n}",
                editable_id=f"EMP-{n:03d}",
                device_type=DEVICE_TYPES[index % 2],
                department=demo_department(index).value,
                now=now,
            )
        )
    return profiles
