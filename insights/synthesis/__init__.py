"""Deterministic profile data synthesizer.

This package contains:
- A seeded, stateless random source keyed by profile id
- Static tables (score ranges, sub-score schema, archetype vocabulary)
- Generators for health scores, sub-scores and archetypes
- The demo organization used when no live Sahha data is available

Everything here is pure: the same profile id always yields the same output,
apart from timestamps anchored on an injectable ``now``.
"""

from .engine import SeededRandom, profile_seed
from .scores import generate_health_scores
from .subscores import generate_sub_scores
from .archetypes import (
    archetype_completeness,
    build_profile_archetypes,
    categorize_archetypes,
    classify_archetypes,
    data_quality,
    score_to_ordinality,
)
from .demo import create_demo_profiles, synthesize_profile
