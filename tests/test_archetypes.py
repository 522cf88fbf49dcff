from datetime import datetime, timezone

import pytest

from insights.schemas.profile import HealthScores
from insights.synthesis import (
    archetype_completeness,
    build_profile_archetypes,
    classify_archetypes,
    data_quality,
    generate_health_scores,
    score_to_ordinality,
)
from insights.synthesis.mappings import (
    ARCHETYPE_DEFINITIONS,
    ARCHETYPE_SCORE_SELECTOR,
    CATEGORICAL,
    ORDINAL,
    relevant_score,
    score_selector,
)

NOW = datetime(2025, 9, 16, 12, 0, tzinfo=timezone.utc)


def _archetypes(profile_id):
    return classify_archetypes(profile_id, f"ext-{profile_id}", generate_health_scores(profile_id), now=NOW)


class TestDefinitions:

    def test_fourteen_dimensions(self):
        assert len(ARCHETYPE_DEFINITIONS) == 14
        kinds = [d.data_type for d in ARCHETYPE_DEFINITIONS.values()]
        assert kinds.count(ORDINAL) == 10
        assert kinds.count(CATEGORICAL) == 4

    def test_ordinal_dimensions_have_four_ranks(self):
        for definition in ARCHETYPE_DEFINITIONS.values():
            if definition.is_ordinal:
                assert len(definition.values) == 4

    def test_every_ordinal_dimension_has_a_score_selector(self):
        ordinal = {name for name, d in ARCHETYPE_DEFINITIONS.items() if d.is_ordinal}
        assert set(ARCHETYPE_SCORE_SELECTOR) == ordinal

    @pytest.mark.parametrize(
        "name,field",
        [
            ("activity_level", "activity"),
            ("exercise_frequency", "activity"),
            ("sleep_efficiency", "sleep"),
            ("wake_schedule", "sleep"),
            ("mental_wellness", "mental_wellbeing"),
            ("overall_wellness", "wellbeing"),
            ("primary_exercise", None),
        ],
    )
    def test_score_selector(self, name, field):
        assert score_selector(name) == field

    def test_missing_score_reads_as_neutral(self):
        assert relevant_score("activity_level", HealthScores()) == 50
        assert relevant_score("activity_level", HealthScores(activity=80)) == 80

    def test_only_sleep_efficiency_requires_wearable(self):
        requiring = [name for name, d in ARCHETYPE_DEFINITIONS.items() if d.requires_wearable]
        assert requiring == ["sleep_efficiency"]


class TestOrdinality:

    @pytest.mark.parametrize(
        "score,perturbation,expected",
        [
            (0, 0, 0),      # clamped at the bottom
            (0, 2, 1),
            (63, 0, 1),
            (63, 1, 2),
            (63, 2, 3),
            (100, 2, 3),    # base 4 clamps to 3
            (100, 0, 3),
            (49, 3, 0),     # 3 % 3 == 0 -> -1
        ],
    )
    def test_score_to_ordinality(self, score, perturbation, expected):
        assert score_to_ordinality(score, perturbation) == expected

    def test_value_matches_ordinality(self):
        for n in range(1, 58):
            for archetype in _archetypes(f"demo_profile_{n}"):
                definition = ARCHETYPE_DEFINITIONS[archetype.name]
                if definition.is_ordinal:
                    assert archetype.value == definition.values[archetype.ordinality]
                else:
                    assert archetype.ordinality is None
                    assert archetype.value in definition.values


class TestClassifier:

    def test_demo_profile_1_pinned(self):
        archetypes = {a.name: a for a in _archetypes("demo_profile_1")}
        assert len(archetypes) == 11
        assert "activity_level" not in archetypes
        assert "sleep_quality" not in archetypes
        assert "sleep_pattern" not in archetypes
        assert archetypes["exercise_frequency"].value == "occasional_exerciser"
        assert archetypes["mental_wellness"].value == "fair_mental_wellness"
        assert archetypes["overall_wellness"].value == "fair_wellness"
        assert archetypes["sleep_duration"].value == "long_sleeper"

    def test_deterministic(self):
        for n in range(1, 20):
            assert _archetypes(f"demo_profile_{n}") == _archetypes(f"demo_profile_{n}")

    def test_metadata(self):
        archetype = _archetypes("demo_profile_1")[0]
        assert archetype.periodicity == "monthly"
        assert archetype.end_date_time == "2025-09-16T12:00:00.000Z"
        assert archetype.start_date_time == "2025-08-17T12:00:00.000Z"
        assert archetype.id == f"demo_profile_1-{archetype.name}-{list(ARCHETYPE_DEFINITIONS).index(archetype.name)}"
        assert archetype.external_id == "ext-demo_profile_1"

    def test_empty_id_does_not_raise(self):
        classify_archetypes("", "", HealthScores(), now=NOW)


class TestCompleteness:

    def test_demo_profile_1(self):
        assert archetype_completeness("demo_profile_1") == (True, 87)

    def test_range(self):
        for n in range(1, 58):
            has_wearable, completeness = archetype_completeness(f"demo_profile_{n}")
            assert 45 <= completeness <= 95
            if has_wearable:
                assert completeness >= 75

    def test_independent_of_archetype_count(self):
        entry = build_profile_archetypes(
            "demo_profile_1", "ext_1", generate_health_scores("demo_profile_1"), now=NOW
        )
        assert len(entry.archetypes) == 11
        assert entry.archetype_completeness == 87
        assert round(100 * len(entry.archetypes) / 14) == 79
        assert entry.archetype_completeness != round(100 * len(entry.archetypes) / 14)

    @pytest.mark.parametrize("completeness,label", [(95, "high"), (81, "high"), (80, "medium"), (61, "medium"), (60, "low")])
    def test_data_quality(self, completeness, label):
        assert data_quality(completeness) == label


class TestProfileArchetypes:

    def test_grouped_by_category(self):
        entry = build_profile_archetypes(
            "demo_profile_1", "ext_1", generate_health_scores("demo_profile_1"), editable_id="EMP-001", now=NOW
        )
        assert entry.editable_id == "EMP-001"
        assert entry.has_wearable_data is True
        assert entry.data_quality == "high"
        groups = entry.archetypes_by_category
        assert [a.name for a in groups.wellness] == ["mental_wellness", "overall_wellness"]
        assert {a.name for a in groups.exercise} <= {a.name for a in groups.activity}

    def test_editable_id_defaults_to_external_id(self):
        entry = build_profile_archetypes("demo_profile_2", "ext_2", HealthScores(), now=NOW)
        assert entry.editable_id == "ext_2"
