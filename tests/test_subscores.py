from insights.schemas.profile import SENTINEL
from insights.synthesis import generate_sub_scores
from insights.synthesis.mappings import SUB_SCORE_BUCKETS


EXPECTED_UNITS = {
    "steps": "steps",
    "active_hours": "hrs",
    "active_calories": "kcal",
    "intense_activity_duration": "mins",
    "extended_inactivity": "",
    "floors_climbed": "floors",
    "sleep_duration": "hrs",
    "sleep_regularity": "%",
    "sleep_debt": "mins",
    "circadian_alignment": "hrs",
    "sleep_continuity": "%",
    "physical_recovery": "",
    "mental_recovery": "",
    "activity_regularity": "%",
    "walking_strain_capacity": "%",
    "exercise_strain_capacity": "%",
    "resting_heart_rate": "",
    "heart_rate_variability": "",
}

ALWAYS_UNAVAILABLE = {"physical_recovery", "mental_recovery", "resting_heart_rate", "heart_rate_variability"}
GATED = {"intense_activity_duration", "floors_climbed", "sleep_continuity"}


class TestSubScoreSchema:

    def test_bucket_field_order(self):
        sub_scores = generate_sub_scores("demo_profile_1")
        for bucket, names in SUB_SCORE_BUCKETS.items():
            assert [item.name for item in getattr(sub_scores, bucket)] == list(names)

    def test_bucket_sizes(self):
        sub_scores = generate_sub_scores("demo_profile_1")
        assert len(sub_scores.activity) == 6
        assert len(sub_scores.sleep) == 7
        assert len(sub_scores.mental_wellbeing) == 6
        assert len(sub_scores.readiness) == 8
        assert len(sub_scores.wellbeing) == 13

    def test_units(self):
        sub_scores = generate_sub_scores("demo_profile_3")
        for bucket in SUB_SCORE_BUCKETS:
            for item in getattr(sub_scores, bucket):
                assert item.unit == EXPECTED_UNITS[item.name]

    def test_mental_wellbeing_bucket_serializes_camel_case(self):
        dumped = generate_sub_scores("demo_profile_1").model_dump(by_alias=True)
        assert set(dumped) == {"activity", "sleep", "mentalWellbeing", "readiness", "wellbeing"}


class TestSubScoreValues:

    def test_deterministic_including_sentinels(self):
        for n in range(1, 20):
            profile_id = f"demo_profile_{n}"
            assert generate_sub_scores(profile_id) == generate_sub_scores(profile_id)

    def test_unavailable_biomarkers_are_always_sentinel(self):
        for n in range(1, 30):
            sub_scores = generate_sub_scores(f"demo_profile_{n}")
            for item in sub_scores.sleep + sub_scores.readiness + sub_scores.wellbeing:
                if item.name in ALWAYS_UNAVAILABLE:
                    assert item.value == SENTINEL
                    assert not item.is_available

    def test_gated_biomarkers_are_sometimes_missing(self):
        outcomes = set()
        for n in range(1, 58):
            for item in generate_sub_scores(f"demo_profile_{n}").activity:
                if item.name in GATED:
                    outcomes.add(item.value == SENTINEL)
        assert outcomes == {True, False}

    def test_extended_inactivity_is_composite(self):
        item = next(i for i in generate_sub_scores("demo_profile_1").activity if i.name == "extended_inactivity")
        hours, hrs, minutes, mins = item.value.split(" ")
        assert (hrs, mins) == ("hrs", "mins")
        assert 6 <= int(hours) <= 14
        assert 0 <= int(minutes) <= 59

    def test_shared_fields_agree_across_buckets(self):
        sub_scores = generate_sub_scores("demo_profile_7")
        by_bucket = {
            bucket: {item.name: item.value for item in getattr(sub_scores, bucket)}
            for bucket in SUB_SCORE_BUCKETS
        }
        assert by_bucket["activity"]["steps"] == by_bucket["mental_wellbeing"]["steps"] == by_bucket["wellbeing"]["steps"]
        assert by_bucket["sleep"]["sleep_debt"] == by_bucket["readiness"]["sleep_debt"] == by_bucket["wellbeing"]["sleep_debt"]
        assert by_bucket["activity"]["extended_inactivity"] == by_bucket["mental_wellbeing"]["extended_inactivity"]

    def test_numeric_ranges(self):
        for n in range(1, 58):
            values = {i.name: i.value for i in generate_sub_scores(f"demo_profile_{n}").wellbeing}
            assert 1000 <= values["steps"] <= 8000
            assert 5 <= values["sleep_duration"] <= 10
            assert 0 <= values["sleep_debt"] <= 120
            assert values["floors_climbed"] == SENTINEL or 1 <= values["floors_climbed"] <= 15
