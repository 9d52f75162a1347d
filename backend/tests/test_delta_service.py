"""Tests for planned-versus-actual matching and deltas."""

from datetime import date, timedelta

import pytest

from trainload.services.delta_service import (
    ActualActivity,
    MatchingPolicy,
    PlannedSession,
    calculate_activity_delta,
    calculate_deltas,
    calculate_fatigue_score,
    calculate_weekly_summary,
)

DAY = date(2024, 5, 10)


def _actual(minutes, sport="cycling", day=DAY, tss=60.0, calories=600, zones=None, activity_id=None):
    return ActualActivity(
        id=activity_id,
        activity_date=day,
        sport=sport,
        duration_seconds=minutes * 60,
        tss=tss,
        calories=calories,
        zones_distribution=zones,
    )


def _planned(minutes, sport="cycling", day=DAY, tss=60.0, zone="z2", kcal=500, planned_id=None):
    return PlannedSession(
        id=planned_id,
        date=day,
        sport=sport,
        duration_minutes=minutes,
        target_tss=tss,
        target_zone=zone,
        estimated_kcal=kcal,
    )


class TestFatigueScore:
    """Tests for calculate_fatigue_score."""

    def test_ten_tss_per_point(self):
        assert calculate_fatigue_score(50, 0) == 5

    def test_intensity_amplifies(self):
        assert calculate_fatigue_score(50, 1 / 3) == 6

    def test_negative_intensity_does_not_amplify(self):
        assert calculate_fatigue_score(50, -0.67) == 5

    def test_clamped(self):
        assert calculate_fatigue_score(1000, 0) == 30
        assert calculate_fatigue_score(-1000, 0) == -20


class TestActivityDelta:
    """Tests for calculate_activity_delta."""

    def test_unplanned_activity(self):
        delta = calculate_activity_delta(_actual(90, tss=120.0, calories=900, activity_id=7))

        assert delta.unplanned
        assert delta.planned_duration_min == 0
        assert delta.planned_tss == 0
        assert delta.planned_zone == "z2"
        assert delta.delta_tss == 120.0
        assert delta.delta_kcal == 900
        assert delta.delta_duration_min == 90
        assert delta.delta_fatigue_score == 12

    def test_harder_than_planned(self):
        actual = _actual(60, tss=90.0, zones={"zone_2": 20.0, "zone_4": 80.0})
        delta = calculate_activity_delta(actual, _planned(60, tss=60.0, zone="z2", planned_id=3))

        assert not delta.unplanned
        assert delta.planned_workout_id == 3
        assert delta.actual_avg_zone == "z4"
        assert delta.delta_intensity == 0.67
        assert delta.delta_tss == 30.0
        assert delta.delta_fatigue_score == 4

    def test_missing_zone_data_defaults_to_z2(self):
        delta = calculate_activity_delta(_actual(60, zones={}), _planned(60, zone="z2"))

        assert delta.actual_avg_zone == "z2"
        assert delta.delta_intensity == 0.0

    def test_to_dict(self):
        values = calculate_activity_delta(_actual(60)).to_dict()

        assert values["delta_date"] == DAY
        assert "delta_fatigue_score" in values


class TestMatchingPolicy:
    """Tests for MatchingPolicy."""

    def test_closest_duration_first(self):
        activities = [_actual(60, activity_id=1), _actual(120, activity_id=2)]
        planned = [_planned(110, planned_id=10), _planned(65, planned_id=11)]

        matches = MatchingPolicy().match(activities, planned)

        assert [m.id for m in matches] == [11, 10]

    def test_planned_session_used_once(self):
        activities = [_actual(60, activity_id=1), _actual(62, activity_id=2)]
        planned = [_planned(60, planned_id=10)]

        matches = MatchingPolicy().match(activities, planned)

        assert matches[0].id == 10
        assert matches[1] is None

    def test_different_date_never_matches(self):
        activity = _actual(60, day=DAY)
        planned = _planned(60, day=DAY + timedelta(days=1))

        assert MatchingPolicy().duration_gap(activity, planned) is None

    def test_sport_must_agree(self):
        activity = _actual(60, sport="Running")
        planned = _planned(60, sport="cycling")

        assert MatchingPolicy(require_same_sport=True).duration_gap(activity, planned) is None
        assert MatchingPolicy(require_same_sport=False).duration_gap(activity, planned) == 0.0

    def test_sport_tags_are_normalized(self):
        assert MatchingPolicy().duration_gap(_actual(60, sport="Biking"), _planned(60)) == 0.0

    def test_duration_tolerance(self):
        activity = _actual(60)
        planned = _planned(200)

        assert MatchingPolicy(duration_tolerance=0.5).duration_gap(activity, planned) is None
        assert MatchingPolicy(duration_tolerance=None).duration_gap(activity, planned) == pytest.approx(0.7)


class TestCalculateDeltas:
    """Tests for calculate_deltas and calculate_weekly_summary."""

    def test_sorted_by_date(self):
        activities = [_actual(60, day=DAY), _actual(60, day=DAY - timedelta(days=2))]

        deltas = calculate_deltas(activities, [])

        assert [d.delta_date for d in deltas] == [DAY - timedelta(days=2), DAY]
        assert all(d.unplanned for d in deltas)

    def test_weekly_summary(self):
        activities = [
            _actual(60, tss=100.0, calories=800),
            _actual(30, day=DAY - timedelta(days=1), tss=40.0, calories=300),
        ]
        planned = [_planned(60, tss=80.0, kcal=700, planned_id=1)]

        summary = calculate_weekly_summary(calculate_deltas(activities, planned))

        assert summary.activities_count == 2
        assert summary.unplanned_count == 1
        assert summary.total_delta_tss == pytest.approx(60.0)
        assert summary.total_delta_kcal == 400
        assert summary.total_delta_duration == 30
        assert summary.cumulative_fatigue == 6

    def test_empty_summary(self):
        summary = calculate_weekly_summary([])

        assert summary.activities_count == 0
        assert summary.cumulative_fatigue == 0
