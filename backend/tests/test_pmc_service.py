"""
Tests for the load chronicle: CTL/ATL recurrence, ramp rate, summary
scalars, TSS estimation for stored activities and persistence.
"""
from datetime import date, datetime, timedelta

import pytest

from trainload.models.activity import ImportedActivity
from trainload.models.fitness_metric import FitnessMetric
from trainload.services.pmc_service import Chronicle, DayLoad, PMCService

END = date(2024, 3, 31)


@pytest.fixture
def service():
    return PMCService()


def _activity(athlete_id, day, tss=None, duration=3600, **kwargs):
    return ImportedActivity(
        athlete_id=athlete_id,
        title="Ride",
        activity_type="cycling",
        source_format="fit",
        activity_date=day,
        activity_datetime=datetime.combine(day, datetime.min.time()).replace(hour=8),
        duration_seconds=duration,
        tss=tss,
        **kwargs,
    )


class TestBuildChronicle:
    """Tests for PMCService.build_chronicle."""

    def test_window_covers_every_day(self, service):
        chronicle = service.build_chronicle({}, 30, end_date=END)

        assert len(chronicle.days) == 31
        assert chronicle.days[0].date == END - timedelta(days=30)
        assert chronicle.days[-1].date == END
        assert all(d.ctl == 0 and d.atl == 0 for d in chronicle.days)

    def test_first_day_from_zero(self, service):
        start = END - timedelta(days=10)
        chronicle = service.build_chronicle({start: 100.0}, 10, end_date=END)

        assert chronicle.days[0].ctl == pytest.approx(100 / 42)
        assert chronicle.days[0].atl == pytest.approx(100 / 7)

    def test_tsb_is_ctl_minus_atl(self, service):
        daily = {END - timedelta(days=i): float(40 + i * 3) for i in range(0, 60, 2)}
        chronicle = service.build_chronicle(daily, 60, end_date=END)

        for day in chronicle.days:
            assert day.tsb == day.ctl - day.atl

    def test_rest_days_decay_without_going_negative(self, service):
        start = END - timedelta(days=30)
        chronicle = service.build_chronicle({start: 150.0}, 30, end_date=END)

        ctl_values = [d.ctl for d in chronicle.days]
        atl_values = [d.atl for d in chronicle.days]
        assert all(b < a for a, b in zip(ctl_values, ctl_values[1:]))
        assert all(b < a for a, b in zip(atl_values, atl_values[1:]))
        assert min(ctl_values + atl_values) > 0

    def test_negative_and_nan_tss_count_as_zero(self, service):
        chronicle = service.build_chronicle(
            {END - timedelta(days=1): -50.0, END: float("nan")}, 5, end_date=END
        )

        assert all(d.tss == 0 for d in chronicle.days)
        assert chronicle.days[-1].ctl == 0

    def test_dates_outside_window_are_ignored(self, service):
        chronicle = service.build_chronicle(
            {END - timedelta(days=100): 500.0, END + timedelta(days=1): 500.0}, 30, end_date=END
        )

        assert chronicle.total_tss == 0
        assert chronicle.days[-1].ctl == 0

    def test_ramp_rate_rises_with_steady_load(self, service):
        daily = {END - timedelta(days=i): 60.0 for i in range(43)}
        chronicle = service.build_chronicle(daily, 42, end_date=END)

        assert chronicle.ramp_rate == pytest.approx(chronicle.days[-1].ctl - chronicle.days[-8].ctl)
        assert chronicle.ramp_rate > 0

    def test_ramp_rate_falls_after_block(self, service):
        start = END - timedelta(days=42)
        daily = {start + timedelta(days=i): 100.0 for i in range(20)}
        chronicle = service.build_chronicle(daily, 42, end_date=END)

        assert chronicle.ramp_rate < 0

    def test_ramp_rate_zero_for_short_window(self, service):
        chronicle = service.build_chronicle({END: 100.0}, 5, end_date=END)

        assert len(chronicle.days) == 6
        assert chronicle.ramp_rate == 0.0

    def test_summary_scalars(self, service):
        daily = {END: 100.0, END - timedelta(days=2): 50.0}
        durations = {END: 5400.0, END - timedelta(days=2): 1800.0}
        chronicle = service.build_chronicle(daily, 14, end_date=END, daily_duration=durations)

        assert chronicle.total_tss == 150.0
        assert chronicle.avg_tss == 75.0
        assert chronicle.peak_tss == 100.0
        assert chronicle.total_hours == pytest.approx(2.0)
        assert chronicle.current_tsb == chronicle.current_ctl - chronicle.current_atl

    def test_rounded_output(self, service):
        chronicle = service.build_chronicle({END: 100.0}, 0, end_date=END)
        values = chronicle.days[0].to_dict()

        assert values["ctl"] == 2.4
        assert values["atl"] == 14.3
        assert values["tsb"] == -11.9

    def test_rounded_balance_matches_rounded_loads(self):
        values = DayLoad(date=END, tss=0.0, ctl=1.26, atl=1.14).to_dict()

        assert values["ctl"] == 1.3
        assert values["atl"] == 1.1
        assert values["tsb"] == 0.2

    def test_current_rounded(self, service):
        chronicle = service.build_chronicle({END: 100.0}, 0, end_date=END)

        assert chronicle.current_rounded() == {"ctl": 2.4, "atl": 14.3, "tsb": -11.9}
        assert Chronicle().current_rounded() == {"ctl": 0.0, "atl": 0.0, "tsb": 0.0}


class TestActivityTss:
    """Tests for stored-activity TSS."""

    def test_stored_value_used(self, service):
        assert service.activity_tss(_activity(1, END, tss=72.5), ftp=250) == 72.5

    def test_estimated_from_power(self, service):
        activity = _activity(1, END, tss=None, avg_power_watts=250.0)

        assert service.activity_tss(activity, ftp=250) == 100.0

    def test_zero_tss_is_estimated(self, service):
        activity = _activity(1, END, tss=0.0, avg_heart_rate=170)

        assert service.activity_tss(activity, ftp=None, threshold_hr=170) == 100.0

    def test_duration_only(self, service):
        assert service.activity_tss(_activity(1, END, tss=None)) == 49.0

    def test_aggregate_daily_sums_per_date(self, service):
        activities = [_activity(1, END, tss=40.0), _activity(1, END, tss=60.0, duration=1800)]
        daily_tss, daily_duration = service.aggregate_daily(activities)

        assert daily_tss == {END: 100.0}
        assert daily_duration == {END: 5400}


class TestPersistence:
    """Tests for chronicle queries and FitnessMetric upserts."""

    def test_chronicle_for_athlete(self, service, db_session, athlete):
        db_session.add_all([
            _activity(athlete.id, END, tss=80.0),
            _activity(athlete.id, END - timedelta(days=3), tss=None, avg_power_watts=200.0),
            _activity(athlete.id, END - timedelta(days=200), tss=500.0),
        ])
        db_session.commit()

        chronicle = service.chronicle_for_athlete(db_session, athlete.id, days=30, end_date=END, ftp=250)

        assert len(chronicle.days) == 31
        assert chronicle.total_tss == pytest.approx(80.0 + 64.0)

    def test_fitness_history_upsert(self, service, db_session, athlete):
        db_session.add(_activity(athlete.id, END, tss=80.0))
        db_session.commit()

        _, created, updated = service.calculate_fitness_history(db_session, athlete.id, days=10, end_date=END)
        assert (created, updated) == (11, 0)

        _, created, updated = service.calculate_fitness_history(db_session, athlete.id, days=10, end_date=END)
        assert (created, updated) == (0, 11)

        assert db_session.query(FitnessMetric).filter(FitnessMetric.athlete_id == athlete.id).count() == 11
        latest = service.get_latest_metrics(db_session, athlete.id)
        assert latest.date == END
        assert latest.daily_tss == 80.0
        assert latest.tsb == pytest.approx(latest.ctl - latest.atl, abs=0.11)
