"""
Tests for activity metrics: NP, TSS, IF, VI, elevation gain, TSS estimation
and activity summaries.
"""
import json
import math

import pytest

from trainload.services.activity_decoder import RawActivity, Sample, SessionTotals, decode_activity
from trainload.services.metrics_service import MetricsService, normalize_activity_type


@pytest.fixture
def service():
    return MetricsService(np_window_seconds=30, elevation_spike_threshold=50)


def _fixed_window_np(powers, window=30):
    rolling = [sum(powers[i - window + 1:i + 1]) / window for i in range(window - 1, len(powers))]
    return (sum(r ** 4 for r in rolling) / len(rolling)) ** 0.25


class TestNormalizedPower:
    """Tests for calculate_normalized_power."""

    def test_empty_stream(self, service):
        assert service.calculate_normalized_power([]) == 0.0

    def test_short_stream_is_mean(self, service):
        assert service.calculate_normalized_power([100, 200, 300]) == pytest.approx(200.0)

    def test_constant_power(self, service):
        assert service.calculate_normalized_power([200.0] * 3600) == pytest.approx(200.0)

    def test_matches_fixed_window_at_1hz(self, service):
        powers = [150.0 if (i // 60) % 2 == 0 else 300.0 for i in range(1200)]

        assert service.calculate_normalized_power(powers) == pytest.approx(_fixed_window_np(powers))

    def test_variable_power_exceeds_average(self, service):
        powers = [100.0 if (i // 30) % 2 == 0 else 400.0 for i in range(1800)]
        np_value = service.calculate_normalized_power(powers)

        assert np_value > sum(powers) / len(powers)

    def test_irregular_sampling_uses_timestamps(self, service):
        offsets = list(range(0, 122, 2))
        powers = [250.0] * len(offsets)

        assert service.calculate_normalized_power(powers, offsets) == pytest.approx(250.0)

    def test_missing_values_are_ignored(self, service):
        assert service.calculate_normalized_power([None, 100, None, 300]) == pytest.approx(200.0)


class TestTrainingStress:
    """Tests for TSS, IF and VI."""

    def test_one_hour_at_ftp_is_100(self, service):
        assert service.calculate_tss(3600, 250, 250) == pytest.approx(100.0)

    def test_tss_zero_without_ftp(self, service):
        assert service.calculate_tss(3600, 250, 0) == 0.0
        assert service.calculate_tss(3600, 0, 250) == 0.0
        assert service.calculate_tss(0, 250, 250) == 0.0

    def test_intensity_factor(self, service):
        assert service.calculate_intensity_factor(200, 250) == pytest.approx(0.8)
        assert service.calculate_intensity_factor(200, 0) == 0.0

    def test_variability_index_defaults_to_one(self, service):
        assert service.calculate_variability_index(210, 0) == 1.0
        assert service.calculate_variability_index(210, 200) == pytest.approx(1.05)


class TestElevationGain:
    """Tests for elevation gain with spike filtering."""

    def test_spikes_are_skipped(self, service):
        assert service.calculate_elevation_gain([100, 110, 105, 170, 175]) == pytest.approx(15.0)

    def test_threshold_disabled(self):
        service = MetricsService(elevation_spike_threshold=0)

        assert service.calculate_elevation_gain([100, 110, 105, 170, 175]) == pytest.approx(80.0)

    def test_missing_elevations(self, service):
        assert service.calculate_elevation_gain([None, 100, None, 120]) == pytest.approx(20.0)
        assert service.calculate_elevation_gain([]) == 0.0


class TestEstimateTss:
    """Tests for estimate_tss preference order."""

    def test_power_based(self, service):
        assert service.estimate_tss(3600, avg_power=250, ftp=250) == 100.0

    def test_intensity_factor_based(self, service):
        assert service.estimate_tss(3600, ftp=250, intensity_factor=1.0) == 100.0

    def test_heart_rate_based(self, service):
        assert service.estimate_tss(3600, avg_heart_rate=170, threshold_hr=170) == 100.0
        assert service.estimate_tss(3600, avg_heart_rate=136, threshold_hr=170) == 64.0

    def test_duration_only(self, service):
        assert service.estimate_tss(3600) == 49.0

    def test_no_duration(self, service):
        assert service.estimate_tss(0, avg_power=250, ftp=250) == 0.0


class TestPowerZones:
    """Tests for zone lookup and distribution."""

    def test_zone_boundaries(self, service):
        assert service.get_zone_for_power(100, 250) == "zone_1"
        assert service.get_zone_for_power(250, 250) == "zone_4"
        assert service.get_zone_for_power(400, 250) == "zone_6"

    def test_fractional_percentages_between_zones(self, service):
        # 75.5% of FTP sits between the Endurance and Tempo bounds
        assert service.get_zone_for_power(188.75, 250) == "zone_3"

    def test_zero_ftp_raises(self, service):
        with pytest.raises(ValueError):
            service.get_zone_for_power(200, 0)

    def test_distribution_sums_to_100(self, service):
        distribution = service.analyze_power_distribution([100, 150, 200, 250, 300, 350], 250)

        assert sum(distribution.values()) == pytest.approx(100.0, abs=0.5)

    def test_dominant_zone(self):
        distribution = {"zone_1": 10.0, "zone_2": 60.0, "zone_3": 30.0}

        assert MetricsService.dominant_zone(distribution) == "z2"
        assert MetricsService.dominant_zone({}) is None
        assert MetricsService.dominant_zone({"zone_1": 0.0}) is None


class TestActivityType:
    """Tests for normalize_activity_type."""

    @pytest.mark.parametrize("sport,expected", [
        ("Biking", "cycling"),
        ("cycling", "cycling"),
        ("Running", "running"),
        ("trail_running", "running"),
        ("Hiking", "hiking"),
        ("walking", "walking"),
        ("", "other"),
        (None, "other"),
        ("rowing", "rowing"),
    ])
    def test_mapping(self, sport, expected):
        assert normalize_activity_type(sport) == expected


class TestSummarize:
    """Tests for MetricsService.summarize."""

    def test_zero_samples(self, service):
        raw = RawActivity(file_format="json", sport="cycling", start_time=None)
        summary = service.summarize(raw, reference_ftp=250)

        assert summary.duration_seconds == 0
        assert summary.distance_meters == 0.0
        assert summary.tss == 0.0
        assert summary.intensity_factor == 0.0
        assert summary.start_lat is None

    def test_power_ride(self, service):
        samples = [
            Sample(time_offset_seconds=i, power=200.0, speed_kmh=36.0, heart_rate=140.0,
                   cadence=0.0 if i % 10 == 0 else 90.0, lat=45.123456, lon=9.876543)
            for i in range(3600)
        ]
        raw = RawActivity(
            file_format="fit",
            sport="cycling",
            start_time=None,
            samples=samples,
            totals=SessionTotals(total_timer_time=3600.0),
        )
        summary = service.summarize(raw, reference_ftp=250)

        assert summary.activity_type == "cycling"
        assert summary.normalized_power == pytest.approx(200.0)
        assert summary.intensity_factor == pytest.approx(0.8)
        assert summary.tss == pytest.approx(64.0)
        assert summary.variability_index == pytest.approx(1.0)
        assert summary.avg_speed_mps == pytest.approx(10.0)
        assert summary.avg_cadence == pytest.approx(90.0)
        assert summary.avg_heart_rate == 140
        assert summary.start_lat == 45.12
        assert summary.start_lng == 9.88

    def test_device_totals_preferred(self, service):
        samples = [Sample(time_offset_seconds=i, power=200.0) for i in range(60)]
        raw = RawActivity(
            file_format="fit",
            sport="cycling",
            start_time=None,
            samples=samples,
            totals=SessionTotals(total_timer_time=3600.0, avg_power=180.0,
                                 normalized_power=250.0, total_calories=900.0),
        )
        summary = service.summarize(raw, reference_ftp=250)

        assert summary.normalized_power == 250.0
        assert summary.avg_power_watts == 180.0
        assert summary.tss == pytest.approx(100.0)
        assert summary.calories == 900

    def test_no_ftp_means_no_stress_metrics(self, service):
        samples = [Sample(time_offset_seconds=i, power=200.0) for i in range(60)]
        raw = RawActivity(file_format="json", sport="cycling", start_time=None, samples=samples)
        summary = service.summarize(raw, reference_ftp=None)

        assert summary.normalized_power == pytest.approx(200.0)
        assert summary.tss == 0.0
        assert summary.variability_index == 0.0

    def test_values_are_finite(self, service):
        samples = [Sample(time_offset_seconds=0, power=0.0, speed_kmh=0.0)]
        raw = RawActivity(file_format="json", sport="running", start_time=None, samples=samples)
        summary = service.summarize(raw, reference_ftp=250)

        for value in summary.model_dump().values():
            if isinstance(value, float):
                assert math.isfinite(value)

    def test_negative_device_totals_fall_back_to_samples(self, service):
        samples = [
            Sample(time_offset_seconds=0, power=150.0, elevation_m=100.0, cumulative_distance_m=-5.0),
            Sample(time_offset_seconds=1, power=250.0, elevation_m=110.0, cumulative_distance_m=8.0),
        ]
        raw = RawActivity(
            file_format="json",
            sport="cycling",
            start_time=None,
            samples=samples,
            totals=SessionTotals(total_distance=-100.0, total_calories=-5.0,
                                 total_ascent=-20.0, avg_power=-180.0),
        )
        summary = service.summarize(raw, reference_ftp=250)

        assert summary.distance_meters == 8.0
        assert summary.calories == 0
        assert summary.elevation_gain_meters == 10.0
        assert summary.avg_power_watts == 200.0

    def test_json_payload_with_negative_totals(self, service):
        payload = {"sport": "cycling", "totals": {"total_calories": -5, "total_distance": -100}}
        raw = decode_activity(json.dumps(payload).encode(), filename="ride.json")

        summary = service.summarize(raw, reference_ftp=250)

        assert summary.calories == 0
        assert summary.distance_meters == 0.0
