"""Tests for stream compaction."""

from trainload.services.activity_decoder import Sample
from trainload.services.stream_compactor import compact_samples


class TestCompactSamples:
    """Tests for compact_samples."""

    def test_one_hour_at_1hz(self):
        samples = [Sample(time_offset_seconds=i, power=200.0) for i in range(3600)]
        stream = compact_samples(samples, sport="cycling", max_points=300)

        assert stream.n == 3600
        assert stream.r == 12
        assert len(stream.d) <= 300
        assert stream.d[0][0] == 0
        assert 3599 - stream.d[-1][0] <= stream.r

    def test_short_stream_keeps_every_sample(self):
        samples = [Sample(time_offset_seconds=i, heart_rate=120.0) for i in range(10)]
        stream = compact_samples(samples, max_points=300)

        assert stream.r == 1
        assert [point[0] for point in stream.d] == list(range(10))

    def test_point_encoding(self):
        samples = [Sample(time_offset_seconds=5, power=251.6, heart_rate=142.0, cadence=88.4,
                          speed_kmh=25.0, elevation_m=312.7)]
        stream = compact_samples(samples)

        assert stream.d == [[5, 252, 142, 88, 6.9, 313]]

    def test_missing_values_stored_as_zero(self):
        stream = compact_samples([Sample(time_offset_seconds=0)])

        assert stream.d == [[0, 0, 0, 0, 0.0, 0]]

    def test_gps_route_is_bounded_and_rounded(self):
        samples = [
            Sample(
                time_offset_seconds=i,
                lat=45.1234567 + i * 1e-5 if i % 2 == 0 else None,
                lon=9.7654321 if i % 2 == 0 else None,
            )
            for i in range(1000)
        ]
        stream = compact_samples(samples, max_gps_points=100)

        assert 0 < len(stream.gps) <= 100
        assert stream.gps[0] == [round(45.1234567, 5), round(9.7654321, 5)]
        for lat, lon in stream.gps:
            assert round(lat, 5) == lat
            assert round(lon, 5) == lon

    def test_empty_stream(self):
        stream = compact_samples([], sport="running")

        assert stream.n == 0
        assert stream.r == 1
        assert stream.d == []
        assert stream.gps == []
        assert stream.sport == "running"
