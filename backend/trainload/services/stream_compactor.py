"""Reduce a decoded sample stream to the compact form persisted with an activity."""

import math
from typing import Optional

from trainload.config import settings
from trainload.schemas.activity import CompactStream
from trainload.services.activity_decoder import Sample

KMH_TO_MPS = 1 / 3.6


def _as_int(value: Optional[float]) -> int:
    if value is None or math.isnan(value) or math.isinf(value):
        return 0
    return int(round(value))


def _speed_mps(speed_kmh: Optional[float]) -> float:
    if speed_kmh is None or math.isnan(speed_kmh) or math.isinf(speed_kmh):
        return 0.0
    return round(speed_kmh * KMH_TO_MPS * 10) / 10


def compact_samples(
    samples: list[Sample],
    sport: Optional[str] = None,
    max_points: int = settings.COMPACT_MAX_POINTS,
    max_gps_points: int = settings.COMPACT_MAX_GPS_POINTS,
) -> CompactStream:
    """
    Subsample a sample stream for storage.

    Data points are taken every ``stride`` samples where
    ``stride = ceil(n / max_points)``, each encoded as
    ``[time_s, power_w, heart_rate_bpm, cadence, speed_mps, elevation_m]``.
    Missing values are stored as 0. The GPS route is subsampled separately
    from the samples that carry both coordinates.

    Args:
        samples: Ordered samples of one activity
        sport: Sport tag stored alongside the stream
        max_points: Upper bound on data points
        max_gps_points: Upper bound on route points

    Returns:
        CompactStream holding the original point count ``n`` and stride ``r``
    """
    total = len(samples)
    stride = max(1, math.ceil(total / max_points)) if max_points > 0 else 1

    data_points = [
        [
            _as_int(s.time_offset_seconds),
            _as_int(s.power),
            _as_int(s.heart_rate),
            _as_int(s.cadence),
            _speed_mps(s.speed_kmh),
            _as_int(s.elevation_m),
        ]
        for s in samples[::stride]
    ][:max_points]

    located = [s for s in samples if s.lat is not None and s.lon is not None]
    gps_stride = max(1, math.ceil(len(located) / max_gps_points)) if max_gps_points > 0 else 1
    route = [
        [round(s.lat, 5), round(s.lon, 5)]
        for s in located[::gps_stride]
    ][:max_gps_points]

    return CompactStream(sport=sport, n=total, r=stride, gps=route, d=data_points)
