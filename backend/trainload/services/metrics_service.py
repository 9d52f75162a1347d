"""Activity metrics calculation service.

This service turns a decoded activity into its summary, implementing the
standard power-based training metrics:
- Normalized Power (NP)
- Intensity Factor (IF)
- Training Stress Score (TSS)
- Variability Index (VI)
- Elevation gain with spike filtering
- Power zone distribution

Every division guards against zero so that summaries never contain NaN or
infinite values.
"""

import math
from typing import Optional

from trainload.config import settings
from trainload.schemas.activity import ActivitySummary
from trainload.services.activity_decoder import RawActivity

MPS_TO_KMH = 3.6


def _finite(value: Optional[float]) -> float:
    if value is None or math.isnan(value) or math.isinf(value):
        return 0.0
    return float(value)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _reported(value: Optional[float]) -> Optional[float]:
    """Device total if it is a usable positive number, else None."""
    if value is None or math.isnan(value) or math.isinf(value) or value <= 0:
        return None
    return float(value)


def normalize_activity_type(sport: Optional[str]) -> str:
    """Map a device sport tag to one of the known activity types."""
    sport = (sport or "").strip().lower()
    if "cycl" in sport or "bik" in sport or "ride" in sport:
        return "cycling"
    if "run" in sport:
        return "running"
    if "swim" in sport:
        return "swimming"
    if "walk" in sport:
        return "walking"
    if "hik" in sport:
        return "hiking"
    if not sport or sport == "unknown":
        return "other"
    return sport


class MetricsService:
    """Calculate activity metrics from power, heart rate and GPS samples."""

    # Power zone percentages of FTP
    POWER_ZONES = {
        "zone_1": {"name": "Recovery", "min": 0, "max": 55},
        "zone_2": {"name": "Endurance", "min": 55, "max": 75},
        "zone_3": {"name": "Tempo", "min": 76, "max": 90},
        "zone_4": {"name": "Threshold", "min": 91, "max": 105},
        "zone_5": {"name": "VO2max", "min": 106, "max": 120},
        "zone_6": {"name": "Anaerobic", "min": 121, "max": float("inf")},
    }

    def __init__(
        self,
        np_window_seconds: int = settings.NP_WINDOW_SECONDS,
        elevation_spike_threshold: Optional[float] = settings.ELEVATION_SPIKE_THRESHOLD_M,
    ):
        self.np_window_seconds = np_window_seconds
        self.elevation_spike_threshold = elevation_spike_threshold

    def calculate_tss(
        self,
        duration_seconds: float,
        normalized_power: float,
        ftp: float
    ) -> float:
        """
        Calculate Training Stress Score (TSS).

        TSS quantifies the training load of a workout based on duration and intensity.
        TSS = (duration × NP × IF) / (FTP × 3600) × 100
        where IF (Intensity Factor) = NP / FTP

        Args:
            duration_seconds: Total duration of the workout in seconds
            normalized_power: Normalized Power in watts
            ftp: Functional Threshold Power in watts

        Returns:
            Training Stress Score, 0 when any input is missing or zero
        """
        if not ftp or ftp <= 0 or not duration_seconds or duration_seconds <= 0:
            return 0.0
        if not normalized_power or normalized_power <= 0:
            return 0.0

        intensity_factor = normalized_power / ftp
        return (duration_seconds * normalized_power * intensity_factor) / (ftp * 3600) * 100

    def calculate_intensity_factor(self, normalized_power: float, ftp: float) -> float:
        """
        Calculate Intensity Factor (IF).

        IF = NP / FTP
        IF of 1.0 means the workout was at FTP intensity.
        """
        if not ftp or ftp <= 0 or not normalized_power or normalized_power <= 0:
            return 0.0
        return normalized_power / ftp

    def calculate_variability_index(self, normalized_power: float, average_power: float) -> float:
        """VI = NP / average power, 1.0 when average power is zero."""
        if not average_power or average_power <= 0:
            return 1.0
        return normalized_power / average_power

    def calculate_normalized_power(
        self,
        power_data: list[Optional[float]],
        time_offsets: Optional[list[float]] = None,
    ) -> float:
        """
        Calculate Normalized Power (NP) from a power stream.

        NP accounts for the variability of power output during a ride.
        Algorithm:
        1. Calculate the rolling average of power over a 30-second window
        2. Raise each value to the 4th power
        3. Take the average of these values
        4. Take the 4th root

        The window is measured on the sample timestamps, so irregularly
        sampled devices are handled; with 1 Hz data it is identical to a
        30-sample window. A rolling value is only produced once the stream
        spans a full window.

        Args:
            power_data: Power values in watts; None entries are ignored
            time_offsets: Seconds from start for each value (1 Hz if omitted)

        Returns:
            Normalized Power in watts. With fewer than 30 power samples this
            is the arithmetic mean of the samples, or 0 if there are none.
        """
        if time_offsets is None:
            time_offsets = list(range(len(power_data)))

        points = [
            (float(t), float(p))
            for t, p in zip(time_offsets, power_data)
            if p is not None and p >= 0
        ]
        values = [p for _, p in points]
        window = self.np_window_seconds

        if len(points) < window:
            # Not enough data for rolling average, return average power
            return _mean(values)

        first_time = points[0][0]
        fourth_powers = []
        window_sum = 0.0
        left = 0
        for right, (t, p) in enumerate(points):
            window_sum += p
            while points[left][0] <= t - window:
                window_sum -= points[left][1]
                left += 1
            if t - first_time >= window - 1:
                rolling_avg = window_sum / (right - left + 1)
                fourth_powers.append(rolling_avg ** 4)

        if not fourth_powers:
            return _mean(values)

        avg_fourth_power = sum(fourth_powers) / len(fourth_powers)
        return avg_fourth_power ** 0.25

    def calculate_elevation_gain(self, elevations: list[Optional[float]]) -> float:
        """
        Sum of positive consecutive elevation deltas.

        Deltas at or above the spike threshold are treated as sensor noise
        or GPS jumps and skipped. A threshold of 0 or None keeps every delta.
        """
        threshold = self.elevation_spike_threshold
        gain = 0.0
        previous = None
        for elevation in elevations:
            if elevation is None:
                continue
            if previous is not None:
                diff = elevation - previous
                if diff > 0 and (not threshold or diff < threshold):
                    gain += diff
            previous = elevation
        return gain

    def estimate_tss(
        self,
        duration_seconds: float,
        avg_power: Optional[float] = None,
        ftp: Optional[float] = None,
        intensity_factor: Optional[float] = None,
        avg_heart_rate: Optional[float] = None,
        threshold_hr: Optional[float] = None,
    ) -> float:
        """
        Estimate TSS for an activity that carries no direct TSS.

        Preference order:
        1. Power-based, treating average power as NP
        2. Intensity-factor based
        3. Heart-rate ratio: minutes × (avgHR / thresholdHR)² × 100 / 60
        4. Duration only, assuming IF 0.7: minutes × 0.49 × 100 / 60

        All four give 100 for one hour at threshold.
        """
        if not duration_seconds or duration_seconds <= 0:
            return 0.0
        duration_minutes = duration_seconds / 60

        if avg_power and ftp and ftp > 0:
            return round(self.calculate_tss(duration_seconds, avg_power, ftp), 1)

        if intensity_factor and ftp and ftp > 0:
            return round(self.calculate_tss(duration_seconds, intensity_factor * ftp, ftp), 1)

        if avg_heart_rate and threshold_hr and threshold_hr > 0:
            hr_ratio = avg_heart_rate / threshold_hr
            return round(duration_minutes * hr_ratio * hr_ratio * 100 / 60, 1)

        return round(duration_minutes * 0.49 * 100 / 60, 1)

    def get_zone_for_power(self, power: float, ftp: float) -> str:
        """
        Determine which power zone a given power value falls into.

        Args:
            power: Power value in watts
            ftp: Functional Threshold Power in watts

        Returns:
            Zone key (e.g., "zone_1", "zone_4")
        """
        if ftp <= 0:
            raise ValueError("FTP must be greater than zero")

        percent_ftp = (power / ftp) * 100

        for zone_key, zone_info in self.POWER_ZONES.items():
            if percent_ftp <= zone_info["max"]:
                return zone_key

        return "zone_6"

    def analyze_power_distribution(
        self,
        power_data: list[Optional[float]],
        ftp: float
    ) -> dict[str, float]:
        """
        Analyze time spent in each power zone.

        Args:
            power_data: List of power values in watts
            ftp: Functional Threshold Power in watts

        Returns:
            Dictionary mapping zone names to percentage of samples
        """
        if not power_data or not ftp or ftp <= 0:
            return {zone: 0.0 for zone in self.POWER_ZONES}

        zone_counts = {zone: 0 for zone in self.POWER_ZONES}
        total_valid = 0

        for power in power_data:
            if power is not None and power >= 0:
                zone = self.get_zone_for_power(power, ftp)
                zone_counts[zone] += 1
                total_valid += 1

        if total_valid == 0:
            return {zone: 0.0 for zone in self.POWER_ZONES}

        return {
            zone: round((count / total_valid) * 100, 1)
            for zone, count in zone_counts.items()
        }

    @staticmethod
    def dominant_zone(distribution: Optional[dict[str, float]]) -> Optional[str]:
        """Short zone label ("z1".."z6") with the largest share, or None."""
        if not distribution:
            return None
        zone_key, share = max(distribution.items(), key=lambda item: item[1])
        if share <= 0:
            return None
        return "z" + zone_key.rsplit("_", 1)[-1]

    def summarize(self, raw: RawActivity, reference_ftp: Optional[float]) -> ActivitySummary:
        """
        Build the ActivitySummary for a decoded activity.

        Device-reported totals are preferred when present and positive; values the device
        did not report are computed from the samples.

        Args:
            raw: Decoded activity
            reference_ftp: Athlete FTP in watts; TSS/IF/VI are 0 without it

        Returns:
            Immutable ActivitySummary with every value finite
        """
        samples = raw.samples
        totals = raw.totals
        reported = {name: _reported(value) for name, value in vars(totals).items()}

        power_samples = [s for s in samples if s.power is not None and s.power >= 0]
        powers = [s.power for s in power_samples]
        heart_rates = [s.heart_rate for s in samples if s.heart_rate and s.heart_rate > 0]
        cadences = [s.cadence for s in samples if s.cadence and s.cadence > 0]
        speeds = [s.speed_kmh for s in samples if s.speed_kmh and s.speed_kmh > 0]
        distances = [
            s.cumulative_distance_m for s in samples
            if s.cumulative_distance_m is not None and s.cumulative_distance_m >= 0
        ]

        duration = max(0.0, _finite(raw.duration_seconds))
        distance = reported["total_distance"] or (max(distances) if distances else 0.0)
        elevation_gain = reported["total_ascent"] or self.calculate_elevation_gain(
            [s.elevation_m for s in samples]
        )

        avg_power = reported["avg_power"] or _mean(powers)
        max_power = reported["max_power"] or (max(powers) if powers else 0.0)
        normalized_power = reported["normalized_power"] or self.calculate_normalized_power(
            powers, [s.time_offset_seconds for s in power_samples]
        )
        avg_speed_kmh = reported["avg_speed_kmh"] or _mean(speeds)
        max_speed_kmh = reported["max_speed_kmh"] or (max(speeds) if speeds else 0.0)

        ftp = reference_ftp or 0
        if normalized_power > 0 and ftp > 0:
            intensity_factor = self.calculate_intensity_factor(normalized_power, ftp)
            tss = self.calculate_tss(duration, normalized_power, ftp)
            variability_index = self.calculate_variability_index(normalized_power, avg_power)
        else:
            intensity_factor = tss = variability_index = 0.0

        first_fix = next((s for s in samples if s.lat is not None and s.lon is not None), None)

        return ActivitySummary(
            activity_type=normalize_activity_type(raw.sport),
            start_time=raw.start_time,
            duration_seconds=int(round(duration)),
            distance_meters=round(_finite(distance), 2),
            elevation_gain_meters=round(_finite(elevation_gain), 2),
            calories=int(round(_finite(reported["total_calories"]))),
            avg_heart_rate=int(round(_finite(reported["avg_heart_rate"] or _mean(heart_rates)))),
            max_heart_rate=int(round(_finite(reported["max_heart_rate"] or (max(heart_rates) if heart_rates else 0)))),
            avg_power_watts=round(_finite(avg_power), 2),
            max_power_watts=round(_finite(max_power), 2),
            normalized_power=round(_finite(normalized_power), 2),
            avg_cadence=round(_finite(reported["avg_cadence"] or _mean(cadences)), 2),
            avg_speed_mps=round(_finite(avg_speed_kmh / MPS_TO_KMH), 2),
            max_speed_mps=round(_finite(max_speed_kmh / MPS_TO_KMH), 2),
            tss=round(_finite(tss), 2),
            intensity_factor=round(_finite(intensity_factor), 2),
            variability_index=round(_finite(variability_index), 2),
            start_lat=round(first_fix.lat, 2) if first_fix else None,
            start_lng=round(first_fix.lon, 2) if first_fix else None,
        )


# Create a singleton instance for convenience
metrics_service = MetricsService()
