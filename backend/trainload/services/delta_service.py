"""
Planned versus actual workout deltas.

Each actual activity is matched to at most one planned session and the
differences in duration, load, energy and intensity are recorded. The
deltas feed the adaptive daily-state engine.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional, Sequence

from trainload.config import settings
from trainload.models.activity import ImportedActivity
from trainload.models.planned_workout import PlannedWorkout
from trainload.services.metrics_service import MetricsService, normalize_activity_type

logger = logging.getLogger(__name__)

# Zone labels and workout types mapped onto a 1-7 intensity scale
ZONE_INTENSITY = {
    "z1": 1, "recovery": 1,
    "z2": 2, "endurance": 2,
    "z3": 3, "tempo": 3,
    "z4": 4, "threshold": 4,
    "z5": 5, "vo2max": 5,
    "z6": 6, "anaerobic": 6,
    "z7": 7, "neuromuscular": 7, "sprint": 7,
}
DEFAULT_ZONE = "z2"


def zone_intensity(zone: Optional[str]) -> int:
    return ZONE_INTENSITY.get((zone or "").lower(), ZONE_INTENSITY[DEFAULT_ZONE])


@dataclass
class ActualActivity:
    """The parts of a completed activity the delta calculation needs."""

    id: Optional[int]
    activity_date: date
    sport: str
    duration_seconds: int = 0
    tss: float = 0.0
    calories: int = 0
    zones_distribution: Optional[dict] = None

    @classmethod
    def from_model(cls, activity: ImportedActivity, tss: Optional[float] = None) -> "ActualActivity":
        return cls(
            id=activity.id,
            activity_date=activity.activity_date,
            sport=activity.activity_type,
            duration_seconds=activity.duration_seconds or 0,
            tss=tss if tss is not None else (activity.tss or 0.0),
            calories=activity.calories or 0,
            zones_distribution=activity.zones_distribution,
        )


@dataclass
class PlannedSession:
    """A planned workout as seen by matching and by the adaptive engine."""

    date: date
    sport: str = "cycling"
    workout_type: Optional[str] = None
    duration_minutes: int = 0
    target_tss: float = 0.0
    target_zone: str = DEFAULT_ZONE
    estimated_kcal: int = 0
    id: Optional[int] = None

    @classmethod
    def from_model(cls, workout: PlannedWorkout) -> "PlannedSession":
        workout_type = workout.workout_type
        return cls(
            id=workout.id,
            date=workout.date,
            sport=workout.sport,
            workout_type=getattr(workout_type, "value", workout_type),
            duration_minutes=workout.duration_minutes or 0,
            target_tss=workout.target_tss or 0,
            target_zone=workout.target_zone or DEFAULT_ZONE,
            estimated_kcal=workout.estimated_kcal or 0,
        )


@dataclass
class ActivityDelta:
    """Difference between what was planned and what was done."""

    activity_id: Optional[int]
    planned_workout_id: Optional[int]
    delta_date: date
    # Planned values
    planned_duration_min: int
    planned_tss: float
    planned_kcal: int
    planned_zone: str
    # Actual values
    actual_duration_min: int
    actual_tss: float
    actual_kcal: int
    actual_avg_zone: str
    # Calculated deltas
    delta_duration_min: int
    delta_tss: float
    delta_kcal: int
    delta_intensity: float  # zone difference / 3
    delta_fatigue_score: int  # clamped to [-20, 30]

    @property
    def unplanned(self) -> bool:
        return self.planned_workout_id is None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class WeeklySummary:
    """Totals over a set of deltas."""

    total_delta_tss: float = 0.0
    total_delta_kcal: int = 0
    total_delta_duration: int = 0
    avg_intensity_delta: float = 0.0
    cumulative_fatigue: int = 0
    activities_count: int = 0
    unplanned_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MatchingPolicy:
    """
    How actual activities are paired with planned sessions.

    A pair is eligible when both fall on the same date, the normalized
    sports agree (unless ``require_same_sport`` is off) and the relative
    duration difference is within ``duration_tolerance``. A tolerance of
    None accepts any duration. Pairs are assigned closest duration first
    and every planned session is used at most once.
    """

    require_same_sport: bool = settings.MATCH_REQUIRE_SAME_SPORT
    duration_tolerance: Optional[float] = settings.MATCH_DURATION_TOLERANCE

    def duration_gap(self, activity: ActualActivity, planned: PlannedSession) -> Optional[float]:
        """Relative duration difference, or None when the pair is not eligible."""
        if activity.activity_date != planned.date:
            return None
        if self.require_same_sport and (
            normalize_activity_type(activity.sport) != normalize_activity_type(planned.sport)
        ):
            return None

        actual_minutes = activity.duration_seconds / 60
        gap = abs(actual_minutes - planned.duration_minutes) / max(planned.duration_minutes, 1)
        if self.duration_tolerance is not None and gap > self.duration_tolerance:
            return None
        return gap

    def match(
        self,
        activities: Sequence[ActualActivity],
        planned: Sequence[PlannedSession],
    ) -> list[Optional[PlannedSession]]:
        """Return the matched planned session for each activity, in order."""
        candidates = []
        for a_index, activity in enumerate(activities):
            for p_index, session in enumerate(planned):
                gap = self.duration_gap(activity, session)
                if gap is not None:
                    candidates.append((gap, a_index, p_index))

        matches: list[Optional[PlannedSession]] = [None] * len(activities)
        used_planned = set()
        for _, a_index, p_index in sorted(candidates):
            if matches[a_index] is None and p_index not in used_planned:
                matches[a_index] = planned[p_index]
                used_planned.add(p_index)
        return matches


def calculate_fatigue_score(delta_tss: float, delta_intensity: float) -> int:
    """
    Fatigue contribution of one activity.

    Every 10 TSS over plan adds one point; harder-than-planned sessions are
    amplified by up to 50%. The result is clamped to [-20, 30].
    """
    fatigue = delta_tss * 0.1
    if delta_intensity > 0:
        fatigue *= 1 + delta_intensity * 0.5
    return max(-20, min(30, int(round(fatigue))))


def calculate_activity_delta(
    activity: ActualActivity,
    planned: Optional[PlannedSession] = None,
) -> ActivityDelta:
    """
    Compare one activity with its planned session.

    Without a planned session the activity counts as unplanned: every
    planned value is zero and the planned zone is z2.
    """
    actual_duration_min = int(round(activity.duration_seconds / 60))
    actual_zone = MetricsService.dominant_zone(activity.zones_distribution) or DEFAULT_ZONE

    planned_duration = planned.duration_minutes if planned else 0
    planned_tss = planned.target_tss if planned else 0.0
    planned_kcal = planned.estimated_kcal if planned else 0
    planned_zone = (planned.target_zone if planned else None) or DEFAULT_ZONE

    delta_tss = activity.tss - planned_tss
    delta_intensity = (zone_intensity(actual_zone) - zone_intensity(planned_zone)) / 3

    return ActivityDelta(
        activity_id=activity.id,
        planned_workout_id=planned.id if planned else None,
        delta_date=activity.activity_date,
        planned_duration_min=planned_duration,
        planned_tss=planned_tss,
        planned_kcal=planned_kcal,
        planned_zone=planned_zone,
        actual_duration_min=actual_duration_min,
        actual_tss=activity.tss,
        actual_kcal=activity.calories,
        actual_avg_zone=actual_zone,
        delta_duration_min=actual_duration_min - planned_duration,
        delta_tss=delta_tss,
        delta_kcal=activity.calories - planned_kcal,
        delta_intensity=round(delta_intensity, 2),
        delta_fatigue_score=calculate_fatigue_score(delta_tss, delta_intensity),
    )


def calculate_deltas(
    activities: Sequence[ActualActivity],
    planned: Sequence[PlannedSession],
    policy: Optional[MatchingPolicy] = None,
) -> list[ActivityDelta]:
    """Match activities to planned sessions and compute their deltas by date."""
    policy = policy or MatchingPolicy()
    ordered = sorted(activities, key=lambda a: a.activity_date)
    matches = policy.match(ordered, planned)
    deltas = [calculate_activity_delta(a, p) for a, p in zip(ordered, matches)]
    logger.debug(
        f"Computed {len(deltas)} deltas, {sum(1 for d in deltas if d.unplanned)} unplanned"
    )
    return deltas


def calculate_weekly_summary(deltas: Sequence[ActivityDelta]) -> WeeklySummary:
    """Aggregate a set of deltas."""
    if not deltas:
        return WeeklySummary()

    total_intensity = sum(d.delta_intensity for d in deltas)
    return WeeklySummary(
        total_delta_tss=sum(d.delta_tss for d in deltas),
        total_delta_kcal=sum(d.delta_kcal for d in deltas),
        total_delta_duration=sum(d.delta_duration_min for d in deltas),
        avg_intensity_delta=round(total_intensity / len(deltas), 2),
        cumulative_fatigue=int(round(sum(d.delta_fatigue_score for d in deltas))),
        activities_count=len(deltas),
        unplanned_count=sum(1 for d in deltas if d.unplanned),
    )
