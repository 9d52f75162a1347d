"""
Load chronicle (Performance Management Chart) service.

Builds the day-indexed CTL/ATL/TSB series from daily Training Stress Scores:
- CTL (Chronic Training Load) - "Fitness", 42-day time constant
- ATL (Acute Training Load) - "Fatigue", 7-day time constant
- TSB (Training Stress Balance) - "Form", CTL - ATL
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Mapping, Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from trainload.config import settings
from trainload.models.activity import ImportedActivity
from trainload.models.fitness_metric import FitnessMetric
from trainload.services.metrics_service import MetricsService, metrics_service

logger = logging.getLogger(__name__)


@dataclass
class DayLoad:
    """Load values for one calendar day. TSB is derived, never stored apart."""

    date: date
    tss: float
    ctl: float
    atl: float

    @property
    def tsb(self) -> float:
        return self.ctl - self.atl

    def to_dict(self) -> dict:
        """Values rounded to one decimal; tsb comes from the rounded ctl and atl."""
        ctl = round(self.ctl, 1)
        atl = round(self.atl, 1)
        return {
            "date": self.date,
            "tss": round(self.tss, 1),
            "ctl": ctl,
            "atl": atl,
            "tsb": round(ctl - atl, 1),
        }


@dataclass
class Chronicle:
    """A chronicle window plus its summary scalars."""

    days: list[DayLoad] = field(default_factory=list)
    ramp_rate: float = 0.0
    total_tss: float = 0.0
    avg_tss: float = 0.0
    peak_tss: float = 0.0
    total_hours: float = 0.0

    @property
    def current_ctl(self) -> float:
        return self.days[-1].ctl if self.days else 0.0

    @property
    def current_atl(self) -> float:
        return self.days[-1].atl if self.days else 0.0

    @property
    def current_tsb(self) -> float:
        return self.days[-1].tsb if self.days else 0.0

    def current_rounded(self) -> dict:
        """Rounded ctl, atl and tsb of the last day (zeros for an empty window)."""
        if not self.days:
            return {"ctl": 0.0, "atl": 0.0, "tsb": 0.0}
        values = self.days[-1].to_dict()
        return {key: values[key] for key in ("ctl", "atl", "tsb")}


def _load_value(value: Optional[float]) -> float:
    if value is None or math.isnan(value) or math.isinf(value):
        return 0.0
    return max(0.0, float(value))


class PMCService:
    """Compute and persist CTL/ATL/TSB chronicles."""

    CTL_TIME_CONSTANT = 42  # Days for Chronic Training Load
    ATL_TIME_CONSTANT = 7  # Days for Acute Training Load
    RAMP_RATE_DAYS = 7

    def __init__(self, metrics: MetricsService = metrics_service):
        self.metrics = metrics

    def build_chronicle(
        self,
        daily_tss: Mapping[date, float],
        window_days: int,
        end_date: Optional[date] = None,
        daily_duration: Optional[Mapping[date, float]] = None,
    ) -> Chronicle:
        """
        Run the CTL/ATL recurrence over every day of a window.

        The window covers ``end_date - window_days`` through ``end_date``
        inclusive. Both loads are seeded at 0 on the first day and advanced
        once per calendar day; days without activity count as TSS 0, so the
        loads decay toward zero during rest.

        CTL_today = CTL_yesterday + (TSS_today - CTL_yesterday) / 42
        ATL_today = ATL_yesterday + (TSS_today - ATL_yesterday) / 7

        Args:
            daily_tss: TSS per date; dates outside the window are ignored
            window_days: Number of days back from end_date
            end_date: Last day of the window (default today)
            daily_duration: Optional moving time per date in seconds

        Returns:
            Chronicle with one DayLoad per day and the summary scalars
        """
        end_date = end_date or date.today()
        window_days = max(0, window_days)
        daily_duration = daily_duration or {}
        start_date = end_date - timedelta(days=window_days)

        chronicle = Chronicle()
        ctl = 0.0
        atl = 0.0
        active_days = 0
        total_seconds = 0.0

        current_date = start_date
        while current_date <= end_date:
            tss = _load_value(daily_tss.get(current_date))
            ctl = ctl + (tss - ctl) / self.CTL_TIME_CONSTANT
            atl = atl + (tss - atl) / self.ATL_TIME_CONSTANT
            chronicle.days.append(DayLoad(date=current_date, tss=tss, ctl=ctl, atl=atl))

            if tss > 0:
                chronicle.total_tss += tss
                chronicle.peak_tss = max(chronicle.peak_tss, tss)
                active_days += 1
            total_seconds += _load_value(daily_duration.get(current_date))
            current_date += timedelta(days=1)

        if len(chronicle.days) > self.RAMP_RATE_DAYS:
            week_ago = chronicle.days[-(self.RAMP_RATE_DAYS + 1)]
            chronicle.ramp_rate = chronicle.days[-1].ctl - week_ago.ctl

        chronicle.avg_tss = chronicle.total_tss / active_days if active_days else 0.0
        chronicle.total_hours = total_seconds / 3600
        return chronicle

    def activity_tss(
        self,
        activity: ImportedActivity,
        ftp: Optional[float] = None,
        threshold_hr: Optional[float] = None,
    ) -> float:
        """TSS of a stored activity, estimated when the activity carries none."""
        if activity.tss:
            return activity.tss

        estimated = self.metrics.estimate_tss(
            duration_seconds=activity.duration_seconds or 0,
            avg_power=activity.avg_power_watts,
            ftp=ftp,
            intensity_factor=activity.intensity_factor,
            avg_heart_rate=activity.avg_heart_rate,
            threshold_hr=threshold_hr,
        )
        logger.debug(f"Estimated TSS {estimated} for activity {activity.id}")
        return estimated

    def aggregate_daily(
        self,
        activities: Iterable[ImportedActivity],
        ftp: Optional[float] = None,
        threshold_hr: Optional[float] = None,
    ) -> tuple[dict[date, float], dict[date, float]]:
        """Sum TSS and duration (seconds) per activity date."""
        daily_tss: dict[date, float] = {}
        daily_duration: dict[date, float] = {}
        for activity in activities:
            day = activity.activity_date
            daily_tss[day] = daily_tss.get(day, 0.0) + self.activity_tss(activity, ftp, threshold_hr)
            daily_duration[day] = daily_duration.get(day, 0.0) + (activity.duration_seconds or 0)
        return daily_tss, daily_duration

    def chronicle_for_athlete(
        self,
        db: Session,
        athlete_id: int,
        days: int = settings.CHRONICLE_DEFAULT_DAYS,
        end_date: Optional[date] = None,
        ftp: Optional[float] = None,
        threshold_hr: Optional[float] = None,
    ) -> Chronicle:
        """
        Build the chronicle for an athlete from the stored activities.

        Args:
            db: Database session
            athlete_id: Athlete ID
            days: Window length in days
            end_date: Last day of the window (default today)
            ftp: FTP used to estimate TSS for activities without one
            threshold_hr: Threshold heart rate used for the same estimate

        Returns:
            Chronicle over the window
        """
        end_date = end_date or date.today()
        start_date = end_date - timedelta(days=days)

        activities = (
            db.query(ImportedActivity)
            .filter(
                and_(
                    ImportedActivity.athlete_id == athlete_id,
                    ImportedActivity.activity_date >= start_date,
                    ImportedActivity.activity_date <= end_date,
                )
            )
            .all()
        )

        daily_tss, daily_duration = self.aggregate_daily(activities, ftp, threshold_hr)
        return self.build_chronicle(daily_tss, days, end_date=end_date, daily_duration=daily_duration)

    def calculate_fitness_history(
        self,
        db: Session,
        athlete_id: int,
        days: int = settings.CHRONICLE_DEFAULT_DAYS,
        end_date: Optional[date] = None,
        ftp: Optional[float] = None,
        threshold_hr: Optional[float] = None,
    ) -> tuple[Chronicle, int, int]:
        """
        Calculate the chronicle and store one FitnessMetric per day.

        Existing rows for the same athlete and date are updated in place.

        Returns:
            Tuple of (chronicle, metrics created, metrics updated)
        """
        chronicle = self.chronicle_for_athlete(db, athlete_id, days, end_date, ftp, threshold_hr)
        if not chronicle.days:
            return chronicle, 0, 0

        existing = (
            db.query(FitnessMetric)
            .filter(
                and_(
                    FitnessMetric.athlete_id == athlete_id,
                    FitnessMetric.date >= chronicle.days[0].date,
                    FitnessMetric.date <= chronicle.days[-1].date,
                )
            )
            .all()
        )
        existing_metrics = {m.date: m for m in existing}

        created = 0
        updated = 0
        for day in chronicle.days:
            values = day.to_dict()
            metric = existing_metrics.get(day.date)
            if metric:
                metric.daily_tss = values["tss"]
                metric.ctl = values["ctl"]
                metric.atl = values["atl"]
                metric.tsb = values["tsb"]
                updated += 1
            else:
                db.add(FitnessMetric(
                    athlete_id=athlete_id,
                    date=day.date,
                    daily_tss=values["tss"],
                    ctl=values["ctl"],
                    atl=values["atl"],
                    tsb=values["tsb"],
                ))
                created += 1

        db.commit()
        logger.info(
            f"Fitness history for athlete {athlete_id}: {created} created, {updated} updated"
        )
        return chronicle, created, updated

    def get_latest_metrics(self, db: Session, athlete_id: int) -> Optional[FitnessMetric]:
        """Most recent stored FitnessMetric for an athlete, if any."""
        return (
            db.query(FitnessMetric)
            .filter(FitnessMetric.athlete_id == athlete_id)
            .order_by(FitnessMetric.date.desc())
            .first()
        )


# Create a singleton instance for convenience
pmc_service = PMCService()
