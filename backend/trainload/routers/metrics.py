"""Load chronicle API router for CTL/ATL/TSB tracking."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from trainload.config import settings
from trainload.database import get_db
from trainload.models.athlete import Athlete
from trainload.models.fitness_metric import FitnessMetric
from trainload.routers.dependencies import (
    get_athlete,
    get_chronicle_cache,
    invalidate_athlete_chronicles,
)
from trainload.schemas.metrics import (
    ChronicleResponse,
    ChronicleSummary,
    DayLoadResponse,
    FitnessMetricResponse,
    MetricsCalculateResponse,
)
from trainload.services.cache import ResultCache
from trainload.services.pmc_service import Chronicle, pmc_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _chronicle_response(athlete_id: int, chronicle: Chronicle) -> ChronicleResponse:
    current = chronicle.current_rounded()
    return ChronicleResponse(
        athlete_id=athlete_id,
        days=[DayLoadResponse(**day.to_dict()) for day in chronicle.days],
        summary=ChronicleSummary(
            current_ctl=current["ctl"],
            current_atl=current["atl"],
            current_tsb=current["tsb"],
            ramp_rate=round(chronicle.ramp_rate, 1),
            total_tss=round(chronicle.total_tss, 1),
            avg_tss=round(chronicle.avg_tss, 1),
            peak_tss=round(chronicle.peak_tss, 1),
            total_hours=round(chronicle.total_hours, 1),
        ),
    )


@router.get("/chronicle", response_model=ChronicleResponse)
async def get_chronicle(
    days: int = Query(settings.CHRONICLE_DEFAULT_DAYS, ge=1, le=730, description="Window length in days"),
    end_date: Optional[date] = Query(None, description="Last day of the window (default today)"),
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
    cache: ResultCache = Depends(get_chronicle_cache),
) -> ChronicleResponse:
    """
    Get the CTL/ATL/TSB chronicle for the athlete.

    The chronicle is computed from the stored activities; activities without
    TSS get an estimate. Results are cached per athlete, window and end date
    until the TTL expires or the athlete's activities change.

    Args:
        days: Number of days back from end_date
        end_date: Last day of the window
        athlete: Athlete to compute the chronicle for
        db: Database session
        cache: Chronicle cache owned by the application

    Returns:
        Daily loads and summary scalars
    """
    end_date = end_date or date.today()
    key = ("chronicle", athlete.id, days, end_date)

    def compute() -> ChronicleResponse:
        chronicle = pmc_service.chronicle_for_athlete(
            db,
            athlete.id,
            days=days,
            end_date=end_date,
            ftp=athlete.ftp or settings.DEFAULT_FTP,
            threshold_hr=athlete.threshold_hr or settings.DEFAULT_THRESHOLD_HR,
        )
        return _chronicle_response(athlete.id, chronicle)

    return cache.get_or_compute(key, compute)


@router.post("/recalculate", response_model=MetricsCalculateResponse)
async def recalculate_metrics(
    days: int = Query(settings.CHRONICLE_DEFAULT_DAYS, ge=7, le=730, description="Number of days to recalculate"),
    end_date: Optional[date] = Query(None, description="Last day of the window (default today)"),
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
    cache: ResultCache = Depends(get_chronicle_cache),
) -> MetricsCalculateResponse:
    """
    Recalculate and store daily fitness metrics (typically after an FTP change).

    Args:
        days: Number of days to recalculate
        end_date: Last day of the window
        athlete: Athlete to recalculate
        db: Database session
        cache: Chronicle cache, invalidated for the athlete

    Returns:
        Summary of recalculated metrics
    """
    logger.info(f"Recalculating metrics for athlete {athlete.id}, days={days}")

    chronicle, created, updated = pmc_service.calculate_fitness_history(
        db,
        athlete.id,
        days=days,
        end_date=end_date,
        ftp=athlete.ftp or settings.DEFAULT_FTP,
        threshold_hr=athlete.threshold_hr or settings.DEFAULT_THRESHOLD_HR,
    )
    invalidate_athlete_chronicles(cache, athlete.id)

    current = chronicle.current_rounded()
    return MetricsCalculateResponse(
        days_calculated=len(chronicle.days),
        metrics_created=created,
        metrics_updated=updated,
        current_ctl=current["ctl"],
        current_atl=current["atl"],
        current_tsb=current["tsb"],
        last_date=chronicle.days[-1].date if chronicle.days else None,
    )


@router.get("/current", response_model=FitnessMetricResponse)
async def get_current_metrics(
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
) -> FitnessMetric:
    """
    Get the most recent stored fitness metrics for the athlete.

    Raises:
        HTTPException: 404 if no metrics found
    """
    metric = pmc_service.get_latest_metrics(db, athlete.id)
    if not metric:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No fitness metrics found. Please calculate metrics first.",
        )
    return metric
