"""Adaptive engine API router: daily state and adaptations."""

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from trainload.config import settings
from trainload.database import get_db
from trainload.models.activity import ImportedActivity
from trainload.models.athlete import Athlete
from trainload.models.metabolic_profile import MetabolicProfile
from trainload.models.planned_workout import PlannedWorkout
from trainload.routers.dependencies import get_athlete
from trainload.schemas.adaptive import (
    AdaptiveComputeRequest,
    AdaptiveComputeResponse,
    DailyStateResponse,
)
from trainload.services.adaptive_engine import (
    BaselineProfile,
    MissingBaselineProfileError,
    adaptive_engine,
)
from trainload.services.delta_service import ActualActivity, PlannedSession
from trainload.services.pmc_service import pmc_service
from trainload.services.state_store import daily_state_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/compute", response_model=AdaptiveComputeResponse)
async def compute_daily_state(
    request: Optional[AdaptiveComputeRequest] = None,
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
) -> AdaptiveComputeResponse:
    """
    Compute and store the athlete's state and adaptations for a date.

    Loads the activities and planned workouts of the window ending on the
    target date, runs the adaptive engine and overwrites any state already
    stored for that date.

    Args:
        request: Optional body with the target date (default today)
        athlete: Athlete to compute for
        db: Database session

    Returns:
        State, adaptations and the weekly delta summary

    Raises:
        HTTPException: 422 if the athlete has no metabolic profile
    """
    target_date = (request.date if request else None) or date.today()
    window_start = target_date - timedelta(days=settings.ADAPTIVE_WINDOW_DAYS)

    profile = db.query(MetabolicProfile).filter(MetabolicProfile.athlete_id == athlete.id).first()
    try:
        baseline = BaselineProfile.from_model(profile, athlete)
    except MissingBaselineProfileError as e:
        logger.error(str(e))
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    activities = (
        db.query(ImportedActivity)
        .filter(
            ImportedActivity.athlete_id == athlete.id,
            ImportedActivity.activity_date >= window_start,
            ImportedActivity.activity_date <= target_date,
        )
        .order_by(ImportedActivity.activity_datetime)
        .all()
    )
    planned_rows = (
        db.query(PlannedWorkout)
        .filter(
            PlannedWorkout.athlete_id == athlete.id,
            PlannedWorkout.date >= window_start,
            PlannedWorkout.date <= target_date,
        )
        .order_by(PlannedWorkout.date, PlannedWorkout.id)
        .all()
    )

    ftp = athlete.ftp or settings.DEFAULT_FTP
    threshold_hr = athlete.threshold_hr or settings.DEFAULT_THRESHOLD_HR
    actual = [
        ActualActivity.from_model(a, tss=pmc_service.activity_tss(a, ftp, threshold_hr))
        for a in activities
    ]
    planned_sessions = [PlannedSession.from_model(p) for p in planned_rows]
    planned_today = next((p for p in planned_sessions if p.date == target_date), None)

    result = adaptive_engine.compute(
        athlete.id,
        target_date,
        actual,
        planned_today,
        baseline,
        planned_sessions=planned_sessions,
    )
    daily_state_store.save(db, result.state, result.adaptations)

    return AdaptiveComputeResponse(
        date=target_date,
        state=result.state,
        adaptations=result.adaptations,
        deltas_summary=result.weekly_summary.to_dict(),
        deltas=[d.to_dict() for d in result.deltas],
    )


@router.get("/state", response_model=DailyStateResponse)
async def get_daily_state(
    state_date: Optional[date] = Query(None, alias="date", description="Date of the state (default today)"),
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
) -> DailyStateResponse:
    """
    Get the stored state and adaptations for a date.

    Raises:
        HTTPException: 404 if no state has been computed for the date
    """
    state_date = state_date or date.today()
    state, adaptations = daily_state_store.load(db, athlete.id, state_date)
    if state is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No daily state computed for {state_date}",
        )
    return DailyStateResponse(date=state_date, state=state, adaptations=adaptations)
