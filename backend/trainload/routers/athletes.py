"""Athletes API router: reference thresholds, metabolic profile and planned workouts."""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from trainload.database import get_db
from trainload.models.athlete import Athlete
from trainload.models.metabolic_profile import MetabolicProfile
from trainload.models.planned_workout import PlannedWorkout
from trainload.routers.dependencies import get_athlete
from trainload.schemas.athlete import (
    AthleteCreate,
    AthleteResponse,
    MetabolicProfileResponse,
    MetabolicProfileUpsert,
    PlannedWorkoutCreate,
    PlannedWorkoutResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=AthleteResponse, status_code=status.HTTP_201_CREATED)
async def create_athlete(
    athlete_data: AthleteCreate,
    db: Session = Depends(get_db),
) -> Athlete:
    """Create an athlete."""
    athlete = Athlete(**athlete_data.model_dump())
    db.add(athlete)
    db.commit()
    db.refresh(athlete)

    logger.info(f"Created athlete {athlete.id}")
    return athlete


@router.get("/{athlete_id}", response_model=AthleteResponse)
async def read_athlete(athlete: Athlete = Depends(get_athlete)) -> Athlete:
    """Get an athlete by ID."""
    return athlete


@router.put("/{athlete_id}", response_model=AthleteResponse)
async def update_athlete(
    athlete_data: AthleteCreate,
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
) -> Athlete:
    """
    Update the athlete's reference thresholds.

    Only fields present in the request body are changed.
    """
    for field, value in athlete_data.model_dump(exclude_unset=True).items():
        setattr(athlete, field, value)
    db.commit()
    db.refresh(athlete)
    return athlete


@router.put("/{athlete_id}/metabolic-profile", response_model=MetabolicProfileResponse)
async def upsert_metabolic_profile(
    profile_data: MetabolicProfileUpsert,
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
) -> MetabolicProfile:
    """Create or replace the athlete's baseline metabolic profile."""
    profile = db.query(MetabolicProfile).filter(MetabolicProfile.athlete_id == athlete.id).first()
    if profile:
        for field, value in profile_data.model_dump().items():
            setattr(profile, field, value)
    else:
        profile = MetabolicProfile(athlete_id=athlete.id, **profile_data.model_dump())
        db.add(profile)

    db.commit()
    db.refresh(profile)
    return profile


@router.post(
    "/{athlete_id}/planned-workouts",
    response_model=PlannedWorkoutResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_planned_workout(
    workout_data: PlannedWorkoutCreate,
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
) -> PlannedWorkout:
    """Schedule a planned workout for the athlete."""
    workout = PlannedWorkout(athlete_id=athlete.id, **workout_data.model_dump())
    db.add(workout)
    db.commit()
    db.refresh(workout)
    return workout


@router.get("/{athlete_id}/planned-workouts", response_model=List[PlannedWorkoutResponse])
async def list_planned_workouts(
    from_date: Optional[date] = Query(None, description="First date to include"),
    to_date: Optional[date] = Query(None, description="Last date to include"),
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
) -> List[PlannedWorkout]:
    """List the athlete's planned workouts, oldest first."""
    query = db.query(PlannedWorkout).filter(PlannedWorkout.athlete_id == athlete.id)
    if from_date:
        query = query.filter(PlannedWorkout.date >= from_date)
    if to_date:
        query = query.filter(PlannedWorkout.date <= to_date)
    return query.order_by(PlannedWorkout.date).all()
