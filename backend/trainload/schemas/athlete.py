"""Pydantic schemas for athletes, metabolic profiles and planned workouts."""

from datetime import date as date_type, datetime
from typing import Optional

from pydantic import BaseModel, Field

from trainload.models.planned_workout import WorkoutType


class AthleteBase(BaseModel):
    """Reference thresholds of an athlete."""

    name: Optional[str] = Field(None, max_length=255, description="Display name")
    ftp: Optional[int] = Field(None, ge=0, le=2000, description="Functional Threshold Power in watts")
    threshold_hr: Optional[int] = Field(None, ge=0, le=250, description="Threshold heart rate in bpm")
    weight_kg: Optional[float] = Field(None, gt=0, le=300, description="Body weight in kg")


class AthleteCreate(AthleteBase):
    """Schema for creating an athlete."""
    pass


class AthleteResponse(AthleteBase):
    """Schema for athlete API responses."""

    id: int = Field(..., description="Athlete ID")
    created_at: datetime = Field(..., description="Created timestamp")

    class Config:
        from_attributes = True


class MetabolicProfileBase(BaseModel):
    """Baseline energy expenditure."""

    bmr: float = Field(..., gt=0, description="Basal metabolic rate in kcal/day")
    daily_kcal: Optional[float] = Field(None, gt=0, description="Estimated daily expenditure in kcal")
    weight_kg: Optional[float] = Field(None, gt=0, le=300, description="Body weight in kg")


class MetabolicProfileUpsert(MetabolicProfileBase):
    """Schema for creating or replacing the metabolic profile."""
    pass


class MetabolicProfileResponse(MetabolicProfileBase):
    """Schema for metabolic profile responses."""

    id: int = Field(..., description="Profile ID")
    athlete_id: int = Field(..., description="Athlete ID")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class PlannedWorkoutBase(BaseModel):
    """Base schema for planned workout data."""

    date: date_type = Field(..., description="Workout date")
    name: str = Field(..., max_length=255, description="Workout name")
    sport: str = Field("cycling", max_length=50, description="Sport of the session")
    workout_type: WorkoutType = Field(WorkoutType.ENDURANCE, description="Type of workout")
    duration_minutes: int = Field(..., ge=1, le=1440, description="Duration in minutes")
    description: Optional[str] = Field(None, description="Workout description")
    target_tss: Optional[int] = Field(None, ge=0, description="Target TSS")
    target_zone: Optional[str] = Field(None, pattern=r"^z[1-7]$", description="Target zone (z1..z7)")
    estimated_kcal: Optional[int] = Field(None, ge=0, description="Estimated energy cost in kcal")


class PlannedWorkoutCreate(PlannedWorkoutBase):
    """Schema for creating a planned workout."""
    pass


class PlannedWorkoutResponse(PlannedWorkoutBase):
    """Schema for planned workout responses."""

    id: int = Field(..., description="Workout ID")
    athlete_id: int = Field(..., description="Athlete ID")
    created_at: datetime = Field(..., description="Created timestamp")

    class Config:
        from_attributes = True
