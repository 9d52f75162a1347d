"""Pydantic schemas for the adaptive daily-state engine."""

from datetime import date as date_type
from typing import Any, Optional

from pydantic import BaseModel, Field

from trainload.models.daily_state import GlycogenStatus, RecoveryNeed


class AthleteDailyState(BaseModel):
    """State of an athlete on one date, derived from the recent activity deltas."""

    athlete_id: int = Field(..., description="Athlete ID")
    state_date: date_type = Field(..., description="Date the state applies to")

    # Fatigue & recovery
    fatigue_score: int = Field(..., ge=0, le=100, description="Fatigue score (0-100)")
    recovery_need: RecoveryNeed = Field(..., description="Recovery need classification")
    glycogen_status: GlycogenStatus = Field(..., description="Glycogen availability classification")
    glycogen_level_g: int = Field(..., ge=0, description="Estimated muscle glycogen in grams")
    hydration_status: str = Field("normal", description="Hydration status")

    # Caloric balance
    kcal_target: int = Field(..., description="Energy target for the day")
    kcal_adjustment: int = Field(0, description="Difference from the baseline daily kcal")
    kcal_debt: int = Field(0, description="Accumulated actual minus planned kcal over the window")

    # Macro adjustments, percentage points from the 55/20/25 baseline
    cho_ratio_adjustment: float = Field(0.0, description="Carbohydrate adjustment")
    pro_ratio_adjustment: float = Field(0.0, description="Protein adjustment")
    fat_ratio_adjustment: float = Field(0.0, description="Fat adjustment")

    # Training
    tss_capacity: int = Field(..., ge=0, description="Maximum TSS the athlete can absorb today")
    tss_adjustment_percent: int = Field(100, description="Capacity as a percentage of planned TSS")
    recommended_zone: str = Field(..., description="Recommended training zone")
    max_zone_today: str = Field(..., description="Highest zone allowed today")

    adaptation_reasons: list[str] = Field(default_factory=list, description="Why the state deviates from plan")
    factors: dict[str, Any] = Field(default_factory=dict, description="Inputs behind the classification")


class NutritionAdaptation(BaseModel):
    """Daily energy and macronutrient targets."""

    daily_kcal: int
    kcal_adjustment: int
    cho_percent: int
    pro_percent: int
    fat_percent: int
    cho_grams: int
    pro_grams: int
    fat_grams: int
    hydration_liters: float
    notes: list[str] = Field(default_factory=list)


class FuelingAdaptation(BaseModel):
    """Fueling around today's session."""

    pre_workout_cho_g: int
    intra_workout_cho_g_per_hour: int
    post_workout_cho_g: int
    post_workout_pro_g: int
    caffeine_mg: int
    electrolytes_needed: bool
    notes: list[str] = Field(default_factory=list)


class TrainingAdaptation(BaseModel):
    """Limits applied to today's session."""

    tss_target: float
    tss_adjustment_percent: int
    max_zone: str
    recommended_zone: str
    max_duration_min: int
    intensity_cap: float = Field(..., ge=0, le=1, description="Intensity multiplier (0-1)")
    suggested_workout_type: str
    notes: list[str] = Field(default_factory=list)


class RecoveryAdaptation(BaseModel):
    """Recovery recommendations."""

    recovery_priority: RecoveryNeed
    sleep_target_hours: float
    active_recovery_recommended: bool
    stretching_minutes: int
    foam_rolling_recommended: bool
    cold_therapy_recommended: bool
    notes: list[str] = Field(default_factory=list)


class AdaptationOutput(BaseModel):
    """The four adaptation blocks generated from a daily state."""

    nutrition: NutritionAdaptation
    fueling: FuelingAdaptation
    training: TrainingAdaptation
    recovery: RecoveryAdaptation


class AdaptiveComputeRequest(BaseModel):
    """Schema for an adaptive engine run."""

    date: Optional[date_type] = Field(None, description="Target date (default today)")


class AdaptiveComputeResponse(BaseModel):
    """State, adaptations and the delta summary of one engine run."""

    date: date_type
    state: AthleteDailyState
    adaptations: AdaptationOutput
    deltas_summary: dict[str, Any] = Field(default_factory=dict)
    deltas: list[dict[str, Any]] = Field(default_factory=list)


class DailyStateResponse(BaseModel):
    """A persisted daily state and its adaptations."""

    date: date_type
    state: Optional[AthleteDailyState] = None
    adaptations: Optional[AdaptationOutput] = None
