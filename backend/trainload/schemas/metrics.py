"""Pydantic schemas for load chronicle API operations."""

from datetime import date as date_type
from typing import Optional

from pydantic import BaseModel, Field


class DayLoadResponse(BaseModel):
    """One day of the chronicle."""

    date: date_type = Field(..., description="Calendar day")
    tss: float = Field(..., ge=0, description="Total TSS for the day")
    ctl: float = Field(..., description="Chronic Training Load (Fitness)")
    atl: float = Field(..., description="Acute Training Load (Fatigue)")
    tsb: float = Field(..., description="Training Stress Balance (Form)")


class ChronicleSummary(BaseModel):
    """Summary scalars of a chronicle window."""

    current_ctl: float = Field(..., description="CTL on the last day")
    current_atl: float = Field(..., description="ATL on the last day")
    current_tsb: float = Field(..., description="TSB on the last day")
    ramp_rate: float = Field(..., description="CTL change over the last 7 days")
    total_tss: float = Field(..., ge=0, description="Total TSS in the window")
    avg_tss: float = Field(..., ge=0, description="Average TSS per active day")
    peak_tss: float = Field(..., ge=0, description="Highest daily TSS")
    total_hours: float = Field(..., ge=0, description="Total moving time in hours")

    class Config:
        json_schema_extra = {
            "example": {
                "current_ctl": 55.2,
                "current_atl": 68.4,
                "current_tsb": -13.2,
                "ramp_rate": 3.5,
                "total_tss": 2650.0,
                "avg_tss": 59.0,
                "peak_tss": 210.0,
                "total_hours": 82.5,
            }
        }


class ChronicleResponse(BaseModel):
    """Schema for the chronicle endpoint."""

    athlete_id: int = Field(..., description="Athlete ID")
    days: list[DayLoadResponse] = Field(..., description="One entry per calendar day, oldest first")
    summary: ChronicleSummary


class FitnessMetricResponse(BaseModel):
    """Schema for stored fitness metric rows."""

    id: int = Field(..., description="Unique metric ID")
    athlete_id: int = Field(..., description="Athlete ID")
    date: date_type = Field(..., description="Date of the metric")
    daily_tss: float = Field(..., ge=0, description="Total TSS for the day")
    ctl: float = Field(..., description="Chronic Training Load (Fitness)")
    atl: float = Field(..., description="Acute Training Load (Fatigue)")
    tsb: float = Field(..., description="Training Stress Balance (Form)")

    class Config:
        from_attributes = True


class MetricsCalculateResponse(BaseModel):
    """Schema for metrics recalculation result."""

    days_calculated: int = Field(..., ge=0, description="Number of days calculated")
    metrics_created: int = Field(..., ge=0, description="Number of new metrics created")
    metrics_updated: int = Field(..., ge=0, description="Number of metrics updated")
    current_ctl: float = Field(..., description="Current CTL after calculation")
    current_atl: float = Field(..., description="Current ATL after calculation")
    current_tsb: float = Field(..., description="Current TSB after calculation")
    last_date: Optional[date_type] = Field(None, description="Last day of the window")
