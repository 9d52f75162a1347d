"""Pydantic schemas for activity-related API operations."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class ActivitySummary(BaseModel):
    """Derived summary of one activity. Immutable once computed."""

    activity_type: str = Field(..., description="Normalized activity type (e.g., cycling, running)")
    start_time: Optional[datetime] = Field(None, description="Resolved activity start time")
    duration_seconds: int = Field(0, ge=0, description="Duration in seconds")
    distance_meters: float = Field(0.0, ge=0, description="Distance in meters")
    elevation_gain_meters: float = Field(0.0, ge=0, description="Elevation gain in meters")
    calories: int = Field(0, ge=0, description="Calories burned")
    avg_heart_rate: int = Field(0, ge=0, description="Average heart rate in bpm")
    max_heart_rate: int = Field(0, ge=0, description="Max heart rate in bpm")
    avg_power_watts: float = Field(0.0, ge=0, description="Average power in watts")
    max_power_watts: float = Field(0.0, ge=0, description="Max power in watts")
    normalized_power: float = Field(0.0, ge=0, description="Normalized power in watts")
    avg_cadence: float = Field(0.0, ge=0, description="Average cadence in rpm")
    avg_speed_mps: float = Field(0.0, ge=0, description="Average speed in m/s")
    max_speed_mps: float = Field(0.0, ge=0, description="Max speed in m/s")
    tss: float = Field(0.0, ge=0, description="Training Stress Score")
    intensity_factor: float = Field(0.0, ge=0, description="Intensity Factor (NP / FTP)")
    variability_index: float = Field(0.0, ge=0, description="Variability Index (NP / average power)")
    start_lat: Optional[float] = Field(None, description="Latitude of the first GPS fix")
    start_lng: Optional[float] = Field(None, description="Longitude of the first GPS fix")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "activity_type": "cycling",
                "start_time": "2024-01-15T08:30:00",
                "duration_seconds": 3600,
                "distance_meters": 30125.4,
                "elevation_gain_meters": 452.3,
                "calories": 850,
                "avg_heart_rate": 145,
                "max_heart_rate": 175,
                "avg_power_watts": 200.0,
                "max_power_watts": 612.0,
                "normalized_power": 215.0,
                "avg_cadence": 88.0,
                "avg_speed_mps": 8.37,
                "max_speed_mps": 15.0,
                "tss": 115.56,
                "intensity_factor": 1.08,
                "variability_index": 1.08,
                "start_lat": 45.46,
                "start_lng": 9.19,
            }
        }


class CompactStream(BaseModel):
    """Subsampled time series persisted alongside an activity."""

    sport: Optional[str] = Field(None, description="Sport tag reported by the source file")
    n: int = Field(..., ge=0, description="Total number of original points")
    r: int = Field(..., ge=1, description="Stride used to subsample data points")
    gps: list[list[float]] = Field(default_factory=list, description="[lat, lng] route points")
    d: list[list[float]] = Field(
        default_factory=list,
        description="[time_s, power_w, heart_rate_bpm, cadence, speed_mps, elevation_m] points",
    )


class ActivityResponse(BaseModel):
    """Schema for activity API responses."""

    id: int = Field(..., description="Activity ID")
    athlete_id: int = Field(..., description="Athlete ID")
    title: str = Field(..., description="Activity title")
    activity_type: str = Field(..., description="Normalized activity type")
    source_format: str = Field(..., description="Source file format")
    activity_date: date = Field(..., description="Calendar date of the activity")
    activity_datetime: datetime = Field(..., description="Start date and time")
    duration_seconds: Optional[int] = None
    distance_meters: Optional[float] = None
    elevation_gain_meters: Optional[float] = None
    calories: Optional[int] = None
    avg_heart_rate: Optional[int] = None
    max_heart_rate: Optional[int] = None
    avg_power_watts: Optional[float] = None
    max_power_watts: Optional[float] = None
    normalized_power: Optional[float] = None
    avg_cadence: Optional[float] = None
    avg_speed_mps: Optional[float] = None
    max_speed_mps: Optional[float] = None
    tss: Optional[float] = None
    intensity_factor: Optional[float] = None
    variability_index: Optional[float] = None
    start_lat: Optional[float] = None
    start_lng: Optional[float] = None
    zones_distribution: Optional[dict[str, Any]] = None
    created_at: datetime = Field(..., description="Created timestamp")

    class Config:
        from_attributes = True


class ActivityDetailResponse(ActivityResponse):
    """Activity response including the compact stream."""

    raw_data: Optional[dict[str, Any]] = Field(None, description="Compact time series")


class ActivityUploadResponse(BaseModel):
    """Schema for activity upload response."""

    id: int = Field(..., description="ID of the stored activity")
    activity_type: str = Field(..., description="Normalized activity type")
    activity_date: date = Field(..., description="Calendar date of the activity")
    date_source: str = Field(..., description="Where the activity date came from")
    format: str = Field(..., description="Detected source format")
    summary: ActivitySummary
