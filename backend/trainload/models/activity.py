"""Activity model for storing decoded and summarized activity files."""

from datetime import datetime
from datetime import date as date_type
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import Integer, String, Date, DateTime, Float, ForeignKey
from sqlalchemy.types import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trainload.models.base import Base

if TYPE_CHECKING:
    from trainload.models.athlete import Athlete


class ImportedActivity(Base):
    """An uploaded activity file reduced to its summary and a compact stream."""

    __tablename__ = "imported_activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    athlete_id: Mapped[int] = mapped_column(Integer, ForeignKey("athletes.id"), index=True)

    # Activity details
    title: Mapped[str] = mapped_column(String(255))
    activity_type: Mapped[str] = mapped_column(String(50))  # e.g., "cycling", "running"
    source_format: Mapped[str] = mapped_column(String(10))  # fit, tcx, gpx, json
    activity_date: Mapped[date_type] = mapped_column(Date, index=True)
    activity_datetime: Mapped[datetime] = mapped_column(DateTime)

    # Summary metrics
    duration_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    distance_meters: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    elevation_gain_meters: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    calories: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    avg_heart_rate: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # bpm
    max_heart_rate: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # bpm
    avg_power_watts: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    max_power_watts: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    normalized_power: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    avg_cadence: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    avg_speed_mps: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    max_speed_mps: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    tss: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # Training Stress Score
    intensity_factor: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    variability_index: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    start_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    start_lng: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Time in each power zone (percent), keyed zone_1..zone_6
    zones_distribution: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # Compact stream: {"sport", "n", "r", "gps", "d"}
    raw_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    athlete: Mapped["Athlete"] = relationship("Athlete", back_populates="activities")

    def __repr__(self) -> str:
        return f"<ImportedActivity(id={self.id}, title='{self.title}', date={self.activity_date})>"
