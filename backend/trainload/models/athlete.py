"""Athlete model holding the reference thresholds used by the metrics pipeline."""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Integer, String, DateTime, Float
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trainload.models.base import Base

if TYPE_CHECKING:
    from trainload.models.activity import ImportedActivity
    from trainload.models.daily_state import DailyStateRecord
    from trainload.models.fitness_metric import FitnessMetric
    from trainload.models.metabolic_profile import MetabolicProfile
    from trainload.models.planned_workout import PlannedWorkout


class Athlete(Base):
    """Athlete whose activities feed the load chronicle and daily state."""

    __tablename__ = "athletes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Reference thresholds
    ftp: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # Functional Threshold Power in watts
    threshold_hr: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # bpm
    weight_kg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    activities: Mapped[List["ImportedActivity"]] = relationship(
        "ImportedActivity", back_populates="athlete", cascade="all, delete-orphan"
    )
    planned_workouts: Mapped[List["PlannedWorkout"]] = relationship(
        "PlannedWorkout", back_populates="athlete", cascade="all, delete-orphan"
    )
    fitness_metrics: Mapped[List["FitnessMetric"]] = relationship(
        "FitnessMetric", back_populates="athlete", cascade="all, delete-orphan"
    )
    daily_states: Mapped[List["DailyStateRecord"]] = relationship(
        "DailyStateRecord", back_populates="athlete", cascade="all, delete-orphan"
    )
    metabolic_profile: Mapped[Optional["MetabolicProfile"]] = relationship(
        "MetabolicProfile", back_populates="athlete", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Athlete(id={self.id}, name='{self.name}', ftp={self.ftp})>"
