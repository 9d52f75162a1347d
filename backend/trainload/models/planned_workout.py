"""Sessions an athlete intends to do, compared later with what was done."""

from datetime import datetime
from datetime import date as date_type
from enum import Enum as PyEnum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trainload.models.base import Base

if TYPE_CHECKING:
    from trainload.models.athlete import Athlete


class WorkoutType(str, PyEnum):
    """Session character, ordered from easiest to hardest."""
    RECOVERY = "recovery"
    ENDURANCE = "endurance"
    TEMPO = "tempo"
    THRESHOLD = "threshold"
    VO2MAX = "vo2max"
    ANAEROBIC = "anaerobic"
    SPRINT = "sprint"
    RACE = "race"


class PlannedWorkout(Base):
    """
    A planned session on a calendar date.

    The adaptive engine pairs completed activities with these rows by date,
    sport and duration; the targets become the planned side of each delta.
    """

    __tablename__ = "planned_workouts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    athlete_id: Mapped[int] = mapped_column(Integer, ForeignKey("athletes.id"), index=True)

    date: Mapped[date_type] = mapped_column(Date, index=True)
    name: Mapped[str] = mapped_column(String(255))
    sport: Mapped[str] = mapped_column(String(50), default="cycling")
    workout_type: Mapped[WorkoutType] = mapped_column(Enum(WorkoutType), default=WorkoutType.ENDURANCE)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # What the session should cost
    duration_minutes: Mapped[int] = mapped_column(Integer)
    target_tss: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    target_zone: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)  # "z1".."z7"
    estimated_kcal: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    athlete: Mapped["Athlete"] = relationship("Athlete", back_populates="planned_workouts")

    def __repr__(self) -> str:
        return (
            f"<PlannedWorkout(athlete_id={self.athlete_id}, date={self.date}, "
            f"type={self.workout_type}, minutes={self.duration_minutes})>"
        )
