"""Stored chronicle day: the CTL/ATL/TSB values of one athlete on one date."""

from datetime import datetime
from datetime import date as date_type
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, Float, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trainload.models.base import Base

if TYPE_CHECKING:
    from trainload.models.athlete import Athlete


class FitnessMetric(Base):
    """
    One persisted day of an athlete's load chronicle.

    Rows are written by a recalculation and overwritten in place when the
    same day is recalculated. Values are rounded to one decimal.
    """

    __tablename__ = "fitness_metrics"
    __table_args__ = (
        UniqueConstraint("athlete_id", "date", name="uq_fitness_athlete_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    athlete_id: Mapped[int] = mapped_column(Integer, ForeignKey("athletes.id"), index=True)
    date: Mapped[date_type] = mapped_column(Date, index=True)

    daily_tss: Mapped[float] = mapped_column(Float, default=0.0)  # sum over the day's activities
    ctl: Mapped[float] = mapped_column(Float, default=0.0)  # fitness, 42-day constant
    atl: Mapped[float] = mapped_column(Float, default=0.0)  # fatigue, 7-day constant
    tsb: Mapped[float] = mapped_column(Float, default=0.0)  # form, ctl - atl

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    athlete: Mapped["Athlete"] = relationship("Athlete", back_populates="fitness_metrics")

    def __repr__(self) -> str:
        return (
            f"<FitnessMetric(athlete_id={self.athlete_id}, date={self.date}, "
            f"tss={self.daily_tss}, ctl={self.ctl}, atl={self.atl})>"
        )
