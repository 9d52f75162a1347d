"""Baseline metabolic profile used to derive daily energy targets."""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Integer, DateTime, Float, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trainload.models.base import Base

if TYPE_CHECKING:
    from trainload.models.athlete import Athlete


class MetabolicProfile(Base):
    """Resting and daily energy expenditure for an athlete."""

    __tablename__ = "metabolic_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    athlete_id: Mapped[int] = mapped_column(Integer, ForeignKey("athletes.id"), unique=True, index=True)

    bmr: Mapped[float] = mapped_column(Float)  # kcal/day
    daily_kcal: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # estimated total expenditure
    weight_kg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    athlete: Mapped["Athlete"] = relationship("Athlete", back_populates="metabolic_profile")

    def __repr__(self) -> str:
        return f"<MetabolicProfile(athlete_id={self.athlete_id}, bmr={self.bmr}, daily_kcal={self.daily_kcal})>"
