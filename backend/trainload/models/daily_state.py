"""Daily athlete state computed by the adaptive engine."""

from datetime import datetime
from datetime import date as date_type
from typing import TYPE_CHECKING, Any, Dict, Optional
import enum

from sqlalchemy import Integer, Float, Date, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.types import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trainload.models.base import Base

if TYPE_CHECKING:
    from trainload.models.athlete import Athlete


class GlycogenStatus(str, enum.Enum):
    """Estimated muscle glycogen availability."""
    DEPLETED = "depleted"
    LOW = "low"
    NORMAL = "normal"


class RecoveryNeed(str, enum.Enum):
    """How much recovery the athlete needs today."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class DailyStateRecord(Base):
    """
    One computed state per athlete per date.

    The row is overwritten each time the engine runs for the same date;
    the latest adaptations are stored alongside it as JSON.
    """

    __tablename__ = "athlete_daily_states"
    __table_args__ = (
        UniqueConstraint("athlete_id", "state_date", name="uq_daily_state_athlete_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    athlete_id: Mapped[int] = mapped_column(Integer, ForeignKey("athletes.id"), index=True)
    state_date: Mapped[date_type] = mapped_column(Date, index=True)

    # Fatigue & recovery
    fatigue_score: Mapped[float] = mapped_column(Float, default=0.0)
    recovery_need: Mapped[str] = mapped_column(String(20), default=RecoveryNeed.LOW.value)
    glycogen_status: Mapped[str] = mapped_column(String(20), default=GlycogenStatus.NORMAL.value)

    # Energy and macros
    kcal_target: Mapped[float] = mapped_column(Float, default=0.0)
    cho_ratio_adjustment: Mapped[float] = mapped_column(Float, default=0.0)
    pro_ratio_adjustment: Mapped[float] = mapped_column(Float, default=0.0)
    fat_ratio_adjustment: Mapped[float] = mapped_column(Float, default=0.0)

    # Training
    tss_capacity: Mapped[float] = mapped_column(Float, default=0.0)
    recommended_zone: Mapped[str] = mapped_column(String(10), default="z2")
    max_zone_today: Mapped[str] = mapped_column(String(10), default="z5")

    # Full serialized state and the adaptations generated from it
    state_json: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    adaptations_json: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    athlete: Mapped["Athlete"] = relationship("Athlete", back_populates="daily_states")

    def __repr__(self) -> str:
        return (
            f"<DailyStateRecord(athlete_id={self.athlete_id}, date={self.state_date}, "
            f"recovery={self.recovery_need}, glycogen={self.glycogen_status})>"
        )
