"""Persistence of computed daily states with a single writer per athlete-date."""

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from trainload.models.daily_state import DailyStateRecord
from trainload.schemas.adaptive import AdaptationOutput, AthleteDailyState

logger = logging.getLogger(__name__)


class AthleteDateLocks:
    """
    In-process lock registry keyed by (athlete_id, date).

    A lock lives only while some thread holds or waits for it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[tuple[int, date], threading.Lock] = {}
        self._users: dict[tuple[int, date], int] = defaultdict(int)

    @contextmanager
    def hold(self, athlete_id: int, state_date: date) -> Iterator[None]:
        key = (athlete_id, state_date)
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] += 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if self._users[key] == 0:
                    del self._users[key]
                    del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class DailyStateStore:
    """
    Upsert and load DailyStateRecord rows.

    Writers for the same athlete and date are serialized through the lock
    registry; the unique constraint on (athlete_id, state_date) backs this up
    across processes, and a concurrent insert is retried as an update so the
    last write wins.
    """

    def __init__(self, locks: Optional[AthleteDateLocks] = None):
        self.locks = locks or AthleteDateLocks()

    @staticmethod
    def _apply(record: DailyStateRecord, state: AthleteDailyState, adaptations: AdaptationOutput) -> None:
        record.fatigue_score = state.fatigue_score
        record.recovery_need = state.recovery_need.value
        record.glycogen_status = state.glycogen_status.value
        record.kcal_target = state.kcal_target
        record.cho_ratio_adjustment = state.cho_ratio_adjustment
        record.pro_ratio_adjustment = state.pro_ratio_adjustment
        record.fat_ratio_adjustment = state.fat_ratio_adjustment
        record.tss_capacity = state.tss_capacity
        record.recommended_zone = state.recommended_zone
        record.max_zone_today = state.max_zone_today
        record.state_json = state.model_dump(mode="json")
        record.adaptations_json = adaptations.model_dump(mode="json")

    def _find(self, db: Session, athlete_id: int, state_date: date) -> Optional[DailyStateRecord]:
        return (
            db.query(DailyStateRecord)
            .filter(
                DailyStateRecord.athlete_id == athlete_id,
                DailyStateRecord.state_date == state_date,
            )
            .first()
        )

    def save(
        self,
        db: Session,
        state: AthleteDailyState,
        adaptations: AdaptationOutput,
    ) -> DailyStateRecord:
        """Create or overwrite the state row for the state's athlete and date."""
        with self.locks.hold(state.athlete_id, state.state_date):
            record = self._find(db, state.athlete_id, state.state_date)
            if record is None:
                record = DailyStateRecord(athlete_id=state.athlete_id, state_date=state.state_date)
                self._apply(record, state, adaptations)
                db.add(record)
                try:
                    db.commit()
                except IntegrityError:
                    # Another process inserted the row first
                    db.rollback()
                    logger.warning(
                        f"Concurrent insert of daily state for athlete {state.athlete_id} "
                        f"on {state.state_date}, overwriting"
                    )
                    record = self._find(db, state.athlete_id, state.state_date)
                    self._apply(record, state, adaptations)
                    db.commit()
            else:
                self._apply(record, state, adaptations)
                db.commit()

            db.refresh(record)
            logger.info(f"Saved daily state for athlete {state.athlete_id} on {state.state_date}")
            return record

    def load(
        self,
        db: Session,
        athlete_id: int,
        state_date: date,
    ) -> tuple[Optional[AthleteDailyState], Optional[AdaptationOutput]]:
        """Return the stored state and adaptations, or (None, None)."""
        record = self._find(db, athlete_id, state_date)
        if record is None or record.state_json is None:
            return None, None

        state = AthleteDailyState.model_validate(record.state_json)
        adaptations = (
            AdaptationOutput.model_validate(record.adaptations_json)
            if record.adaptations_json
            else None
        )
        return state, adaptations


# Create a singleton instance for convenience
daily_state_store = DailyStateStore()
