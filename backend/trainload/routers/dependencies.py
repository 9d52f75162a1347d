"""Shared router dependencies."""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from trainload.database import get_db
from trainload.models.athlete import Athlete
from trainload.services.cache import ResultCache


def get_athlete(athlete_id: int, db: Session = Depends(get_db)) -> Athlete:
    """
    Load the athlete named in the path.

    Raises:
        HTTPException: 404 if the athlete does not exist
    """
    athlete = db.query(Athlete).filter(Athlete.id == athlete_id).first()
    if not athlete:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Athlete {athlete_id} not found",
        )
    return athlete


def get_chronicle_cache(request: Request) -> ResultCache:
    """The chronicle cache owned by the application."""
    return request.app.state.chronicle_cache


def invalidate_athlete_chronicles(cache: ResultCache, athlete_id: int) -> None:
    cache.invalidate(lambda key: key[1] == athlete_id)
