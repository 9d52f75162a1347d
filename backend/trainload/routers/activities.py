"""Activities API router: file upload and stored activities."""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from trainload.database import get_db
from trainload.models.activity import ImportedActivity
from trainload.models.athlete import Athlete
from trainload.routers.dependencies import (
    get_athlete,
    get_chronicle_cache,
    invalidate_athlete_chronicles,
)
from trainload.schemas.activity import (
    ActivityDetailResponse,
    ActivityResponse,
    ActivityUploadResponse,
)
from trainload.services.activity_decoder import (
    DecodeError,
    DecompressionError,
    UnsupportedFormatError,
)
from trainload.services.cache import ResultCache
from trainload.services.ingest_service import ingest_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", response_model=ActivityUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_activity(
    file: UploadFile = File(..., description="FIT, TCX, GPX or JSON file, optionally .gz"),
    file_format: Optional[str] = Query(None, description="Override the format inferred from the file name"),
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
    cache: ResultCache = Depends(get_chronicle_cache),
) -> ActivityUploadResponse:
    """
    Upload an activity file and store its summary.

    Args:
        file: Uploaded activity file
        file_format: Optional explicit format tag
        athlete: Owner of the activity
        db: Database session
        cache: Chronicle cache, invalidated for the athlete

    Returns:
        The stored activity's ID, date, detected format and summary

    Raises:
        HTTPException: 415 unsupported format, 400 corrupt archive, 422 undecodable file
    """
    filename = file.filename or ""
    data = await file.read()
    logger.info(f"Received file {filename} ({len(data)} bytes) for athlete {athlete.id}")

    try:
        result = ingest_service.ingest(db, athlete, data, filename, file_format=file_format)
    except UnsupportedFormatError as e:
        logger.error(f"Rejected {filename}: {e.message}")
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=e.message)
    except DecompressionError as e:
        logger.error(f"Could not decompress {filename}: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except DecodeError as e:
        logger.error(f"Could not decode {filename}: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    invalidate_athlete_chronicles(cache, athlete.id)

    return ActivityUploadResponse(
        id=result.activity.id,
        activity_type=result.summary.activity_type,
        activity_date=result.activity.activity_date,
        date_source=result.date_source,
        format=result.file_format,
        summary=result.summary,
    )


@router.get("/", response_model=List[ActivityResponse])
async def list_activities(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(50, ge=1, le=200, description="Maximum number of records to return"),
    activity_type: Optional[str] = Query(None, description="Filter by activity type (e.g., cycling, running)"),
    from_date: Optional[date] = Query(None, description="Filter activities from this date"),
    to_date: Optional[date] = Query(None, description="Filter activities up to this date"),
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
) -> List[ImportedActivity]:
    """
    List activities for an athlete, newest first.

    Args:
        skip: Number of records to skip for pagination
        limit: Maximum number of records to return
        activity_type: Optional filter by activity type
        from_date: Optional filter for activities on or after this date
        to_date: Optional filter for activities on or before this date
        athlete: Owner of the activities
        db: Database session

    Returns:
        List of activities
    """
    query = db.query(ImportedActivity).filter(ImportedActivity.athlete_id == athlete.id)

    if activity_type:
        query = query.filter(ImportedActivity.activity_type == activity_type)
    if from_date:
        query = query.filter(ImportedActivity.activity_date >= from_date)
    if to_date:
        query = query.filter(ImportedActivity.activity_date <= to_date)

    query = query.order_by(ImportedActivity.activity_datetime.desc())
    return query.offset(skip).limit(limit).all()


def _get_owned_activity(db: Session, athlete: Athlete, activity_id: int) -> ImportedActivity:
    activity = db.query(ImportedActivity).filter(
        ImportedActivity.id == activity_id,
        ImportedActivity.athlete_id == athlete.id,
    ).first()

    if not activity:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Activity not found",
        )
    return activity


@router.get("/{activity_id}", response_model=ActivityDetailResponse)
async def get_activity(
    activity_id: int,
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
) -> ImportedActivity:
    """
    Get activity details, including the compact stream, by ID.

    Raises:
        HTTPException: 404 if activity not found or doesn't belong to the athlete
    """
    return _get_owned_activity(db, athlete, activity_id)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity(
    activity_id: int,
    athlete: Athlete = Depends(get_athlete),
    db: Session = Depends(get_db),
    cache: ResultCache = Depends(get_chronicle_cache),
) -> None:
    """
    Delete an activity.

    Raises:
        HTTPException: 404 if activity not found or doesn't belong to the athlete
    """
    activity = _get_owned_activity(db, athlete, activity_id)
    db.delete(activity)
    db.commit()
    invalidate_athlete_chronicles(cache, athlete.id)

    logger.info(f"Deleted activity {activity_id} for athlete {athlete.id}")
