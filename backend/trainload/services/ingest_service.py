"""Upload pipeline: decode an activity file, summarize it and store it."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from trainload.config import settings
from trainload.models.activity import ImportedActivity
from trainload.models.athlete import Athlete
from trainload.schemas.activity import ActivitySummary
from trainload.services.activity_decoder import RawActivity, decode_activity, detect_format
from trainload.services.metrics_service import MetricsService, metrics_service
from trainload.services.stream_compactor import compact_samples

logger = logging.getLogger(__name__)

# Device exports often embed the start time: "Zwift.2024-01-15-08-30-00.fit"
FILENAME_TIMESTAMP_RE = re.compile(r"\.(\d{4})-(\d{2})-(\d{2})-(\d{2})-(\d{2})-(\d{2})")

DATE_SOURCE_FILE = "file"
DATE_SOURCE_FILENAME = "filename"
DATE_SOURCE_UPLOAD = "upload_time"


def datetime_from_filename(filename: Optional[str]) -> Optional[datetime]:
    """Start time embedded in a file name as ``.YYYY-MM-DD-HH-mm-ss``, if any."""
    match = FILENAME_TIMESTAMP_RE.search(filename or "")
    if not match:
        return None
    try:
        return datetime(*(int(part) for part in match.groups()))
    except ValueError:
        return None


@dataclass
class IngestResult:
    """Stored activity plus how it was interpreted."""

    activity: ImportedActivity
    summary: ActivitySummary
    file_format: str
    date_source: str


class IngestService:
    """Turn uploaded files into ImportedActivity rows."""

    def __init__(self, metrics: MetricsService = metrics_service):
        self.metrics = metrics

    @staticmethod
    def resolve_activity_datetime(
        raw: RawActivity,
        now: Optional[datetime] = None,
    ) -> tuple[datetime, str]:
        """
        Pick the activity start and where it came from.

        The decoded start time wins; the file-name timestamp is passed to
        the decoder as fallback; the upload time is the last resort. Start
        times in the future are clamped to now.
        """
        now = now or datetime.utcnow()

        if raw.start_time is None:
            return now, DATE_SOURCE_UPLOAD

        source = DATE_SOURCE_FILENAME if raw.start_time_source == "fallback" else DATE_SOURCE_FILE
        if raw.start_time > now:
            logger.warning(f"Activity start {raw.start_time} is in the future, clamping to {now}")
            return now, source
        return raw.start_time, source

    def ingest(
        self,
        db: Session,
        athlete: Athlete,
        data: bytes,
        filename: str,
        file_format: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> IngestResult:
        """
        Decode, summarize, compact and persist one activity file.

        Args:
            db: Database session
            athlete: Owner of the activity
            data: Raw upload bytes, optionally gzip-wrapped
            filename: Upload file name, used for format and date inference
            file_format: Explicit format tag overriding the file name
            now: Current time (default utcnow)

        Returns:
            IngestResult with the stored activity

        Raises:
            UnsupportedFormatError, DecompressionError, DecodeError: From decoding
        """
        if not file_format:
            file_format, _ = detect_format(filename)

        raw = decode_activity(
            data,
            filename=filename,
            file_format=file_format,
            fallback_start=datetime_from_filename(filename),
        )
        activity_datetime, date_source = self.resolve_activity_datetime(raw, now)

        ftp = athlete.ftp or settings.DEFAULT_FTP
        summary = self.metrics.summarize(raw, ftp)
        if summary.start_time != activity_datetime:
            summary = summary.model_copy(update={"start_time": activity_datetime})

        power_data = [s.power for s in raw.samples if s.power is not None]
        zones = self.metrics.analyze_power_distribution(power_data, ftp) if power_data else None
        compact = compact_samples(raw.samples, sport=raw.sport)

        title = raw.name or f"{summary.activity_type.title()} {activity_datetime:%Y-%m-%d}"

        activity = ImportedActivity(
            athlete_id=athlete.id,
            title=title[:255],
            source_format=raw.file_format,
            activity_date=activity_datetime.date(),
            activity_datetime=activity_datetime,
            zones_distribution=zones,
            raw_data=compact.model_dump(),
            **summary.model_dump(exclude={"start_time"}),
        )
        db.add(activity)
        db.commit()
        db.refresh(activity)

        logger.info(
            f"Imported {raw.file_format} activity {activity.id} for athlete {athlete.id}: "
            f"{summary.activity_type}, {summary.duration_seconds}s, TSS {summary.tss}"
        )
        if not summary.tss:
            logger.warning(f"Activity {activity.id} has no power-based TSS; it will be estimated")

        return IngestResult(
            activity=activity,
            summary=summary,
            file_format=raw.file_format,
            date_source=date_source,
        )


# Create a singleton instance for convenience
ingest_service = IngestService()
