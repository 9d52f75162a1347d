"""Tests for the upload pipeline: date resolution, summaries and storage."""

import json
from datetime import datetime

import pytest

from trainload.models.activity import ImportedActivity
from trainload.services.activity_decoder import DecodeError, RawActivity
from trainload.services.ingest_service import IngestService, datetime_from_filename

NOW = datetime(2024, 6, 1, 12, 0, 0)


def _json_payload(start_time=None, samples=60, power=200.0):
    payload = {
        "sport": "cycling",
        "samples": [
            {"time_offset_seconds": i, "power": power, "heart_rate": 140, "speed_kmh": 30.0,
             "lat": 45.0 + i * 1e-4, "lon": 9.0}
            for i in range(samples)
        ],
        "totals": {"total_timer_time": samples},
    }
    if start_time:
        payload["start_time"] = start_time
    return json.dumps(payload).encode()


@pytest.fixture
def service():
    return IngestService()


class TestFilenameTimestamp:
    """Tests for datetime_from_filename."""

    def test_embedded_timestamp(self):
        assert datetime_from_filename("Zwift.2024-01-15-08-30-00.fit") == datetime(2024, 1, 15, 8, 30, 0)

    def test_no_timestamp(self):
        assert datetime_from_filename("ride.fit") is None
        assert datetime_from_filename(None) is None

    def test_invalid_date(self):
        assert datetime_from_filename("ride.2024-13-45-08-30-00.fit") is None


class TestResolveActivityDatetime:
    """Tests for IngestService.resolve_activity_datetime."""

    def test_file_start(self):
        raw = RawActivity(file_format="fit", sport="cycling", start_time=datetime(2024, 5, 1, 7, 0),
                          start_time_source="session")

        assert IngestService.resolve_activity_datetime(raw, NOW) == (datetime(2024, 5, 1, 7, 0), "file")

    def test_filename_fallback(self):
        raw = RawActivity(file_format="fit", sport="cycling", start_time=datetime(2024, 5, 1, 7, 0),
                          start_time_source="fallback")

        assert IngestService.resolve_activity_datetime(raw, NOW)[1] == "filename"

    def test_upload_time(self):
        raw = RawActivity(file_format="json", sport="cycling", start_time=None)

        assert IngestService.resolve_activity_datetime(raw, NOW) == (NOW, "upload_time")

    def test_future_start_is_clamped(self):
        raw = RawActivity(file_format="fit", sport="cycling", start_time=datetime(2030, 1, 1),
                          start_time_source="session")

        assert IngestService.resolve_activity_datetime(raw, NOW) == (NOW, "file")


class TestIngest:
    """Tests for IngestService.ingest."""

    def test_stores_activity(self, service, db_session, athlete):
        result = service.ingest(db_session, athlete, _json_payload("2024-05-01T07:00:00Z"),
                                "ride.json", now=NOW)

        stored = db_session.query(ImportedActivity).filter(ImportedActivity.id == result.activity.id).one()
        assert result.file_format == "json"
        assert result.date_source == "file"
        assert stored.activity_date.isoformat() == "2024-05-01"
        assert stored.activity_type == "cycling"
        assert stored.source_format == "json"
        assert stored.tss == pytest.approx(60 * 200 * 0.8 / (250 * 3600) * 100, abs=0.01)
        assert stored.raw_data["n"] == 60
        assert stored.raw_data["r"] == 1
        assert len(stored.raw_data["gps"]) == 60
        assert stored.zones_distribution["zone_3"] == 100.0
        assert stored.title == "Cycling 2024-05-01"

    def test_date_from_filename(self, service, db_session, athlete):
        result = service.ingest(db_session, athlete, _json_payload(),
                                "Zwift.2024-01-15-08-30-00.json", now=NOW)

        assert result.date_source == "filename"
        assert result.activity.activity_datetime == datetime(2024, 1, 15, 8, 30, 0)

    def test_date_from_upload_time(self, service, db_session, athlete):
        result = service.ingest(db_session, athlete, _json_payload(), "ride.json", now=NOW)

        assert result.date_source == "upload_time"
        assert result.activity.activity_date == NOW.date()

    def test_decode_failure_stores_nothing(self, service, db_session, athlete):
        with pytest.raises(DecodeError):
            service.ingest(db_session, athlete, b"{broken", "ride.json", now=NOW)

        assert db_session.query(ImportedActivity).count() == 0
