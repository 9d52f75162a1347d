"""
Activity file decoding service.

Turns the raw bytes of an uploaded activity file into a normalized
``RawActivity``: an ordered sample stream plus the coarse totals reported
by the recording device. Supported formats:
- FIT: binary device format, decoded with fitparse
- TCX: XML dialect, pattern-based tag extraction
- GPX: XML dialect, pattern-based tag extraction
- JSON: payload already in the internal shape

Any of them may be gzip-wrapped (e.g. ``ride.fit.gz``). Decoding is a pure
function of its input; nothing is cached or shared between calls.
"""

import gzip
import json
import logging
import math
import re
import zlib
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from io import BytesIO
from typing import Any, Optional

import fitparse

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("fit", "tcx", "gpx", "json")
GZIP_MAGIC = b"\x1f\x8b"
FIT_SIGNATURE = b".FIT"
SEMICIRCLE_TO_DEG = 180.0 / (2 ** 31)
EARTH_RADIUS_M = 6371000
MPS_TO_KMH = 3.6


class ActivityFileError(Exception):
    """Base exception for activity files that cannot be turned into a RawActivity."""

    def __init__(self, message: str, file_format: Optional[str] = None):
        self.message = message
        self.file_format = file_format
        super().__init__(self.message)


class UnsupportedFormatError(ActivityFileError):
    """Raised when the declared or inferred format is not supported."""


class DecompressionError(ActivityFileError):
    """Raised when a gzip-wrapped file cannot be decompressed."""


class DecodeError(ActivityFileError):
    """Raised when the payload cannot be parsed in its detected format."""

    def __str__(self) -> str:
        return f"Cannot decode {self.file_format or 'unknown'} file: {self.message}"


@dataclass
class Sample:
    """One point of the activity time series, offset from the resolved start."""
    time_offset_seconds: int
    power: Optional[float] = None
    heart_rate: Optional[float] = None
    cadence: Optional[float] = None
    speed_kmh: Optional[float] = None
    elevation_m: Optional[float] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    cumulative_distance_m: Optional[float] = None
    temperature: Optional[float] = None


@dataclass
class SessionTotals:
    """Totals reported by the source device. Any field may be absent."""
    total_timer_time: Optional[float] = None
    total_elapsed_time: Optional[float] = None
    total_distance: Optional[float] = None
    total_ascent: Optional[float] = None
    total_calories: Optional[float] = None
    avg_power: Optional[float] = None
    max_power: Optional[float] = None
    avg_heart_rate: Optional[float] = None
    max_heart_rate: Optional[float] = None
    avg_cadence: Optional[float] = None
    avg_speed_kmh: Optional[float] = None
    max_speed_kmh: Optional[float] = None
    normalized_power: Optional[float] = None


@dataclass
class RawActivity:
    """Decoded activity: sport tag, resolved start time, samples and device totals."""
    file_format: str
    sport: str
    start_time: Optional[datetime]
    samples: list[Sample] = field(default_factory=list)
    totals: SessionTotals = field(default_factory=SessionTotals)
    laps: list[dict[str, Any]] = field(default_factory=list)
    name: Optional[str] = None
    start_time_source: str = "none"

    @property
    def duration_seconds(self) -> float:
        """Device timer time, else elapsed time, else the last sample offset."""
        if self.totals.total_timer_time:
            return self.totals.total_timer_time
        if self.totals.total_elapsed_time:
            return self.totals.total_elapsed_time
        if self.samples:
            return float(self.samples[-1].time_offset_seconds)
        return 0.0


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def to_float(value: Any) -> Optional[float]:
    """Coerce to a finite float, or None when missing or non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _positive(value: Any) -> Optional[float]:
    number = to_float(value)
    return number if number is not None and number > 0 else None


def _first_present(values: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if values.get(key) is not None:
            return values[key]
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (or pass a datetime through) as naive UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in meters."""
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def _resolve_start_time(
    session_start: Optional[datetime],
    first_sample_time: Optional[datetime],
    fallback: Optional[datetime],
) -> tuple[Optional[datetime], str]:
    if session_start is not None:
        return session_start, "session"
    if first_sample_time is not None:
        return first_sample_time, "first_sample"
    if fallback is not None:
        return parse_timestamp(fallback), "fallback"
    return None, "none"


def _time_offsets(timestamps: list[Optional[datetime]], start: Optional[datetime]) -> list[int]:
    """Seconds from start for each timestamp, clamped to be non-decreasing."""
    offsets = []
    previous = 0
    for ts in timestamps:
        if ts is not None and start is not None:
            offset = int(round((ts - start).total_seconds()))
            previous = max(previous, offset, 0)
        offsets.append(previous)
    return offsets


# ---------------------------------------------------------------------------
# Format detection and decompression
# ---------------------------------------------------------------------------

def detect_format(filename: str) -> tuple[str, bool]:
    """
    Infer the format from a file name.

    Args:
        filename: Upload file name, e.g. ``morning.fit`` or ``ride.tcx.gz``

    Returns:
        Tuple of (format tag, gzip-wrapped flag)

    Raises:
        UnsupportedFormatError: If the extension is not one of fit/tcx/gpx/json
    """
    name = (filename or "").strip().lower()
    compressed = name.endswith(".gz")
    if compressed:
        name = name[:-3]
    extension = name.rsplit(".", 1)[-1] if "." in name else ""

    if extension not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(
            f"Unsupported file format '{extension or filename}'. "
            f"Supported: FIT, TCX, GPX, JSON (also .gz compressed)",
            extension or None,
        )
    return extension, compressed


def decompress_gzip(data: bytes, file_format: Optional[str] = None) -> bytes:
    """Decompress a gzip payload, raising DecompressionError on a corrupt archive."""
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise DecompressionError(f"Failed to decompress gzipped file: {e}", file_format) from e


def _decode_text(data: bytes, file_format: str) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DecodeError(f"payload is not valid UTF-8 text ({e.reason})", file_format) from e


# ---------------------------------------------------------------------------
# FIT
# ---------------------------------------------------------------------------

def _check_fit_signature(data: bytes) -> None:
    if len(data) < 12:
        raise DecodeError("file is shorter than a FIT header", "fit")
    header_size = data[0]
    if header_size not in (12, 14) or data[8:12] != FIT_SIGNATURE:
        raise DecodeError("invalid FIT signature", "fit")


def _fit_totals(session: dict[str, Any]) -> SessionTotals:
    avg_speed = to_float(_first_present(session, "enhanced_avg_speed", "avg_speed"))
    max_speed = to_float(_first_present(session, "enhanced_max_speed", "max_speed"))
    return SessionTotals(
        total_timer_time=_positive(session.get("total_timer_time")),
        total_elapsed_time=_positive(session.get("total_elapsed_time")),
        total_distance=_positive(session.get("total_distance")),
        total_ascent=_positive(session.get("total_ascent")),
        total_calories=_positive(session.get("total_calories")),
        avg_power=_positive(session.get("avg_power")),
        max_power=_positive(session.get("max_power")),
        avg_heart_rate=_positive(session.get("avg_heart_rate")),
        max_heart_rate=_positive(session.get("max_heart_rate")),
        avg_cadence=_positive(session.get("avg_cadence")),
        avg_speed_kmh=avg_speed * MPS_TO_KMH if avg_speed else None,
        max_speed_kmh=max_speed * MPS_TO_KMH if max_speed else None,
        normalized_power=_positive(session.get("normalized_power")),
    )


def _fit_sample(record: dict[str, Any], offset: int) -> Sample:
    lat_raw = to_float(record.get("position_lat"))
    lon_raw = to_float(record.get("position_long"))
    speed_mps = to_float(_first_present(record, "enhanced_speed", "speed"))
    return Sample(
        time_offset_seconds=offset,
        power=to_float(record.get("power")),
        heart_rate=_positive(record.get("heart_rate")),
        cadence=to_float(record.get("cadence")),
        speed_kmh=speed_mps * MPS_TO_KMH if speed_mps is not None else None,
        elevation_m=to_float(_first_present(record, "enhanced_altitude", "altitude")),
        lat=lat_raw * SEMICIRCLE_TO_DEG if lat_raw is not None else None,
        lon=lon_raw * SEMICIRCLE_TO_DEG if lon_raw is not None else None,
        cumulative_distance_m=to_float(record.get("distance")),
        temperature=to_float(record.get("temperature")),
    )


def decode_fit(data: bytes, fallback_start: Optional[datetime] = None) -> RawActivity:
    """
    Decode a binary FIT file.

    The header signature is validated before parsing and fitparse verifies
    the file CRC while reading. Session, lap and record messages are
    collected in one pass over the message stream.

    Args:
        data: Uncompressed FIT bytes
        fallback_start: Start time to use when neither the session nor the
            records carry one

    Returns:
        Decoded RawActivity

    Raises:
        DecodeError: On an invalid signature or a truncated/corrupt stream
    """
    _check_fit_signature(data)

    sessions: list[dict[str, Any]] = []
    laps: list[dict[str, Any]] = []
    records: list[dict[str, Any]] = []
    try:
        fitfile = fitparse.FitFile(BytesIO(data), check_crc=True)
        for message in fitfile.get_messages(["session", "lap", "record"]):
            values = message.get_values()
            if message.name == "record":
                records.append(values)
            elif message.name == "lap":
                laps.append(values)
            elif message.name == "session":
                sessions.append(values)
    except fitparse.FitParseError as e:
        raise DecodeError(f"corrupt or truncated FIT stream ({e})", "fit") from e

    session = sessions[0] if sessions else {}
    timestamps = [parse_timestamp(r.get("timestamp")) for r in records]
    first_sample_time = next((ts for ts in timestamps if ts is not None), None)
    start_time, source = _resolve_start_time(
        parse_timestamp(session.get("start_time")), first_sample_time, fallback_start
    )

    offsets = _time_offsets(timestamps, start_time)
    samples = [_fit_sample(record, offset) for record, offset in zip(records, offsets)]

    logger.info(
        f"Decoded FIT file: {len(sessions)} sessions, {len(laps)} laps, {len(samples)} records"
    )

    return RawActivity(
        file_format="fit",
        sport=str(session.get("sport") or "unknown"),
        start_time=start_time,
        samples=samples,
        totals=_fit_totals(session),
        laps=laps,
        start_time_source=source,
    )


# ---------------------------------------------------------------------------
# TCX
# ---------------------------------------------------------------------------

def _tag(name: str) -> re.Pattern:
    return re.compile(rf"<(?:\w+:)?{name}>\s*([^<]+?)\s*</(?:\w+:)?{name}>")


TCX_SPORT_RE = re.compile(r'Sport="([^"]+)"')
TCX_ID_RE = _tag("Id")
TCX_LAP_RE = re.compile(r"<Lap\b[^>]*>(.*?)</Lap>", re.S)
TCX_TRACKPOINT_RE = re.compile(r"<Trackpoint>(.*?)</Trackpoint>", re.S)
TCX_TOTAL_TIME_RE = _tag("TotalTimeSeconds")
TCX_DISTANCE_RE = _tag("DistanceMeters")
TCX_CALORIES_RE = _tag("Calories")
TCX_AVG_HR_RE = re.compile(r"<AverageHeartRateBpm[^>]*>\s*<Value>([^<]+)</Value>\s*</AverageHeartRateBpm>")
TCX_MAX_HR_RE = re.compile(r"<MaximumHeartRateBpm[^>]*>\s*<Value>([^<]+)</Value>\s*</MaximumHeartRateBpm>")
TCX_HR_RE = re.compile(r"<HeartRateBpm[^>]*>\s*<Value>([^<]+)</Value>\s*</HeartRateBpm>")
TCX_TIME_RE = _tag("Time")
TCX_ALTITUDE_RE = _tag("AltitudeMeters")
TCX_LAT_RE = _tag("LatitudeDegrees")
TCX_LON_RE = _tag("LongitudeDegrees")
TCX_CADENCE_RE = _tag("Cadence")
TCX_WATTS_RE = _tag("Watts")
TCX_SPEED_RE = _tag("Speed")


def _match(pattern: re.Pattern, text: str) -> Optional[str]:
    found = pattern.search(text)
    return found.group(1) if found else None


def _tcx_lap_totals(content: str) -> SessionTotals:
    laps = TCX_LAP_RE.findall(content)
    if not laps:
        return SessionTotals(
            total_timer_time=_positive(_match(TCX_TOTAL_TIME_RE, content)),
            total_distance=_positive(_match(TCX_DISTANCE_RE, content)),
            total_calories=_positive(_match(TCX_CALORIES_RE, content)),
            avg_heart_rate=_positive(_match(TCX_AVG_HR_RE, content)),
            max_heart_rate=_positive(_match(TCX_MAX_HR_RE, content)),
        )

    total_time = 0.0
    total_distance = 0.0
    total_calories = 0.0
    weighted_hr = 0.0
    hr_time = 0.0
    max_hr = None
    for lap in laps:
        # Lap-level fields precede the lap's track
        header = lap.split("<Track", 1)[0]
        lap_time = _positive(_match(TCX_TOTAL_TIME_RE, header)) or 0.0
        total_time += lap_time
        total_distance += _positive(_match(TCX_DISTANCE_RE, header)) or 0.0
        total_calories += _positive(_match(TCX_CALORIES_RE, header)) or 0.0
        lap_avg_hr = _positive(_match(TCX_AVG_HR_RE, header))
        if lap_avg_hr is not None and lap_time > 0:
            weighted_hr += lap_avg_hr * lap_time
            hr_time += lap_time
        lap_max_hr = _positive(_match(TCX_MAX_HR_RE, header))
        if lap_max_hr is not None:
            max_hr = lap_max_hr if max_hr is None else max(max_hr, lap_max_hr)

    return SessionTotals(
        total_timer_time=total_time or None,
        total_distance=total_distance or None,
        total_calories=total_calories or None,
        avg_heart_rate=weighted_hr / hr_time if hr_time > 0 else None,
        max_heart_rate=max_hr,
    )


def decode_tcx(content: str, fallback_start: Optional[datetime] = None) -> RawActivity:
    """
    Decode a TCX document by pattern matching over its tags.

    Sport, total time, distance, calories, start id and heart rate come from
    the lap headers; trackpoints become samples.

    Args:
        content: TCX document text
        fallback_start: Start time to use when the document has none

    Returns:
        Decoded RawActivity

    Raises:
        DecodeError: If the text is not a TCX document
    """
    if "<TrainingCenterDatabase" not in content and "<Activity" not in content:
        raise DecodeError("document has no TrainingCenterDatabase/Activity element", "tcx")

    sport = _match(TCX_SPORT_RE, content) or "Unknown"

    points = TCX_TRACKPOINT_RE.findall(content)
    timestamps = [parse_timestamp(_match(TCX_TIME_RE, point)) for point in points]
    first_sample_time = next((ts for ts in timestamps if ts is not None), None)
    start_time, source = _resolve_start_time(
        parse_timestamp(_match(TCX_ID_RE, content)), first_sample_time, fallback_start
    )
    offsets = _time_offsets(timestamps, start_time)

    samples = []
    for point, offset in zip(points, offsets):
        speed_mps = to_float(_match(TCX_SPEED_RE, point))
        samples.append(Sample(
            time_offset_seconds=offset,
            power=to_float(_match(TCX_WATTS_RE, point)),
            heart_rate=_positive(_match(TCX_HR_RE, point)),
            cadence=to_float(_match(TCX_CADENCE_RE, point)),
            speed_kmh=speed_mps * MPS_TO_KMH if speed_mps is not None else None,
            elevation_m=to_float(_match(TCX_ALTITUDE_RE, point)),
            lat=to_float(_match(TCX_LAT_RE, point)),
            lon=to_float(_match(TCX_LON_RE, point)),
            cumulative_distance_m=to_float(_match(TCX_DISTANCE_RE, point)),
        ))

    logger.info(f"Decoded TCX file: sport={sport}, {len(samples)} trackpoints")

    return RawActivity(
        file_format="tcx",
        sport=sport,
        start_time=start_time,
        samples=samples,
        totals=_tcx_lap_totals(content),
        start_time_source=source,
    )


# ---------------------------------------------------------------------------
# GPX
# ---------------------------------------------------------------------------

GPX_TRKPT_RE = re.compile(r"<trkpt\b([^>]*?)(?:/>|>(.*?)</trkpt>)", re.S)
GPX_LAT_RE = re.compile(r'\blat="([^"]+)"')
GPX_LON_RE = re.compile(r'\blon="([^"]+)"')
GPX_NAME_RE = _tag("name")
GPX_TYPE_RE = _tag("type")
GPX_TIME_RE = _tag("time")
GPX_ELE_RE = _tag("ele")
GPX_HR_RE = _tag("hr")
GPX_CAD_RE = _tag("cad")
GPX_POWER_RE = _tag("power")
GPX_TEMP_RE = _tag("atemp")


def decode_gpx(content: str, fallback_start: Optional[datetime] = None) -> RawActivity:
    """
    Decode a GPX document by pattern matching over its tags.

    Distance is the haversine sum over consecutive track points and the
    duration is the span between the first and last track timestamps.

    Args:
        content: GPX document text
        fallback_start: Start time to use when the track has no timestamps

    Returns:
        Decoded RawActivity

    Raises:
        DecodeError: If the text is not a GPX document
    """
    if "<gpx" not in content:
        raise DecodeError("document has no gpx element", "gpx")

    name = _match(GPX_NAME_RE, content) or "GPX Activity"
    activity_type = _match(GPX_TYPE_RE, content) or "Unknown"

    points = []
    for attributes, body in GPX_TRKPT_RE.findall(content):
        body = body or ""
        points.append({
            "lat": to_float(_match(GPX_LAT_RE, attributes)),
            "lon": to_float(_match(GPX_LON_RE, attributes)),
            "time": parse_timestamp(_match(GPX_TIME_RE, body)),
            "ele": to_float(_match(GPX_ELE_RE, body)),
            "hr": _positive(_match(GPX_HR_RE, body)),
            "cad": to_float(_match(GPX_CAD_RE, body)),
            "power": to_float(_match(GPX_POWER_RE, body)),
            "temp": to_float(_match(GPX_TEMP_RE, body)),
        })

    times = [p["time"] for p in points if p["time"] is not None]
    if not times:
        times = [t for t in (parse_timestamp(v) for v in GPX_TIME_RE.findall(content)) if t is not None]

    duration = (times[-1] - times[0]).total_seconds() if len(times) > 1 else 0.0
    start_time, source = _resolve_start_time(None, times[0] if times else None, fallback_start)
    offsets = _time_offsets([p["time"] for p in points], start_time)

    samples = []
    total_distance = 0.0
    previous = None
    for point, offset in zip(points, offsets):
        has_position = point["lat"] is not None and point["lon"] is not None
        if has_position:
            if previous is not None:
                total_distance += haversine_distance(
                    previous["lat"], previous["lon"], point["lat"], point["lon"]
                )
            previous = point
        samples.append(Sample(
            time_offset_seconds=offset,
            power=point["power"],
            heart_rate=point["hr"],
            cadence=point["cad"],
            elevation_m=point["ele"],
            lat=point["lat"],
            lon=point["lon"],
            cumulative_distance_m=total_distance if has_position else None,
            temperature=point["temp"],
        ))

    logger.info(f"Decoded GPX file: {len(samples)} track points, {total_distance:.0f} m")

    return RawActivity(
        file_format="gpx",
        sport=activity_type,
        start_time=start_time,
        samples=samples,
        totals=SessionTotals(
            total_elapsed_time=duration if duration > 0 else None,
            total_distance=total_distance if total_distance > 0 else None,
        ),
        name=name,
        start_time_source=source,
    )


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

SAMPLE_FIELDS = tuple(f.name for f in fields(Sample))
TOTALS_FIELDS = tuple(f.name for f in fields(SessionTotals))


def decode_json(content: str, fallback_start: Optional[datetime] = None) -> RawActivity:
    """
    Decode a JSON payload that already follows the RawActivity shape.

    Expected keys: ``sport``, ``start_time``, ``name``, ``samples`` (list of
    objects with Sample field names) and ``totals`` (SessionTotals field
    names). Non-numeric values become None, as do totals that are not
    positive.

    Raises:
        DecodeError: If the payload is not valid JSON or not an object
    """
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        raise DecodeError(f"invalid JSON ({e.msg} at line {e.lineno})", "json") from e

    if not isinstance(payload, dict):
        raise DecodeError("top-level JSON value must be an object", "json")

    raw_samples = payload.get("samples") or []
    raw_totals = payload.get("totals") or {}
    if not isinstance(raw_samples, list) or not isinstance(raw_totals, dict):
        raise DecodeError("'samples' must be a list and 'totals' an object", "json")

    samples = []
    previous = 0
    for item in raw_samples:
        if not isinstance(item, dict):
            raise DecodeError("every sample must be an object", "json")
        offset = to_float(item.get("time_offset_seconds"))
        previous = max(previous, int(round(offset)) if offset is not None else previous)
        values = {key: to_float(item.get(key)) for key in SAMPLE_FIELDS if key != "time_offset_seconds"}
        samples.append(Sample(time_offset_seconds=previous, **values))

    totals = SessionTotals(**{key: _positive(raw_totals.get(key)) for key in TOTALS_FIELDS})
    start_time, source = _resolve_start_time(
        parse_timestamp(payload.get("start_time")), None, fallback_start
    )

    return RawActivity(
        file_format="json",
        sport=str(payload.get("sport") or "unknown"),
        start_time=start_time,
        samples=samples,
        totals=totals,
        name=str(payload["name"]) if payload.get("name") is not None else None,
        start_time_source=source,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def decode_activity(
    data: bytes,
    filename: Optional[str] = None,
    file_format: Optional[str] = None,
    fallback_start: Optional[datetime] = None,
) -> RawActivity:
    """
    Decode activity bytes in a declared or filename-inferred format.

    Args:
        data: Raw file bytes, optionally gzip-wrapped
        filename: Original file name used to infer the format
        file_format: Explicit format tag; takes precedence over the file name
        fallback_start: Caller-supplied start time used as last resort

    Returns:
        Decoded RawActivity

    Raises:
        UnsupportedFormatError: Unknown format, raised before any decoding
        DecompressionError: Corrupt gzip archive
        DecodeError: Payload cannot be parsed in the detected format
    """
    if file_format:
        file_format = file_format.lower().lstrip(".")
        if file_format not in SUPPORTED_FORMATS:
            raise UnsupportedFormatError(f"Unsupported file format '{file_format}'", file_format)
        declared_gzip = bool(filename and filename.lower().endswith(".gz"))
    else:
        file_format, declared_gzip = detect_format(filename or "")

    if declared_gzip or data[:2] == GZIP_MAGIC:
        data = decompress_gzip(data, file_format)
        logger.info(f"Decompressed gzip {file_format} file, size: {len(data)} bytes")

    if not data:
        raise DecodeError("file is empty", file_format)

    if file_format == "fit":
        return decode_fit(data, fallback_start)

    content = _decode_text(data, file_format)
    if file_format == "tcx":
        return decode_tcx(content, fallback_start)
    if file_format == "gpx":
        return decode_gpx(content, fallback_start)
    return decode_json(content, fallback_start)
