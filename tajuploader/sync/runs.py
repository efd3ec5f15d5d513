"""Canonical run record, shaped like the Taji100 new-log form."""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional

__all__ = ["CanonicalRun", "build_run", "meter2mile", "METERS_TO_MILES"]

METERS_TO_MILES = 0.000621371


def meter2mile(meters: float) -> float:
    return meters * METERS_TO_MILES


@dataclass(frozen=True)
class CanonicalRun:
    """One run activity, normalized to the sink's form fields.

    All time fields derive from one local-time instant.
    """

    date: str  # YYYY-MM-DD
    time: str  # HH:MM:AM, as the sink renders logged times
    time_hours: str
    time_minutes: str
    time_ampm: str
    distance: str  # miles, 2 decimals
    duration: str  # H:M:SS where M is total minutes
    duration_hours: str
    duration_minutes: str
    duration_seconds: str
    distance_meters: float
    duration_total_seconds: int
    elevation_gain: str = ""

    def form_fields(self) -> dict[str, str]:
        """Field set posted to the new-log form (without the form token)."""
        return {
            "activity": "run",
            "date": self.date,
            "time": self.time,
            "time_hours": self.time_hours,
            "time_minutes": self.time_minutes,
            "time_ampm": self.time_ampm,
            "distance": self.distance,
            "duration": self.duration,
            "duration_hours": self.duration_hours,
            "duration_minutes": self.duration_minutes,
            "duration_seconds": self.duration_seconds,
            "elevation_gain": self.elevation_gain,
        }


def build_run(
    iso_timestamp: str,
    elapsed_seconds: int,
    meters: float,
    tz: Optional[tzinfo] = None,
) -> CanonicalRun:
    """Build a CanonicalRun from a Strava start time, elapsed time and distance.

    Args:
        iso_timestamp: ISO-8601 start time, e.g. "2025-02-10T14:30:00Z"
        elapsed_seconds: Elapsed time in seconds
        meters: Distance in meters
        tz: Target time zone; the system local zone when None

    Minutes are total minutes, not minutes within the hour: 5425s gives
    "1:90:25". The sink accepts this and already-logged entries carry it.
    """
    started = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    if started.tzinfo is None:
        raise ValueError(f"Timestamp has no UTC offset: {iso_timestamp}")
    local = started.astimezone(tz)

    elapsed = int(elapsed_seconds)
    seconds = elapsed % 60
    minutes = elapsed // 60
    hours = minutes // 60

    hour_12 = local.strftime("%I")
    minute = local.strftime("%M")
    ampm = "AM" if local.hour < 12 else "PM"

    return CanonicalRun(
        date=local.strftime("%Y-%m-%d"),
        time=f"{hour_12}:{minute}:{ampm}",
        time_hours=hour_12,
        time_minutes=minute,
        time_ampm=ampm,
        distance=f"{meter2mile(meters):.2f}",
        duration=f"{hours}:{minutes}:{seconds:02d}",
        duration_hours=str(hours),
        duration_minutes=str(minutes),
        duration_seconds=f"{seconds:02d}",
        distance_meters=float(meters),
        duration_total_seconds=elapsed,
    )
