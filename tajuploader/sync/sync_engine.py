"""Sync engine - orchestrates one Strava -> Taji100 cycle."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..config import SyncSettings
from ..errors import ScrapeError, StravaClientError, TajiAuthError, TajiClientError
from .protocols import StravaClientProtocol, TajiClientProtocol
from .reconcile import missing
from .runs import meter2mile

__all__ = ["SyncEngine", "SyncStats"]

logger = logging.getLogger(__name__)


@dataclass
class SyncStats:
    """Statistics from a sync cycle."""

    runs_fetched: int = 0
    events_found: int = 0
    entries_skipped: int = 0
    runs_missing: int = 0
    runs_submitted: int = 0
    submit_failures: int = 0
    total_meters: float = 0.0
    total_seconds: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0

    @property
    def miles(self) -> float:
        return meter2mile(self.total_meters)

    @property
    def minutes(self) -> int:
        return self.total_seconds // 60

    def percent_of_goal(self, goal_miles: float) -> float:
        if goal_miles <= 0:
            return 0.0
        return self.miles / goal_miles * 100


class SyncEngine:
    """Core sync engine: fetch, scrape, reconcile, submit."""

    def __init__(
        self,
        strava: StravaClientProtocol,
        taji: TajiClientProtocol,
        settings: Optional[SyncSettings] = None,
        on_taji_auth_error: Optional[Callable[[], None]] = None,
    ):
        """Initialize sync engine.

        Args:
            strava: Source of canonical runs
            taji: Entry scraper and submitter
            settings: Sync window and goal
            on_taji_auth_error: Called when Taji100 bounces us to its login page
        """
        self.strava = strava
        self.taji = taji
        self.settings = settings or SyncSettings()
        self._on_taji_auth_error = on_taji_auth_error

    def sync(self) -> SyncStats:
        """Perform a sync cycle.

        1. Fetch runs in the sync window (empty on failure)
        2. Scrape the participant's logged entries
        3. Resolve each entry's date/time, skipping unreadable entries
        4. Submit every run without a matching event

        Nothing is submitted if the logged entries could not be listed,
        since the duplicate check would be blind.
        """
        stats = SyncStats()

        after, before = self.settings.window
        try:
            runs = self.strava.fetch_runs(after, before)
        except StravaClientError as e:
            logger.warning(f"Failed to fetch Strava activities: {e}")
            stats.errors.append(f"Strava fetch failed: {e}")
            runs = []

        stats.runs_fetched = len(runs)
        stats.total_meters = sum(run.distance_meters for run in runs)
        stats.total_seconds = sum(run.duration_total_seconds for run in runs)

        try:
            events, stats.entries_skipped = self.taji.get_events()
        except TajiAuthError as e:
            logger.error(f"Taji100 session rejected: {e}")
            stats.errors.append("Taji100 session expired, re-login required")
            if self._on_taji_auth_error:
                self._on_taji_auth_error()
            return stats
        except TajiClientError as e:
            logger.warning(f"Failed to read Taji100 entries: {e}")
            stats.errors.append(f"Taji100 scrape failed: {e}")
            return stats

        stats.events_found = len(events)

        pending = missing(runs, events)
        stats.runs_missing = len(pending)
        for run in pending:
            try:
                self.taji.post_run(run)
                stats.runs_submitted += 1
            except TajiAuthError as e:
                logger.error(f"Taji100 session rejected while posting: {e}")
                stats.submit_failures += len(pending) - stats.runs_submitted - stats.submit_failures
                stats.errors.append("Taji100 session expired, re-login required")
                if self._on_taji_auth_error:
                    self._on_taji_auth_error()
                break
            except (TajiClientError, ScrapeError) as e:
                stats.submit_failures += 1
                logger.warning(f"Failed to post run {run.date} {run.time}: {e}")
                stats.errors.append(f"Post failed for {run.date} {run.time}: {e}")

        logger.info(
            f"Sync complete: {stats.runs_fetched} runs, {stats.events_found} events, "
            f"{stats.runs_submitted} submitted, {stats.submit_failures} failed"
        )
        return stats
