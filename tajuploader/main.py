"""TajUploader - Main entry point."""

import logging
import signal
import sys
from datetime import datetime, timedelta
from typing import Optional

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from . import __version__, console
from .auth import CredentialStore, StravaSession, TajiSession
from .config import Config, setup_logging
from .errors import ConfigurationError, SessionError
from .sync import StravaClient, SyncEngine, TajiClient

logger = logging.getLogger(__name__)


class TajUploaderApp:
    """Main application orchestrator.

    Initializing: load credentials, establish both sessions, persist any
    newly obtained tokens. Syncing: one cycle every interval, forever.
    """

    def __init__(self, config: Optional[Config] = None):
        """Initialize the application."""
        self.config = config or Config.load()
        setup_logging(self.config.debug_mode)

        logger.info(f"TajUploader {__version__} starting...")

        self.store = CredentialStore(self.config.credentials_path)
        self.strava_session: Optional[StravaSession] = None
        self.taji_session: Optional[TajiSession] = None
        self.sync_engine: Optional[SyncEngine] = None
        self.scheduler = BlockingScheduler()

    def initialize(self) -> None:
        """Establish both sessions and persist the credentials.

        Raises:
            ConfigurationError: If the credential store is unusable
            SessionError: If either session cannot be established
        """
        self.store.load()

        self.strava_session = StravaSession(self.store, self.config.strava)
        self.strava_session.authorize()

        self.taji_session = TajiSession(self.store, self.config.taji)
        self.taji_session.authenticate()

        if not self.store.save():
            logger.warning(f"Failed to write tokens to {self.store.path}")

        self.sync_engine = SyncEngine(
            strava=StravaClient(
                self.strava_session.http, per_page=self.config.strava.per_page
            ),
            taji=TajiClient(self.taji_session),
            settings=self.config.sync,
            on_taji_auth_error=self.taji_session.forget,
        )
        logger.info("Initialized successfully.")

    def run(self) -> None:
        """Initialize, then sync on a fixed interval until interrupted."""
        self.initialize()

        signal.signal(signal.SIGTERM, self._signal_handler)

        self.scheduler.add_job(
            self._do_sync,
            trigger=IntervalTrigger(hours=self.config.sync.interval_hours),
            id="sync_job",
            next_run_time=datetime.now(),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.info(f"Sync loop started (interval: {self.config.sync.interval_hours}h)")
        try:
            self.scheduler.start()
        finally:
            self._shutdown()

    def _do_sync(self) -> None:
        """Perform a sync cycle and report it."""
        try:
            stats = self.sync_engine.sync()
        except Exception as e:
            logger.exception(f"Sync error: {e}")
            return

        next_sync = datetime.now() + timedelta(hours=self.config.sync.interval_hours)
        console.report(stats, self.config.sync.goal_miles, next_sync)

    def _signal_handler(self, signum, frame) -> None:
        logger.info(f"Received signal {signum}, shutting down")
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def _shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        if self.taji_session is not None:
            self.taji_session.close()
        logger.info("TajUploader stopped")


def main() -> None:
    """Console entry point."""
    try:
        TajUploaderApp().run()
    except (ConfigurationError, SessionError) as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
