"""Taji100 client - scrapes logged entries and posts new runs."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..errors import ScrapeError
from .runs import CanonicalRun
from .scrape import (
    FORM_TOKEN_FIELD,
    extract_entry_date,
    extract_entry_ids,
    extract_entry_time,
    extract_form_token,
)

if TYPE_CHECKING:
    from .protocols import TajiHttpProtocol

__all__ = ["TajiClient", "TajiEvent", "NEW_LOG_PATH"]

logger = logging.getLogger(__name__)

NEW_LOG_PATH = "/log/new?activity=run"


@dataclass(frozen=True)
class TajiEvent:
    """An entry already logged on Taji100, as shown on its edit form."""

    date: str
    time: str


class TajiClient:
    """Entry scraping and run submission over an authenticated TajiSession."""

    def __init__(self, http: "TajiHttpProtocol"):
        """Initialize Taji100 client.

        Args:
            http: Authenticated session issuing the requests
        """
        self.http = http

    def list_entry_ids(self) -> list[str]:
        """Ids of every entry on the participant's profile page."""
        page = self.http.get(f"/participants/{self.http.participant_id}/")
        entry_ids = extract_entry_ids(page.content)
        logger.debug(f"Found {len(entry_ids)} entries on profile page")
        return entry_ids

    def resolve_event(self, entry_id: str) -> TajiEvent:
        """Read the logged date and time from an entry's edit page.

        Raises:
            ScrapeError: If the page lacks either field
            TajiClientError: On transport or HTTP errors
        """
        page = self.http.get(f"/log/{entry_id}/edit")
        return TajiEvent(
            date=extract_entry_date(page.content),
            time=extract_entry_time(page.content),
        )

    def get_events(self) -> tuple[list[TajiEvent], int]:
        """Scrape every logged event, skipping entries whose page cannot be read.

        Returns:
            (events, number of skipped entries)
        """
        events = []
        skipped = 0
        for entry_id in self.list_entry_ids():
            try:
                events.append(self.resolve_event(entry_id))
            except ScrapeError as e:
                skipped += 1
                logger.warning(f"Skipping entry {entry_id}: {e}")
        return events, skipped

    def post_run(self, run: CanonicalRun) -> None:
        """Submit a run through the new-log form.

        A fresh form token is read from the form page first; the site issues
        one per page load.

        Raises:
            ScrapeError: If the form page has no token
            TajiClientError: On transport or HTTP errors
        """
        form_page = self.http.get(NEW_LOG_PATH)
        token = extract_form_token(form_page.content)

        data = {FORM_TOKEN_FIELD: token}
        data.update(run.form_fields())
        self.http.post_form(NEW_LOG_PATH, data)
        logger.info(f"Posted run {run.date} {run.time} ({run.distance} mi)")
