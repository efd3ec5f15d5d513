"""Protocol types for SyncEngine dependencies.

Defines the interfaces that SyncEngine and TajiClient require from their
collaborators, enabling easier testing and looser coupling.
"""

from typing import Optional, Protocol, runtime_checkable

import requests

from .runs import CanonicalRun
from .taji_client import TajiEvent


@runtime_checkable
class StravaClientProtocol(Protocol):
    """Interface for reading runs from Strava."""

    def fetch_runs(self, after: int, before: int) -> list[CanonicalRun]: ...


@runtime_checkable
class TajiClientProtocol(Protocol):
    """Interface for scraping and posting Taji100 log entries."""

    def get_events(self) -> tuple[list[TajiEvent], int]: ...

    def post_run(self, run: CanonicalRun) -> None: ...


@runtime_checkable
class TajiHttpProtocol(Protocol):
    """Interface of the authenticated Taji100 session used by TajiClient."""

    @property
    def participant_id(self) -> str: ...

    def get(self, path: str, allow_login: bool = False) -> requests.Response: ...

    def post_form(
        self, path: str, data: dict, referer: Optional[str] = None
    ) -> requests.Response: ...
