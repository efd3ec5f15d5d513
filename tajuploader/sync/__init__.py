"""Sync module - reads Strava runs and logs them on Taji100."""

from .runs import CanonicalRun, build_run, meter2mile
from .strava_client import StravaClient
from .taji_client import TajiClient, TajiEvent
from .reconcile import is_logged, missing
from .sync_engine import SyncEngine, SyncStats
from .protocols import StravaClientProtocol, TajiClientProtocol, TajiHttpProtocol

__all__ = [
    "CanonicalRun",
    "build_run",
    "meter2mile",
    "StravaClient",
    "TajiClient",
    "TajiEvent",
    "is_logged",
    "missing",
    "SyncEngine",
    "SyncStats",
    "StravaClientProtocol",
    "TajiClientProtocol",
    "TajiHttpProtocol",
]
