"""Decide which Strava runs are not yet logged on Taji100."""

from .runs import CanonicalRun
from .taji_client import TajiEvent

__all__ = ["is_logged", "missing"]


def is_logged(run: CanonicalRun, event: TajiEvent) -> bool:
    """Whether an event represents the run.

    Matches on (date, time) only, so two runs started in the same minute
    are indistinguishable.
    """
    return event.date == run.date and event.time == run.time


def missing(runs: list[CanonicalRun], events: list[TajiEvent]) -> list[CanonicalRun]:
    """Runs with no matching event, in their original order."""
    return [run for run in runs if not any(is_logged(run, event) for event in events)]
