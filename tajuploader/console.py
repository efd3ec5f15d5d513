"""Terminal output for sync cycles."""

import logging
import os
import subprocess
from datetime import datetime

from .sync.sync_engine import SyncStats

logger = logging.getLogger(__name__)


def clear_screen() -> None:
    if os.name == "nt":
        subprocess.run(["cmd", "/c", "cls"], check=False)
    else:
        subprocess.run(["clear"], check=False)


def format_report(
    stats: SyncStats,
    goal_miles: float,
    synced_at: datetime,
    next_sync: datetime,
) -> str:
    """Cycle summary shown to the operator."""
    lines = [
        f"Synced at {synced_at:%Y-%m-%d %H:%M:%S}",
        f"You have logged {stats.events_found} events",
        f"totaling {stats.miles:.2f} miles",
        f"over {stats.minutes} minutes.",
        f"You are {stats.percent_of_goal(goal_miles):.2f}% of the way to completing "
        f"Taji100. Great Job!",
    ]
    if stats.runs_submitted or stats.submit_failures:
        lines.append(
            f"Uploaded {stats.runs_submitted} new runs"
            + (f" ({stats.submit_failures} failed)" if stats.submit_failures else "")
        )
    for error in stats.errors:
        lines.append(f"Warning: {error}")
    lines.append(f"Resyncing at {next_sync:%Y-%m-%d %H:%M:%S}.")
    return "\n".join(lines)


def report(stats: SyncStats, goal_miles: float, next_sync: datetime) -> None:
    """Clear the terminal and print the cycle summary."""
    try:
        clear_screen()
    except OSError as e:
        logger.debug(f"Failed to clear screen: {e}")
    print(format_report(stats, goal_miles, datetime.now(), next_sync))
