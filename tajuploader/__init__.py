"""TajUploader - syncs Strava runs to a Taji100 participant log."""

__version__ = "1.0.0"
