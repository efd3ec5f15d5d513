"""Strava client - reads run activities from the Strava API."""

import logging

import requests
from oauthlib.oauth2 import OAuth2Error

from ..errors import StravaAuthError, StravaClientError
from .runs import CanonicalRun, build_run

__all__ = ["StravaClient", "STRAVA_API_URL", "RUN_TYPE"]

logger = logging.getLogger(__name__)

STRAVA_API_URL = "https://www.strava.com/api/v3"
RUN_TYPE = "Run"


class StravaClient:
    """Fetches activities and normalizes runs into CanonicalRun records."""

    def __init__(
        self,
        session: requests.Session,
        per_page: int = 100,
        timeout: int = 30,
        api_url: str = STRAVA_API_URL,
    ):
        """Initialize Strava client.

        Args:
            session: Bearer-authenticated session (StravaSession.http)
            per_page: Page-size cap sent with the activities query
            timeout: Request timeout in seconds
            api_url: Strava API base URL
        """
        self._session = session
        self.per_page = per_page
        self.timeout = timeout
        self.api_url = api_url.rstrip("/")

    def get_activities(self, after: int, before: int) -> list[dict]:
        """Get raw activities started inside (after, before) epoch seconds.

        Raises:
            StravaAuthError: If the token is rejected or cannot be refreshed
            StravaClientError: On transport, HTTP or JSON errors
        """
        url = f"{self.api_url}/athlete/activities"
        params = {"after": after, "before": before, "per_page": self.per_page}
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            if response.status_code == 401:
                raise StravaAuthError("Invalid or expired Strava token")
            response.raise_for_status()
            activities = response.json()
        except OAuth2Error as e:
            raise StravaAuthError(f"Strava token refresh failed: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise StravaClientError("Cannot connect to Strava API") from e
        except requests.exceptions.Timeout as e:
            raise StravaClientError("Strava request timed out") from e
        except requests.exceptions.HTTPError as e:
            raise StravaClientError(f"Strava API error ({e.response.status_code})") from e
        except requests.exceptions.JSONDecodeError as e:
            raise StravaClientError(f"Invalid JSON from Strava: {e}") from e
        except requests.exceptions.RequestException as e:
            raise StravaClientError(f"Unexpected error: {e}") from e

        if not isinstance(activities, list):
            raise StravaClientError("Unexpected activities payload (expected a list)")
        return activities

    def fetch_runs(self, after: int, before: int) -> list[CanonicalRun]:
        """Fetch activities in the window and keep only runs, in API order."""
        runs = []
        for activity in self.get_activities(after, before):
            if activity.get("type") != RUN_TYPE:
                continue
            try:
                runs.append(
                    build_run(
                        activity["start_date"],
                        int(activity["elapsed_time"]),
                        float(activity["distance"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed activity {activity.get('id', 'unknown')}: {e}")
        logger.info(f"Fetched {len(runs)} runs from Strava")
        return runs
