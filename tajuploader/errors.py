"""Exception hierarchy for TajUploader."""

__all__ = [
    "TajUploaderError",
    "ConfigurationError",
    "SessionError",
    "AuthorizationTimeoutError",
    "ScrapeError",
    "StravaClientError",
    "StravaAuthError",
    "TajiClientError",
    "TajiAuthError",
]


class TajUploaderError(Exception):
    """Base error."""

    pass


class ConfigurationError(TajUploaderError):
    """Required configuration is missing or unreadable. Fatal."""

    pass


class SessionError(TajUploaderError):
    """Could not establish an authenticated session. Fatal."""

    pass


class AuthorizationTimeoutError(SessionError):
    """No OAuth redirect arrived before the listener timed out."""

    pass


class ScrapeError(TajUploaderError):
    """An expected element was not found in a scraped page."""

    pass


class StravaClientError(TajUploaderError):
    """Strava API request failed."""

    pass


class StravaAuthError(StravaClientError):
    """Strava rejected the token or the token could not be refreshed."""

    pass


class TajiClientError(TajUploaderError):
    """Taji100 request failed."""

    pass


class TajiAuthError(TajiClientError):
    """Taji100 bounced the request to its login page."""

    pass
