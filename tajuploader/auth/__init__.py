"""Auth module - Strava OAuth, Taji100 login and credential storage."""

from .browser_auth import BrowserAuthFlow
from .credential_store import CredentialStore
from .strava_session import StravaSession
from .taji_session import TajiSession

__all__ = ["BrowserAuthFlow", "CredentialStore", "StravaSession", "TajiSession"]
