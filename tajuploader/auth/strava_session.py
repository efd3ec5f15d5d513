"""Strava OAuth2 session: authorization-code exchange and token lifecycle."""

import json
import logging
from typing import Optional

from oauthlib.oauth2 import OAuth2Error
from requests.exceptions import RequestException
from requests_oauthlib import OAuth2Session

from ..config import StravaSettings
from ..errors import AuthorizationTimeoutError, SessionError
from .browser_auth import BrowserAuthFlow
from .credential_store import (
    CredentialStore,
    SOURCE_CLIENT_ID,
    SOURCE_CLIENT_SECRET,
    SOURCE_TOKEN,
)

__all__ = ["StravaSession", "AUTHORIZE_URL", "TOKEN_URL"]

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"
TOKEN_URL = "https://www.strava.com/oauth/token"


class StravaSession:
    """Owns the OAuth2 token and the bearer-authenticated HTTP client.

    The token is refreshed by requests-oauthlib when it expires; every
    refreshed token is written back to the credential store.
    """

    def __init__(
        self,
        store: CredentialStore,
        settings: Optional[StravaSettings] = None,
        auth_flow_factory=BrowserAuthFlow,
    ):
        """Initialize Strava session.

        Args:
            store: Credential store holding client id/secret and token
            settings: OAuth settings (redirect port, scope, timeout)
            auth_flow_factory: Builds the redirect listener (injectable for tests)

        Raises:
            ConfigurationError: If client id or secret is missing
        """
        self.store = store
        self.settings = settings or StravaSettings()
        self._client_id = store.require(SOURCE_CLIENT_ID)
        self._client_secret = store.require(SOURCE_CLIENT_SECRET)
        self._auth_flow_factory = auth_flow_factory
        self._http: Optional[OAuth2Session] = None

    @property
    def http(self) -> OAuth2Session:
        """Bearer-authenticated client. authorize() must run first."""
        if self._http is None:
            raise SessionError("Strava session not authorized")
        return self._http

    def authorize(self) -> dict:
        """Restore the stored token or run the interactive authorization flow.

        Returns:
            The OAuth2 token

        Raises:
            SessionError: If the code exchange fails
            AuthorizationTimeoutError: If no redirect arrives in time
        """
        token = self._load_token()
        if token is not None:
            logger.info("Successfully loaded Strava OAuth token")
        else:
            token = self._authorize_interactive()
            self._save_token(token)
            logger.info("Successful authorization")

        self._http = OAuth2Session(
            self._client_id,
            token=token,
            auto_refresh_url=TOKEN_URL,
            auto_refresh_kwargs={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
            },
            token_updater=self._on_token_refreshed,
        )
        return token

    def _load_token(self) -> Optional[dict]:
        raw = self.store.get(SOURCE_TOKEN)
        if raw is None:
            return None
        try:
            token = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Stored Strava token is not valid JSON ({e}), re-authorizing")
            return None
        if not isinstance(token, dict) or "access_token" not in token:
            logger.warning("Stored Strava token is incomplete, re-authorizing")
            return None
        return token

    def _save_token(self, token: dict) -> None:
        self.store.set(SOURCE_TOKEN, json.dumps(token))

    def _on_token_refreshed(self, token: dict) -> None:
        logger.info("Strava token refreshed")
        self._save_token(token)
        self.store.save()

    def _authorize_interactive(self) -> dict:
        """Run the authorization-code flow through the local redirect listener."""
        oauth = OAuth2Session(
            self._client_id,
            redirect_uri=self.settings.redirect_uri,
            scope=[self.settings.scope],
        )
        authorization_url, state = oauth.authorization_url(AUTHORIZE_URL)

        flow = self._auth_flow_factory(
            authorization_url,
            state=state,
            port=self.settings.redirect_port,
            timeout_seconds=self.settings.auth_timeout_seconds,
        )
        result = flow.start()

        if not result.success:
            if result.error == "timeout":
                raise AuthorizationTimeoutError(
                    f"No authorization received within {self.settings.auth_timeout_seconds}s"
                )
            raise SessionError(f"Strava authorization failed: {result.error}")

        try:
            # Strava wants the client credentials in the request body
            return oauth.fetch_token(
                TOKEN_URL,
                code=result.code,
                client_secret=self._client_secret,
                include_client_id=True,
            )
        except (OAuth2Error, RequestException, ValueError) as e:
            raise SessionError(f"Strava token exchange failed: {e}") from e
