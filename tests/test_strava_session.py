"""Tests for Strava OAuth session management."""

import json
import time
from unittest.mock import Mock
from urllib.parse import parse_qs

import pytest
import responses

from tajuploader.auth.browser_auth import AuthFlowResult
from tajuploader.auth.credential_store import (
    CredentialStore,
    SOURCE_CLIENT_ID,
    SOURCE_CLIENT_SECRET,
    SOURCE_TOKEN,
)
from tajuploader.auth.strava_session import TOKEN_URL, StravaSession
from tajuploader.errors import AuthorizationTimeoutError, ConfigurationError, SessionError
from tajuploader.sync.strava_client import StravaClient

ACTIVITIES_URL = "https://www.strava.com/api/v3/athlete/activities"


def _token(access="access-1", refresh="refresh-1", expires_in=21600):
    return {
        "token_type": "Bearer",
        "access_token": access,
        "refresh_token": refresh,
        "expires_at": int(time.time()) + expires_in,
        "expires_in": expires_in,
    }


class TestStravaSession:
    """Tests for StravaSession."""

    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        """Set up a store with client credentials."""
        self.store = CredentialStore(tmp_path / "taju.env")
        self.store.set(SOURCE_CLIENT_ID, "12345")
        self.store.set(SOURCE_CLIENT_SECRET, "s3cret")
        self.flow = Mock()
        self.factory = Mock(return_value=self.flow)

    def test_missing_client_id_raises(self, tmp_path):
        """Test client credentials are required up front."""
        store = CredentialStore(tmp_path / "empty.env")
        store.set(SOURCE_CLIENT_SECRET, "s3cret")

        with pytest.raises(ConfigurationError, match=SOURCE_CLIENT_ID):
            StravaSession(store)

    def test_http_before_authorize_raises(self):
        """Test the client is unavailable until authorized."""
        session = StravaSession(self.store, auth_flow_factory=self.factory)

        with pytest.raises(SessionError):
            session.http

    def test_stored_token_skips_flow(self):
        """Test a stored token is used without prompting."""
        token = _token()
        self.store.set(SOURCE_TOKEN, json.dumps(token))

        session = StravaSession(self.store, auth_flow_factory=self.factory)
        result = session.authorize()

        assert result["access_token"] == "access-1"
        assert session.http.token["access_token"] == "access-1"
        self.factory.assert_not_called()

    @responses.activate
    def test_invalid_stored_token_runs_flow(self):
        """Test a corrupt stored token falls back to the interactive flow."""
        self.store.set(SOURCE_TOKEN, "{not json")
        self.flow.start.return_value = AuthFlowResult(success=True, code="auth-code")
        responses.add(responses.POST, TOKEN_URL, json=_token(access="access-2"), status=200)

        session = StravaSession(self.store, auth_flow_factory=self.factory)
        session.authorize()

        self.factory.assert_called_once()
        assert json.loads(self.store.get(SOURCE_TOKEN))["access_token"] == "access-2"

    @responses.activate
    def test_interactive_flow_exchanges_code(self):
        """Test the authorization code is exchanged for a stored token."""
        self.flow.start.return_value = AuthFlowResult(success=True, code="auth-code")
        responses.add(responses.POST, TOKEN_URL, json=_token(), status=200)

        session = StravaSession(self.store, auth_flow_factory=self.factory)
        session.authorize()

        url = self.factory.call_args[0][0]
        kwargs = self.factory.call_args[1]
        assert url.startswith("https://www.strava.com/oauth/authorize?")
        assert "client_id=12345" in url
        assert "redirect_uri=http%3A%2F%2Flocalhost%3A9191" in url
        assert f"state={kwargs['state']}" in url
        assert kwargs["port"] == 9191
        assert kwargs["timeout_seconds"] == 300

        body = parse_qs(responses.calls[0].request.body)
        assert body["code"] == ["auth-code"]
        assert body["client_id"] == ["12345"]
        assert body["client_secret"] == ["s3cret"]
        assert body["grant_type"] == ["authorization_code"]

        assert json.loads(self.store.get(SOURCE_TOKEN))["access_token"] == "access-1"

    def test_flow_timeout_raises(self):
        """Test a listener timeout is reported distinctly."""
        self.flow.start.return_value = AuthFlowResult(success=False, error="timeout")

        with pytest.raises(AuthorizationTimeoutError):
            StravaSession(self.store, auth_flow_factory=self.factory).authorize()

    def test_flow_denied_raises(self):
        """Test a denied authorization fails the session."""
        self.flow.start.return_value = AuthFlowResult(success=False, error="access_denied")

        with pytest.raises(SessionError, match="access_denied"):
            StravaSession(self.store, auth_flow_factory=self.factory).authorize()

    @responses.activate
    def test_exchange_failure_raises(self):
        """Test a rejected code exchange fails the session."""
        self.flow.start.return_value = AuthFlowResult(success=True, code="bad-code")
        responses.add(
            responses.POST,
            TOKEN_URL,
            json={"message": "Bad Request", "errors": [{"field": "code", "code": "invalid"}]},
            status=400,
        )

        with pytest.raises(SessionError):
            StravaSession(self.store, auth_flow_factory=self.factory).authorize()

        assert self.store.get(SOURCE_TOKEN) is None

    @responses.activate
    def test_expired_token_refreshed_and_saved(self):
        """Test an expired token is refreshed on use and written back."""
        self.store.set(SOURCE_TOKEN, json.dumps(_token(expires_in=-60)))
        responses.add(
            responses.POST,
            TOKEN_URL,
            json=_token(access="access-new", refresh="refresh-new"),
            status=200,
        )
        responses.add(responses.GET, ACTIVITIES_URL, json=[], status=200)

        session = StravaSession(self.store, auth_flow_factory=self.factory)
        session.authorize()
        runs = StravaClient(session.http).fetch_runs(1738368000, 1740787200)

        assert runs == []
        assert responses.calls[1].request.headers["Authorization"] == "Bearer access-new"
        reloaded = CredentialStore(self.store.path).load()
        assert json.loads(reloaded.get(SOURCE_TOKEN))["refresh_token"] == "refresh-new"
