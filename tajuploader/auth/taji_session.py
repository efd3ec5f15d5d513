"""Taji100 cookie session: restore stored cookies or log in interactively."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from ..config import TajiSettings
from ..errors import ScrapeError, SessionError, TajiAuthError, TajiClientError
from ..sync.scrape import extract_form_token, extract_participant_id, is_login_page
from .credential_store import CredentialStore, SINK_CSRF, SINK_PARTICIPANT, SINK_SESSION

__all__ = ["TajiSession", "TajiCredentials"]

logger = logging.getLogger(__name__)

CSRF_COOKIE = "csrftoken"
SESSION_COOKIE = "sessionid"
LOGIN_PATH = "/account/login/"


@dataclass(frozen=True)
class TajiCredentials:
    """Cookie pair plus the participant id they belong to."""

    csrf: str
    session: str
    participant_id: str


class TajiSession:
    """Owns the cookie-jar HTTP client for taji100.com.

    Only request-issuing operations are exposed; cookie values stay inside.
    """

    USER_AGENT = "TajUploader/1.0.0"

    def __init__(
        self,
        store: CredentialStore,
        settings: Optional[TajiSettings] = None,
        prompt: Callable[[str], str] = input,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """Initialize Taji100 session.

        Args:
            store: Credential store holding the cookie triplet
            settings: Site settings (base URL)
            prompt: Reads one line from the operator
            timeout: Request timeout in seconds
            session: Optional requests session (for dependency injection/testing)
        """
        self.store = store
        self.settings = settings or TajiSettings()
        self.base_url = self.settings.base_url.rstrip("/")
        self.timeout = timeout
        self._prompt = prompt
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = self.USER_AGENT
        self._participant_id: Optional[str] = None

    @property
    def participant_id(self) -> str:
        if self._participant_id is None:
            raise SessionError("Taji100 session not authenticated")
        return self._participant_id

    @property
    def domain(self) -> str:
        return self.base_url.split("://", 1)[-1].split("/", 1)[0]

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def authenticate(self) -> TajiCredentials:
        """Adopt stored cookies, or log in and store the new ones.

        Returns:
            The credentials now installed on the client

        Raises:
            SessionError: If the login pages cannot be fetched or parsed
        """
        if self.store.has(SINK_CSRF, SINK_SESSION, SINK_PARTICIPANT):
            credentials = TajiCredentials(
                csrf=self.store.get(SINK_CSRF),
                session=self.store.get(SINK_SESSION),
                participant_id=self.store.get(SINK_PARTICIPANT),
            )
            logger.info("Successfully loaded Taji100 session tokens")
            self._install(credentials)
        else:
            try:
                credentials = self._login()
            except (ScrapeError, TajiClientError) as e:
                raise SessionError(f"Taji100 login failed: {e}") from e
            self.store.set(SINK_CSRF, credentials.csrf)
            self.store.set(SINK_SESSION, credentials.session)
            self.store.set(SINK_PARTICIPANT, credentials.participant_id)
            logger.info(f"Logged in to Taji100 as participant {credentials.participant_id}")
            self._participant_id = credentials.participant_id

        return credentials

    def credentials(self) -> TajiCredentials:
        """Snapshot of the current cookie pair and participant id."""
        return TajiCredentials(
            csrf=self._cookie(CSRF_COOKIE) or "",
            session=self._cookie(SESSION_COOKIE) or "",
            participant_id=self.participant_id,
        )

    def forget(self) -> None:
        """Drop the stored cookie triplet so the next start logs in again."""
        for key in (SINK_CSRF, SINK_SESSION, SINK_PARTICIPANT):
            self.store.delete(key)
        self.store.save()
        logger.warning("Stored Taji100 session cleared; restart to log in again")

    def _cookie(self, name: str) -> Optional[str]:
        # Last one wins if the site set the same name on several paths
        values = [cookie.value for cookie in self._session.cookies if cookie.name == name]
        return values[-1] if values else None

    def _install(self, credentials: TajiCredentials) -> None:
        self._session.cookies.set(CSRF_COOKIE, credentials.csrf, domain=self.domain, path="/")
        self._session.cookies.set(SESSION_COOKIE, credentials.session, domain=self.domain, path="/")
        self._participant_id = credentials.participant_id

    def _login(self) -> TajiCredentials:
        """Interactive login: form token, operator credentials, then cookies."""
        login_url = self.url(LOGIN_PATH)
        login_page = self.get(LOGIN_PATH, allow_login=True)
        form_token = extract_form_token(login_page.content)

        username = self._prompt(
            "Enter your Taji100 username (it should be your email address) and hit ENTER: "
        ).strip()
        password = self._prompt("Enter your Taji100 password and hit ENTER: ").strip()

        self._request(
            "POST",
            login_url,
            data={
                "csrfmiddlewaretoken": form_token,
                "email": username,
                "password": password,
            },
            headers={"Referer": login_url},
        )

        csrf = self._cookie(CSRF_COOKIE)
        session_id = self._cookie(SESSION_COOKIE)
        if not csrf or not session_id:
            raise SessionError("Taji100 login rejected (no session cookie); check username and password")

        home = self.get("/")
        participant_id = extract_participant_id(home.content)
        return TajiCredentials(csrf=csrf, session=session_id, participant_id=participant_id)

    def get(self, path: str, allow_login: bool = False) -> requests.Response:
        """GET a site page.

        Raises:
            TajiAuthError: If the site redirected to its login page
            TajiClientError: On transport or HTTP errors
        """
        response = self._request("GET", self.url(path))
        if not allow_login and is_login_page(response.url):
            raise TajiAuthError(f"Redirected to login page fetching {path}")
        return response

    def post_form(self, path: str, data: dict, referer: Optional[str] = None) -> requests.Response:
        """POST a url-encoded form with the given Referer (defaults to the form page).

        Raises:
            TajiAuthError: If the site redirected to its login page
            TajiClientError: On transport or HTTP errors
        """
        url = self.url(path)
        response = self._request("POST", url, data=data, headers={"Referer": referer or url})
        if is_login_page(response.url):
            raise TajiAuthError(f"Redirected to login page posting {path}")
        return response

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self._session.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except requests.exceptions.ConnectionError as e:
            raise TajiClientError(f"Cannot connect to {self.base_url}") from e
        except requests.exceptions.Timeout as e:
            raise TajiClientError(f"Taji100 request timed out: {method} {url}") from e
        except requests.exceptions.HTTPError as e:
            raise TajiClientError(f"Taji100 error ({e.response.status_code}) for {method} {url}") from e
        except requests.exceptions.RequestException as e:
            raise TajiClientError(f"Unexpected error: {e}") from e

    def close(self) -> None:
        """Close the session."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "TajiSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
