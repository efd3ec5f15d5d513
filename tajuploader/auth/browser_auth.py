"""Browser-based OAuth authorization flow.

Prints the Strava authorize URL (and tries to open it in a browser).
A local HTTP server on the fixed redirect port receives the callback
with the authorization code.
"""

import logging
import threading
import webbrowser
from dataclasses import dataclass
from http.server import HTTPServer, BaseHTTPRequestHandler
from typing import Optional
from urllib.parse import urlparse, parse_qs

__all__ = ["BrowserAuthFlow", "AuthFlowResult"]

logger = logging.getLogger(__name__)


@dataclass
class AuthFlowResult:
    """Result of browser auth flow."""

    success: bool
    code: Optional[str] = None
    error: Optional[str] = None


_SUCCESS_HTML = """\
<!DOCTYPE html>
<html>
<head><title>TajUploader - Authorized</title></head>
<body>
    <h1>Successful authorization!</h1>
    <p>You can close this tab and return to TajUploader.</p>
</body>
</html>
"""

_ERROR_HTML = """\
<!DOCTYPE html>
<html>
<head><title>TajUploader - Error</title></head>
<body>
    <h1>Authorization Failed</h1>
    <p>Something went wrong. Restart TajUploader to try again.</p>
</body>
</html>
"""


class _CallbackHandler(BaseHTTPRequestHandler):
    """HTTP handler that captures the authorization callback."""

    def do_GET(self):  # noqa: N802 - required by BaseHTTPRequestHandler
        parsed = urlparse(self.path)

        if parsed.path != "/":
            self.send_response(404)
            self.end_headers()
            return

        # Only the first callback counts; later requests never reach the exchange.
        with self.server.lock:
            if self.server.callback_received.is_set():
                self._respond(200, _SUCCESS_HTML)
                return

            params = parse_qs(parsed.query)
            code = params.get("code", [None])[0]
            state = params.get("state", [None])[0]
            error = params.get("error", [None])[0]

            if error:
                self._respond(400, _ERROR_HTML)
                self.server.auth_error = error
                self.server.callback_received.set()
                return

            if not code:
                # Browsers probe for favicons etc.; keep waiting for the real redirect
                self._respond(400, _ERROR_HTML)
                return

            if state != self.server.expected_state:
                logger.warning("State parameter mismatch - possible CSRF attempt")
                self._respond(400, _ERROR_HTML)
                self.server.auth_error = "state_mismatch"
                self.server.callback_received.set()
                return

            self._respond(200, _SUCCESS_HTML)
            self.server.auth_code = code
            self.server.callback_received.set()

    def _respond(self, status: int, body: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "text/html")
        self.end_headers()
        self.wfile.write(body.encode())

    def log_message(self, format, *args):
        """Suppress default HTTP server logs."""
        logger.debug(f"Callback server: {format % args}")


class BrowserAuthFlow:
    """Manages the browser-based authorization flow.

    Flow:
    1. Start a local HTTP server on the redirect port registered with Strava
    2. Show the authorize URL to the operator
    3. Wait (bounded) for the callback with the authorization code
    4. Verify the state parameter matches
    5. Shut the server down and return the code
    """

    def __init__(
        self,
        authorize_url: str,
        state: str,
        port: int,
        timeout_seconds: float = 300,
        open_browser: bool = True,
    ):
        """Initialize browser auth flow.

        Args:
            authorize_url: Full provider authorize URL, state included
            state: State value embedded in authorize_url
            port: Local port of the registered redirect URI
            timeout_seconds: How long to wait for the redirect
            open_browser: Also try to open the URL in a browser
        """
        self._authorize_url = authorize_url
        self._state = state
        self._port = port
        self._timeout = timeout_seconds
        self._open_browser = open_browser
        self._server: Optional[HTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    def cancel(self) -> None:
        """Cancel a running auth flow, unblocking start() immediately."""
        if self._server is not None:
            self._server.callback_received.set()

    def start(self) -> AuthFlowResult:
        """Run the full auth flow and return the authorization code."""
        try:
            self._server = HTTPServer(("localhost", self._port), _CallbackHandler)
        except OSError as e:
            logger.error(f"Cannot listen on redirect port {self._port}: {e}")
            return AuthFlowResult(success=False, error="port_unavailable")

        self._server.lock = threading.Lock()
        self._server.auth_code = None
        self._server.auth_error = None
        self._server.expected_state = self._state
        self._server.callback_received = threading.Event()

        logger.info(f"Callback server listening on port {self._port}")

        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

        try:
            print("We need to authorize TajUploader to access your Strava account...")
            print(
                "please visit the URL for the authorization dialog:\n\n"
                f"{self._authorize_url}\n"
            )
            if self._open_browser:
                webbrowser.open(self._authorize_url)

            got_response = self._server.callback_received.wait(timeout=self._timeout)

            if not got_response:
                logger.warning("Authorization timed out (no callback received)")
                return AuthFlowResult(success=False, error="timeout")

            if self._server.auth_code:
                logger.info("Authorization code received (state verified)")
                return AuthFlowResult(success=True, code=self._server.auth_code)

            logger.warning(f"Authorization failed: {self._server.auth_error}")
            return AuthFlowResult(
                success=False, error=self._server.auth_error or "cancelled"
            )
        finally:
            self._server.shutdown()
            self._server.server_close()
            if self._thread is not None:
                self._thread.join(timeout=2.0)
