"""Loopback HTTP server for implicit grant redirect capture.

The implicit grant returns the access token in the URL fragment, which
browsers never send to a server. The callback path therefore serves a
small relay page that reads ``location.hash`` and re-requests the
server with the fragment moved into the query string. Provider errors
(``?error=access_denied``) arrive in the query and are captured directly.

Uses only stdlib (http.server, threading, urllib.parse).
"""

# pylint: disable=invalid-name,protected-access

from __future__ import annotations

import html
import logging
import secrets
import threading

from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any
from urllib.parse import parse_qsl, urlparse

from ..log import redact_sensitive_data


logger = logging.getLogger("twitch_auth.auth")

_CAPTURE_KEYS = ("access_token", "state", "error", "error_description", "scope", "token_type")

_PAGE_STYLE = """
  html, body { height: 100%; margin: 0; }
  body { display: grid; place-items: center; background: #0e0e10; color: #efeff1;
         font: 16px system-ui, sans-serif; }
  main { max-width: 28rem; padding: 2rem 2.5rem; border-radius: 8px;
         border-top: 4px solid #9146ff; background: #18181b; text-align: center; }
  h1 { margin: 0 0 .75rem; font-size: 1.4rem; }
  p { margin: 0; color: #adadb8; }
"""

_ESCAPED_STYLE = _PAGE_STYLE.replace("{", "{{").replace("}", "}}")

_SUCCESS_HTML = f"""<!DOCTYPE html>
<html>
<head><title>Signed In</title><style>{_PAGE_STYLE}</style></head>
<body><main>
  <h1>&#x2705; Signed in with Twitch</h1>
  <p>Return to the application; this tab can be closed.</p>
</main></body></html>"""

_ERROR_HTML = (
    """<!DOCTYPE html>
<html>
<head><title>Sign-In Failed</title><style>"""
    + _ESCAPED_STYLE
    + """</style></head>
<body><main>
  <h1>&#x274C; Sign-in failed</h1>
  <p>{error}</p>
</main></body></html>"""
)

_WAITING_HTML = f"""<!DOCTYPE html>
<html>
<head><title>Waiting for Twitch</title><style>{_PAGE_STYLE}</style></head>
<body><main>
  <h1>Waiting for sign-in&hellip;</h1>
  <p>Finish signing in on the Twitch page.</p>
</main></body></html>"""

_RELAY_HTML = (
    """<!DOCTYPE html>
<html>
<head><title>Completing Sign-In</title><style>"""
    + _ESCAPED_STYLE
    + """</style></head>
<body><main><h1>Completing sign-in&hellip;</h1></main>
<script nonce="{nonce}">
  var fragment = window.location.hash.replace(/^#/, "");
  var query = window.location.search.replace(/^\\?/, "");
  var joined = [query, fragment].filter(function (s) {{ return s; }}).join("&");
  window.location.replace("{complete_path}" + (joined ? "?" + joined : ""));
</script>
</body></html>"""
)


class RedirectCallbackServer:
    """Loopback HTTP server capturing one implicit grant redirect.

    Parameters
    ----------
    host : str
        Bind address and redirect host (default ``"localhost"``).
    port : int
        Port to bind; ``0`` lets the OS choose.
    path : str
        Callback path registered with the provider (default ``"/callback"``).
    """

    def __init__(self, host: str = "localhost", port: int = 0, path: str = "/callback") -> None:
        """Configure the server; nothing is bound until ``start()``."""
        self._host = host
        self._port = port
        self._path = path.rstrip("/") or "/callback"
        self._server: HTTPServer | None = None
        self._thread: threading.Thread | None = None
        self._result: dict[str, str] | None = None
        self._result_event = threading.Event()
        self._actual_port: int = port
        self._stop_lock = threading.Lock()
        self._stopper: threading.Thread | None = None

    @property
    def redirect_uri(self) -> str:
        """The redirect URI served by this server.

        Returns
        -------
        str
            The full redirect URI (e.g. ``http://localhost:3000/callback``).
        """
        return f"http://{self._host}:{self._actual_port}{self._path}"

    @property
    def complete_path(self) -> str:
        """Path the relay page forwards the fragment to."""
        return f"{self._path}/complete"

    @property
    def is_running(self) -> bool:
        """Whether the server thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> str:
        """Bind the port and serve on a daemon thread.

        Returns
        -------
        str
            The redirect URI to send with the authorization request.
        """
        if self.is_running:
            return self.redirect_uri

        self._result = None
        self._result_event.clear()
        server_ref = self

        class _CallbackHandler(BaseHTTPRequestHandler):
            """HTTP request handler for implicit grant redirects."""

            def do_GET(self) -> None:
                """Route the callback, relay completion and status pages."""
                parsed = urlparse(self.path)
                params = dict(parse_qsl(parsed.query))

                if parsed.path == server_ref._path:
                    if "error" in params:
                        self._capture(params)
                    else:
                        self._send_relay()
                elif parsed.path == server_ref.complete_path:
                    self._capture(params)
                elif parsed.path == "/":
                    self._send_html(_WAITING_HTML)
                else:
                    self.send_error(404)

            def _capture(self, params: dict[str, str]) -> None:
                """Record the first redirect and answer with a status page."""
                captured = {k: v for k, v in params.items() if k in _CAPTURE_KEYS}

                # First redirect wins
                if not server_ref._result_event.is_set():
                    server_ref._result = captured
                    server_ref._result_event.set()
                    logger.debug("Redirect captured: %s", redact_sensitive_data(captured))

                if captured.get("error"):
                    error_msg = captured.get("error_description") or captured["error"]
                    safe_msg = html.escape(str(error_msg), quote=True)
                    self._send_html(_ERROR_HTML.format(error=safe_msg))
                else:
                    self._send_html(_SUCCESS_HTML)

            def _send_relay(self) -> None:
                """Serve the page that moves the fragment into the query."""
                nonce = secrets.token_urlsafe(16)
                page = _RELAY_HTML.format(nonce=nonce, complete_path=server_ref.complete_path)
                self._send_html(page, script_nonce=nonce)

            def _send_html(self, html_content: str, script_nonce: str | None = None) -> None:
                """Write a no-store HTML page under a restrictive CSP."""
                encoded = html_content.encode("utf-8")
                csp = "default-src 'none'; style-src 'unsafe-inline'"
                if script_nonce:
                    csp += f"; script-src 'nonce-{script_nonce}'"
                self.send_response(200)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.send_header("Content-Length", str(len(encoded)))
                self.send_header("Cache-Control", "no-store")
                self.send_header("Referrer-Policy", "no-referrer")
                self.send_header("Content-Security-Policy", csp)
                self.send_header("X-Content-Type-Options", "nosniff")
                self.end_headers()
                self.wfile.write(encoded)

            def log_message(self, *args: Any) -> None:
                """Drop request lines; they carry the access token in the query."""

        server = HTTPServer((self._host, self._port), _CallbackHandler)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        with self._stop_lock:
            self._server = server
            self._thread = thread
            self._actual_port = server.server_address[1]
        thread.start()

        logger.debug("Redirect callback server started on %s", self.redirect_uri)
        return self.redirect_uri

    def wait_for_callback(self, timeout: float | None = 120.0) -> dict[str, str] | None:
        """Block until the redirect is captured, the server stops, or timeout.

        Parameters
        ----------
        timeout : float or None
            Maximum seconds to wait (default 120, None waits forever).

        Returns
        -------
        dict or None
            Captured redirect parameters, or ``None`` if nothing arrived.
        """
        self._result_event.wait(timeout=timeout)
        return self._result

    def stop(self, wait: bool = True) -> None:
        """Shut down the server and release any waiter.

        Safe to call from any thread, and more than once. Shutdown runs on
        its own thread; with ``wait=False`` this returns without joining it.

        Parameters
        ----------
        wait : bool
            Block until the port is released (default True).
        """
        with self._stop_lock:
            server, thread = self._server, self._thread
            self._server = None
            self._thread = None
            if server is not None:
                self._stopper = threading.Thread(
                    target=_shutdown, args=(server, thread), daemon=True
                )
                self._stopper.start()
            stopper = self._stopper
        self._result_event.set()
        if wait and stopper is not None:
            stopper.join(timeout=5)


def _shutdown(server: HTTPServer, thread: threading.Thread | None) -> None:
    """Stop ``serve_forever``, close the socket and reap the thread."""
    server.shutdown()
    server.server_close()
    if thread is not None and thread.is_alive():
        thread.join(timeout=5)
