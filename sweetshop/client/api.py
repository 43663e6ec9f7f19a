import logging
from collections.abc import Callable
from typing import Any

import requests

from .session import CookieSession

log = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5000/api"


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, errors: list[dict] | None = None):
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
        super().__init__(f"{status_code}: {message}")


class ApiClient:
    """
    JSON-over-HTTP transport shared by the auth and sweet clients.

    ``http`` is anything with a requests-style ``request()`` method; a
    requests.Session by default.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        session: CookieSession | None = None,
        http: Any = None,
        on_unauthorized: Callable[[], None] | None = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or CookieSession(self.base_url)
        self.http = http or requests.Session()
        self.on_unauthorized = on_unauthorized
        self.timeout = timeout

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        token = self.session.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(self, method: str, path: str, json: Any = None, params: dict | None = None) -> dict:
        method = method.upper()
        response = self.http.request(
            method,
            f"{self.base_url}{path}",
            json=json,
            params=params,
            headers=self._headers(),
            timeout=self.timeout,
        )

        # an expired session only forces a logout on writes; reads just fail
        if response.status_code == 401 and method != "GET":
            log.info("Session rejected, clearing stored credentials")
            self.session.clear()
            if self.on_unauthorized is not None:
                self.on_unauthorized()

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not 200 <= response.status_code < 300:
            raise ApiError(
                response.status_code,
                body.get("message") or "Request failed",
                body.get("errors"),
            )
        return body

    def get(self, path: str, params: dict | None = None) -> dict:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> dict:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> dict:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> dict:
        return self.request("DELETE", path)
