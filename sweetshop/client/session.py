"""
Client-side session: the bearer token and a cached user summary, kept as
cookies with a seven day lifetime. With a path the jar is written to disk,
so a session survives between runs until the cookies expire.
"""

import json
import time
from http.cookiejar import CookieJar, LWPCookieJar
from pathlib import Path
from urllib.parse import quote, unquote, urlparse

from requests.cookies import create_cookie

COOKIE_DAYS = 7
TOKEN_COOKIE = "token"
USER_COOKIE = "user"


class CookieSession:
    def __init__(self, base_url: str, path: str | Path | None = None, days: int = COOKIE_DAYS):
        self.domain = urlparse(base_url).hostname or "localhost"
        self.days = days
        self.path = Path(path) if path else None

        if self.path is not None:
            self.jar: CookieJar = LWPCookieJar(str(self.path))
            if self.path.exists():
                # expired cookies are dropped on load
                self.jar.load()
        else:
            self.jar = CookieJar()

    def _get(self, name: str) -> str | None:
        now = time.time()
        for cookie in self.jar:
            if cookie.name == name and not cookie.is_expired(now):
                return cookie.value
        return None

    def _set(self, name: str, value: str) -> None:
        cookie = create_cookie(
            name,
            value,
            domain=self.domain,
            path="/",
            expires=int(time.time()) + self.days * 24 * 60 * 60,
            discard=False,
        )
        self.jar.set_cookie(cookie)

    def _persist(self) -> None:
        if isinstance(self.jar, LWPCookieJar):
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.jar.save()

    @property
    def token(self) -> str | None:
        return self._get(TOKEN_COOKIE)

    @property
    def user(self) -> dict | None:
        raw = self._get(USER_COOKIE)
        return json.loads(unquote(raw)) if raw else None

    def save(self, token: str, user: dict) -> None:
        self._set(TOKEN_COOKIE, token)
        # cookie values cannot hold raw JSON punctuation
        self._set(USER_COOKIE, quote(json.dumps(user, separators=(",", ":"))))
        self._persist()

    def clear(self) -> None:
        self.jar.clear()
        self._persist()
