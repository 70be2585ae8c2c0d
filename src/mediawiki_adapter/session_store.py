"""
SessionStore module for holding session cookies across API calls
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, Optional, Tuple


logger = logging.getLogger(__name__)


class SessionStore:
    """
    Cookie jar owned by one engine instance

    Stateless calls read the jar under the shared lock; calls that capture
    cookies hold the exclusive lock for their whole duration so that two
    logins cannot interleave their cookie updates.
    """

    def __init__(self):
        self._cookies: Dict[str, str] = {}
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    def capture(self, set_cookie_values: Iterable[str]) -> None:
        """
        Add or replace cookies from the Set-Cookie values of one response

        Only the leading name=value pair of each value is stored; attributes
        such as Path, Expires or Partitioned are ignored.

        Args:
            set_cookie_values: Every Set-Cookie header value, in response order
        """
        for raw in set_cookie_values:
            pair = self.parse_set_cookie(raw)
            if pair is None:
                logger.debug(f"Dropping malformed cookie {raw!r}")
                continue

            name, value = pair
            self._cookies[name] = value

    @staticmethod
    def parse_set_cookie(raw: str) -> Optional[Tuple[str, str]]:
        """Name and value of a Set-Cookie value, or None if it has no valid pair"""
        head = raw.split(';', 1)[0]
        if '=' not in head:
            return None

        name, value = head.split('=', 1)
        name = name.strip()
        if not name:
            return None
        return name, value.strip()

    def as_header(self) -> str:
        """Render all cookies as a single Cookie header value"""
        return '; '.join(f"{name}={value}" for name, value in self._cookies.items())

    def get(self, name: str) -> Optional[str]:
        return self._cookies.get(name)

    def clear(self) -> None:
        self._cookies.clear()

    def __len__(self) -> int:
        return len(self._cookies)

    def __contains__(self, name: object) -> bool:
        return name in self._cookies

    @contextmanager
    def shared(self) -> Iterator['SessionStore']:
        """Hold read access; blocks while a cookie-capturing call is running"""
        with self._condition:
            while self._writer:
                self._condition.wait()
            self._readers += 1
        try:
            yield self
        finally:
            with self._condition:
                self._readers -= 1
                if self._readers == 0:
                    self._condition.notify_all()

    @contextmanager
    def exclusive(self) -> Iterator['SessionStore']:
        """Hold write access; waits for running readers and writers to finish"""
        with self._condition:
            while self._writer or self._readers:
                self._condition.wait()
            self._writer = True
        try:
            yield self
        finally:
            with self._condition:
                self._writer = False
                self._condition.notify_all()
