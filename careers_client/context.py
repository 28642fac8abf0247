"""
In-memory session state shared by every request an application makes.

The access token lives only here: never on disk, gone when the process
restarts, recovered through the refresh cookie. SessionContext also owns the
single-flight refresh guard: one caller performs the refresh, everyone else
who hits a 401 meanwhile subscribes and is called back with the new token.
"""
from __future__ import annotations

import threading
from typing import Callable, List, Optional, Tuple

OnRefreshed = Callable[[str], None]
OnFailed = Callable[[BaseException], None]


class SessionContext:
    def __init__(self, token: Optional[str] = None):
        self._lock = threading.Lock()
        self._token = token
        self._refreshing = False
        self._subscribers: List[Tuple[OnRefreshed, OnFailed]] = []

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        with self._lock:
            self._token = token

    def clear(self) -> None:
        self.set_token(None)

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    @property
    def waiting(self) -> int:
        """Number of callers queued behind the refresh in flight."""
        with self._lock:
            return len(self._subscribers)

    def claim_refresh(self, stale_token: Optional[str], on_refreshed: OnRefreshed, on_failed: OnFailed) -> bool:
        """
        Returns True when the caller must perform the refresh itself and then
        report back through finish_refresh() or fail_refresh().

        Otherwise the callbacks are taken care of: on_refreshed fires right away
        if the token already moved past stale_token, or once the refresh in
        flight completes.
        """
        with self._lock:
            if self._token is not None and self._token != stale_token:
                fresh = self._token
            elif self._refreshing:
                self._subscribers.append((on_refreshed, on_failed))
                return False
            else:
                self._refreshing = True
                return True
        on_refreshed(fresh)
        return False

    def finish_refresh(self, token: str) -> None:
        with self._lock:
            self._token = token
            self._refreshing = False
            subscribers, self._subscribers = self._subscribers, []
        for on_refreshed, _ in subscribers:
            on_refreshed(token)

    def fail_refresh(self, error: BaseException) -> None:
        with self._lock:
            self._token = None
            self._refreshing = False
            subscribers, self._subscribers = self._subscribers, []
        for _, on_failed in subscribers:
            on_failed(error)
