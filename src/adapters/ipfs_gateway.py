"""IPFS gateway content adapter.

Fetches JSON documents over HTTP with ``requests``. Every failure is raised
as ContentFetchError so the resolver can degrade a single message.

``requests.Session`` is not thread-safe, so unless a session is injected each
worker thread gets its own.
"""

from __future__ import annotations

import threading
from typing import Any, List, Optional

import requests

from core.errors import ContentFetchError


class GatewayFetcher:
    """Content fetcher that satisfies the ContentFetcherPort contract."""

    def __init__(self, timeout_s: float = 10, session: Optional[requests.Session] = None) -> None:
        self._timeout_s = timeout_s
        self._shared = session
        if session is not None:
            session.headers.setdefault("Accept", "application/json")
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """The session used by the calling thread."""

        if self._shared is not None:
            return self._shared
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.setdefault("Accept", "application/json")
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def get_json(self, address: str) -> Any:
        """GET ``address`` and return its decoded JSON body."""

        try:
            response = self.session.get(address, timeout=self._timeout_s)
        except requests.RequestException as exc:
            raise ContentFetchError(f"Request to {address} failed: {exc}") from exc

        if not response.ok:
            raise ContentFetchError(f"Gateway error {response.status_code} for {address}")
        try:
            return response.json()
        except ValueError as exc:
            raise ContentFetchError(f"Invalid JSON from {address}") from exc

    def close(self) -> None:
        if self._shared is not None:
            self._shared.close()
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
