"""requests-backed CRUD transport and upstream batch fetch."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import requests

from ..domain.models import ApiResponse
from ..errors import BatchFetchError

log = logging.getLogger(__name__)


def _error_message(r: requests.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and value.get("message"):
                return str(value["message"])
    return f"Request failed ({r.status_code})"


class HttpTransport:
    """CRUD client for ``{base_url}/{resource}`` with bearer auth.

    HTTP and network failures are folded into ``ApiResponse.error`` so callers
    only ever inspect the envelope.

    Each thread lazily gets its own ``requests.Session``. An injected
    ``session`` is shared by every thread as-is.
    """

    def __init__(
        self,
        base_url: str,
        resource: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.resource = resource.strip("/")
        self.timeout = timeout
        self.headers: Dict[str, str] = {"Content-Type": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        self._shared = session
        if session is not None:
            session.headers.update(self.headers)
        self._local = threading.local()

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(self.headers)
        return session

    @property
    def session(self) -> requests.Session:
        if self._shared is not None:
            return self._shared
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._create_session()
            self._local.session = session
        return session

    @property
    def collection_url(self) -> str:
        return f"{self.base_url}/{self.resource}"

    def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> ApiResponse:
        try:
            r = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            log.debug("%s %s raised %s", method, url, exc)
            return ApiResponse(error=str(exc) or exc.__class__.__name__)
        if r.status_code >= 400:
            message = _error_message(r)
            log.debug("%s %s -> %s: %s", method, url, r.status_code, message)
            return ApiResponse(error=message)
        if not r.content:
            return ApiResponse(data=None)
        try:
            return ApiResponse(data=r.json())
        except ValueError:
            return ApiResponse(error="Response was not valid JSON")

    def get_all(self) -> ApiResponse:
        return self._request("GET", self.collection_url)

    def create(self, payload: Dict[str, Any]) -> ApiResponse:
        return self._request("POST", self.collection_url, payload)

    def update(self, record_id: str, payload: Dict[str, Any]) -> ApiResponse:
        return self._request("PUT", f"{self.collection_url}/{record_id}", payload)

    def delete(self, record_id: str) -> ApiResponse:
        return self._request("DELETE", f"{self.collection_url}/{record_id}")

    def upsert(self, payload: Dict[str, Any]) -> ApiResponse:
        return self._request("POST", f"{self.collection_url}/upsert", payload)


def fetch_batch(url: str, timeout: float = 30.0, session: Optional[requests.Session] = None) -> Any:
    """GET a JSON batch from an upstream endpoint; any failure aborts the batch."""
    getter = session.get if session is not None else requests.get
    try:
        r = getter(url, timeout=timeout)
        r.raise_for_status()
        return r.json()
    except requests.RequestException as exc:
        raise BatchFetchError(url, str(exc) or exc.__class__.__name__) from exc
    except ValueError as exc:
        raise BatchFetchError(url, "response was not valid JSON") from exc
