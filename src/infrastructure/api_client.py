from __future__ import annotations

import json
import logging
import socket
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Optional

from domain.errors import ApiError, NetworkError, SessionExpired
from infrastructure.config import Settings
from infrastructure.session import SessionContext

logger = logging.getLogger(__name__)


class ApiClient:
    """JSON client for the FreeApp REST API. Auth headers come from the injected session."""

    def __init__(self, session: SessionContext, settings: Settings | None = None) -> None:
        settings = settings or Settings.from_env()
        self.base_url = settings.api_url.rstrip("/")
        self.timeout_seconds = settings.timeout_seconds
        self._session = session

    def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: Any = None) -> Any:
        return self.request("POST", path, payload=payload)

    def put(self, path: str, payload: Any = None) -> Any:
        return self.request("PUT", path, payload=payload)

    def patch(self, path: str, payload: Any = None) -> Any:
        return self.request("PATCH", path, payload=payload)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def build_url(self, path: str, params: Optional[dict[str, Any]] = None) -> str:
        url = f"{self.base_url}/{path.lstrip('/')}"
        query = {k: v for k, v in (params or {}).items() if v is not None and v != ""}
        if query:
            url += "?" + urllib.parse.urlencode(query)
        return url

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._session.token:
            headers["Authorization"] = f"Bearer {self._session.token}"
            user_id = self._session.user_id
            if user_id:
                headers["X-User-ID"] = user_id
        return headers

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        payload: Any = None,
    ) -> Any:
        url = self.build_url(path, params)
        data = json.dumps(payload, default=str).encode("utf-8") if payload is not None else None
        authenticated = bool(self._session.token)
        req = urllib.request.Request(url=url, data=data, headers=self._headers(), method=method)

        started = time.perf_counter()
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                body = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            elapsed = time.perf_counter() - started
            self._raise_for_status(method, path, exc, authenticated, elapsed)
        except (socket.timeout, urllib.error.URLError, TimeoutError) as exc:
            logger.error("ApiClient %s %s network error after %.2fs: %s", method, path, time.perf_counter() - started, exc)
            raise NetworkError(f"No response from {method} {path}: {exc}") from exc

        logger.info("ApiClient %s %s complete in %.2fs", method, path, time.perf_counter() - started)
        if not body.strip():
            return None
        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise ApiError(502, f"Invalid JSON from {method} {path}") from exc

    def _raise_for_status(
        self,
        method: str,
        path: str,
        exc: urllib.error.HTTPError,
        authenticated: bool,
        elapsed: float,
    ) -> None:
        status = exc.code
        payload = self._read_error_body(exc)
        message = payload.get("message") if isinstance(payload, dict) else None
        message = str(message or exc.reason or f"HTTP {status}")

        if status == 401 and authenticated:
            logger.warning("ApiClient %s %s rejected token after %.2fs", method, path, elapsed)
            raise SessionExpired(message) from exc
        if status == 403:
            logger.warning("ApiClient %s %s access forbidden", method, path)
        elif status == 404:
            logger.warning("ApiClient %s %s resource not found", method, path)
        elif status >= 500:
            logger.error("ApiClient %s %s server error status=%d: %s", method, path, status, message)
        else:
            logger.info("ApiClient %s %s failed status=%d: %s", method, path, status, message)
        raise ApiError(status, message, payload) from exc

    @staticmethod
    def _read_error_body(exc: urllib.error.HTTPError) -> Any:
        try:
            raw = exc.read().decode("utf-8")
        except (OSError, AttributeError, UnicodeDecodeError):
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return {"message": raw}
