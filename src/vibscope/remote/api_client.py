"""HTTP client for the sensor REST API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from .request_cache import RequestCoalescer

logger = logging.getLogger(__name__)


class SensorApiError(RuntimeError):
    """Raised when the sensor API cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SensorApiClient:
    """
    Read-only access to sensor readings and settings.

    GET requests go through a :class:`RequestCoalescer`, so several widgets
    asking for the same reading at once cause a single HTTP call.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
        coalescer: Optional[RequestCoalescer] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url must not be empty")
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})
        self.coalescer = coalescer or RequestCoalescer()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        url = self._url(path)
        query = tuple(sorted((k, str(v)) for k, v in (params or {}).items() if v is not None))
        key = (url, query)

        def _fetch() -> Any:
            logger.debug("GET %s params=%s", url, dict(query))
            try:
                response = self.session.get(url, params=dict(query), timeout=self.timeout)
                response.raise_for_status()
            except requests.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else None
                raise SensorApiError(f"GET {url} failed with status {status}", status) from exc
            except requests.RequestException as exc:
                raise SensorApiError(f"GET {url} failed: {exc}") from exc
            try:
                return response.json()
            except ValueError as exc:
                raise SensorApiError(f"GET {url} returned invalid JSON") from exc

        return self.coalescer.get(key, _fetch)

    def fetch_last_data(self, sensor_id: str, datetime: Optional[str] = None) -> Dict[str, Any]:
        """Latest reading of a sensor, or the reading closest to ``datetime``."""
        data = self._get(f"sensors/{sensor_id}/last-data", {"datetime": datetime})
        if not isinstance(data, Mapping):
            raise SensorApiError(f"Unexpected last-data payload for sensor {sensor_id}")
        return dict(data)

    def fetch_config(self, sensor_id: str) -> Dict[str, Any]:
        data = self._get(f"sensors/{sensor_id}/config")
        if not isinstance(data, Mapping):
            raise SensorApiError(f"Unexpected config payload for sensor {sensor_id}")
        return dict(data)

    def fetch_history(self, sensor_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Past readings, newest first. Accepts a bare list or ``{"data": [...]}``."""
        if limit <= 0:
            raise ValueError(f"limit must be > 0, got {limit}")
        data = self._get(f"sensors/{sensor_id}/history", {"limit": int(limit)})
        if isinstance(data, Mapping):
            data = data.get("data", [])
        if not isinstance(data, list):
            raise SensorApiError(f"Unexpected history payload for sensor {sensor_id}")
        return [dict(item) for item in data if isinstance(item, Mapping)]

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "SensorApiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
