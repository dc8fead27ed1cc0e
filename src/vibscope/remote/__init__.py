"""Sensor REST API access with request de-duplication."""

from .api_client import SensorApiClient, SensorApiError
from .request_cache import RequestCoalescer

__all__ = ["RequestCoalescer", "SensorApiClient", "SensorApiError"]
