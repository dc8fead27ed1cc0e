import pytest
import requests

from vibscope.remote.api_client import SensorApiClient, SensorApiError
from vibscope.remote.request_cache import RequestCoalescer


class FakeResponse:
    def __init__(self, payload, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, responses) -> None:
        self.headers: dict = {}
        self.calls: list = []
        self._responses = list(responses)
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


def _client(*responses, **kwargs) -> tuple[SensorApiClient, FakeSession]:
    session = FakeSession(responses)
    client = SensorApiClient("https://api.example.test/v1/", token="secret", session=session, **kwargs)
    return client, session


def test_fetch_last_data_builds_url_and_headers() -> None:
    client, session = _client(FakeResponse({"acc_h": [1, 2]}), timeout=3.0)
    assert client.fetch_last_data("S-1") == {"acc_h": [1, 2]}
    url, params, timeout = session.calls[0]
    assert url == "https://api.example.test/v1/sensors/S-1/last-data"
    assert params == {}
    assert timeout == 3.0
    assert session.headers["Authorization"] == "Bearer secret"


def test_identical_requests_are_coalesced() -> None:
    client, session = _client(FakeResponse({"fmax": 100}), FakeResponse({"fmax": 200}))
    assert client.fetch_config("S-1") == {"fmax": 100}
    assert client.fetch_config("S-1") == {"fmax": 100}
    assert len(session.calls) == 1


def test_datetime_is_sent_as_query_parameter() -> None:
    client, session = _client(FakeResponse({}))
    client.fetch_last_data("S-1", datetime="2024-01-01T00:00:00")
    assert session.calls[0][1] == {"datetime": "2024-01-01T00:00:00"}


def test_http_error_raises_sensor_api_error() -> None:
    client, _ = _client(FakeResponse({}, status_code=404))
    with pytest.raises(SensorApiError) as info:
        client.fetch_last_data("missing")
    assert info.value.status_code == 404


def test_connection_error_raises_sensor_api_error() -> None:
    client, _ = _client(requests.ConnectionError("refused"))
    with pytest.raises(SensorApiError):
        client.fetch_config("S-1")


def test_invalid_json_and_shape_are_errors() -> None:
    client, _ = _client(FakeResponse(ValueError("no json")), FakeResponse([1, 2]))
    with pytest.raises(SensorApiError):
        client.fetch_last_data("S-1")
    with pytest.raises(SensorApiError):
        client.fetch_last_data("S-2")


def test_fetch_history_accepts_wrapped_list() -> None:
    client, session = _client(FakeResponse({"data": [{"id": 1}, {"id": 2}, "junk"]}))
    assert client.fetch_history("S-1", limit=2) == [{"id": 1}, {"id": 2}]
    assert session.calls[0][1] == {"limit": "2"}
    with pytest.raises(ValueError):
        client.fetch_history("S-1", limit=0)


def test_failed_request_is_retried_next_time() -> None:
    client, session = _client(
        requests.Timeout("slow"),
        FakeResponse({"ok": True}),
        coalescer=RequestCoalescer(ttl_seconds=5.0),
    )
    with pytest.raises(SensorApiError):
        client.fetch_config("S-1")
    assert client.fetch_config("S-1") == {"ok": True}
    assert len(session.calls) == 2


def test_context_manager_closes_session() -> None:
    client, session = _client()
    with client:
        pass
    assert session.closed


def test_empty_base_url_is_rejected() -> None:
    with pytest.raises(ValueError):
        SensorApiClient("")
