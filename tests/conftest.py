import json
from typing import Any, Dict, List, Optional

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.models import Response

from satisfactory_exporter.client import GameState, RemoteStateClient
from satisfactory_exporter.metrics import GAUGE_HELP, MetricStore

ENDPOINT = "factory.example:7777"


def server_state_body(**overrides: Any) -> Dict[str, Any]:
    state = {
        "numConnectedPlayers": 12,
        "techTier": 3,
        "totalGameDuration": 7200,
        "averageTickRate": 59.8,
    }
    state.update(overrides)
    return {"data": {"serverGameState": state}}


class RecordingAdapter(BaseAdapter):
    """Answers every request with a canned response and remembers what was sent."""

    def __init__(self, status: int = 200, body: Any = None, raw: Optional[bytes] = None, exc: Exception = None):
        super().__init__()
        self.status = status
        self.content = raw if raw is not None else json.dumps(body if body is not None else server_state_body()).encode()
        self.exc = exc
        self.requests: List[requests.PreparedRequest] = []
        self.send_kwargs: List[Dict[str, Any]] = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.requests.append(request)
        self.send_kwargs.append({"timeout": timeout, "verify": verify})
        if self.exc is not None:
            raise self.exc
        response = Response()
        response.status_code = self.status
        response._content = self.content
        response.headers["Content-Type"] = "application/json"
        response.encoding = "utf-8"
        response.url = request.url
        response.request = request
        return response

    def close(self) -> None:
        pass


def make_client(adapter: RecordingAdapter, **kwargs: Any) -> RemoteStateClient:
    session = requests.Session()
    session.mount("https://", adapter)
    return RemoteStateClient(ENDPOINT, session=session, **kwargs)


@pytest.fixture
def store() -> MetricStore:
    return MetricStore()


@pytest.fixture
def game_state() -> GameState:
    return GameState(num_connected_players=12, tech_tier=3, total_game_duration=7200, average_tick_rate=59.8)


def gauge_values(store: MetricStore) -> Dict[str, float]:
    return {name: store.registry.get_sample_value(name) for name in GAUGE_HELP}
