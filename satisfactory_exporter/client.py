import math
import warnings
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
import urllib3

from .errors import DecodeError, TransportError

API_PATH = "/api/v1"
QUERY_BODY = {"function": "QueryServerState"}
DEFAULT_TIMEOUT = 10.0
UINT64_MAX = 2**64 - 1


@dataclass(frozen=True)
class GameState:
    num_connected_players: int
    tech_tier: int
    total_game_duration: int
    average_tick_rate: float


def _as_uint(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise DecodeError(f"missing field {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"field {key} must be an unsigned integer, got {value!r}")
    if not 0 <= value <= UINT64_MAX:
        raise DecodeError(f"field {key} is out of range for an unsigned 64-bit integer")
    return value


def _as_float(payload: Dict[str, Any], key: str) -> float:
    if key not in payload:
        raise DecodeError(f"missing field {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"field {key} must be a number, got {value!r}")
    try:
        number = float(value)
    except OverflowError:
        raise DecodeError(f"field {key} is out of range for a float") from None
    if not math.isfinite(number):
        raise DecodeError(f"field {key} must be finite, got {value!r}")
    return number


def _as_object(payload: Any, key: str) -> Dict[str, Any]:
    if not isinstance(payload, dict) or key not in payload:
        raise DecodeError(f"missing field {key}")
    value = payload[key]
    if not isinstance(value, dict):
        raise DecodeError(f"field {key} must be an object")
    return value


def parse_game_state(body: Any) -> GameState:
    """Decode a QueryServerState response body.

    Every field is validated before a GameState is built, so a malformed body
    never yields a partially populated record.
    """
    state = _as_object(_as_object(body, "data"), "serverGameState")
    return GameState(
        num_connected_players=_as_uint(state, "numConnectedPlayers"),
        tech_tier=_as_uint(state, "techTier"),
        total_game_duration=_as_uint(state, "totalGameDuration"),
        average_tick_rate=_as_float(state, "averageTickRate"),
    )


class RemoteStateClient:
    def __init__(
        self,
        endpoint: str,
        token: Optional[str] = None,
        allow_insecure: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = f"https://{endpoint}{API_PATH}"
        self.timeout = timeout
        self.allow_insecure = allow_insecure
        self.session = session if session is not None else requests.Session()
        self.session.headers["Accept"] = "application/json"
        if token:
            self.session.headers["Authorization"] = f"Bearer {token.strip()}"
        if allow_insecure:
            self.session.verify = False

    def _post(self) -> requests.Response:
        if not self.allow_insecure:
            return self.session.post(self.url, json=QUERY_BODY, timeout=self.timeout)
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", urllib3.exceptions.InsecureRequestWarning)
            return self.session.post(self.url, json=QUERY_BODY, timeout=self.timeout)

    def fetch(self) -> GameState:
        try:
            response = self._post()
        except requests.RequestException as exc:
            raise TransportError(f"request to {self.url} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise TransportError(f"{self.url} answered HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise DecodeError(f"response from {self.url} is not JSON: {exc}") from exc
        return parse_game_state(body)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "RemoteStateClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
