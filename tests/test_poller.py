import threading

import pytest

from satisfactory_exporter.errors import DecodeError, TransportError
from satisfactory_exporter.poller import Poller

from .conftest import RecordingAdapter, gauge_values, make_client, server_state_body


class ScriptedClient:
    url = "https://factory.example:7777/api/v1"

    def __init__(self, results):
        self.results = list(results)
        self.calls = 0
        self.exhausted = threading.Event()
        self.called = threading.Event()

    def fetch(self):
        self.calls += 1
        self.called.set()
        if not self.results:
            self.exhausted.set()
            raise TransportError("no more scripted results")
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def test_poll_once_updates_store(store, game_state):
    poller = Poller(ScriptedClient([game_state]), store, interval=5)

    assert poller.poll_once() is True
    assert gauge_values(store)["average_tick_rate"] == 59.8


def test_transport_error_leaves_store_unchanged(store, game_state):
    store.update(game_state)
    before = store.serialize()
    poller = Poller(ScriptedClient([TransportError("connection refused")]), store, interval=5)

    assert poller.poll_once() is False
    assert store.serialize() == before


def test_decode_error_leaves_store_unchanged(store, game_state):
    store.update(game_state)
    before = gauge_values(store)
    poller = Poller(ScriptedClient([DecodeError("missing field averageTickRate")]), store, interval=5)

    assert poller.poll_once() is False
    assert gauge_values(store) == before


def test_failure_before_first_success_keeps_zero_values(store):
    poller = Poller(ScriptedClient([TransportError("self-signed certificate")]), store, interval=5)

    poller.poll_once()

    assert set(gauge_values(store).values()) == {0.0}


def test_fetch_failures_are_logged(store, caplog):
    poller = Poller(ScriptedClient([TransportError("connection refused")]), store, interval=5)

    with caplog.at_level("WARNING", logger="satisfactory_exporter.poller"):
        poller.poll_once()

    assert "TransportError" in caplog.text
    assert "connection refused" in caplog.text


@pytest.mark.parametrize(
    "deadline,now,expected",
    [
        (0.0, 0.1, 5.0),
        (5.0, 5.2, 10.0),
        (0.0, 7.0, 7.0),
        (7.0, 8.0, 12.0),
        (0.0, 5.0, 5.0),
    ],
)
def test_next_deadline_delays_instead_of_bursting(store, deadline, now, expected):
    poller = Poller(ScriptedClient([]), store, interval=5)

    assert poller.next_deadline(deadline, now) == expected


def test_interval_must_be_positive(store):
    with pytest.raises(ValueError):
        Poller(ScriptedClient([]), store, interval=0)


def test_loop_survives_errors_until_stopped(store, game_state):
    client = ScriptedClient([TransportError("down"), RuntimeError("boom"), DecodeError("bad body"), game_state])
    poller = Poller(client, store, interval=0.01).start()

    assert client.exhausted.wait(5)
    poller.stop(timeout=5)

    assert not poller.running
    assert client.calls >= 5
    assert gauge_values(store)["num_connected_players"] == 12.0


def test_stop_interrupts_wait(store, game_state):
    client = ScriptedClient([game_state])
    poller = Poller(client, store, interval=3600).start()

    assert client.called.wait(5)
    poller.stop(timeout=5)

    assert not poller.running
    assert client.calls == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"numConnectedPlayers": 5, "techTier": 10**400},
        {"numConnectedPlayers": 5, "techTier": 2**64},
        {"numConnectedPlayers": 5, "averageTickRate": 10**400},
        {"numConnectedPlayers": 5, "averageTickRate": float("nan")},
        {"numConnectedPlayers": 5, "averageTickRate": float("inf")},
    ],
)
def test_out_of_range_values_never_partially_update_the_store(store, game_state, overrides):
    store.update(game_state)
    before = gauge_values(store)
    client = make_client(RecordingAdapter(body=server_state_body(**overrides)))
    poller = Poller(client, store, interval=5)

    assert poller.poll_once() is False
    assert gauge_values(store) == before
