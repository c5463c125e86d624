from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest

from .client import GameState
from .errors import SerializationFault

GAUGE_HELP = {
    "num_connected_players": "Number of connected players",
    "tech_tier": "Current tech tier",
    "total_game_duration": "Total game duration",
    "average_tick_rate": "Average tick rate",
}


class MetricStore:
    """Gauges for one server's game state, shared by the poller and the HTTP server.

    Each gauge guards its own value, so ``update`` and ``serialize`` may run
    concurrently. A reader can still see two polls mixed across gauges if it
    serializes while an update is halfway through.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self) -> None:
        self.registry = CollectorRegistry(auto_describe=True)
        self.num_connected_players = Gauge(
            "num_connected_players", GAUGE_HELP["num_connected_players"], registry=self.registry
        )
        self.tech_tier = Gauge("tech_tier", GAUGE_HELP["tech_tier"], registry=self.registry)
        self.total_game_duration = Gauge(
            "total_game_duration", GAUGE_HELP["total_game_duration"], registry=self.registry
        )
        self.average_tick_rate = Gauge("average_tick_rate", GAUGE_HELP["average_tick_rate"], registry=self.registry)

    def update(self, state: GameState) -> None:
        players, tier, duration, tick_rate = (
            float(state.num_connected_players),
            float(state.tech_tier),
            float(state.total_game_duration),
            float(state.average_tick_rate),
        )
        self.num_connected_players.set(players)
        self.tech_tier.set(tier)
        self.total_game_duration.set(duration)
        self.average_tick_rate.set(tick_rate)

    def serialize(self) -> bytes:
        try:
            return generate_latest(self.registry)
        except Exception as exc:
            raise SerializationFault(f"failed to render metrics: {exc}") from exc
