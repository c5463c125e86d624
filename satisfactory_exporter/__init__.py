from .client import GameState, RemoteStateClient
from .config import ExporterConfig
from .errors import ConfigError, DecodeError, ExporterError, FetchError, SerializationFault, TransportError
from .metrics import MetricStore
from .poller import Poller
from .server import MetricsServer

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DecodeError",
    "ExporterConfig",
    "ExporterError",
    "FetchError",
    "GameState",
    "MetricStore",
    "MetricsServer",
    "Poller",
    "RemoteStateClient",
    "SerializationFault",
    "TransportError",
    "__version__",
]
