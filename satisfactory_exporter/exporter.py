import logging
import sys
from typing import List, Optional

from .client import RemoteStateClient
from .config import ExporterConfig, build_parser, config_from_args
from .errors import ConfigError
from .metrics import MetricStore
from .poller import Poller
from .server import MetricsServer

logger = logging.getLogger("satisfactory_exporter")

LOG_FORMAT = "[satisfactory-exporter] %(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level_name: str) -> bool:
    """Configure the root logger. Returns False when the level name is unknown and INFO was used."""
    level = logging.getLevelName(level_name.upper())
    known = isinstance(level, int)
    logging.basicConfig(format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger().setLevel(level if known else logging.INFO)
    return known


def run(config: ExporterConfig) -> None:
    store = MetricStore()
    try:
        server = MetricsServer(store, config.listen_host, config.listen_port)
    except OSError as exc:
        raise ConfigError(f"failed to listen on {config.listen}: {exc}") from exc

    client = RemoteStateClient(
        config.endpoint,
        token=config.token,
        allow_insecure=config.allow_insecure,
        timeout=float(config.update_interval),
    )
    if config.allow_insecure:
        logger.warning("TLS certificate verification is disabled for %s", config.endpoint)

    poller = Poller(client, store, config.update_interval).start()
    logger.info("Listening on %s", config.listen)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        poller.stop(timeout=config.update_interval)
        server.server_close()
        client.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if not setup_logging(args.log_level):
        logger.warning("unknown log level %r, using INFO", args.log_level)

    try:
        config = config_from_args(args)
        run(config)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2
    return 0
