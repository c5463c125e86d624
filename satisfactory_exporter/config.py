import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import ConfigError

DEFAULT_UPDATE_INTERVAL = 5
DEFAULT_LISTEN = "127.0.0.1:3030"
TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ExporterConfig:
    endpoint: str
    update_interval: int = DEFAULT_UPDATE_INTERVAL
    token: Optional[str] = None
    allow_insecure: bool = False
    listen_host: str = "127.0.0.1"
    listen_port: int = 3030

    @property
    def listen(self) -> str:
        if ":" in self.listen_host:
            return f"[{self.listen_host}]:{self.listen_port}"
        return f"{self.listen_host}:{self.listen_port}"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def read_token_file(path: str) -> str:
    """Read a bearer token, stripping surrounding whitespace and newlines."""
    try:
        token = Path(path).read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigError(f"failed to read token file {path}: {exc}") from exc
    if not token:
        raise ConfigError(f"token file {path} is empty")
    return token


def parse_listen_address(value: str) -> Tuple[str, int]:
    raw = (value or "").strip()
    host, sep, port = raw.rpartition(":")
    if not sep or not host:
        raise ConfigError(f"listen address must be ADDR:PORT, got {value!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise ConfigError(f"IPv6 listen address must be bracketed, got {value!r}")
    try:
        port_number = int(port)
    except ValueError:
        raise ConfigError(f"invalid listen port in {value!r}") from None
    if not 0 <= port_number <= 65535:
        raise ConfigError(f"listen port out of range in {value!r}")
    return host, port_number


def build_parser() -> argparse.ArgumentParser:
    from . import __version__

    parser = argparse.ArgumentParser(
        prog="satisfactory-exporter",
        description="Export Satisfactory dedicated server state as Prometheus metrics",
    )
    parser.add_argument(
        "-u",
        "--update-interval",
        type=int,
        default=_env_int("UPDATE_INTERVAL", DEFAULT_UPDATE_INTERVAL),
        help="Interval in seconds between each query to the server",
    )
    parser.add_argument(
        "-e",
        "--endpoint",
        default=os.getenv("SATISFACTORY_ENDPOINT", ""),
        help="Hostname and port of the server to query",
    )
    parser.add_argument(
        "-t",
        "--token-file",
        default=os.getenv("SATISFACTORY_TOKEN_FILE") or None,
        help="File containing the bearer token to use for authentication",
    )
    parser.add_argument(
        "-a",
        "--allow-insecure",
        action="store_true",
        default=_env_flag("ALLOW_INSECURE"),
        help="Allow insecure connections (e.g., to a server with a self-signed certificate)",
    )
    parser.add_argument(
        "-l",
        "--listen",
        default=os.getenv("EXPORTER_LISTEN", DEFAULT_LISTEN),
        help="Address:Port to which the server will listen",
    )
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO").upper())
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_config(argv: Optional[List[str]] = None) -> ExporterConfig:
    args = build_parser().parse_args(argv)
    return config_from_args(args)


def config_from_args(args: argparse.Namespace) -> ExporterConfig:
    endpoint = (args.endpoint or "").strip()
    if not endpoint:
        raise ConfigError("an endpoint is required (--endpoint HOST:PORT)")
    if "://" in endpoint or "/" in endpoint:
        raise ConfigError(f"endpoint must be HOST:PORT without scheme or path, got {endpoint!r}")

    if args.update_interval < 1:
        raise ConfigError(f"update interval must be at least 1 second, got {args.update_interval}")

    token = read_token_file(args.token_file) if args.token_file else None
    host, port = parse_listen_address(args.listen)

    return ExporterConfig(
        endpoint=endpoint,
        update_interval=args.update_interval,
        token=token,
        allow_insecure=bool(args.allow_insecure),
        listen_host=host,
        listen_port=port,
    )
