class ExporterError(Exception):
    pass


class ConfigError(ExporterError):
    """Invalid startup configuration. Fatal before any task starts."""


class FetchError(ExporterError):
    """A poll that produced no game state. Absorbed by the poller."""


class TransportError(FetchError):
    pass


class DecodeError(FetchError):
    pass


class SerializationFault(ExporterError):
    pass
