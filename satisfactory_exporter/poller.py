import logging
import threading
import time
from typing import Callable, Optional

from .client import RemoteStateClient
from .errors import FetchError
from .metrics import MetricStore

logger = logging.getLogger(__name__)


class Poller:
    """Fetches game state on a fixed cadence and pushes it into a MetricStore.

    The first tick fires as soon as the thread starts. Each following tick is
    due one interval after the previous deadline. When a fetch overruns its
    interval the next tick fires right after it and the cadence re-anchors
    there, so missed ticks are neither skipped nor replayed in a burst.

    A failed fetch leaves the store untouched; the last good values stay
    visible until the next successful poll.
    """

    def __init__(
        self,
        client: RemoteStateClient,
        store: MetricStore,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.client = client
        self.store = store
        self.interval = float(interval)
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def poll_once(self) -> bool:
        try:
            state = self.client.fetch()
        except FetchError as exc:
            logger.warning("poll failed (%s): %s", type(exc).__name__, exc)
            return False
        self.store.update(state)
        logger.debug("updated metrics from %s", self.client.url)
        return True

    def next_deadline(self, deadline: float, now: float) -> float:
        deadline += self.interval
        if deadline < now:
            return now
        return deadline

    def run(self) -> None:
        deadline = self._clock()
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.exception("unexpected error while polling %s", self.client.url)
            deadline = self.next_deadline(deadline, self._clock())
            if self._stop.wait(max(0.0, deadline - self._clock())):
                break

    def start(self) -> "Poller":
        if self._thread is not None and self._thread.is_alive():
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="satisfactory-poller", daemon=True)
        self._thread.start()
        logger.info("polling %s every %.0fs", self.client.url, self.interval)
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
