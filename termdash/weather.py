"""Background weather line for the main menu."""
from __future__ import annotations

import queue
import threading
import time

import requests

from .logging_setup import get_logger

logger = get_logger("termdash.weather")

FETCH_TIMEOUT = 5


def fetch_weather(url: str) -> str | None:
    try:
        resp = requests.get(url, timeout=FETCH_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.info("Weather fetch failed: %s", exc)
        return None
    text = resp.text.strip()
    return text.splitlines()[0] if text else None


class WeatherFetcher:
    """Fetch on a worker thread; the UI loop picks the result up with :meth:`poll`.

    At most one request is in flight. A failed fetch keeps the last text.
    """

    def __init__(self, url: str, refresh_seconds: int = 1800, clock=time.monotonic):
        self.url = url
        self.refresh_seconds = refresh_seconds
        self.clock = clock
        self.latest: str | None = None
        self._results: queue.Queue = queue.Queue(maxsize=1)
        self._worker: threading.Thread | None = None
        self._last_start: float | None = None

    def _run(self) -> None:
        self._results.put(fetch_weather(self.url))

    def in_flight(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def maybe_start(self) -> bool:
        """Start a fetch if none is running and the last one is old enough."""
        if self.in_flight() or not self._results.empty():
            return False
        now = self.clock()
        if self._last_start is not None and now - self._last_start < self.refresh_seconds:
            return False
        self._last_start = now
        self._worker = threading.Thread(target=self._run, name="weather", daemon=True)
        self._worker.start()
        return True

    def poll(self) -> str | None:
        try:
            result = self._results.get_nowait()
        except queue.Empty:
            return self.latest
        if result:
            self.latest = result
        return self.latest


def weather_fetcher_for(config) -> WeatherFetcher | None:
    if not config.weather_enabled:
        return None
    url = config.weather_url.format(city=requests.utils.quote(config.weather_city.strip()))
    return WeatherFetcher(url, config.weather_refresh_seconds)
