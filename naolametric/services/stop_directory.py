"""
Stop directory cache

Holds the current generation of the Naolib stop list as one immutable
snapshot. Readers grab the snapshot reference once per call; the refresh
task builds a complete new snapshot and swaps the reference.
"""
from __future__ import annotations

import asyncio
import logging
import unicodedata
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

from naolametric.config import settings
from naolametric.models.transit import Stop
from naolametric.services.naolib_api import NaolibAPIError, NaolibAPIService, naolib_api_service
from naolametric.utils.time import current_timestamp_iso

logger = logging.getLogger(__name__)


class DirectoryNotReadyError(Exception):
    """Raised when the directory has never been populated."""


class StopNotInDirectoryError(Exception):
    """Raised when a stop code is absent from the current generation."""


def fold_text(value: str) -> str:
    """Lower-case and strip accents so "hotel" matches "Hôtel"."""
    decomposed = unicodedata.normalize("NFKD", value or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold().strip()


@dataclass(frozen=True)
class StopDirectory:
    """One complete, immutable generation of the stop directory."""

    generation: int
    stops: Mapping[str, Stop]
    loaded_at: str
    ordered: tuple[Stop, ...] = field(default=())
    folded_names: tuple[str, ...] = field(default=())

    @classmethod
    def build(cls, generation: int, stops: Iterable[Stop]) -> "StopDirectory":
        by_code: dict[str, Stop] = {}
        for stop in stops:
            by_code[stop.code.upper()] = stop
        ordered = tuple(by_code[code] for code in sorted(by_code))
        folded_names = tuple(fold_text(stop.name) for stop in ordered)
        return cls(
            generation=generation,
            stops=MappingProxyType(by_code),
            loaded_at=current_timestamp_iso(),
            ordered=ordered,
            folded_names=folded_names,
        )

    def __len__(self) -> int:
        return len(self.stops)

    def lookup(self, code: str) -> Optional[Stop]:
        return self.stops.get((code or "").strip().upper())

    def search(self, query: str, limit: int) -> list[Stop]:
        """
        Accent/case-insensitive substring search on stop name and code.

        Ranking:
            0 - exact code match
            1 - name starts with query
            2 - any word in name starts with query
            3 - substring anywhere in name or code
        Ties are broken by folded name, then code, so results are reproducible.
        """
        if limit <= 0:
            return []

        needle = fold_text(query)
        scored: list[tuple[int, str, str, Stop]] = []

        for stop, name in zip(self.ordered, self.folded_names):
            code = stop.code.casefold()

            if not needle:
                rank = 3
            elif code == needle:
                rank = 0
            elif name.startswith(needle):
                rank = 1
            elif any(word.startswith(needle) for word in name.replace("-", " ").split()):
                rank = 2
            elif needle in name or needle in code:
                rank = 3
            else:
                continue

            scored.append((rank, name, stop.code, stop))

        scored.sort(key=lambda item: item[:3])
        return [stop for _, _, _, stop in scored[:limit]]

    def resolve_codes(self, codes: Sequence[str]) -> list[Stop]:
        resolved = []
        for code in codes:
            stop = self.lookup(code)
            if stop is not None:
                resolved.append(stop)
        return resolved


class StopDirectoryStore:
    """Owner of the current directory generation and its refresh task."""

    def __init__(
        self,
        client: NaolibAPIService,
        popular_codes: Optional[Sequence[str]] = None,
        refresh_interval: Optional[float] = None,
        retry_interval: Optional[float] = None,
    ) -> None:
        self._client = client
        codes = settings.popular_stop_codes if popular_codes is None else popular_codes
        self._popular_codes = tuple(code.strip().upper() for code in codes)
        self._refresh_interval = refresh_interval or settings.directory_refresh_seconds
        self._retry_interval = retry_interval or settings.directory_retry_seconds
        self._current: Optional[StopDirectory] = None
        self._refresh_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self.refresh_failures = 0
        self.last_refresh_error: Optional[str] = None

    def snapshot(self) -> Optional[StopDirectory]:
        return self._current

    def is_ready(self) -> bool:
        return self._current is not None

    def _require_snapshot(self) -> StopDirectory:
        directory = self._current
        if directory is None:
            raise DirectoryNotReadyError("Stop directory has not been loaded yet.")
        return directory

    def lookup(self, code: str) -> Stop:
        directory = self._require_snapshot()
        stop = directory.lookup(code)
        if stop is None:
            raise StopNotInDirectoryError(f"Stop {code!r} is not in directory generation {directory.generation}.")
        return stop

    def search(self, query: str, limit: int) -> list[Stop]:
        return self._require_snapshot().search(query, limit)

    def popular_stops(self) -> list[Stop]:
        directory = self._current
        if directory is None:
            return []
        return directory.resolve_codes(self._popular_codes)

    def status(self) -> dict:
        directory = self._current
        return {
            "ready": directory is not None,
            "generation": directory.generation if directory else None,
            "stop_count": len(directory) if directory else 0,
            "loaded_at": directory.loaded_at if directory else None,
            "refresh_failures": self.refresh_failures,
            "last_refresh_error": self.last_refresh_error,
        }

    async def refresh(self) -> StopDirectory:
        """Fetch the full stop list and swap it in as the next generation."""
        async with self._refresh_lock:
            stops = await self._client.fetch_all_stops()
            previous = self._current
            generation = 0 if previous is None else previous.generation + 1
            directory = StopDirectory.build(generation, stops)
            # Single reference assignment; readers see either the old or the new generation.
            self._current = directory
            self.last_refresh_error = None

        logger.info("Stop directory refreshed: generation %d, %d stops", directory.generation, len(directory))
        return directory

    async def _refresh_once(self) -> None:
        try:
            await self.refresh()
        except NaolibAPIError as exc:
            self.refresh_failures += 1
            self.last_refresh_error = str(exc)
            logger.warning("Stop directory refresh failed, keeping previous generation: %s", exc)
        except Exception as exc:
            self.refresh_failures += 1
            self.last_refresh_error = str(exc)
            logger.exception("Unhandled error while refreshing stop directory")

    async def _refresh_loop(self) -> None:
        while True:
            delay = self._refresh_interval if self.is_ready() else self._retry_interval
            await asyncio.sleep(delay)
            await self._refresh_once()

    async def startup(self, strict: bool = False) -> None:
        """Load the first generation, then start the periodic refresh task."""
        try:
            await self.refresh()
        except NaolibAPIError as exc:
            self.refresh_failures += 1
            self.last_refresh_error = str(exc)
            logger.error("Initial stop directory load failed, service is degraded: %s", exc)
            if strict:
                raise
        self.start()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._refresh_loop())

    async def shutdown(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


# Global store instance
stop_directory = StopDirectoryStore(client=naolib_api_service)
