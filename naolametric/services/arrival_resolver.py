from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from naolametric.models.transit import ArrivalQuery, ArrivalRecord, DisplayFrame, Stop
from naolametric.services.display_mapper import map_arrivals_to_frames, no_arrivals_frame
from naolametric.services.naolib_api import (
    NaolibAPIService,
    NaolibBadResponseError,
    NaolibStopNotFoundError,
    NaolibUnreachableError,
    naolib_api_service,
)
from naolametric.services.stop_directory import (
    DirectoryNotReadyError,
    StopDirectoryStore,
    StopNotInDirectoryError,
    stop_directory,
)

logger = logging.getLogger(__name__)

VALID_DIRECTIONS = (1, 2)


class ResolverError(Exception):
    """Base class for request-level failures, each with a fixed display text."""

    display_text = "API err"

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class MissingStopError(ResolverError):
    display_text = "No stop"


class UnknownStopError(ResolverError):
    display_text = "Bad stop"


class InvalidDirectionError(ResolverError):
    display_text = "Bad dir"


class UpstreamError(ResolverError):
    display_text = "API err"

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message, status_code=status_code)


class UpstreamUnreachableError(UpstreamError):
    pass


class UpstreamBadResponseError(UpstreamError):
    pass


class DirectoryUnavailableError(UpstreamError):
    def __init__(self, message: str, status_code: int = 503):
        super().__init__(message, status_code=status_code)


@dataclass
class ResolvedArrivals:
    """Frames for one query; no_arrivals marks the explicit "nothing scheduled" case."""

    stop: Stop
    frames: list[DisplayFrame]
    records: list[ArrivalRecord] = field(default_factory=list)
    no_arrivals: bool = False


class ArrivalResolver:
    """Validate a query, fetch live passages and turn them into display frames."""

    def __init__(self, directory: StopDirectoryStore, client: NaolibAPIService):
        self.directory = directory
        self.client = client

    def _validate_stop(self, stop_code: str) -> Stop:
        if not stop_code:
            raise MissingStopError("No stop code supplied.")
        try:
            return self.directory.lookup(stop_code)
        except StopNotInDirectoryError as exc:
            raise UnknownStopError(str(exc)) from exc
        except DirectoryNotReadyError as exc:
            raise DirectoryUnavailableError(str(exc)) from exc

    @staticmethod
    def _validate_direction(raw_direction: Optional[str]) -> Optional[int]:
        if raw_direction is None:
            return None
        try:
            direction = int(raw_direction)
        except ValueError as exc:
            raise InvalidDirectionError(f"Direction {raw_direction!r} is not a number.") from exc
        if direction not in VALID_DIRECTIONS:
            raise InvalidDirectionError(f"Direction {direction} is not one of {VALID_DIRECTIONS}.")
        return direction

    async def _fetch(self, stop: Stop, line: Optional[str], direction: Optional[int]) -> list[ArrivalRecord]:
        try:
            return await self.client.fetch_arrivals(stop.code, line=line, direction=direction)
        except NaolibStopNotFoundError as exc:
            raise UnknownStopError(f"Naolib does not know stop {stop.code}.") from exc
        except NaolibUnreachableError as exc:
            logger.warning("Naolib unreachable for stop %s: %s", stop.code, exc)
            raise UpstreamUnreachableError(str(exc)) from exc
        except NaolibBadResponseError as exc:
            logger.error("Naolib returned an unusable response for stop %s: %s", stop.code, exc)
            raise UpstreamBadResponseError(str(exc)) from exc

    async def resolve(self, query: ArrivalQuery) -> ResolvedArrivals:
        # Stop is validated before direction.
        stop = self._validate_stop(query.stop_code)
        direction = self._validate_direction(query.direction)

        records = await self._fetch(stop, query.line, direction)
        if not records:
            return ResolvedArrivals(stop=stop, frames=[no_arrivals_frame()], no_arrivals=True)

        kept = records[: query.limit]
        return ResolvedArrivals(
            stop=stop,
            frames=map_arrivals_to_frames(kept, show_terminus=query.show_terminus),
            records=kept,
        )


# Global resolver instance
arrival_resolver = ArrivalResolver(directory=stop_directory, client=naolib_api_service)
