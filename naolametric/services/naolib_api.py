from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from naolametric.config import settings
from naolametric.models.naolib import NaolibPassage, NaolibStop
from naolametric.models.transit import ArrivalRecord, Stop
from naolametric.utils.time import parse_wait_minutes

logger = logging.getLogger(__name__)


class NaolibStopNotFoundError(Exception):
    """Raised when Naolib does not know the requested stop code."""


class NaolibAPIError(Exception):
    """Raised when upstream Naolib API is unavailable/invalid."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


class NaolibUnreachableError(NaolibAPIError):
    """Transport failure, timeout or 5xx from Naolib."""


class NaolibBadResponseError(NaolibAPIError):
    """Naolib answered but the payload could not be interpreted."""


class NaolibAPIService:
    """Service for interacting with the Naolib (TAN) open data API."""

    def __init__(self):
        self.base_url = settings.naolib_api_base_url.rstrip("/")
        self.timeout = settings.http_timeout_seconds
        self._client: Optional[httpx.AsyncClient] = None

    async def startup(self) -> None:
        await self._get_client()

    async def shutdown(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def _get_json(self, path: str, params: Optional[dict] = None):
        try:
            client = await self._get_client()
            response = await client.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            if status_code == 404:
                raise NaolibStopNotFoundError("Naolib resource was not found.") from exc
            if 500 <= status_code < 600:
                raise NaolibUnreachableError("Naolib API is temporarily unavailable.", status_code=502) from exc
            raise NaolibBadResponseError(
                f"Naolib API returned an unexpected status {status_code}.", status_code=502
            ) from exc
        except httpx.RequestError as exc:
            raise NaolibUnreachableError(f"Unable to reach Naolib API: {exc!r}", status_code=502) from exc
        except ValueError as exc:
            raise NaolibBadResponseError("Naolib API returned invalid JSON.", status_code=502) from exc

    @staticmethod
    def _stop_from_payload(item: NaolibStop) -> Stop:
        lines = tuple(line.num_ligne.strip() for line in item.ligne if line.num_ligne.strip())
        return Stop(code=item.code_lieu.strip().upper(), name=item.libelle.strip(), lines=lines)

    @staticmethod
    def _record_from_payload(item: NaolibPassage) -> Optional[ArrivalRecord]:
        wait_minutes = parse_wait_minutes(item.temps)
        if wait_minutes is None:
            return None
        return ArrivalRecord(
            line=item.ligne.num_ligne.strip().upper(),
            direction=item.sens,
            destination=item.terminus.strip(),
            wait_minutes=wait_minutes,
            wait_text=item.temps.strip(),
            real_time=item.is_real_time,
        )

    async def fetch_all_stops(self) -> list[Stop]:
        """
        Fetch the complete stop directory.

        Either every record is returned or NaolibBadResponseError is raised;
        a partial directory is never handed back.
        """
        try:
            payload = await self._get_json("/arrets.json")
        except NaolibStopNotFoundError as exc:
            raise NaolibBadResponseError("Naolib stop directory endpoint is missing.") from exc

        if not isinstance(payload, list):
            raise NaolibBadResponseError("Naolib stop directory is not a list.")
        if not payload:
            raise NaolibBadResponseError("Naolib stop directory is empty.")

        stops: list[Stop] = []
        for index, item in enumerate(payload):
            try:
                stops.append(self._stop_from_payload(NaolibStop.model_validate(item)))
            except ValidationError as exc:
                raise NaolibBadResponseError(
                    f"Naolib stop directory record {index} is invalid: {exc.error_count()} error(s)."
                ) from exc

        logger.debug("Fetched %d stops from Naolib", len(stops))
        return stops

    async def fetch_arrivals(
        self,
        stop_code: str,
        line: Optional[str] = None,
        direction: Optional[int] = None,
    ) -> list[ArrivalRecord]:
        """
        Fetch upcoming passages for one stop, soonest first.

        Naolib has no server-side filters, so line and direction are applied here.
        """
        stop_code = stop_code.strip().upper()
        payload = await self._get_json(f"/tempsattente.json/{stop_code}")

        if payload is None:
            payload = []
        if not isinstance(payload, list):
            raise NaolibBadResponseError("Naolib arrivals payload is not a list.")

        records: list[ArrivalRecord] = []
        parsed = 0
        for item in payload:
            try:
                passage = NaolibPassage.model_validate(item)
            except ValidationError as exc:
                logger.warning("Failed to parse Naolib passage for %s: %s", stop_code, exc)
                continue
            parsed += 1

            record = self._record_from_payload(passage)
            if record is None:
                logger.debug("Skipping passage without usable wait time: %r", passage.temps)
                continue
            if line and record.line != line.upper():
                continue
            if direction is not None and record.direction != direction:
                continue
            records.append(record)

        if payload and parsed == 0:
            raise NaolibBadResponseError(f"No Naolib passage for {stop_code} could be parsed.")

        return records


# Global service instance
naolib_api_service = NaolibAPIService()
