from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from naolametric.config import settings


class Stop(BaseModel):
    """A boarding location in the stop directory, keyed by its code."""

    code: str
    name: str
    lines: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


class ArrivalRecord(BaseModel):
    """One upcoming passage at a stop."""

    line: str
    direction: int
    destination: str = ""
    wait_minutes: int = Field(0, ge=0)
    wait_text: str = ""
    real_time: bool = False

    model_config = ConfigDict(frozen=True)


class ArrivalQuery(BaseModel):
    """Validated parameters of one arrivals request."""

    stop_code: str = ""
    line: Optional[str] = None
    direction: Optional[str] = None
    limit: int = settings.arrivals_default_limit
    show_terminus: bool = False

    model_config = ConfigDict(frozen=True)

    @field_validator("stop_code", mode="before")
    @classmethod
    def _normalize_stop_code(cls, value):
        return (value or "").strip().upper()

    @field_validator("line", mode="before")
    @classmethod
    def _normalize_line(cls, value):
        if value is None:
            return None
        line = str(value).strip().upper()
        return line or None

    @field_validator("direction", mode="before")
    @classmethod
    def _normalize_direction(cls, value):
        if value is None:
            return None
        direction = str(value).strip()
        return direction or None

    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, value):
        # Unparseable limits fall back to the default rather than failing the request.
        try:
            limit = int(value)
        except (TypeError, ValueError):
            limit = settings.arrivals_default_limit
        return max(1, min(limit, settings.arrivals_max_limit))


class DisplayFrame(BaseModel):
    """One LaMetric frame: an icon id and a short text."""

    icon: str
    text: str


class FramesResponse(BaseModel):
    frames: list[DisplayFrame] = Field(default_factory=list)
