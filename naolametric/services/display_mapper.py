from __future__ import annotations

from enum import Enum
from typing import Iterable

from naolametric.config import settings
from naolametric.models.transit import ArrivalRecord, DisplayFrame

ICON_TRAM = "8958"
ICON_BUS = "7956"
ICON_NAVETTE = "12186"
ICON_ERROR = "555"

NO_ARRIVALS_TEXT = "Aucun"


class TransitMode(str, Enum):
    TRAM = "tram"
    BUS = "bus"
    NAVETTE = "navette"
    UNKNOWN = "unknown"


MODE_ICONS = {
    TransitMode.TRAM: ICON_TRAM,
    TransitMode.BUS: ICON_BUS,
    TransitMode.NAVETTE: ICON_NAVETTE,
    TransitMode.UNKNOWN: ICON_ERROR,
}


def classify_line(line: str) -> TransitMode:
    """Tram lines are 1-3, Navibus shuttles start with N, everything else is a bus."""
    line = (line or "").strip().upper()
    if not line:
        return TransitMode.UNKNOWN
    if len(line) == 1 and line in "123":
        return TransitMode.TRAM
    if line.startswith("N"):
        return TransitMode.NAVETTE
    return TransitMode.BUS


def icon_for_line(line: str) -> str:
    return MODE_ICONS[classify_line(line)]


def line_label(line: str) -> str:
    line = (line or "").strip().upper()
    return f"L{line}" if line.isdigit() else line


def shorten_terminus(destination: str, max_length: int | None = None) -> str:
    max_length = max_length or settings.terminus_max_length
    destination = (destination or "").strip()
    if len(destination) > max_length:
        return f"{destination[:max_length - 1]}."
    return destination


def format_arrival_text(record: ArrivalRecord, show_terminus: bool) -> str:
    wait = f"{max(0, int(record.wait_minutes))}mn"
    label = line_label(record.line)
    if show_terminus and record.destination:
        return f"{label} {shorten_terminus(record.destination)} {wait}"
    return f"{label} {wait}"


def map_arrivals_to_frames(records: Iterable[ArrivalRecord], show_terminus: bool = False) -> list[DisplayFrame]:
    return [
        DisplayFrame(icon=icon_for_line(record.line), text=format_arrival_text(record, show_terminus))
        for record in records
    ]


def no_arrivals_frame() -> DisplayFrame:
    return DisplayFrame(icon=ICON_TRAM, text=NO_ARRIVALS_TEXT)


def error_frame(text: str) -> DisplayFrame:
    return DisplayFrame(icon=ICON_ERROR, text=text)
