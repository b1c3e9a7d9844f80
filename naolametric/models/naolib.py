from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class NaolibLine(BaseModel):
    """Line reference embedded in Naolib stop and passage payloads."""

    num_ligne: str = Field(alias="numLigne")
    type_ligne: Optional[int] = Field(None, alias="typeLigne")

    model_config = {"populate_by_name": True}


class NaolibStop(BaseModel):
    """Stop entry from /arrets.json"""

    code_lieu: str = Field(alias="codeLieu", min_length=1)
    libelle: str
    ligne: List[NaolibLine] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class NaolibStopRef(BaseModel):
    code_arret: Optional[str] = Field(None, alias="codeArret")

    model_config = {"populate_by_name": True}


class NaolibPassage(BaseModel):
    """Upcoming passage from /tempsattente.json/{code}"""

    sens: int
    terminus: str = ""
    temps: str = ""
    temps_reel: Optional[str] = Field(None, alias="tempsReel")
    infotrafic: bool = False
    ligne: NaolibLine
    arret: Optional[NaolibStopRef] = None

    model_config = {"populate_by_name": True}

    @property
    def is_real_time(self) -> bool:
        return (self.temps_reel or "").strip().lower() == "true"
