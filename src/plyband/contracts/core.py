# src/plyband/contracts/core.py
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

# -------------------------
# Referencias a bandas
# -------------------------
ChannelName = str  # "red" | "green" | "blue" | "band4" ...

class BandRef(BaseModel):
    """Banda concreta de un dataset: `uri` + índice 1-based."""
    model_config = ConfigDict(frozen=True)
    uri: str
    band: PositiveInt = 1
    channel: Optional[ChannelName] = None

    @field_validator("uri")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("uri no puede ser vacío")
        return v2

    @classmethod
    def parse(cls, text: str, channel: Optional[ChannelName] = None) -> "BandRef":
        """
        Convierte `"parent/file.tif:2"` en `BandRef(uri="parent/file.tif", band=2)`.
        - Sin sufijo, la banda es 1.
        - Solo se interpreta como banda un sufijo de dígitos; así
          `C:\\data\\b.tif` sigue siendo una ruta.
        """
        path, sep, suffix = text.rpartition(":")
        if sep and suffix.isdigit():
            return cls(uri=path, band=int(suffix), channel=channel)
        return cls(uri=text, band=1, channel=channel)

    def label(self) -> str:
        return f"{self.uri}:{self.band}"

# -------------------------
# Ejecuciones / auditoría
# -------------------------
class Stage(str, Enum):
    READ = "read"
    VALIDATE = "validate"
    INTERSECT = "intersect"
    EXTRACT = "extract"
    WRITE = "write"
    QUICKLOOK = "quicklook"

class RunMeta(BaseModel):
    model_config = ConfigDict(frozen=True)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str | None = None
    ended_at: datetime | None = None

    def end_now(self) -> "RunMeta":
        return self.model_copy(update={"ended_at": datetime.now(timezone.utc)})

    @property
    def duration_s(self) -> float | None:
        if self.ended_at is None:
            return None
        return (self.ended_at - self.started_at).total_seconds()

class RunError(BaseModel):
    model_config = ConfigDict(frozen=True)
    stage: Stage
    kind: str
    message: str
    detail: str | None = None
