# src/plyband/config.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """
    Config unificada del proyecto. No toca disco.
    Fuentes: argumentos > variables PLYBAND_* > .env > defaults.
    La construye composition/di.py (YAML) o la CLI.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PLYBAND_",
        env_nested_delimiter="__",
        extra="forbid",
        frozen=True,
    )

    # --- salida ---
    output: Path = Path("out.tif")
    output_format: str = "GTiff"
    compress: Optional[str] = None
    tiled: bool = True

    # --- validación ---
    # 0.0 = comparación exacta de retícula; > 0 sólo si se pide explícitamente
    lattice_tolerance: float = Field(0.0, ge=0.0)

    # --- quicklook ---
    quicklook_percentiles: Tuple[float, float] = (2.0, 98.0)

    # --- logging ---
    log_level: str = "WARNING"

    # ----------------------------
    # Normalizadores / validadores
    # ----------------------------
    @field_validator("output", mode="before")
    @classmethod
    def _expand_output(cls, v: Path | str) -> Path:
        return Path(v).expanduser()

    @field_validator("output_format")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("output_format no puede ser vacío")
        return v2

    @field_validator("compress")
    @classmethod
    def _upper_compress(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip().upper()

    @field_validator("log_level")
    @classmethod
    def _valid_level(cls, v: str) -> str:
        v2 = v.strip().upper()
        if v2 not in _LOG_LEVELS:
            raise ValueError(f"log_level inválido: {v}")
        return v2

    @model_validator(mode="after")
    def _check_percentiles(self) -> "Settings":
        lo, hi = self.quicklook_percentiles
        if not (0.0 <= lo < hi <= 100.0):
            raise ValueError(f"quicklook_percentiles inválidos: {self.quicklook_percentiles}")
        return self

    # ----------------------------
    # Helpers puros (sin side-effects)
    # ----------------------------
    def quicklook_path(self, output: Optional[Path] = None) -> Path:
        """`<output>.png` junto al raster (no crea carpetas)."""
        out = Path(output or self.output)
        return out.with_name(out.name + ".png")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Instancia cacheada. Úsala SOLO desde composition/di.py o CLI.
    Para tests, recuerda limpiar:
        get_settings.cache_clear()
    """
    return Settings()
