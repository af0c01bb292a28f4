from __future__ import annotations
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ..adapters.gdal_raster_reader import GdalRasterReader
from ..adapters.gdal_raster_writer import GdalRasterWriter
from ..config import Settings, get_settings
from ..services.combine_service import CombineService

def load_settings_from_yaml(path: Path, overrides: Optional[Mapping[str, Any]] = None) -> Settings:
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: se esperaba un mapeo YAML en la raíz")
    data.update(overrides or {})
    return Settings(**data)

def build_settings(config_path: Optional[Path] = None, **overrides: Any) -> Settings:
    """YAML si se entrega ruta; si no, entorno/.env (get_settings)."""
    clean = {k: v for k, v in overrides.items() if v is not None}
    if config_path is not None:
        return load_settings_from_yaml(Path(config_path).expanduser().resolve(), clean)
    st = get_settings()
    # re-valida en vez de model_copy(update=...), que no pasa por los validadores
    return Settings(**{**st.model_dump(), **clean}) if clean else st

def build_combine_service(settings: Settings) -> CombineService:
    return CombineService(reader=GdalRasterReader(), writer=GdalRasterWriter(), settings=settings)
