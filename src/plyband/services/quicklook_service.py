# src/plyband/services/quicklook_service.py
from __future__ import annotations

"""
Quicklook PNG de la composición en falso color.

Cada banda se escala a uint8 por percentiles (clip robusto); NaN y nodata
quedan en 0. Con >= 3 bandas se usan las tres primeras como RGB; con una
o dos, la primera en escala de grises.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from ..contracts.geo import GeoRaster
from ..errors import external_io

logger = logging.getLogger(__name__)


def percent_clip_to_uint8(arr: np.ndarray, p_low: float = 2.0, p_high: float = 98.0,
                          nodata: Optional[float] = None) -> np.ndarray:
    if not (0.0 <= p_low < p_high <= 100.0):
        raise ValueError(f"percentiles inválidos: ({p_low}, {p_high})")
    x = arr.astype(np.float64, copy=False)
    valid = np.isfinite(x)
    if nodata is not None:
        valid &= x != nodata
    out = np.zeros(x.shape, dtype=np.uint8)
    if not valid.any():
        return out
    lo, hi = np.percentile(x[valid], [p_low, p_high])
    if hi <= lo:
        out[valid] = 255 if lo > 0 else 0
        return out
    scaled = (np.clip(x[valid], lo, hi) - lo) / (hi - lo)
    out[valid] = np.round(scaled * 255.0).astype(np.uint8)
    return out


def quicklook_array(raster: GeoRaster, percentiles: Tuple[float, float] = (2.0, 98.0)) -> np.ndarray:
    data = raster.data if raster.data.ndim == 3 else raster.data[np.newaxis, ...]
    p_low, p_high = percentiles
    nodata = raster.profile.nodata
    if data.shape[0] >= 3:
        chans = [percent_clip_to_uint8(data[i], p_low, p_high, nodata) for i in range(3)]
        return np.dstack(chans)
    return percent_clip_to_uint8(data[0], p_low, p_high, nodata)


def save_quicklook(raster: GeoRaster, out_path: Path, percentiles: Tuple[float, float] = (2.0, 98.0)) -> Path:
    img = quicklook_array(raster, percentiles)
    out_path = Path(out_path)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        Image.fromarray(img).save(out_path)
    except OSError as e:
        raise external_io("escribir quicklook", str(out_path), e) from e
    logger.info("Quicklook escrito: %s", out_path)
    return out_path


__all__ = ["percent_clip_to_uint8", "quicklook_array", "save_quicklook"]
