# src/plyband/ports/raster_read.py
from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np
from ..contracts.geo import GeoProfile, PixelWindow

URI = str

@runtime_checkable
class RasterReaderPort(Protocol):
    """
    Lector de raster genérico (GeoTIFF/COG/JP2, lo que soporte el backend).
    Reglas: `profile()` describe SIEMPRE una sola banda (count==1);
    errores de backend salen como ExternalIOError.
    """
    def profile(self, uri: URI, band_index: int = 1) -> GeoProfile: ...
    def read_window(self, uri: URI, band_index: int, window: PixelWindow) -> np.ndarray: ...
    def exists(self, uri: URI) -> bool: ...

__all__ = ["RasterReaderPort", "URI"]
