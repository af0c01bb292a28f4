# src/plyband/ports/raster_write.py
from __future__ import annotations

from typing import Protocol, runtime_checkable, Optional
from ..contracts.geo import GeoRaster

URI = str

@runtime_checkable
class RasterWriterPort(Protocol):
    """
    Escritor de rasters multibanda (GTiff por defecto, cualquier driver GDAL).
    """
    def write(self, uri: URI, raster: GeoRaster, *, driver: str = "GTiff",
              compress: Optional[str] = None, tiled: bool = True) -> URI: ...

__all__ = ["RasterWriterPort", "URI"]
