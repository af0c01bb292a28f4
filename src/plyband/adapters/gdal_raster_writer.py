## `src/plyband/adapters/gdal_raster_writer.py`
from __future__ import annotations

import logging
import os
from typing import Optional

import numpy as np

try:
    import rasterio
    from rasterio.errors import RasterioError
    from rasterio.transform import Affine
    _HAS_RASTERIO = True
except ImportError:  # pragma: no cover
    _HAS_RASTERIO = False

try:
    from osgeo import gdal, osr
    _HAS_GDAL = True
except ImportError:  # pragma: no cover
    _HAS_GDAL = False

from ..contracts.geo import GeoRaster
from ..errors import ExternalIOError, external_io
from ..ports.raster_write import RasterWriterPort

logger = logging.getLogger(__name__)


def _ensure_dir(path: str) -> None:
    d = os.path.dirname(path)
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)


def _is_gtiff(driver: str) -> bool:
    return driver.strip().upper() in ("GTIFF", "COG")


class GdalRasterWriter(RasterWriterPort):
    """Escribe GeoRaster (2D o 3D banda-primero) con rasterio; si no, GDAL.

    Las opciones compress/tiled sólo se pasan a drivers GTiff; el resto
    de drivers recibe únicamente geometría, proyección y nodata.
    """

    def _write_with_rasterio(self, uri: str, raster: GeoRaster, driver: str,
                             compress: Optional[str], tiled: bool) -> str:
        data = raster.data
        p = raster.profile
        gt = p.transform
        profile = {
            "driver": driver,
            "height": p.height,
            "width": p.width,
            "count": 1 if data.ndim == 2 else data.shape[0],
            "dtype": data.dtype,
            "transform": Affine.from_gdal(*gt.as_gdal()),
            "nodata": p.nodata,
        }
        if p.projection:
            profile["crs"] = p.projection
        if _is_gtiff(driver):
            profile["tiled"] = tiled
            if compress:
                profile["compress"] = compress.upper()
        try:
            with rasterio.open(uri, "w", **profile) as dst:
                if data.ndim == 2:
                    dst.write(data, 1)
                else:
                    for i in range(data.shape[0]):
                        dst.write(data[i], i + 1)
        except (RasterioError, OSError) as e:
            raise external_io("escribir", uri, e) from e
        return uri

    def _write_with_gdal(self, uri: str, raster: GeoRaster, driver: str,
                         compress: Optional[str], tiled: bool) -> str:
        data = raster.data
        p = raster.profile
        drv = gdal.GetDriverByName(driver)
        if drv is None:
            raise ExternalIOError(f"crear falló para {uri}", detail=f"driver {driver} no disponible")
        _NP2GDAL = {
            np.dtype("uint8"): gdal.GDT_Byte,
            np.dtype("uint16"): gdal.GDT_UInt16,
            np.dtype("int16"): gdal.GDT_Int16,
            np.dtype("uint32"): gdal.GDT_UInt32,
            np.dtype("int32"): gdal.GDT_Int32,
            np.dtype("float32"): gdal.GDT_Float32,
            np.dtype("float64"): gdal.GDT_Float64,
        }
        dtype = _NP2GDAL.get(data.dtype, gdal.GDT_Float32)
        count = 1 if data.ndim == 2 else data.shape[0]
        options = []
        if _is_gtiff(driver):
            options.append("TILED=YES" if tiled else "TILED=NO")
            if compress:
                options.append(f"COMPRESS={compress.upper()}")
        try:
            ds = drv.Create(uri, p.width, p.height, count, dtype, options=options)
            if ds is None:
                raise ExternalIOError(f"crear falló para {uri}", detail=gdal.GetLastErrorMsg())
            ds.SetGeoTransform(p.transform.as_gdal())
            if p.projection:
                srs = osr.SpatialReference(); srs.SetFromUserInput(p.projection)
                ds.SetProjection(srs.ExportToWkt())
            bands = [data] if data.ndim == 2 else [data[i] for i in range(count)]
            for i, arr in enumerate(bands):
                band = ds.GetRasterBand(i + 1)
                band.WriteArray(arr)
                if p.nodata is not None:
                    band.SetNoDataValue(float(p.nodata))
            ds.FlushCache(); ds = None
        except RuntimeError as e:
            raise external_io("escribir", uri, e) from e
        return uri

    def write(self, uri: str, raster: GeoRaster, *, driver: str = "GTiff",
              compress: Optional[str] = None, tiled: bool = True) -> str:
        _ensure_dir(uri)
        logger.info("Escribiendo %s (driver=%s, shape=%s, dtype=%s)", uri, driver, raster.shape, raster.data.dtype)
        if _HAS_RASTERIO:
            return self._write_with_rasterio(uri, raster, driver, compress, tiled)
        if _HAS_GDAL:
            return self._write_with_gdal(uri, raster, driver, compress, tiled)
        raise ExternalIOError(f"escribir falló para {uri}", detail="sin backend raster (instala plyband[rasterio] o plyband[gdal])")
