# src/plyband/adapters/gdal_raster_reader.py
from __future__ import annotations

from dataclasses import dataclass

import logging
import math
import os
import numpy as np

# rasterio primero; GDAL como alternativa
try:  # rasterio path
    import rasterio
    from rasterio.errors import RasterioError
    from rasterio.transform import Affine
    from rasterio.windows import Window
    _HAS_RASTERIO = True
except ImportError:  # pragma: no cover
    _HAS_RASTERIO = False

try:  # GDAL path
    from osgeo import gdal  # type: ignore
    try:
        from osgeo import gdal_array  # type: ignore
        _HAS_GDAL_ARRAY = True
    except ImportError:  # pragma: no cover
        _HAS_GDAL_ARRAY = False
    _HAS_GDAL = True
except ImportError:  # pragma: no cover
    _HAS_GDAL = False
    _HAS_GDAL_ARRAY = False

from ..contracts.geo import AffineTransform, GeoProfile, GeoTransform, PixelWindow, np_to_dtype_str
from ..errors import ExternalIOError, PlybandError, external_io
from ..ports.raster_read import RasterReaderPort

logger = logging.getLogger(__name__)


def _affine_to_gt(a: "Affine") -> GeoTransform:
    return (a.c, a.a, a.b, a.f, a.d, a.e)


def _rasterio_projection(crs_obj) -> str:
    """rasterio CRS -> WKT (string opaco). Sin CRS -> ''."""
    if not crs_obj:
        return ""
    return crs_obj.to_wkt()


def _clean_nodata(nodata) -> float | None:
    if nodata is None:
        return None
    v = float(nodata)
    return None if math.isnan(v) else v


def _gdal_datatype_to_np_dtype(dt_code: int) -> np.dtype:
    """Mapea GDALDataType a numpy.dtype sin leer la banda completa."""
    if _HAS_GDAL_ARRAY:
        np_code = gdal_array.GDALTypeCodeToNumericTypeCode(dt_code)
        if np_code is not None:
            return np.dtype(np_code)
    raise ValueError(f"GDALDataType {dt_code} no soportado")


def _check_band(uri: str, band_index: int, count: int) -> int:
    idx = int(band_index)
    if idx < 1 or idx > count:
        raise ExternalIOError(f"banda inexistente en {uri}", detail=f"band={idx}, count={count}")
    return idx


@dataclass(frozen=True)
class GdalRasterReader(RasterReaderPort):
    """Lector de raster. Prefiere rasterio; si no, GDAL.

    Regla: `profile()` describe la banda pedida (count==1, 1-based).
    Cualquier error del backend se convierte en ExternalIOError.
    """

    # --------------- rasterio ---------------
    def _profile_with_rasterio(self, uri: str, band_index: int) -> GeoProfile:
        assert _HAS_RASTERIO
        try:
            with rasterio.open(uri) as ds:
                idx = _check_band(uri, band_index, ds.count)
                return GeoProfile(
                    count=1,
                    dtype=np_to_dtype_str(ds.dtypes[idx - 1]),
                    width=ds.width,
                    height=ds.height,
                    transform=AffineTransform.from_gdal(_affine_to_gt(ds.transform)),
                    projection=_rasterio_projection(ds.crs),
                    nodata=_clean_nodata(ds.nodatavals[idx - 1]),
                )
        except PlybandError:
            raise
        except (RasterioError, OSError, ValueError) as e:
            raise external_io("leer perfil", uri, e) from e

    def _window_with_rasterio(self, uri: str, band_index: int, window: PixelWindow) -> np.ndarray:
        assert _HAS_RASTERIO
        try:
            with rasterio.open(uri) as ds:
                idx = _check_band(uri, band_index, ds.count)
                win = Window(window.col_off, window.row_off, window.width, window.height)
                return ds.read(idx, window=win)
        except (RasterioError, OSError) as e:
            raise external_io("leer ventana", uri, e) from e

    # --------------- GDAL ---------------
    def _open_gdal(self, uri: str):
        try:
            ds = gdal.Open(uri, gdal.GA_ReadOnly)
        except RuntimeError as e:
            raise external_io("abrir", uri, e) from e
        if ds is None:
            raise ExternalIOError(f"abrir falló para {uri}", detail=gdal.GetLastErrorMsg() or "dataset no encontrado")
        return ds

    def _profile_with_gdal(self, uri: str, band_index: int) -> GeoProfile:
        assert _HAS_GDAL
        ds = self._open_gdal(uri)
        try:
            idx = _check_band(uri, band_index, ds.RasterCount)
            band = ds.GetRasterBand(idx)
            return GeoProfile(
                count=1,
                dtype=np_to_dtype_str(_gdal_datatype_to_np_dtype(band.DataType)),
                width=ds.RasterXSize,
                height=ds.RasterYSize,
                transform=AffineTransform.from_gdal(ds.GetGeoTransform()),
                projection=ds.GetProjection() or "",
                nodata=_clean_nodata(band.GetNoDataValue()),
            )
        except PlybandError:
            raise
        except (RuntimeError, ValueError) as e:
            raise external_io("leer perfil", uri, e) from e
        finally:
            ds = None  # cierre explícito

    def _window_with_gdal(self, uri: str, band_index: int, window: PixelWindow) -> np.ndarray:
        assert _HAS_GDAL
        ds = self._open_gdal(uri)
        try:
            idx = _check_band(uri, band_index, ds.RasterCount)
            arr = ds.GetRasterBand(idx).ReadAsArray(window.col_off, window.row_off, window.width, window.height)
            if arr is None:
                raise ExternalIOError(f"leer ventana falló para {uri}", detail=gdal.GetLastErrorMsg())
            return arr
        except RuntimeError as e:
            raise external_io("leer ventana", uri, e) from e
        finally:
            ds = None

    # --------------- RasterReaderPort ---------------
    def profile(self, uri: str, band_index: int = 1) -> GeoProfile:
        logger.debug("profile %s:%d", uri, band_index)
        if _HAS_RASTERIO:
            return self._profile_with_rasterio(uri, band_index)
        if _HAS_GDAL:
            return self._profile_with_gdal(uri, band_index)
        raise ExternalIOError(f"leer falló para {uri}", detail="sin backend raster (instala plyband[rasterio] o plyband[gdal])")

    def read_window(self, uri: str, band_index: int, window: PixelWindow) -> np.ndarray:
        logger.debug("read_window %s:%d %s", uri, band_index, window)
        if _HAS_RASTERIO:
            return self._window_with_rasterio(uri, band_index, window)
        if _HAS_GDAL:
            return self._window_with_gdal(uri, band_index, window)
        raise ExternalIOError(f"leer falló para {uri}", detail="sin backend raster (instala plyband[rasterio] o plyband[gdal])")

    def exists(self, uri: str) -> bool:
        return os.path.exists(uri)
