# tests/integration/adapters/test_gdal_raster_io.py
import numpy as np
import pytest
from pathlib import Path

rasterio = pytest.importorskip("rasterio")

from plyband.adapters.gdal_raster_reader import GdalRasterReader
from plyband.adapters.gdal_raster_writer import GdalRasterWriter
from plyband.composition.di import build_combine_service
from plyband.config import Settings
from plyband.contracts.core import BandRef
from plyband.contracts.geo import GeoRaster, PixelWindow
from plyband.errors import ExternalIOError
from tests.factories import make_profile

pytestmark = [pytest.mark.gdal, pytest.mark.integration]


def _write_tif(path: Path, x0: float, y0: float, offset: int, dtype=np.uint16) -> Path:
    arr = (np.arange(100 * 100).reshape(100, 100) + offset).astype(dtype)
    prof = make_profile(100, 100, x0=x0, y0=y0, px=1.0, projection="EPSG:32719",
                        dtype="uint16" if dtype == np.uint16 else "float32")
    GdalRasterWriter().write(str(path), GeoRaster(arr, prof))
    return path


def test_reader_profile_and_window(tmp_path: Path):
    p = _write_tif(tmp_path / "a.tif", 0.0, 100.0, 0)
    reader = GdalRasterReader()
    prof = reader.profile(str(p))
    assert (prof.width, prof.height, prof.count) == (100, 100, 1)
    assert prof.dtype == "uint16"
    assert prof.transform.as_gdal() == (0.0, 1.0, 0.0, 100.0, 0.0, -1.0)
    assert prof.projection

    win = reader.read_window(str(p), 1, PixelWindow(5, 10, 3, 2))
    assert win.shape == (2, 3)
    assert int(win[0, 0]) == 10 * 100 + 5
    assert reader.exists(str(p))


def test_reader_errors_are_external_io(tmp_path: Path):
    reader = GdalRasterReader()
    with pytest.raises(ExternalIOError):
        reader.profile(str(tmp_path / "missing.tif"))
    p = _write_tif(tmp_path / "a.tif", 0.0, 100.0, 0)
    with pytest.raises(ExternalIOError):
        reader.profile(str(p), band_index=2)


def test_end_to_end_combine(tmp_path: Path):
    a = _write_tif(tmp_path / "a.tif", 0.0, 100.0, 0)
    b = _write_tif(tmp_path / "b.tif", 5.0, 100.0, 1)
    c = _write_tif(tmp_path / "c.tif", 0.0, 95.0, 2)
    out = tmp_path / "out" / "rgb.tif"
    svc = build_combine_service(Settings(output=out, compress="deflate"))
    res = svc.combine([BandRef.parse(str(a)), BandRef.parse(f"{b}:1"), BandRef.parse(str(c))])

    assert res.out_path == out
    with rasterio.open(out) as ds:
        assert (ds.count, ds.width, ds.height) == (3, 95, 95)
        assert ds.transform.to_gdal() == (5.0, 1.0, 0.0, 95.0, 0.0, -1.0)
        data = ds.read()
    assert int(data[0, 0, 0]) == 5 * 100 + 5
    assert int(data[1, 0, 0]) == 5 * 100 + 0 + 1
    assert int(data[2, 0, 0]) == 0 * 100 + 5 + 2
