# src/plyband/services/combine_service.py
from __future__ import annotations

"""
Servicio de combinación de bandas (contracts-first, sin dependencias duras
fuera de *ports*).

Flujo:
  1) lee el perfil de cada BandRef (reader)
  2) valida proyección + retícula (validation_service)
  3) construye una Swath por entrada e intersecta (intersection_service)
  4) por cada banda invierte SU transformada en el origen de salida, lee
     una ventana width x height y apila
  5) escribe el raster multibanda (writer) y, opcional, el quicklook PNG

Nota: no reproyecta ni resamplea. Una diferencia de resolución es un
error de validación, no algo que se corrija aquí.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np

from ..config import Settings, get_settings
from ..contracts.core import BandRef, RunMeta, Stage
from ..contracts.geo import GeoProfile, GeoRaster, PixelWindow, pretty_bounds
from ..contracts.swath import Swath
from ..errors import EmptyInput, InvalidGeometry, PlybandError
from ..ports.raster_read import RasterReaderPort
from ..ports.raster_write import RasterWriterPort
from . import intersection_service, quicklook_service, validation_service

logger = logging.getLogger(__name__)


# ----------------------
# DTOs de entrada/salida
# ----------------------

@dataclass(frozen=True)
class CombineSpec:
    out_path: Optional[Path] = None     # si None -> Settings.output
    driver: Optional[str] = None        # si None -> Settings.output_format
    tolerance: Optional[float] = None   # si None -> Settings.lattice_tolerance
    quicklook: bool = False

@dataclass(frozen=True)
class CombinePlan:
    bands: Tuple[BandRef, ...]
    profiles: Tuple[GeoProfile, ...]
    swath: Swath
    windows: Tuple[PixelWindow, ...]

@dataclass(frozen=True)
class CombineResult:
    out_path: Path
    plan: CombinePlan
    quicklook_path: Optional[Path]
    meta: RunMeta


# ----------------------
# Helpers puros
# ----------------------

def source_window(profile: GeoProfile, swath: Swath) -> PixelWindow:
    """Ventana de `profile` que cubre la swath de salida.

    El offset sale de invertir la transformada PROPIA de la entrada en el
    origen de salida; sobre una retícula validada es entero exacto.
    """
    if swath.width <= 0 or swath.height <= 0:
        raise InvalidGeometry(
            "La salida requiere dimensiones positivas (retícula norte-arriba)",
            detail=f"{swath.width}x{swath.height}",
        )
    col, row = profile.transform.invert(swath.transform.origin())
    win = PixelWindow(int(round(col)), int(round(row)), swath.width, swath.height)
    if not win.within(profile.width, profile.height):
        raise InvalidGeometry(
            "La ventana de lectura cae fuera del raster de entrada",
            detail=f"{win} vs {profile.width}x{profile.height}",
        )
    return win


# ----------------------
# Servicio
# ----------------------

@dataclass
class CombineService:
    reader: RasterReaderPort
    writer: RasterWriterPort
    settings: Settings = field(default_factory=get_settings)

    def plan(self, bands: Sequence[BandRef], *, tolerance: Optional[float] = None) -> CombinePlan:
        """Lee perfiles, valida y calcula la intersección (sin leer píxeles)."""
        if not bands:
            raise EmptyInput("No se entregaron bandas")
        tol = self.settings.lattice_tolerance if tolerance is None else tolerance

        stage = Stage.READ
        try:
            profiles = tuple(self.reader.profile(b.uri, b.band) for b in bands)

            stage = Stage.VALIDATE
            validation_service.validate(profiles, tolerance=tol)

            stage = Stage.INTERSECT
            swaths = [Swath.from_profile(p) for p in profiles]
            for b, s in zip(bands, swaths):
                logger.info("%s: %dx%d %s", b.label(), s.width, s.height, pretty_bounds(s.bounds()))
            out = intersection_service.intersect(swaths)

            stage = Stage.EXTRACT
            windows = tuple(source_window(p, out) for p in profiles)
        except PlybandError as e:
            logger.debug("Fallo en plan: %s", e.to_run_error(stage).model_dump(mode="json"))
            raise
        return CombinePlan(bands=tuple(bands), profiles=profiles, swath=out, windows=windows)

    def extract(self, plan: CombinePlan) -> GeoRaster:
        """Lee una ventana por banda y apila en el dtype de la primera."""
        arrs = []
        try:
            for b, w in zip(plan.bands, plan.windows):
                logger.debug("Leyendo %s ventana %s", b.label(), w)
                arrs.append(self.reader.read_window(b.uri, b.band, w))
        except PlybandError as e:
            logger.debug("Fallo en extract: %s", e.to_run_error(Stage.EXTRACT).model_dump(mode="json"))
            raise
        p0 = plan.profiles[0]
        data = np.stack(arrs, axis=0).astype(np.dtype(p0.dtype), copy=False)
        width, height = plan.swath.size()
        profile = GeoProfile(
            count=len(arrs),
            dtype=p0.dtype,
            width=width,
            height=height,
            transform=plan.swath.transform,
            projection=plan.swath.projection,
            nodata=p0.nodata,
        )
        return GeoRaster(data=data, profile=profile)

    def combine(self, bands: Sequence[BandRef], spec: CombineSpec = CombineSpec()) -> CombineResult:
        meta = RunMeta(notes=", ".join(b.label() for b in bands))
        plan = self.plan(bands, tolerance=spec.tolerance)
        stacked = self.extract(plan)

        out_path = Path(spec.out_path) if spec.out_path is not None else self.settings.output
        driver = spec.driver or self.settings.output_format
        ql_path: Optional[Path] = None

        stage = Stage.WRITE
        try:
            self.writer.write(str(out_path), stacked, driver=driver,
                              compress=self.settings.compress, tiled=self.settings.tiled)
            if spec.quicklook:
                stage = Stage.QUICKLOOK
                ql_path = quicklook_service.save_quicklook(
                    stacked, self.settings.quicklook_path(out_path), self.settings.quicklook_percentiles,
                )
        except PlybandError as e:
            logger.debug("Fallo en combine: %s", e.to_run_error(stage).model_dump(mode="json"))
            raise

        meta = meta.end_now()
        logger.info("Combinación lista: %s (%d bandas, %.3f s)", out_path, len(bands), meta.duration_s or 0.0)
        return CombineResult(out_path=out_path, plan=plan, quicklook_path=ql_path, meta=meta)


__all__ = [
    "CombineService", "CombineSpec", "CombinePlan", "CombineResult", "source_window",
]
