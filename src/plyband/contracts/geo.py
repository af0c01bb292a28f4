# src/plyband/contracts/geo.py

from __future__ import annotations
import math
import sys
from dataclasses import dataclass, replace
from functools import total_ordering
from typing import Any, Literal, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from ..errors import InvalidGeometry, SingularTransform

GeoTransform = Tuple[float, float, float, float, float, float]
DTypeStr = Literal["uint8","uint16","int16","uint32","int32","float32","float64"]
Point = Tuple[float, float]

class Bounds(NamedTuple):
    minx: float; miny: float; maxx: float; maxy: float

# Distancia (en píxeles, relativa) bajo la cual un valor se considera entero.
_INTEGER_SNAP = 1e-9

# ---------- Orden total sobre floats ----------
@total_ordering
@dataclass(frozen=True, eq=False)
class OrderedCoordinate:
    """
    Envoltura de un float con orden TOTAL, para elegir extremos con min/max.

    Política única:
    - valores no-NaN (incluye ±inf) se comparan numéricamente; -0.0 == 0.0
    - todo NaN es igual a cualquier otro NaN
    - NaN es MAYOR que cualquier valor no-NaN
    """
    value: float

    def _key(self) -> Tuple[int, float]:
        v = float(self.value)
        if math.isnan(v):
            return (1, 0.0)
        return (0, v)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OrderedCoordinate):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "OrderedCoordinate") -> bool:
        if not isinstance(other, OrderedCoordinate):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __float__(self) -> float:
        return float(self.value)

    def is_nan(self) -> bool:
        return math.isnan(self.value)

# ---------- Transformación afín (convención GDAL) ----------
@dataclass(frozen=True)
class AffineTransform:
    """
    Pixel (col, row) -> mundo (x, y):

        x = x0 + col*px + row*rx
        y = y0 + col*ry + row*py

    El orden de campos es el de un GeoTransform de GDAL
    (x0, px, rx, y0, ry, py). Los 6 coeficientes deben ser finitos.
    """
    x0: float
    px: float
    rx: float
    y0: float
    ry: float
    py: float

    def __post_init__(self):
        for name in ("x0", "px", "rx", "y0", "ry", "py"):
            v = getattr(self, name)
            if not math.isfinite(v):
                raise InvalidGeometry("GeoTransform con coeficiente no finito", detail=f"{name}={v!r}")

    @classmethod
    def from_gdal(cls, gt: Sequence[float]) -> "AffineTransform":
        if len(gt) != 6:
            raise InvalidGeometry("GeoTransform debe tener 6 coeficientes", detail=f"len={len(gt)}")
        return cls(*(float(v) for v in gt))

    def as_gdal(self) -> GeoTransform:
        return (self.x0, self.px, self.rx, self.y0, self.ry, self.py)

    def spacing(self) -> Tuple[float, float, float, float]:
        """Parte lineal (px, rx, ry, py): tamaño de píxel + rotación."""
        return (self.px, self.rx, self.ry, self.py)

    def pixel_size(self) -> Tuple[float, float]:
        return (self.px, self.py)

    def origin(self) -> Point:
        return (self.x0, self.y0)

    def with_origin(self, x: float, y: float) -> "AffineTransform":
        return replace(self, x0=float(x), y0=float(y))

    def determinant(self) -> float:
        return self.px * self.py - self.rx * self.ry

    def is_singular(self) -> bool:
        # singular si det==0 o si los dos productos se cancelan dentro del redondeo
        det = self.determinant()
        scale = max(abs(self.px * self.py), abs(self.rx * self.ry))
        return det == 0.0 or abs(det) <= sys.float_info.epsilon * scale

    def apply(self, pixel: Tuple[float, float]) -> Point:
        col, row = pixel
        x = self.x0 + col * self.px + row * self.rx
        y = self.y0 + col * self.ry + row * self.py
        return x, y

    def invert(self, point: Point) -> Point:
        """Mundo (x, y) -> pixel fraccional (col, row), por Cramer sobre el sistema 2x2."""
        if self.is_singular():
            raise SingularTransform(
                "GeoTransform no invertible (det≈0)",
                detail=f"px={self.px}, rx={self.rx}, ry={self.ry}, py={self.py}",
            )
        det = self.determinant()
        dx = point[0] - self.x0
        dy = point[1] - self.y0
        col = (self.py * dx - self.rx * dy) / det
        row = (self.px * dy - self.ry * dx) / det
        return col, row

    @staticmethod
    def pixel_extent(point: Point) -> Tuple[int, int]:
        """
        Coordenada de pixel fraccional -> conteo entero de píxeles.

        Regla: el menor conteo entero cuya huella, anclada en el origen,
        cubre el punto. Es un "techo con signo": ceil(v) si v >= 0,
        floor(v) si v < 0. Valores a menos de 1e-9 (relativo) de un entero
        se toman como ese entero.
        """
        return (_signed_ceil(point[0]), _signed_ceil(point[1]))


def _signed_ceil(v: float) -> int:
    if not math.isfinite(v):
        raise InvalidGeometry("Coordenada de pixel no finita", detail=repr(v))
    nearest = round(v)
    if abs(v - nearest) <= _INTEGER_SNAP * max(1.0, abs(v)):
        return int(nearest)
    return int(math.ceil(v)) if v >= 0 else int(math.floor(v))

# ---------- Ventanas de pixel ----------
@dataclass(frozen=True)
class PixelWindow:
    col_off: int
    row_off: int
    width: int
    height: int

    def within(self, width: int, height: int) -> bool:
        """True si la ventana cae completa dentro de un raster width x height."""
        return (self.col_off >= 0 and self.row_off >= 0
                and self.width > 0 and self.height > 0
                and self.col_off + self.width <= width
                and self.row_off + self.height <= height)

    def contains(self, other: "PixelWindow") -> bool:
        return (other.col_off >= self.col_off and other.row_off >= self.row_off
                and other.col_off + other.width <= self.col_off + self.width
                and other.row_off + other.height <= self.row_off + self.height)

    def as_slices(self) -> Tuple[slice, slice]:
        return (slice(self.row_off, self.row_off + self.height),
                slice(self.col_off, self.col_off + self.width))

# ---------- Perfil y Raster (puro dominio) ----------
@dataclass(frozen=True)
class GeoProfile:
    """Metadatos de una banda/dataset tal como los entrega el lector."""
    count: int
    dtype: DTypeStr
    width: int
    height: int
    transform: AffineTransform
    projection: str
    nodata: Optional[float] = None

    @property
    def bounds(self) -> Bounds:
        from .swath import Swath
        return Swath.from_profile(self).bounds()

    def pixel_size(self) -> Tuple[float, float]:
        return self.transform.pixel_size()

@dataclass(frozen=True)
class GeoRaster:
    data: "npt.NDArray[Any]"  # type: ignore[valid-type]
    profile: GeoProfile

    def __post_init__(self):
        # Bloquea mutaciones accidentales sobre los datos
        if hasattr(self.data, "setflags"):
            self.data.setflags(write=False)

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.data.shape  # type: ignore[no-any-return]

    def is_single_band(self) -> bool:
        return self.profile.count == 1 or getattr(self.data, "ndim", 2) == 2

def pretty_bounds(b: Bounds, ndigits: int = 3) -> str:
    return (f"Bounds(minx={b.minx:.{ndigits}f}, miny={b.miny:.{ndigits}f}, "
            f"maxx={b.maxx:.{ndigits}f}, maxy={b.maxy:.{ndigits}f})")

_DTYPE_MAP = {
    np.dtype("uint8"): "uint8",
    np.dtype("uint16"): "uint16",
    np.dtype("int16"): "int16",
    np.dtype("uint32"): "uint32",
    np.dtype("int32"): "int32",
    np.dtype("float32"): "float32",
    np.dtype("float64"): "float64",
}

def np_to_dtype_str(dt: Any) -> DTypeStr:
    try:
        return _DTYPE_MAP[np.dtype(dt)]  # type: ignore[return-value]
    except (KeyError, TypeError) as e:
        raise ValueError(f"dtype {dt} no soportado") from e

__all__ = [
    "GeoTransform","Bounds","Point","OrderedCoordinate","AffineTransform","PixelWindow",
    "GeoProfile","GeoRaster","pretty_bounds","np_to_dtype_str","DTypeStr",
]
