# src/plyband/services/validation_service.py
from __future__ import annotations

"""
Validación de compatibilidad entre grillas, ANTES de intersectar.

- check_same_projection: proyección idéntica (string exacto) en todas.
- check_compatible_lattices: pares adyacentes en orden de entrada:
    a) spacing (px, rx, ry, py) exactamente igual
    b) el origen de la segunda, invertido por la transformada de la
       primera, cae en coordenadas de pixel enteras

Por defecto la comparación es exacta (tolerance=0.0). Una tolerancia > 0
debe pedirse explícitamente (Settings.lattice_tolerance / --tolerance) y
mezcla unidades: mundo para el spacing, píxeles para el offset.
"""

import logging
import math
from typing import Protocol, Sequence

from ..contracts.geo import AffineTransform
from ..errors import EmptyInput, OffsetMisaligned, ProjectionMismatch, SpacingMismatch

logger = logging.getLogger(__name__)


class GridLike(Protocol):
    """Cualquier cosa con transform + projection (GeoProfile, Swath)."""
    @property
    def transform(self) -> AffineTransform: ...
    @property
    def projection(self) -> str: ...


def _same(a: float, b: float, tolerance: float) -> bool:
    if tolerance == 0.0:
        return a == b
    return abs(a - b) <= tolerance


def _is_integral(v: float, tolerance: float) -> bool:
    if not math.isfinite(v):
        return False
    if tolerance == 0.0:
        return v % 1.0 == 0.0
    return abs(v - round(v)) <= tolerance


def check_same_projection(grids: Sequence[GridLike]) -> None:
    if not grids:
        return
    ref = grids[0].projection
    for i, g in enumerate(grids[1:], start=1):
        if g.projection != ref:
            raise ProjectionMismatch(
                "Proyecciones distintas",
                detail=f"grilla 0 vs grilla {i}",
            )


def check_lattice_pair(gt1: AffineTransform, gt2: AffineTransform, *, tolerance: float = 0.0) -> None:
    """Compatibilidad de dos transformadas (spacing + offset entero)."""
    if not all(_same(a, b, tolerance) for a, b in zip(gt1.spacing(), gt2.spacing())):
        raise SpacingMismatch("Spacing distinto", detail=f"{gt1.spacing()} vs {gt2.spacing()}")

    # soluciones enteras para el desplazamiento de orígenes
    nx, ny = gt1.invert(gt2.origin())
    if not (_is_integral(nx, tolerance) and _is_integral(ny, tolerance)):
        raise OffsetMisaligned("Grillas desplazadas", detail=f"offset en pixel=({nx}, {ny})")


def check_compatible_lattices(grids: Sequence[GridLike], *, tolerance: float = 0.0) -> None:
    """Pares adyacentes en orden de entrada. Lista vacía -> EmptyInput.

    `tolerance` se aplica en dos unidades distintas: a las diferencias de
    spacing en unidades de mundo (las del CRS) y al resto del offset en
    píxeles.
    """
    if not grids:
        raise EmptyInput("Lista de grillas vacía")
    if tolerance < 0:
        raise ValueError("tolerance debe ser >= 0")
    for i in range(1, len(grids)):
        try:
            check_lattice_pair(grids[i - 1].transform, grids[i].transform, tolerance=tolerance)
        except (SpacingMismatch, OffsetMisaligned) as e:
            e.detail = f"grillas {i - 1} y {i}: {e.detail}"
            raise


def validate(grids: Sequence[GridLike], *, tolerance: float = 0.0) -> None:
    """Ambos chequeos, proyección primero. Lista vacía -> EmptyInput."""
    if not grids:
        raise EmptyInput("Lista de grillas vacía")
    check_same_projection(grids)
    check_compatible_lattices(grids, tolerance=tolerance)
    logger.info("Validación OK: %d grillas compatibles (tolerance=%g)", len(grids), tolerance)


__all__ = [
    "GridLike", "check_same_projection", "check_lattice_pair",
    "check_compatible_lattices", "validate",
]
