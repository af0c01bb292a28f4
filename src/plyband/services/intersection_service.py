# src/plyband/services/intersection_service.py
from __future__ import annotations

"""
Intersección de swaths (núcleo geométrico, sin I/O).

Devuelve el rectángulo común a N grillas YA validadas como compatibles
(misma proyección, misma retícula). No revalida compatibilidad.

  left   = max(left_extremes)     (el borde izquierdo más a la derecha)
  right  = min(right_extremes)    (el borde derecho más a la izquierda)
  bottom = max(bottom_extremes)
  top    = min(top_extremes)

La orientación (tamaño de pixel/rotación) y la proyección salen de la
PRIMERA swath; el origen es (left, top).
"""

import logging
from typing import Sequence

from ..contracts.geo import Bounds, pretty_bounds
from ..contracts.swath import Swath
from ..errors import EmptyInput, NoIntersection

logger = logging.getLogger(__name__)


def intersection_bounds(swaths: Sequence[Swath]) -> Bounds:
    """Límites (left, bottom, right, top) de la intersección, sin construir la Swath."""
    if len(swaths) == 0:
        raise EmptyInput("No se entregaron bandas")

    left = max(s.left_extreme() for s in swaths)
    right = min(s.right_extreme() for s in swaths)
    bottom = max(s.bottom_extreme() for s in swaths)
    top = min(s.top_extreme() for s in swaths)

    if left > right or bottom > top:
        raise NoIntersection(
            "No hay intersección válida entre las bandas",
            detail=f"left={left.value}, right={right.value}, bottom={bottom.value}, top={top.value}",
        )
    return Bounds(float(left), float(bottom), float(right), float(top))


def intersect(swaths: Sequence[Swath]) -> Swath:
    """Swath rectangular que representa la intersección de `swaths`."""
    b = intersection_bounds(swaths)
    first = swaths[0]

    gt = first.transform.with_origin(b.minx, b.maxy)
    nx, ny = gt.pixel_extent(gt.invert((b.maxx, b.miny)))
    if nx == 0 or ny == 0:
        # bordes que sólo se tocan: área nula
        raise NoIntersection("La intersección tiene área nula", detail=pretty_bounds(b))

    out = Swath(width=nx, height=ny, transform=gt, projection=first.projection)
    logger.info("Intersección de %d swaths: %s -> %dx%d px", len(swaths), pretty_bounds(b), nx, ny)
    return out


__all__ = ["intersect", "intersection_bounds"]
