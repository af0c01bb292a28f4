# src/plyband/contracts/swath.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from ..errors import InvalidGeometry
from .geo import AffineTransform, Bounds, GeoProfile, OrderedCoordinate

Corner = Tuple[OrderedCoordinate, OrderedCoordinate]


@dataclass(frozen=True)
class Swath:
    """
    Envolvente de una grilla en coordenadas de mundo.

    - width/height son conteos de píxel CON signo y nunca 0.
    - projection se compara por identidad exacta de string (sin normalizar).
    - Las esquinas son `transform.apply` en (0,0), (w,0), (w,h), (0,h).
    """
    width: int
    height: int
    transform: AffineTransform
    projection: str

    def __post_init__(self):
        if self.width == 0 or self.height == 0:
            raise InvalidGeometry("Swath con dimensión nula", detail=f"{self.width}x{self.height}")

    @classmethod
    def from_profile(cls, profile: GeoProfile) -> "Swath":
        return cls(
            width=int(profile.width),
            height=int(profile.height),
            transform=profile.transform,
            projection=profile.projection,
        )

    def corners(self) -> List[Corner]:
        w, h = self.width, self.height
        pts = [
            self.transform.apply((0, 0)),
            self.transform.apply((w, 0)),
            self.transform.apply((w, h)),
            self.transform.apply((0, h)),
        ]
        return [(OrderedCoordinate(x), OrderedCoordinate(y)) for x, y in pts]

    def left_extreme(self) -> OrderedCoordinate:
        return min(c[0] for c in self.corners())

    def right_extreme(self) -> OrderedCoordinate:
        return max(c[0] for c in self.corners())

    def bottom_extreme(self) -> OrderedCoordinate:
        return min(c[1] for c in self.corners())

    def top_extreme(self) -> OrderedCoordinate:
        return max(c[1] for c in self.corners())

    def bounds(self) -> Bounds:
        return Bounds(
            float(self.left_extreme()), float(self.bottom_extreme()),
            float(self.right_extreme()), float(self.top_extreme()),
        )

    def size(self) -> Tuple[int, int]:
        """(ancho, alto) absolutos, para reservar el raster de salida."""
        return abs(self.width), abs(self.height)


__all__ = ["Swath", "Corner"]
