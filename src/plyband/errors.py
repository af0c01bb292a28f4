# src/plyband/errors.py
from __future__ import annotations

"""
Errores tipados de plyband.

Una sola jerarquía con raíz en `PlybandError`; cada subclase lleva un
`ErrorKind`. El núcleo nunca reintenta: cualquier error aborta la
combinación y la CLI decide el mensaje y el código de salida.

Las excepciones de librerías de I/O (rasterio, GDAL, OSError) NO se
convierten implícitamente: los adapters llaman a `external_io()` y
encadenan con `raise ... from exc`.
"""

from enum import Enum
from typing import Optional

from .contracts.core import RunError, Stage


class ErrorKind(str, Enum):
    EMPTY_INPUT = "empty_input"
    NO_INTERSECTION = "no_intersection"
    PROJECTION_MISMATCH = "projection_mismatch"
    SPACING_MISMATCH = "spacing_mismatch"
    OFFSET_MISALIGNED = "offset_misaligned"
    SINGULAR_TRANSFORM = "singular_transform"
    INVALID_GEOMETRY = "invalid_geometry"
    EXTERNAL_IO = "external_io"


class PlybandError(Exception):
    """Raíz de todos los errores del dominio."""
    kind: ErrorKind

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message

    def to_run_error(self, stage: Stage) -> RunError:
        return RunError(stage=stage, kind=self.kind.value, message=self.message, detail=self.detail)


class EmptyInput(PlybandError):
    kind = ErrorKind.EMPTY_INPUT


class NoIntersection(PlybandError):
    kind = ErrorKind.NO_INTERSECTION


class ProjectionMismatch(PlybandError):
    kind = ErrorKind.PROJECTION_MISMATCH


class SpacingMismatch(PlybandError):
    kind = ErrorKind.SPACING_MISMATCH


class OffsetMisaligned(PlybandError):
    kind = ErrorKind.OFFSET_MISALIGNED


class SingularTransform(PlybandError):
    kind = ErrorKind.SINGULAR_TRANSFORM


class InvalidGeometry(PlybandError, ValueError):
    kind = ErrorKind.INVALID_GEOMETRY


class ExternalIOError(PlybandError):
    """Fallo del colaborador de I/O (abrir/crear/leer/escribir)."""
    kind = ErrorKind.EXTERNAL_IO


def external_io(action: str, uri: str, exc: BaseException) -> ExternalIOError:
    """Convierte explícitamente un error de librería en `ExternalIOError`.

    Uso en adapters:
        except RasterioError as e:
            raise external_io("open", uri, e) from e
    """
    detail = str(exc).strip() or type(exc).__name__
    return ExternalIOError(f"{action} falló para {uri}", detail=detail)


_DESCRIPTIONS = {
    ErrorKind.EMPTY_INPUT: "No se entregaron bandas de entrada",
    ErrorKind.NO_INTERSECTION: "Las bandas no tienen una intersección válida",
    ErrorKind.PROJECTION_MISMATCH: "Validación fallida: las bandas tienen proyecciones distintas",
    ErrorKind.SPACING_MISMATCH: "Validación fallida: tamaño de píxel/rotación distintos",
    ErrorKind.OFFSET_MISALIGNED: "Validación fallida: las grillas están desplazadas (no comparten retícula)",
    ErrorKind.SINGULAR_TRANSFORM: "GeoTransform no invertible",
    ErrorKind.INVALID_GEOMETRY: "Geometría inválida",
    ErrorKind.EXTERNAL_IO: "Error de I/O",
}


def describe(err: PlybandError) -> str:
    """Mensaje legible para la CLI."""
    head = _DESCRIPTIONS.get(err.kind, "Error")
    return f"{head}\n{err}"


__all__ = [
    "ErrorKind", "PlybandError", "EmptyInput", "NoIntersection", "ProjectionMismatch",
    "SpacingMismatch", "OffsetMisaligned", "SingularTransform", "InvalidGeometry",
    "ExternalIOError", "external_io", "describe",
]
