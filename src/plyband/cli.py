# src/plyband/cli.py
from __future__ import annotations

"""
CLI de plyband: combina bandas satelitales en imágenes de falso color.

Cada INPUT es `ruta[:banda]` (banda 1-based, por defecto 1). Las bandas
se validan (misma proyección y retícula), se recortan a su intersección
común y se escriben en un raster multibanda, en el orden R, G, B y luego
las `--band` extra.

Ejemplos rápidos:
  plyband -r ./B04.tif -g ./B03.tif -b ./B02.tif -o ./rgb.tif --png

  plyband -r scene.tif:4 -g scene.tif:3 -b other.tif:2 \
      --band nir.tif:1 --output-format GTiff -v
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .composition.di import build_combine_service, build_settings
from .config import Settings
from .contracts.core import BandRef
from .errors import PlybandError, describe
from .services.combine_service import CombineSpec

logger = logging.getLogger(__name__)

# ----------------------
# Utilidades locales
# ----------------------

def _band_refs(args: argparse.Namespace) -> List[BandRef]:
    refs = [
        BandRef.parse(args.red, channel="red"),
        BandRef.parse(args.green, channel="green"),
        BandRef.parse(args.blue, channel="blue"),
    ]
    for i, extra in enumerate(args.band or [], start=4):
        refs.append(BandRef.parse(extra, channel=f"band{i}"))
    return refs


def _configure_logging(args: argparse.Namespace, settings: Settings) -> None:
    if args.log_level:
        level = args.log_level.upper()
    elif args.verbose >= 2:
        level = "DEBUG"
    elif args.verbose == 1:
        level = "INFO"
    else:
        level = settings.log_level
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# ----------------------
# Comandos
# ----------------------

def cmd_combine(args: argparse.Namespace) -> int:
    s = build_settings(
        Path(args.config) if args.config else None,
        output=Path(args.output) if args.output else None,
        output_format=args.output_format,
        lattice_tolerance=args.tolerance,
    )
    _configure_logging(args, s)

    refs = _band_refs(args)
    svc = build_combine_service(s)
    res = svc.combine(refs, CombineSpec(quicklook=args.png))

    if res.quicklook_path is not None:
        print(str(res.quicklook_path))
    print(str(res.out_path))
    return 0


# ----------------------
# Parser
# ----------------------

def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="plyband", description="Combina bandas satelitales en imágenes de falso color")
    p.add_argument("-r", "--red", required=True, metavar="INPUT",
                   help="Fuente del canal rojo, con banda opcional tras ':'")
    p.add_argument("-g", "--green", required=True, metavar="INPUT",
                   help="Fuente del canal verde, con banda opcional tras ':'")
    p.add_argument("-b", "--blue", required=True, metavar="INPUT",
                   help="Fuente del canal azul, con banda opcional tras ':'")
    p.add_argument("--band", action="append", default=[], metavar="INPUT",
                   help="Banda extra (se agrega tras R,G,B); repetible")
    p.add_argument("-o", "--output", metavar="OUTPUT", help="Archivo de salida (default: Settings.output)")
    p.add_argument("--output-format", metavar="FORMAT", help="Driver de salida (default: GTiff)")
    p.add_argument("--png", action="store_true", help="exporta quicklook PNG junto al raster")
    p.add_argument("--tolerance", type=float, default=None,
                   help="tolerancia de retícula (default 0 = exacta)")
    p.add_argument("--config", help="settings.yaml (sobre-escribe entorno/.env)")
    p.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], type=str.upper)
    p.add_argument("-v", "--verbose", action="count", default=0)
    p.set_defaults(func=cmd_combine)
    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except KeyboardInterrupt:
        return 130
    except PlybandError as ex:
        print(f"[ERROR] {describe(ex)}", file=sys.stderr)
        return 1
    except (ValidationError, ValueError, OSError) as ex:
        print(f"[ERROR] {ex}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
