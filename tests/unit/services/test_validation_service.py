import pytest
from plyband.contracts.geo import AffineTransform
from plyband.errors import (
    EmptyInput, OffsetMisaligned, ProjectionMismatch, SingularTransform, SpacingMismatch,
)
from plyband.services import validation_service as vs
from tests.factories import make_profile, make_swath

def test_same_projection_ok():
    vs.check_same_projection([make_profile(), make_profile(x0=20.0), make_swath()])
    vs.check_same_projection([])

def test_projection_mismatch_exact_string():
    a = make_profile(projection="EPSG:32719")
    b = make_profile(projection="epsg:32719")
    with pytest.raises(ProjectionMismatch) as ei:
        vs.check_same_projection([a, a, b])
    assert "grilla 2" in str(ei.value)

def test_offset_of_two_pixels_accepted():
    vs.check_compatible_lattices([make_profile(x0=0.0), make_profile(x0=20.0, y0=-30.0)])

def test_offset_of_two_and_a_half_pixels_rejected():
    with pytest.raises(OffsetMisaligned):
        vs.check_compatible_lattices([make_profile(x0=0.0), make_profile(x0=25.0)])

def test_spacing_mismatch():
    with pytest.raises(SpacingMismatch) as ei:
        vs.check_compatible_lattices([make_profile(px=10.0), make_profile(px=10.0), make_profile(px=20.0)])
    assert "grillas 1 y 2" in str(ei.value)

def test_signed_zero_rotation_is_equal():
    gt1 = AffineTransform(0.0, 10.0, 0.0, 0.0, 0.0, -10.0)
    gt2 = AffineTransform(40.0, 10.0, -0.0, 0.0, -0.0, -10.0)
    vs.check_lattice_pair(gt1, gt2)

def test_exact_by_default_tolerance_opt_in():
    a = make_profile(x0=0.0)
    b = make_profile(x0=20.0000001)
    with pytest.raises(OffsetMisaligned):
        vs.check_compatible_lattices([a, b])
    vs.check_compatible_lattices([a, b], tolerance=1e-6)

    c = make_profile(px=10.0 + 1e-9)
    with pytest.raises(SpacingMismatch):
        vs.check_compatible_lattices([a, c])
    vs.check_compatible_lattices([a, c], tolerance=1e-6)

def test_negative_tolerance_rejected():
    with pytest.raises(ValueError):
        vs.check_compatible_lattices([make_profile()], tolerance=-1.0)

def test_singular_reference_transform():
    gt = AffineTransform(0.0, 1.0, 1.0, 0.0, 1.0, 1.0)
    with pytest.raises(SingularTransform):
        vs.check_lattice_pair(gt, gt.with_origin(3.0, 3.0))

def test_validate_checks_projection_first():
    a = make_profile(projection="A", px=10.0)
    b = make_profile(projection="B", px=20.0)
    with pytest.raises(ProjectionMismatch):
        vs.validate([a, b])

def test_validate_empty():
    with pytest.raises(EmptyInput):
        vs.validate([])

def test_validate_accepts_swaths():
    vs.validate([make_swath(x0=0, y0=100), make_swath(x0=5, y0=100), make_swath(x0=0, y0=95)])

def test_lattices_empty():
    with pytest.raises(EmptyInput):
        vs.check_compatible_lattices([])

def test_tolerance_units_world_for_spacing_pixels_for_offset():
    # pixel de 30: 0.5 unidades de mundo de desplazamiento = 1/60 de pixel
    a = make_profile(x0=0.0, px=30.0)
    b = make_profile(x0=60.5, px=30.0)
    with pytest.raises(OffsetMisaligned):
        vs.check_compatible_lattices([a, b], tolerance=0.01)
    vs.check_compatible_lattices([a, b], tolerance=0.02)
    c = make_profile(x0=0.0, px=30.5)
    with pytest.raises(SpacingMismatch):
        vs.check_compatible_lattices([a, c], tolerance=0.02)
