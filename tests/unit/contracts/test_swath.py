import pytest
from plyband.contracts.geo import AffineTransform, Bounds
from plyband.contracts.swath import Swath
from plyband.errors import InvalidGeometry
from tests.factories import make_profile, make_swath

def test_corners_and_extremes_north_up():
    s = make_swath(w=100, h=100, x0=0, y0=100, px=1.0)
    xs_ys = [(float(x), float(y)) for x, y in s.corners()]
    assert xs_ys == [(0, 100), (100, 100), (100, 0), (0, 0)]
    assert s.left_extreme().value == 0
    assert s.right_extreme().value == 100
    assert s.bottom_extreme().value == 0
    assert s.top_extreme().value == 100
    assert s.bounds() == Bounds(0.0, 0.0, 100.0, 100.0)

def test_extremes_rotated():
    # esquinas: (0,0), (10,10), (20,0), (10,-10)
    s = Swath(width=10, height=10, transform=AffineTransform(0, 1, 1, 0, 1, -1), projection="P")
    assert s.bounds() == (0.0, -10.0, 20.0, 10.0)

def test_negative_dimensions_allowed():
    s = Swath(width=-10, height=5, transform=AffineTransform(0, 1, 0, 0, 0, -1), projection="P")
    assert s.left_extreme().value == -10
    assert s.right_extreme().value == 0
    assert s.size() == (10, 5)

@pytest.mark.parametrize("w,h", [(0, 10), (10, 0), (0, 0)])
def test_zero_dimension_rejected(w, h):
    with pytest.raises(InvalidGeometry):
        Swath(width=w, height=h, transform=AffineTransform(0, 1, 0, 0, 0, -1), projection="P")

def test_from_profile():
    p = make_profile(w=7, h=3, x0=10.0, y0=50.0, px=2.0, projection="EPSG:4326")
    s = Swath.from_profile(p)
    assert (s.width, s.height) == (7, 3)
    assert s.transform == p.transform
    assert s.projection == "EPSG:4326"
    assert s.bounds() == (10.0, 44.0, 24.0, 50.0)

def test_swath_is_frozen():
    s = make_swath()
    with pytest.raises(AttributeError):
        s.width = 3  # type: ignore[misc]
