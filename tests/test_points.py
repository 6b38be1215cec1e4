import random

import pytest

from voro3d.geom import Pt
from voro3d.points import build_virtual_points, generate_points


def test_generate_points_in_region(rng):
    pts = generate_points(50, 10.0, rng)
    assert len(pts) == 50
    for p in pts:
        assert all(-5.0 <= c <= 5.0 for c in p)


def test_generate_points_same_seed_same_points():
    a = generate_points(7, 10.0, random.Random(3))
    b = generate_points(7, 10.0, random.Random(3))
    assert a == b


def test_generate_points_prefix_stable_across_counts():
    five = generate_points(5, 10.0, random.Random(42))
    ten = generate_points(10, 10.0, random.Random(42))
    assert ten[:5] == five


@pytest.mark.parametrize("count,bound", [(0, 10.0), (-1, 10.0), (3, 0.0), (3, -2.0)])
def test_generate_points_rejects_bad_input(count, bound):
    with pytest.raises(ValueError):
        generate_points(count, bound, random.Random(0))


def test_virtual_points_layout():
    vb = 30.0
    pts = build_virtual_points(vb)
    assert len(pts) == 8 + 6 * 9

    corners = pts[:8]
    assert set(corners) == {Pt(x * vb, y * vb, z * vb) for x in (-1, 1) for y in (-1, 1) for z in (-1, 1)}

    for p in pts:
        coords = tuple(p)
        # кожна точка лежить на поверхні куба, координати з {-vb, 0, vb}
        assert max(abs(c) for c in coords) == pytest.approx(vb)
        assert all(c in (-vb, 0.0, vb) for c in coords)


def test_virtual_points_keep_coincident_entries():
    pts = build_virtual_points(30.0)
    # 26 різних позицій (3^3 - центр), але повторів не видаляємо
    assert len(set(pts)) == 26
    assert len(pts) == 62


def test_virtual_points_deterministic_and_tunable():
    assert build_virtual_points(30.0) == build_virtual_points(30.0)
    small = build_virtual_points(30.0, grid=(0.0,))
    assert len(small) == 8 + 6
    wide = build_virtual_points(10.0, face_scale=4.0)
    assert max(abs(c) for p in wide for c in p) == pytest.approx(20.0)
