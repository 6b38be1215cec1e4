import random
import threading
from math import comb

import pytest

from voro3d.cells import (
    ComputationCancelled,
    TripleOutcome,
    bisector_plane,
    build_cells,
    classify_vertex,
    intersect_bisectors,
    is_valid_vertex,
    validate_cells,
)
from voro3d.geom import Pt, dist
from voro3d.hull import ConvexHull3D
from voro3d.points import generate_points

BOUND = 15.0


def assert_clean(report):
    assert report["bad_validity"] == []
    assert report["bad_min_vertices"] == []
    assert report["bad_duplicates"] == []


# ---------- одна трійка ----------
def test_bisector_plane_midpoint_and_unit_normal():
    pl = bisector_plane(Pt(0, 0, 0), Pt(4, 0, 0))
    assert pl.point == Pt(2, 0, 0)
    assert pl.normal == Pt(1, 0, 0)
    assert pl.offset == 2.0
    assert pl.signed_distance(Pt(0, 0, 0)) < 0


def test_bisector_plane_coincident_points():
    with pytest.raises(ValueError):
        bisector_plane(Pt(1, 1, 1), Pt(1, 1, 1))


def test_intersect_bisectors_solved():
    res = intersect_bisectors(Pt(0, 0, 0), Pt(2, 0, 0), Pt(0, 2, 0), Pt(0, 0, 2))
    assert res.outcome is TripleOutcome.SOLVED
    assert tuple(res.vertex) == pytest.approx((1.0, 1.0, 1.0))


def test_intersect_bisectors_degenerate():
    # дві паралельні площини x = 1 і x = 2
    res = intersect_bisectors(Pt(0, 0, 0), Pt(2, 0, 0), Pt(4, 0, 0), Pt(0, 2, 0))
    assert res.outcome is TripleOutcome.DEGENERATE
    assert res.vertex is None


def test_intersect_bisectors_coincident_is_failed():
    res = intersect_bisectors(Pt(0, 0, 0), Pt(0, 0, 0), Pt(0, 2, 0), Pt(0, 0, 2))
    assert res.outcome is TripleOutcome.FAILED
    assert res.error


def test_classify_vertex():
    points = [Pt(0, 0, 0), Pt(4, 0, 0)]
    assert classify_vertex(Pt(1, 0, 0), 0, points, 1e-4, 22.5) is TripleOutcome.SOLVED
    assert classify_vertex(Pt(2, 5, 0), 0, points, 1e-4, 22.5) is TripleOutcome.SOLVED  # на бісектрисі
    assert classify_vertex(Pt(3, 0, 0), 0, points, 1e-4, 22.5) is TripleOutcome.REJECTED_CLOSER
    assert classify_vertex(Pt(-30, 0, 0), 0, points, 1e-4, 22.5) is TripleOutcome.REJECTED_BOUNDS
    assert is_valid_vertex(Pt(1, 0, 0), 0, points, 1e-4, 22.5)
    assert not is_valid_vertex(Pt(1, 0, 0), 1, points, 1e-4, 22.5)


# ---------- клітинки ----------
def test_single_point_at_origin_is_bounded_by_cage(cage):
    result = build_cells([Pt(0, 0, 0)], cage, BOUND)
    assert len(result.cells) == 1
    cell = result.cells[0]
    assert cell.center_index == 0

    # симетрія: клітинка — куб [-15, 15]^3
    assert len(cell.vertices) == 8
    for v in cell.vertices:
        assert tuple(abs(c) for c in v) == pytest.approx((15.0, 15.0, 15.0))

    hull = ConvexHull3D(cell.vertices)
    assert hull.contains(Pt(0, 0, 0))
    assert hull.volume() == pytest.approx(30.0 ** 3)
    # збіжні точки каркаса дають однакові нормалі
    assert result.stats[0][TripleOutcome.DEGENERATE] > 0
    assert_clean(validate_cells(result, [Pt(0, 0, 0)] + cage))


def test_two_points_split_by_bisector(cage):
    real = [Pt(-3, 0, 0), Pt(3, 0, 0)]
    result = build_cells(real, cage, BOUND)
    assert [c.center_index for c in result.cells] == [0, 1]
    assert_clean(validate_cells(result, real + cage))

    left, right = result.cells
    assert max(v.x for v in left.vertices) == pytest.approx(0.0, abs=1e-3)
    assert min(v.x for v in right.vertices) == pytest.approx(0.0, abs=1e-3)
    assert all(v.x <= 1e-3 for v in left.vertices)
    assert all(v.x >= -1e-3 for v in right.vertices)


def test_random_cells_satisfy_invariants(rng, cage):
    real = generate_points(8, 10.0, rng)
    result = build_cells(real, cage, BOUND, dedup_radius=0.1, tol=1e-4)
    assert result.cells
    for cell in result.cells:
        assert len(cell.vertices) >= 4
        for i, v in enumerate(cell.vertices):
            for w in cell.vertices[i + 1:]:
                assert dist(v, w) >= 0.1
    assert_clean(validate_cells(result, real + cage, 1e-4, 0.1))


def test_build_is_deterministic(cage):
    real = generate_points(6, 10.0, random.Random(99))
    a = build_cells(real, cage, BOUND)
    b = build_cells(real, cage, BOUND)
    assert a.cells == b.cells
    assert [s.counts for s in a.stats] == [s.counts for s in b.stats]


def test_more_points_keep_validity_for_first_cells(cage):
    five = generate_points(5, 10.0, random.Random(2024))
    ten = generate_points(10, 10.0, random.Random(2024))
    assert ten[:5] == five

    before = build_cells(five, cage, BOUND)
    after = build_cells(ten, cage, BOUND)
    assert_clean(validate_cells(before, five + cage))
    report = validate_cells(after, ten + cage)
    assert_clean(report)

    first_cells = [c for c in after.cells if c.center_index < 5]
    assert first_cells
    for cell in first_cells:
        assert cell.center == five[cell.center_index]


def test_stats_account_for_every_triple(rng, small_cage):
    real = generate_points(4, 10.0, rng)
    result = build_cells(real, small_cage, BOUND)
    m = len(real) + len(small_cage)
    for s in result.stats:
        assert s.triples == comb(m - 1, 3)
        accounted = (s[TripleOutcome.SOLVED] + s[TripleOutcome.DEGENERATE] + s[TripleOutcome.FAILED]
                     + s[TripleOutcome.REJECTED_CLOSER] + s[TripleOutcome.REJECTED_BOUNDS])
        assert accounted == s.triples
        assert s.vertices == s[TripleOutcome.SOLVED] - s[TripleOutcome.DUPLICATE]


def test_cells_with_too_few_vertices_are_dropped(rng, small_cage):
    real = generate_points(2, 10.0, rng)
    # крихітний clamp відкидає всі вершини
    result = build_cells(real, small_cage, 0.01)
    assert result.cells == []
    assert result.dropped == [0, 1]
    assert all(not s.emitted and s.vertices == 0 for s in result.stats)
    assert result.totals()[TripleOutcome.REJECTED_BOUNDS] > 0


def test_coincident_real_points_do_not_crash(small_cage):
    real = [Pt(1, 1, 1), Pt(1, 1, 1), Pt(-2, 0, 3)]
    for backend in ("numpy", "python"):
        result = build_cells(real, small_cage, BOUND, backend=backend)
        assert result.stats[0][TripleOutcome.FAILED] > 0
        assert_clean(validate_cells(result, real + small_cage))


def test_python_and_numpy_backends_agree(rng, small_cage):
    real = generate_points(4, 10.0, rng)
    a = build_cells(real, small_cage, BOUND, backend="numpy")
    b = build_cells(real, small_cage, BOUND, backend="python")
    assert [c.center_index for c in a.cells] == [c.center_index for c in b.cells]
    for ca, cb in zip(a.cells, b.cells):
        assert len(ca.vertices) == len(cb.vertices)
        for va, vb in zip(ca.vertices, cb.vertices):
            assert dist(va, vb) == pytest.approx(0.0, abs=1e-8)
    assert [s.counts for s in a.stats] == [s.counts for s in b.stats]


def test_worker_pool_merges_by_center_index(rng, cage):
    real = generate_points(6, 10.0, rng)
    serial = build_cells(real, cage, BOUND)
    pooled = build_cells(real, cage, BOUND, workers=3)
    assert pooled.cells == serial.cells
    assert [s.center_index for s in pooled.stats] == list(range(6))


def test_cancel_aborts_computation(rng, cage):
    real = generate_points(3, 10.0, rng)
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(ComputationCancelled):
        build_cells(real, cage, BOUND, cancel=cancel)
    with pytest.raises(ComputationCancelled):
        build_cells(real, cage, BOUND, workers=2, cancel=cancel)


def test_build_cells_rejects_bad_arguments(small_cage):
    with pytest.raises(ValueError):
        build_cells([Pt(0, 0, 0)], small_cage, BOUND, backend="fortran")
    with pytest.raises(ValueError):
        build_cells([Pt(0, 0, 0)], small_cage, BOUND, workers=0)
