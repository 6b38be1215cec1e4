# voro3d/cells.py
from __future__ import annotations
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations, islice
from math import isfinite
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .geom import Pt, sub, dot, dist, merge_close, midpoint, normalize
from .predicates import solve3

logger = logging.getLogger(__name__)

BATCH = 4096          # трійок на один numpy-пакет
MIN_CELL_VERTICES = 4  # мінімум для многогранника

BACKENDS = ("numpy", "python")


class ComputationCancelled(RuntimeError):
    """Перерахунок перервано через cancel-подію."""


class TripleOutcome(Enum):
    SOLVED = "solved"                    # вершина прийнята (до дедуплікації)
    DEGENERATE = "degenerate"            # |det| < det_tol
    FAILED = "failed"                    # числовий збій (збіжні точки, inf/nan)
    REJECTED_CLOSER = "rejected_closer"  # ближча до іншого генератора
    REJECTED_BOUNDS = "rejected_bounds"  # вилетіла за clamp
    DUPLICATE = "duplicate"              # злита з уже прийнятою вершиною


@dataclass(frozen=True)
class BisectorPlane:
    """Серединна перпендикулярна площина: точка (середина відрізка) + одинична нормаль від центру."""
    point: Pt
    normal: Pt

    @property
    def offset(self) -> float:
        return dot(self.normal, self.point)

    def signed_distance(self, p: Pt) -> float:
        # < 0 з боку центру
        return dot(sub(p, self.point), self.normal)


@dataclass(frozen=True)
class TripleResult:
    outcome: TripleOutcome
    vertex: Optional[Pt] = None
    error: Optional[str] = None


@dataclass
class CellStats:
    """Лічильники результатів трійок для одного центру."""
    center_index: int
    triples: int = 0
    counts: Dict[TripleOutcome, int] = field(default_factory=lambda: {o: 0 for o in TripleOutcome})
    vertices: int = 0
    emitted: bool = False

    def add(self, outcome: TripleOutcome, n: int = 1) -> None:
        self.counts[outcome] += n

    def __getitem__(self, outcome: TripleOutcome) -> int:
        return self.counts[outcome]


@dataclass
class Cell:
    center_index: int
    center: Pt
    vertices: List[Pt]


@dataclass
class BuildResult:
    cells: List[Cell]
    stats: List[CellStats]

    @property
    def dropped(self) -> List[int]:
        """Індекси центрів, для яких клітинка не вийшла (< 4 вершин)."""
        return [s.center_index for s in self.stats if not s.emitted]

    def totals(self) -> Dict[TripleOutcome, int]:
        out = {o: 0 for o in TripleOutcome}
        for s in self.stats:
            for o, n in s.counts.items():
                out[o] += n
        return out


# ---------------- геометрія однієї трійки ----------------
def bisector_plane(center: Pt, other: Pt) -> BisectorPlane:
    """Площина між center та other. Для збіжних точок ValueError."""
    return BisectorPlane(midpoint(center, other), normalize(sub(other, center)))


def _solve_planes(pl1: BisectorPlane, pl2: BisectorPlane, pl3: BisectorPlane,
                  det_tol: float) -> TripleResult:
    try:
        v = solve3(pl1.normal, pl2.normal, pl3.normal,
                   (pl1.offset, pl2.offset, pl3.offset), det_tol)
    except ArithmeticError as e:
        logger.debug("triple failed: %s", e)
        return TripleResult(TripleOutcome.FAILED, error=str(e))
    if v is None:
        return TripleResult(TripleOutcome.DEGENERATE)
    if not all(isfinite(c) for c in v):
        return TripleResult(TripleOutcome.FAILED, error="non-finite vertex")
    return TripleResult(TripleOutcome.SOLVED, v)


def intersect_bisectors(center: Pt, p1: Pt, p2: Pt, p3: Pt, det_tol: float = 1e-4) -> TripleResult:
    """
    Точка перетину трьох серединних площин (center, p_i).
    Явний результат замість винятку: SOLVED з вершиною, DEGENERATE або FAILED.
    """
    try:
        planes = [bisector_plane(center, p) for p in (p1, p2, p3)]
    except ValueError as e:
        logger.debug("triple failed: %s", e)
        return TripleResult(TripleOutcome.FAILED, error=str(e))
    return _solve_planes(planes[0], planes[1], planes[2], det_tol)


def classify_vertex(v: Pt, center_index: int, points: Sequence[Pt],
                    valid_tol: float, clamp: float) -> TripleOutcome:
    """
    SOLVED, якщо вершина належить клітинці points[center_index]:
      - жодна інша точка не ближча за dist(v, center) - valid_tol;
      - |x|, |y|, |z| <= clamp.
    """
    dc = dist(v, points[center_index])
    for k, p in enumerate(points):
        if k != center_index and dist(v, p) < dc - valid_tol:
            return TripleOutcome.REJECTED_CLOSER
    if abs(v.x) > clamp or abs(v.y) > clamp or abs(v.z) > clamp:
        return TripleOutcome.REJECTED_BOUNDS
    return TripleOutcome.SOLVED


def is_valid_vertex(v: Pt, center_index: int, points: Sequence[Pt],
                    valid_tol: float, clamp: float) -> bool:
    return classify_vertex(v, center_index, points, valid_tol, clamp) is TripleOutcome.SOLVED


# ---------------- генератори кандидатів ----------------
def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise ComputationCancelled("cell computation cancelled")


def _candidates_python(ci: int, points: Sequence[Pt], det_tol: float, valid_tol: float,
                       clamp: float, stats: CellStats,
                       cancel: Optional[threading.Event]) -> Iterator[Pt]:
    center = points[ci]
    others = [k for k in range(len(points)) if k != ci]
    planes: List[Optional[BisectorPlane]] = []
    for k in others:
        try:
            planes.append(bisector_plane(center, points[k]))
        except ValueError:
            logger.debug("point %d coincides with center %d", k, ci)
            planes.append(None)

    n = len(others)
    for a in range(n - 2):
        _check_cancel(cancel)
        for b in range(a + 1, n - 1):
            for c in range(b + 1, n):
                stats.triples += 1
                pa, pb, pc = planes[a], planes[b], planes[c]
                if pa is None or pb is None or pc is None:
                    stats.add(TripleOutcome.FAILED)
                    continue
                res = _solve_planes(pa, pb, pc, det_tol)
                if res.outcome is not TripleOutcome.SOLVED:
                    stats.add(res.outcome)
                    continue
                verdict = classify_vertex(res.vertex, ci, points, valid_tol, clamp)
                if verdict is not TripleOutcome.SOLVED:
                    stats.add(verdict)
                    continue
                yield res.vertex


def _candidates_numpy(ci: int, points: Sequence[Pt], det_tol: float, valid_tol: float,
                      clamp: float, stats: CellStats,
                      cancel: Optional[threading.Event]) -> Iterator[Pt]:
    P = np.array([(p.x, p.y, p.z) for p in points], dtype=float)
    c = P[ci]
    O = np.delete(P, ci, axis=0)  # порядок індексів зберігається
    diff = O - c
    lens = np.linalg.norm(diff, axis=1)
    coincident = lens == 0.0
    normals = diff / np.where(coincident, 1.0, lens)[:, None]
    offsets = np.einsum("ij,ij->i", normals, (O + c) * 0.5)

    n = len(O)
    triples = combinations(range(n), 3)
    while True:
        _check_cancel(cancel)
        chunk = list(islice(triples, BATCH))
        if not chunk:
            break
        T = np.array(chunk, dtype=np.intp)
        stats.triples += len(T)

        bad = coincident[T].any(axis=1)
        n1, n2, n3 = normals[T[:, 0]], normals[T[:, 1]], normals[T[:, 2]]
        c23 = np.cross(n2, n3)
        det = np.einsum("ij,ij->i", n1, c23)
        degenerate = ~bad & (np.abs(det) < det_tol)
        ok = ~bad & ~degenerate

        num = (offsets[T[:, 0], None] * c23
               + offsets[T[:, 1], None] * np.cross(n3, n1)
               + offsets[T[:, 2], None] * np.cross(n1, n2))
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            X = num[ok] / det[ok, None]
        finite = np.isfinite(X).all(axis=1)

        stats.add(TripleOutcome.FAILED, int(bad.sum()) + int((~finite).sum()))
        stats.add(TripleOutcome.DEGENERATE, int(degenerate.sum()))
        X = X[finite]
        if len(X) == 0:
            continue

        dc = np.linalg.norm(X - c, axis=1)
        D = np.linalg.norm(X[:, None, :] - O[None, :, :], axis=2)
        closer = (D < (dc - valid_tol)[:, None]).any(axis=1)
        outside = ~closer & (np.abs(X) > clamp).any(axis=1)
        stats.add(TripleOutcome.REJECTED_CLOSER, int(closer.sum()))
        stats.add(TripleOutcome.REJECTED_BOUNDS, int(outside.sum()))

        for x, y, z in X[~closer & ~outside]:
            yield Pt(float(x), float(y), float(z))


_CANDIDATES = {"numpy": _candidates_numpy, "python": _candidates_python}


# ---------------- клітинки ----------------
def build_cell(
    center_index: int,
    points: Sequence[Pt],
    *,
    clamp: float,
    det_tol: float = 1e-4,
    valid_tol: float = 1e-4,
    dedup_radius: float = 0.1,
    backend: str = "numpy",
    cancel: Optional[threading.Event] = None,
) -> Tuple[Optional[Cell], CellStats]:
    """
    Клітинка для points[center_index] серед усіх інших точок (реальних і віртуальних).
    Перебір трійок i1 < i2 < i3 за індексами, фільтр валідності, злиття дублікатів
    (перша поява лишається). Повертає (None, stats), якщо унікальних вершин < 4.
    """
    if backend not in _CANDIDATES:
        raise ValueError(f"Unknown backend: {backend}")
    stats = CellStats(center_index)
    found = list(_CANDIDATES[backend](center_index, points, det_tol, valid_tol, clamp, stats, cancel))
    uniq = merge_close(found, dedup_radius)
    stats.add(TripleOutcome.SOLVED, len(found))
    stats.add(TripleOutcome.DUPLICATE, len(found) - len(uniq))

    stats.vertices = len(uniq)
    logger.debug(
        "cell %d: triples=%d solved=%d degenerate=%d failed=%d closer=%d bounds=%d dup=%d -> %d vertices",
        center_index, stats.triples, stats[TripleOutcome.SOLVED], stats[TripleOutcome.DEGENERATE],
        stats[TripleOutcome.FAILED], stats[TripleOutcome.REJECTED_CLOSER],
        stats[TripleOutcome.REJECTED_BOUNDS], stats[TripleOutcome.DUPLICATE], len(uniq),
    )
    if len(uniq) < MIN_CELL_VERTICES:
        logger.info("cell %d dropped: only %d unique vertices", center_index, len(uniq))
        return None, stats
    stats.emitted = True
    return Cell(center_index, points[center_index], uniq), stats


def build_cells(
    real_points: Sequence[Pt],
    virtual_points: Sequence[Pt],
    bound: float,
    dedup_radius: float = 0.1,
    tol: float = 1e-4,
    *,
    det_tol: Optional[float] = None,
    clamp_factor: float = 1.5,
    backend: str = "numpy",
    workers: int = 1,
    cancel: Optional[threading.Event] = None,
) -> BuildResult:
    """
    Наближена діаграма Вороного: клітинка для кожної реальної точки.

    Віртуальні точки лише обмежують клітинки і центрами не бувають.
    bound — зовнішня межа, вершини з |coord| > bound*clamp_factor відкидаються.
    workers > 1 — центри рахуються у пулі потоків, результат складається за індексом центру.
    cancel — threading.Event; перевіряється між центрами й пакетами трійок.
    """
    if backend not in _CANDIDATES:
        raise ValueError(f"Unknown backend: {backend}")
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    points: List[Pt] = list(real_points) + list(virtual_points)
    clamp = bound * clamp_factor
    det_tol = tol if det_tol is None else det_tol

    def one(ci: int) -> Tuple[Optional[Cell], CellStats]:
        _check_cancel(cancel)
        return build_cell(ci, points, clamp=clamp, det_tol=det_tol, valid_tol=tol,
                          dedup_radius=dedup_radius, backend=backend, cancel=cancel)

    centers = range(len(real_points))
    if workers == 1:
        results = [one(ci) for ci in centers]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map віддає результати в порядку центрів
            results = list(executor.map(one, centers))

    cells = [cell for cell, _ in results if cell is not None]
    stats = [s for _, s in results]
    result = BuildResult(cells, stats)
    totals = result.totals()
    logger.info(
        "built %d/%d cells from %d points (%s backend): degenerate=%d failed=%d",
        len(cells), len(real_points), len(points), backend,
        totals[TripleOutcome.DEGENERATE], totals[TripleOutcome.FAILED],
    )
    return result


def validate_cells(result: BuildResult, points: Sequence[Pt], tol: float = 1e-4,
                   dedup_radius: float = 0.1) -> dict:
    """
    Перевірка інваріантів:
      - кожна вершина не ближча до чужої точки, ніж до центру (з допуском tol);
      - у кожній клітинці щонайменше 4 вершини;
      - жодні дві вершини клітинки не ближчі за dedup_radius.
    Порожні списки = все ок.
    """
    bad_validity: list[tuple[int, int, int]] = []
    bad_min_vertices: list[int] = []
    bad_duplicates: list[tuple[int, int, int]] = []

    for cell in result.cells:
        ci = cell.center_index
        if len(cell.vertices) < MIN_CELL_VERTICES:
            bad_min_vertices.append(ci)
        for vi, v in enumerate(cell.vertices):
            dc = dist(v, cell.center)
            for k, p in enumerate(points):
                if k != ci and dc > dist(v, p) + tol:
                    bad_validity.append((ci, vi, k))
            for vj in range(vi + 1, len(cell.vertices)):
                if dist(v, cell.vertices[vj]) < dedup_radius:
                    bad_duplicates.append((ci, vi, vj))

    return {
        "cells": len(result.cells),
        "bad_validity": bad_validity,          # [(center, vertex, closer point), ...]
        "bad_min_vertices": bad_min_vertices,  # [center, ...]
        "bad_duplicates": bad_duplicates,      # [(center, vertex, vertex), ...]
    }
