# voro3d/hull.py
from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .cells import Cell
from .geom import Pt, centroid, EPS, sub, cross, dot, norm
from .predicates import orient3d, signed_distance_to_plane, visible_from_point

logger = logging.getLogger(__name__)

Edge = Tuple[int, int]   # орієнтоване ребро (u, v); сусід — власник (v, u)
Tri = Tuple[int, int, int]

HULL_BACKENDS = ("internal", "scipy")


class HullError(ValueError):
    """Набір вершин непридатний для 3D оболонки (менше 4 точок, колінеарні, копланарні)."""


@dataclass
class Face:
    """
    Трикутна грань оболонки, v — вершини проти годинникової стрілки, якщо дивитись ззовні.
    conflict: точки, що «бачать» грань (ще поза оболонкою).
    """
    v: Tri
    alive: bool = True
    conflict: Set[int] = field(default_factory=set)

    def edges(self) -> Tuple[Edge, Edge, Edge]:
        a, b, c = self.v
        return (a, b), (b, c), (c, a)


class ConvexHull3D:
    """
    Рандомізований інкрементальний 3D convex hull із conflict graph.

    Вхід: точки вершин опуклого многогранника (мінімум 4, не всі копланарні).
    Суміжність граней тримається у словнику орієнтованих ребер: half[(u, v)] -> face id.
    """

    def __init__(self, points: Sequence[Pt], eps: float = EPS, rng: Optional[random.Random] = None):
        if len(points) < 4:
            raise HullError(f"Need at least 4 points, got {len(points)}")
        self.P: List[Pt] = list(points)
        self.eps = eps
        self._rng = rng if rng is not None else random.Random()

        self.faces_list: List[Face] = []
        self.half: Dict[Edge, int] = {}
        self.point2faces: Dict[int, Set[int]] = {}
        self._inner = Pt(0.0, 0.0, 0.0)

        base = self._build_initial_tetra()
        self._init_conflicts(base)
        self._expand_until_done()

    # ---------------- Публічний API ----------------
    def faces(self) -> List[Tri]:
        return [f.v for f in self.faces_list if f.alive]

    def vertex_indices(self) -> List[int]:
        return sorted({i for tri in self.faces() for i in tri})

    def volume(self) -> float:
        """Об'єм через суму орієнтованих тетраедрів (0, a, b, c)."""
        total = 0.0
        for a, b, c in self.faces():
            total += dot(self.P[a], cross(self.P[b], self.P[c]))
        return total / 6.0

    def contains(self, p: Pt, eps: Optional[float] = None) -> bool:
        eps = self.eps if eps is None else eps
        return not any(visible_from_point(self.P[a], self.P[b], self.P[c], p, eps)
                       for a, b, c in self.faces())

    # ---------------- Побудова ----------------
    def _add_face(self, a: int, b: int, c: int) -> int:
        fid = len(self.faces_list)
        face = Face((a, b, c))
        self.faces_list.append(face)
        for e in face.edges():
            self.half[e] = fid
        return fid

    def _kill_face(self, fid: int) -> None:
        f = self.faces_list[fid]
        f.alive = False
        for e in f.edges():
            if self.half.get(e) == fid:
                del self.half[e]
        for pi in f.conflict:
            s = self.point2faces.get(pi)
            if s is not None:
                s.discard(fid)
        f.conflict = set()

    def _build_initial_tetra(self) -> List[int]:
        """Чотири некопланарні точки у випадковому порядку -> тетраедр з гранями назовні."""
        idx = list(range(len(self.P)))
        self._rng.shuffle(idx)

        a = idx[0]
        b = next((j for j in idx[1:] if norm(sub(self.P[j], self.P[a])) > self.eps), None)
        if b is None:
            raise HullError("All points coincide")
        c = next((k for k in idx
                  if norm(cross(sub(self.P[b], self.P[a]), sub(self.P[k], self.P[a]))) > self.eps), None)
        if c is None:
            raise HullError("All points collinear: cannot form a base triangle")
        d = next((t for t in idx
                  if abs(orient3d(self.P[a], self.P[b], self.P[c], self.P[t])) > self.eps), None)
        if d is None:
            raise HullError("All points coplanar: 3D hull is impossible")

        self._inner = centroid([self.P[a], self.P[b], self.P[c], self.P[d]])
        fids = []
        for tri in ((a, b, c), (a, c, d), (a, d, b), (b, d, c)):
            u, v, w = tri
            # всередині тетра має бути з «невидимого» боку
            if orient3d(self.P[u], self.P[v], self.P[w], self._inner) > 0:
                v, w = w, v
            fids.append(self._add_face(u, v, w))
        return fids

    def _sees(self, fid: int, pi: int) -> bool:
        a, b, c = (self.P[i] for i in self.faces_list[fid].v)
        return visible_from_point(a, b, c, self.P[pi], self.eps)

    def _assign(self, pi: int, fids: Iterable[int]) -> None:
        seen = self.point2faces.setdefault(pi, set())
        for fid in fids:
            if self._sees(fid, pi):
                self.faces_list[fid].conflict.add(pi)
                seen.add(fid)
        if not seen:
            del self.point2faces[pi]

    def _init_conflicts(self, base: List[int]) -> None:
        used = {i for fid in base for i in self.faces_list[fid].v}
        for pi in range(len(self.P)):
            if pi not in used:
                self._assign(pi, base)

    def _farthest(self, fid: int) -> int:
        a, b, c = (self.P[i] for i in self.faces_list[fid].v)
        return max(sorted(self.faces_list[fid].conflict),
                   key=lambda pi: abs(signed_distance_to_plane(a, b, c, self.P[pi])))

    def _horizon(self, seed: int, pi: int) -> Tuple[Set[int], List[Edge]]:
        """Видимий регіон (обхід від seed) і його межа (орієнтовані ребра видимих граней)."""
        visible: Set[int] = set()
        stack = [seed]
        while stack:
            fid = stack.pop()
            if fid in visible or not self.faces_list[fid].alive or not self._sees(fid, pi):
                continue
            visible.add(fid)
            for u, v in self.faces_list[fid].edges():
                nb = self.half.get((v, u))
                if nb is not None and nb not in visible:
                    stack.append(nb)

        horizon = [(u, v)
                   for fid in visible
                   for u, v in self.faces_list[fid].edges()
                   if self.half.get((v, u)) not in visible]
        return visible, horizon

    def _add_point(self, pi: int, seed: int) -> None:
        visible, horizon = self._horizon(seed, pi)

        orphans: Set[int] = set()
        for fid in visible:
            orphans |= self.faces_list[fid].conflict
        for fid in visible:
            self._kill_face(fid)

        # (u, v) успадковує орієнтацію видимої грані, тож (u, v, pi) вже дивиться назовні
        new_fids = [self._add_face(u, v, pi) for u, v in horizon]

        orphans.discard(pi)
        for fid in self.point2faces.pop(pi, set()):
            self.faces_list[fid].conflict.discard(pi)
        for q in sorted(orphans):
            self._assign(q, new_fids)

    def _expand_until_done(self) -> None:
        while True:
            fid = next((i for i, f in enumerate(self.faces_list) if f.alive and f.conflict), None)
            if fid is None:
                return
            self._add_point(self._farthest(fid), fid)

    # ---------------- Діагностика / Експорт ----------------
    def validate(self) -> dict:
        """
        - кожне орієнтоване ребро активної грані має протилежне (замкнена поверхня);
        - орієнтації назовні щодо внутрішньої точки;
        - жодна вхідна точка не лежить зовні.
        """
        faces = self.faces()
        open_edges = [e for e in self.half if (e[1], e[0]) not in self.half]
        bad_orient = [tri for tri in faces
                      if orient3d(self.P[tri[0]], self.P[tri[1]], self.P[tri[2]], self._inner) >= 0]
        outside = [i for i, p in enumerate(self.P) if not self.contains(p, eps=max(self.eps, 1e-9))]
        return {
            "faces": len(faces),
            "unique_vertices": len(self.vertex_indices()),
            "open_edges": open_edges,
            "bad_orient_faces": bad_orient,
            "outside_points": outside,
        }

    def to_off(self) -> str:
        return off_text(self.P, self.faces())


def off_text(points: Sequence[Pt], faces: Sequence[Tri]) -> str:
    """OFF для трикутної поверхні; невикористані вершини відкидаються."""
    used = sorted({i for tri in faces for i in tri})
    remap = {old: new for new, old in enumerate(used)}
    lines = ["OFF", f"{len(used)} {len(faces)} 0"]
    for i in used:
        p = points[i]
        lines.append(f"{p.x} {p.y} {p.z}")
    for a, b, c in faces:
        lines.append(f"3 {remap[a]} {remap[b]} {remap[c]}")
    return "\n".join(lines)


# ---------------- адаптер клітинка -> поверхня ----------------
@dataclass
class CellSurface:
    cell: Cell
    triangles: List[Tri]  # індекси у cell.vertices, нормалі назовні

    @property
    def points(self) -> List[Pt]:
        return self.cell.vertices


def _scipy_triangles(points: Sequence[Pt]) -> List[Tri]:
    try:
        import numpy as np
        from scipy.spatial import ConvexHull, QhullError
    except ImportError as e:
        raise RuntimeError(
            "backend='scipy', але SciPy не встановлено. "
            "Встанови scipy або використай backend='internal'."
        ) from e

    arr = np.array([(p.x, p.y, p.z) for p in points], dtype=float)
    try:
        qh = ConvexHull(arr)
    except (QhullError, ValueError) as e:
        raise HullError(f"Qhull failed: {e}") from e

    inner = centroid(points[i] for i in qh.vertices)
    tris: List[Tri] = []
    for simplex in qh.simplices:
        a, b, c = (int(i) for i in simplex)
        if orient3d(points[a], points[b], points[c], inner) > 0:
            b, c = c, b
        tris.append((a, b, c))
    return tris


def cell_surface(cell: Cell, backend: str = "internal", rng: Optional[random.Random] = None) -> CellSurface:
    """Триангульована опукла поверхня клітинки. HullError, якщо вершини вироджені."""
    if backend == "internal":
        tris = ConvexHull3D(cell.vertices, rng=rng).faces()
    elif backend == "scipy":
        tris = _scipy_triangles(cell.vertices)
    else:
        raise ValueError(f"Unknown hull backend: {backend}")
    return CellSurface(cell, tris)


def cell_surfaces(cells: Sequence[Cell], backend: str = "internal",
                  rng: Optional[random.Random] = None) -> Tuple[List[CellSurface], int]:
    """
    Поверхні для всіх клітинок. Клітинка з невдалою оболонкою пропускається
    (попередження в лог), решта рендериться. Повертає (поверхні, кількість пропущених).
    """
    out: List[CellSurface] = []
    omitted = 0
    for cell in cells:
        try:
            out.append(cell_surface(cell, backend, rng))
        except HullError as e:
            omitted += 1
            logger.warning("cell %d omitted from rendering: %s", cell.center_index, e)
    return out, omitted
