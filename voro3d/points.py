# voro3d/points.py
from __future__ import annotations
import random
from typing import List, Optional, Sequence

from .geom import Pt

# сітка на кожній грані віртуального куба (частки від virtual_bound*face_scale)
FACE_GRID = (-0.5, 0.0, 0.5)


def generate_points(count: int, bound: float, rng: Optional[random.Random] = None) -> List[Pt]:
    """
    count випадкових точок, кожна координата рівномірно з [-bound/2, bound/2].
    Точки тягнемо по черзі (x, y, z), тож при тому ж seed перші k точок
    збігаються для будь-якого count >= k.
    """
    if count < 1:
        raise ValueError(f"count must be >= 1, got {count}")
    if bound <= 0:
        raise ValueError(f"bound must be positive, got {bound}")
    if rng is None:
        rng = random.Random()
    h = bound * 0.5
    pts: List[Pt] = []
    for _ in range(count):
        x = rng.uniform(-h, h)
        y = rng.uniform(-h, h)
        z = rng.uniform(-h, h)
        pts.append(Pt(x, y, z))
    return pts


def build_virtual_points(
    virtual_bound: float,
    face_scale: float = 2.0,
    grid: Sequence[float] = FACE_GRID,
) -> List[Pt]:
    """
    Віртуальний «каркас» навколо області: 8 кутів куба (±1,±1,±1)*virtual_bound
    і на кожній з 6 граней сітка grid x grid, розтягнута на face_scale*virtual_bound
    у площині грані.

    Це емпірична евристика: вона лише обмежує клітинки крайових точок замість
    нескінченних, точну «точку на нескінченності» не моделює.
    Збіжні за положенням точки (кути сітки, ребра) не видаляються: ідентичність за індексом.
    """
    vb = virtual_bound
    s = vb * face_scale
    out: List[Pt] = []

    # кути
    for x in (-1, 1):
        for y in (-1, 1):
            for z in (-1, 1):
                out.append(Pt(x * vb, y * vb, z * vb))

    # сітки на гранях
    for sign in (-1, 1):
        for i in grid:
            for j in grid:
                out.append(Pt(sign * vb, i * s, j * s))
                out.append(Pt(i * s, sign * vb, j * s))
                out.append(Pt(i * s, j * s, sign * vb))
    return out
