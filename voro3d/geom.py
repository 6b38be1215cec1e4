from __future__ import annotations
from dataclasses import dataclass
from math import sqrt
from typing import Iterable, List

EPS = 1e-10  # епс для предикатів оболонки

@dataclass(frozen=True)
class Pt:
    x: float
    y: float
    z: float
    def __iter__(self):
        yield self.x; yield self.y; yield self.z

def sub(a: Pt, b: Pt) -> Pt:
    return Pt(a.x - b.x, a.y - b.y, a.z - b.z)

def scale(a: Pt, k: float) -> Pt:
    return Pt(a.x*k, a.y*k, a.z*k)

def dot(a: Pt, b: Pt) -> float:
    return a.x*b.x + a.y*b.y + a.z*b.z

def cross(a: Pt, b: Pt) -> Pt:
    return Pt(a.y*b.z - a.z*b.y,
              a.z*b.x - a.x*b.z,
              a.x*b.y - a.y*b.x)

def norm(a: Pt) -> float:
    return sqrt(dot(a, a))

def dist(a: Pt, b: Pt) -> float:
    return norm(sub(a, b))

def midpoint(a: Pt, b: Pt) -> Pt:
    return Pt((a.x + b.x)*0.5, (a.y + b.y)*0.5, (a.z + b.z)*0.5)

def normalize(a: Pt) -> Pt:
    n = norm(a)
    if n == 0.0:
        raise ValueError("zero-length vector")
    return scale(a, 1.0 / n)

def centroid(points: Iterable[Pt]) -> Pt:
    xs = ys = zs = 0.0
    n = 0
    for p in points:
        xs += p.x; ys += p.y; zs += p.z; n += 1
    if n == 0:
        raise ValueError("empty set")
    inv = 1.0 / n
    return Pt(xs*inv, ys*inv, zs*inv)

def merge_close(points: Iterable[Pt], radius: float) -> List[Pt]:
    """
    Злиття близьких точок: точка, ближча за `radius` до вже прийнятої, відкидається.
    Порядок першої появи зберігається (важливо для детермінізму клітинок).
    """
    kept: List[Pt] = []
    for p in points:
        if not any(dist(p, q) < radius for q in kept):
            kept.append(p)
    return kept
