# voro3d/predicates.py
from __future__ import annotations
from typing import Tuple
from .geom import Pt, sub, cross, dot, norm, EPS

def orient3d(a: Pt, b: Pt, c: Pt, d: Pt) -> float:
    ab = sub(b, a)
    ac = sub(c, a)
    ad = sub(d, a)
    return dot(cross(ab, ac), ad)

def signed_distance_to_plane(a: Pt, b: Pt, c: Pt, p: Pt) -> float:
    n = cross(sub(b, a), sub(c, a))
    area2 = norm(n)
    if area2 == 0.0:
        return 0.0
    return orient3d(a, b, c, p) / area2

def visible_from_point(a: Pt, b: Pt, c: Pt, p: Pt, eps: float = EPS) -> bool:
    return orient3d(a, b, c, p) > eps

# ---------- лінійні системи 3x3 ----------
def det3(r1: Pt, r2: Pt, r3: Pt) -> float:
    """Детермінант матриці з рядками r1, r2, r3 (розклад за першим рядком)."""
    return (r1.x * (r2.y*r3.z - r3.y*r2.z)
            - r1.y * (r2.x*r3.z - r3.x*r2.z)
            + r1.z * (r2.x*r3.y - r3.x*r2.y))

def solve3(n1: Pt, n2: Pt, n3: Pt, d: Tuple[float, float, float], tol: float) -> Pt | None:
    """
    Розв'язок системи n_i · X = d_i за правилом Крамера.
    Повертає None, якщо |det| < tol (площини майже паралельні / нормалі копланарні).
    """
    det = det3(n1, n2, n3)
    if abs(det) < tol:
        return None
    d1, d2, d3 = d
    # заміна стовпця на праву частину
    x = det3(Pt(d1, n1.y, n1.z), Pt(d2, n2.y, n2.z), Pt(d3, n3.y, n3.z)) / det
    y = det3(Pt(n1.x, d1, n1.z), Pt(n2.x, d2, n2.z), Pt(n3.x, d3, n3.z)) / det
    z = det3(Pt(n1.x, n1.y, d1), Pt(n2.x, n2.y, d2), Pt(n3.x, n3.y, d3)) / det
    return Pt(x, y, z)
