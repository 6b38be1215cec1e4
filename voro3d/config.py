# voro3d/config.py
from __future__ import annotations
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoronoiConfig:
    """
    Таблиця параметрів і допусків побудови.

    region_bound   — ребро куба, в якому генеруються точки ([-b/2, b/2] по кожній осі);
    outer_bound    — зовнішня межа; |coord| > outer_bound*clamp_factor відкидається;
    virtual_factor — віртуальні точки стоять на відстані virtual_factor*outer_bound;
    det_tol        — поріг виродженості системи 3x3;
    valid_tol      — допуск у перевірці «вершина не ближча до чужого генератора»;
    dedup_radius   — радіус злиття дублікатів вершин у межах однієї клітинки.
    """
    region_bound: float = 10.0
    outer_bound: float = 15.0
    virtual_factor: float = 2.0
    clamp_factor: float = 1.5
    det_tol: float = 1e-4
    valid_tol: float = 1e-4
    dedup_radius: float = 0.1
    min_points: int = 3
    max_points: int = 30
    default_points: int = 10

    def __post_init__(self):
        for name in ("region_bound", "outer_bound", "virtual_factor", "clamp_factor",
                     "det_tol", "valid_tol", "dedup_radius"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)!r}")
        if not (1 <= self.min_points <= self.max_points):
            raise ValueError(f"bad point range [{self.min_points}, {self.max_points}]")
        if not (self.min_points <= self.default_points <= self.max_points):
            raise ValueError(f"default_points={self.default_points} outside "
                             f"[{self.min_points}, {self.max_points}]")

    @property
    def virtual_bound(self) -> float:
        return self.outer_bound * self.virtual_factor

    @property
    def clamp(self) -> float:
        return self.outer_bound * self.clamp_factor

    def clamp_point_count(self, n: int) -> int:
        """Привести кількість точок до допустимого діапазону [min_points, max_points]."""
        clamped = max(self.min_points, min(self.max_points, int(n)))
        if clamped != n:
            logger.info("point count %s clamped to %d", n, clamped)
        return clamped


DEFAULT_CONFIG = VoronoiConfig()
