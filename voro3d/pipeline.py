from __future__ import annotations
import logging
import random
import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .cells import BuildResult, Cell, CellStats, build_cells, validate_cells
from .config import DEFAULT_CONFIG, VoronoiConfig
from .geom import Pt
from .hull import CellSurface, off_text
from .points import build_virtual_points, generate_points

logger = logging.getLogger(__name__)


@dataclass
class VoronoiDiagram:
    points: List[Pt]           # реальні генератори
    virtual_points: List[Pt]   # каркас, центрами не бувають
    cells: List[Cell]
    stats: List[CellStats]
    config: VoronoiConfig = DEFAULT_CONFIG

    @property
    def all_points(self) -> List[Pt]:
        return self.points + self.virtual_points

    def validate(self) -> dict:
        return validate_cells(BuildResult(self.cells, self.stats), self.all_points,
                              self.config.valid_tol, self.config.dedup_radius)


def compute_diagram(
    count: int,
    config: Optional[VoronoiConfig] = None,
    rng: Optional[random.Random] = None,
    backend: str = "numpy",
    workers: int = 1,
    cancel: Optional[threading.Event] = None,
) -> VoronoiDiagram:
    """
    Повний пайплайн:
      - count випадкових точок у кубі config.region_bound;
      - віртуальний каркас на відстані config.virtual_bound;
      - клітинки для реальних точок.
    Кожен виклик будує все з нуля.
    """
    config = config or DEFAULT_CONFIG
    points = generate_points(count, config.region_bound, rng)
    virtual = build_virtual_points(config.virtual_bound)

    result: BuildResult = build_cells(
        points, virtual, config.outer_bound,
        dedup_radius=config.dedup_radius,
        tol=config.valid_tol,
        det_tol=config.det_tol,
        clamp_factor=config.clamp_factor,
        backend=backend,
        workers=workers,
        cancel=cancel,
    )
    return VoronoiDiagram(points, virtual, result.cells, result.stats, config)


class VoronoiSession:
    """
    Поточний стан інтерактивного перегляду: одна діаграма, що перераховується
    цілком при кожній зміні кількості точок.
    """

    def __init__(self, config: Optional[VoronoiConfig] = None, seed: Optional[int] = None,
                 backend: str = "numpy", workers: int = 1):
        self.config = config or DEFAULT_CONFIG
        self.seed = seed
        self.backend = backend
        self.workers = workers
        self.count = 0
        self.diagram: Optional[VoronoiDiagram] = None

    def set_point_count(self, n: int) -> VoronoiDiagram:
        n = self.config.clamp_point_count(n)
        # свіжий генератор: той самий seed -> ті самі перші точки
        rng = random.Random(self.seed)
        self.diagram = compute_diagram(n, self.config, rng, self.backend, self.workers)
        self.count = n
        logger.info("recomputed diagram for %d points: %d cells", n, len(self.diagram.cells))
        return self.diagram


def write_cells_off(path: str, surfaces: Sequence[CellSurface]) -> None:
    """Усі поверхні клітинок в одному OFF (вершини не спільні між клітинками)."""
    points: List[Pt] = []
    faces = []
    for s in surfaces:
        base = len(points)
        points.extend(s.points)
        faces.extend((a + base, b + base, c + base) for a, b, c in s.triangles)
    with open(path, "w", encoding="utf-8") as f:
        f.write(off_text(points, faces))
