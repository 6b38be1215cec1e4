"""
voro3d — наближена 3D діаграма Вороного для невеликих наборів точок (Py 3.13).
Клітинки: перетин серединних площин трійками + віртуальний каркас замість нескінченності.
Оболонки клітинок: рандомізований інкрементальний 3D convex hull (або SciPy/Qhull).
"""

__version__ = "0.1.0"

from voro3d.geom import Pt, EPS, centroid, merge_close
from voro3d.config import VoronoiConfig, DEFAULT_CONFIG
from voro3d.points import generate_points, build_virtual_points
from voro3d.cells import (
    BisectorPlane, BuildResult, Cell, CellStats, ComputationCancelled,
    TripleOutcome, TripleResult, bisector_plane, build_cell, build_cells,
    intersect_bisectors, is_valid_vertex, validate_cells,
)
from voro3d.hull import ConvexHull3D, HullError, CellSurface, cell_surface, cell_surfaces
from voro3d.pipeline import VoronoiDiagram, VoronoiSession, compute_diagram, write_cells_off

__all__ = [
    "Pt", "EPS", "centroid", "merge_close",
    "VoronoiConfig", "DEFAULT_CONFIG",
    "generate_points", "build_virtual_points",
    "BisectorPlane", "BuildResult", "Cell", "CellStats", "ComputationCancelled",
    "TripleOutcome", "TripleResult", "bisector_plane", "build_cell", "build_cells",
    "intersect_bisectors", "is_valid_vertex", "validate_cells",
    "ConvexHull3D", "HullError", "CellSurface", "cell_surface", "cell_surfaces",
    "VoronoiDiagram", "VoronoiSession", "compute_diagram", "write_cells_off",
    "__version__",
]
