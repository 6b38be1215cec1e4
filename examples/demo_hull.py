import random

from voro3d.cells import build_cells
from voro3d.hull import ConvexHull3D
from voro3d.points import build_virtual_points, generate_points

if __name__ == "__main__":
    pts = generate_points(6, 10.0, random.Random(7))
    result = build_cells(pts, build_virtual_points(30.0), 15.0)

    cell = result.cells[0]
    hull = ConvexHull3D(cell.vertices)

    print("VERTICES:", len(cell.vertices))
    print("VOLUME:", hull.volume())
    print("VALIDATION:", hull.validate())

    with open("cell.off", "w", encoding="utf-8") as f:
        f.write(hull.to_off())
    print("Wrote cell.off — можна глянути в MeshLab/ParaView.")
