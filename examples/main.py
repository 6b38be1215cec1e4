# examples/main.py
from __future__ import annotations

import argparse
import logging
import random

from voro3d.cells import BACKENDS, TripleOutcome
from voro3d.config import DEFAULT_CONFIG
from voro3d.hull import HULL_BACKENDS, cell_surfaces
from voro3d.logging_config import setup_logging
from voro3d.pipeline import compute_diagram, write_cells_off


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Наближена 3D діаграма Вороного")
    parser.add_argument("--count", type=int, default=DEFAULT_CONFIG.default_points,
                        help=f"кількість точок [{DEFAULT_CONFIG.min_points}, {DEFAULT_CONFIG.max_points}]")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--backend", choices=BACKENDS, default="numpy")
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument("--hull-backend", choices=HULL_BACKENDS, default="internal")
    parser.add_argument("--off", metavar="PATH", default=None,
                        help="записати поверхні всіх клітинок в OFF")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(getattr(logging, args.log_level))

    count = DEFAULT_CONFIG.clamp_point_count(args.count)
    rng = random.Random(args.seed)

    # --- 1) Точки + клітинки ---
    diagram = compute_diagram(count, DEFAULT_CONFIG, rng,
                              backend=args.backend, workers=args.workers)

    print(f"Реальних точок:    {len(diagram.points)}")
    print(f"Віртуальних точок: {len(diagram.virtual_points)}")
    print(f"Клітинок:          {len(diagram.cells)}")

    # --- 2) Статистика трійок по центрах ---
    for s in diagram.stats:
        mark = "ok" if s.emitted else "dropped"
        print(f"  cell {s.center_index:2d}: {s.vertices:3d} vertices, "
              f"{s.triples} triples, degenerate={s[TripleOutcome.DEGENERATE]}, "
              f"failed={s[TripleOutcome.FAILED]} [{mark}]")

    # --- 3) Інваріанти ---
    report = diagram.validate()
    print("VALIDATION:", {k: (v if isinstance(v, int) else len(v)) for k, v in report.items()})

    # --- 4) Оболонки клітинок ---
    surfaces, omitted = cell_surfaces(diagram.cells, backend=args.hull_backend)
    print(f"Поверхонь:         {len(surfaces)} (пропущено {omitted})")

    if args.off:
        write_cells_off(args.off, surfaces)
        print(f"{args.off} записано.")


if __name__ == "__main__":
    main()
