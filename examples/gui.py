# examples/gui.py
from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk, messagebox

from voro3d.cells import BACKENDS
from voro3d.config import DEFAULT_CONFIG
from voro3d.hull import HULL_BACKENDS, cell_surfaces
from voro3d.logging_config import setup_logging
from voro3d.pipeline import VoronoiSession

import matplotlib
matplotlib.use("TkAgg")
from matplotlib.figure import Figure
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg, NavigationToolbar2Tk
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401  # потрібен для 'projection="3d"'
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

# затримка перед перерахунком, поки повзунок ще рухається (мс)
DEBOUNCE_MS = 250


class VoronoiApp(tk.Tk):
    def __init__(self):
        super().__init__()
        self.title("3D Voronoi Diagram")
        self.geometry("900x800")

        self.session = VoronoiSession(DEFAULT_CONFIG, seed=0)
        self._pending = None

        self.fig = None
        self.ax = None
        self.canvas = None

        self._build_widgets()
        self.recompute()

    def _build_widgets(self):
        main = ttk.Frame(self, padding=10)
        main.pack(fill="both", expand=True)

        # --- Параметри ---
        params = ttk.LabelFrame(main, text="Параметри")
        params.pack(fill="x", pady=5)

        ttk.Label(params, text="Кількість точок:").grid(row=0, column=0, sticky="w", padx=5, pady=5)
        self.count_var = tk.IntVar(value=DEFAULT_CONFIG.default_points)
        scale = tk.Scale(
            params,
            from_=DEFAULT_CONFIG.min_points,
            to=DEFAULT_CONFIG.max_points,
            orient="horizontal",
            resolution=1,
            length=240,
            variable=self.count_var,
            command=lambda _value: self._schedule(),
        )
        scale.grid(row=0, column=1, sticky="w", padx=5, pady=5)

        ttk.Label(params, text="Seed:").grid(row=1, column=0, sticky="w", padx=5, pady=5)
        self.seed_entry = ttk.Entry(params, width=10)
        self.seed_entry.insert(0, "0")
        self.seed_entry.grid(row=1, column=1, sticky="w", padx=5, pady=5)

        ttk.Label(params, text="Обчислення:").grid(row=2, column=0, sticky="w", padx=5, pady=5)
        self.backend_var = tk.StringVar(value="numpy")
        ttk.Combobox(params, textvariable=self.backend_var, values=BACKENDS,
                     state="readonly", width=10).grid(row=2, column=1, sticky="w", padx=5, pady=5)

        ttk.Label(params, text="Оболонка:").grid(row=3, column=0, sticky="w", padx=5, pady=5)
        self.hull_var = tk.StringVar(value="internal")
        ttk.Combobox(params, textvariable=self.hull_var, values=HULL_BACKENDS,
                     state="readonly", width=10).grid(row=3, column=1, sticky="w", padx=5, pady=5)

        ttk.Button(params, text="Перерахувати", command=self.recompute).grid(
            row=4, column=0, columnspan=2, sticky="we", padx=5, pady=5
        )

        # --- Результати ---
        result_frame = ttk.LabelFrame(main, text="Результати")
        result_frame.pack(fill="x", pady=5)

        self.cells_var = tk.StringVar(value="—")
        self.omitted_var = tk.StringVar(value="—")
        self.valid_var = tk.StringVar(value="—")

        ttk.Label(result_frame, text="Клітинок:").grid(row=0, column=0, sticky="w", padx=5, pady=2)
        ttk.Label(result_frame, textvariable=self.cells_var).grid(row=0, column=1, sticky="w", padx=5, pady=2)
        ttk.Label(result_frame, text="Без оболонки:").grid(row=1, column=0, sticky="w", padx=5, pady=2)
        ttk.Label(result_frame, textvariable=self.omitted_var).grid(row=1, column=1, sticky="w", padx=5, pady=2)
        ttk.Label(result_frame, text="Валідація:").grid(row=2, column=0, sticky="w", padx=5, pady=2)
        ttk.Label(result_frame, textvariable=self.valid_var).grid(row=2, column=1, sticky="w", padx=5, pady=2)

        # --- 3D-графік: миша обертає/масштабує сцену ---
        plot_frame = ttk.LabelFrame(main, text="3D візуалізація")
        plot_frame.pack(fill="both", expand=True, pady=5)

        self.fig = Figure(figsize=(6, 5))
        self.ax = self.fig.add_subplot(111, projection="3d")
        self.canvas = FigureCanvasTkAgg(self.fig, master=plot_frame)
        self.canvas.draw()
        NavigationToolbar2Tk(self.canvas, plot_frame)
        self.canvas.get_tk_widget().pack(fill="both", expand=True)

    def _schedule(self):
        if self._pending is not None:
            self.after_cancel(self._pending)
        self._pending = self.after(DEBOUNCE_MS, self.recompute)

    def recompute(self):
        self._pending = None
        try:
            seed = int(self.seed_entry.get())
        except ValueError:
            messagebox.showerror("Помилка", "Seed має бути цілим числом.")
            return

        self.session.seed = seed
        self.session.backend = self.backend_var.get()
        try:
            diagram = self.session.set_point_count(self.count_var.get())
            surfaces, omitted = cell_surfaces(diagram.cells, backend=self.hull_var.get())
            report = diagram.validate()
        except Exception as e:
            messagebox.showerror("Помилка виконання", str(e))
            return

        self.cells_var.set(f"{len(diagram.cells)} / {len(diagram.points)}")
        self.omitted_var.set(str(omitted))
        if report["bad_validity"] or report["bad_min_vertices"] or report["bad_duplicates"]:
            self.valid_var.set("Є проблеми (див. лог)")
            logging.getLogger("voro3d").warning("VALIDATION: %s", report)
        else:
            self.valid_var.set("OK")

        self.update_plot(diagram.points, surfaces)

    def update_plot(self, points, surfaces):
        """Перемалювати клітинки (напівпрозорі опуклі поверхні) і генератори."""
        self.ax.clear()

        for s in surfaces:
            tris = [[(s.points[i].x, s.points[i].y, s.points[i].z) for i in tri]
                    for tri in s.triangles]
            poly = Poly3DCollection(tris, alpha=0.15, linewidths=0.3)
            poly.set_facecolor("#88ccff")
            poly.set_edgecolor("#4488ff")
            self.ax.add_collection3d(poly)

        self.ax.scatter(
            [p.x for p in points], [p.y for p in points], [p.z for p in points],
            color="#ff4444", s=12, depthshade=False,
        )

        lim = DEFAULT_CONFIG.outer_bound
        self.ax.set_xlim(-lim, lim)
        self.ax.set_ylim(-lim, lim)
        self.ax.set_zlim(-lim, lim)
        self.ax.set_box_aspect((1, 1, 1))
        self.ax.set_xlabel("X")
        self.ax.set_ylabel("Y")
        self.ax.set_zlabel("Z")
        self.ax.set_title(f"{len(surfaces)} cells")

        self.canvas.draw()


if __name__ == "__main__":
    setup_logging()
    app = VoronoiApp()
    app.mainloop()
