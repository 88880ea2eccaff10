"""
K-Means Trainer – an interactive Tkinter app for watching Lloyd's algorithm.

Click on the plot to drop points (or generate blobs), pick k, press
"Initialize Clusters" to seed centroids from random points, then "Run K-means"
to animate a fixed number of assign/update rounds. When the rounds are done,
any point farther than the dispersion threshold from its centroid is split off
into a new cluster of its own.

Run with:
    python kmeans_trainer.py
"""

import logging
import tkinter as tk
from tkinter import ttk, messagebox

import matplotlib
matplotlib.use("TkAgg")
from matplotlib.figure import Figure
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg

from kmeans_core import KMeansError
from kmeans_engine import EngineState, KMeansConfig, KMeansEngine
from kmeans_views import blob_points, draw_state, sse_rows

logger = logging.getLogger(__name__)

MIN_CLUSTERS, MAX_CLUSTERS = 2, 8
MIN_THRESHOLD, MAX_THRESHOLD = 50.0, 300.0


# --- Main Application --------------------------------------------------------


class KMeansTrainerApp(tk.Tk):
    def __init__(self, config: KMeansConfig | None = None):
        super().__init__()
        self.title("K-Means Trainer")
        self.geometry("1100x650")

        # State
        self.engine = KMeansEngine(config)
        cfg = self.engine.config
        self.num_clusters = tk.IntVar(value=cfg.num_clusters)
        self.threshold = tk.DoubleVar(value=cfg.dispersion_threshold)
        self.category_var = tk.StringVar()
        self.show_radius = tk.BooleanVar(value=False)
        self._steps = None
        self._after_id = None

        # UI Setup
        self._build_controls()
        self._build_plot()
        self._refresh_buttons()
        self.draw()

        self.protocol("WM_DELETE_WINDOW", self.on_close)

    # UI builders -------------------------------------------------------------
    def _build_controls(self):
        ctrl_frame = ttk.Frame(self)
        ctrl_frame.pack(side=tk.LEFT, fill=tk.Y, padx=10, pady=10)

        # Generate data
        ttk.Label(ctrl_frame, text="Generate dataset").pack(pady=(0, 5))

        self.n_samples_var = tk.IntVar(value=60)
        self.n_centers_var = tk.IntVar(value=3)
        self.noise_var = tk.DoubleVar(value=0.8)

        for text, var in [
            ("# samples", self.n_samples_var),
            ("# true centers", self.n_centers_var),
            ("cluster std", self.noise_var),
        ]:
            row = ttk.Frame(ctrl_frame)
            row.pack(fill=tk.X, pady=2)
            ttk.Label(row, text=text, width=12).pack(side=tk.LEFT)
            ttk.Entry(row, textvariable=var, width=6).pack(side=tk.LEFT)

        self.generate_btn = ttk.Button(ctrl_frame, text="Generate", command=self.generate_data)
        self.generate_btn.pack(pady=5)

        # K-means controls
        ttk.Separator(ctrl_frame, orient=tk.HORIZONTAL).pack(fill=tk.X, pady=10)
        ttk.Label(ctrl_frame, text="K-Means").pack()

        rowk = ttk.Frame(ctrl_frame); rowk.pack(pady=2)
        self.minus_btn = ttk.Button(rowk, text="−", width=3, command=lambda: self.change_clusters(-1))
        self.minus_btn.pack(side=tk.LEFT)
        self.k_label = ttk.Label(rowk, text=f"Clusters: {self.num_clusters.get()}", width=12, anchor="center")
        self.k_label.pack(side=tk.LEFT, padx=4)
        self.plus_btn = ttk.Button(rowk, text="+", width=3, command=lambda: self.change_clusters(+1))
        self.plus_btn.pack(side=tk.LEFT)

        self.run_btn = ttk.Button(ctrl_frame, text="Initialize Clusters", command=self.run_kmeans)
        self.run_btn.pack(pady=5)
        self.stop_btn = ttk.Button(ctrl_frame, text="Stop", command=self.stop_run)
        self.stop_btn.pack(pady=2)
        self.clear_btn = ttk.Button(ctrl_frame, text="Clear", command=self.clear)
        self.clear_btn.pack(pady=5)

        # Dispersion threshold slider
        ttk.Label(ctrl_frame, text="Dispersion threshold").pack(anchor="w", pady=(8, 0))
        th_row = ttk.Frame(ctrl_frame); th_row.pack(anchor="w")
        ttk.Scale(th_row, from_=MIN_THRESHOLD, to=MAX_THRESHOLD, length=140, orient="horizontal",
                  variable=self.threshold, command=self._on_threshold_change).pack(side="left")
        self.threshold_lbl = ttk.Label(th_row, text=f"{self.threshold.get():.0f}")
        self.threshold_lbl.pack(side="left", padx=4)
        ttk.Checkbutton(ctrl_frame, text="Show threshold radius", variable=self.show_radius,
                        command=self.draw).pack(anchor="w")

        # Categorical values
        ttk.Separator(ctrl_frame, orient=tk.HORIZONTAL).pack(fill=tk.X, pady=10)
        ttk.Label(ctrl_frame, text="Categorical value").pack(anchor="w")
        cat_row = ttk.Frame(ctrl_frame); cat_row.pack(anchor="w", pady=2)
        entry = ttk.Entry(cat_row, textvariable=self.category_var, width=14)
        entry.pack(side=tk.LEFT)
        entry.bind("<Return>", lambda _: self.add_categorical())
        self.category_btn = ttk.Button(cat_row, text="Add", command=self.add_categorical)
        self.category_btn.pack(side=tk.LEFT, padx=4)

        # SSE listbox
        ttk.Separator(ctrl_frame, orient=tk.HORIZONTAL).pack(fill=tk.X, pady=10)
        ttk.Label(ctrl_frame, text="Cluster SSE").pack()
        self.sse_list = tk.Listbox(ctrl_frame, width=25, height=8)
        self.sse_list.pack()

        self.status = ttk.Label(ctrl_frame, text="Click anywhere to add points", wraplength=180)
        self.status.pack(pady=(8, 0), anchor="w")

    def _build_plot(self):
        plot_frame = ttk.Frame(self)
        plot_frame.pack(side=tk.RIGHT, fill=tk.BOTH, expand=True)

        self.fig = Figure(figsize=(8, 5))
        self.ax = self.fig.add_subplot(111)

        self.canvas = FigureCanvasTkAgg(self.fig, master=plot_frame)
        self.canvas.draw()
        self.canvas.get_tk_widget().pack(fill=tk.BOTH, expand=True)
        self.canvas.mpl_connect("button_press_event", self.on_click)

    # Data --------------------------------------------------------------------
    def on_click(self, event):
        if event.inaxes is not self.ax or event.xdata is None:
            return
        ok, _ = self._attempt(lambda: self.engine.add_point(event.xdata, event.ydata))
        if ok:
            self.draw()

    def generate_data(self):
        cfg = self.engine.config
        try:
            coords = blob_points(self.n_samples_var.get(), self.n_centers_var.get(),
                                 self.noise_var.get(), cfg.width, cfg.height)
        except (tk.TclError, ValueError) as err:
            messagebox.showinfo("Info", f"Invalid dataset settings: {err}")
            return

        def load():
            self.engine.reset()
            for x, y in coords:
                self.engine.add_point(x, y)

        ok, _ = self._attempt(load)
        if ok:
            self._set_status(f"Generated {len(coords)} points")
            self.draw()

    def add_categorical(self):
        text = self.category_var.get()
        if not text:
            return
        ok, p = self._attempt(lambda: self.engine.add_categorical_point(text))
        if ok:
            self.category_var.set("")
            self._set_status(f"'{text}' encoded as {p.numeric_value}")
            self.draw()

    def clear(self):
        ok, _ = self._attempt(self.engine.reset)
        if ok:
            self._set_status("Click anywhere to add points")
            self.draw()

    # Clusters ----------------------------------------------------------------
    def change_clusters(self, delta):
        k = min(MAX_CLUSTERS, max(MIN_CLUSTERS, self.num_clusters.get() + delta))
        self.num_clusters.set(self.engine.set_num_clusters(k))
        self.k_label.config(text=f"Clusters: {k}")

    def _on_threshold_change(self, v):
        ok, value = self._attempt(lambda: self.engine.set_dispersion_threshold(float(v)))
        if ok:
            self.threshold_lbl.config(text=f"{value:.0f}")
            if self.show_radius.get():
                self.draw()

    def run_kmeans(self):
        ok, steps = self._attempt(self.engine.run_steps)
        if not ok:
            return
        if not self.engine.is_running:
            # first press only seeds the centroids
            self._set_status(f"Initialised {len(self.engine.centroids)} clusters")
            self.draw()
            self._refresh_buttons()
            return
        self._steps = steps
        self._refresh_buttons()
        self._schedule_tick()

    def _schedule_tick(self):
        self._after_id = self.after(self.engine.config.round_interval_ms, self._tick)

    def _tick(self):
        self._after_id = None
        try:
            report = next(self._steps)
        except StopIteration:
            self._finish_run()
            return
        self._set_status(f"Round {report.round}/{report.total_rounds}: {report.moved} point(s) moved")
        self.draw()
        self._schedule_tick()

    def _finish_run(self):
        self._steps = None
        self._set_status(f"Done: {len(self.engine.centroids)} clusters")
        self.draw()
        self._refresh_buttons()

    def stop_run(self):
        if self._after_id is not None:
            self.after_cancel(self._after_id)
            self._after_id = None
        self.engine.stop()
        if self._steps is not None:
            self._steps = None
            self._set_status("Run stopped")
            self.draw()
        self._refresh_buttons()

    # Drawing -----------------------------------------------------------------
    def draw(self):
        cfg = self.engine.config
        threshold = cfg.dispersion_threshold if self.show_radius.get() else None
        draw_state(self.ax, self.engine.points, self.engine.centroids,
                   cfg.width, cfg.height, threshold=threshold)
        self.canvas.draw()
        self.update_sse_list()

    def update_sse_list(self):
        self.sse_list.delete(0, tk.END)
        rows = sse_rows(self.engine.points, self.engine.centroids)
        for cid, err in rows:
            self.sse_list.insert(tk.END, f"Cluster {cid}: SSE = {err:.0f}")
        # Highlight first (largest) cluster
        if rows:
            self.sse_list.itemconfig(0, bg="yellow")

    def _refresh_buttons(self):
        running = self.engine.is_running
        idle = "disabled" if running else "!disabled"
        for btn in (self.generate_btn, self.minus_btn, self.plus_btn, self.clear_btn, self.category_btn):
            btn.state([idle])
        self.run_btn.state(["disabled" if running or not self.engine.points else "!disabled"])
        self.stop_btn.state(["!disabled" if running else "disabled"])
        empty = self.engine.state is EngineState.EMPTY
        self.run_btn.config(text="Initialize Clusters" if empty else "Run K-means")

    # Helpers -----------------------------------------------------------------
    def _attempt(self, action):
        """Run ``action`` and return ``(ok, result)``. Engine errors go to a
        message box instead of propagating."""
        try:
            result = action()
        except KMeansError as err:
            logger.info("Rejected: %s", err)
            messagebox.showinfo("Info", str(err))
            return False, None
        self._refresh_buttons()
        return True, result

    def _set_status(self, text):
        self.status.config(text=text)

    # ------------------------------------------------------------------------
    def on_close(self):
        self.stop_run()
        self.destroy()


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    app = KMeansTrainerApp()
    app.mainloop()


if __name__ == "__main__":
    main()
