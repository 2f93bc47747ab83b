#
# - overlay finished histograms as step curves
# - one figure per PlotComposer, one curve per Series
#
import copy
import os

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from rapidityplot.errors import EmptyHistogram, GeometryMismatch, RenderTargetUnavailable

LINESTYLES = {
    '-': '-', 'solid': '-',
    '--': '--', 'dashed': '--',
    '-.': '-.', 'dashdot': '-.',
    ':': ':', 'dotted': ':',
}

NORMALIZATIONS = (None, "entries", "width", "density")


def parse_style(style):
    """
    Splits a style token such as "--,steelblue" or "dashed, steelblue"
    into a matplotlib (linestyle, color) pair. Missing parts are None.
    """
    linestyle = None
    color = None
    for part in str(style).split(','):
        part = part.strip()
        if not part:
            continue
        if part in LINESTYLES:
            linestyle = LINESTYLES[part]
        elif color is None:
            color = part
        else:
            raise ValueError(f"Style token '{style}' names more than one colour.")
    return linestyle, color


class Series:
    """
    A finished histogram plus how it should be drawn.

    The histogram is copied on construction and on every access, so fills
    on either the caller's object or a returned histogram never reach the plot.
    """

    def __init__(self, histogram, style, label):
        self._histogram = copy.deepcopy(histogram)
        self._style = style
        self._label = label
        self._linestyle, self._color = parse_style(style)

    @property
    def histogram(self):
        return copy.deepcopy(self._histogram)

    @property
    def style(self):
        return self._style

    @property
    def label(self):
        return self._label

    @property
    def linestyle(self):
        return self._linestyle

    @property
    def color(self):
        return self._color

    def geometry(self):
        return self._histogram.geometry()

    def __repr__(self):
        return f"Series(label={self._label!r}, style={self._style!r}, geometry={self.geometry()})"


def step_arrays(hist, normalize=None):
    """
    Builds the piecewise-constant outline of a histogram.

    Every bin contributes two points, (low edge, count) and (high edge, count),
    so the curve is flat inside the bin and jumps vertically at its edges.

    Args:
        hist (eventHist): The histogram to draw.
        normalize (str, optional): None, "entries", "width" or "density". Defaults to None.

    Returns:
        tuple: (x, y) numpy arrays of length 2*nbins.
    """
    if normalize not in NORMALIZATIONS:
        raise ValueError(f"Unknown normalization '{normalize}', expected one of {NORMALIZATIONS}.")

    edges = np.fromiter(hist.bin_edges(), dtype=float, count=hist.nbins + 1)
    y = np.array(hist.get_counts_array(), dtype=float)

    if normalize in ("entries", "density"):
        if hist.entries == 0:
            raise EmptyHistogram(f"Cannot normalise '{hist.title}' by its entries, it is empty.")
        y = y / hist.entries
    if normalize in ("width", "density"):
        y = y / np.diff(edges)

    x = np.repeat(edges, 2)[1:-1]
    y = np.repeat(y, 2)
    return x, y


class PlotComposer:
    """
    Collects Series sharing one binning and renders them in a single frame.

    States: "empty" until the first add(), "accumulating" while series are
    added, "rendered" once render() has written the figure.
    """

    def __init__(self, frame_title, xlabel, ylabel):
        self.frame_title = frame_title
        self.xlabel = xlabel
        self.ylabel = ylabel
        self._series = []
        self._geometry = None
        self._rendered = False

    @property
    def series(self):
        return tuple(self._series)

    @property
    def state(self):
        if self._rendered:
            return "rendered"
        if self._series:
            return "accumulating"
        return "empty"

    def __len__(self):
        return len(self._series)

    def add(self, series):
        """
        Appends a series; the first one fixes the reference binning.

        Raises:
            GeometryMismatch: If the series binning differs from the reference.
            RuntimeError: If the figure has already been rendered.
        """
        if self._rendered:
            raise RuntimeError("Cannot add series after the plot has been rendered.")
        geometry = series.geometry()
        if self._geometry is None:
            self._geometry = geometry
        elif geometry != self._geometry:
            raise GeometryMismatch(
                f"Series '{series.label}' has binning {geometry}, expected {self._geometry}.")
        self._series.append(series)
        return self

    def step_curve(self, series, normalize=None):
        return step_arrays(series._histogram, normalize)

    def render(self, destination, normalize=None, logy=False, figsize=(8, 6), dpi=150):
        """
        Draws every series in insertion order and writes the figure.

        Args:
            destination (str): Output path; the format follows its extension.
            normalize (str, optional): Per-series rescale applied to the drawn
                curve only. Defaults to None.
            logy (bool, optional): Log scale on the y-axis. Defaults to False.
            figsize (tuple, optional): Figure size in inches. Defaults to (8, 6).
            dpi (int, optional): Resolution for raster formats. Defaults to 150.

        Raises:
            ValueError: If no series were added.
            RenderTargetUnavailable: If the destination cannot be written.
        """
        if not self._series:
            raise ValueError("Nothing to render, no series were added.")

        curves = [self.step_curve(s, normalize) for s in self._series]

        fig, ax = plt.subplots(figsize=figsize)
        try:
            for zorder, (s, (x, y)) in enumerate(zip(self._series, curves)):
                ax.plot(x, y, linestyle=s.linestyle or '-', color=s.color,
                        label=s.label, lw=1.2, zorder=2 + zorder)
            _, xmin, xmax = self._geometry
            ax.set_xlim(xmin, xmax)
            if logy:
                ax.set_yscale("log")
            ax.set_title(self.frame_title)
            ax.set_xlabel(self.xlabel)
            ax.set_ylabel(self.ylabel)
            ax.grid(True, linestyle=':')
            ax.legend()
            fig.tight_layout()

            try:
                # fixed salt, svg element ids are otherwise random per call
                with matplotlib.rc_context({"svg.hashsalt": "rapidityplot"}):
                    fig.savefig(destination, dpi=dpi, metadata=_stable_metadata(destination))
            except OSError as e:
                raise RenderTargetUnavailable(f"Cannot write plot to '{destination}': {e}") from e
        finally:
            plt.close(fig)

        self._rendered = True
        return destination


def _stable_metadata(destination):
    # drop timestamps/version stamps so re-rendering gives identical bytes
    ext = os.path.splitext(str(destination))[1].lower().lstrip('.') or matplotlib.rcParams["savefig.format"]
    if ext == "pdf":
        return {"CreationDate": None, "Producer": None, "Creator": None}
    if ext == "svg":
        return {"Date": None, "Creator": None}
    if ext == "png":
        return {"Software": None}
    return None
