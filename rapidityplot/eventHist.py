# eventHist.py

import copy
import math

from rapidityplot.errors import EmptyHistogram, GeometryMismatch, InvalidGeometry


class BinEdges:
    """
    Lazy view over the nbins + 1 edges of an eventHist.

    Iterating it twice yields the same values, so it can be handed to
    several consumers without materialising a list.
    """

    def __init__(self, hist):
        self._hist = hist

    def __len__(self):
        return self._hist.nbins + 1

    def __iter__(self):
        for i in range(self._hist.nbins + 1):
            yield self._hist.edge(i)

    def __getitem__(self, i):
        n = len(self)
        if i < 0:
            i += n
        if not 0 <= i < n:
            raise IndexError("edge index out of range")
        return self._hist.edge(i)

    def __repr__(self):
        return f"BinEdges({self._hist.xmin}, {self._hist.xmax}, nbins={self._hist.nbins})"


class eventHist:
    def __init__(self, xmin, xmax, nbins, title="", xlabel="", ylabel=""):
        """
        Initializes a fixed-width 1-D histogram with underflow and overflow.

        Args:
            xmin (float): The low edge of the first bin.
            xmax (float): The high edge of the last bin.
            nbins (int): The number of bins in the histogram.
            title (str, optional): Title of the histogram. Defaults to "".
            xlabel (str, optional): Label for the x-axis. Defaults to "".
            ylabel (str, optional): Label for the y-axis. Defaults to "".

        Raises:
            InvalidGeometry: If nbins is not a positive integer or xmin >= xmax.
        """
        if isinstance(nbins, bool) or int(nbins) != nbins or nbins <= 0:
            raise InvalidGeometry(f"Number of bins must be a positive integer, got {nbins!r}.")
        xmin = float(xmin)
        xmax = float(xmax)
        if not (math.isfinite(xmin) and math.isfinite(xmax)):
            raise InvalidGeometry("Histogram edges must be finite.")
        if xmax <= xmin:
            raise InvalidGeometry(f"xmax must be greater than xmin, got [{xmin}, {xmax}].")

        self.title = title
        self.xmin = xmin
        self.xmax = xmax
        self.nbins = int(nbins)
        self.dx = (self.xmax - self.xmin) / self.nbins
        self.xlabel = xlabel
        self.ylabel = ylabel
        self.reset()

    def reset(self):
        """Zeroes every bucket and statistic, keeping the binning."""
        self.counts = [0.0] * self.nbins
        self.underflow = 0.0
        self.overflow = 0.0
        self.entries = 0
        self.sum_weights = 0.0
        self.sum_values = 0.0
        self.sum_squares = 0.0

    def edge(self, i):
        """
        Returns the i-th bin edge, 0 <= i <= nbins.

        This is the one rounding rule shared by bin_edges() and fill(), so a
        value equal to an edge always lands in the bin starting at that edge.
        """
        if i <= 0:
            return self.xmin
        if i >= self.nbins:
            return self.xmax
        return self.xmin + (self.xmax - self.xmin) * i / self.nbins

    def find_bin(self, value):
        """
        Returns the bin index of a value, -1 for underflow, nbins for overflow.

        Args:
            value (float): The value to locate.

        Raises:
            ValueError: If value is NaN.
        """
        if math.isnan(value):
            raise ValueError("Cannot bin a NaN value.")
        if value < self.xmin:
            return -1
        if value >= self.xmax:
            return self.nbins
        idx = int(math.floor((value - self.xmin) / (self.xmax - self.xmin) * self.nbins))
        idx = min(max(idx, 0), self.nbins - 1)
        # floating point can put the quotient one bin off near an edge
        if value < self.edge(idx):
            idx -= 1
        elif value >= self.edge(idx + 1):
            idx += 1
        return idx

    def fill(self, value, weight=1.0):
        """
        Adds one entry to the histogram.

        Out-of-range values are tallied in underflow/overflow and still
        contribute to entries and to the running sums used by mean() and
        variance().

        Args:
            value (float): The value to be added to the histogram.
            weight (float, optional): Amount added to the bucket. Defaults to 1.0.
        """
        value = float(value)
        idx = self.find_bin(value)
        if idx < 0:
            self.underflow += weight
        elif idx >= self.nbins:
            self.overflow += weight
        else:
            self.counts[idx] += weight
        self.entries += 1
        self.sum_weights += weight
        self.sum_values += weight * value
        self.sum_squares += weight * value * value

    def mean(self):
        """
        Returns the weighted mean of every filled value, in range or not.

        Raises:
            EmptyHistogram: If the histogram has no entries.
        """
        if self.entries == 0 or self.sum_weights == 0:
            raise EmptyHistogram(f"Histogram '{self.title}' has no entries.")
        return self.sum_values / self.sum_weights

    def variance(self):
        """
        Returns the weighted population variance of every filled value.

        Raises:
            EmptyHistogram: If the histogram has no entries.
        """
        mu = self.mean()
        var = self.sum_squares / self.sum_weights - mu * mu
        # cancellation can leave a tiny negative number
        return max(var, 0.0)

    def rms(self):
        return math.sqrt(self.variance())

    def integral(self, include_flow=False):
        """
        Returns the summed bucket contents.

        Args:
            include_flow (bool, optional): Also add underflow and overflow. Defaults to False.
        """
        total = math.fsum(self.counts)
        if include_flow:
            total += self.underflow + self.overflow
        return total

    def geometry(self):
        return (self.nbins, self.xmin, self.xmax)

    def same_geometry(self, other):
        return self.geometry() == other.geometry()

    def merge(self, other):
        """
        Adds the contents of another histogram with identical binning.

        Args:
            other (eventHist): The histogram to add into this one.

        Raises:
            GeometryMismatch: If the binning of the two histograms differs.
        """
        if not self.same_geometry(other):
            raise GeometryMismatch(
                f"Cannot merge {other.geometry()} into {self.geometry()}.")
        for i, c in enumerate(other.counts):
            self.counts[i] += c
        self.underflow += other.underflow
        self.overflow += other.overflow
        self.entries += other.entries
        self.sum_weights += other.sum_weights
        self.sum_values += other.sum_values
        self.sum_squares += other.sum_squares
        return self

    def copy(self):
        return copy.deepcopy(self)

    def getCounts(self, bin_index):
        """
        Returns the count of a specific bin.

        Args:
            bin_index (int): The index of the bin.

        Returns:
            float: The count of the specified bin, or 0 if the index is out of range.
        """
        if 0 <= bin_index < self.nbins:
            return self.counts[bin_index]
        return 0

    def bin_edges(self):
        """
        Returns a lazy, restartable sequence of the nbins + 1 bin edges.
        """
        return BinEdges(self)

    def get_edges(self):
        return list(self.bin_edges())

    def get_bin_centers(self):
        """
        Returns a list of the center values for each bin.
        """
        return [0.5 * (self.edge(i) + self.edge(i + 1)) for i in range(self.nbins)]

    def get_counts_array(self):
        return self.counts

    def __str__(self):
        lines = [f"{self.title}",
                 f"  entries = {self.entries}  underflow = {self.underflow:g}  overflow = {self.overflow:g}"]
        if self.entries > 0:
            lines.append(f"  mean = {self.mean():.5g}  rms = {self.rms():.5g}")
        for i, c in enumerate(self.counts):
            lines.append(f"  {self.edge(i):>10.4f} {self.edge(i + 1):>10.4f} {c:>12g}")
        return "\n".join(lines)

    def __repr__(self):
        return (f"eventHist(xmin={self.xmin}, xmax={self.xmax}, nbins={self.nbins}, "
                f"title={self.title!r}, entries={self.entries})")
