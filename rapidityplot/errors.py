# errors.py
#
# Exceptions raised by the histogram, plotting and sweep layers.
# Library code only raises them; the driver decides whether to continue.
#

class RapidityPlotError(Exception):
    """Base class for every error raised by rapidityplot."""


class InvalidGeometry(RapidityPlotError, ValueError):
    """Histogram binning cannot be built (nbins <= 0 or xmin >= xmax)."""


class GeometryMismatch(RapidityPlotError, ValueError):
    """Two histograms that must share binning do not."""


class EmptyHistogram(RapidityPlotError, ArithmeticError):
    """A statistic was requested from a histogram with no entries."""


class InitializationFailed(RapidityPlotError):
    """The trial source could not be configured."""


class GenerationFailed(RapidityPlotError):
    """The trial source failed to produce a trial."""


class RenderTargetUnavailable(RapidityPlotError, OSError):
    """The rendered figure could not be written to its destination."""
