from rapidityplot.errors import (RapidityPlotError, InvalidGeometry, GeometryMismatch,
                                 EmptyHistogram, InitializationFailed, GenerationFailed,
                                 RenderTargetUnavailable)
from rapidityplot.eventHist import eventHist, BinEdges
from rapidityplot.plotting_functions import Series, PlotComposer, step_arrays
from rapidityplot.string_source import (StringConfig, TrialSource, ToyStringSource,
                                        primary_hadron, status_range)
from rapidityplot.sweep import ConfigurationSweep, ConfigurationResult, run_configuration, load_sweep_config

__version__ = "0.1.0"
