# sweep.py
#
# Run one histogram per string configuration and hand the finished
# histograms to a PlotComposer.
#
# Each configuration gets a fresh trial source and a fresh histogram, so
# configurations share no state and may run in separate processes. Only
# the driving process touches the composer.
#

import json
import warnings
from concurrent.futures import ProcessPoolExecutor

from tqdm import tqdm

from rapidityplot.errors import GenerationFailed, InitializationFailed
from rapidityplot.eventHist import eventHist
from rapidityplot.plotting_functions import Series
from rapidityplot.string_source import StringConfig, ToyStringSource, primary_hadron

DEFAULT_TITLE = "Rapidity distribution dn/dy of primary hadrons"


class ConfigurationResult:
    """Outcome of one configuration: its histogram and how the trial loop ended."""

    def __init__(self, config, histogram, n_requested, n_generated, failure=None):
        self.config = config
        self.histogram = histogram
        self.n_requested = n_requested
        self.n_generated = n_generated
        self.failure = failure

    @property
    def complete(self):
        return self.failure is None and self.n_generated == self.n_requested

    def to_series(self):
        return Series(self.histogram, self.config.style, self.config.label)

    def __repr__(self):
        return (f"ConfigurationResult(label={self.config.label!r}, "
                f"trials={self.n_generated}/{self.n_requested}, entries={self.histogram.entries})")


def run_configuration(config, source_factory=ToyStringSource, selector=primary_hadron,
                      nbins=100, xmin=-10., xmax=10., title=DEFAULT_TITLE,
                      progress=False, quiet=True):
    """
    Generates config.n_trials trials and histograms the selected rapidities.

    A GenerationFailed stops the trial loop; the histogram filled so far is
    returned with the failure message attached.

    Args:
        config (StringConfig): The configuration to run.
        source_factory (callable, optional): Builds an unconfigured TrialSource.
        selector (callable, optional): Status predicate for entities to fill.
        nbins, xmin, xmax: Histogram binning.
        title (str, optional): Histogram title.
        progress (bool, optional): Show a tqdm bar over trials. Defaults to False.
        quiet (bool, optional): Suppress progress printing. Defaults to True.

    Returns:
        ConfigurationResult

    Raises:
        InitializationFailed: If the source rejects the configuration.
        InvalidGeometry: If the binning is invalid.
    """
    hist = eventHist(xmin, xmax, nbins, title=title, xlabel="y", ylabel="n")

    if not quiet:
        print(f"Initialising trial source for q-qbar hadronisation, string mass = {config.mass:g}")
    source = source_factory()
    source.configure(config)

    n_generated = 0
    failure = None
    trials = range(config.n_trials)
    if progress:
        trials = tqdm(trials, desc=config.label, leave=False)
    for _ in trials:
        try:
            trial = source.generate_trial()
        except GenerationFailed as e:
            failure = str(e)
            warnings.warn(f"Trial generation failed for '{config.label}' after "
                          f"{n_generated} of {config.n_trials} trials: {e}")
            break
        n_generated += 1
        for status, rapidity in source.entities(trial):
            if selector(status):
                hist.fill(rapidity)

    return ConfigurationResult(config, hist, config.n_trials, n_generated, failure)


class ConfigurationSweep:
    """
    Loops over string configurations and fills a PlotComposer.

    Args:
        configs (list): StringConfig instances, in legend order.
        source_factory (callable, optional): Builds a TrialSource per configuration.
            Must be picklable when workers > 1.
        selector (callable, optional): Status predicate. Must be picklable
            when workers > 1.
        nbins, xmin, xmax: Shared histogram binning.
        title (str, optional): Histogram title.
        workers (int, optional): Number of processes; 1 runs in-process.
        skip_failed (bool, optional): Warn and skip configurations whose source
            fails to initialise instead of aborting. Defaults to True.
        progress (bool, optional): Show tqdm bars. Defaults to True.
        quiet (bool, optional): Suppress progress printing. Defaults to False.
    """

    def __init__(self, configs, source_factory=ToyStringSource, selector=primary_hadron,
                 nbins=100, xmin=-10., xmax=10., title=DEFAULT_TITLE,
                 workers=1, skip_failed=True, progress=True, quiet=False):
        self.configs = list(configs)
        self.source_factory = source_factory
        self.selector = selector
        self.nbins = nbins
        self.xmin = xmin
        self.xmax = xmax
        self.title = title
        self.workers = max(int(workers), 1)
        self.skip_failed = skip_failed
        self.progress = progress
        self.quiet = quiet
        self.failures = {}

    def _kwargs(self):
        return dict(source_factory=self.source_factory, selector=self.selector,
                    nbins=self.nbins, xmin=self.xmin, xmax=self.xmax, title=self.title)

    def _handle_init_failure(self, config, e):
        if not self.skip_failed:
            raise e
        self.failures[config.label] = str(e)
        warnings.warn(f"Skipping configuration '{config.label}': {e}")

    def _run_serial(self):
        outcomes = []
        for config in self.configs:
            try:
                outcomes.append(run_configuration(config, progress=self.progress,
                                                  quiet=self.quiet, **self._kwargs()))
            except InitializationFailed as e:
                self._handle_init_failure(config, e)
        return outcomes

    def _run_parallel(self):
        outcomes = []
        with ProcessPoolExecutor(max_workers=self.workers) as pool:
            futures = [pool.submit(run_configuration, config, **self._kwargs())
                       for config in self.configs]
            # collect in configuration order so the legend order is stable
            for config, future in zip(self.configs, tqdm(futures, desc="Configurations",
                                                         disable=not self.progress)):
                try:
                    outcomes.append(future.result())
                except InitializationFailed as e:
                    self._handle_init_failure(config, e)
        return outcomes

    def run(self, composer=None):
        """
        Runs every configuration and adds one Series per result to composer.

        Returns:
            list: ConfigurationResult per configuration that initialised.

        Raises:
            InitializationFailed: If skip_failed is False and a source fails.
            GeometryMismatch: If composer already holds series of another binning.
        """
        self.failures = {}
        if self.workers > 1 and len(self.configs) > 1:
            results = self._run_parallel()
        else:
            results = self._run_serial()

        for res in results:
            if not self.quiet:
                print(f"{res.config.label}: {res.n_generated}/{res.n_requested} trials, "
                      f"{res.histogram.entries} entries")
            if composer is not None:
                composer.add(res.to_series())
        return results


def load_sweep_config(path):
    """
    Reads a sweep description from a JSON file.

    The file holds a "configurations" list of StringConfig mappings and any
    of the optional keys "nbins", "xmin", "xmax", "workers", "output",
    "normalize", "logy" and "defaults" (merged into every configuration).

    Returns:
        tuple: (list of StringConfig, dict of the remaining options)
    """
    with open(path, 'r') as json_file:
        data = json.load(json_file)

    if "configurations" not in data:
        raise ValueError(f"'{path}' has no 'configurations' list.")
    defaults = data.pop("defaults", {})
    configs = [StringConfig.from_dict({**defaults, **c}) for c in data.pop("configurations")]
    return configs, data
