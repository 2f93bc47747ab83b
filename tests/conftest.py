import matplotlib
matplotlib.use("Agg")

from rapidityplot.errors import GenerationFailed
from rapidityplot.string_source import TrialSource


class ScriptedSource(TrialSource):
    """Replays fixed trials; fails with GenerationFailed after fail_after trials."""

    def __init__(self, trial=None, fail_after=None):
        self.trial = trial if trial is not None else [(-23, 50.0), (83, 0.5), (84, -0.5), (1, 3.0)]
        self.fail_after = fail_after
        self.generated = 0

    def configure(self, config):
        self.config = config
        return self

    def generate_trial(self):
        if self.fail_after is not None and self.generated >= self.fail_after:
            raise GenerationFailed("scripted failure")
        self.generated += 1
        return self.trial

    def entities(self, trial):
        return iter(trial)


class FailAfter500(ScriptedSource):
    def __init__(self):
        super().__init__(fail_after=500)
