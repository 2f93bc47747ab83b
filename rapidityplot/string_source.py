# string_source.py
#
# Trial sources for the configuration sweep.
#
# A trial source is configured once per configuration and then asked for
# trials one at a time. Each trial exposes its outgoing particles as
# (status, rapidity) pairs. ToyStringSource is a small stand-alone model of
# a single q-qbar string hadronising into pions, enough to produce the
# rapidity plateau whose width grows with the string energy.
#

import math

import numpy as np

from rapidityplot.errors import GenerationFailed, InitializationFailed
from rapidityplot.plotting_functions import LINESTYLES, parse_style

# status codes of the event record
STATUS_INCOMING_PARTON = -23
STATUS_PRIMARY_QUARK_SIDE = 83
STATUS_PRIMARY_ANTIQUARK_SIDE = 84

# primary hadrons produced by fragmentation carry status 81..89
PRIMARY_STATUS_MIN = 81
PRIMARY_STATUS_MAX = 89

# constituent-like quark masses in GeV, indexed by PDG id 1..5
QUARK_MASSES = {1: 0.33, 2: 0.33, 3: 0.5, 4: 1.5, 5: 4.8}

PION_MASS = 0.13957  # GeV


def primary_hadron(status):
    """True for hadrons made directly by string fragmentation."""
    return PRIMARY_STATUS_MIN <= status <= PRIMARY_STATUS_MAX


def status_range(lo, hi):
    """Returns an inclusive status-range predicate."""
    def _select(status):
        return lo <= status <= hi
    return _select


class StringConfig:
    """
    Parameters of one string configuration.

    Args:
        mass (float): Invariant mass of the q-qbar string in GeV.
        n_trials (int, optional): Number of trials to generate. Defaults to 1000.
        quark_id (int, optional): PDG id of the quark, 1 (d) to 5 (b). Defaults to 1.
        massless_quarks (bool, optional): Ignore the quark mass. Defaults to True.
        pt_sigma (float, optional): Gaussian width of the hadron transverse
            momentum in GeV; 0 keeps the string in 1+1 dimensions. Defaults to 0.
        colour (str, optional): Plot colour for this configuration. Defaults to None.
        linestyle (str, optional): Plot line style. Defaults to "--".
        label (str, optional): Legend label. Defaults to "<mass> GeV string".
        seed (int, optional): Random seed of the trial source. Defaults to None.
    """

    FIELDS = ("mass", "n_trials", "quark_id", "massless_quarks", "pt_sigma",
              "colour", "linestyle", "label", "seed")

    def __init__(self, mass, n_trials=1000, quark_id=1, massless_quarks=True,
                 pt_sigma=0.0, colour=None, linestyle="--", label=None, seed=None):
        self.mass = float(mass)
        self.n_trials = int(n_trials)
        self.quark_id = int(quark_id)
        self.massless_quarks = bool(massless_quarks)
        self.pt_sigma = float(pt_sigma)
        self.colour = colour
        self.linestyle = linestyle
        self.label = label if label is not None else f"{self.mass:.2f} GeV string"
        self.seed = seed

        if self.n_trials < 0:
            raise ValueError(f"n_trials must be non-negative, got {self.n_trials}.")
        if self.linestyle and self.linestyle not in LINESTYLES:
            raise ValueError(f"Unknown line style '{self.linestyle}', expected one of {sorted(LINESTYLES)}.")
        # fail here rather than after the trials have run
        parse_style(self.style)

    @classmethod
    def from_dict(cls, d):
        unknown = set(d) - set(cls.FIELDS)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**d)

    def to_dict(self):
        return {k: getattr(self, k) for k in self.FIELDS}

    @property
    def style(self):
        return ",".join(p for p in (self.linestyle, self.colour) if p)

    def __repr__(self):
        return f"StringConfig(mass={self.mass}, n_trials={self.n_trials}, label={self.label!r})"


class TrialSource:
    """
    Interface of a trial source.

    configure() raises InitializationFailed, generate_trial() raises
    GenerationFailed, entities() yields (status, rapidity) pairs.
    """

    def configure(self, config):
        raise NotImplementedError

    def generate_trial(self):
        raise NotImplementedError

    def entities(self, trial):
        raise NotImplementedError


class ToyStringSource(TrialSource):
    """
    Iterative light-cone fragmentation of a q-qbar string into pions.

    Hadrons are split off alternately at random from the quark (+) and
    antiquark (-) ends, taking a fraction z of the remaining light-cone
    momentum drawn from the Lund symmetric fragmentation function
    f(z) ~ (1-z)^a / z * exp(-b mT^2 / z). The string stops when what is
    left can only make one more hadron, which closes the event.
    """

    def __init__(self, lund_a=0.68, lund_b=0.98, hadron_mass=PION_MASS, max_hadrons=10000):
        self.lund_a = lund_a
        self.lund_b = lund_b
        self.hadron_mass = hadron_mass
        self.max_hadrons = max_hadrons
        self.config = None
        self.rng = None

    def configure(self, config):
        if config.mass <= 0 or not math.isfinite(config.mass):
            raise InitializationFailed(f"String mass must be positive, got {config.mass}.")
        if config.quark_id not in QUARK_MASSES:
            raise InitializationFailed(f"Unsupported quark id {config.quark_id}, expected 1-5.")
        if config.pt_sigma < 0:
            raise InitializationFailed(f"pt_sigma must be non-negative, got {config.pt_sigma}.")

        self.quark_mass = 0.0 if config.massless_quarks else QUARK_MASSES[config.quark_id]
        if config.mass / 2 <= self.quark_mass:
            raise InitializationFailed(
                f"String mass {config.mass} GeV is below the q-qbar threshold.")
        if config.mass < 2 * self.hadron_mass:
            raise InitializationFailed(
                f"String mass {config.mass} GeV cannot produce two hadrons.")

        self.config = config
        self.rng = np.random.default_rng(config.seed)

        # envelope for the rejection sampling of z at the pion mT
        mt2 = self.hadron_mass ** 2
        zgrid = np.linspace(1e-4, 1.0 - 1e-9, 20000)
        self._fmax = 1.1 * np.max(self._lund(zgrid, mt2))
        return self

    def _lund(self, z, mt2):
        return (1.0 - z) ** self.lund_a / z * np.exp(-self.lund_b * mt2 / z)

    def _sample_z(self, mt2):
        for _ in range(1000):
            z = self.rng.uniform(0.0, 1.0, 64)
            u = self.rng.uniform(0.0, self._fmax, 64)
            ok = np.nonzero((z > 0) & (u < self._lund(z, mt2)))[0]
            if ok.size:
                return z[ok[0]]
        raise GenerationFailed("Could not sample a fragmentation fraction.")

    def _transverse_mass2(self):
        mt2 = self.hadron_mass ** 2
        if self.config.pt_sigma > 0:
            px, py = self.rng.normal(0.0, self.config.pt_sigma, 2)
            mt2 += px * px + py * py
        return mt2

    def generate_trial(self):
        """
        Generates one string break-up.

        Returns:
            list: (status, rapidity) tuples, partons first, then hadrons.

        Raises:
            GenerationFailed: If the source is not configured or the string
                does not close within max_hadrons breaks.
        """
        if self.config is None:
            raise GenerationFailed("Trial source used before configure().")

        w = self.config.mass
        ee = w / 2
        pz = math.sqrt(max(ee * ee - self.quark_mass ** 2, 0.0))
        # massless partons along z have unbounded rapidity, keep it finite
        y_parton = 0.5 * math.log((ee + pz) / max(ee - pz, 1e-300))
        record = [(STATUS_INCOMING_PARTON, y_parton), (STATUS_INCOMING_PARTON, -y_parton)]

        wplus = w
        wminus = w
        for _ in range(self.max_hadrons):
            mt2 = self._transverse_mass2()
            # remaining invariant mass squared too small for another split
            if wplus * wminus < (2 * math.sqrt(mt2) + self.hadron_mass) ** 2:
                break
            z = self._sample_z(mt2)
            if self.rng.random() < 0.5:
                pplus = z * wplus
                pminus = mt2 / pplus
                status = STATUS_PRIMARY_QUARK_SIDE
            else:
                pminus = z * wminus
                pplus = mt2 / pminus
                status = STATUS_PRIMARY_ANTIQUARK_SIDE
            if pplus >= wplus or pminus >= wminus \
                    or (wplus - pplus) * (wminus - pminus) < self.hadron_mass ** 2:
                # remainder could not form a hadron, try again
                continue
            wplus -= pplus
            wminus -= pminus
            record.append((status, 0.5 * math.log(pplus / pminus)))
        else:
            raise GenerationFailed(
                f"String of mass {w} GeV did not close after {self.max_hadrons} breaks.")

        # whatever is left forms the final hadron
        record.append((STATUS_PRIMARY_QUARK_SIDE, 0.5 * math.log(wplus / wminus)))
        return record

    def entities(self, trial):
        return iter(trial)
