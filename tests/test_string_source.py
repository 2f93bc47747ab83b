import math

import numpy as np
import pytest

from rapidityplot.errors import GenerationFailed, InitializationFailed
from rapidityplot.string_source import (PION_MASS, STATUS_INCOMING_PARTON, StringConfig,
                                        ToyStringSource, primary_hadron, status_range)


def rapidities(mass, n_trials=200, seed=7, pt_sigma=0.0):
    source = ToyStringSource().configure(StringConfig(mass, seed=seed, pt_sigma=pt_sigma))
    ys = []
    for _ in range(n_trials):
        ys.extend(y for status, y in source.entities(source.generate_trial()) if primary_hadron(status))
    return np.array(ys)


def test_primary_hadron_range():
    assert not primary_hadron(80)
    assert primary_hadron(81)
    assert primary_hadron(89)
    assert not primary_hadron(90)
    assert not primary_hadron(STATUS_INCOMING_PARTON)


def test_status_range_is_inclusive():
    select = status_range(1, 2)
    assert select(1) and select(2) and not select(3)


def test_config_defaults():
    c = StringConfig(5)
    assert c.label == "5.00 GeV string"
    assert c.style == "--"
    c = StringConfig(100, colour="indianred", linestyle=":")
    assert c.style == ":,indianred"


def test_config_from_dict():
    c = StringConfig.from_dict({"mass": 20, "n_trials": 10, "colour": "seagreen"})
    assert c.mass == 20.0 and c.n_trials == 10
    assert StringConfig.from_dict(c.to_dict()).to_dict() == c.to_dict()
    with pytest.raises(ValueError):
        StringConfig.from_dict({"mass": 20, "energy": 3})


def test_negative_trials_rejected():
    with pytest.raises(ValueError):
        StringConfig(5, n_trials=-1)


@pytest.mark.parametrize("kwargs", [
    dict(mass=-5),
    dict(mass=0.2),
    dict(mass=5, quark_id=6),
    dict(mass=5, pt_sigma=-1),
    dict(mass=5, quark_id=5, massless_quarks=False),
])
def test_configure_rejects_bad_parameters(kwargs):
    with pytest.raises(InitializationFailed):
        ToyStringSource().configure(StringConfig(**kwargs))


def test_generate_before_configure():
    with pytest.raises(GenerationFailed):
        ToyStringSource().generate_trial()


def test_trial_record():
    source = ToyStringSource().configure(StringConfig(20, seed=1))
    record = list(source.entities(source.generate_trial()))
    assert record[0][0] == STATUS_INCOMING_PARTON
    assert record[1][0] == STATUS_INCOMING_PARTON
    hadrons = [y for s, y in record if primary_hadron(s)]
    assert len(hadrons) >= 2
    ymax = math.log(20 / PION_MASS)
    assert all(abs(y) <= ymax + 1e-9 for y in hadrons)


def test_same_seed_same_trials():
    assert np.array_equal(rapidities(20, 20, seed=3), rapidities(20, 20, seed=3))


def test_spread_grows_with_energy():
    low = rapidities(5).std()
    mid = rapidities(20).std()
    high = rapidities(100).std()
    assert low < mid < high


def test_transverse_momentum_smearing_runs():
    ys = rapidities(20, 50, pt_sigma=0.4)
    assert ys.size > 0 and np.all(np.isfinite(ys))


def test_close_failure_raises():
    source = ToyStringSource(max_hadrons=1).configure(StringConfig(100, seed=0))
    with pytest.raises(GenerationFailed):
        source.generate_trial()


@pytest.mark.parametrize("kwargs", [
    dict(linestyle="dash", colour="steelblue"),
    dict(linestyle="dash"),
    dict(linestyle=None, colour="steelblue,indianred"),
])
def test_bad_style_rejected_on_construction(kwargs):
    with pytest.raises(ValueError):
        StringConfig(5, n_trials=5, **kwargs)


def test_bad_style_rejected_when_loading():
    with pytest.raises(ValueError):
        StringConfig.from_dict({"mass": 5, "linestyle": "dash", "colour": "steelblue"})
