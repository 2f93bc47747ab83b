import math

import numpy as np
import pytest

from rapidityplot.errors import EmptyHistogram, GeometryMismatch, InvalidGeometry
from rapidityplot.eventHist import eventHist


@pytest.mark.parametrize("xmin,xmax,nbins", [
    (0, 10, 0),
    (0, 10, -3),
    (5, 5, 10),
    (10, 0, 10),
    (0, float("inf"), 10),
])
def test_invalid_geometry(xmin, xmax, nbins):
    with pytest.raises(InvalidGeometry):
        eventHist(xmin, xmax, nbins)


def test_invalid_geometry_is_value_error():
    with pytest.raises(ValueError):
        eventHist(0, 1, 0)


def test_new_histogram_is_zeroed():
    h = eventHist(-10, 10, 100, title="dndy")
    assert h.counts == [0.0] * 100
    assert h.underflow == 0 and h.overflow == 0
    assert h.entries == 0
    assert h.sum_values == 0 and h.sum_squares == 0


def test_bin_placement():
    h = eventHist(0, 10, 10)
    h.fill(5.0)
    h.fill(9.999)
    h.fill(10.0)
    h.fill(-0.001)
    assert h.counts[5] == 1
    assert h.counts[9] == 1
    assert h.overflow == 1
    assert h.underflow == 1
    assert h.entries == 4


def test_values_on_edges_go_to_upper_bin():
    h = eventHist(-10, 10, 100)
    for i, e in enumerate(h.bin_edges()):
        if i == h.nbins:
            assert h.find_bin(e) == h.nbins
        else:
            assert h.find_bin(e) == i


def test_awkward_range_edges_consistent():
    h = eventHist(0.1, 0.7, 3)
    for i in range(h.nbins):
        assert h.find_bin(h.edge(i)) == i
        assert h.find_bin(np.nextafter(h.edge(i + 1), -np.inf)) == i


def test_count_conservation():
    rng = np.random.default_rng(1)
    h = eventHist(-2, 2, 37)
    values = rng.normal(0, 1.5, 5000)
    for v in values:
        h.fill(v)
    assert sum(h.counts) + h.underflow + h.overflow == len(values)
    assert h.entries == len(values)
    assert h.underflow > 0 and h.overflow > 0


def test_weighted_count_conservation():
    rng = np.random.default_rng(2)
    h = eventHist(0, 1, 10)
    weights = rng.uniform(0.1, 2.0, 1000)
    for v, w in zip(rng.uniform(-0.5, 1.5, 1000), weights):
        h.fill(v, w)
    assert math.isclose(sum(h.counts) + h.underflow + h.overflow, weights.sum())
    assert h.entries == 1000


def test_infinite_values_go_to_flow_bins():
    h = eventHist(0, 1, 4)
    h.fill(float("inf"))
    h.fill(float("-inf"))
    assert h.overflow == 1 and h.underflow == 1


def test_nan_is_rejected():
    h = eventHist(0, 1, 4)
    with pytest.raises(ValueError):
        h.fill(float("nan"))
    assert h.entries == 0


def test_mean_and_variance():
    h = eventHist(0, 10, 10)
    for v in [1, 2, 3, 4]:
        h.fill(v)
    assert h.mean() == pytest.approx(2.5)
    assert h.variance() == pytest.approx(1.25)
    assert h.rms() == pytest.approx(math.sqrt(1.25))


def test_statistics_include_out_of_range_values():
    h = eventHist(0, 1, 10)
    h.fill(0.5)
    h.fill(100.0)
    assert h.mean() == pytest.approx(50.25)


def test_empty_statistics_raise():
    h = eventHist(0, 1, 10)
    with pytest.raises(EmptyHistogram):
        h.mean()
    with pytest.raises(EmptyHistogram):
        h.variance()


def test_bin_edges_lazy_and_restartable():
    h = eventHist(-1, 1, 4)
    edges = h.bin_edges()
    assert len(edges) == 5
    first = list(edges)
    second = list(edges)
    assert first == second == [-1.0, -0.5, 0.0, 0.5, 1.0]
    assert edges[-1] == 1.0
    with pytest.raises(IndexError):
        edges[5]


def test_bin_centers():
    h = eventHist(0, 4, 4)
    assert h.get_bin_centers() == [0.5, 1.5, 2.5, 3.5]


def test_get_counts_out_of_range_is_zero():
    h = eventHist(0, 4, 4)
    h.fill(1.2)
    assert h.getCounts(1) == 1
    assert h.getCounts(-1) == 0
    assert h.getCounts(4) == 0


def test_merge():
    a = eventHist(0, 10, 10)
    b = eventHist(0, 10, 10)
    for v in [1, 2, 11]:
        a.fill(v)
    for v in [2, -1]:
        b.fill(v)
    a.merge(b)
    assert a.entries == 5
    assert a.counts[2] == 2
    assert a.underflow == 1 and a.overflow == 1
    assert a.mean() == pytest.approx((1 + 2 + 11 + 2 - 1) / 5)


def test_merge_mismatch():
    with pytest.raises(GeometryMismatch):
        eventHist(0, 10, 10).merge(eventHist(0, 5, 10))


def test_text_dump():
    h = eventHist(0, 2, 2, title="dndy")
    h.fill(0.5)
    text = str(h)
    assert text.startswith("dndy")
    assert "entries = 1" in text
    assert len(text.splitlines()) == 2 + 1 + 2
