# statistics.py
#
# Per-series numbers printed next to the plot: entries, moments, flow bins
# and the width of a gaussian fitted to the central region.
#

import json
import os
import warnings

import numpy as np
import pandas as pd
from scipy.optimize import curve_fit

from rapidityplot.errors import EmptyHistogram


def func_gaus(x, a, b, x0):
    return a * np.exp(- (x-x0)**2/2/b**2)


def fit_gaussian(hist):
    """
    Fits a gaussian to the bin contents of a histogram.

    Returns:
        tuple: (amplitude, sigma, mean). NaN when the fit fails or there is
               not enough data.
    """
    x = np.array(hist.get_bin_centers())
    y = np.array(hist.get_counts_array(), dtype=float)
    if np.count_nonzero(y) < 3:
        return np.nan, np.nan, np.nan

    p0 = [y.max(), max(hist.rms(), hist.dx), x[np.argmax(y)]]
    try:
        popt, pcov = curve_fit(func_gaus, x, y, p0=p0, maxfev=10000)
    except (RuntimeError, ValueError) as e:
        warnings.warn(f"Gaussian fit failed for '{hist.title}': {e}")
        return np.nan, np.nan, np.nan
    a, b, x0 = popt
    return a, abs(b), x0


def summary_row(series):
    hist = series.histogram
    row = {
        "label": series.label,
        "entries": hist.entries,
        "underflow": hist.underflow,
        "overflow": hist.overflow,
        "integral": hist.integral(),
    }
    try:
        row["mean"] = hist.mean()
        row["rms"] = hist.rms()
        row["variance"] = hist.variance()
    except EmptyHistogram:
        row["mean"] = row["rms"] = row["variance"] = np.nan
    row["fit_sigma"] = fit_gaussian(hist)[1]
    return row


def summary_table(series_list):
    """
    Builds a DataFrame with one row of statistics per series.

    Args:
        series_list (iterable): Series objects, e.g. PlotComposer.series.

    Returns:
        pd.DataFrame: indexed by label.
    """
    columns = ["label", "entries", "mean", "rms", "variance",
               "underflow", "overflow", "integral", "fit_sigma"]
    rows = [summary_row(s) for s in series_list]
    return pd.DataFrame(rows, columns=columns).set_index("label")


def print_summary(series_list):
    df = summary_table(series_list)
    print('============================')
    with pd.option_context("display.float_format", "{:.4g}".format, "display.width", 120):
        print(df)
    print('============================')
    return df


# Function to append a per-label result to a JSON file
def append_result_to_json(file_path, label, x):
    # Check if the file exists
    if os.path.exists(file_path):
        with open(file_path, 'r') as json_file:
            data = json.load(json_file)
    else:
        data = {}

    data[label] = {"x": x}

    with open(file_path, 'w') as json_file:
        json.dump(data, json_file, indent=4)


def write_summary_json(file_path, series_list):
    """Stores every summary row under its label, keeping other labels in the file."""
    for s in series_list:
        row = summary_row(s)
        row.pop("label")
        # NaN is not valid JSON
        row = {k: (None if isinstance(v, float) and np.isnan(v) else float(v)) for k, v in row.items()}
        append_result_to_json(file_path, s.label, row)
