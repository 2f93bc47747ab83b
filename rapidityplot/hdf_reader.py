# hdf_reader.py
#
# Read HDF5 files written by hdf_writer back into Python dictionaries,
# histograms and a PlotComposer.
#

import warnings

import h5py

from rapidityplot.eventHist import eventHist
from rapidityplot.plotting_functions import PlotComposer, Series


def _decode(value):
    if isinstance(value, bytes):
        try:
            value = value.decode('utf-8')
        except UnicodeDecodeError:
            warnings.warn("{0!r} could not be decoded, kept as bytes".format(value))
    return value


def read_hdf_to_dict_recursive(hdf_group_or_file, current_dict=None):
    """
    Recursively reads an HDF5 group or file into a Python dictionary.

    Args:
        hdf_group_or_file: An h5py.File or h5py.Group object.
        current_dict (dict, optional): The dictionary to populate. Defaults to None.

    Returns:
        dict: A dictionary representation of the HDF5 structure.
    """
    if current_dict is None:
        current_dict = {}

    for key, item in hdf_group_or_file.items():
        if isinstance(item, h5py.Dataset):
            current_dict[key] = _decode(item[()])
        elif isinstance(item, h5py.Group):
            current_dict[key] = {}
            read_hdf_to_dict_recursive(item, current_dict[key])
    return current_dict


def load_hdf_file_as_dict(filepath):
    """
    Opens an HDF5 file and loads its entire content into a Python dictionary.

    Raises:
        OSError: If the file cannot be opened.
    """
    with h5py.File(filepath, 'r') as f:
        return read_hdf_to_dict_recursive(f)


def load_dict(h5file, path):
    return read_hdf_to_dict_recursive(h5file[path])


def hist_from_dict(d):
    """
    Rebuilds an eventHist from one /data/histN group loaded as a dict.
    """
    edges = d["edges"]
    counts = d["counts"]
    hist = eventHist(edges[0], edges[-1], len(counts), title=d.get("title", ""))
    hist.counts = [float(c) for c in counts]
    hist.underflow = float(d["underflow"])
    hist.overflow = float(d["overflow"])
    hist.entries = int(d["entries"])
    hist.sum_weights = float(d["sum_weights"])
    hist.sum_values = float(d["sum_values"])
    hist.sum_squares = float(d["sum_squares"])
    return hist


def load_histograms(filepath):
    """
    Loads every stored histogram as a Series, in the order it was written.

    Returns:
        tuple: (list of Series, metadata dict)
    """
    content = load_hdf_file_as_dict(filepath)
    if "data" not in content or "metadata" not in content:
        raise ValueError(f"Missing 'data' or 'metadata' group in {filepath}.")

    series = []
    for key in sorted(content["data"]):
        d = content["data"][key]
        series.append(Series(hist_from_dict(d), d.get("style", ""), d.get("label", key)))
    return series, content["metadata"]


def load_composer(filepath):
    """Rebuilds a PlotComposer ready to render from a stored sweep."""
    series, meta = load_histograms(filepath)
    composer = PlotComposer(meta.get("frame_title", ""), meta.get("xlabel", ""), meta.get("ylabel", ""))
    for s in series:
        composer.add(s)
    return composer
