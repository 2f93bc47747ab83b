import time

import h5py
import numpy as np


# format of a stored rapidity sweep
'''
N = 000, 001, ... in insertion (legend) order
/data/histN/counts       [nbins];   float64
/data/histN/edges        [nbins+1]; float64
/data/histN/underflow    ; float64
/data/histN/overflow     ; float64
/data/histN/entries      ; int64
/data/histN/sum_weights  ; float64
/data/histN/sum_values   ; float64
/data/histN/sum_squares  ; float64
/data/histN/title        ; string
/data/histN/label        ; string
/data/histN/style        ; string

/metadata/Nhist          ; int32
/metadata/frame_title    ; string
/metadata/xlabel         ; string
/metadata/ylabel         ; string
/metadata/creatorname    ; string
/metadata/description    ; string
/metadata/date           ; float64  unix time
/metadata/userdict       ; dictionary to save extra information (e.g. the sweep configurations)

userdict may nest dictionaries; values must be number/ndarray/list/dictionary/string.
Read it back with hdf_reader.load_dict(f, "metadata/userdict").
'''


class HDFWriterHistograms():

    def __init__(self):
        self.FrameTitle  = None
        self.XLabel      = None
        self.YLabel      = None
        self.CreatorName = None
        self.Description = None
        self.UserDict    = None
        self.entries = []

    def fill(self, hist, label, style=""):
        '''
        Queue one histogram for writing. The current contents are copied.
        '''
        self.entries.append({
            "counts":      np.asarray(hist.get_counts_array(), dtype=np.float64).copy(),
            "edges":       np.asarray(hist.get_edges(), dtype=np.float64),
            "underflow":   np.float64(hist.underflow),
            "overflow":    np.float64(hist.overflow),
            "entries":     np.int64(hist.entries),
            "sum_weights": np.float64(hist.sum_weights),
            "sum_values":  np.float64(hist.sum_values),
            "sum_squares": np.float64(hist.sum_squares),
            "title":       str(hist.title),
            "label":       str(label),
            "style":       str(style),
        })

    def fill_series(self, series_list):
        for s in series_list:
            self.fill(s.histogram, s.label, s.style)

    def fill_metadata(self, frame_title, xlabel, ylabel, creatorname="", description="", userdict=None):
        self.FrameTitle  = str(frame_title)
        self.XLabel      = str(xlabel)
        self.YLabel      = str(ylabel)
        self.CreatorName = str(creatorname)
        self.Description = str(description)
        self.UserDict    = userdict

    def check_formattype(self):
        OK = True
        if len(self.entries) == 0:
            print("Error! no histogram was filled!")
            return False
        for i, e in enumerate(self.entries):
            if e["edges"].size != e["counts"].size + 1:
                print("Error! hist{0:03d} has {1} edges for {2} bins".format(i, e["edges"].size, e["counts"].size))
                OK = False
            if not np.all(np.diff(e["edges"]) > 0):
                print("Error! hist{0:03d} edges are not increasing".format(i))
                OK = False
        return OK

    def save_dict(self, h5file, path, dic):

        # argument type checking
        if not isinstance(dic, dict):
            raise ValueError("must provide a dictionary")
        if not isinstance(path, str):
            raise ValueError("path must be a string")
        if not isinstance(h5file, h5py.File):
            raise ValueError("must be an open h5py file")

        for key, item in dic.items():
            key = str(key)
            if isinstance(item, (list, tuple)):
                item = np.array(item)
            if item is None:
                continue
            # save strings, numbers and bools
            if isinstance(item, (np.integer, np.floating, np.bool_, str, float, int, bool)):
                h5file[path + key] = item
            elif isinstance(item, np.ndarray):
                if item.dtype.kind == 'U':
                    item = item.astype(h5py.string_dtype())
                h5file[path + key] = item
            elif isinstance(item, dict):
                self.save_dict(h5file, path + key + '/', item)
            # other types cannot be saved and will result in an error
            else:
                raise ValueError('Cannot save %s type.' % type(item))

    def write(self, filename, compression="gzip"):
        '''
        Write every queued histogram and the metadata to an HDF5 file.
        Raises ValueError when metadata is missing or the format check fails.
        '''
        if self.FrameTitle is None:
            raise ValueError("metadata is not yet set, call fill_metadata() first")

        if not self.check_formattype():
            raise ValueError("format check failed, nothing was written")

        strtype = h5py.string_dtype()
        with h5py.File(filename, "w") as f:
            data = f.create_group("data")
            meta = f.create_group("metadata")
            for i, e in enumerate(self.entries):
                g = data.create_group("hist{0:03d}".format(i))
                g.create_dataset("counts", data=e["counts"], compression=compression)
                g.create_dataset("edges",  data=e["edges"], compression=compression)
                for key in ("underflow", "overflow", "entries", "sum_weights", "sum_values", "sum_squares"):
                    g.create_dataset(key, data=e[key])
                for key in ("title", "label", "style"):
                    g.create_dataset(key, data=e[key], dtype=strtype)

            meta.create_dataset("Nhist", data=np.int32(len(self.entries)))
            meta.create_dataset("frame_title", data=self.FrameTitle, dtype=strtype)
            meta.create_dataset("xlabel", data=self.XLabel, dtype=strtype)
            meta.create_dataset("ylabel", data=self.YLabel, dtype=strtype)
            meta.create_dataset("creatorname", data=self.CreatorName, dtype=strtype)
            meta.create_dataset("description", data=self.Description, dtype=strtype)
            meta.create_dataset("date", data=time.time())
            if self.UserDict is not None:
                self.save_dict(f, "metadata/userdict/", self.UserDict)


def write_composer(filename, composer, creatorname="", description="", userdict=None):
    """Stores every series of a PlotComposer together with its frame."""
    hdf = HDFWriterHistograms()
    hdf.fill_metadata(composer.frame_title, composer.xlabel, composer.ylabel,
                      creatorname, description, userdict)
    hdf.fill_series(composer.series)
    hdf.write(filename)
    return filename
