# rapidityplot.py
#
# - histogram rapidities of primary hadrons from a single q-qbar string
# - one histogram per string energy, overlaid in one plot
#
# Usage: python rapidityplot.py [sweep.json] [-o rapidityplot.pdf] [-j 3] [-q]
#
import os
import sys
import argparse

from rapidityplot.errors import RenderTargetUnavailable
from rapidityplot.hdf_writer import write_composer
from rapidityplot.plotting_functions import PlotComposer
from rapidityplot.statistics import print_summary, write_summary_json
from rapidityplot.string_source import StringConfig
from rapidityplot.sweep import ConfigurationSweep, load_sweep_config

# --- Constants ---
# Invariant string energies to simulate (GeV) and their plot colours.
MASSES = [5, 20, 100]
PLOT_COLOURS = ["steelblue", "seagreen", "indianred"]

# Trials per string energy.
N_TRIALS = 1000000

# PDG id of the quark: 1 down, 2 up, 3 strange, 4 charm, 5 bottom.
QUARK_ID = 1
MASSLESS_QUARKS = True

# 0 keeps the string in 1+1 dimensions.
PT_SIGMA = 0.0

NBINS = 100
XMIN = -10.
XMAX = 10.
OUTPUT = "rapidityplot.pdf"


def default_configs():
    return [StringConfig(mass, n_trials=N_TRIALS, quark_id=QUARK_ID,
                         massless_quarks=MASSLESS_QUARKS, pt_sigma=PT_SIGMA,
                         colour=colour, linestyle="--", seed=i)
            for i, (mass, colour) in enumerate(zip(MASSES, PLOT_COLOURS))]


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Histogram primary hadron rapidities for several string energies and overlay them.")
    parser.add_argument("config", nargs="?", default=None,
                        help="JSON sweep description (default: the built-in 5/20/100 GeV sweep)")
    parser.add_argument("-o", "--output", default=None,
                        help=f"Plot file; summary JSON and HDF5 are written next to it (default: {OUTPUT})")
    parser.add_argument("-j", "--workers", type=int, default=None,
                        help="Number of processes running configurations in parallel")
    parser.add_argument("-q", "--quiet", action="store_true", help="No progress output")
    args = parser.parse_args(args)

    options = {}
    if args.config is not None:
        configs, options = load_sweep_config(args.config)
    else:
        configs = default_configs()

    output = args.output or options.get("output", OUTPUT)
    outdir = os.path.dirname(os.path.abspath(output))
    if not os.path.isdir(outdir):
        print(f"Error: output directory '{outdir}' does not exist.")
        return 1

    composer = PlotComposer("Rapidity distributions of primary hadrons for differing string energies",
                            "y", "n")

    sweep = ConfigurationSweep(configs,
                               nbins=options.get("nbins", NBINS),
                               xmin=options.get("xmin", XMIN),
                               xmax=options.get("xmax", XMAX),
                               workers=args.workers or options.get("workers", 1),
                               progress=not args.quiet, quiet=args.quiet)
    results = sweep.run(composer)

    if not args.quiet:
        for res in results:
            print(res.histogram)
    print_summary(composer.series)

    if len(composer) == 0:
        print("Error: no configuration produced a histogram.")
        return 1

    # the plot first, nothing else is written if it cannot be
    try:
        composer.render(output, normalize=options.get("normalize"), logy=options.get("logy", False))
    except RenderTargetUnavailable as e:
        print(f"Error: {e}")
        return 1
    print(f"Saved plot to {output}")

    base = os.path.splitext(output)[0]
    write_summary_json(f"{base}_summary.json", composer.series)
    write_composer(f"{base}.hdf5", composer, description="rapidity sweep",
                   userdict={"config{0:03d}".format(i): c.to_dict() for i, c in enumerate(configs)})
    return 0


if __name__ == "__main__":
    sys.exit(main())
