# histnd/cli/fill_hist.py
from __future__ import annotations

import argparse
import os
import pickle
import sys

import numpy as np
import yaml

import histnd as hn
from histnd.config.axes import (
    config_from_histogram,
    histogram_from_config,
    load_config,
)
from histnd.storage.state import save


def demo_histogram(title="demo"):
    """The two-axis layout used when no --config is given."""
    return hn.create(
        title,
        hn.linear(0, 10, 11, "dimension"),
        hn.General([0, 1, 2], "general"),
    )


def read_columns(path, ncols):
    """Read a text table (whitespace or comma separated, '#' comments)."""
    with open(path, "r") as f:
        first = ""
        for line in f:
            if line.strip() and not line.lstrip().startswith("#"):
                first = line
                break
    delimiter = "," if "," in first else None
    data = np.loadtxt(path, delimiter=delimiter, ndmin=2, comments="#")
    if data.size == 0:
        return np.empty((0, ncols))
    if data.shape[1] != ncols:
        raise ValueError(f"{path}: expected {ncols} columns, found {data.shape[1]}")
    return data


def print_summary(h, out=sys.stdout):
    print(f"title: {h.title()!r}", file=out)
    print(f"shape: {list(h.shape())}", file=out)
    print(f"labels: {h.labels()}", file=out)
    print(f"binedges: {[e.tolist() for e in h.binedges()]}", file=out)
    print(f"entries: {h.n_entries()}", file=out)


def main(argv=None):
    ap = argparse.ArgumentParser(
        description="Fill an N-D histogram from a text table and store it in a pickle file."
    )
    ap.add_argument("--config", "-c", help="YAML file describing the dimensions")
    ap.add_argument(
        "--input",
        "-i",
        nargs="*",
        default=[],
        help="Text tables, one column per dimension (plus weight with --weighted)",
    )
    ap.add_argument("--output", "-o", help="Output pickle file")
    ap.add_argument("--where", default="/", help="Group path inside the output (default: /)")
    ap.add_argument("--name", default="histogram", help="Entry name (default: histogram)")
    ap.add_argument("--title", default=None, help="Override the histogram title")
    ap.add_argument(
        "--weighted", action="store_true", help="Last input column holds the weight"
    )
    ap.add_argument(
        "--overwrite", action="store_true", help="Replace an existing entry of the same name"
    )
    ap.add_argument(
        "--dump-config", action="store_true", help="Print the dimension config as YAML and exit"
    )
    ap.add_argument("-v", "--verbose", action="store_true")

    args = ap.parse_args(argv)

    try:
        if args.config:
            h = histogram_from_config(load_config(args.config), title=args.title)
        else:
            h = demo_histogram(args.title if args.title is not None else "demo")
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        print(f"[ERROR] bad dimension config: {e}", file=sys.stderr)
        return 2

    if args.dump_config:
        print(yaml.safe_dump(config_from_histogram(h), sort_keys=False), end="")
        return 0

    if args.verbose:
        print(f"[INFO] {h!r}")

    ncols = h.ndim() + (1 if args.weighted else 0)
    n_rows = 0
    for path in args.input:
        if not os.path.isfile(path):
            print(f"[ERROR] no such input file: {path}", file=sys.stderr)
            return 2
        try:
            data = read_columns(path, ncols)
        except ValueError as e:
            print(f"[ERROR] {e}", file=sys.stderr)
            return 2

        coords = [data[:, k] for k in range(h.ndim())]
        weights = data[:, -1] if args.weighted else None
        n_ok = h.fill_many(*coords, weights=weights)
        n_rows += len(data)
        if n_ok != len(data):
            print(
                f"[WARN] {path}: skipped {len(data) - n_ok} rows with NaN coordinates",
                file=sys.stderr,
            )
        if args.verbose:
            print(f"[OK] {path}: {n_ok} entries")

    if not args.input:
        # no data: a single entry, like the original demo program
        h.fill(1.0, *([1.0] * (h.ndim() - 1)))
        n_rows = 1

    print_summary(h)

    if args.output:
        output = os.path.abspath(args.output)
        try:
            save(h, output, where=args.where, name=args.name, overwrite=args.overwrite)
        except (OSError, ValueError, EOFError, pickle.UnpicklingError) as e:
            print(f"[ERROR] cannot save histogram: {e}", file=sys.stderr)
            return 2
        print(f"Saved {args.name} ({n_rows} rows) → {output}")

    if args.verbose:
        print("[DONE]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
