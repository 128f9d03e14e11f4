#!/usr/bin/env python3
import argparse
import pickle
import pprint
import sys
from pathlib import Path

import numpy as np

from histnd.storage.state import is_histogram_state


def summarize(state):
    """Short description of a stored histogram state."""
    ndim = state["ndim"]
    return {
        "title": state.get("title", ""),
        "ndim": ndim,
        "nentries": state.get("nentries", 0),
        "shape": list(np.shape(state["_h_bincontent"])),
        "labels": [state.get(f"label_{i}", "") for i in range(ndim)],
        "sum_of_weights": float(np.sum(state["_h_bincontent"])),
    }


def truncate(obj, max_items=10, max_depth=4, summary=False, _depth=0):
    if summary and is_histogram_state(obj):
        return summarize(obj)

    if _depth >= max_depth:
        return "..."

    if isinstance(obj, dict):
        out = {}
        for i, (k, v) in enumerate(obj.items()):
            if i >= max_items:
                out["..."] = f"{len(obj) - max_items} more items"
                break
            out[k] = truncate(v, max_items, max_depth, summary, _depth + 1)
        return out

    if isinstance(obj, list):
        if len(obj) > max_items:
            return (
                [
                    truncate(x, max_items, max_depth, summary, _depth + 1)
                    for x in obj[: max_items // 2]
                ]
                + ["..."]
                + [
                    truncate(x, max_items, max_depth, summary, _depth + 1)
                    for x in obj[-max_items // 2 :]
                ]
            )
        return [truncate(x, max_items, max_depth, summary, _depth + 1) for x in obj]

    return obj


def main(argv=None):
    ap = argparse.ArgumentParser(description="Print the contents of a histnd pickle file.")
    ap.add_argument("file", help="Pickle file written by histnd-fill")
    ap.add_argument(
        "--summary", "-s", action="store_true", help="One summary per stored histogram"
    )
    ap.add_argument("--max-items", type=int, default=10)
    ap.add_argument("--max-depth", type=int, default=6)
    args = ap.parse_args(argv)

    path = Path(args.file)
    if not path.is_file():
        print(f"[ERROR] no such file: {path}", file=sys.stderr)
        return 2

    try:
        with path.open("rb") as f:
            obj = pickle.load(f)
    except (pickle.UnpicklingError, EOFError) as e:
        print(f"[ERROR] {path} is not a readable pickle file: {e}", file=sys.stderr)
        return 2

    np.set_printoptions(
        edgeitems=3,
        threshold=10,
        linewidth=120,
        suppress=True,
    )

    truncated = truncate(obj, args.max_items, args.max_depth, args.summary)
    pprint.pprint(truncated, width=120, compact=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
