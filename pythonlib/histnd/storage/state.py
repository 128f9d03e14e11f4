from __future__ import annotations

import os
import pickle
from typing import Any, Dict

import numpy as np


def to_state_dict(hist) -> Dict[str, Any]:
    """
    Snapshot of a histogram built only from its public accessors.

    Arrays are copies, so the snapshot outlives the histogram.
    """
    state: Dict[str, Any] = {
        "ndim": int(hist.ndim()),
        "nentries": int(hist.n_entries()),
        "title": hist.title(),
        "_h_bincontent": np.array(hist.bincontent(), copy=True),
        "_h_squaredweights": np.array(hist.squaredweights(), copy=True),
    }
    for i, e in enumerate(hist.binedges()):
        state[f"_h_binedges_{i}"] = np.array(e, copy=True)
    for i, label in enumerate(hist.labels()):
        state[f"label_{i}"] = label
    return state


def _split_where(where: str):
    return [p for p in (where or "/").split("/") if p]


def _read(path) -> Dict[str, Any]:
    with open(path, "rb") as f:
        root = pickle.load(f)
    if not isinstance(root, dict):
        raise ValueError(f"{path} does not hold a histogram store")
    return root


def save(hist, path, where: str = "/", name: str = "histogram", overwrite: bool = False):
    """
    Store ``hist`` under group ``where`` (slash-separated) as ``name``.

    Other entries already in the file are kept. An existing entry with the
    same name is only replaced when ``overwrite`` is set.
    """
    root = _read(path) if os.path.isfile(path) else {}

    group = root
    for p in _split_where(where):
        nxt = group.setdefault(p, {})
        if not isinstance(nxt, dict) or "_h_bincontent" in nxt:
            raise ValueError(f"{where!r} in {path} is a histogram, not a group")
        group = nxt

    if name in group and not overwrite:
        raise ValueError(f"{name!r} already exists in {where!r} of {path}")
    group[name] = to_state_dict(hist)

    with open(path, "wb") as f:
        pickle.dump(root, f)
    return group[name]


def load(path, where: str = "/", name: str | None = None) -> Dict[str, Any]:
    """Return the group at ``where``, or one stored histogram if ``name`` is given."""
    group = _read(path)
    for p in _split_where(where):
        if not isinstance(group, dict) or p not in group:
            raise KeyError(f"no group {where!r} in {path}")
        group = group[p]
    if name is None:
        return group
    if name not in group:
        raise KeyError(f"no histogram {name!r} in {where!r} of {path}")
    return group[name]


def is_histogram_state(obj) -> bool:
    return isinstance(obj, dict) and "_h_bincontent" in obj and "ndim" in obj
