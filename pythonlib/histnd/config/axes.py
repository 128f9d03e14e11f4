from __future__ import annotations

import difflib
from collections.abc import Mapping
from typing import Any, Dict, List

import yaml

from ..binning.schemes import General, Uniform
from ..binning.transforms import COSINE, IDENTITY, LOG10, Transform
from ..histNd import HistND

_UNIFORM_KINDS = {"linear": IDENTITY, "log10": LOG10, "cosine": COSINE}

KINDS = ("general",) + tuple(_UNIFORM_KINDS) + ("power",)


def _require(cfg: Mapping, key: str, kind: str):
    if key not in cfg:
        raise ValueError(f"{kind} axis needs '{key}' (got keys: {', '.join(map(str, cfg))})")
    return cfg[key]


def scheme_from_config(cfg: Mapping[str, Any]):
    """
    Build one binning scheme from a mapping such as
    ``{"kind": "linear", "low": 0, "high": 10, "bins": 11, "name": "x"}``.
    """
    if not isinstance(cfg, Mapping):
        raise ValueError(f"axis config must be a mapping, got {type(cfg).__name__}")
    kind = str(cfg.get("kind", "general")).lower()
    name = str(cfg.get("name", "") or "")

    if kind == "general":
        return General(_require(cfg, "edges", kind), name=name)

    if kind in _UNIFORM_KINDS or kind == "power":
        low = float(_require(cfg, "low", kind))
        high = float(_require(cfg, "high", kind))
        nbins = int(_require(cfg, "bins", kind))
        if kind == "power":
            transform = Transform.power(_require(cfg, "exponent", kind))
        else:
            transform = _UNIFORM_KINDS[kind]
        return Uniform(low, high, nbins, transform, name=name)

    msg = f"unknown axis kind {kind!r}, expected one of {', '.join(KINDS)}"
    suggestion = difflib.get_close_matches(kind, KINDS, n=1)
    if suggestion:
        msg += f"; did you mean {suggestion[0]!r}?"
    raise ValueError(msg)


def histogram_from_config(cfg: Mapping[str, Any], title: str | None = None) -> HistND:
    """Build a histogram from ``{"title": ..., "dimensions": [axis, ...]}``."""
    dims_cfg = cfg.get("dimensions") if isinstance(cfg, Mapping) else None
    if not dims_cfg:
        raise ValueError("config needs a non-empty 'dimensions' list")
    dims = [scheme_from_config(d) for d in dims_cfg]
    if title is None:
        title = str(cfg.get("title", "") or "")
    return HistND(dims, title=title)


def load_config(path) -> Dict[str, Any]:
    with open(path, "r") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"{path}: top level of the config must be a mapping")
    return cfg


def config_from_histogram(hist: HistND) -> Dict[str, List[Dict[str, Any]]]:
    """Inverse of ``histogram_from_config`` for the built-in schemes."""
    out: List[Dict[str, Any]] = []
    for d in hist.dimensions():
        if isinstance(d, Uniform):
            low, high = d.limits
            t = d.transform
            kind = "power" if t.kind == "power" else {"identity": "linear"}.get(t.kind, t.kind)
            entry = {"kind": kind, "low": low, "high": high, "bins": d.bin_count() - 2}
            if kind == "power":
                entry["exponent"] = t.exponent
        else:
            finite = [float(e) for e in d.edges() if abs(e) != float("inf")]
            entry = {"kind": "general", "edges": finite}
        entry["name"] = d.name()
        out.append(entry)
    return {"title": hist.title(), "dimensions": out}
