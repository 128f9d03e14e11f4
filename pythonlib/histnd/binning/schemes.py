import math
import operator
from typing import Protocol, runtime_checkable

import numpy as np

from .transforms import COSINE, IDENTITY, LOG10, Transform


@runtime_checkable
class BinningScheme(Protocol):
    """Anything that can discretize one axis of a histogram."""

    def bin_count(self) -> int: ...

    def edges(self) -> np.ndarray: ...

    def name(self) -> str: ...

    def index(self, value: float) -> int: ...


def _frozen(a):
    a.flags.writeable = False
    return a


class General:
    """
    Non-equispaced binning, bin lookup by binary search.

    Parameters
    ----------
    edges : sequence of float
        Strictly increasing bin edges. Under- and overflow edges (-inf, +inf)
        are added unless already present, so ``[0, 1, 2]`` describes the four
        bins ``[-inf, 0), [0, 1), [1, 2), [2, inf)``.
    name : str, default ""
        Axis label.
    """

    def __init__(self, edges, name=""):
        e = np.array(edges, dtype=float, copy=True).ravel()
        if e.size == 0:
            raise ValueError("Need at least one bin edge.")
        if np.isnan(e).any():
            raise ValueError("Bin edges must not contain NaN.")
        if np.any(np.diff(e) <= 0):
            raise ValueError("Bin edges must be strictly increasing.")

        if e[0] > -np.inf:
            e = np.concatenate(([-np.inf], e))
        if e[-1] < np.inf:
            e = np.concatenate((e, [np.inf]))
        if e.size < 3:
            raise ValueError("Need at least one finite bin edge.")

        self._name = str(name)
        self._edges = _frozen(e)
        self._nbins = e.size - 1

    def edges(self):
        return self._edges

    def bin_count(self):
        return self._nbins

    def name(self):
        return self._name

    def index(self, value):
        # position of the first edge strictly greater than value
        j = int(np.searchsorted(self._edges, value, side="right"))
        assert j > 0, f"value {value!r} sorted below the -inf edge"
        # +inf is not below any edge; it belongs to the overflow bin
        return min(j - 1, self._nbins - 1)

    def indices(self, values):
        """Vectorized ``index`` over an array of values."""
        j = np.searchsorted(self._edges, np.asarray(values, dtype=float), side="right")
        return np.minimum(j - 1, self._nbins - 1).astype(np.int64)

    def __eq__(self, other):
        if not isinstance(other, General):
            return NotImplemented
        return self._name == other._name and np.array_equal(self._edges, other._edges)

    __hash__ = None

    def __repr__(self):
        return f"General(nbins={self._nbins}, name={self._name!r})"


class Uniform:
    """
    Equispaced binning under a monotonic transform, bin lookup in O(1).

    ``nbins`` equal-width bins (in transformed space) cover ``[low, high)``;
    an underflow and an overflow bin are added on either side, so
    ``bin_count() == nbins + 2``.

    Parameters
    ----------
    low, high : float
        Limits of the binned range.
    nbins : int
        Number of bins between ``low`` and ``high``.
    transform : Transform, default IDENTITY
        Edges are equispaced in ``transform.imap(x)``.
    name : str, default ""
        Axis label.
    """

    def __init__(self, low, high, nbins, transform=IDENTITY, name=""):
        nbins = operator.index(nbins)
        if nbins < 1:
            raise ValueError("Need at least one bin between low and high.")
        if not isinstance(transform, Transform):
            raise TypeError(f"expected a Transform, got {type(transform).__name__}")

        self._name = str(name)
        self._transform = transform
        self._low = float(low)
        self._high = float(high)

        with np.errstate(invalid="ignore", divide="ignore"):
            self._offset = float(transform.imap(self._low))
            self._range = float(transform.imap(self._high)) - self._offset
        if not (math.isfinite(self._offset) and math.isfinite(self._range)):
            raise ValueError(
                f"[{low}, {high}] is outside the domain of {transform!r}"
            )
        if self._range == 0.0:
            raise ValueError(f"Degenerate range [{low}, {high}].")

        self._nsteps = nbins + 1
        with np.errstate(invalid="ignore"):
            inner = self._map(np.arange(self._nsteps) / float(self._nsteps - 1))
        if not np.all(np.isfinite(inner)) or np.any(np.diff(inner) <= 0):
            raise ValueError(
                f"{transform!r} does not give increasing edges on [{low}, {high}]"
            )

        self._min = float(inner[0])
        self._max = float(inner[-1])
        if not (
            math.isclose(self._min, self._low, rel_tol=1e-9, abs_tol=1e-12)
            and math.isclose(self._max, self._high, rel_tol=1e-9, abs_tol=1e-12)
        ):
            raise ValueError(f"{transform!r} is not invertible on [{low}, {high}]")
        self._edges = _frozen(np.concatenate(([-np.inf], inner, [np.inf])))

    def _map(self, t):
        return self._transform.map(self._range * t + self._offset)

    def _imap(self, value):
        return (self._transform.imap(value) - self._offset) / self._range

    def edges(self):
        return self._edges

    def bin_count(self):
        return self._nsteps + 1

    def name(self):
        return self._name

    @property
    def transform(self):
        return self._transform

    @property
    def limits(self):
        return self._low, self._high

    def index(self, value):
        if value < self._min:
            return 0
        if value >= self._max:
            return self._nsteps
        i = int(math.floor((self._nsteps - 1) * float(self._imap(value)))) + 1
        # rounding may step one bin off; settle against the stored edges
        i = min(max(i, 1), self._nsteps - 1)
        if value < self._edges[i]:
            i -= 1
        elif value >= self._edges[i + 1]:
            i += 1
        return min(max(i, 1), self._nsteps - 1)

    def indices(self, values):
        """Vectorized ``index`` over an array of values."""
        v = np.asarray(values, dtype=float)
        out = np.full(v.shape, self._nsteps, dtype=np.int64)
        out[v < self._min] = 0

        inner = (v >= self._min) & (v < self._max)
        if inner.any():
            vi = v[inner]
            i = np.floor((self._nsteps - 1) * self._imap(vi)).astype(np.int64) + 1
            i = np.clip(i, 1, self._nsteps - 1)
            i -= vi < self._edges[i]
            i += vi >= self._edges[i + 1]
            out[inner] = np.clip(i, 1, self._nsteps - 1)
        return out

    def __eq__(self, other):
        if not isinstance(other, Uniform):
            return NotImplemented
        return (
            self._name == other._name
            and self._transform == other._transform
            and (self._low, self._high, self._nsteps)
            == (other._low, other._high, other._nsteps)
        )

    __hash__ = None

    def __repr__(self):
        return (
            f"Uniform(low={self._low}, high={self._high}, nbins={self._nsteps - 1}, "
            f"transform={self._transform!r}, name={self._name!r})"
        )


# ---------- convenience constructors ----------
def linear(low, high, nbins, name=""):
    return Uniform(low, high, nbins, IDENTITY, name)


def log10(low, high, nbins, name=""):
    """Bins equispaced in log10(x); needs 0 < low < high."""
    return Uniform(low, high, nbins, LOG10, name)


def cosine(low, high, nbins, name=""):
    """Angular bins equispaced in cos(theta); needs 0 <= low, high <= pi."""
    return Uniform(low, high, nbins, COSINE, name)


def power(low, high, nbins, exponent, name=""):
    """Bins equispaced in the ``exponent``-th root of x."""
    return Uniform(low, high, nbins, Transform.power(exponent), name)
