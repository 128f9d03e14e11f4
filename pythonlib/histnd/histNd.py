import math

import numpy as np

from .binning.schemes import BinningScheme


class HistND:
    """
    N-D histogram of weighted entries over a fixed list of binning schemes.

    Storage is two flat float64 arrays (sum of weights and sum of squared
    weights) in C order: the last axis varies fastest.

    Parameters
    ----------
    dimensions : sequence of BinningScheme
        One scheme per axis. The rank is fixed from here on.
    title : str, default ""
        Free-form label, no effect on binning.
    """

    def __init__(self, dimensions, title=""):
        self._dims = tuple(dimensions)
        self.D = len(self._dims)
        if self.D == 0:
            raise ValueError("Need at least 1 dimension.")
        for k, d in enumerate(self._dims):
            if not isinstance(d, BinningScheme):
                raise TypeError(
                    f"dimension {k} ({type(d).__name__}) is not a binning scheme; "
                    "it must provide bin_count(), edges(), name() and index()"
                )

        self.nbins = np.array([d.bin_count() for d in self._dims], dtype=np.int64)
        if np.any(self.nbins <= 0):
            raise ValueError("Each dimension must have at least one bin.")
        self._size = int(np.prod(self.nbins))

        self._title = str(title)
        self._n_entries = 0
        self._bincontent = np.zeros(self._size, dtype=float)
        self._squaredweights = np.zeros(self._size, dtype=float)

        # C-order strides for flattening indices: flat = sum(b_k * stride_k)
        self._strides = [0] * self.D
        acc = 1
        for k in range(self.D - 1, -1, -1):
            self._strides[k] = acc
            acc *= int(self.nbins[k])

    # ---------- indexing ----------
    def _check_arity(self, coords):
        if len(coords) != self.D:
            raise TypeError(
                f"Expected {self.D} coordinates, one per dimension, got {len(coords)}."
            )

    def ndim(self):
        return self.D

    def size(self):
        return self._size

    def stride(self, i):
        return self._strides[i]

    def valid(self, *coords):
        self._check_arity(coords)
        return not any(math.isnan(v) for v in coords)

    def _offset(self, coords):
        offset = 0
        for k, (d, stride, v) in enumerate(zip(self._dims, self._strides, coords)):
            i = d.index(v)
            if not 0 <= i < self.nbins[k]:
                raise AssertionError(
                    f"dimension {k} put {v!r} in bin {i}, outside [0, {self.nbins[k]})"
                )
            offset += i * stride
        return offset

    def index(self, *coords):
        """Flat storage offset of the bin holding ``coords``."""
        self._check_arity(coords)
        return self._offset(coords)

    # ---------- filling ----------
    def fill(self, *coords):
        return self.fill_with_weight(1.0, *coords)

    def fill_with_weight(self, weight, *coords):
        """
        Add one entry of ``weight`` at ``coords``.

        Returns False, leaving the histogram untouched, if any coordinate
        is NaN. Infinite and out-of-range coordinates land in the
        under/overflow bins.
        """
        self._check_arity(coords)
        if any(math.isnan(v) for v in coords):
            return False

        offset = self._offset(coords)
        weight = float(weight)
        self._bincontent[offset] += weight
        self._squaredweights[offset] += weight * weight
        self._n_entries += 1
        return True

    def fill_many(self, *coords, weights=None, mask=None):
        """
        Fill with arrays of coordinates (one array or scalar per axis).

        Rows with a NaN coordinate are skipped. ``weights`` may be a scalar
        or one value per row; per-row weights broadcast together with the
        coordinates. Returns the number of rows filled.
        """
        self._check_arity(coords)
        arrs = [np.atleast_1d(np.asarray(c, dtype=float)) for c in coords]

        w = None if weights is None else np.asarray(weights, dtype=float)
        per_row = w is not None and w.ndim > 0
        if per_row:
            arrs.append(w)
        try:
            arrs = [a.ravel() for a in np.broadcast_arrays(*arrs)]
        except ValueError:
            raise ValueError(
                "coordinate and weight arrays do not broadcast together: "
                f"shapes {[a.shape for a in arrs]}"
            ) from None
        if per_row:
            w = arrs.pop()

        if mask is not None:
            m = np.asarray(mask, dtype=bool).ravel()
            if m.shape != arrs[0].shape:
                raise ValueError(
                    f"mask has {m.size} entries for {arrs[0].size} rows"
                )
            arrs = [a[m] for a in arrs]
            if w is not None and w.ndim > 0:
                w = w[m]

        ok = np.ones(arrs[0].shape, dtype=bool)
        for a in arrs:
            ok &= ~np.isnan(a)
        n_ok = int(np.count_nonzero(ok))
        if n_ok == 0:
            return 0

        flat = np.zeros(n_ok, dtype=np.int64)
        for k, (d, stride, a) in enumerate(zip(self._dims, self._strides, arrs)):
            b = self._bin_array(d, a[ok])
            if np.any((b < 0) | (b >= self.nbins[k])):
                raise AssertionError(
                    f"dimension {k} returned bins outside [0, {self.nbins[k]})"
                )
            flat += b * stride

        if w is None:
            add = np.bincount(flat, minlength=self._size).astype(float)
            add2 = add  # since w=1 => w^2=1
        else:
            w_ok = np.full(n_ok, float(w)) if w.ndim == 0 else w[ok]
            add = np.bincount(flat, weights=w_ok, minlength=self._size)
            add2 = np.bincount(flat, weights=w_ok * w_ok, minlength=self._size)

        self._bincontent += add
        self._squaredweights += add2
        self._n_entries += n_ok
        return n_ok

    @staticmethod
    def _bin_array(dim, values):
        if hasattr(dim, "indices"):
            return np.asarray(dim.indices(values), dtype=np.int64)
        return np.fromiter((dim.index(v) for v in values), dtype=np.int64, count=len(values))

    # ---------- introspection ----------
    def title(self):
        return self._title

    def set_title(self, title):
        self._title = str(title)

    def n_entries(self):
        return self._n_entries

    def dimensions(self):
        return self._dims

    def shape(self):
        return tuple(int(n) for n in self.nbins)

    def binedges(self):
        return [d.edges() for d in self._dims]

    def labels(self):
        return [d.name() for d in self._dims]

    def _view(self, flat):
        v = flat.reshape(self.shape())
        v.flags.writeable = False
        return v

    def bincontent(self):
        """Read-only view of the sum of weights, shaped like ``shape()``."""
        return self._view(self._bincontent)

    def squaredweights(self):
        """Read-only view of the sum of squared weights, shaped like ``shape()``."""
        return self._view(self._squaredweights)

    def errors(self):
        """Standard deviation per bin assuming uncorrelated weights: sqrt(sumw2)."""
        return np.sqrt(self.squaredweights())

    def __repr__(self):
        return (
            f"HistND(nbins={self.shape()}, labels={self.labels()}, "
            f"title={self._title!r}, n_entries={self._n_entries})"
        )


def create(*args, title=None):
    """
    Compose a histogram from binning schemes.

    ``create(dim0, dim1, ...)`` gives an untitled histogram and
    ``create("title", dim0, dim1, ...)`` a titled one; ``title=`` may be
    passed as a keyword instead.
    """
    if args and isinstance(args[0], str):
        if title is not None:
            raise TypeError("create() got the title both positionally and as keyword")
        title, args = args[0], args[1:]
    return HistND(args, title="" if title is None else title)
