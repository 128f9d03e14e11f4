from dataclasses import dataclass

import numpy as np


def _identity(v):
    return v


def _exp10(v):
    return np.power(10.0, v)


# kind -> (map, imap); "power" is handled by Transform itself
_PAIRS = {
    "identity": (_identity, _identity),
    "log10": (_exp10, np.log10),
    "cosine": (np.arccos, np.cos),
}

KINDS = tuple(_PAIRS) + ("power",)


@dataclass(frozen=True)
class Transform:
    """
    Forward/inverse function pair that makes bin edges equispaced.

    Edges of a ``Uniform`` axis are generated as ``map(t)`` for equispaced
    ``t``, and a value is located through ``imap(value)``, so
    ``imap(map(x)) == x`` must hold on the binned range.

    Parameters
    ----------
    kind : {"identity", "log10", "cosine", "power"}
    exponent : int, default 1
        Only used by ``kind="power"``: edges are equispaced in the
        ``exponent``-th root of the value.
    """

    kind: str
    exponent: int = 1

    def __post_init__(self):
        if self.kind not in KINDS:
            raise ValueError(
                f"unknown transform {self.kind!r}, expected one of {', '.join(KINDS)}"
            )
        if self.kind == "power":
            try:
                n = int(self.exponent)
            except (TypeError, ValueError, OverflowError):
                n = None
            if n is None or isinstance(self.exponent, bool) or n != self.exponent:
                raise ValueError(
                    f"power transform needs an integer exponent, got {self.exponent!r}"
                )
            if n == 0:
                raise ValueError("power transform needs a non-zero exponent")
            object.__setattr__(self, "exponent", n)

    @classmethod
    def power(cls, exponent):
        return cls("power", exponent)

    def map(self, v):
        if self.kind != "power":
            return _PAIRS[self.kind][0](v)
        if self.exponent == 2:
            return np.square(v)
        return np.power(v, float(self.exponent))

    def imap(self, v):
        if self.kind != "power":
            return _PAIRS[self.kind][1](v)
        if self.exponent == 2:
            return np.sqrt(v)
        if self.exponent % 2:
            # odd roots are defined (and monotonic) for negative values too
            return np.sign(v) * np.power(np.abs(v), 1.0 / self.exponent)
        return np.power(v, 1.0 / self.exponent)

    def __repr__(self):
        if self.kind == "power":
            return f"Transform.power({self.exponent})"
        return f"Transform({self.kind!r})"


IDENTITY = Transform("identity")
LOG10 = Transform("log10")
COSINE = Transform("cosine")
