from .binning.transforms import Transform, IDENTITY, LOG10, COSINE
from .binning.schemes import (
    BinningScheme,
    General,
    Uniform,
    linear,
    log10,
    cosine,
    power,
)
from .histNd import HistND, create
from .storage.state import to_state_dict, save, load

__version__ = "0.1.0"

__all__ = [name for name in dir() if not name.startswith("_")]
