from .logging_config import configure_logging, get_logger
from .repro import NumpyRandom, RandomSource, make_rng, seed_everything

__all__ = [
    "NumpyRandom",
    "RandomSource",
    "configure_logging",
    "get_logger",
    "make_rng",
    "seed_everything",
]
