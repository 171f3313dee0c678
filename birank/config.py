import sys
from dataclasses import dataclass, fields, replace as dc_replace
from numbers import Integral, Real

from loguru import logger

from birank.errors import InvalidParameter


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


@dataclass(frozen=True)
class RankConfig:
    """
    Parameters of one BiRank run.

    - alpha: damping of the row mode (first column of an edge list), in (0, 1]
    - beta: damping of the column mode, in (0, 1]
    - max_iter: iteration budget before the solver gives up
    - tol: largest combined L1 change accepted as converged
    - verbose: progress bar + per-iteration residual in the log
    """
    alpha: float = 0.85
    beta: float = 0.85
    max_iter: int = 200
    tol: float = 1.0e-4
    verbose: bool = False

    def __post_init__(self):
        for name in ("alpha", "beta"):
            value = getattr(self, name)
            if not _is_number(value):
                raise InvalidParameter(f"{name} must be a number, got {value!r}")
            if not 0.0 < value <= 1.0:
                raise InvalidParameter(f"{name} must be in (0, 1], got {value}")

        if isinstance(self.max_iter, bool) or not isinstance(self.max_iter, Integral) or self.max_iter < 1:
            raise InvalidParameter(f"max_iter must be a positive integer, got {self.max_iter!r}")

        if not _is_number(self.tol) or not self.tol > 0:
            raise InvalidParameter(f"tol must be a positive number, got {self.tol!r}")

    def replace(self, **changes) -> "RankConfig":
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise InvalidParameter(f"unknown config fields: {sorted(unknown)}")
        return dc_replace(self, **changes)


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level:<8}</level> | "
    "<cyan>{name:<15}</cyan>:<cyan>{function:<15}</cyan>:<cyan>{line:<4}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level: str = "WARNING") -> int:
    """
    Opt-in console logging for scripts.

    Re-enables the package's records and replaces every loguru sink with a
    single stderr sink at `level`. Libraries embedding birank should call
    `logger.enable("birank")` instead and keep their own sinks.
    """
    logger.enable("birank")
    logger.remove()
    return logger.add(sys.stderr, level=level, format=LOG_FORMAT)


# Silent unless the host application enables it
logger.disable("birank")
