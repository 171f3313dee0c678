from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Sequence

import numpy as np
import scipy.sparse as sp

from birank.errors import InvalidParameter


# ============================================================
# Options
# ============================================================

class _ChoiceEnum(str, Enum):
    """String enum that also accepts its value (case-insensitive) on parse."""

    @classmethod
    def parse(cls, value) -> "_ChoiceEnum":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        choices = ", ".join(repr(m.value) for m in cls)
        raise InvalidParameter(f"{cls.__name__}: expected one of {choices}, got {value!r}")


class DuplicatePolicy(_ChoiceEnum):
    ADD = "add"        # sum the weights of repeated (sender, receiver) pairs
    REMOVE = "remove"  # keep the first occurrence only


class ReturnMode(_ChoiceEnum):
    ROWS = "rows"
    COLUMNS = "columns"
    BOTH = "both"


class SolverStatus(str, Enum):
    CONVERGED = "converged"
    MAX_ITER_REACHED = "max_iter_reached"


# ============================================================
# Graph
# ============================================================

@dataclass(frozen=True)
class BipartiteGraph:
    """
    m x n weighted biadjacency matrix plus the identifiers of its rows / columns.

    Rows are the first mode (senders), columns the second mode (receivers).
    `row_label` / `col_label` name the id column when results are returned as
    a DataFrame.
    """
    W: sp.csr_matrix
    row_ids: List[Any]
    col_ids: List[Any]
    row_label: Any = "rows"
    col_label: Any = "columns"

    @property
    def shape(self):
        return self.W.shape

    @property
    def n_rows(self) -> int:
        return self.W.shape[0]

    @property
    def n_cols(self) -> int:
        return self.W.shape[1]

    @property
    def n_edges(self) -> int:
        return int(self.W.count_nonzero())


@dataclass(frozen=True)
class DegreeVectors:
    d_row: np.ndarray
    d_col: np.ndarray

    @property
    def row_isolates(self) -> np.ndarray:
        return self.d_row == 0

    @property
    def col_isolates(self) -> np.ndarray:
        return self.d_col == 0


@dataclass(frozen=True)
class TransitionMatrices:
    """
    S_rc: (rows x cols), pulls column ranks into rows
    S_cr: (cols x rows), pulls row ranks into columns
    """
    S_rc: sp.csr_matrix
    S_cr: sp.csr_matrix

    @property
    def shape(self):
        return self.S_rc.shape


# ============================================================
# Ranks
# ============================================================

def _frozen(vec: np.ndarray) -> np.ndarray:
    out = np.array(vec, dtype=np.float64, copy=True)
    out.setflags(write=False)
    return out


@dataclass(frozen=True)
class RankVectors:
    p: np.ndarray  # row mode, length m
    q: np.ndarray  # column mode, length n

    def __post_init__(self):
        object.__setattr__(self, "p", _frozen(self.p))
        object.__setattr__(self, "q", _frozen(self.q))


@dataclass(frozen=True)
class SolverResult:
    ranks: RankVectors
    iterations: int
    status: SolverStatus
    residuals: Sequence[float] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.status is SolverStatus.CONVERGED

    @property
    def residual(self) -> float:
        return self.residuals[-1] if self.residuals else float("nan")
