from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Tuple, Union

import numpy as np
import scipy.sparse as sp

from birank.errors import InvalidParameter
from birank.schema import BipartiteGraph, DegreeVectors, TransitionMatrices


# ============================================================
# Abstract base: Normalizer
# ============================================================

class Normalizer(ABC):
    """
    Turns the biadjacency matrix W (rows x cols) into the two transition
    matrices used by the alternating iteration:
      - S_rc: rows <- cols (rows x cols)
      - S_cr: cols <- rows (cols x rows)
    """

    def normalize(self, graph: BipartiteGraph) -> Tuple[DegreeVectors, TransitionMatrices]:
        degrees = self.degrees(graph)
        return degrees, self._transitions(graph.W, degrees)

    @staticmethod
    def degrees(graph: BipartiteGraph) -> DegreeVectors:
        W = graph.W
        d_row = np.asarray(W.sum(axis=1), dtype=np.float64).reshape(-1)  # [m]
        d_col = np.asarray(W.sum(axis=0), dtype=np.float64).reshape(-1)  # [n]
        return DegreeVectors(d_row=d_row, d_col=d_col)

    @abstractmethod
    def _transitions(self, W: sp.csr_matrix, degrees: DegreeVectors) -> TransitionMatrices:
        raise NotImplementedError


# ============================================================
# BiRank: symmetric square-root normalization
# ============================================================

def _inv_sqrt(degree: np.ndarray) -> np.ndarray:
    # isolates get a zero scale factor instead of 1/0
    return np.divide(
        1.0,
        np.sqrt(degree),
        out=np.zeros_like(degree, dtype=np.float64),
        where=degree > 0,
    )


class BiRankNormalizer(Normalizer):
    """
    S_rc = D_r^{-1/2} * W * D_c^{-1/2}
    S_cr = S_rc^T

    i.e. every edge weight is divided by sqrt(d_row[i] * d_col[j]).
    """

    def _transitions(self, W: sp.csr_matrix, degrees: DegreeVectors) -> TransitionMatrices:
        row_scale = sp.diags(_inv_sqrt(degrees.d_row))
        col_scale = sp.diags(_inv_sqrt(degrees.d_col))

        S_rc = sp.csr_matrix(row_scale @ W @ col_scale)
        S_cr = S_rc.T.tocsr()
        return TransitionMatrices(S_rc=S_rc, S_cr=S_cr)


# ============================================================
# Variant dispatch
# ============================================================

class NormalizerKind(str, Enum):
    BIRANK = "birank"


_NORMALIZERS = {
    NormalizerKind.BIRANK: BiRankNormalizer,
}


def get_normalizer(kind: Union[NormalizerKind, str, Normalizer] = NormalizerKind.BIRANK) -> Normalizer:
    if isinstance(kind, Normalizer):
        return kind
    if isinstance(kind, str) and not isinstance(kind, NormalizerKind):
        try:
            kind = NormalizerKind(kind.lower())
        except ValueError:
            raise InvalidParameter(
                f"unknown normalizer {kind!r}, expected one of {[k.value for k in NormalizerKind]}"
            ) from None
    if kind not in _NORMALIZERS:
        raise InvalidParameter(f"unknown normalizer {kind!r}")
    return _NORMALIZERS[kind]()
