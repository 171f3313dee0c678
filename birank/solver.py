from __future__ import annotations

from typing import List, Optional

import numpy as np
from tqdm import tqdm

from birank.config import RankConfig, logger
from birank.schema import RankVectors, SolverResult, SolverStatus, TransitionMatrices


class IterativeSolver:
    """
    Damped alternating power iteration of BiRank.

    Update rule, both sides computed from the previous iteration:
        p^{t+1} = alpha * S_rc @ q^{t} + (1 - alpha) * p0
        q^{t+1} = beta  * S_cr @ p^{t} + (1 - beta)  * q0

    with p0 = 1/m and q0 = 1/n (uniform priors, also the starting point).

    Residual: ||p^{t+1} - p^{t}||_1 + ||q^{t+1} - q^{t}||_1. The run stops at the
    first iteration whose residual is <= tol, or after max_iter iterations with
    status MAX_ITER_REACHED.

    Isolates have an all-zero row / column in S, so they keep teleport mass
    only: exactly (1 - alpha) / m for a row node and (1 - beta) / n for a
    column node. The R birankr documentation writes these as
    (1 - alpha) / n_columns and (1 - beta) / n_rows; the values here follow
    the update rule above, where each mode's prior is spread over its own
    node count.
    """

    def __init__(self, cfg: Optional[RankConfig] = None):
        self.cfg = cfg or RankConfig()

    def solve(self, transitions: TransitionMatrices) -> SolverResult:
        cfg = self.cfg
        S_rc, S_cr = transitions.S_rc, transitions.S_cr
        m, n = S_rc.shape

        p0 = np.full(m, 1.0 / m, dtype=np.float64)
        q0 = np.full(n, 1.0 / n, dtype=np.float64)
        p_teleport = (1.0 - cfg.alpha) * p0
        q_teleport = (1.0 - cfg.beta) * q0

        p = p0.copy()
        q = q0.copy()
        residuals: List[float] = []
        status = SolverStatus.MAX_ITER_REACHED

        pbar = tqdm(range(cfg.max_iter), desc="BiRank", disable=not cfg.verbose)
        try:
            for it in pbar:
                p_prev, q_prev = p, q

                # rows collect from columns, columns collect from rows
                p = cfg.alpha * (S_rc @ q_prev) + p_teleport
                q = cfg.beta * (S_cr @ p_prev) + q_teleport

                du = np.abs(p - p_prev).sum()
                dv = np.abs(q - q_prev).sum()
                residual = float(du + dv)
                residuals.append(residual)

                if cfg.verbose:
                    pbar.set_postfix(residual=f"{residual:.3e}")
                    logger.info(f"iteration {it + 1}: residual={residual:.6e} (rows {du:.3e}, columns {dv:.3e})")

                if residual <= cfg.tol:
                    status = SolverStatus.CONVERGED
                    break
        finally:
            pbar.close()

        if status is SolverStatus.CONVERGED:
            logger.debug(f"converged after {len(residuals)} iterations, residual={residuals[-1]:.3e}")
        else:
            logger.debug(f"stopped after {cfg.max_iter} iterations, residual={residuals[-1]:.3e} > tol={cfg.tol}")

        return SolverResult(
            ranks=RankVectors(p=p, q=q),
            iterations=len(residuals),
            status=status,
            residuals=residuals,
        )
