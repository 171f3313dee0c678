"""
BiRank on bipartite graphs (He et al., 2017).

Pipeline: GraphBuilder -> Normalizer -> IterativeSolver -> ResultAssembler.

- BiRank: the orchestrator; `fit` returns a `BiRankResult` holding every
  intermediate product of the run
- birank: one-call convenience wrapper returning id -> rank mappings
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, Optional, Sequence, Union

from birank.config import RankConfig, logger
from birank.errors import NonConvergence
from birank.graph_builder import GraphBuilder
from birank.normalizer import Normalizer, NormalizerKind, get_normalizer
from birank.result import Ranks, ResultAssembler
from birank.schema import (
    BipartiteGraph,
    DegreeVectors,
    DuplicatePolicy,
    RankVectors,
    ReturnMode,
    SolverResult,
    TransitionMatrices,
)
from birank.solver import IterativeSolver


@dataclass(frozen=True)
class BiRankResult:
    graph: BipartiteGraph
    degrees: DegreeVectors
    transitions: TransitionMatrices
    solution: SolverResult

    @property
    def ranks(self) -> RankVectors:
        return self.solution.ranks

    @property
    def converged(self) -> bool:
        return self.solution.converged

    @property
    def iterations(self) -> int:
        return self.solution.iterations

    def rows(self, return_data_frame: bool = False) -> Ranks:
        return self._assembler().rows(self.ranks, return_data_frame)

    def columns(self, return_data_frame: bool = False) -> Ranks:
        return self._assembler().columns(self.ranks, return_data_frame)

    def output(
        self,
        return_mode: Union[ReturnMode, str] = ReturnMode.ROWS,
        return_data_frame: bool = False,
    ) -> Union[Ranks, Dict[str, Ranks]]:
        return self._assembler().assemble(self.ranks, return_mode, return_data_frame)

    def _assembler(self) -> ResultAssembler:
        return ResultAssembler(self.graph, self.degrees)


class BiRank:

    def __init__(
        self,
        cfg: Optional[RankConfig] = None,
        normalizer: Union[NormalizerKind, str, Normalizer] = NormalizerKind.BIRANK,
    ):
        self.cfg = cfg or RankConfig()
        self.builder = GraphBuilder()
        self.normalizer = get_normalizer(normalizer)
        self.solver = IterativeSolver(self.cfg)

    def fit(self, data: Any, **graph_kwargs) -> BiRankResult:
        """
        Build the graph from `data`, normalize it and iterate to convergence.

        `graph_kwargs` are forwarded to `GraphBuilder.build` (sender_name,
        receiver_name, weight_name, rm_weights, duplicates, row_names,
        col_names, top_nodes).

        Running out of iterations is not an error: the last vectors are kept
        and a `NonConvergence` warning is issued.
        """
        graph = self.builder.build(data, **graph_kwargs)
        degrees, transitions = self.normalizer.normalize(graph)

        n_row_iso = int(degrees.row_isolates.sum())
        n_col_iso = int(degrees.col_isolates.sum())
        if n_row_iso or n_col_iso:
            logger.debug(f"isolates excluded from results: {n_row_iso} rows, {n_col_iso} columns")

        solution = self.solver.solve(transitions)
        if not solution.converged:
            msg = (
                f"BiRank did not converge within max_iter={self.cfg.max_iter} iterations "
                f"(residual {solution.residual:.3e} > tol {self.cfg.tol}); returning the last estimate"
            )
            logger.warning(msg)
            warnings.warn(msg, NonConvergence, stacklevel=2)

        return BiRankResult(graph=graph, degrees=degrees, transitions=transitions, solution=solution)


def birank(
    data: Any,
    sender_name: Optional[Hashable] = None,
    receiver_name: Optional[Hashable] = None,
    weight_name: Optional[Hashable] = None,
    rm_weights: bool = False,
    duplicates: str = "add",
    return_mode: Union[ReturnMode, str] = "rows",
    return_data_frame: bool = False,
    alpha: float = 0.85,
    beta: float = 0.85,
    max_iter: int = 200,
    tol: float = 1.0e-4,
    verbose: bool = False,
    *,
    row_names: Optional[Sequence[Any]] = None,
    col_names: Optional[Sequence[Any]] = None,
    top_nodes: Optional[Iterable[Any]] = None,
) -> Union[Ranks, Dict[str, Ranks]]:
    """
    Estimate BiRank ranks of the nodes of a bipartite graph.

    :param data: edge list (DataFrame, sequence of (sender, receiver[, weight])
                 tuples or dict records), adjacency matrix (numpy / scipy.sparse),
                 or a networkx bipartite graph.
    :param sender_name: sender column of an edge list. Defaults to the first column.
    :param receiver_name: receiver column of an edge list. Defaults to the second column.
    :param weight_name: weight column of an edge list (edge attribute for networkx
                        input). Defaults to weight 1, or the third element of plain tuples.
    :param rm_weights: treat every non-zero matrix entry as 1. Ignored for edge lists.
    :param duplicates: "add" sums repeated edges, "remove" keeps the first one.
    :param return_mode: "rows", "columns" or "both" ({"rows": ..., "columns": ...}).
    :param return_data_frame: return DataFrames (id column + "rank") instead of dicts.
    :param alpha: damping of the row mode, in (0, 1].
    :param beta: damping of the column mode, in (0, 1].
    :param max_iter: iteration budget.
    :param tol: convergence tolerance on the summed L1 change of both rank vectors.
    :param verbose: show a progress bar and log the residual of every iteration
                    (loguru INFO records, visible after `logger.enable("birank")`).
    :param row_names: ids of matrix rows. Defaults to 1..m.
    :param col_names: ids of matrix columns. Defaults to 1..n.
    :param top_nodes: row-mode nodes of a networkx graph. Defaults to nodes with bipartite=0.

    :return: {node_id: rank} (or a DataFrame) without isolates.
    """
    cfg = RankConfig(alpha=alpha, beta=beta, max_iter=max_iter, tol=tol, verbose=verbose)
    mode = ReturnMode.parse(return_mode)
    policy = DuplicatePolicy.parse(duplicates)

    result = BiRank(cfg).fit(
        data,
        sender_name=sender_name,
        receiver_name=receiver_name,
        weight_name=weight_name,
        rm_weights=rm_weights,
        duplicates=policy,
        row_names=row_names,
        col_names=col_names,
        top_nodes=top_nodes,
    )
    return result.output(mode, return_data_frame)
