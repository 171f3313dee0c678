from __future__ import annotations

from typing import Any, Dict, List, Union

import numpy as np
import pandas as pd

from birank.schema import BipartiteGraph, DegreeVectors, RankVectors, ReturnMode

Ranks = Union[Dict[Any, float], pd.DataFrame]


class ResultAssembler:
    """
    Maps rank vectors back to node ids.

    Isolates (degree 0) only carry teleport mass, so they are left out of
    every returned mapping. Order follows the graph's row / column ids.
    """

    def __init__(self, graph: BipartiteGraph, degrees: DegreeVectors):
        self.graph = graph
        self.degrees = degrees

    def assemble(
        self,
        ranks: RankVectors,
        return_mode: Union[ReturnMode, str] = ReturnMode.ROWS,
        return_data_frame: bool = False,
    ) -> Union[Ranks, Dict[str, Ranks]]:
        mode = ReturnMode.parse(return_mode)

        if mode is ReturnMode.ROWS:
            return self.rows(ranks, return_data_frame)
        if mode is ReturnMode.COLUMNS:
            return self.columns(ranks, return_data_frame)

        # two independent id spaces, never merged
        return {
            ReturnMode.ROWS.value: self.rows(ranks, return_data_frame),
            ReturnMode.COLUMNS.value: self.columns(ranks, return_data_frame),
        }

    def rows(self, ranks: RankVectors, return_data_frame: bool = False) -> Ranks:
        return self._one_mode(
            ranks.p, self.graph.row_ids, self.degrees.row_isolates, self.graph.row_label, return_data_frame
        )

    def columns(self, ranks: RankVectors, return_data_frame: bool = False) -> Ranks:
        return self._one_mode(
            ranks.q, self.graph.col_ids, self.degrees.col_isolates, self.graph.col_label, return_data_frame
        )

    @staticmethod
    def _one_mode(
        values: np.ndarray,
        ids: List[Any],
        isolates: np.ndarray,
        label: Any,
        return_data_frame: bool,
    ) -> Ranks:
        keep = np.flatnonzero(~isolates)
        kept_ids = [ids[i] for i in keep]
        kept_values = values[keep].tolist()

        if return_data_frame:
            id_column = "id" if label == "rank" else label
            return pd.DataFrame({id_column: kept_ids, "rank": kept_values})
        return dict(zip(kept_ids, kept_values))
