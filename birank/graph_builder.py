from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Hashable, Iterable as IterableT, List, Optional, Sequence

import networkx as nx
import numpy as np
import pandas as pd
import scipy.sparse as sp
from pandas.api.types import is_numeric_dtype, is_complex_dtype

from birank.config import logger
from birank.errors import DegenerateGraph, InvalidInputKind, MissingColumn
from birank.schema import BipartiteGraph, DuplicatePolicy


class GraphBuilder:
    """
    Turns raw bipartite data into a `BipartiteGraph`:
      - edge lists: pandas DataFrame, sequence of (sender, receiver[, weight]) tuples,
        or sequence of dict records
      - adjacency matrices: numpy 2-D arrays or any scipy.sparse matrix / array
      - networkx graphs with a known bipartition

    Rows are always the first mode (senders / top nodes), columns the second.
    """

    # ---------- dispatch ----------

    def build(
        self,
        data: Any,
        *,
        sender_name: Optional[Hashable] = None,
        receiver_name: Optional[Hashable] = None,
        weight_name: Optional[Hashable] = None,
        rm_weights: bool = False,
        duplicates: str = "add",
        row_names: Optional[Sequence[Any]] = None,
        col_names: Optional[Sequence[Any]] = None,
        top_nodes: Optional[IterableT[Any]] = None,
    ) -> BipartiteGraph:
        if isinstance(data, nx.Graph):
            return self.from_networkx(
                data, top_nodes=top_nodes, weight_name=weight_name, rm_weights=rm_weights
            )

        if sp.issparse(data) or isinstance(data, np.ndarray):
            return self.from_matrix(
                data, rm_weights=rm_weights, row_names=row_names, col_names=col_names
            )

        if isinstance(data, pd.DataFrame) or _is_record_iterable(data):
            return self.from_edges(
                data,
                sender_name=sender_name,
                receiver_name=receiver_name,
                weight_name=weight_name,
                duplicates=duplicates,
            )

        raise InvalidInputKind(
            f"expected an edge list, an adjacency matrix or a networkx graph, got {type(data).__name__}"
        )

    # ---------- edge list ----------

    def from_edges(
        self,
        data: Any,
        *,
        sender_name: Optional[Hashable] = None,
        receiver_name: Optional[Hashable] = None,
        weight_name: Optional[Hashable] = None,
        duplicates: str = "add",
    ) -> BipartiteGraph:
        """
        Edge list → biadjacency matrix.

        Row / column ids are the distinct sender / receiver values in order of
        first appearance. Repeated (sender, receiver) pairs are summed
        (`duplicates="add"`) or reduced to their first occurrence
        (`duplicates="remove"`).

        Weights default to 1. For plain tuples, a third element is the weight.
        """
        policy = DuplicatePolicy.parse(duplicates)
        df, positional = _as_frame(data)

        columns = list(df.columns)
        if len(df) == 0 and not columns:
            raise DegenerateGraph("edge list is empty, no nodes to rank")

        if len(columns) < 2 and (sender_name is None or receiver_name is None):
            raise InvalidInputKind(f"an edge list needs at least two columns, got {columns}")

        sender = columns[0] if sender_name is None else sender_name
        receiver = columns[1] if receiver_name is None else receiver_name
        weight = weight_name
        if weight is None and positional and len(columns) >= 3 and 2 not in (sender, receiver):
            weight = 2

        for name in (sender, receiver, weight):
            if name is not None and name not in df.columns:
                raise MissingColumn(name, columns)

        if len(df) == 0:
            raise DegenerateGraph("edge list is empty, no nodes to rank")

        senders = df[sender]
        receivers = df[receiver]
        if senders.isna().any() or receivers.isna().any():
            raise InvalidInputKind("sender / receiver ids must not be missing")

        if weight is None:
            weights = np.ones(len(df), dtype=np.float64)
        else:
            weights = _weights_of(df[weight])

        edges = pd.DataFrame({
            "sender": senders.to_numpy(),
            "receiver": receivers.to_numpy(),
            "weight": weights,
        })
        if policy is DuplicatePolicy.REMOVE:
            edges = edges.drop_duplicates(subset=["sender", "receiver"], keep="first")
            if len(edges) < len(df):
                logger.debug(f"dropped {len(df) - len(edges)} duplicated edges")

        row_codes, row_ids = pd.factorize(edges["sender"], sort=False)
        col_codes, col_ids = pd.factorize(edges["receiver"], sort=False)

        # coo -> csr sums repeated (row, col) entries, which is the "add" policy
        W = sp.coo_matrix(
            (edges["weight"].to_numpy(dtype=np.float64), (row_codes, col_codes)),
            shape=(len(row_ids), len(col_ids)),
        ).tocsr()

        return self._finalize(
            W,
            row_ids.tolist(),
            col_ids.tolist(),
            row_label="rows" if positional else sender,
            col_label="columns" if positional else receiver,
        )

    # ---------- adjacency matrix ----------

    def from_matrix(
        self,
        data: Any,
        *,
        rm_weights: bool = False,
        row_names: Optional[Sequence[Any]] = None,
        col_names: Optional[Sequence[Any]] = None,
    ) -> BipartiteGraph:
        """
        Adjacency matrix → biadjacency matrix, used as is.

        Ids are `row_names` / `col_names` when given, positional 1..m / 1..n
        otherwise. `rm_weights=True` turns every non-zero entry into 1.
        """
        if sp.issparse(data):
            if data.ndim != 2 or not _numeric_kind(data.dtype):
                raise InvalidInputKind(f"expected a 2-D numeric sparse matrix, got {data.dtype} {data.shape}")
            W = sp.csr_matrix(data, dtype=np.float64, copy=True)
        else:
            arr = np.asarray(data)
            if arr.ndim != 2 or not _numeric_kind(arr.dtype):
                raise InvalidInputKind(f"expected a 2-D numeric matrix, got {arr.dtype} with shape {arr.shape}")
            W = sp.csr_matrix(arr.astype(np.float64))

        _check_entries(W.data)

        m, n = W.shape
        row_ids = _names_or_positions(row_names, m, "row_names")
        col_ids = _names_or_positions(col_names, n, "col_names")

        W.sum_duplicates()
        W.eliminate_zeros()
        if rm_weights:
            W.data[:] = 1.0

        return self._finalize(W, row_ids, col_ids)

    # ---------- networkx ----------

    def from_networkx(
        self,
        G: nx.Graph,
        *,
        top_nodes: Optional[IterableT[Any]] = None,
        weight_name: Optional[Hashable] = None,
        rm_weights: bool = False,
    ) -> BipartiteGraph:
        """
        networkx graph → biadjacency matrix.

        The row mode is `top_nodes` if given, else every node whose
        `bipartite` attribute is 0 (those with 1 become columns). Node order
        follows `G.nodes`. Nodes without edges end up as isolates.
        """
        if top_nodes is None:
            side = dict(G.nodes(data="bipartite"))
            top = [node for node, s in side.items() if s == 0]
            bottom = [node for node, s in side.items() if s == 1]
            if len(top) + len(bottom) != G.number_of_nodes():
                raise InvalidInputKind(
                    "every node needs a 'bipartite' attribute of 0 or 1 when top_nodes is not given"
                )
        else:
            top_set = set(top_nodes)
            unknown = top_set.difference(G.nodes)
            if unknown:
                raise InvalidInputKind(f"top_nodes not in graph: {sorted(map(str, unknown))[:10]}")
            top = [node for node in G.nodes if node in top_set]
            bottom = [node for node in G.nodes if node not in top_set]

        top_set = set(top)
        for u, v in G.edges():
            if (u in top_set) == (v in top_set):
                raise InvalidInputKind(f"edge ({u!r}, {v!r}) joins two nodes of the same mode")

        if not top or not bottom:
            raise DegenerateGraph(f"bipartite graph has {len(top)} row nodes and {len(bottom)} column nodes")

        undirected = G.to_undirected(as_view=True) if G.is_directed() else G
        weight = "weight" if weight_name is None else weight_name
        try:
            W = nx.bipartite.biadjacency_matrix(
                undirected,
                row_order=top,
                column_order=bottom,
                weight=weight,
                dtype=np.float64,
                format="csr",
            )
        except (TypeError, ValueError) as exc:
            raise InvalidInputKind(f"edge attribute {weight!r} must be numeric: {exc}") from exc
        W = sp.csr_matrix(W)
        _check_entries(W.data)

        W.eliminate_zeros()
        if rm_weights:
            W.data[:] = 1.0

        return self._finalize(W, top, bottom)

    # ---------- shared ----------

    @staticmethod
    def _finalize(
        W: sp.csr_matrix,
        row_ids: List[Any],
        col_ids: List[Any],
        *,
        row_label: Any = "rows",
        col_label: Any = "columns",
    ) -> BipartiteGraph:
        m, n = W.shape
        if m == 0 or n == 0:
            raise DegenerateGraph(f"graph has {m} rows and {n} columns, no ranks can be computed")

        W.eliminate_zeros()
        W.sort_indices()
        graph = BipartiteGraph(W=W, row_ids=row_ids, col_ids=col_ids, row_label=row_label, col_label=col_label)
        logger.debug(f"built bipartite graph: {m} rows x {n} columns, {graph.n_edges} edges")
        return graph


# ============================================================
# helpers
# ============================================================

def _is_record_iterable(data: Any) -> bool:
    if isinstance(data, (str, bytes, Mapping, pd.Series, pd.Index)):
        return False
    return isinstance(data, Iterable)


def _as_frame(data: Any):
    """Normalize an edge list into a DataFrame; the flag tells whether columns are positional."""
    if isinstance(data, pd.DataFrame):
        return data, False

    records = list(data)
    if not records:
        return pd.DataFrame(), True

    if all(isinstance(r, Mapping) for r in records):
        return pd.DataFrame.from_records(records), False

    if all(isinstance(r, (tuple, list)) for r in records):
        widths = {len(r) for r in records}
        if len(widths) != 1 or min(widths) < 2:
            raise InvalidInputKind(f"edge tuples must share one length of at least 2, got lengths {sorted(widths)}")
        return pd.DataFrame.from_records(records), True

    raise InvalidInputKind("edge list items must all be tuples or all be dict records")


def _numeric_kind(dtype) -> bool:
    return np.dtype(dtype).kind in "biuf"


def _weights_of(column: pd.Series) -> np.ndarray:
    if not is_numeric_dtype(column) or is_complex_dtype(column):
        raise InvalidInputKind(f"weight column {column.name!r} is not numeric ({column.dtype})")
    weights = column.to_numpy(dtype=np.float64, na_value=np.nan)
    _check_entries(weights)
    return weights


def _check_entries(values: np.ndarray) -> None:
    if values.size == 0:
        return
    if not np.all(np.isfinite(values)):
        raise InvalidInputKind("edge weights must be finite")
    if np.any(values < 0):
        raise InvalidInputKind("edge weights must be non-negative")


def _names_or_positions(names: Optional[Sequence[Any]], size: int, what: str) -> List[Any]:
    if names is None:
        return list(range(1, size + 1))
    names = list(names)
    if len(names) != size:
        raise InvalidInputKind(f"{what} has {len(names)} entries, matrix dimension is {size}")
    if len(set(names)) != size:
        raise InvalidInputKind(f"{what} must be unique")
    return names
