"""
Error taxonomy of the ranking pipeline.

Structural problems with the input are exceptions raised before any iteration
runs. Running out of iterations is not: the solver still returns its last
vectors and the caller is told through `NonConvergence`, a warning category.
"""


class BiRankError(Exception):
    """Base class of every exception raised by the package."""


class InvalidInputKind(BiRankError, TypeError):
    """Data is neither an edge list, an adjacency matrix nor a bipartite graph."""


class MissingColumn(BiRankError, KeyError):
    """A sender / receiver / weight column was requested but is absent."""

    def __init__(self, column, available=()):
        self.column = column
        self.available = list(available)
        super().__init__(column)

    def __str__(self):
        return f"column {self.column!r} not found, available columns: {self.available}"


class DegenerateGraph(BiRankError, ValueError):
    """The graph has zero rows or zero columns, nothing can be ranked."""


class InvalidParameter(BiRankError, ValueError):
    """A tuning parameter or option is outside its allowed range."""


class NonConvergence(UserWarning):
    """The iteration budget ran out before the residual dropped below `tol`."""
