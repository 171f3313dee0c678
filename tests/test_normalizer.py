"""Tests for birank/normalizer.py."""

import numpy as np
import pytest

from birank.errors import InvalidParameter
from birank.graph_builder import GraphBuilder
from birank.normalizer import BiRankNormalizer, NormalizerKind, get_normalizer


def test_degrees_and_symmetric_sqrt_scaling(edges):
    graph = GraphBuilder().build(edges)
    degrees, transitions = BiRankNormalizer().normalize(graph)

    np.testing.assert_array_equal(degrees.d_row, [2.0, 1.0])
    np.testing.assert_array_equal(degrees.d_col, [2.0, 1.0])

    r = 1.0 / np.sqrt(2.0)
    np.testing.assert_allclose(transitions.S_rc.toarray(), [[0.5, r], [r, 0.0]])
    np.testing.assert_allclose(transitions.S_cr.toarray(), transitions.S_rc.toarray().T)
    assert transitions.S_cr.shape == (2, 2)


def test_weighted_entries():
    graph = GraphBuilder().build(np.array([[4.0, 0.0, 1.0], [0.0, 9.0, 0.0]]))
    degrees, transitions = BiRankNormalizer().normalize(graph)

    np.testing.assert_array_equal(degrees.d_row, [5.0, 9.0])
    np.testing.assert_array_equal(degrees.d_col, [4.0, 9.0, 1.0])
    expected = np.array([
        [4.0 / np.sqrt(5.0 * 4.0), 0.0, 1.0 / np.sqrt(5.0 * 1.0)],
        [0.0, 9.0 / np.sqrt(9.0 * 9.0), 0.0],
    ])
    np.testing.assert_allclose(transitions.S_rc.toarray(), expected)
    assert transitions.S_cr.shape == (3, 2)


def test_isolates_do_not_divide_by_zero():
    graph = GraphBuilder().build(np.array([[1.0, 0.0], [0.0, 0.0]]))
    degrees, transitions = BiRankNormalizer().normalize(graph)

    np.testing.assert_array_equal(degrees.row_isolates, [False, True])
    np.testing.assert_array_equal(degrees.col_isolates, [False, True])
    assert np.all(np.isfinite(transitions.S_rc.toarray()))
    assert transitions.S_rc.nnz == 1


def test_get_normalizer():
    assert isinstance(get_normalizer(), BiRankNormalizer)
    assert isinstance(get_normalizer("BiRank"), BiRankNormalizer)
    assert isinstance(get_normalizer(NormalizerKind.BIRANK), BiRankNormalizer)

    custom = BiRankNormalizer()
    assert get_normalizer(custom) is custom

    with pytest.raises(InvalidParameter):
        get_normalizer("cohits")
