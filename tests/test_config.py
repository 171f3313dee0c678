"""Tests for birank/config.py."""

import dataclasses
import importlib

import numpy as np
import pytest
from loguru import logger

import birank.config as birank_config
from birank.config import RankConfig, configure_logging
from birank.errors import BiRankError, InvalidParameter, NonConvergence
from birank.ranker import birank


def test_defaults():
    cfg = RankConfig()
    assert (cfg.alpha, cfg.beta, cfg.max_iter, cfg.tol, cfg.verbose) == (0.85, 0.85, 200, 1e-4, False)


def test_replace_validates():
    cfg = RankConfig().replace(alpha=1.0, max_iter=np.int64(5))
    assert cfg.alpha == 1.0
    assert cfg.max_iter == 5

    with pytest.raises(InvalidParameter):
        RankConfig().replace(beta=0.0)
    with pytest.raises(InvalidParameter):
        RankConfig().replace(gamma=0.5)


def test_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        RankConfig().alpha = 0.5


@pytest.mark.parametrize("kwargs", [
    {"alpha": 0.0},
    {"alpha": 1.5},
    {"beta": -0.1},
    {"beta": float("nan")},
    {"alpha": "0.85"},
    {"max_iter": 0},
    {"max_iter": 2.5},
    {"max_iter": True},
    {"tol": 0.0},
    {"tol": -1e-4},
])
def test_invalid_parameters(kwargs):
    with pytest.raises(InvalidParameter) as exc:
        RankConfig(**kwargs)
    assert isinstance(exc.value, BiRankError)
    assert isinstance(exc.value, ValueError)


# ---------- logging ----------

def test_import_keeps_host_sinks():
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="INFO")
    try:
        importlib.reload(birank_config)
        logger.info("host app message")
    finally:
        logger.remove(handler_id)

    assert [r["message"] for r in records] == ["host app message"]


def test_package_logs_are_silent_by_default(edges):
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    try:
        with pytest.warns(NonConvergence):
            birank(edges, verbose=True, max_iter=2, tol=1e-12)
    finally:
        logger.remove(handler_id)

    assert not [r for r in records if r["name"].startswith("birank")]


def test_configure_logging_enables_package_records(edges):
    records = []
    stderr_id = configure_logging("INFO")
    handler_id = logger.add(lambda message: records.append(message.record), level="INFO")
    try:
        birank(edges, verbose=True)
    finally:
        logger.remove(handler_id)
        logger.remove(stderr_id)
        logger.disable("birank")

    assert any(r["name"] == "birank.solver" and "residual" in r["message"] for r in records)
