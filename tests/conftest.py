import pytest
from loguru import logger


@pytest.fixture
def edges():
    # A has degree 2, B has degree 1
    return [("A", "X", 1), ("A", "Y", 1), ("B", "X", 1)]


@pytest.fixture
def log_records():
    """Collect loguru records emitted during a test, with birank logging switched on."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    logger.enable("birank")
    yield records
    logger.disable("birank")
    logger.remove(handler_id)
