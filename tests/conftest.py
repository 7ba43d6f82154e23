import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    # The CLI points handlers at CliRunner's streams, which close after each run.
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    logging.getLogger().handlers = []
