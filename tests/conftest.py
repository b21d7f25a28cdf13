import logging

import pytest

from fontpack.logs import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_fontpack_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
