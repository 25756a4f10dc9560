import logging

import pytest


@pytest.fixture
def xrf_log(caplog):
    """caplog wired to the non-propagating xrfstream logger."""
    logger = logging.getLogger("xrfstream")
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger="xrfstream")
    yield caplog
    logger.removeHandler(caplog.handler)
