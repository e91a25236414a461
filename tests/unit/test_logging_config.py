import logging

import pytest

from listing_lifecycle.logging_config import setup_logging


@pytest.mark.unit
def test_setup_logging_quiets_library_loggers() -> None:
    setup_logging()

    for name in ["urllib3", "requests", "python_multipart", "uvicorn.access"]:
        assert logging.getLogger(name).level == logging.WARNING


@pytest.mark.unit
def test_setup_logging_keeps_uvicorn_errors_verbose() -> None:
    setup_logging()

    assert logging.getLogger("uvicorn.error").level == logging.DEBUG
