import sys

import pytest
from loguru import logger

from simply_mongo.log import configure_logging


@pytest.fixture()
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_configure_logging_respects_level(capsys, monkeypatch, restore_logger):
    monkeypatch.setenv("LOG_LEVEL", "warning")

    configure_logging()
    logger.info("hidden message")
    logger.warning("visible message")

    err = capsys.readouterr().err
    assert "hidden message" not in err
    assert "visible message" in err
