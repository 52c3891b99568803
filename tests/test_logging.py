import logging

import pytest

from headcount.core import logging as headcount_logging
from headcount.core.logging import configure_logging


@pytest.fixture()
def root_level():
    root = logging.getLogger()
    level = root.level
    yield root
    root.setLevel(level)


def test_configure_logging_installs_one_handler(root_level):
    configure_logging("debug")
    configure_logging("WARNING")

    installed = [h for h in root_level.handlers if h is headcount_logging._handler]
    assert len(installed) == 1
    assert root_level.level == logging.WARNING
