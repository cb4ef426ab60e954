import logging
import warnings

import pytest

# PyMuPDF's SWIG bindings warn on import under recent interpreters.
warnings.filterwarnings(
    "ignore",
    message=r"builtin type .* has no __module__ attribute",
    category=DeprecationWarning,
)


@pytest.fixture(autouse=True)
def quiet_console_logs(caplog):
    caplog.set_level(logging.WARNING, logger="invconsole")
