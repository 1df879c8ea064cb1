import pytest

from sigtrack import configure, debug, set_scheduler


@pytest.fixture(autouse=True)
def _reset_globals():
    """Each test starts without debug hooks, scheduler or development mode."""
    configure(development=False)
    yield
    debug.reset()
    set_scheduler(None)
    configure(development=False)
