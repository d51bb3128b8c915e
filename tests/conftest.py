import pytest
import pytest_asyncio

from logexplorer.config import ExplorerConfig
from logexplorer.engine import LogExplorerEngine

from tests.fakes import FakeLogApi, FixedClock


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def api():
    return FakeLogApi()


@pytest.fixture
def config():
    return ExplorerConfig(poll_interval=3600.0, live_window_minutes=60)


@pytest.fixture
def url_writes():
    return []


@pytest_asyncio.fixture
async def make_engine(api, config, clock, url_writes):
    """Factory for engines seeded with URL params; closes them on teardown.

    Async so that teardown runs while the event loop owning the pollers is alive.
    """
    engines = []

    def _make(url_params=None, **overrides):
        kwargs = dict(
            url_params=url_params or {"ref": "123", "type": "api"},
            url_writer=url_writes.append,
            clock=clock,
        )
        kwargs.update(overrides)
        engine = LogExplorerEngine(api, config, **kwargs)
        engines.append(engine)
        return engine

    yield _make
    for engine in engines:
        engine.close()


@pytest_asyncio.fixture
async def engine(make_engine):
    """A mounted engine with default URL params."""
    eng = make_engine()
    await eng.mount()
    return eng
