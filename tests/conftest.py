import pytest

from mbot.correlator import Correlator
from tests.fakes import FakeTransport


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def correlator() -> Correlator:
    return Correlator()
