import pytest

from models import BotCountPolicy, ServerStatus
from services.presence_task import StatusPoller
from mocks import FakeSink, FakeSource, make_status


@pytest.fixture
def status() -> ServerStatus:
    return make_status()


@pytest.fixture
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def poller(source, sink) -> StatusPoller:
    return StatusPoller(
        source,
        sink,
        policy=BotCountPolicy.IGNORE,
        update_username=True,
        avatar_url=lambda key: f"https://img.example/{key}.png",
    )
