import pytest

from tests.fixtures.transport_fixtures import SETTINGS_DATA, FakeTransport, fake_transport_factory
from toolkit_core.chat.connection_manager import ConnectionManager
from toolkit_core.chat.fan_out import EventFanOut
from toolkit_core.commands.registry import CommandRegistry
from toolkit_core.config.model import ChannelSettings
from toolkit_core.rate.sender import RateLimitedSender
from toolkit_core.scheduler.main_loop import MainLoopDispatchQueue
from toolkit_core.viewers.registry import ViewerRegistry


@pytest.fixture(autouse=True)
def _reset_fake_transports():
    FakeTransport.instances.clear()
    yield
    FakeTransport.instances.clear()


@pytest.fixture
def settings():
    return ChannelSettings.from_dict(SETTINGS_DATA)


@pytest.fixture
def queue():
    return MainLoopDispatchQueue()


@pytest.fixture
def manager(settings, queue):
    """ConnectionManager over FakeTransport with an unthrottled sender."""
    holder: dict = {}
    sender = RateLimitedSender(
        transport_provider=lambda: holder["manager"].transport,
        channel_provider=lambda: settings.channel_username,
        min_delay=0,
    )
    mgr = ConnectionManager(
        settings=settings,
        dispatch_queue=queue,
        fan_out=EventFanOut(settings),
        commands=CommandRegistry(),
        viewers=ViewerRegistry(),
        transport_factory=fake_transport_factory(),
        sender=sender,
    )
    holder["manager"] = mgr
    yield mgr
    mgr.shutdown()
