import asyncio
import json
from unittest.mock import MagicMock

import pytest

from tests.fixtures.transport_fixtures import SETTINGS_DATA, FakeTransport, fake_transport_factory
from toolkit_core.app import ToolkitApplication
from toolkit_core.commands.builtin import HELLO_WORLD_REPLY
from toolkit_core.config.core import ENV_OVERRIDES
from toolkit_core.config.model import ChannelSettings


@pytest.fixture
def viewers_path(tmp_path):
    return tmp_path / "toolkit_viewers.json"


@pytest.fixture
def app(viewers_path):
    application = ToolkitApplication(
        ChannelSettings.from_dict(SETTINGS_DATA),
        viewers_file=str(viewers_path),
        transport_factory=fake_transport_factory(),
        logger_configurator=MagicMock(),
    )
    yield application
    application.shutdown()


def _drain_outbound(app):
    app.connection._outbound.submit(lambda: None).result(timeout=5)


def test_create_reads_settings_file(tmp_path, monkeypatch):
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    settings_path = tmp_path / "toolkit_core.conf"
    settings_path.write_text(json.dumps(SETTINGS_DATA))

    application = ToolkitApplication.create(
        settings_file=str(settings_path),
        viewers_file=str(tmp_path / "viewers.json"),
        transport_factory=fake_transport_factory(),
    )
    try:
        assert application.settings.channel_username == "streamerchan"
        assert application.settings_file == str(settings_path)
        assert "helloworld" in application.commands
    finally:
        application.shutdown()


def test_start_auto_connects_and_hello_world_replies(app):
    app.start(watch_settings=False)
    transport = app.connection.transport
    assert isinstance(transport, FakeTransport)

    transport.simulate_join()
    app.tick()
    transport.emit_chat("!helloworld", username="alice")
    app.tick()
    _drain_outbound(app)

    assert [text for _, text in transport.sent] == [app.settings.greeting_message, HELLO_WORLD_REPLY]


def test_chat_traffic_populates_viewer_registry(app):
    app.start(watch_settings=False)
    transport = app.connection.transport
    transport.simulate_join()
    transport.emit_chat("hi", username="Alice", is_subscriber=True)
    app.tick()

    viewer = app.viewers.get("alice")
    assert viewer is not None
    assert viewer.is_subscriber is True
    assert app.tracker.is_tracked(viewer)


def test_no_auto_connect_when_disabled(viewers_path):
    settings = ChannelSettings.from_dict({**SETTINGS_DATA, "connect_on_startup": False})
    application = ToolkitApplication(settings, viewers_file=str(viewers_path), transport_factory=fake_transport_factory())
    try:
        application.start(watch_settings=False)
        assert FakeTransport.instances == []
    finally:
        application.shutdown()


def test_load_viewers_removes_duplicates_and_resaves(app, viewers_path):
    viewers_path.write_text(
        json.dumps({"viewers": [{"username": "Alice"}, {"username": "alice"}, {"username": "bob"}]})
    )
    assert app.load_viewers() == 2
    on_disk = json.loads(viewers_path.read_text())
    assert [v["username"] for v in on_disk["viewers"]] == ["Alice", "bob"]


def test_shutdown_persists_viewers(app, viewers_path):
    app.viewers.create("carol")
    app.shutdown()
    on_disk = json.loads(viewers_path.read_text())
    assert [v["username"] for v in on_disk["viewers"]] == ["carol"]


def test_connection_setting_change_reconnects(app):
    app.start(watch_settings=False)
    first = app.connection.transport

    app.settings.channel_username = "otherchan"
    app._on_settings_reloaded(["channel_username"])
    assert app.connection.transport is first
    app.tick()

    assert app.connection.transport is not first
    assert app.connection.transport.channel == "otherchan"


def test_debug_and_identifier_changes_applied(app):
    app.settings.debug_logging = True
    app.settings.command_identifier = "?"
    app._on_settings_reloaded(["debug_logging", "command_identifier"])
    app.tick()

    app.logger_configurator.set_debug.assert_called_once_with(True)
    assert app.commands.command_identifier == "?"
    assert FakeTransport.instances == []


@pytest.mark.asyncio
async def test_run_until_stopped(app):
    stop_event = asyncio.Event()
    task = asyncio.create_task(app.run(stop_event, interval=0.01))
    await asyncio.sleep(0.05)
    assert app.connection.transport is not None
    stop_event.set()
    await asyncio.wait_for(task, timeout=2)
    assert app.connection.transport is None
