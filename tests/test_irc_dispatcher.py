from unittest.mock import MagicMock

import pytest

from tests.fixtures.transport_fixtures import PRIVMSG_LINE, VALID_TOKEN, WHISPER_LINE
from toolkit_core.chat.messages import ChatCommand, ChatMessage, WhisperCommand, WhisperMessage
from toolkit_core.config.model import ConnectionCredentials
from toolkit_core.irc.client import TwitchChatTransport
from toolkit_core.irc.events import TransportEvent
from toolkit_core.irc.models import ConnectionState


class DummyTransport(TwitchChatTransport):
    """Real dispatcher wiring with the socket replaced by a line recorder."""

    def __init__(self):
        super().__init__(url="ws://unused", command_identifier="!")
        self.lines = []
        self.initialize(ConnectionCredentials(username="toolkitbot", token=VALID_TOKEN), "#StreamerChan")

    async def send_line(self, line):
        self.lines.append(line)


class TestIRCDispatcher:
    def setup_method(self):
        self.transport = DummyTransport()
        self.dispatcher = self.transport.dispatcher
        self.events = []
        for event in TransportEvent:
            self.transport.events.subscribe(event, lambda payload, e=event: self.events.append((e, payload)))

    def _of(self, event):
        return [payload for e, payload in self.events if e is event]

    async def feed(self, *lines):
        return await self.dispatcher.process_incoming_data("", "".join(f"{line}\r\n" for line in lines))

    @pytest.mark.asyncio
    async def test_partial_lines_are_buffered(self):
        rest = await self.dispatcher.process_incoming_data("", "PING :tmi.twi")
        assert rest == "PING :tmi.twi"
        assert self.transport.lines == []
        rest = await self.dispatcher.process_incoming_data(rest, "tch.tv\r\n")
        assert rest == ""
        assert self.transport.lines == ["PONG :tmi.twitch.tv"]

    @pytest.mark.asyncio
    async def test_welcome_sets_connected(self):
        await self.feed(":tmi.twitch.tv 001 toolkitbot :Welcome, GLHF!")
        assert self.transport.state is ConnectionState.CONNECTED
        assert self._of(TransportEvent.CONNECTED) == ["toolkitbot"]

    @pytest.mark.asyncio
    async def test_login_failure_notice(self):
        await self.feed(":tmi.twitch.tv NOTICE * :Login authentication failed")
        assert self.transport.auth_failed is True
        assert self._of(TransportEvent.INCORRECT_LOGIN) == ["Login authentication failed"]

    @pytest.mark.asyncio
    async def test_own_join_and_part_track_channel(self):
        await self.feed(":toolkitbot!toolkitbot@toolkitbot.tmi.twitch.tv JOIN #streamerchan")
        assert self.transport.get_joined_channel("#StreamerChan") == "streamerchan"
        assert self.transport.is_connected
        assert self._of(TransportEvent.JOINED_CHANNEL) == ["streamerchan"]

        await self.feed(":toolkitbot!toolkitbot@toolkitbot.tmi.twitch.tv PART #streamerchan")
        assert self.transport.get_joined_channel("streamerchan") is None

    @pytest.mark.asyncio
    async def test_other_users_join_and_part(self):
        await self.feed(
            ":viewer!viewer@viewer.tmi.twitch.tv JOIN #streamerchan",
            ":viewer!viewer@viewer.tmi.twitch.tv PART #streamerchan",
        )
        joined = self._of(TransportEvent.USER_JOINED)
        left = self._of(TransportEvent.USER_LEFT)
        assert [p.username for p in joined] == ["viewer"]
        assert [p.username for p in left] == ["viewer"]
        assert self._of(TransportEvent.JOINED_CHANNEL) == []

    @pytest.mark.asyncio
    async def test_privmsg_emits_message(self):
        await self.feed(PRIVMSG_LINE)
        messages = self._of(TransportEvent.MESSAGE_RECEIVED)
        assert len(messages) == 1
        assert isinstance(messages[0], ChatMessage)
        assert self._of(TransportEvent.CHAT_COMMAND_RECEIVED) == []

    @pytest.mark.asyncio
    async def test_privmsg_command_emits_both_events(self):
        await self.feed(":carol!carol@carol.tmi.twitch.tv PRIVMSG #streamerchan :!bal me")
        assert len(self._of(TransportEvent.MESSAGE_RECEIVED)) == 1
        (command,) = self._of(TransportEvent.CHAT_COMMAND_RECEIVED)
        assert isinstance(command, ChatCommand)
        assert command.command_text == "bal me"
        assert command.username == "carol"

    @pytest.mark.asyncio
    async def test_command_event_precedes_message_event(self):
        await self.feed(
            ":carol!carol@carol.tmi.twitch.tv PRIVMSG #streamerchan :!bal me",
            ":bob!bob@bob.tmi.twitch.tv WHISPER toolkitbot :!help",
        )
        assert [e for e, _ in self.events] == [
            TransportEvent.CHAT_COMMAND_RECEIVED,
            TransportEvent.MESSAGE_RECEIVED,
            TransportEvent.WHISPER_COMMAND_RECEIVED,
            TransportEvent.WHISPER_RECEIVED,
        ]

    @pytest.mark.asyncio
    async def test_lone_identifier_is_not_a_command(self):
        await self.feed(":carol!carol@carol.tmi.twitch.tv PRIVMSG #streamerchan :!")
        assert self._of(TransportEvent.CHAT_COMMAND_RECEIVED) == []

    @pytest.mark.asyncio
    async def test_whisper_and_whisper_command(self):
        await self.feed(WHISPER_LINE, ":bob!bob@bob.tmi.twitch.tv WHISPER toolkitbot :!help")
        whispers = self._of(TransportEvent.WHISPER_RECEIVED)
        assert [w.text for w in whispers] == ["psst", "!help"]
        assert isinstance(whispers[0], WhisperMessage)
        (command,) = self._of(TransportEvent.WHISPER_COMMAND_RECEIVED)
        assert isinstance(command, WhisperCommand)
        assert command.command_text == "help"

    @pytest.mark.asyncio
    async def test_clearchat_ban_and_timeout(self):
        await self.feed(
            "@ban-duration=600 :tmi.twitch.tv CLEARCHAT #streamerchan :spammer",
            ":tmi.twitch.tv CLEARCHAT #streamerchan :troll",
            ":tmi.twitch.tv CLEARCHAT #streamerchan",
        )
        bans = self._of(TransportEvent.USER_BANNED)
        assert [(b.username, b.duration_seconds) for b in bans] == [("spammer", 600), ("troll", None)]
        assert bans[0].is_timeout and not bans[1].is_timeout

    @pytest.mark.asyncio
    async def test_usernotice_subscriptions_and_raid(self):
        await self.feed(
            "@msg-id=sub;login=newbie;display-name=Newbie;msg-param-sub-plan=1000 "
            ":tmi.twitch.tv USERNOTICE #streamerchan",
            "@msg-id=resub;login=vet;msg-param-cumulative-months=14 "
            ":tmi.twitch.tv USERNOTICE #streamerchan :still here",
            "@msg-id=subgift;login=santa;msg-param-recipient-user-name=lucky "
            ":tmi.twitch.tv USERNOTICE #streamerchan",
            "@msg-id=raid;login=raider;msg-param-viewerCount=42 "
            ":tmi.twitch.tv USERNOTICE #streamerchan",
            "@msg-id=ritual;login=someone :tmi.twitch.tv USERNOTICE #streamerchan",
        )
        (sub,) = self._of(TransportEvent.NEW_SUBSCRIBER)
        assert sub.username == "newbie" and sub.plan == "1000"
        (resub,) = self._of(TransportEvent.RE_SUBSCRIBER)
        assert resub.cumulative_months == 14 and resub.text == "still here"
        (gift,) = self._of(TransportEvent.GIFTED_SUBSCRIPTION)
        assert gift.recipient == "lucky"
        (raid,) = self._of(TransportEvent.RAID_NOTIFICATION)
        assert raid.raider == "raider" and raid.viewer_count == 42

    @pytest.mark.asyncio
    async def test_reconnect_request_sets_flag(self):
        await self.feed(":tmi.twitch.tv RECONNECT")
        assert self.transport.reconnect_requested is True


def test_send_message_offline_returns_none():
    transport = DummyTransport()
    assert transport.send_message("streamerchan", "hi") is None


def test_connect_requires_initialize():
    from toolkit_core.errors.internal import ConfigurationError

    transport = TwitchChatTransport()
    with pytest.raises(ConfigurationError):
        transport.connect()


def test_disconnect_before_connect_is_noop():
    transport = DummyTransport()
    transport.disconnect()
    assert transport.state is ConnectionState.DISCONNECTED


@pytest.mark.asyncio
async def test_open_requires_initialize():
    from toolkit_core.errors.internal import ConfigurationError

    session = MagicMock()
    transport = TwitchChatTransport()
    with pytest.raises(ConfigurationError):
        await transport._open(session)
    session.ws_connect.assert_not_called()
