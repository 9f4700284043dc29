import logging

from tests.fixtures.listener_fixtures import ExplodingListener, RecordingListener
from toolkit_core.chat.fan_out import EventFanOut, MessageCategory
from toolkit_core.chat.messages import ChatCommand, ChatMessage, WhisperCommand, WhisperMessage


def _chat(text="hi"):
    return ChatMessage(username="alice", channel="streamerchan", text=text)


def _whisper(text="psst"):
    return WhisperMessage(username="bob", text=text)


class TestEventFanOut:
    def setup_method(self):
        self.log = []

    def test_listeners_called_in_registration_order(self, settings):
        fan_out = EventFanOut(settings)
        fan_out.register_listener(RecordingListener("a", self.log))
        fan_out.register_listener(RecordingListener("b", self.log))
        fan_out.register_listener(RecordingListener("c", self.log))

        assert fan_out.deliver_chat_message(_chat()) == 3
        assert self.log == [("a", "message"), ("b", "message"), ("c", "message")]

    def test_failing_listener_does_not_stop_others(self, settings, caplog):
        caplog.set_level(logging.ERROR)
        fan_out = EventFanOut(settings)
        first = RecordingListener("first", self.log)
        last = RecordingListener("last", self.log)
        fan_out.register_listener(first)
        fan_out.register_listener(ExplodingListener())
        fan_out.register_listener(last)

        assert fan_out.deliver_chat_message(_chat()) == 2
        assert len(first.messages) == 1
        assert len(last.messages) == 1
        assert "listener=ExplodingListener" in caplog.text
        assert "category=CHAT_MESSAGE" in caplog.text

    def test_whispers_dropped_when_disabled(self, settings):
        settings.allow_whispers = False
        fan_out = EventFanOut(settings)
        listener = RecordingListener(log=self.log)
        fan_out.register_listener(listener)

        whisper = _whisper("!hello")
        assert fan_out.deliver_whisper(whisper) == 0
        assert fan_out.deliver_whisper_command(WhisperCommand(whisper, "hello")) == 0
        assert listener.whispers == []
        assert listener.whisper_commands == []

    def test_force_whispers_drops_chat_commands_only(self, settings):
        settings.force_whispers = True
        fan_out = EventFanOut(settings)
        listener = RecordingListener(log=self.log)
        fan_out.register_listener(listener)
        message = _chat("!hello")

        assert fan_out.deliver_chat_message(message) == 1
        assert fan_out.deliver_chat_command(ChatCommand(message, "hello")) == 0
        assert fan_out.deliver_whisper_command(WhisperCommand(_whisper("!hello"), "hello")) == 1
        assert listener.chat_commands == []
        assert len(listener.whisper_commands) == 1

    def test_policy_read_at_delivery_time(self, settings):
        fan_out = EventFanOut(settings)
        fan_out.register_listener(RecordingListener(log=self.log))
        assert fan_out.allows(MessageCategory.WHISPER)
        settings.allow_whispers = False
        assert not fan_out.allows(MessageCategory.WHISPER)
        assert fan_out.allows(MessageCategory.CHAT_MESSAGE)

    def test_register_is_idempotent_and_unregister_stops_delivery(self, settings):
        fan_out = EventFanOut(settings)
        listener = RecordingListener(log=self.log)
        assert fan_out.register_listener(listener) is True
        assert fan_out.register_listener(listener) is False
        assert len(fan_out.listeners) == 1

        assert fan_out.unregister_listener(listener) is True
        assert fan_out.unregister_listener(listener) is False
        assert fan_out.deliver_chat_message(_chat()) == 0
        assert listener.messages == []

    def test_optional_command_hooks_default_to_noop(self, settings):
        fan_out = EventFanOut(settings)
        fan_out.register_listener(ExplodingListener())
        # ExplodingListener only overrides the required hooks
        assert fan_out.deliver_chat_command(ChatCommand(_chat("!x"), "x")) == 1
