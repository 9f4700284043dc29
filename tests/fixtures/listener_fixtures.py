"""
Listener doubles for fan-out tests.
"""

from toolkit_core.chat.listener import ChatListener


class RecordingListener(ChatListener):
    def __init__(self, label: str = "recording", log: list | None = None):
        self.label = label
        self.log = log if log is not None else []
        self.messages = []
        self.whispers = []
        self.chat_commands = []
        self.whisper_commands = []

    def parse_message(self, message):
        self.messages.append(message)
        self.log.append((self.label, "message"))

    def parse_whisper(self, whisper):
        self.whispers.append(whisper)
        self.log.append((self.label, "whisper"))

    def parse_chat_command(self, command):
        self.chat_commands.append(command)
        self.log.append((self.label, "chat_command"))

    def parse_whisper_command(self, command):
        self.whisper_commands.append(command)
        self.log.append((self.label, "whisper_command"))


class ExplodingListener(ChatListener):
    def parse_message(self, message):
        raise RuntimeError("listener boom")

    def parse_whisper(self, whisper):
        raise RuntimeError("listener boom")
