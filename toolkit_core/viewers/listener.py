from __future__ import annotations

from ..chat.listener import ChatListener
from ..chat.messages import ChatMessage, WhisperMessage
from .registry import ViewerRegistry
from .tracker import ViewerTracker


class ViewerListener(ChatListener):
    """Keeps the viewer registry and activity tracker current from chat traffic."""

    def __init__(self, registry: ViewerRegistry, tracker: ViewerTracker | None = None):
        self.registry = registry
        self.tracker = tracker

    def parse_message(self, message: ChatMessage) -> None:
        viewer = self.registry.get_or_create(message.username)
        if viewer is None:
            return
        self.registry.update(viewer.username, lambda v: v.update_from_chat(message))
        if self.tracker is not None:
            self.tracker.touch(viewer)

    def parse_whisper(self, whisper: WhisperMessage) -> None:
        viewer = self.registry.get_or_create(whisper.username)
        if viewer is None:
            return
        self.registry.update(viewer.username, lambda v: v.update_from_whisper(whisper))
