from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..chat.messages import ChatMessage, UserType, WhisperMessage

# Persisted fields; badges are transient and deliberately absent
PERSISTED_FIELDS = (
    "username",
    "display_name",
    "user_id",
    "is_broadcaster",
    "is_bot",
    "is_moderator",
    "is_subscriber",
    "user_type",
)


@dataclass(eq=False)
class Viewer:
    """One chat participant.

    Identity is the username compared case-insensitively, which is how
    Twitch treats logins. ``badges`` reflects the latest message only and
    is never persisted.
    """

    username: str
    display_name: str = ""
    user_id: str = ""
    is_broadcaster: bool = False
    is_bot: bool = False
    is_moderator: bool = False
    is_subscriber: bool = False
    user_type: UserType = UserType.VIEWER
    badges: list[tuple[str, str]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.username = (self.username or "").strip()
        if not self.display_name:
            self.display_name = self.username

    @property
    def key(self) -> str:
        return self.username.lower()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Viewer):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def update_from_chat(self, message: ChatMessage) -> None:
        """Refresh profile and role flags from a chat message."""
        self.display_name = message.display_name or self.display_name
        self.user_id = message.user_id or self.user_id
        self.is_broadcaster = message.is_broadcaster
        self.is_bot = message.is_me
        self.is_moderator = message.is_moderator
        self.is_subscriber = message.is_subscriber
        self.user_type = message.user_type
        self.badges = list(message.badges)

    def update_from_whisper(self, whisper: WhisperMessage) -> None:
        # Whispers carry no channel roles; keep the flags from chat
        self.display_name = whisper.display_name or self.display_name
        self.user_id = whisper.user_id or self.user_id

    def to_dict(self) -> dict[str, Any]:
        data = {name: getattr(self, name) for name in PERSISTED_FIELDS}
        data["user_type"] = self.user_type.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Viewer:
        """Build a viewer from persisted data.

        Missing keys take defaults and unknown keys are ignored.
        """
        return cls(
            username=str(data.get("username") or ""),
            display_name=str(data.get("display_name") or ""),
            user_id=str(data.get("user_id") or ""),
            is_broadcaster=bool(data.get("is_broadcaster", False)),
            is_bot=bool(data.get("is_bot", False)),
            is_moderator=bool(data.get("is_moderator", False)),
            is_subscriber=bool(data.get("is_subscriber", False)),
            user_type=UserType.from_tag(data.get("user_type")),
        )
