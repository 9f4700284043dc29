"""Inbound chat event payloads decoded by the transport."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class UserType(str, Enum):
    VIEWER = "viewer"
    MODERATOR = "mod"
    GLOBAL_MODERATOR = "global_mod"
    ADMIN = "admin"
    STAFF = "staff"
    BROADCASTER = "broadcaster"

    @classmethod
    def from_tag(cls, raw: str | None) -> UserType:
        try:
            return cls(raw) if raw else cls.VIEWER
        except ValueError:
            return cls.VIEWER


@dataclass(slots=True)
class ChatMessage:
    username: str
    channel: str
    text: str
    display_name: str = ""
    user_id: str = ""
    is_broadcaster: bool = False
    is_moderator: bool = False
    is_subscriber: bool = False
    is_me: bool = False  # sent by the bot account itself
    user_type: UserType = UserType.VIEWER
    badges: list[tuple[str, str]] = field(default_factory=list)
    bits: int = 0
    message_id: str = ""


@dataclass(slots=True)
class WhisperMessage:
    username: str
    text: str
    display_name: str = ""
    user_id: str = ""
    user_type: UserType = UserType.VIEWER
    badges: list[tuple[str, str]] = field(default_factory=list)
    message_id: str = ""


@dataclass(slots=True)
class ChatCommand:
    """A chat message whose text starts with the command identifier.

    ``command_text`` is the message with the identifier stripped, e.g. the
    message ``!bal me`` has command text ``bal me``.
    """

    message: ChatMessage
    command_text: str
    identifier: str = "!"

    @property
    def username(self) -> str:
        return self.message.username


@dataclass(slots=True)
class WhisperCommand:
    whisper: WhisperMessage
    command_text: str
    identifier: str = "!"

    @property
    def username(self) -> str:
        return self.whisper.username


@dataclass(slots=True)
class UserBan:
    channel: str
    username: str
    duration_seconds: int | None = None  # None for a permanent ban
    reason: str = ""

    @property
    def is_timeout(self) -> bool:
        return self.duration_seconds is not None


@dataclass(slots=True)
class SubscriberNotice:
    """Subscription USERNOTICE (``sub``, ``resub`` or ``subgift``)."""

    channel: str
    username: str
    kind: str
    display_name: str = ""
    cumulative_months: int = 0
    plan: str = ""
    text: str = ""
    recipient: str = ""  # set for gifted subscriptions


@dataclass(slots=True)
class RaidNotice:
    channel: str
    raider: str
    display_name: str = ""
    viewer_count: int = 0


@dataclass(slots=True)
class ChannelPresence:
    """A JOIN or PART observed for a user other than the bot."""

    channel: str
    username: str


@dataclass(slots=True)
class CommandContext:
    """Identity and arguments a command handler executes with.

    Attributes:
        username: Invoking viewer.
        is_moderator: Invoker holds the moderator role.
        is_broadcaster: Invoker owns the channel.
        arguments: Tokens following the command keyword.
        source: ``chat`` or ``whisper``.
        command_text: Full command text including the keyword.
    """

    username: str
    is_moderator: bool = False
    is_broadcaster: bool = False
    arguments: list[str] = field(default_factory=list)
    source: str = "chat"
    command_text: str = ""
