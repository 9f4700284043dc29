from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import MIN_OAUTH_TOKEN_LENGTH, OAUTH_TOKEN_PREFIX

DEFAULT_GREETING = "Toolkit Core has connected to chat"


def normalize_token(token: str | None) -> str:
    """Strip whitespace and ensure the ``oauth:`` prefix on a non-empty token."""
    token = (token or "").strip()
    if token and not token.startswith(OAUTH_TOKEN_PREFIX):
        token = f"{OAUTH_TOKEN_PREFIX}{token}"
    return token


def normalize_channel(channel: str | None) -> str:
    return (channel or "").strip().lstrip("#").lower()


class ConnectionCredentials(BaseModel):
    """Immutable bot account credentials handed to the transport.

    The token is normalized on construction, so a bare token becomes
    ``oauth:<token>``. Construction never fails on bad values; call
    ``validation_error`` to decide whether a connection may be attempted.

    Attributes:
        username: Bot account login, lowercased.
        token: OAuth token carrying the ``oauth:`` prefix.
    """

    model_config = ConfigDict(frozen=True)

    username: str = ""
    token: str = Field(default="", repr=False)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            data = dict(data)
            data["username"] = str(data.get("username") or "").strip().lower()
            data["token"] = normalize_token(data.get("token"))
        return data

    def validation_error(self) -> str | None:
        """Return why these credentials cannot be used, or None if they can.

        Returns:
            A short human readable reason, or None when the credentials pass.
        """
        if not self.username:
            return "bot username is empty"
        if not self.token:
            return "oauth token is empty"
        if len(self.token) <= MIN_OAUTH_TOKEN_LENGTH:
            return (
                f"oauth token is too short ({len(self.token)} <= {MIN_OAUTH_TOKEN_LENGTH})"
            )
        return None

    def is_valid(self) -> bool:
        return self.validation_error() is None


class ChannelSettings(BaseModel):
    """Mutable channel settings read on every connect and reconnect.

    Attributes:
        channel_username: Channel to join, stored without ``#`` and lowercased.
        bot_username: Account the bot logs in as.
        oauth_token: Bot account token (prefix added automatically).
        connect_on_startup: Auto-connect when the application starts.
        allow_whispers: Deliver whispers and whisper commands to listeners.
        force_whispers: Commands are only accepted as whispers; chat commands are ignored.
        send_message_on_join: Send ``greeting_message`` after joining the channel.
        debug_logging: Enable DEBUG level logging.
        greeting_message: Text sent on join.
        command_identifier: Prefix marking a chat line as a command.
    """

    model_config = ConfigDict(validate_assignment=True, extra="ignore")

    channel_username: str = ""
    bot_username: str = ""
    oauth_token: str = Field(default="", repr=False)
    connect_on_startup: bool = False
    allow_whispers: bool = True
    force_whispers: bool = False
    send_message_on_join: bool = True
    debug_logging: bool = False
    greeting_message: str = DEFAULT_GREETING
    command_identifier: str = Field(default="!", min_length=1, max_length=1)

    @field_validator("channel_username", mode="before")
    @classmethod
    def _normalize_channel(cls, v: Any) -> str:
        return normalize_channel(str(v) if v is not None else "")

    @field_validator("bot_username", mode="before")
    @classmethod
    def _normalize_bot(cls, v: Any) -> str:
        return str(v or "").strip()

    @field_validator("oauth_token", mode="before")
    @classmethod
    def _normalize_token(cls, v: Any) -> str:
        return normalize_token(str(v) if v is not None else "")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChannelSettings:
        """Build settings from a persisted mapping.

        Missing keys take their defaults and unknown keys are ignored.
        """
        return cls.model_validate(dict(data))

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()

    def credentials(self) -> ConnectionCredentials:
        return ConnectionCredentials(username=self.bot_username, token=self.oauth_token)

    def can_connect_on_startup(self) -> bool:
        """True when auto-connect is enabled and credentials are filled in."""
        return bool(self.connect_on_startup and self.bot_username and self.oauth_token)

    def update_from(self, other: ChannelSettings) -> list[str]:
        """Copy every field from ``other`` in place.

        Returns:
            Names of the fields whose value changed.
        """
        changed: list[str] = []
        for name in type(self).model_fields:
            new_value = getattr(other, name)
            if getattr(self, name) != new_value:
                setattr(self, name, new_value)
                changed.append(name)
        return changed
