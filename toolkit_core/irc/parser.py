"""IRC line parsing and Twitch tag decoding."""

from __future__ import annotations

from dataclasses import dataclass

from ..chat.messages import ChatMessage, UserType, WhisperMessage

_TAG_ESCAPES = {":": ";", "s": " ", "\\": "\\", "r": "\r", "n": "\n"}


@dataclass
class IRCMessage:
    raw: str
    prefix: str | None
    command: str | None
    params: list[str]
    trailing: str | None
    tags: dict[str, str]

    @property
    def nick(self) -> str:
        """Nickname part of ``nick!user@host``, empty for server prefixes."""
        if not self.prefix or "!" not in self.prefix:
            return ""
        return self.prefix.split("!", 1)[0].lower()

    @property
    def channel(self) -> str:
        for param in self.params:
            if param.startswith("#"):
                return param[1:].lower()
        return ""


def parse_irc_message(raw_line: str) -> IRCMessage:
    tags: dict[str, str] = {}
    prefix: str | None = None
    trailing: str | None = None
    command: str | None = None
    params: list[str] = []

    original = raw_line
    line = raw_line

    if line.startswith("@"):
        tags_part, _, line = line.partition(" ")
        tags = _parse_tags(tags_part[1:])

    if line.startswith(":"):
        prefix, _, line = line[1:].partition(" ")

    if " :" in line:
        line, trailing = line.split(" :", 1)
    elif line.startswith(":"):
        line, trailing = "", line[1:]

    parts = line.split()
    if parts:
        command = parts[0].upper()
        params = parts[1:]

    return IRCMessage(
        raw=original,
        prefix=prefix,
        command=command,
        params=params,
        trailing=trailing,
        tags=tags,
    )


def _unescape_tag_value(value: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "\\" and i + 1 < len(value):
            out.append(_TAG_ESCAPES.get(value[i + 1], value[i + 1]))
            i += 2
            continue
        if ch != "\\":
            out.append(ch)
        i += 1
    return "".join(out)


def _parse_tags(raw_tags: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for tag in raw_tags.split(";"):
        if not tag:
            continue
        k, _, v = tag.partition("=")
        tags[k] = _unescape_tag_value(v)
    return tags


def parse_badges(raw: str | None) -> list[tuple[str, str]]:
    """``broadcaster/1,subscriber/12`` -> ``[("broadcaster", "1"), ("subscriber", "12")]``."""
    badges: list[tuple[str, str]] = []
    for item in (raw or "").split(","):
        if not item:
            continue
        name, _, version = item.partition("/")
        badges.append((name, version))
    return badges


def _int_tag(tags: dict[str, str], key: str) -> int:
    try:
        return int(tags.get(key) or 0)
    except ValueError:
        return 0


def build_chat_message(parsed: IRCMessage, bot_username: str = "") -> ChatMessage | None:
    if parsed.command != "PRIVMSG" or parsed.trailing is None:
        return None
    username = parsed.nick or parsed.tags.get("login", "").lower()
    if not username:
        return None
    tags = parsed.tags
    badges = parse_badges(tags.get("badges"))
    badge_names = {name for name, _ in badges}
    channel = parsed.channel
    return ChatMessage(
        username=username,
        channel=channel,
        text=parsed.trailing,
        display_name=tags.get("display-name") or username,
        user_id=tags.get("user-id", ""),
        is_broadcaster="broadcaster" in badge_names or username == channel,
        is_moderator=tags.get("mod") == "1" or "moderator" in badge_names,
        is_subscriber=tags.get("subscriber") == "1" or "subscriber" in badge_names,
        is_me=bool(bot_username) and username == bot_username.lower(),
        user_type=UserType.from_tag(tags.get("user-type")),
        badges=badges,
        bits=_int_tag(tags, "bits"),
        message_id=tags.get("id", ""),
    )


def build_whisper(parsed: IRCMessage) -> WhisperMessage | None:
    if parsed.command != "WHISPER" or parsed.trailing is None:
        return None
    username = parsed.nick
    if not username:
        return None
    tags = parsed.tags
    return WhisperMessage(
        username=username,
        text=parsed.trailing,
        display_name=tags.get("display-name") or username,
        user_id=tags.get("user-id", ""),
        user_type=UserType.from_tag(tags.get("user-type")),
        badges=parse_badges(tags.get("badges")),
        message_id=tags.get("message-id", ""),
    )
