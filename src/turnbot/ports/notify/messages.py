"""Discord payloads for turn, rename and reminder messages."""
from __future__ import annotations

from typing import Optional

from ...contracts.v1 import DiscordWebhook, Embed, EmbedField, Footer, Thumbnail
from ...util.time import format_duration_minutes, utc_now_iso

BOT_USERNAME = "Shadow Empire Assistant"
AVATAR_URL = "https://raw.githubusercontent.com/auricom/home-ops/main/docs/src/assets/logo.png"
THUMBNAIL_URL = "https://upload.wikimedia.org/wikipedia/en/4/4f/Shadow_Empire_cover.jpg"
FOOTER_TEXT = "Made with ❤️ by Solon"

COLOR_TURN = 0xFFA500
COLOR_RENAME = 0xFF0000
COLOR_REMINDER = 0xFF9900

NEXT_PLAYER_PLACEHOLDER = "[NextPlayerName]"


def save_name(game_name: str, turn_number: int, next_username: str) -> str:
    return f"{game_name}_turn{turn_number}_{next_username}"


def _save_instructions(game_name: str, turn_number: int, next_username: str) -> str:
    return (
        "After completing your turn, please save the file as:\n"
        f"```\n{save_name(game_name, turn_number, next_username)}\n```"
    )


def _payload(content: str, *, color: int, field_name: str, field_value: str, timestamp: Optional[str]) -> DiscordWebhook:
    return DiscordWebhook(
        username=BOT_USERNAME,
        avatar_url=AVATAR_URL,
        content=content,
        embeds=[
            Embed(
                color=color,
                thumbnail=Thumbnail(url=THUMBNAIL_URL),
                fields=[EmbedField(name=field_name, value=field_value)],
                footer=Footer(text=FOOTER_TEXT),
                timestamp=timestamp or utc_now_iso(),
            )
        ],
    )


def turn_message(
    *, game_name: str, discord_id: str, next_username: str, turn_number: int, timestamp: Optional[str] = None
) -> DiscordWebhook:
    return _payload(
        f"\U0001f3b2 It's your turn, <@{discord_id}>!",
        color=COLOR_TURN,
        field_name="\U0001f4cb Save File Instructions",
        field_value=_save_instructions(game_name, turn_number, next_username),
        timestamp=timestamp,
    )


def rename_message(
    *, game_name: str, discord_id: str, filename: str, turn_number: int, timestamp: Optional[str] = None
) -> DiscordWebhook:
    value = (
        f"The save file you created `{filename}` doesn't match the configured game name.\n\n"
        "Please rename it to follow the format:\n"
        f"```\n{save_name(game_name, turn_number, NEXT_PLAYER_PLACEHOLDER)}\n```\n"
        f"*(Replace {NEXT_PLAYER_PLACEHOLDER} with the next player's name)*"
    )
    return _payload(
        f"⚠️ File naming issue detected in your save, <@{discord_id}>!",
        color=COLOR_RENAME,
        field_name="\U0001f4cb File Rename Required",
        field_value=value,
        timestamp=timestamp,
    )


def reminder_message(
    *,
    game_name: str,
    discord_id: str,
    next_username: str,
    turn_number: int,
    minutes_elapsed: int,
    timestamp: Optional[str] = None,
) -> DiscordWebhook:
    return _payload(
        f"⏰ Reminder! It's still your turn, <@{discord_id}>! ({format_duration_minutes(minutes_elapsed)} elapsed)",
        color=COLOR_REMINDER,
        field_name="\U0001f4cb Save File Instructions",
        field_value=_save_instructions(game_name, turn_number, next_username),
        timestamp=timestamp,
    )
