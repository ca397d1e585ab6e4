"""Discord webhook payload contracts.

Field names follow the Discord execute-webhook JSON body so that
`model_dump(by_alias=True, exclude_none=True)` can be posted as-is.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

MessageKind = Literal["turn", "rename", "reminder"]


class Thumbnail(BaseModel):
    url: str

    model_config = ConfigDict(extra="forbid")


class Footer(BaseModel):
    text: str

    model_config = ConfigDict(extra="forbid")


class EmbedField(BaseModel):
    name: str
    value: str
    inline: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class Embed(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    color: int = 0
    thumbnail: Optional[Thumbnail] = None
    fields_: List[EmbedField] = Field(default_factory=list, alias="fields")
    footer: Optional[Footer] = None
    timestamp: Optional[str] = None

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class DiscordWebhook(BaseModel):
    username: str = ""
    avatar_url: str = ""
    content: str = ""
    embeds: List[Embed] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
