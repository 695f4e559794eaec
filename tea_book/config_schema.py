from __future__ import annotations

import re
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_ENV_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _validate_env_var_name(value: str) -> str:
    name = (value or "").strip()
    if not _ENV_NAME_RE.fullmatch(name):
        raise ValueError("must be a valid environment variable name")
    return name


def _require_text(value: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValueError("must be a non-empty string")
    return text


PositiveInt = Annotated[int, Field(ge=1)]


class NotionConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    token_env: str = "NOTION_TOKEN"
    database_id_env: str = "NOTION_DB"
    api_base_url: str = "https://api.notion.com/v1"
    notion_version: str = "2022-06-28"
    timeout_secs: float = Field(30.0, gt=0.0)
    page_size: int = Field(100, ge=1, le=100)
    sort_property: str = "Location"
    filter_property: str = "Location"

    @field_validator("token_env", "database_id_env")
    @classmethod
    def _env_names_must_be_valid(cls, v: str) -> str:
        return _validate_env_var_name(v)

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return _require_text(v).rstrip("/")

    @field_validator("sort_property", "filter_property")
    @classmethod
    def _property_names_required(cls, v: str) -> str:
        return _require_text(v)


class LocationsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    top_display: str = "Display (top)"
    bottom_display: str = "Display (bottom)"

    @field_validator("top_display", "bottom_display")
    @classmethod
    def _markers_required(cls, v: str) -> str:
        return _require_text(v)

    @model_validator(mode="after")
    def _markers_must_differ(self) -> "LocationsConfig":
        if self.top_display == self.bottom_display:
            raise ValueError("top_display and bottom_display must be different tags")
        return self


class ContentConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    image_height: PositiveInt = 200
    max_concurrent_fetches: PositiveInt | None = None  # None fans out one worker per tea


class BookConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    title: str = "Tea"
    creator: str = "Tiger x Daphne"
    lang: str = "en-US"
    cover_image: str = "tea.png"
    css: str = "assets/epub.css"
    top_caption: str | None = None
    bottom_caption: str | None = None
    pantry_caption: str = "Pantry"


class OutputConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    manuscript_filename: str = "tea-list.txt"
    cover_filename: str = "tea.svg"
    cover_template: str | None = None

    @field_validator("manuscript_filename", "cover_filename")
    @classmethod
    def _filenames_required(cls, v: str) -> str:
        return _require_text(v)


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    notion: NotionConfig = Field(default_factory=NotionConfig)
    locations: LocationsConfig = Field(default_factory=LocationsConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)
    book: BookConfig = Field(default_factory=BookConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
