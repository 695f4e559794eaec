from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

# Notion objects carry many fields we never read (annotations, colors, ids);
# models ignore them and only pin the parts the book renders.


class RichTextSpan(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    plain_text: str


class SelectOption(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str


class PropertyValue(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    TAG: ClassVar[str]


class TitleProperty(PropertyValue):
    TAG: ClassVar[str] = "title"

    type: Literal["title"]
    title: list[RichTextSpan]


class RichTextProperty(PropertyValue):
    TAG: ClassVar[str] = "rich_text"

    type: Literal["rich_text"]
    rich_text: list[RichTextSpan]


class SelectProperty(PropertyValue):
    TAG: ClassVar[str] = "select"

    type: Literal["select"]
    select: SelectOption | None = None


class MultiSelectProperty(PropertyValue):
    TAG: ClassVar[str] = "multi_select"

    type: Literal["multi_select"]
    multi_select: list[SelectOption]


class FormulaValue(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str
    string: str | None = None


class FormulaProperty(PropertyValue):
    TAG: ClassVar[str] = "formula"

    type: Literal["formula"]
    formula: FormulaValue


class RawRow(BaseModel):
    """A database row as returned by the Notion query endpoint."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    properties: dict[str, dict[str, Any]]


class FileUrl(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    url: str


class ExternalFile(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: Literal["external"]
    external: FileUrl


class HostedFile(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: Literal["file"]
    file: FileUrl


FileObject = Annotated[Union[ExternalFile, HostedFile], Field(discriminator="type")]


class ParagraphContent(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    rich_text: list[RichTextSpan]


class ParagraphBlock(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: Literal["paragraph"]
    paragraph: ParagraphContent


class ImageBlock(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: Literal["image"]
    image: FileObject


def is_full_page(obj: Any) -> bool:
    """Partial page objects only carry `object` and `id`."""
    return isinstance(obj, dict) and obj.get("object") == "page" and "properties" in obj


def is_full_block(obj: Any) -> bool:
    return isinstance(obj, dict) and obj.get("object") == "block" and "type" in obj
