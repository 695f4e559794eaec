from __future__ import annotations

import json
from typing import Any, Mapping, Sequence, TypeVar, cast

from pydantic import ValidationError

from .errors import SchemaViolation
from .notion_schema import (
    ExternalFile,
    FormulaProperty,
    HostedFile,
    MultiSelectProperty,
    PropertyValue,
    RawRow,
    RichTextProperty,
    RichTextSpan,
    SelectProperty,
    TitleProperty,
)
from .tea import Tea

P = TypeVar("P", bound=PropertyValue)

# Property name -> expected Notion property type.
TEA_SCHEMA: dict[str, type[PropertyValue]] = {
    "Name": TitleProperty,
    "Caffeine": SelectProperty,
    "Temperature": FormulaProperty,
    "Steep time": FormulaProperty,
    "Serving": RichTextProperty,
    "Type": SelectProperty,
    "Location": MultiSelectProperty,
}

_DETAIL_LIMIT = 2000


def _dump(obj: Any) -> str:
    text = json.dumps(obj, indent=2, ensure_ascii=False, default=str)
    if len(text) > _DETAIL_LIMIT:
        text = text[: _DETAIL_LIMIT - 1] + "…"
    return text


def plain_text(spans: Sequence[RichTextSpan]) -> str:
    """Join the plain text of Notion rich text spans without a separator."""
    return "".join(span.plain_text for span in spans)


def file_url(file: ExternalFile | HostedFile) -> str:
    if isinstance(file, ExternalFile):
        return file.external.url
    return file.file.url


def expect_property(row: RawRow, field: str, model: type[P]) -> P:
    """
    Return `row.properties[field]` parsed as `model`.

    Raises SchemaViolation when the property is missing, carries a different
    type tag, or is malformed under the right tag.
    """
    prop = row.properties.get(field)
    if prop is None:
        raise SchemaViolation(
            field=field,
            expected=model.TAG,
            actual="missing",
            row_id=row.id,
            detail=_dump(sorted(row.properties)),
        )

    actual = prop.get("type")
    if actual != model.TAG:
        raise SchemaViolation(
            field=field,
            expected=model.TAG,
            actual=str(actual),
            row_id=row.id,
            detail=_dump(prop),
        )

    try:
        return model.model_validate(prop)
    except ValidationError as e:
        raise SchemaViolation(
            field=field,
            expected=model.TAG,
            actual=f"malformed {actual}",
            row_id=row.id,
            detail=f"{e}\n{_dump(prop)}",
        ) from e


def _string_formula(row: RawRow, field: str, prop: FormulaProperty) -> str:
    if prop.formula.type != "string":
        raise SchemaViolation(
            field=f"{field}.formula",
            expected="string",
            actual=prop.formula.type,
            row_id=row.id,
            detail=_dump(prop.model_dump(mode="json")),
        )
    return prop.formula.string or ""


def _select_name(prop: SelectProperty) -> str:
    return prop.select.name if prop.select is not None else ""


def raw_row_from_page(page: Mapping[str, Any]) -> RawRow:
    try:
        return RawRow.model_validate(page)
    except ValidationError as e:
        raise SchemaViolation(
            field="page",
            expected="page object with id and properties",
            actual="malformed page",
            row_id=str(page.get("id") or "") or None,
            detail=str(e),
        ) from e


def tea_from_row(row: RawRow) -> Tea:
    """
    Validate every tea property and flatten the row into a Tea.

    Fails on the first property whose type does not match TEA_SCHEMA; no
    partial record is produced.
    """
    props = {field: expect_property(row, field, model) for field, model in TEA_SCHEMA.items()}

    name = cast(TitleProperty, props["Name"])
    serving = cast(RichTextProperty, props["Serving"])
    location = cast(MultiSelectProperty, props["Location"])

    return Tea(
        id=row.id,
        name=plain_text(name.title),
        caffeine=_select_name(cast(SelectProperty, props["Caffeine"])),
        temperature=_string_formula(row, "Temperature", cast(FormulaProperty, props["Temperature"])),
        steep_time=_string_formula(row, "Steep time", cast(FormulaProperty, props["Steep time"])),
        serving=plain_text(serving.rich_text),
        type=_select_name(cast(SelectProperty, props["Type"])),
        location=tuple(option.name for option in location.multi_select),
    )


def tea_from_page(page: Mapping[str, Any]) -> Tea:
    return tea_from_row(raw_row_from_page(page))
