from __future__ import annotations

import copy
import unittest
from typing import Any

from tea_book.errors import SchemaViolation
from tea_book.normalize import raw_row_from_page, tea_from_page, tea_from_row
from tea_book.offline import tea_row
from tea_book.tea import Tea


def _page(page_id: str = "page-1", **overrides: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "name": ["Earl ", "Grey"],
        "caffeine": "★★☆",
        "temperature": "200°F",
        "steep_time": "3 min",
        "serving": "1 tsp / 8 oz",
        "tea_type": "Black tea",
        "location": ["Display (top)"],
    }
    fields.update(overrides)
    return tea_row(page_id, **fields)


class TestTeaFromPage(unittest.TestCase):
    def test_flattens_all_properties(self) -> None:
        tea = tea_from_page(
            _page(
                "abc",
                serving=["1 tsp", " / 8 oz"],
                location=["Pantry Shelf", "Display (top)"],
            )
        )

        self.assertEqual(
            tea,
            Tea(
                id="abc",
                name="Earl Grey",
                caffeine="★★☆",
                temperature="200°F",
                steep_time="3 min",
                serving="1 tsp / 8 oz",
                type="Black tea",
                location=("Pantry Shelf", "Display (top)"),
            ),
        )

    def test_unset_select_and_null_formula_become_empty(self) -> None:
        tea = tea_from_page(_page(caffeine=None, tea_type=None, temperature=None, steep_time=None))

        self.assertEqual(tea.caffeine, "")
        self.assertEqual(tea.type, "")
        self.assertEqual(tea.temperature, "")
        self.assertEqual(tea.steep_time, "")

    def test_location_order_is_kept(self) -> None:
        tea = tea_from_page(_page(location=["Kitchen", "Attic", "Basement"]))
        self.assertEqual(tea.location, ("Kitchen", "Attic", "Basement"))

    def test_wrong_tag_names_field_expected_and_actual(self) -> None:
        page = _page("row-9")
        page["properties"]["Name"] = {"id": "title", "type": "select", "select": {"name": "x"}}

        with self.assertRaises(SchemaViolation) as ctx:
            tea_from_page(page)

        err = ctx.exception
        self.assertEqual(err.field, "Name")
        self.assertEqual(err.expected, "title")
        self.assertEqual(err.actual, "select")
        self.assertEqual(err.row_id, "row-9")
        self.assertIn("Expected Name to be title but got select", str(err))
        self.assertIn('"select"', str(err))

    def test_missing_field_is_a_violation(self) -> None:
        page = _page()
        del page["properties"]["Serving"]

        with self.assertRaises(SchemaViolation) as ctx:
            tea_from_page(page)

        self.assertEqual(ctx.exception.field, "Serving")
        self.assertEqual(ctx.exception.actual, "missing")

    def test_non_string_formula_is_a_violation(self) -> None:
        page = _page()
        page["properties"]["Temperature"]["formula"] = {"type": "number", "number": 200}

        with self.assertRaises(SchemaViolation) as ctx:
            tea_from_page(page)

        self.assertEqual(ctx.exception.field, "Temperature.formula")
        self.assertEqual(ctx.exception.expected, "string")
        self.assertEqual(ctx.exception.actual, "number")

    def test_malformed_payload_under_right_tag_is_a_violation(self) -> None:
        page = _page()
        page["properties"]["Location"]["multi_select"] = "Kitchen"

        with self.assertRaises(SchemaViolation) as ctx:
            tea_from_page(page)

        self.assertEqual(ctx.exception.field, "Location")
        self.assertEqual(ctx.exception.actual, "malformed multi_select")

    def test_page_without_properties_is_a_violation(self) -> None:
        with self.assertRaises(SchemaViolation):
            tea_from_page({"object": "page", "id": "partial"})

    def test_normalizing_the_same_row_twice_gives_equal_values(self) -> None:
        page = _page()
        row = raw_row_from_page(page)

        self.assertEqual(tea_from_row(row), tea_from_row(row))
        self.assertEqual(tea_from_page(page), tea_from_page(copy.deepcopy(page)))


if __name__ == "__main__":
    unittest.main()
