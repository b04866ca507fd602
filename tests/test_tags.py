# tests/test_tags.py
import unittest
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from doctenancy.mongo.tags import (
    FieldDescriptor,
    bson_field,
    is_empty,
    is_structured,
    parse_tag,
    resolve_fields,
)


class ParseTagTests(unittest.TestCase):
    def test_name_and_options(self) -> None:
        self.assertEqual(
            parse_tag("Field", "foo,omitempty,inline"),
            FieldDescriptor(attr="Field", name="foo", omit_empty=True, inline=True),
        )

    def test_missing_name_uses_lower_cased_attr(self) -> None:
        self.assertEqual(parse_tag("MyField", ",omitempty").name, "myfield")
        self.assertEqual(parse_tag("MyField", None).name, "myfield")
        self.assertEqual(parse_tag("MyField", "").name, "myfield")

    def test_unknown_options_ignored(self) -> None:
        desc = parse_tag("a", "b,minsize")
        self.assertEqual(desc.name, "b")
        self.assertFalse(desc.omit_empty)
        self.assertFalse(desc.inline)


class IsEmptyTests(unittest.TestCase):
    def test_zero_values(self) -> None:
        for value in (None, "", 0, 0.0, False, b"", [], {}, (), set()):
            with self.subTest(value=value):
                self.assertTrue(is_empty(value))

    def test_non_zero_values(self) -> None:
        for value in ("x", 1, -1.5, True, [0], {"k": None}, object()):
            with self.subTest(value=value):
                self.assertFalse(is_empty(value))


class ResolveFieldsTests(unittest.TestCase):
    def test_dataclass(self) -> None:
        @dataclass
        class Item:
            Name: str = "n"
            count: int = bson_field("cnt,omitempty", default=0)
            _secret: str = "s"
            extra: dict = field(default_factory=dict)

        bound = resolve_fields(Item())
        self.assertEqual(
            [(desc.name, value) for desc, value in bound],
            [("name", "n"), ("cnt", 0), ("extra", {})],
        )
        self.assertTrue(bound[1][0].omit_empty)

    def test_pydantic_model(self) -> None:
        class Item(BaseModel):
            name: str = "n"
            kind: str = Field("k", alias="type")
            note: str = Field("", alias="ignored", json_schema_extra={"bson": "remark,omitempty"})

        bound = resolve_fields(Item())
        self.assertEqual([desc.name for desc, _ in bound], ["name", "type", "remark"])
        self.assertTrue(bound[2][0].omit_empty)

    def test_rejects_plain_objects(self) -> None:
        with self.assertRaises(TypeError):
            resolve_fields({"a": 1})

    def test_is_structured(self) -> None:
        @dataclass
        class Item:
            a: int = 1

        self.assertTrue(is_structured(Item()))
        self.assertFalse(is_structured(Item))
        self.assertFalse(is_structured({"a": 1}))


if __name__ == "__main__":
    unittest.main()
