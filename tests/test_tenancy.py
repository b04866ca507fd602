# tests/test_tenancy.py
import unittest
from collections import OrderedDict
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, List

import bson
from bson.raw_bson import RawBSONDocument
from bson.son import SON
from pydantic import BaseModel

from doctenancy.identity.context import IdentityContext
from doctenancy.identity.token import Identity
from doctenancy.mongo.tags import bson_field
from doctenancy.store.tenancy import (
    FIELD_TENANT_ID,
    TenantScoper,
    array_with_tenant_from_context,
    array_with_tenant_id,
    with_tenant_from_context,
    with_tenant_id,
)


@dataclass
class Device:
    device_id: str = bson_field("_id", default="")
    status: str = bson_field(",omitempty", default="")
    attributes: dict = bson_field("attributes", default_factory=dict)


@dataclass
class SelfEncoding:
    name: str = "ignored"

    def to_bson(self) -> bytes:
        return bson.encode(SON([("encoded", True), ("n", 1)]))


class FailingEncoder:
    def to_bson(self) -> bytes:
        raise RuntimeError("encoder exploded")


class GarbageEncoder:
    def to_bson(self) -> bytes:
        return b"\x05\x00\x00"


class WrongTypeEncoder:
    def to_bson(self):
        return {"not": "bytes"}


class EmptyEncoder:
    def to_bson(self) -> bytes:
        return bson.encode({})


@dataclass
class Inner:
    nested_val: str = "x"


class Location(BaseModel):
    city: str = "Oslo"


@dataclass
class Outer:
    name: str = "outer"
    inner: Inner = field(default_factory=Inner)
    location: Location = field(default_factory=Location)
    encoded: SelfEncoding = field(default_factory=SelfEncoding)
    children: List[Inner] = field(default_factory=lambda: [Inner("a"), Inner("b")])


@dataclass
class Node:
    name: str = ""
    child: Any = None


class NestedValueTests(unittest.TestCase):
    def test_nested_struct_encodes(self) -> None:
        res = with_tenant_id("t", Outer())
        decoded = bson.decode(bson.encode(res))
        self.assertEqual(
            decoded,
            {
                "name": "outer",
                "inner": {"nested_val": "x"},
                "location": {"city": "Oslo"},
                "encoded": {"encoded": True, "n": 1},
                "children": [{"nested_val": "a"}, {"nested_val": "b"}],
                "tenant_id": "t",
            },
        )
        self.assertEqual(list(res.keys())[-1], "tenant_id")

    def test_nested_values_stay_nested(self) -> None:
        res = with_tenant_id("t", Outer())
        self.assertIsInstance(res["inner"], SON)
        self.assertNotIn("inner.nested_val", res)

    def test_struct_inside_mapping_encodes(self) -> None:
        res = with_tenant_id("t", {"device": Inner("d"), "tags": [Inner("g")], "plain": {"k": 1}})
        self.assertEqual(res["device"], SON([("nested_val", "d")]))
        self.assertEqual(res["tags"], [SON([("nested_val", "g")])])
        bson.encode(res)

    def test_failing_nested_encoder_gives_empty_document(self) -> None:
        with self.assertLogs("doctenancy.store.tenancy", level="WARNING"):
            self.assertEqual(with_tenant_id("t", {"broken": FailingEncoder()}), SON())

    def test_self_referencing_struct_gives_empty_document(self) -> None:
        node = Node("loop")
        node.child = node
        with self.assertLogs("doctenancy.store.tenancy", level="WARNING") as captured:
            self.assertEqual(with_tenant_id("t", node), SON())
        self.assertEqual(captured.records[0].error_kind, "uninspectable_value")

    def test_unchanged_nested_values_are_reused(self) -> None:
        plain = {"k": [1, 2]}
        self.assertIs(with_tenant_id("t", {"plain": plain})["plain"], plain)


class BrokenLookup:
    def __getattr__(self, name):
        raise RuntimeError(f"lookup of {name} exploded")


class UnrecognizedLookupTests(unittest.TestCase):
    def test_failing_attribute_lookup_gives_empty_document(self) -> None:
        self.assertEqual(with_tenant_id("t", BrokenLookup()), SON())
        self.assertEqual(array_with_tenant_id("t", [BrokenLookup(), {"a": 1}])[1]["a"], 1)


class WithTenantIdTests(unittest.TestCase):
    def test_mapping(self) -> None:
        res = with_tenant_id("foo", {"key": "value", "other": 1})
        self.assertEqual(
            list(res.items()),
            [("key", "value"), ("other", 1), (FIELD_TENANT_ID, "foo")],
        )

    def test_ordered_pairs(self) -> None:
        res = with_tenant_id("foo", SON([("b", 1), ("a", 2)]))
        self.assertEqual(res, SON([("b", 1), ("a", 2), ("tenant_id", "foo")]))
        res = with_tenant_id("foo", OrderedDict([("x", 1)]))
        self.assertEqual(list(res.items()), [("x", 1), ("tenant_id", "foo")])

    def test_pair_list(self) -> None:
        res = with_tenant_id("foo", [("key", "value"), ("n", 2)])
        self.assertEqual(list(res.items()), [("key", "value"), ("n", 2), ("tenant_id", "foo")])

    def test_struct(self) -> None:
        res = with_tenant_id("foo", Device(device_id="d1", attributes={"a": 1}))
        self.assertEqual(
            list(res.items()),
            [("_id", "d1"), ("attributes", {"a": 1}), ("tenant_id", "foo")],
        )

    def test_custom_encoder_wins_over_struct(self) -> None:
        res = with_tenant_id("foo", SelfEncoding())
        self.assertEqual(list(res.items()), [("encoded", True), ("n", 1), ("tenant_id", "foo")])

    def test_raw_bson_document(self) -> None:
        raw = RawBSONDocument(bson.encode(SON([("a", 1), ("b", "two")])))
        res = with_tenant_id("foo", raw)
        self.assertIsInstance(res, SON)
        self.assertEqual(list(res.items()), [("a", 1), ("b", "two"), ("tenant_id", "foo")])

    def test_empty_custom_document_is_still_scoped(self) -> None:
        self.assertEqual(with_tenant_id("foo", EmptyEncoder()), SON([("tenant_id", "foo")]))

    def test_empty_mapping_is_scoped(self) -> None:
        self.assertEqual(with_tenant_id("foo", {}), SON([("tenant_id", "foo")]))

    def test_unrecognized_value_gives_empty_document(self) -> None:
        for value in ("dummy-value", 42, None, [], [1, 2]):
            with self.subTest(value=value):
                res = with_tenant_id("foo", value)
                self.assertIsInstance(res, SON)
                self.assertEqual(len(res), 0)

    def test_failing_encoders_give_empty_document(self) -> None:
        for value in (FailingEncoder(), GarbageEncoder(), WrongTypeEncoder()):
            with self.subTest(encoder=type(value).__name__):
                with self.assertLogs("doctenancy.store.tenancy", level="WARNING") as captured:
                    res = with_tenant_id("foo", value)
                self.assertEqual(res, SON())
                self.assertIn("cannot be scoped", captured.output[0])

    def test_failing_encoder_logs_error_kind(self) -> None:
        with self.assertLogs("doctenancy.store.tenancy", level="WARNING") as captured:
            with_tenant_id("foo", FailingEncoder())
        self.assertEqual(captured.records[0].error_kind, "encode_failure")
        with self.assertLogs("doctenancy.store.tenancy", level="WARNING") as captured:
            with_tenant_id("foo", GarbageEncoder())
        self.assertEqual(captured.records[0].error_kind, "decode_failure")

    def test_existing_discriminator_is_replaced(self) -> None:
        res = with_tenant_id("foo", SON([("tenant_id", "evil"), ("key", "value")]))
        self.assertEqual(list(res.items()), [("key", "value"), ("tenant_id", "foo")])

    def test_only_top_level_is_scoped(self) -> None:
        res = with_tenant_id("foo", {"nested": {"tenant_id": "other"}})
        self.assertEqual(res["nested"], {"tenant_id": "other"})
        self.assertEqual(res["tenant_id"], "foo")

    def test_empty_tenant_keeps_the_field(self) -> None:
        res = with_tenant_id("", {"key": "value"})
        self.assertEqual(list(res.items()), [("key", "value"), ("tenant_id", "")])

    def test_input_is_not_mutated(self) -> None:
        original = SON([("tenant_id", "evil"), ("key", "value")])
        with_tenant_id("foo", original)
        self.assertEqual(list(original.items()), [("tenant_id", "evil"), ("key", "value")])


class ArrayWithTenantIdTests(unittest.TestCase):
    def test_keeps_order_and_length(self) -> None:
        values = [{"a": 1}, "dummy-value", Device(device_id="d2"), FailingEncoder()]
        with self.assertLogs("doctenancy.store.tenancy", level="WARNING"):
            res = array_with_tenant_id("foo", values)
        self.assertEqual(len(res), 4)
        self.assertEqual(res[0], SON([("a", 1), ("tenant_id", "foo")]))
        self.assertEqual(res[1], SON())
        self.assertEqual(res[2], SON([("_id", "d2"), ("attributes", {}), ("tenant_id", "foo")]))
        self.assertEqual(res[3], SON())

    def test_empty_input(self) -> None:
        self.assertEqual(array_with_tenant_id("foo", []), [])

    def test_accepts_generators(self) -> None:
        res = array_with_tenant_id("foo", ({"i": i} for i in range(3)))
        self.assertEqual([doc["i"] for doc in res], [0, 1, 2])


class TenantScoperTests(unittest.TestCase):
    def test_custom_field_name(self) -> None:
        scoper = TenantScoper("org")
        self.assertEqual(scoper.scope("acme", {"k": 1}), SON([("k", 1), ("org", "acme")]))

    def test_empty_field_name_rejected(self) -> None:
        with self.assertRaises(ValueError):
            TenantScoper("")

    def test_from_settings(self) -> None:
        scoper = TenantScoper.from_settings(SimpleNamespace(tenant_field_name="tid"))
        self.assertEqual(scoper.field_name, "tid")
        self.assertEqual(scoper.scope("acme", {})["tid"], "acme")


class TenantFromContextTests(unittest.TestCase):
    def test_uses_current_identity(self) -> None:
        with IdentityContext(Identity(sub="worker", tenant_id="acme")):
            res = with_tenant_from_context({"k": 1})
            many = array_with_tenant_from_context([{"k": 1}, {"k": 2}])
        self.assertEqual(res["tenant_id"], "acme")
        self.assertEqual([doc["tenant_id"] for doc in many], ["acme", "acme"])

    def test_without_identity_uses_shared_namespace(self) -> None:
        self.assertEqual(with_tenant_from_context({"k": 1})["tenant_id"], "")


if __name__ == "__main__":
    unittest.main()
