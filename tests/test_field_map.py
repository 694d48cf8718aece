import threading
import unittest
from dataclasses import dataclass, field
from typing import Annotated, ClassVar
from unittest.mock import patch

from pydantic import BaseModel, ConfigDict, Field, computed_field

from grid_adapter.services import field_map as field_map_module
from grid_adapter.services.field_map import (
    FieldMap,
    MapTo,
    build_field_map,
    clear_field_map_cache,
    get_field_map,
)


class _Account(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    display_name: str = Field(serialization_alias="displayName")
    email: Annotated[str, MapTo("contact.email")]
    phone: str = Field(alias="phoneNumber", json_schema_extra={"map_to": "contact.phone"})

    @computed_field(alias="fullLabel")
    @property
    def label(self) -> str:
        return f"{self.display_name} <{self.email}>"


class _Duplicates(BaseModel):
    first: str = Field(alias="code", json_schema_extra={"map_to": "first_code"})
    second: str = Field(alias="CODE", json_schema_extra={"map_to": "second_code"})


@dataclass
class _Row:
    id: int
    title: str = field(metadata={"json_name": "heading"})
    owner: str = field(default="", metadata={"map_to": "owner.username"})
    status: Annotated[str, MapTo("state.code")] = ""
    _secret_hash: str = ""


class _Plain:
    kind: ClassVar[str] = "plain"
    _hidden: int
    name: str
    score: Annotated[float, MapTo("stats.score")]


class FieldMapTests(unittest.TestCase):
    def test_lookup_is_case_insensitive(self):
        fm = FieldMap([("Name", "full_name")])
        self.assertEqual(fm["name"], "full_name")
        self.assertEqual(fm.get("NAME"), "full_name")
        self.assertIn("nAmE", fm)
        self.assertNotIn("other", fm)
        self.assertEqual(list(fm), ["Name"])

    def test_last_duplicate_wins(self):
        fm = FieldMap([("code", "a"), ("CODE", "b")])
        self.assertEqual(len(fm), 1)
        self.assertEqual(fm["code"], "b")
        self.assertEqual(list(fm), ["CODE"])

    def test_lookup_does_not_fold_unicode(self):
        fm = FieldMap([("straße", "street")])
        self.assertIsNone(fm.get("STRASSE"))
        self.assertEqual(fm.get("STRAßE"), "street")

    def test_non_string_key_is_missing(self):
        fm = FieldMap([("1", "one")])
        self.assertIsNone(fm.get(1))
        self.assertNotIn(None, fm)


class BuildFieldMapTests(unittest.TestCase):
    def test_pydantic_model(self):
        fm = build_field_map(_Account)
        self.assertEqual(
            dict(fm),
            {
                "id": "id",
                "displayName": "displayName",
                "email": "contact.email",
                "phoneNumber": "contact.phone",
                "fullLabel": "fullLabel",
            },
        )
        self.assertNotIn("display_name", fm)

    def test_pydantic_duplicate_aliases_last_wins(self):
        fm = build_field_map(_Duplicates)
        self.assertEqual(dict(fm), {"CODE": "second_code"})

    def test_dataclass(self):
        fm = build_field_map(_Row)
        self.assertEqual(
            dict(fm),
            {"id": "id", "heading": "heading", "owner": "owner.username", "status": "state.code"},
        )
        self.assertNotIn("_secret_hash", fm)

    def test_plain_annotated_class(self):
        fm = build_field_map(_Plain)
        self.assertEqual(dict(fm), {"name": "name", "score": "stats.score"})


class FieldMapCacheTests(unittest.TestCase):
    def setUp(self):
        clear_field_map_cache()

    def tearDown(self):
        clear_field_map_cache()

    def test_same_instance_is_returned(self):
        first = get_field_map(_Account)
        self.assertIs(get_field_map(_Account), first)
        self.assertIsNot(get_field_map(_Row), first)

    def test_concurrent_first_use_builds_once(self):
        calls = []
        original = field_map_module.build_field_map
        barrier = threading.Barrier(8)
        results = []

        def _counting_build(model_type):
            calls.append(model_type)
            return original(model_type)

        def _worker():
            barrier.wait()
            results.append(get_field_map(_Account))

        with patch.object(field_map_module, "build_field_map", side_effect=_counting_build):
            threads = [threading.Thread(target=_worker) for _ in range(8)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

        self.assertEqual(calls, [_Account])
        self.assertEqual(len(results), 8)
        self.assertTrue(all(r is results[0] for r in results))


if __name__ == "__main__":
    unittest.main()
