"""Tests for fieldpath.py: parsing, reads, writes and wildcard expansion."""

from __future__ import annotations

import pytest

from patch_transform.errors import FieldPathError, FieldPathNotFound
from patch_transform.fieldpath import Paved, Segment, has_wildcards, parse, to_path


# ======================================================================
# Parsing
# ======================================================================
class TestParse:

    def test_dotted_fields(self):
        assert parse("metadata.labels.app") == [
            Segment.of_field("metadata"),
            Segment.of_field("labels"),
            Segment.of_field("app"),
        ]

    def test_index_and_wildcard(self):
        segments = parse("spec.containers[0].ports[*]")
        assert [s.kind for s in segments] == [
            Segment.FIELD, Segment.FIELD, Segment.INDEX, Segment.FIELD, Segment.WILDCARD,
        ]
        assert segments[2].index == 0

    def test_bracketed_key_keeps_dots(self):
        segments = parse("metadata.labels[app.kubernetes.io/name]")
        assert segments[-1] == Segment.of_field("app.kubernetes.io/name")

    def test_dot_star_is_wildcard(self):
        assert has_wildcards("metadata.annotations.*")
        assert not has_wildcards("metadata.annotations")

    @pytest.mark.parametrize("path", [
        "",
        "a..b",
        "a.",
        ".a",
        "a[0",
        "a[]",
        "a]",
        "a[0]b",
    ])
    def test_malformed(self, path):
        with pytest.raises(FieldPathError):
            parse(path)

    @pytest.mark.parametrize("path", [
        "metadata.name",
        "spec.containers[0].image",
        "metadata.ownerReferences[*].name",
        "metadata.labels[app.kubernetes.io/name]",
    ])
    def test_to_path_round_trips(self, path):
        assert to_path(parse(path)) == path


# ======================================================================
# Reads
# ======================================================================
class TestGetValue:

    @pytest.fixture
    def paved(self):
        return Paved({
            "metadata": {"name": "cp", "labels": {"a.b": "dotted"}, "gone": None},
            "spec": {"items": [{"id": 1}, {"id": 2}]},
        })

    def test_nested_field(self, paved):
        assert paved.get_value("metadata.name") == "cp"

    def test_bracketed_key(self, paved):
        assert paved.get_value("metadata.labels[a.b]") == "dotted"

    def test_index(self, paved):
        assert paved.get_value("spec.items[1].id") == 2

    def test_explicit_null_is_returned(self, paved):
        assert paved.get_value("metadata.gone") is None

    @pytest.mark.parametrize("path", [
        "metadata.namespace",
        "spec.items[5]",
        "metadata.gone.deeper",
        "status.phase",
    ])
    def test_missing_is_not_found(self, paved, path):
        with pytest.raises(FieldPathNotFound):
            paved.get_value(path)

    def test_traversing_a_scalar_is_not_a_not_found(self, paved):
        with pytest.raises(FieldPathError) as exc:
            paved.get_value("metadata.name.first")
        assert not isinstance(exc.value, FieldPathNotFound)

    def test_indexing_an_object_fails(self, paved):
        with pytest.raises(FieldPathError):
            paved.get_value("metadata[0]")

    def test_wildcard_read_fails(self, paved):
        with pytest.raises(FieldPathError):
            paved.get_value("spec.items[*].id")

    def test_document_must_be_object(self):
        with pytest.raises(FieldPathError):
            Paved(["not", "an", "object"])


# ======================================================================
# Writes
# ======================================================================
class TestSetValue:

    def test_creates_parents(self):
        paved = Paved({})
        paved.set_value("spec.forProvider.region", "eu-west-1")
        assert paved.object == {"spec": {"forProvider": {"region": "eu-west-1"}}}

    def test_pads_lists(self):
        paved = Paved({})
        paved.set_value("spec.items[2].name", "c")
        assert paved.object == {"spec": {"items": [None, None, {"name": "c"}]}}

    def test_replaces_null_parent(self):
        paved = Paved({"spec": None})
        paved.set_value("spec.a", 1)
        assert paved.object == {"spec": {"a": 1}}

    def test_value_is_copied(self):
        value = {"k": ["v"]}
        paved = Paved({})
        paved.set_value("data", value)
        value["k"].append("w")
        assert paved.object == {"data": {"k": ["v"]}}

    def test_scalar_blocks_path(self):
        paved = Paved({"spec": "scalar"})
        with pytest.raises(FieldPathError):
            paved.set_value("spec.a", 1)

    def test_wildcard_write_fails(self):
        paved = Paved({"items": [{}]})
        with pytest.raises(FieldPathError):
            paved.set_value("items[*].a", 1)


class TestMergeValue:

    def test_merge_into_missing_path_sets(self):
        paved = Paved({})
        paved.merge_value("spec.tags", {"a": "1"})
        assert paved.object == {"spec": {"tags": {"a": "1"}}}

    def test_nested_maps_merge(self):
        paved = Paved({"spec": {"tags": {"a": {"x": 1}, "b": 2}}})
        paved.merge_value("spec.tags", {"a": {"y": 2}})
        assert paved.object["spec"]["tags"] == {"a": {"x": 1, "y": 2}, "b": 2}

    def test_lists_replaced_without_append(self):
        paved = Paved({"items": [1, 2]})
        paved.merge_value("items", [3])
        assert paved.object["items"] == [3]

    def test_lists_appended_without_duplicates(self):
        paved = Paved({"items": [1, 2]})
        paved.merge_value("items", [2, 3], append_slice=True)
        assert paved.object["items"] == [1, 2, 3]

    def test_keep_map_values_keeps_existing_scalar(self):
        paved = Paved({"spec": {"size": "small"}})
        paved.merge_value("spec.size", "large", keep_map_values=True)
        assert paved.object["spec"]["size"] == "small"


# ======================================================================
# Wildcards
# ======================================================================
class TestExpandWildcards:

    def test_list(self):
        paved = Paved({"refs": [{"name": "a"}, {"name": "b"}]})
        assert paved.expand_wildcards("refs[*].name") == ["refs[0].name", "refs[1].name"]

    def test_map_keys_sorted(self):
        paved = Paved({"tags": {"b": {"v": 1}, "a": {"v": 2}}})
        assert paved.expand_wildcards("tags[*].v") == ["tags.a.v", "tags.b.v"]

    def test_nested_wildcards(self):
        paved = Paved({"a": [{"b": [1, 2]}, {"b": [3]}]})
        assert paved.expand_wildcards("a[*].b[*]") == ["a[0].b[0]", "a[0].b[1]", "a[1].b[0]"]

    def test_missing_trailing_field_is_dropped(self):
        paved = Paved({"refs": [{"name": "a"}, {"uid": "x"}]})
        assert paved.expand_wildcards("refs[*].name") == ["refs[0].name"]

    def test_missing_base_is_empty(self):
        assert Paved({}).expand_wildcards("refs[*].name") == []

    def test_null_base_is_empty(self):
        assert Paved({"refs": None}).expand_wildcards("refs[*]") == []

    def test_scalar_base_fails(self):
        with pytest.raises(FieldPathError):
            Paved({"refs": 3}).expand_wildcards("refs[*]")

    def test_no_wildcard_returns_existing_path(self):
        assert Paved({"a": 1}).expand_wildcards("a") == ["a"]
