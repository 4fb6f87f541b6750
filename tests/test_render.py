"""Tests for render.py: whole-composition rendering."""

from __future__ import annotations

import copy

from patch_transform.render import render


class TestRender:

    def test_renders_resources(self, xr, composition):
        result = render(xr, composition)
        assert result["ok"] is True
        assert result["errors"] == []
        assert result["resources"]["bucket"] == {
            "apiVersion": "s3/v1",
            "kind": "Bucket",
            "spec": {"forProvider": {"region": "eu-west-1", "sizeGb": 10}},
        }

    def test_inputs_not_mutated(self, xr, composition):
        before_xr = copy.deepcopy(xr)
        before_composition = copy.deepcopy(composition)
        render(xr, composition)
        assert xr == before_xr
        assert composition == before_composition

    def test_observed_feeds_composite(self, xr, composition):
        observed = {"bucket": {"status": {"arn": "arn:aws:s3:::my-bucket"}}}
        result = render(xr, composition, observed=observed)
        assert result["ok"] is True
        assert result["composite"]["status"] == {"bucketArn": "arn:aws:s3:::my-bucket"}
        assert "status" not in xr

    def test_patch_sets_expanded(self, xr, composition):
        xr["metadata"]["namespace"] = "team-a"
        composition["resources"].append({
            "name": "config",
            "base": {"kind": "ConfigMap"},
            "patches": [{"type": "PatchSet", "patchSetName": "patch-set-1"}],
        })
        result = render(xr, composition)
        assert result["resources"]["config"] == {
            "kind": "ConfigMap",
            "metadata": {"namespace": "team-a"},
        }

    def test_errors_are_collected(self, xr, composition):
        xr["spec"]["size"] = "huge"
        result = render(xr, composition)
        assert result["ok"] is False
        assert len(result["errors"]) == 1
        err = result["errors"][0]
        assert err["resource"] == "bucket"
        assert err["index"] == 1
        assert err["kind"] == "TransformError"
        assert "key huge is not found in map" in err["message"]
        # The other patches of the resource still ran.
        assert result["resources"]["bucket"]["spec"]["forProvider"] == {"region": "eu-west-1"}

    def test_strict_stops_at_first_error(self, xr, composition):
        xr["spec"]["size"] = "huge"
        composition["resources"].append({"name": "second", "base": {"kind": "Other"}})
        result = render(xr, composition, strict=True)
        assert result["ok"] is False
        assert "second" not in result["resources"]

    def test_strict_from_settings(self, monkeypatch, xr, composition):
        from patch_transform.settings import reset_settings_cache

        monkeypatch.setenv("PATCH_TRANSFORM_STRICT_RENDER", "true")
        reset_settings_cache()
        xr["spec"]["size"] = "huge"
        result = render(xr, composition)
        assert "bucket" not in result["resources"]

    def test_undefined_patch_set_reported(self, xr):
        composition = {
            "resources": [{"name": "r", "patches": [{"type": "PatchSet", "patchSetName": "missing"}]}],
        }
        result = render(xr, composition)
        assert result["ok"] is False
        assert result["errors"][0]["kind"] == "UndefinedPatchSet"
        assert result["errors"][0]["resource"] is None
        assert result["resources"] == {}

    def test_unnamed_resources_get_positional_names(self, xr):
        composition = {"resources": [{"base": {"kind": "A"}}, {"base": {"kind": "B"}}]}
        result = render(xr, composition)
        assert set(result["resources"]) == {"resource-0", "resource-1"}

    def test_duplicate_resource_names_reported(self, xr, composition):
        composition["resources"].append({"name": "bucket", "base": {"kind": "Other"}})
        result = render(xr, composition)
        assert result["ok"] is False
        err = result["errors"][0]
        assert err["kind"] == "DuplicateResourceName"
        assert err["resource"] is None
        assert err["message"] == "resource name bucket is used by more than one template"
        assert result["resources"] == {}

    def test_explicit_name_clashing_with_positional_name(self, xr):
        composition = {"resources": [{"name": "resource-1", "base": {"kind": "A"}}, {"base": {"kind": "B"}}]}
        result = render(xr, composition)
        assert result["ok"] is False
        assert result["errors"][0]["kind"] == "DuplicateResourceName"
