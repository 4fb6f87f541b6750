"""Shared fixtures for the test suite."""

from __future__ import annotations

import pytest

from patch_transform.settings import reset_settings_cache


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Every test starts from default settings, unaffected by the host env."""
    for key in ("LOG_LEVEL", "OUTPUT_INDENT", "STRICT_RENDER"):
        monkeypatch.delenv(f"PATCH_TRANSFORM_{key}", raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def composite():
    """A composite with a name and one label."""
    return {
        "objectMeta": {
            "name": "cp",
            "labels": {"Test": "blah"},
        },
    }


@pytest.fixture
def composed():
    """A composed document that only carries its name."""
    return {"objectMeta": {"name": "cd"}}


@pytest.fixture
def labelled_composite():
    """A composite whose labels hold two combine sources."""
    return {
        "objectMeta": {
            "name": "cp",
            "labels": {"source1": "foo", "source2": "bar"},
        },
    }


@pytest.fixture
def labelled_composed():
    """A composed document labelled Test=blah."""
    return {
        "objectMeta": {
            "name": "cd",
            "labels": {"Test": "blah"},
        },
    }


@pytest.fixture
def owner_refs():
    """Two owner references with blank names."""
    return [
        {"name": "", "apiVersion": "v1"},
        {"name": "", "apiVersion": "v1alpha1"},
    ]


@pytest.fixture
def string_combine():
    """A two-variable ``%s-%s`` string combine over objectMeta labels."""
    return {
        "variables": [
            {"fromFieldPath": "objectMeta.labels.source1"},
            {"fromFieldPath": "objectMeta.labels.source2"},
        ],
        "strategy": "string",
        "string": {"fmt": "%s-%s"},
    }


@pytest.fixture
def patch_sets():
    """Two named patch sets; the second carries a map transform."""
    return [
        {
            "name": "patch-set-1",
            "patches": [
                {"type": "FromCompositeFieldPath", "fromFieldPath": "metadata.namespace"},
                {"type": "FromCompositeFieldPath", "fromFieldPath": "spec.parameters.test"},
            ],
        },
        {
            "name": "patch-set-2",
            "patches": [
                {
                    "type": "FromCompositeFieldPath",
                    "fromFieldPath": "metadata.annotations.patch-test-1",
                },
                {
                    "type": "FromCompositeFieldPath",
                    "fromFieldPath": "metadata.annotations.patch-test-2",
                    "transforms": [
                        {"type": "map", "map": {"pairs": {"k-1": "v-1", "k-2": "v-2"}}},
                    ],
                },
            ],
        },
    ]


@pytest.fixture
def composition(patch_sets):
    """A composition with one bucket resource patched both ways."""
    return {
        "patchSets": patch_sets,
        "resources": [
            {
                "name": "bucket",
                "base": {"apiVersion": "s3/v1", "kind": "Bucket", "spec": {}},
                "patches": [
                    {
                        "type": "FromCompositeFieldPath",
                        "fromFieldPath": "spec.region",
                        "toFieldPath": "spec.forProvider.region",
                    },
                    {
                        "type": "FromCompositeFieldPath",
                        "fromFieldPath": "spec.size",
                        "toFieldPath": "spec.forProvider.sizeGb",
                        "transforms": [
                            {"type": "map", "map": {"pairs": {"small": 10, "large": 100}}},
                        ],
                    },
                    {
                        "type": "ToCompositeFieldPath",
                        "fromFieldPath": "status.arn",
                        "toFieldPath": "status.bucketArn",
                    },
                ],
            },
        ],
    }


@pytest.fixture
def xr():
    """Composite document rendered by the ``composition`` fixture."""
    return {
        "metadata": {"name": "my-bucket"},
        "spec": {"region": "eu-west-1", "size": "small"},
    }
