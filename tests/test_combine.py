"""Tests for combine.py and the sprintf formatter it relies on."""

from __future__ import annotations

import pytest

from patch_transform.combine import combine
from patch_transform.errors import (
    CombineConfigMissing,
    CombineRequiresVariables,
    TransformError,
)
from patch_transform.transforms.sprintf import count_verbs, render_value, sprintf


class TestCombine:

    def test_string_strategy(self, string_combine):
        assert combine(string_combine, ["foo", "bar"]) == "foo-bar"

    def test_non_string_values_render(self, string_combine):
        assert combine(string_combine, [3, True]) == "3-true"

    def test_too_few_values(self, string_combine):
        with pytest.raises(TransformError) as exc:
            combine(string_combine, ["foo"])
        assert str(exc.value).startswith("cannot combine values with strategy string")

    def test_too_many_values(self, string_combine):
        with pytest.raises(TransformError):
            combine(string_combine, ["foo", "bar", "baz"])

    def test_unknown_strategy(self, string_combine):
        string_combine["strategy"] = "concat"
        with pytest.raises(CombineConfigMissing) as exc:
            combine(string_combine, ["foo", "bar"])
        assert exc.value.strategy == "concat"

    def test_no_variables(self, string_combine):
        string_combine["variables"] = []
        with pytest.raises(CombineRequiresVariables):
            combine(string_combine, [])


# ======================================================================
# sprintf
# ======================================================================
class TestSprintf:

    def test_count_verbs_ignores_literal_percent(self):
        assert count_verbs("%s is 100%% %d") == 2

    def test_width_and_flags(self):
        assert sprintf("[%-5s|%5s]", "ab", "cd") == "[ab   |   cd]"

    def test_hex_of_string(self):
        assert sprintf("%x", "hi") == "6869"

    def test_scientific(self):
        assert sprintf("%e", 1500.0) == "1.500000e+03"

    def test_unknown_verb(self):
        with pytest.raises(TransformError):
            sprintf("%z", 1)

    @pytest.mark.parametrize("value, expected", [
        (None, "null"),
        (False, "false"),
        (1.5, "1.5"),
        (1e21, "1000000000000000000000"),
        (float("inf"), "+Inf"),
        ([1, "a"], '[1,"a"]'),
        ({"k": None}, '{"k":null}'),
    ])
    def test_render_value(self, value, expected):
        assert render_value(value) == expected
