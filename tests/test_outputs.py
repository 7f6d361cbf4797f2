"""Tests for step outputs."""
from pathlib import Path

import pytest

from martini_deploy.errors import ConfigError
from martini_deploy.models import PackageCandidate, UploadRecord, UploadResult
from martini_deploy.orchestrator.outputs import (
    build_outputs,
    check_unique_keys,
    flatten_outputs,
    sanitize_key,
    write_outputs,
)


class TestSanitizeKey:
    @pytest.mark.parametrize("value", ["orders", "Orders_2", "_x9", ""])
    def test_safe_names_unchanged(self, value):
        assert sanitize_key(value) == value

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("my-package", "my_package"),
            ("io.martini.core", "io_martini_core"),
            ("a b/c", "a_b_c"),
            ("café", "caf_"),
        ],
    )
    def test_unsafe_characters_replaced(self, value, expected):
        assert sanitize_key(value) == expected

    @pytest.mark.parametrize("value", ["my-package", "a..b", "x y z", "ok"])
    def test_idempotent(self, value):
        assert sanitize_key(sanitize_key(value)) == sanitize_key(value)


class TestBuildOutputs:
    def _candidates(self, *names):
        return [PackageCandidate(name, Path("packages") / name) for name in names]

    def test_one_output_per_candidate_even_if_omitted(self):
        upload = UploadResult(http_status=200, records=(UploadRecord("a", "1", "STARTED", "3"),))

        outputs = build_outputs(self._candidates("a", "my-pkg"), upload)

        assert [o.key_prefix for o in outputs] == ["a", "my_pkg"]
        assert outputs[0].record.id == "1"
        assert outputs[1].as_dict() == {
            "my_pkg_id": "",
            "my_pkg_name": "my-pkg",
            "my_pkg_status": "",
            "my_pkg_version": "",
        }

    def test_single_package_also_sets_plain_keys(self):
        upload = UploadResult(http_status=200, records=(UploadRecord("a", "1", "STARTED", "3"),))

        values = flatten_outputs(build_outputs(self._candidates("a"), upload))

        assert values["id"] == "1"
        assert values["name"] == "a"
        assert values["status"] == "STARTED"
        assert values["version"] == "3"
        assert values["a_id"] == "1"

    def test_multiple_packages_have_no_plain_keys(self):
        upload = UploadResult(http_status=200)
        values = flatten_outputs(build_outputs(self._candidates("a", "b"), upload))
        assert "id" not in values
        assert len(values) == 8


    def test_colliding_keys_are_rejected(self):
        upload = UploadResult(
            http_status=200,
            records=(UploadRecord("a-b", "1"), UploadRecord("a_b", "2")),
        )

        with pytest.raises(ConfigError, match="'a-b' and 'a_b' -> 'a_b'"):
            build_outputs(self._candidates("a-b", "a_b"), upload)

    def test_distinct_keys_keep_every_package(self):
        candidates = self._candidates("a-b", "a_c", "a.d")
        check_unique_keys(candidates)
        values = flatten_outputs(build_outputs(candidates, UploadResult(http_status=200)))
        assert len(values) == 12


class TestWriteOutputs:
    def test_appends_key_value_lines(self, tmp_path):
        path = tmp_path / "github_output"
        path.write_text("existing=1\n", encoding="utf-8")

        write_outputs({"a_id": "1", "a_name": "a"}, path)

        assert path.read_text(encoding="utf-8") == "existing=1\na_id=1\na_name=a\n"

    def test_multiline_values_use_delimiter(self, tmp_path):
        path = tmp_path / "github_output"

        write_outputs({"note": "line1\nline2"}, path)

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("note<<ghadelimiter_")
        delimiter = lines[0].split("<<", 1)[1]
        assert lines[1:] == ["line1", "line2", delimiter]

    def test_without_path_only_logs(self, caplog):
        with caplog.at_level("INFO"):
            write_outputs({"a_id": "1"}, None)
        assert "output a_id=1" in caplog.text
