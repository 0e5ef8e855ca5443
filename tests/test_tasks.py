"""Tests for the output maintenance tasks."""

import os

import pytest

from jfwgen.tasks import (
    MERGED_SP_FILE,
    clean_output,
    copy_to_framework,
    file_header,
    fill_missing_headers,
    is_hand_editable,
    merge_sp_scripts,
)


def write(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


class TestCleanOutput:
    def test_recreates_folder(self, tmp_path):
        output = tmp_path / "output"
        write(output / "sp" / "old.sql", "GO")
        clean_output(output)
        assert output.is_dir()
        assert list(output.iterdir()) == []

    def test_creates_missing_folder(self, tmp_path):
        clean_output(tmp_path / "new" / "output")
        assert (tmp_path / "new" / "output").is_dir()


class TestMergeSpScripts:
    def test_merges_sorted_scripts(self, tmp_path):
        write(tmp_path / "sp" / "update-stored-procedures.sql", "update")
        write(tmp_path / "sp" / "delete-stored-procedures.sql", "delete")
        write(tmp_path / "sp" / MERGED_SP_FILE, "stale")
        merged = merge_sp_scripts(tmp_path)
        assert merged.name == MERGED_SP_FILE
        assert merged.read_text() == "delete\nupdate"

    def test_missing_sp_folder(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="jfwgen generate"):
            merge_sp_scripts(tmp_path)


class TestCopyToFramework:
    def test_is_hand_editable(self, tmp_path):
        assert is_hand_editable(tmp_path / "UserRepository.cs")
        assert not is_hand_editable(tmp_path / "UserRepository.Generated.cs")
        assert not is_hand_editable(tmp_path / "insert-stored-procedures.sql")

    def test_copies_tree(self, tmp_path):
        output, framework = tmp_path / "output", tmp_path / "framework"
        write(output / "Jfw.Models" / "Filters" / "UserFilter.Generated.cs", "filter")
        write(output / "sp" / "get-stored-procedures.sql", "get")
        assert copy_to_framework(output, framework) == (2, 0)
        assert (framework / "Jfw.Models" / "Filters" / "UserFilter.Generated.cs").read_text() == "filter"

    def test_overwrites_by_default(self, tmp_path):
        output, framework = tmp_path / "output", tmp_path / "framework"
        write(output / "UserDao.cs", "new")
        write(framework / "UserDao.cs", "custom")
        copy_to_framework(output, framework)
        assert (framework / "UserDao.cs").read_text() == "new"

    def test_preserve_custom(self, tmp_path):
        output, framework = tmp_path / "output", tmp_path / "framework"
        write(output / "UserDao.cs", "new")
        write(output / "UserDao.Generated.cs", "generated")
        write(framework / "UserDao.cs", "custom")
        write(framework / "UserDao.Generated.cs", "old")
        assert copy_to_framework(output, framework, preserve_custom=True) == (1, 1)
        assert (framework / "UserDao.cs").read_text() == "custom"
        assert (framework / "UserDao.Generated.cs").read_text() == "generated"

    def test_missing_output(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            copy_to_framework(tmp_path / "output", tmp_path / "framework")


class TestHeaders:
    def test_file_header(self, config):
        header = file_header(config, "2023-06-01")
        assert header == (
            "/*\n"
            "* Description: This file...\n"
            "* Author: Jin Jackson.\n"
            "* History:\n"
            "* - 2023-06-01: Created - dev22.\n"
            "* - 2024-01-15: Added the file header - dev22.\n"
            "*/\n"
            "\n"
        )

    def test_fill_missing_headers(self, tmp_path, config):
        bare = write(tmp_path / "Core" / "CUser.cs", "\ufeffnamespace Jfw.Core { }\n")
        documented = write(tmp_path / "CBrand.cs", "/* existing */\nnamespace Jfw.Core { }\n")
        write(tmp_path / "notes.txt", "plain")
        os.utime(bare, (1685577600, 1685577600))

        updated = fill_missing_headers(tmp_path, config)

        assert updated == [bare]
        content = bare.read_text(encoding="utf-8")
        assert content.startswith("/*\n* Description: This file...\n")
        assert content.endswith("*/\n\nnamespace Jfw.Core { }\n")
        assert "\ufeff" not in content
        assert documented.read_text(encoding="utf-8").startswith("/* existing */")

    def test_non_utf8_file_skipped(self, tmp_path, config, caplog):
        legacy = tmp_path / "Legacy.cs"
        legacy.write_bytes(b"namespace Jfw { // caf\xe9 }\n")
        bare = write(tmp_path / "CUser.cs", "namespace Jfw.Core { }\n")

        updated = fill_missing_headers(tmp_path, config)

        assert updated == [bare]
        assert legacy.read_bytes() == b"namespace Jfw { // caf\xe9 }\n"
        assert "Skipping" in caplog.text and "Legacy.cs" in caplog.text

    def test_missing_framework(self, tmp_path, config):
        with pytest.raises(FileNotFoundError, match="Framework folder"):
            fill_missing_headers(tmp_path / "missing", config)
