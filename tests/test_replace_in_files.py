"""Tests for replace_in_files tool."""

from code_assistant.tools.replace_in_files import ReplaceInFilesTool
from conftest import assert_fail, assert_ok, make_file


class TestReplaceInFiles:
    def test_plain_text_across_files(self, workspace):
        make_file(workspace, "a.py", "old_name()\nold_name()\n")
        make_file(workspace, "pkg/b.py", "x = old_name\n")
        make_file(workspace, "notes.md", "old_name\n")

        result = ReplaceInFilesTool(str(workspace)).run({"find": "old_name", "replace": "new_name", "glob": "*.py"})

        assert_ok(result)
        assert result.data["total_replacements"] == 3
        assert result.data["files"] == [
            {"file": "a.py", "replacements": 2},
            {"file": "pkg/b.py", "replacements": 1},
        ]
        assert (workspace / "pkg" / "b.py").read_text(encoding="utf-8") == "x = new_name\n"
        assert (workspace / "notes.md").read_text(encoding="utf-8") == "old_name\n"

    def test_plain_text_is_not_a_regex(self, workspace):
        make_file(workspace, "a.txt", "a.b axb\n")

        ReplaceInFilesTool(str(workspace)).run({"find": "a.b", "replace": r"c\d"})

        assert (workspace / "a.txt").read_text(encoding="utf-8") == "c\\d axb\n"

    def test_regex_with_groups(self, workspace):
        make_file(workspace, "a.txt", "foo(1) foo(22)\n")

        result = ReplaceInFilesTool(str(workspace)).run({"find": r"foo\((\d+)\)", "replace": r"bar[\1]", "regex": True})

        assert_ok(result)
        assert (workspace / "a.txt").read_text(encoding="utf-8") == "bar[1] bar[22]\n"

    def test_whole_word_and_case(self, workspace):
        make_file(workspace, "a.txt", "Log logger log\n")

        ReplaceInFilesTool(str(workspace)).run(
            {"find": "log", "replace": "LOG", "whole_word": True, "case_sensitive": False}
        )

        assert (workspace / "a.txt").read_text(encoding="utf-8") == "LOG logger LOG\n"

    def test_dry_run(self, workspace):
        make_file(workspace, "a.txt", "x\n")

        result = ReplaceInFilesTool(str(workspace)).run({"find": "x", "replace": "y", "dry_run": True})

        assert_ok(result)
        assert result.data["total_replacements"] == 1
        assert (workspace / "a.txt").read_text(encoding="utf-8") == "x\n"

    def test_hidden_directories_skipped(self, workspace):
        make_file(workspace, ".git/config", "x\n")

        result = ReplaceInFilesTool(str(workspace)).run({"find": "x", "replace": "y"})

        assert result.data["files"] == []
        assert (workspace / ".git" / "config").read_text(encoding="utf-8") == "x\n"

    def test_file_limit(self, workspace):
        for n in range(3):
            make_file(workspace, f"f{n}.txt", "x\n")

        result = ReplaceInFilesTool(str(workspace), {"max_edit_files": 2}).run({"find": "x", "replace": "y"})

        assert_fail(result, "TOO_MANY_FILES")
        assert (workspace / "f0.txt").read_text(encoding="utf-8") == "x\n"

    def test_invalid_regex(self, workspace):
        result = ReplaceInFilesTool(str(workspace)).run({"find": "(", "replace": "", "regex": True})
        assert_fail(result, "INVALID_REGEX")

    def test_outside_workspace(self, workspace):
        result = ReplaceInFilesTool(str(workspace)).run({"find": "x", "replace": "y", "path": ".."})
        assert_fail(result, "PATH_OUTSIDE_WORKSPACE")
