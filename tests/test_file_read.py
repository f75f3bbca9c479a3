"""Tests for file_read tool."""

import pytest

from code_assistant.tools.file_read import FileReadTool
from conftest import assert_fail, assert_ok, make_file


class TestFileRead:
    """Test file_read tool."""

    def test_reads_whole_file(self, workspace):
        make_file(workspace, "src/app.py", "line1\nline2\nline3\n")

        result = FileReadTool(str(workspace)).run({"path": "src/app.py"})

        assert_ok(result)
        assert result.data["content"] == "line1\nline2\nline3\n"
        assert result.data["total_lines"] == 3
        assert result.data["returned_lines"] == 3

    def test_offset_and_limit(self, workspace):
        make_file(workspace, "a.txt", "l1\nl2\nl3\nl4\nl5\n")

        result = FileReadTool(str(workspace)).run({"path": "a.txt", "offset": 1, "limit": 2})

        assert_ok(result)
        assert result.data["content"] == "l2\nl3\n"
        assert result.data["offset"] == 1
        assert result.data["returned_lines"] == 2

    def test_absolute_path_inside_workspace(self, workspace):
        f = make_file(workspace, "a.txt", "x")

        assert_ok(FileReadTool(str(workspace)).run({"path": str(f)}))

    def test_missing_file(self, workspace):
        assert_fail(FileReadTool(str(workspace)).run({"path": "nope.txt"}), "FILE_NOT_FOUND")

    def test_directory(self, workspace):
        (workspace / "pkg").mkdir()
        assert_fail(FileReadTool(str(workspace)).run({"path": "pkg"}), "NOT_A_FILE")

    def test_outside_workspace(self, workspace):
        assert_fail(FileReadTool(str(workspace)).run({"path": "../../etc/passwd"}), "PATH_OUTSIDE_WORKSPACE")

    def test_too_large(self, workspace):
        make_file(workspace, "big.txt", "x" * 200)

        result = FileReadTool(str(workspace), {"max_file_size": 100}).run({"path": "big.txt"})

        assert_fail(result, "FILE_TOO_LARGE")

    def test_wrong_argument_type(self, workspace):
        make_file(workspace, "a.txt")
        assert_fail(FileReadTool(str(workspace)).run({"path": "a.txt", "limit": "ten"}), "INVALID_ARGS")

    def test_denied_by_policy(self, workspace):
        make_file(workspace, "a.txt")
        tool = FileReadTool(str(workspace), {"deny_tools": ["file_read"]})
        assert_fail(tool.run({"path": "a.txt"}), "DENIED_BY_POLICY")

    def test_path_with_newline_is_rejected(self, workspace):
        result = FileReadTool(str(workspace)).run({"path": "../../etc/passwd\n"})
        assert_fail(result, "PATH_OUTSIDE_WORKSPACE")

    def test_execute_reports_escape_without_guard(self, workspace):
        result = FileReadTool(str(workspace)).execute({"path": "../../etc/passwd"})
        assert_fail(result, "PATH_OUTSIDE_WORKSPACE")

    @pytest.mark.parametrize("args", [{"offset": -5}, {"limit": -1}])
    def test_negative_window_rejected(self, workspace, args):
        make_file(workspace, "a.txt", "l1\nl2\nl3\n")
        assert_fail(FileReadTool(str(workspace)).run({"path": "a.txt", **args}), "INVALID_ARGS")
