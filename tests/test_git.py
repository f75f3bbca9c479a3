"""Tests for the git tools: status, diff, log and commit."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

from code_assistant.tools.git_commit import GitCommitTool
from code_assistant.tools.git_diff import GitDiffTool, split_file_diffs
from code_assistant.tools.git_log import GitLogTool, parse_log
from code_assistant.tools.git_status import GitStatusTool, parse_porcelain_v2
from conftest import assert_fail, assert_ok


def _proc(stdout="", stderr="", returncode=0):
    return MagicMock(stdout=stdout, stderr=stderr, returncode=returncode)


PORCELAIN_OUTPUT = """\
# branch.oid abc1234
# branch.head main
# branch.upstream origin/main
# branch.ab +2 -1
1 M. N... 100644 100644 100644 aaa bbb staged_file.py
1 .M N... 100644 100644 100644 ccc ddd unstaged_file.py
1 MM N... 100644 100644 100644 eee fff both.py
2 R. N... 100644 100644 100644 ggg hhh R100 new name.py\told_name.py
? untracked.txt
"""


class TestParsePorcelain:
    def test_splits_categories(self):
        files = parse_porcelain_v2(PORCELAIN_OUTPUT)

        assert files["staged"] == ["staged_file.py", "both.py", "new name.py"]
        assert files["unstaged"] == ["unstaged_file.py", "both.py"]
        assert files["untracked"] == ["untracked.txt"]

    def test_empty_output(self):
        assert parse_porcelain_v2("") == {"staged": [], "unstaged": [], "untracked": [], "conflicted": []}

    def test_unmerged_entries_are_conflicted(self):
        output = (
            "u UU N... 100644 100644 100644 100644 aaa bbb ccc merge me.py\n"
            "1 M. N... 100644 100644 100644 ddd eee clean.py\n"
        )

        files = parse_porcelain_v2(output)

        assert files["conflicted"] == ["merge me.py"]
        assert files["staged"] == ["clean.py"]
        assert files["unstaged"] == []


class TestGitStatusTool:
    def test_clean_repo_with_upstream(self, workspace):
        side_effect = [
            _proc("main\n"),
            _proc("origin/main\n"),
            _proc("1\t2\n"),
            _proc(PORCELAIN_OUTPUT),
        ]
        with patch("code_assistant.tools.git_status.subprocess.run", side_effect=side_effect):
            result = GitStatusTool(str(workspace)).run({})

        assert_ok(result)
        assert result.data["branch"] == "main"
        assert result.data["upstream"] == "origin/main"
        assert (result.data["behind"], result.data["ahead"]) == (1, 2)
        assert result.data["untracked"] == ["untracked.txt"]

    def test_no_upstream(self, workspace):
        side_effect = [_proc("feature\n"), _proc("", "no upstream", 128), _proc("")]
        with patch("code_assistant.tools.git_status.subprocess.run", side_effect=side_effect):
            result = GitStatusTool(str(workspace)).run({})

        assert_ok(result)
        assert result.data["upstream"] is None
        assert result.data["ahead"] == 0

    def test_not_a_repo(self, workspace):
        with patch(
            "code_assistant.tools.git_status.subprocess.run",
            return_value=_proc("", "fatal: not a git repository", 128),
        ):
            assert_fail(GitStatusTool(str(workspace)).run({}), "NOT_A_REPO")

    def test_git_missing(self, workspace):
        with patch("code_assistant.tools.git_status.subprocess.run", side_effect=FileNotFoundError("git")):
            assert_fail(GitStatusTool(str(workspace)).run({}), "GIT_UNAVAILABLE")

    def test_git_timeout(self, workspace):
        with patch(
            "code_assistant.tools.git_status.subprocess.run",
            side_effect=subprocess.TimeoutExpired(["git"], 15),
        ):
            assert_fail(GitStatusTool(str(workspace)).run({}), "GIT_UNAVAILABLE")

    def test_runs_in_workspace(self, workspace):
        with patch(
            "code_assistant.tools.git_status.subprocess.run",
            return_value=_proc("", "fatal", 128),
        ) as mock_run:
            GitStatusTool(str(workspace)).run({})

        assert mock_run.call_args.kwargs["cwd"] == str(workspace.resolve())


DIFF_OUTPUT = """\
diff --git a/app.py b/app.py
index 1111111..2222222 100644
--- a/app.py
+++ b/app.py
@@ -1,2 +1,3 @@
-x = 1
+x = 2
+y = 3
 z = 0
diff --git a/docs/readme.md b/docs/readme.md
index 3333333..4444444 100644
--- a/docs/readme.md
+++ b/docs/readme.md
@@ -1 +0,0 @@
-old line
"""

GIT_RUN = "code_assistant.tools.base.subprocess.run"


class TestGitDiff:
    def test_split_file_diffs(self):
        assert split_file_diffs(DIFF_OUTPUT) == [
            {"path": "app.py", "additions": 2, "deletions": 1},
            {"path": "docs/readme.md", "additions": 0, "deletions": 1},
        ]

    def test_unstaged_by_default(self, workspace):
        with patch(GIT_RUN, return_value=_proc(DIFF_OUTPUT)) as mock_run:
            result = GitDiffTool(str(workspace)).run({})

        assert_ok(result)
        assert mock_run.call_args.args[0] == ["git", "diff"]
        assert [f["path"] for f in result.data["files"]] == ["app.py", "docs/readme.md"]
        assert result.data["diff"] == DIFF_OUTPUT

    def test_staged_with_paths(self, workspace):
        with patch(GIT_RUN, return_value=_proc("")) as mock_run:
            result = GitDiffTool(str(workspace)).run({"staged": True, "paths": ["app.py"]})

        assert_ok(result)
        assert result.message == "No changes"
        assert mock_run.call_args.args[0] == ["git", "diff", "--cached", "--", "app.py"]

    def test_ref_range(self, workspace):
        with patch(GIT_RUN, return_value=_proc("")) as mock_run:
            GitDiffTool(str(workspace)).run({"base_ref": "main", "target_ref": "HEAD"})

        assert mock_run.call_args.args[0] == ["git", "diff", "main...HEAD"]

    def test_rejects_option_like_ref(self, workspace):
        with patch(GIT_RUN) as mock_run:
            result = GitDiffTool(str(workspace)).run({"base_ref": "--output=/tmp/x"})

        assert_fail(result, "INVALID_ARGS")
        mock_run.assert_not_called()

    def test_path_outside_workspace(self, workspace):
        assert_fail(GitDiffTool(str(workspace)).run({"paths": ["../other"]}), "PATH_OUTSIDE_WORKSPACE")

    def test_git_error(self, workspace):
        with patch(GIT_RUN, return_value=_proc("", "fatal: bad revision", 128)):
            assert_fail(GitDiffTool(str(workspace)).run({"base_ref": "nope"}), "GIT_ERROR")


class TestGitLog:
    def test_parse_log(self):
        output = "\x1f".join(["a" * 40, "aaaaaaa", "Ada", "2024-01-02T03:04:05+00:00", "Fix: tabs\tand spaces"]) + "\x1e\n"

        assert parse_log(output) == [{
            "hash": "a" * 40,
            "short_hash": "aaaaaaa",
            "author": "Ada",
            "date": "2024-01-02T03:04:05+00:00",
            "subject": "Fix: tabs\tand spaces",
        }]

    def test_max_count_and_path(self, workspace):
        with patch(GIT_RUN, return_value=_proc("")) as mock_run:
            result = GitLogTool(str(workspace)).run({"max_count": 3, "path": "src"})

        assert_ok(result)
        argv = mock_run.call_args.args[0]
        assert argv[:3] == ["git", "log", "--max-count=3"]
        assert argv[-2:] == ["--", "src"]

    def test_invalid_max_count(self, workspace):
        assert_fail(GitLogTool(str(workspace)).run({"max_count": 0}), "INVALID_ARGS")


class TestGitCommit:
    def test_requires_confirmation(self, workspace):
        with patch(GIT_RUN) as mock_run:
            result = GitCommitTool(str(workspace)).run({"message": "wip"})

        assert_fail(result, "CONFIRMATION_REQUIRED")
        mock_run.assert_not_called()

    def test_stages_and_commits(self, workspace):
        side_effect = [_proc(), _proc("app.py\nlib.py\n"), _proc("[main abc1234] Add feature"), _proc("abc1234\n")]
        with patch(GIT_RUN, side_effect=side_effect) as mock_run:
            result = GitCommitTool(str(workspace)).run(
                {"message": "Add feature", "paths": ["app.py", "lib.py"], "confirmed": True}
            )

        assert_ok(result)
        assert result.data == {"commit": "abc1234", "files": ["app.py", "lib.py"], "message": "Add feature"}
        calls = [c.args[0] for c in mock_run.call_args_list]
        assert calls[0] == ["git", "add", "--", "app.py", "lib.py"]
        assert calls[2] == ["git", "commit", "-m", "Add feature"]

    def test_nothing_staged(self, workspace):
        with patch(GIT_RUN, return_value=_proc("")):
            result = GitCommitTool(str(workspace)).run({"message": "x", "confirmed": True})

        assert_fail(result, "NOTHING_TO_COMMIT")

    def test_commit_failure(self, workspace):
        side_effect = [_proc("a.py\n"), _proc("", "hook rejected", 1)]
        with patch(GIT_RUN, side_effect=side_effect):
            result = GitCommitTool(str(workspace)).run({"message": "x", "confirmed": True})

        assert_fail(result, "COMMIT_FAILED")
        assert "hook rejected" in result.message

    def test_empty_message(self, workspace):
        assert_fail(GitCommitTool(str(workspace)).run({"message": "  ", "confirmed": True}), "INVALID_ARGS")

    def test_git_missing(self, workspace):
        with patch(GIT_RUN, side_effect=FileNotFoundError("git")):
            result = GitCommitTool(str(workspace)).run({"message": "x", "confirmed": True})

        assert_fail(result, "GIT_UNAVAILABLE")
