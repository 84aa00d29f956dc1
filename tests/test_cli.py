"""
Tests for the pubsync CLI.

Tests cover:
- changes: explicit base, state-derived base, error exits
- push: success records state, failure reports the diagnostic
- status output
- --version
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from pubsync import __version__
from pubsync.cli import app
from pubsync.core.publish import PublishMonitor, PublishStateStore

runner = CliRunner()


class TestChangesCommand:
    def test_lists_publish_and_retract(self, content_repo: Path, git) -> None:
        base = git(content_repo, "rev-parse", "HEAD").strip()
        (content_repo / "posts" / "a.org").write_text("* A, revised\n")
        git(content_repo, "rm", "-q", "posts/b.org")
        git(content_repo, "commit", "-am", "Edit")

        result = runner.invoke(app, ["changes", base, "-C", str(content_repo), "--relative"])

        assert result.exit_code == 0, result.output
        assert "publish" in result.output
        assert "posts/a.org" in result.output
        assert "retract" in result.output
        assert "posts/b.org" in result.output
        assert "1 to publish, 1 to retract" in result.output

    def test_no_changes(self, content_repo: Path) -> None:
        result = runner.invoke(app, ["changes", "HEAD", "-C", str(content_repo)])

        assert result.exit_code == 0
        assert "No content changes" in result.output

    def test_without_base_or_state(self, content_repo: Path) -> None:
        result = runner.invoke(app, ["changes", "-C", str(content_repo)])

        assert result.exit_code == 2
        assert "No base revision" in result.output

    def test_uses_last_published_revision(self, content_repo: Path, git) -> None:
        head = git(content_repo, "rev-parse", "HEAD").strip()
        store = PublishStateStore(content_repo)
        state = store.load()
        state.mark_published(head, remote="origin", branch="main")
        store.save(state)

        (content_repo / "posts" / "new.org").write_text("* New\n")
        git(content_repo, "add", "posts/new.org")
        git(content_repo, "commit", "-m", "Add post")

        result = runner.invoke(app, ["changes", "-C", str(content_repo), "--relative"])

        assert result.exit_code == 0, result.output
        assert "posts/new.org" in result.output

    def test_not_a_repository(self, tmp_path: Path) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()

        result = runner.invoke(app, ["changes", "HEAD", "-C", str(plain)])

        assert result.exit_code == 2
        assert "Not a git repository" in result.output

    def test_unknown_revision(self, content_repo: Path) -> None:
        result = runner.invoke(app, ["changes", "no-such-rev", "-C", str(content_repo)])

        assert result.exit_code == 1
        assert "Error" in result.output


class TestPushCommand:
    def test_push_records_state(self, repo_with_remote: Path, bare_remote: Path, git) -> None:
        result = runner.invoke(app, ["push", "-C", str(repo_with_remote)])

        assert result.exit_code == 0, result.output
        assert "Pushed main to origin" in result.output

        head = git(repo_with_remote, "rev-parse", "HEAD").strip()
        assert git(bare_remote, "rev-parse", "refs/heads/main").strip() == head
        state = PublishStateStore(repo_with_remote).load()
        assert state.last_revision == head
        assert state.remote == "origin"

    def test_push_other_branch_records_its_tip(self, repo_with_remote: Path, git) -> None:
        git(repo_with_remote, "checkout", "-q", "-b", "drafts")
        (repo_with_remote / "posts" / "draft.org").write_text("* Draft\n")
        git(repo_with_remote, "add", "posts/draft.org")
        git(repo_with_remote, "commit", "-m", "Draft post")
        git(repo_with_remote, "checkout", "-q", "main")
        drafts_tip = git(repo_with_remote, "rev-parse", "drafts").strip()
        main_tip = git(repo_with_remote, "rev-parse", "main").strip()

        result = runner.invoke(app, ["push", "-b", "drafts", "-C", str(repo_with_remote)])

        assert result.exit_code == 0, result.output
        state = PublishStateStore(repo_with_remote).load()
        assert state.last_revision == drafts_tip
        assert state.last_revision != main_tip
        assert state.branch == "drafts"

    def test_push_failure_reports_diagnostic(self, content_repo: Path) -> None:
        result = runner.invoke(app, ["push", "-r", "nowhere", "-C", str(content_repo)])

        assert result.exit_code == 1
        assert "failed" in result.output
        assert "fatal" in result.output
        assert not PublishStateStore(content_repo).path.exists()

    def test_push_all_branches(self, repo_with_remote: Path) -> None:
        result = runner.invoke(app, ["push", "--all", "-C", str(repo_with_remote)])

        assert result.exit_code == 0, result.output
        assert "all branches" in result.output
        state = PublishStateStore(repo_with_remote).load()
        assert state.remote is None
        assert state.branch is None

    def test_push_interrupted(self, content_repo: Path) -> None:
        with (
            patch.object(PublishMonitor, "build_command", return_value=["sleep", "30"]),
            patch.object(PublishMonitor, "await_outcome", side_effect=KeyboardInterrupt),
        ):
            result = runner.invoke(app, ["push", "-C", str(content_repo)])

        assert result.exit_code == 130
        assert "interrupted" in result.output
        assert not PublishStateStore(content_repo).path.exists()

    def test_push_missing_directory(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["push", "-C", str(tmp_path / "missing")])

        assert result.exit_code == 2


class TestStatusCommand:
    def test_never_published(self, content_repo: Path) -> None:
        result = runner.invoke(app, ["status", "-C", str(content_repo)])

        assert result.exit_code == 0
        assert "Never published" in result.output
        assert ".org" in result.output

    def test_reads_project_env_from_project_dir(
        self, content_repo: Path, tmp_path: Path, monkeypatch
    ) -> None:
        (content_repo / ".env").write_text("PUBSYNC_CONTENT_SUFFIX=.md\n")
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)

        result = runner.invoke(app, ["status", "-C", str(content_repo)])

        assert result.exit_code == 0, result.output
        assert ".md" in result.output
        assert ".org" not in result.output

    def test_after_push(self, repo_with_remote: Path, git) -> None:
        runner.invoke(app, ["push", "-C", str(repo_with_remote)])
        head = git(repo_with_remote, "rev-parse", "HEAD").strip()

        result = runner.invoke(app, ["status", "-C", str(repo_with_remote)])

        assert result.exit_code == 0
        assert head[:12] in result.output


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output
