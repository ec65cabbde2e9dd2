"""Tests for git/repository.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from ship.core.result import Err, Ok, Result
from ship.git import repository as repo_mod
from ship.git.repository import Repository, StatusEntry
from ship.platform.process import ProcessError


class _FakeGit:
    """Records git invocations and replays canned results."""

    def __init__(self, *results: Result[str, ProcessError]) -> None:
        self.results = list(results)
        self.calls: list[list[str]] = []
        self.timeouts: list[float | None] = []

    def __call__(
        self, cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        del cwd, env
        self.calls.append(cmd)
        self.timeouts.append(timeout)
        return self.results.pop(0) if self.results else Ok("")


def _fail(stderr: str) -> Err[ProcessError]:
    return Err(ProcessError(command=("git",), returncode=128, stdout="", stderr=stderr))


@pytest.fixture
def fake_git(monkeypatch: pytest.MonkeyPatch) -> _FakeGit:
    fake = _FakeGit()
    monkeypatch.setattr(repo_mod, "run_process", fake)
    return fake


class TestStatusEntry:
    """Tests for StatusEntry dataclass."""

    def test_pretty_xy(self) -> None:
        assert StatusEntry(xy=" M", path="a").pretty_xy() == ".M"


class TestRepository:
    def test_exists(self, tmp_path: Path) -> None:
        assert Repository(tmp_path).exists() is False
        (tmp_path / ".git").mkdir()
        assert Repository(tmp_path).exists() is True

    def test_tags(self, fake_git: _FakeGit, tmp_path: Path) -> None:
        fake_git.results.append(Ok("v0.9.0\nv0.10.0\n\n"))

        result = Repository(tmp_path).tags()

        assert result == Ok(["v0.9.0", "v0.10.0"])
        assert fake_git.calls == [["git", "-C", str(tmp_path), "tag"]]

    def test_tracked_changes_parses_porcelain(self, fake_git: _FakeGit, tmp_path: Path) -> None:
        fake_git.results.append(Ok(" M caddy/main.go\nA  dist/new.txt\n"))

        result = Repository(tmp_path).tracked_changes()

        assert isinstance(result, Ok)
        assert result.value == (
            StatusEntry(xy=" M", path="caddy/main.go"),
            StatusEntry(xy="A ", path="dist/new.txt"),
        )
        assert fake_git.calls[0][3:] == ["status", "--untracked-files=no", "--porcelain"]

    def test_tracked_changes_clean(self, fake_git: _FakeGit, tmp_path: Path) -> None:
        fake_git.results.append(Ok(""))
        assert Repository(tmp_path).tracked_changes() == Ok(())

    def test_head_sha(self, fake_git: _FakeGit, tmp_path: Path) -> None:
        fake_git.results.append(Ok("0123abcd\n"))
        assert Repository(tmp_path).head_sha() == Ok("0123abcd")

    def test_create_signed_tag(self, fake_git: _FakeGit, tmp_path: Path) -> None:
        assert Repository(tmp_path).create_signed_tag("v1.2.0") == Ok(None)
        assert fake_git.calls[0][3:] == ["tag", "-s", "v1.2.0", "-m", ""]

    def test_delete_tag(self, fake_git: _FakeGit, tmp_path: Path) -> None:
        assert Repository(tmp_path).delete_tag("v1.2.0") == Ok(None)
        assert fake_git.calls[0][3:] == ["tag", "-d", "v1.2.0"]

    def test_signing_failure_carries_stderr(self, fake_git: _FakeGit, tmp_path: Path) -> None:
        fake_git.results.append(_fail("gpg: signing failed: No secret key"))

        result = Repository(tmp_path).create_signed_tag("v1.2.0")

        assert isinstance(result, Err)
        assert result.error.message == "gpg: signing failed: No secret key"
        assert result.error.returncode == 128

    def test_push_uses_network_timeout(self, fake_git: _FakeGit, tmp_path: Path) -> None:
        repo = Repository(tmp_path)
        repo.push()
        repo.push_tags()
        repo.tags()

        assert fake_git.calls[0][3:] == ["push"]
        assert fake_git.calls[1][3:] == ["push", "--tags"]
        assert fake_git.timeouts[0] == fake_git.timeouts[1]
        assert fake_git.timeouts[0] is not None and fake_git.timeouts[2] is not None
        assert fake_git.timeouts[0] > fake_git.timeouts[2]

    def test_worktree_commands(self, fake_git: _FakeGit, tmp_path: Path) -> None:
        repo = Repository(tmp_path)
        wt = tmp_path / "wt"
        repo.add_worktree(wt, "v1.2.0")
        repo.remove_worktree(wt)

        assert fake_git.calls[0][3:] == ["worktree", "add", "--detach", str(wt), "v1.2.0"]
        assert fake_git.calls[1][3:] == ["worktree", "remove", "--force", str(wt)]

    def test_error_falls_back_to_generic_message(
        self, fake_git: _FakeGit, tmp_path: Path
    ) -> None:
        fake_git.results.append(_fail(""))

        result = Repository(tmp_path).tags()

        assert isinstance(result, Err)
        assert result.error.message == "git tag failed"
