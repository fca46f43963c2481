"""Tests for src.vcs.resolver — git root discovery and branch state."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from src.contracts.repository import DETACHED_HEAD
from src.vcs.resolver import (
    RepositoryStateResolver,
    current_ref,
    find_root,
    select_default_branch,
)
from tests.conftest import FakeRunner

SHA = "3f786850e387550fdab836ed7e6dc881de23001b"


def _write_head(root: Path, content: str) -> None:
    (root / ".git" / "HEAD").write_text(content, encoding="utf-8")


# ═══════════════════════════════════════════════════════════════════════════
#  Read path
# ═══════════════════════════════════════════════════════════════════════════


class TestFindRoot:
    def test_from_root(self, git_repo):
        assert find_root(git_repo) == git_repo

    def test_from_nested_directory(self, git_repo):
        nested = git_repo / "metaform" / "mpm"
        nested.mkdir(parents=True)
        assert find_root(nested) == git_repo

    def test_from_file(self, git_repo):
        path = git_repo / "auto.tfvars"
        path.write_text("", encoding="utf-8")
        assert find_root(path) == git_repo

    def test_gitfile_counts_as_marker(self, tmp_path):
        worktree = tmp_path / "wt"
        worktree.mkdir()
        (worktree / ".git").write_text("gitdir: /elsewhere\n", encoding="utf-8")
        assert find_root(worktree) == worktree

    def test_no_marker_returns_none(self, tmp_path, monkeypatch):
        orphan = tmp_path / "a" / "b"
        orphan.mkdir(parents=True)
        real_exists = Path.exists
        monkeypatch.setattr(
            Path,
            "exists",
            lambda self: False if self.name == ".git" else real_exists(self),
        )
        assert find_root(orphan) is None

    def test_nonexistent_path_walks_up(self, git_repo):
        assert find_root(git_repo / "not" / "there") == git_repo

    def test_defaults_to_cwd(self, git_repo, monkeypatch):
        monkeypatch.chdir(git_repo)
        assert find_root().resolve() == git_repo.resolve()


class TestCurrentRef:
    def test_branch(self, git_repo):
        _write_head(git_repo, "ref: refs/heads/feature-x\n")
        assert current_ref(git_repo) == "feature-x"

    def test_branch_with_slashes(self, git_repo):
        _write_head(git_repo, "ref: refs/heads/alerts/dpd-threshold")
        assert current_ref(git_repo) == "alerts/dpd-threshold"

    def test_detached(self, git_repo):
        _write_head(git_repo, SHA + "\n")
        assert current_ref(git_repo) == DETACHED_HEAD

    def test_no_head_file(self, tmp_path):
        assert current_ref(tmp_path) is None

    def test_packed_refs_fallback(self, git_repo):
        _write_head(git_repo, "3f78685")
        (git_repo / ".git" / "packed-refs").write_text(
            "# pack-refs with: peeled fully-peeled sorted\n"
            f"^{SHA}\n"
            f"{SHA} refs/tags/v1.0\n"
            f"{SHA} refs/heads/release\n",
            encoding="utf-8",
        )
        assert current_ref(git_repo) == "release"

    def test_packed_refs_no_match(self, git_repo):
        _write_head(git_repo, "deadbeef")
        (git_repo / ".git" / "packed-refs").write_text(f"{SHA} refs/heads/main\n", encoding="utf-8")
        assert current_ref(git_repo) is None

    def test_unknown_head_without_packed_refs(self, git_repo):
        _write_head(git_repo, "something else")
        assert current_ref(git_repo) is None

    def test_empty_head(self, git_repo):
        _write_head(git_repo, "")
        (git_repo / ".git" / "packed-refs").write_text(f"{SHA} refs/heads/main\n", encoding="utf-8")
        assert current_ref(git_repo) is None

    def test_io_error_degrades_to_none(self, git_repo, monkeypatch):
        def boom(self, *args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(Path, "read_text", boom)
        assert current_ref(git_repo) is None


class TestResolve:
    def test_state(self, git_repo):
        state = RepositoryStateResolver(FakeRunner()).resolve(git_repo)
        assert state.root == git_repo
        assert state.ref == "main"
        assert not state.is_detached

    def test_detached_state(self, git_repo):
        _write_head(git_repo, SHA)
        state = RepositoryStateResolver(FakeRunner()).resolve(git_repo)
        assert state.is_detached

    def test_current_branch(self, git_repo):
        resolver = RepositoryStateResolver(FakeRunner())
        assert resolver.current_branch(git_repo / "sub") == "main"

    def test_read_path_never_runs_git(self, git_repo):
        runner = FakeRunner()
        resolver = RepositoryStateResolver(runner)
        resolver.resolve(git_repo)
        resolver.current_branch(git_repo)
        assert runner.calls == []


# ═══════════════════════════════════════════════════════════════════════════
#  Write path
# ═══════════════════════════════════════════════════════════════════════════


class TestSelectDefaultBranch:
    @pytest.mark.parametrize(
        "branches, expected",
        [
            (["develop", "main", "master"], "main"),
            (["develop", "master"], "master"),
            (["Main"], "main"),
            (["develop"], None),
            ([], None),
        ],
    )
    def test_selection(self, branches, expected):
        assert select_default_branch(branches) == expected


class TestWriteOperations:
    def test_list_branches(self, git_repo):
        runner = FakeRunner(["main", "feature-x"])
        assert RepositoryStateResolver(runner).list_branches(git_repo) == ["main", "feature-x"]
        assert runner.calls == [("list", git_repo)]

    def test_list_branches_failure(self, git_repo):
        assert RepositoryStateResolver(FakeRunner(None)).list_branches(git_repo) == []

    def test_list_branches_outside_repo(self, tmp_path, monkeypatch):
        monkeypatch.setattr("src.vcs.resolver.find_root", lambda path=None: None)
        runner = FakeRunner(["main"])
        assert RepositoryStateResolver(runner).list_branches(tmp_path) == []
        assert runner.calls == []

    def test_checkout(self, git_repo):
        runner = FakeRunner()
        assert RepositoryStateResolver(runner).checkout("feature-x", git_repo / "sub")
        assert runner.calls == [("checkout", git_repo, "feature-x")]

    def test_checkout_failure(self, git_repo):
        assert not RepositoryStateResolver(FakeRunner(succeed=False)).checkout("nope", git_repo)

    def test_checkout_outside_repo(self, tmp_path, monkeypatch):
        monkeypatch.setattr("src.vcs.resolver.find_root", lambda path=None: None)
        runner = FakeRunner()
        assert not RepositoryStateResolver(runner).checkout("main", tmp_path)
        assert runner.calls == []

    def test_create_with_explicit_base(self, git_repo):
        runner = FakeRunner(["main"])
        assert RepositoryStateResolver(runner).create_and_checkout("alerts/x", "develop", git_repo)
        assert runner.calls == [("create", git_repo, "alerts/x", "develop")]

    def test_create_defaults_to_main(self, git_repo):
        runner = FakeRunner(["master", "main"])
        assert RepositoryStateResolver(runner).create_and_checkout("alerts/x", path=git_repo)
        assert runner.calls == [("list", git_repo), ("create", git_repo, "alerts/x", "main")]

    def test_create_falls_back_to_master(self, git_repo):
        runner = FakeRunner(["master", "develop"])
        assert RepositoryStateResolver(runner).create_and_checkout("alerts/x", path=git_repo)
        assert runner.calls[-1] == ("create", git_repo, "alerts/x", "master")

    def test_create_without_base_branch_fails(self, git_repo):
        runner = FakeRunner(["develop"])
        assert not RepositoryStateResolver(runner).create_and_checkout("alerts/x", path=git_repo)
        assert [c[0] for c in runner.calls] == ["list"]

    def test_create_when_listing_fails(self, git_repo):
        runner = FakeRunner(None)
        assert not RepositoryStateResolver(runner).create_and_checkout("alerts/x", path=git_repo)

    def test_same_root_shares_lock(self, git_repo):
        resolver = RepositoryStateResolver(FakeRunner())
        assert resolver._lock_for(git_repo) is resolver._lock_for(git_repo / "sub" / "..")
        assert resolver._lock_for(git_repo) is not resolver._lock_for(git_repo.parent)

    def test_checkouts_on_one_root_are_serialised(self, git_repo):
        active = 0
        peak = 0
        guard = threading.Lock()

        class SlowRunner(FakeRunner):
            def checkout(self, root, branch):
                nonlocal active, peak
                with guard:
                    active += 1
                    peak = max(peak, active)
                threading.Event().wait(0.01)
                with guard:
                    active -= 1
                return True

        resolver = RepositoryStateResolver(SlowRunner())
        threads = [
            threading.Thread(target=resolver.checkout, args=(f"b{n}", git_repo)) for n in range(5)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert peak == 1
