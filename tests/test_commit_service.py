"""Tests for CommitService."""

import pytest

from conftest import TEST_IDENTITY, requires_git, run_git
from gitconnector.domain.commit import CommitIdentity
from gitconnector.errors import DetachedHeadCommit, InvalidParameter, NothingToCommit, OperationFailed
from gitconnector.services import CommitService, IndexService, RepositoryService

pytestmark = requires_git


@pytest.fixture
def commits():
    return CommitService()


@pytest.fixture
def index():
    return IndexService()


class TestCommit:
    """Tests for CommitService.commit."""

    def test_commit_staged_files(self, commits, index, handle, work_dir):
        parent = run_git(work_dir, "rev-parse", "HEAD")
        (work_dir / "b").write_text("b\n")
        (work_dir / "c").write_text("c\n")
        index.stage(handle, ["b", "c"])

        commit = commits.commit(handle, "Add b and c", TEST_IDENTITY)

        assert commit.parents == (parent,)
        assert commit.message == "Add b and c"
        assert commit.committer.name == "Test User"
        assert commit.author.email == "test@example.com"
        assert run_git(work_dir, "rev-parse", "main") == commit.id
        assert commits.tree_paths(handle) == ["a", "b", "c"]
        assert not index.has_staged_changes(handle)

    def test_read_back(self, commits, index, handle, work_dir):
        (work_dir / "b").write_text("b\n")
        index.stage(handle, ["b"])
        created = commits.commit(handle, "Add b", TEST_IDENTITY)

        loaded = commits.read_commit(handle, "HEAD")

        assert loaded == created
        assert loaded.tree == run_git(work_dir, "rev-parse", "HEAD^{tree}")

    def test_nothing_to_commit(self, commits, handle, work_dir):
        head = run_git(work_dir, "rev-parse", "HEAD")
        (work_dir / "untracked").write_text("u\n")
        with pytest.raises(NothingToCommit):
            commits.commit(handle, "Empty", TEST_IDENTITY)
        assert run_git(work_dir, "rev-parse", "HEAD") == head

    def test_author_differs_from_committer(self, commits, index, handle, work_dir):
        (work_dir / "b").write_text("b\n")
        index.stage(handle, ["b"])
        author = CommitIdentity(name="Ada Author", email="ada@example.com")

        commit = commits.commit(handle, "Authored", TEST_IDENTITY, author=author)

        assert commit.author.name == "Ada Author"
        assert commit.committer.name == "Test User"
        assert run_git(work_dir, "log", "-1", "--format=%an|%cn") == "Ada Author|Test User"

    def test_all_stages_tracked_changes_only(self, commits, handle, work_dir):
        (work_dir / "a").write_text("changed\n")
        (work_dir / "untracked").write_text("u\n")

        commit = commits.commit(handle, "Change a", TEST_IDENTITY, all=True)

        assert commits.tree_paths(handle, commit.id) == ["a"]
        assert run_git(work_dir, "show", "HEAD:a") == "changed"
        assert (work_dir / "untracked").exists()

    def test_all_with_no_changes(self, commits, handle):
        with pytest.raises(NothingToCommit):
            commits.commit(handle, "Nothing", TEST_IDENTITY, all=True)

    def test_all_with_only_deletion(self, commits, handle, work_dir):
        (work_dir / "a").unlink()
        commit = commits.commit(handle, "Drop a", TEST_IDENTITY, all=True)
        assert commits.tree_paths(handle, commit.id) == []

    def test_all_rejected_by_hook_leaves_index_alone(self, commits, handle, work_dir):
        head = run_git(work_dir, "rev-parse", "HEAD")
        hooks = work_dir / ".git" / "hooks"
        hooks.mkdir(exist_ok=True)
        hook = hooks / "pre-commit"
        hook.write_text("#!/bin/sh\nexit 1\n")
        hook.chmod(0o755)
        (work_dir / "a").write_text("changed\n")

        with pytest.raises(OperationFailed):
            commits.commit(handle, "Change a", TEST_IDENTITY, all=True)

        assert run_git(work_dir, "diff", "--cached", "--name-only") == ""
        assert run_git(work_dir, "diff", "--name-only") == "a"
        assert run_git(work_dir, "rev-parse", "HEAD") == head

    def test_detached_head(self, commits, index, handle, work_dir):
        run_git(work_dir, "checkout", "--quiet", "--detach")
        (work_dir / "b").write_text("b\n")
        index.stage(handle, ["b"])
        with pytest.raises(DetachedHeadCommit):
            commits.commit(handle, "Detached", TEST_IDENTITY)

    @pytest.mark.parametrize("message", ["", "   ", "\n\n"])
    def test_blank_message(self, commits, handle, message):
        with pytest.raises(InvalidParameter):
            commits.commit(handle, message, TEST_IDENTITY)

    def test_blank_committer(self, commits, handle):
        with pytest.raises(InvalidParameter):
            commits.commit(handle, "msg", CommitIdentity(name="", email="x@example.com"))

    def test_message_whitespace_cleanup(self, commits, index, handle, work_dir):
        (work_dir / "b").write_text("b\n")
        index.stage(handle, ["b"])
        commit = commits.commit(handle, "Subject   \n\n\n\nBody\n\n", TEST_IDENTITY)
        assert commit.message == "Subject\n\nBody"
        assert commit.subject == "Subject"

    def test_root_commit(self, commits, index, tmp_path):
        with RepositoryService().init(tmp_path / "fresh") as fresh:
            (tmp_path / "fresh" / "first").write_text("1\n")
            index.stage(fresh, ["first"])

            commit = commits.commit(fresh, "Initial", TEST_IDENTITY)

            assert commit.is_root
            assert run_git(fresh.path, "rev-parse", "refs/heads/main") == commit.id

    def test_bare_repository(self, commits, remote_repo):
        with RepositoryService().open(remote_repo) as bare:
            with pytest.raises(InvalidParameter):
                commits.commit(bare, "msg", TEST_IDENTITY)
