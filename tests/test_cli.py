"""Tests for the gitconnector command line."""

import json

import pytest
from click.testing import CliRunner

from conftest import requires_git, run_git
from gitconnector.cli import cli
from gitconnector.errors import NoSuchBranch, NothingToCommit
from gitconnector.exit_codes import CONFIG_ERROR
from gitconnector.infra.locking import marker_path


@pytest.fixture
def runner():
    return CliRunner()


def json_output(result):
    """The JSON document a command printed (log lines are skipped)."""
    lines = [line for line in result.stdout.splitlines() if line.startswith('{')]
    assert lines, f"no JSON in output: {result.output!r}"
    return json.loads(lines[-1])


@requires_git
class TestOperationCommands:
    """Connector operations through the CLI."""

    def test_clone_and_checkout(self, runner, remote_repo, tmp_path):
        target = tmp_path / "cli-clone"

        result = runner.invoke(cli, ['-C', str(target), 'clone', str(remote_repo)])
        assert result.exit_code == 0, result.output
        data = json_output(result)
        assert data['status'] == 'success'
        assert data['result']['action'] == 'cloned'

        result = runner.invoke(cli, ['-C', str(target), 'checkout', 'mine', '--start-point', 'origin/test-branch'])
        assert result.exit_code == 0, result.output
        assert json_output(result)['result']['target'] == 'refs/heads/mine'
        assert (target / "b").exists()

    def test_failure_reports_kind_and_exit_code(self, runner, work_dir):
        result = runner.invoke(cli, ['-C', str(work_dir), 'checkout', 'ghost'])

        assert result.exit_code == NoSuchBranch.exit_code
        data = json_output(result)
        assert data['status'] == 'failed'
        assert data['kind'] == 'NoSuchBranch'

    def test_add_and_commit(self, runner, work_dir):
        (work_dir / "c").write_text("c\n")

        result = runner.invoke(cli, ['-C', str(work_dir), 'add', 'c'])
        assert result.exit_code == 0, result.output
        assert json_output(result)['result']['staged'] == ['c']

        result = runner.invoke(cli, [
            '-C', str(work_dir), 'commit', '-m', 'Add c',
            '--committer-name', 'Test User', '--committer-email', 'test@example.com',
        ])
        assert result.exit_code == 0, result.output
        data = json_output(result)
        assert data['result']['message'] == 'Add c'
        assert data['result']['id'] == run_git(work_dir, "rev-parse", "HEAD")

    def test_commit_identity_from_environment(self, runner, work_dir, monkeypatch):
        monkeypatch.setenv("GIT_COMMITTER_NAME", "Env User")
        monkeypatch.setenv("GIT_COMMITTER_EMAIL", "env@example.com")

        result = runner.invoke(cli, ['-C', str(work_dir), 'commit', '-m', 'Nothing staged'])

        assert result.exit_code == NothingToCommit.exit_code
        assert json_output(result)['kind'] == 'NothingToCommit'

    def test_add_unmatched_pattern(self, runner, work_dir):
        result = runner.invoke(cli, ['-C', str(work_dir), 'add', 'missing'])
        assert json_output(result)['kind'] == 'NoSuchPath'
        assert result.exit_code != 0

    def test_branch_lifecycle(self, runner, work_dir):
        result = runner.invoke(cli, ['-C', str(work_dir), 'create-branch', 'feature', 'origin/test-branch'])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ['-C', str(work_dir), 'delete-branch', 'feature'])
        assert json_output(result)['kind'] == 'BranchNotFullyMerged'

        result = runner.invoke(cli, ['-C', str(work_dir), 'delete-branch', '--force', 'feature'])
        assert result.exit_code == 0, result.output

    def test_push_fetch_pull_reset(self, runner, work_dir):
        for command in (['fetch'], ['pull'], ['push'], ['reset']):
            result = runner.invoke(cli, ['-C', str(work_dir)] + command)
            assert result.exit_code == 0, f"{command}: {result.output}"
        assert json_output(result)['operation'] == 'reset_repository'

    def test_unlock(self, runner, work_dir):
        marker_path(work_dir / ".git").write_text("{}")

        result = runner.invoke(cli, ['-C', str(work_dir), 'create-branch', 'topic'])
        assert json_output(result)['kind'] == 'RepositoryLocked'

        result = runner.invoke(cli, ['-C', str(work_dir), 'unlock'])
        assert result.exit_code == 0, result.output
        assert json_output(result)['removed'] is True
        assert not marker_path(work_dir / ".git").exists()

    def test_pretty_output(self, runner, work_dir):
        result = runner.invoke(cli, ['-C', str(work_dir), '--pretty', 'create-branch', 'topic'])
        assert result.exit_code == 0, result.output
        assert "create_branch" in result.stdout
        assert "refs/heads/topic" in result.stdout

    def test_not_a_repository(self, runner, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()
        result = runner.invoke(cli, ['-C', str(plain), 'fetch'])
        assert json_output(result)['kind'] == 'NotARepository'


class TestConfigCommands:
    """Tests for config show and config init."""

    def test_show_defaults(self, runner):
        result = runner.invoke(cli, ['config', 'show'])
        assert result.exit_code == 0, result.output
        data = json_output(result)
        assert data['general']['remote'] == 'origin'
        assert data['timeouts']['network'] == 300

    def test_show_masks_password(self, runner, monkeypatch):
        monkeypatch.setenv("GITCONNECTOR_CREDENTIALS_PASSWORD", "hunter2")
        result = runner.invoke(cli, ['config', 'show'])
        assert "hunter2" not in result.stdout
        assert json_output(result)['credentials']['password'] == '***'

    def test_show_path(self, runner, isolated_environment):
        result = runner.invoke(cli, ['config', 'show', '--path'])
        assert json_output(result)['config_path'] == str(isolated_environment / "missing-config.json")

    def test_init_writes_file(self, runner, isolated_environment):
        result = runner.invoke(cli, ['config', 'init'])
        assert result.exit_code == 0, result.output
        written = isolated_environment / "missing-config.json"
        assert json.loads(written.read_text())['general']['remote'] == 'origin'

        result = runner.invoke(cli, ['config', 'init'])
        assert result.exit_code != 0

        result = runner.invoke(cli, ['config', 'init', '--force'])
        assert result.exit_code == 0

    def test_init_yaml(self, runner, isolated_environment):
        result = runner.invoke(cli, ['config', 'init', '--format', 'yaml'])
        assert result.exit_code == 0, result.output
        assert (isolated_environment / "missing-config.yaml").exists()

    def test_broken_config(self, runner, isolated_environment, monkeypatch):
        broken = isolated_environment / "broken.json"
        broken.write_text("{not json")
        monkeypatch.setenv("GITCONNECTOR_CONFIG", str(broken))

        result = runner.invoke(cli, ['config', 'show'])

        assert result.exit_code == CONFIG_ERROR
        assert json_output(result)['type'] == 'ConfigError'
