"""Tests for the operation registry and parameter binding."""

import pytest

from gitconnector.errors import InvalidParameter
from gitconnector.operations import OPERATIONS, bind_parameters, get_operation, snake_case


class TestSnakeCase:
    """Tests for name normalization."""

    @pytest.mark.parametrize("name,expected", [
        ("overrideDirectory", "override_directory"),
        ("createBranch", "create_branch"),
        ("resetRepository", "reset_repository"),
        ("filePatterns", "file_patterns"),
        ("force_all", "force_all"),
        ("msg", "msg"),
    ])
    def test_snake_case(self, name, expected):
        assert snake_case(name) == expected


class TestGetOperation:
    """Tests for operation lookup."""

    def test_engine_names(self):
        for engine_name in ("clone", "add", "createBranch", "deleteBranch", "commit",
                            "push", "pull", "fetch", "checkout", "resetRepository"):
            assert get_operation(engine_name).name in OPERATIONS

    def test_python_name(self):
        assert get_operation("delete_branch").method == "delete_branch"

    def test_unknown(self):
        with pytest.raises(InvalidParameter) as exc_info:
            get_operation("rebase")
        assert "rebase" in str(exc_info.value)

    def test_network_operations(self):
        network = {name for name, spec in OPERATIONS.items() if spec.network}
        assert network == {"clone", "push", "pull", "fetch"}


class TestBindParameters:
    """Tests for bind_parameters."""

    def test_camel_case_params(self):
        spec = get_operation("add")
        bound = bind_parameters(spec, {"filePatterns": "a;b", "forceAll": "false", "overrideDirectory": "/r"})
        assert bound == {"file_patterns": "a;b", "force_all": False, "override_directory": "/r"}

    def test_defaults_filled(self):
        bound = bind_parameters(get_operation("clone"), {"uri": "/srv/r.git"})
        assert bound == {"uri": "/srv/r.git", "bare": False, "remote": "origin", "branch": "HEAD"}

    def test_optional_without_default_omitted(self):
        bound = bind_parameters(get_operation("checkout"), {"branch": "main"})
        assert bound == {"branch": "main"}

    def test_alias(self):
        bound = bind_parameters(get_operation("createBranch"), {"branchName": "topic", "startPoint": "origin/x"})
        assert bound["name"] == "topic"
        assert bound["start_point"] == "origin/x"
        assert bound["force"] is False

    def test_bool_coercion(self):
        spec = get_operation("push")
        assert bind_parameters(spec, {"force": "TRUE"})["force"] is True
        assert bind_parameters(spec, {"force": True})["force"] is True
        assert bind_parameters(spec, {"force": "no"})["force"] is False

    def test_bad_bool(self):
        with pytest.raises(InvalidParameter):
            bind_parameters(get_operation("push"), {"force": "maybe"})

    def test_list_patterns(self):
        bound = bind_parameters(get_operation("add"), {"file_patterns": ["a", "b"]})
        assert bound["file_patterns"] == ["a", "b"]

    def test_bad_list(self):
        with pytest.raises(InvalidParameter):
            bind_parameters(get_operation("add"), {"file_patterns": [1, 2]})

    def test_bad_string(self):
        with pytest.raises(InvalidParameter):
            bind_parameters(get_operation("checkout"), {"branch": 42})

    def test_missing_required(self):
        with pytest.raises(InvalidParameter) as exc_info:
            bind_parameters(get_operation("commit"), {"msg": "m", "committerName": "x"})
        assert "committer_email" in str(exc_info.value)

    def test_blank_required(self):
        with pytest.raises(InvalidParameter):
            bind_parameters(get_operation("clone"), {"uri": "  "})

    def test_delete_branch_requires_force(self):
        with pytest.raises(InvalidParameter):
            bind_parameters(get_operation("deleteBranch"), {"name": "x"})
        bound = bind_parameters(get_operation("deleteBranch"), {"name": "x", "force": "false"})
        assert bound == {"name": "x", "force": False}

    def test_unknown_parameter(self):
        with pytest.raises(InvalidParameter) as exc_info:
            bind_parameters(get_operation("fetch"), {"depth": "1"})
        assert "depth" in str(exc_info.value)

    def test_duplicate_parameter(self):
        with pytest.raises(InvalidParameter):
            bind_parameters(get_operation("createBranch"), {"name": "a", "branchName": "b"})

    def test_none_params(self):
        assert bind_parameters(get_operation("pull"), None) == {}
