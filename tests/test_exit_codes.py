"""Tests for exit codes and the CommandError hierarchy."""

import pytest

from doccpages import exit_codes
from doccpages.exit_codes import (
    AssetsNotFoundError,
    BuildError,
    CommandError,
    ConfigError,
    DeploymentError,
    PreemptedError,
    ProjectNotFoundError,
    ToolchainError,
    get_exit_code_for_exception,
)


class TestExitCodes:

    def test_error_categories_are_distinct_and_nonzero(self):
        codes = [
            exit_codes.PROJECT_NOT_FOUND,
            exit_codes.TOOLCHAIN_ERROR,
            exit_codes.CONFIG_ERROR,
            exit_codes.BUILD_ERROR,
            exit_codes.ASSETS_ERROR,
            exit_codes.DEPLOYMENT_ERROR,
            exit_codes.PREEMPTED,
        ]
        assert len(set(codes)) == len(codes)
        assert exit_codes.SUCCESS not in codes

    @pytest.mark.parametrize("error,code", [
        (ProjectNotFoundError(), exit_codes.PROJECT_NOT_FOUND),
        (ToolchainError("docc missing"), exit_codes.TOOLCHAIN_ERROR),
        (ConfigError("bad yaml"), exit_codes.CONFIG_ERROR),
        (BuildError("xcodebuild failed"), exit_codes.BUILD_ERROR),
        (AssetsNotFoundError("MyDocs.docc/Assets"), exit_codes.ASSETS_ERROR),
        (DeploymentError("push rejected"), exit_codes.DEPLOYMENT_ERROR),
        (PreemptedError("superseded"), exit_codes.PREEMPTED),
    ])
    def test_command_errors_carry_exit_code(self, error, code):
        assert error.exit_code == code
        assert get_exit_code_for_exception(error) == code

    def test_builtin_exceptions(self):
        assert get_exit_code_for_exception(KeyboardInterrupt()) == exit_codes.INTERRUPTED
        assert get_exit_code_for_exception(ValueError("x")) == exit_codes.USAGE_ERROR
        assert get_exit_code_for_exception(RuntimeError("x")) == exit_codes.GENERAL_ERROR


class TestCommandErrorDicts:

    def test_base_to_dict(self):
        assert CommandError("oops").to_dict() == {'error': 'oops', 'type': 'error'}

    def test_build_error_to_dict(self):
        error = BuildError("failed", command="xcodebuild docbuild", returncode=65, stderr="boom")
        d = error.to_dict()
        assert d['type'] == 'build_error'
        assert d['command'] == 'xcodebuild docbuild'
        assert d['returncode'] == 65
        assert 'stderr' not in d

    def test_assets_error_names_path(self):
        error = AssetsNotFoundError("MyDocs.docc/Assets")
        assert "MyDocs.docc/Assets" in str(error)
        assert error.path == "MyDocs.docc/Assets"

    def test_preempted_holder(self):
        assert PreemptedError("superseded", holder="run-2").holder == "run-2"
