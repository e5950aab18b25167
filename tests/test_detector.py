"""
Tests for project-type detection.
"""

import pytest
from pathlib import Path

from doccpages.domain import ProjectKind
from doccpages.exit_codes import PROJECT_NOT_FOUND, ProjectNotFoundError
from doccpages.services.detector import detect_project, find_xcode_projects


def make_xcodeproj(path: Path) -> Path:
    path.mkdir(parents=True)
    (path / 'project.pbxproj').write_text('// !$*UTF8*$!\n')
    return path


class TestDetectProject:
    """Tests for detect_project()."""

    def test_swift_package(self, tmp_path):
        (tmp_path / 'Package.swift').write_text('// swift-tools-version:5.9\n')

        descriptor = detect_project(tmp_path)

        assert descriptor.kind == ProjectKind.SWIFT_PACKAGE
        assert descriptor.manifest == tmp_path / 'Package.swift'
        assert descriptor.project_file is None

    def test_xcode_project(self, tmp_path):
        project = make_xcodeproj(tmp_path / 'MyApp.xcodeproj')

        descriptor = detect_project(tmp_path)

        assert descriptor.kind == ProjectKind.XCODE_PROJECT
        assert descriptor.project_file == project

    def test_nested_xcode_project(self, tmp_path):
        project = make_xcodeproj(tmp_path / 'App' / 'MyApp.xcodeproj')

        descriptor = detect_project(tmp_path)

        assert descriptor.project_file == project

    def test_package_wins_over_project(self, tmp_path):
        """Only one build path is chosen when both markers exist."""
        (tmp_path / 'Package.swift').write_text('')
        make_xcodeproj(tmp_path / 'MyApp.xcodeproj')

        descriptor = detect_project(tmp_path)

        assert descriptor.kind == ProjectKind.SWIFT_PACKAGE
        assert descriptor.project_file is None

    def test_neither_raises(self, tmp_path):
        (tmp_path / 'README.md').write_text('# nothing to build')

        with pytest.raises(ProjectNotFoundError) as exc_info:
            detect_project(tmp_path)

        assert exc_info.value.exit_code == PROJECT_NOT_FOUND
        assert exc_info.value.exit_code != 0

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(ProjectNotFoundError):
            detect_project(tmp_path / 'does-not-exist')

    def test_package_swift_directory_is_not_a_manifest(self, tmp_path):
        (tmp_path / 'Package.swift').mkdir()

        with pytest.raises(ProjectNotFoundError):
            detect_project(tmp_path)

    def test_detection_is_deterministic(self, tmp_path):
        make_xcodeproj(tmp_path / 'Zeta.xcodeproj')
        make_xcodeproj(tmp_path / 'Alpha.xcodeproj')

        results = {detect_project(tmp_path).project_file for _ in range(5)}

        assert results == {tmp_path / 'Alpha.xcodeproj'}


class TestFindXcodeProjects:
    """Tests for find_xcode_projects()."""

    def test_shallowest_first(self, tmp_path):
        deep = make_xcodeproj(tmp_path / 'a' / 'Deep.xcodeproj')
        shallow = make_xcodeproj(tmp_path / 'Shallow.xcodeproj')

        assert find_xcode_projects(tmp_path) == [shallow, deep]

    def test_skips_build_and_dependency_dirs(self, tmp_path):
        make_xcodeproj(tmp_path / '.build' / 'checkouts' / 'Dep.xcodeproj')
        make_xcodeproj(tmp_path / 'Pods' / 'Pods.xcodeproj')
        make_xcodeproj(tmp_path / 'DerivedData' / 'X.xcodeproj')

        assert find_xcode_projects(tmp_path) == []

    def test_does_not_descend_into_project_bundles(self, tmp_path):
        outer = make_xcodeproj(tmp_path / 'Outer.xcodeproj')
        make_xcodeproj(outer / 'Inner.xcodeproj')

        assert find_xcode_projects(tmp_path) == [outer]

    def test_empty_tree(self, tmp_path):
        assert find_xcode_projects(tmp_path) == []
