"""Tests for the domain layer."""

import pytest
from pathlib import Path

from doccpages.domain import (
    DocumentationArchive,
    PipelineReport,
    PipelineStage,
    ProjectDescriptor,
    ProjectKind,
    StageResult,
    StageStatus,
)


class TestProjectDescriptor:
    """Tests for ProjectDescriptor."""

    def test_swift_package_to_dict(self):
        descriptor = ProjectDescriptor(
            kind=ProjectKind.SWIFT_PACKAGE,
            root=Path("/repo"),
            manifest=Path("/repo/Package.swift"),
        )
        d = descriptor.to_dict()
        assert d['kind'] == "swift_package"
        assert d['is_swift_package'] is True
        assert d['manifest'] == "/repo/Package.swift"
        assert 'project_file' not in d

    def test_xcode_project_flags(self):
        descriptor = ProjectDescriptor(
            kind=ProjectKind.XCODE_PROJECT,
            root=Path("/repo"),
            project_file=Path("/repo/App.xcodeproj"),
        )
        assert descriptor.is_xcode_project
        assert not descriptor.is_swift_package
        assert descriptor.to_dict()['project_file'] == "/repo/App.xcodeproj"

    def test_descriptor_is_immutable(self):
        descriptor = ProjectDescriptor(kind=ProjectKind.SWIFT_PACKAGE, root=Path("/repo"))
        with pytest.raises(Exception):
            descriptor.kind = ProjectKind.XCODE_PROJECT


class TestDocumentationArchive:

    def test_to_dict(self):
        archive = DocumentationArchive(
            path=Path("/tmp/docbuild/App.doccarchive"),
            target="App",
            kind=ProjectKind.XCODE_PROJECT,
        )
        d = archive.to_dict()
        assert d['target'] == "App"
        assert d['static_ready'] is False
        assert d['kind'] == "xcode_project"


class TestPipelineReport:
    """Tests for the pipeline state machine."""

    def test_linear_progression_reaches_done(self):
        report = PipelineReport()
        for stage in [PipelineStage.DETECTING, PipelineStage.BUILDING,
                      PipelineStage.PACKAGING, PipelineStage.PUBLISHING,
                      PipelineStage.DONE]:
            report.advance(stage)
        assert report.success
        assert not report.failed

    def test_skipping_a_stage_is_rejected(self):
        report = PipelineReport()
        report.advance(PipelineStage.DETECTING)
        with pytest.raises(ValueError):
            report.advance(PipelineStage.PACKAGING)

    def test_going_backwards_is_rejected(self):
        report = PipelineReport()
        report.advance(PipelineStage.DETECTING)
        report.advance(PipelineStage.BUILDING)
        with pytest.raises(ValueError):
            report.advance(PipelineStage.DETECTING)

    def test_cannot_advance_past_done(self):
        report = PipelineReport(stage=PipelineStage.DONE)
        with pytest.raises(ValueError):
            report.advance(PipelineStage.PUBLISHING)

    def test_failed_result_is_absorbing(self):
        report = PipelineReport()
        report.advance(PipelineStage.DETECTING)
        report.advance(PipelineStage.BUILDING)
        report.add(StageResult(PipelineStage.BUILDING, StageStatus.FAILED, error="boom"))

        assert report.failed
        assert report.stage == PipelineStage.FAILED
        with pytest.raises(ValueError):
            report.advance(PipelineStage.PACKAGING)

    def test_failed_reachable_from_any_stage(self):
        for stage in [PipelineStage.START, PipelineStage.DETECTING, PipelineStage.PUBLISHING]:
            report = PipelineReport(stage=stage)
            report.advance(PipelineStage.FAILED)
            assert report.failed

    def test_successful_results_do_not_change_stage(self):
        report = PipelineReport()
        report.advance(PipelineStage.DETECTING)
        report.add(StageResult(PipelineStage.DETECTING, StageStatus.SUCCESS))
        assert report.stage == PipelineStage.DETECTING

    def test_result_for(self):
        report = PipelineReport()
        result = StageResult(PipelineStage.DETECTING, StageStatus.SUCCESS, message="ok")
        report.add(result)
        assert report.result_for(PipelineStage.DETECTING) is result
        assert report.result_for(PipelineStage.BUILDING) is None

    def test_to_dict(self):
        report = PipelineReport()
        report.add(StageResult(
            PipelineStage.DETECTING, StageStatus.SUCCESS,
            message="Detected swift_package", metadata={'project': {'kind': 'swift_package'}},
        ))
        d = report.to_dict()
        assert d['type'] == 'summary'
        assert d['stage'] == 'start'
        assert d['success'] is False
        assert d['stages'][0]['status'] == 'success'
        assert d['stages'][0]['project'] == {'kind': 'swift_package'}
