"""
Pipeline service for doccpages.

Runs detect -> build -> package -> publish once, in order, stopping at
the first error. Cleanup of temporary build output runs last, after
publishing, whether or not the run succeeded.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, Generator, List, Mapping, Optional

from ..config import get_default_config
from ..domain import (
    PipelineReport,
    PipelineStage,
    ProjectDescriptor,
    StageResult,
    StageStatus,
)
from ..exit_codes import CommandError, get_exit_code_for_exception
from ..infra.git_client import GitClient
from ..infra.publish_lock import PublishLock
from ..infra.toolchain import ToolchainClient
from .compiler import DocumentationCompiler
from .detector import detect_project
from .packager import SitePackager, redirect_target
from .publisher import Publisher

logger = logging.getLogger(__name__)

LATER_STAGES = [PipelineStage.BUILDING, PipelineStage.PACKAGING, PipelineStage.PUBLISHING]


def triggering_branch(root: Path, env: Mapping[str, str], git: GitClient) -> Optional[str]:
    """Branch that triggered the run: CI environment first, then the checkout."""
    if env.get('GITHUB_REF_NAME'):
        return env['GITHUB_REF_NAME']
    ref = env.get('GITHUB_REF', '')
    if ref.startswith('refs/heads/'):
        return ref[len('refs/heads/'):]
    return git.current_branch(root)


class Pipeline:
    """
    The documentation build-and-publish pipeline.

    Example:
        pipeline = Pipeline(Path("."), config)
        for message in pipeline.run():
            print(message)
        report = pipeline.last_report
    """

    def __init__(
        self,
        root: Path,
        config: Optional[Dict[str, Any]] = None,
        toolchain: Optional[ToolchainClient] = None,
        compiler: Optional[DocumentationCompiler] = None,
        packager: Optional[SitePackager] = None,
        publisher: Optional[Publisher] = None,
        git: Optional[GitClient] = None,
        force: bool = False,
        env: Optional[Mapping[str, str]] = None,
        lock: Optional[PublishLock] = None,
        run_id: Optional[str] = None
    ):
        self.root = Path(root)
        self.config = config or get_default_config()
        self.toolchain = toolchain or ToolchainClient(self.config['toolchain'])
        self.compiler = compiler or DocumentationCompiler(self.toolchain, self.config)
        self.packager = packager or SitePackager(self.toolchain, self.config)
        self._publisher = publisher
        self.git = git or GitClient()
        self.force = force
        self.env = os.environ if env is None else env
        self.lock = lock or PublishLock.from_config(self.config['concurrency'])
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.last_report: Optional[PipelineReport] = None

    @property
    def publisher(self) -> Publisher:
        if self._publisher is None:
            self._publisher = Publisher(self.root, self.config, lock=self.lock, run_id=self.run_id)
        return self._publisher

    def skip_reason(self) -> Optional[str]:
        """Why this run should not proceed, or None if it was triggered by a push to a trigger branch."""
        event = self.env.get('GITHUB_EVENT_NAME')
        if event and event != 'push':
            return f"Triggered by '{event}', only 'push' publishes documentation"

        branches: List[str] = self.config['trigger'].get('branches') or []
        if isinstance(branches, str):
            branches = [b.strip() for b in branches.split(',') if b.strip()]
        branch = triggering_branch(self.root, self.env, self.git)
        if branch is None:
            return "Could not determine the current branch (use --force to run anyway)"
        if branches and branch not in branches:
            return f"Branch '{branch}' is not a trigger branch ({', '.join(branches)})"
        return None

    def detect(self) -> ProjectDescriptor:
        descriptor = detect_project(self.root)
        version = self.config['toolchain'].get('xcode_version')
        if version:
            self.toolchain.select_xcode(str(version))
        return descriptor

    def planned_commands(self, descriptor: ProjectDescriptor) -> Dict[PipelineStage, List[str]]:
        """Commands each later stage would run, for dry runs."""
        pipeline = self.config['pipeline']
        scheme = pipeline.get('scheme') or '<first scheme>'
        if descriptor.is_swift_package:
            build = [
                "swift package resolve",
                f"swift package generate-documentation --target {scheme} "
                f"--output-path {pipeline['output_dir']}",
            ]
            package = []
        else:
            build = [
                f"xcodebuild -resolvePackageDependencies -project {descriptor.project_file}",
                f"xcodebuild -list -project {descriptor.project_file}",
                f"xcodebuild docbuild -scheme {scheme} "
                f"-derivedDataPath {pipeline['derived_data_path']} "
                f"-destination '{pipeline['destination']}'",
            ]
            package = [
                f"docc process-archive transform-for-static-hosting "
                f"--output-path {pipeline['output_dir']}",
            ]
        package += [
            f"copy {pipeline['assets_dir']} -> {pipeline['output_dir']}/Assets",
            f"write {pipeline['output_dir']}/index.html",
        ]
        publish = [f"upload {pipeline['output_dir']}", f"deploy to {self.config['pages']['target']}"]
        return {
            PipelineStage.BUILDING: build,
            PipelineStage.PACKAGING: package,
            PipelineStage.PUBLISHING: publish,
        }

    def run(
        self,
        publish: bool = True,
        dry_run: bool = False
    ) -> Generator[str, None, PipelineReport]:
        """
        Run the pipeline.

        Yields progress messages, returns the PipelineReport (also kept
        in ``last_report``). Re-raises the first error after recording it.

        A publishing run holds the publish lock from detection on and
        checks it between stages, so a newer run for the same group
        preempts this one wherever it is.
        """
        report = PipelineReport()
        self.last_report = report

        if not self.force:
            reason = self.skip_reason()
            if reason:
                report.add(StageResult(PipelineStage.START, StageStatus.SKIPPED, message=reason))
                yield f"Skipping: {reason}"
                return report

        locked = publish and not dry_run
        descriptor: Optional[ProjectDescriptor] = None
        try:
            if locked:
                self.lock.acquire(self.run_id)

            report.advance(PipelineStage.DETECTING)
            yield "Detecting project type..."
            descriptor = self.detect()
            report.add(StageResult(
                PipelineStage.DETECTING, StageStatus.SUCCESS,
                message=f"Detected {descriptor.kind.value}",
                metadata={'project': descriptor.to_dict()},
            ))

            if dry_run:
                plan = self.planned_commands(descriptor)
                for stage in LATER_STAGES:
                    report.advance(stage)
                    commands = plan[stage] if (publish or stage != PipelineStage.PUBLISHING) else []
                    report.add(StageResult(stage, StageStatus.DRY_RUN, metadata={'commands': commands}))
                    for command in commands:
                        yield f"[dry run] {stage.value}: {command}"
                report.advance(PipelineStage.DONE)
                return report

            self._checkpoint(locked)
            report.advance(PipelineStage.BUILDING)
            yield "Building DocC documentation..."
            self.compiler.check_toolchain()
            archive = self.compiler.build(descriptor)
            report.add(StageResult(
                PipelineStage.BUILDING, StageStatus.SUCCESS,
                message=f"Built documentation for {archive.target}",
                metadata={'archive': archive.to_dict()},
            ))

            self._checkpoint(locked)
            report.advance(PipelineStage.PACKAGING)
            yield "Packaging static site..."
            site = self.packager.package(archive, self.root)
            report.add(StageResult(
                PipelineStage.PACKAGING, StageStatus.SUCCESS,
                message=f"Redirects to {redirect_target(site.target)}",
                metadata={'site': site.to_dict()},
            ))

            self._checkpoint(locked)
            report.advance(PipelineStage.PUBLISHING)
            if publish:
                yield "Publishing site..."
                deployment = self.publisher.publish(site)
                report.add(StageResult(
                    PipelineStage.PUBLISHING, StageStatus.SUCCESS,
                    message=f"Deployed to {deployment.url}" if deployment.url else "Deployed",
                    metadata={'deployment': deployment.to_dict()},
                ))
            else:
                report.add(StageResult(
                    PipelineStage.PUBLISHING, StageStatus.SKIPPED, message="Publishing disabled"
                ))

            report.advance(PipelineStage.DONE)
            yield "Done."

        except CommandError as e:
            logger.error(f"{report.stage.value} failed: {e}")
            report.add(StageResult(
                report.stage, StageStatus.FAILED,
                error=str(e), metadata={'type': e.error_type},
            ))
            report.exit_code = e.exit_code
            raise

        except Exception as e:
            logger.exception(f"{report.stage.value} failed unexpectedly: {e}")
            report.add(StageResult(
                report.stage, StageStatus.FAILED,
                error=str(e), metadata={'type': type(e).__name__},
            ))
            report.exit_code = get_exit_code_for_exception(e)
            raise

        finally:
            if not dry_run and descriptor is not None:
                self._cleanup(descriptor)
            if locked:
                self.lock.release()

        return report

    def _checkpoint(self, locked: bool) -> None:
        """Stop here if a newer run has taken the publish lock."""
        if locked:
            self.lock.ensure_held()

    def _cleanup(self, descriptor: ProjectDescriptor) -> None:
        if not self.config['pipeline'].get('cleanup', True):
            return
        if descriptor.is_xcode_project:
            self.packager.cleanup([self.compiler.derived_data_path(self.root)])
