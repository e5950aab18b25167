"""
Static-hosting deployment targets for doccpages.

A target takes a packed artifact and makes it live:
- BranchTarget: force-pushes the site to a GitHub Pages branch
- DirectoryTarget: unpacks the site into a local directory
"""

import shutil
import subprocess
import tarfile
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, Optional
import logging

from ..domain import Artifact, Deployment
from ..exit_codes import DeploymentError
from .git_client import GitClient, authenticated_url, parse_repo_url
from .pages_client import PagesClient

logger = logging.getLogger(__name__)

DEFAULT_COMMITTER = ("github-actions[bot]", "41898282+github-actions[bot]@users.noreply.github.com")


def extract_artifact(artifact: Artifact, destination: Path) -> None:
    """Unpack an artifact tarball into ``destination``."""
    destination.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(artifact.path, 'r:*') as tar:
            tar.extractall(destination, filter='data')
    except (tarfile.TarError, OSError) as e:
        raise DeploymentError(f"Could not unpack artifact {artifact.path}: {e}") from e


def check_destination(directory: Path, protected: Iterable[Path]) -> None:
    """
    Refuse a destination that is, or contains, a protected path.

    Raises:
        DeploymentError: If replacing ``directory`` would delete a protected path
    """
    resolved = Path(directory).expanduser().resolve()
    for path in protected:
        keep = Path(path).expanduser().resolve()
        if keep == resolved or keep.is_relative_to(resolved):
            raise DeploymentError(
                f"Refusing to replace {directory}: it would delete {path}"
            )


class HostingTarget:
    """Base class for deployment targets."""
    name = "target"

    def publish(self, artifact: Artifact) -> Deployment:
        raise NotImplementedError

    def describe(self) -> Dict[str, Any]:
        return {'target': self.name}


class DirectoryTarget(HostingTarget):
    """Serve the site from a local directory (self-hosting, previews, tests)."""
    name = "directory"

    def __init__(self, directory: Path, protected: Iterable[Path] = ()):
        if not str(directory):
            raise DeploymentError("pages.directory must be set for the directory target")
        self.directory = Path(directory).expanduser()
        self.protected = [Path(p) for p in protected]
        check_destination(self.directory, self.protected)

    def publish(self, artifact: Artifact) -> Deployment:
        check_destination(self.directory, self.protected + [artifact.site_root])
        # Replace the previous site wholesale
        if self.directory.exists():
            shutil.rmtree(self.directory)
        extract_artifact(artifact, self.directory)
        logger.info(f"Published site to {self.directory}")
        return Deployment(
            target_name=self.name,
            url=self.directory.resolve().as_uri() + '/',
            ref=str(self.directory),
        )

    def describe(self) -> Dict[str, Any]:
        return {'target': self.name, 'directory': str(self.directory)}


class BranchTarget(HostingTarget):
    """
    Publish to the GitHub Pages branch of the source repository.

    The site is committed as the single commit of a fresh history and
    force-pushed, so the branch always holds exactly the latest site.
    """
    name = "branch"

    def __init__(
        self,
        source_root: Path,
        pages_config: Dict[str, Any],
        git: Optional[GitClient] = None,
        pages_client: Optional[PagesClient] = None
    ):
        self.source_root = Path(source_root)
        self.branch = pages_config.get('branch', 'gh-pages')
        self.remote = pages_config.get('remote', 'origin')
        self.repository = pages_config.get('repository', '')
        self.token = pages_config.get('token', '')
        self.commit_message = pages_config.get('commit_message', 'Deploy documentation')
        self.git = git or GitClient()
        self.pages_client = pages_client or PagesClient(
            token=self.token,
            api_url=pages_config.get('api_url', 'https://api.github.com'),
        )

    def _remote_url(self) -> str:
        url = self.git.remote_url(self.source_root, self.remote)
        if not url:
            raise DeploymentError(
                f"No '{self.remote}' remote configured in {self.source_root}"
            )
        return url

    def _owner_repo(self, remote_url: str):
        if self.repository and '/' in self.repository:
            owner, repo = self.repository.split('/', 1)
            return owner, repo
        return parse_repo_url(remote_url)

    def publish(self, artifact: Artifact) -> Deployment:
        remote_url = self._remote_url()
        owner, repo = self._owner_repo(remote_url)

        name = self.git.config_value(self.source_root, 'user.name') or DEFAULT_COMMITTER[0]
        email = self.git.config_value(self.source_root, 'user.email') or DEFAULT_COMMITTER[1]

        with tempfile.TemporaryDirectory(prefix='doccpages-pages-') as tmp:
            work_tree = Path(tmp)
            extract_artifact(artifact, work_tree)
            # Serve DocC's underscore-prefixed files as-is
            (work_tree / '.nojekyll').touch()

            try:
                self.git.init(work_tree, self.branch)
                self.git.set_identity(work_tree, name, email)
                self.git.add_all(work_tree)
                commit = self.git.commit(work_tree, self.commit_message)
                self.git.force_push(
                    work_tree, authenticated_url(remote_url, self.token), self.branch
                )
            except subprocess.CalledProcessError as e:
                raise DeploymentError(
                    f"Pushing to {self.remote}/{self.branch} failed with exit code {e.returncode}"
                ) from e
            except (OSError, subprocess.TimeoutExpired) as e:
                raise DeploymentError(f"Pushing to {self.remote}/{self.branch} failed: {e}") from e

        logger.info(f"Pushed site to {self.remote}/{self.branch} ({commit[:12]})")

        url = None
        if owner and repo:
            self.pages_client.request_build(owner, repo)
            url = self.pages_client.pages_url(owner, repo)

        return Deployment(target_name=f"{self.name}:{self.branch}", url=url, ref=commit)

    def describe(self) -> Dict[str, Any]:
        return {'target': self.name, 'branch': self.branch, 'remote': self.remote}


def make_target(
    source_root: Path,
    pages_config: Dict[str, Any],
    site_root: Optional[Path] = None
) -> HostingTarget:
    """
    Build the hosting target named by ``pages.target``.

    A directory target may not be, or contain, the source root or the
    site root, since publishing replaces it wholesale.
    """
    kind = pages_config.get('target', 'branch')
    if kind == 'branch':
        return BranchTarget(source_root, pages_config)
    if kind == 'directory':
        directory = pages_config.get('directory') or ''
        if not directory:
            raise DeploymentError("pages.directory must be set for the directory target")
        path = Path(directory).expanduser()
        if not path.is_absolute():
            path = Path(source_root) / path
        protected = [Path(source_root)] + ([Path(site_root)] if site_root else [])
        return DirectoryTarget(path, protected=protected)
    raise DeploymentError(f"Unknown hosting target: {kind}")
