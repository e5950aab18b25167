"""
Publisher for doccpages.

Two sub-steps, both under the publish lock for the concurrency group:
1. upload: pack the site tree into an artifact tarball
2. deploy: hand the artifact to the hosting target

There is no rollback: if deploy fails after upload, the artifact stays
in the staging directory and the run fails.
"""

import hashlib
import logging
import os
import tarfile
import tempfile
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ..config import get_default_config
from ..domain import Artifact, Deployment, SiteTree
from ..exit_codes import DeploymentError
from ..infra.hosting import HostingTarget, make_target
from ..infra.publish_lock import PublishLock
from .compiler import resolve_path

logger = logging.getLogger(__name__)

ARTIFACT_NAME = "artifact.tar"
EXCLUDED_NAMES = {'.git', '.github'}


def _exclude(tarinfo: tarfile.TarInfo) -> Optional[tarfile.TarInfo]:
    parts = Path(tarinfo.name).parts
    if any(part in EXCLUDED_NAMES for part in parts):
        return None
    return tarinfo


def _pack(tar: tarfile.TarFile, path: Path, arcname: str, visiting: Tuple[str, ...] = ()) -> None:
    """Add ``path`` to the tarball, following symlinks but refusing loops."""
    if path.is_dir():
        real = os.path.realpath(path)
        if real in visiting:
            raise DeploymentError(f"Symlink loop in site tree: {path} -> {real}")
        tar.add(path, arcname=arcname, recursive=False, filter=_exclude)
        for child in sorted(path.iterdir()):
            if child.name not in EXCLUDED_NAMES:
                _pack(tar, child, f"{arcname}/{child.name}", visiting + (real,))
    else:
        tar.add(path, arcname=arcname, recursive=False, filter=_exclude)


def _sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b''):
            digest.update(chunk)
    return digest.hexdigest()


class Publisher:
    """
    Uploads and deploys a site tree.

    Example:
        publisher = Publisher(Path("."), config)
        deployment = publisher.publish(site)
        print(deployment.url)
    """

    def __init__(
        self,
        root: Path,
        config: Optional[Dict[str, Any]] = None,
        target: Optional[HostingTarget] = None,
        lock: Optional[PublishLock] = None,
        staging_dir: Optional[Path] = None,
        run_id: Optional[str] = None
    ):
        self.root = Path(root)
        self.config = config or get_default_config()
        self.target = target or make_target(
            self.root, self.config['pages'],
            site_root=resolve_path(self.root, self.config['pipeline']['output_dir']),
        )
        self.lock = lock or PublishLock.from_config(self.config['concurrency'])
        self.staging_dir = Path(staging_dir) if staging_dir else None
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.last_artifact: Optional[Artifact] = None

    def upload(self, site: SiteTree) -> Artifact:
        """Pack the site tree into a tarball in the staging directory."""
        if not site.root.is_dir():
            raise DeploymentError(f"Site directory not found: {site.root}")

        staging = self.staging_dir or Path(tempfile.mkdtemp(prefix='doccpages-artifact-'))
        staging.mkdir(parents=True, exist_ok=True)
        artifact_path = staging / ARTIFACT_NAME

        logger.info(f"Packing {site.root} into {artifact_path}")
        try:
            with tarfile.open(artifact_path, 'w', dereference=True) as tar:
                root = (os.path.realpath(site.root),)
                for child in sorted(site.root.iterdir()):
                    if child.name not in EXCLUDED_NAMES:
                        _pack(tar, child, child.name, root)
        except (tarfile.TarError, OSError) as e:
            raise DeploymentError(f"Artifact upload failed: {e}") from e

        artifact = Artifact(
            path=artifact_path,
            site_root=site.root,
            size=artifact_path.stat().st_size,
            sha256=_sha256(artifact_path),
        )
        self.last_artifact = artifact
        return artifact

    def deploy(self, artifact: Artifact) -> Deployment:
        """Publish an uploaded artifact to the hosting target."""
        logger.info(f"Deploying to {self.target.name}...")
        deployment = self.target.publish(artifact)
        if deployment.url:
            logger.info(f"Deployed: {deployment.url}")
        return deployment

    def publish(self, site: SiteTree) -> Deployment:
        """
        Upload then deploy while holding the publish lock.

        When the pipeline already holds the lock for this run, the hold
        nests and the lock stays with the pipeline afterwards.

        Raises:
            PreemptedError: If a newer run took the lock
            DeploymentError: If upload or deploy fails
        """
        with self.lock.hold(self.run_id) as lock:
            lock.ensure_held()
            artifact = self.upload(site)
            lock.ensure_held()
            return self.deploy(artifact)
